from typing import Any, Dict, Optional

import database
from logger import get_logger

logger = get_logger("users")


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    # Users are keyed by the auth provider's uid, not an ObjectId
    if not user_id:
        return None
    return database.serialize_doc(database.db[database.USERS].find_one({"_id": user_id}))


def upsert_user(user_id: str, display_name: str = "", email: str = "") -> Dict[str, Any]:
    now = database.utcnow()
    database.db[database.USERS].update_one(
        {"_id": user_id},
        {
            "$set": {"display_name": display_name, "email": email, "updated_at": now},
            "$setOnInsert": {"admin": False, "created_at": now},
        },
        upsert=True,
    )
    return get_user(user_id)


def set_admin(user_id: str, admin: bool = True) -> Dict[str, Any]:
    """Mirror of the token's admin claim for listings; requests are authorized by the claim"""
    now = database.utcnow()
    database.db[database.USERS].update_one(
        {"_id": user_id},
        {"$set": {"admin": admin, "updated_at": now}, "$setOnInsert": {"created_at": now}},
        upsert=True,
    )
    logger.info("Admin flag for %s set to %s", user_id, admin)
    return get_user(user_id)
