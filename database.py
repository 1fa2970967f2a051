from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument

import config
from errors import InvalidIdError
from logger import get_logger

logger = get_logger("database")

_client = MongoClient(config.DATABASE_URL)
db = _client[config.DATABASE_NAME]

# Collection names
ARTICLES = "articles"
VIDEOS = "videos"
FAQS = "faqs"
COMMENTS = "comments"
CONTENT_FEEDBACK = "contentFeedback"
FEEDBACK = "feedback"
SUPPORT_TICKETS = "supportTickets"
NOTIFICATIONS = "notifications"
USERS = "users"
USER_ACTIVITIES = "user_activities"
USER_PROFILES = "user_profiles"


def utcnow() -> datetime:
    # Naive UTC, matching what the driver hands back on reads
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_object_id(value: Union[str, ObjectId]) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(str(value)):
        raise InvalidIdError(f"Invalid id: {value}")
    return ObjectId(str(value))


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    now = utcnow()
    payload = {**data, "created_at": now, "updated_at": now}
    col = db[collection_name]
    res = col.insert_one(payload)
    saved = col.find_one({"_id": res.inserted_id})
    return serialize_doc(saved)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    col = db[collection_name]
    cursor = col.find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [serialize_doc(d) for d in cursor]


def get_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    return serialize_doc(db[collection_name].find_one({"_id": to_object_id(doc_id)}))


def update_document(collection_name: str, doc_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Apply a partial $set and return the updated document (None if missing)"""
    payload = {k: v for k, v in updates.items() if k not in ("_id", "id", "created_at")}
    payload["updated_at"] = utcnow()
    result = db[collection_name].find_one_and_update(
        {"_id": to_object_id(doc_id)},
        {"$set": payload},
        return_document=ReturnDocument.AFTER,
    )
    return serialize_doc(result)


def delete_document(collection_name: str, doc_id: str) -> bool:
    result = db[collection_name].delete_one({"_id": to_object_id(doc_id)})
    return result.deleted_count > 0


def ensure_indexes():
    db[ARTICLES].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    db[VIDEOS].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    db[FAQS].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    db[COMMENTS].create_index([("content_type", ASCENDING), ("content_id", ASCENDING), ("created_at", ASCENDING)])
    db[CONTENT_FEEDBACK].create_index(
        [("content_type", ASCENDING), ("content_id", ASCENDING), ("user_id", ASCENDING)],
        unique=True,
    )
    db[SUPPORT_TICKETS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[NOTIFICATIONS].create_index([("user_id", ASCENDING), ("is_read", ASCENDING), ("created_at", DESCENDING)])
    db[USER_ACTIVITIES].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    logger.info("Database indexes ensured on %s", db.name)
