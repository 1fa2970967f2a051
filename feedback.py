from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

import comments
import database
from database import CONTENT_FEEDBACK, FEEDBACK
from errors import NotFoundError
from logger import get_logger
from schemas import ContentFeedback, Feedback, FeedbackCreate

logger = get_logger("feedback")


# Helpful votes and ratings on content

def get_user_feedback(content_type: str, content_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    doc = database.db[CONTENT_FEEDBACK].find_one(
        {"content_type": content_type, "content_id": content_id, "user_id": user_id}
    )
    return database.serialize_doc(doc)


def _write_vote(key: Dict[str, Any], fields: Dict[str, Any], upsert: bool = True):
    now = database.utcnow()
    return database.db[CONTENT_FEEDBACK].update_one(
        key,
        {"$set": {**fields, "updated_at": now}, "$setOnInsert": {"created_at": now}},
        upsert=upsert,
    )


def upsert_content_feedback(
    content_type: str,
    content_id: str,
    user_id: str,
    helpful: bool,
    rating: Optional[int] = None,
    comment: Optional[str] = None,
    user_name: str = "",
    user_email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Record a user's vote on a piece of content.

    A user has at most one feedback record per content item; submitting again
    overwrites helpful/rating/comment. The first submission with a non-blank
    comment also posts it as a regular comment on the content.

    The write is a single upsert against the unique (content_type, content_id,
    user_id) index, so two first submissions racing each other still leave one
    record and post one comment.
    """
    vote = ContentFeedback(
        content_type=content_type,
        content_id=content_id,
        user_id=user_id,
        helpful=helpful,
        rating=rating,
        comment=(comment or "").strip() or None,
    ).model_dump()
    key = {k: vote.pop(k) for k in ("content_type", "content_id", "user_id")}

    try:
        result = _write_vote(key, vote)
    except DuplicateKeyError:
        # Another request inserted the record between our match and insert
        result = _write_vote(key, vote, upsert=False)
    created = result.upserted_id is not None
    saved = get_user_feedback(content_type, content_id, user_id)
    if not created:
        return saved

    logger.info("Feedback %s on %s/%s by %s", saved["id"], content_type, content_id, user_id)
    if vote["comment"]:
        try:
            comments.create_comment(
                content_type=content_type,
                content_id=content_id,
                user_id=user_id,
                message=vote["comment"],
                user_name=user_name,
                user_email=user_email,
            )
        except Exception:
            logger.exception("Could not post feedback comment for %s/%s", content_type, content_id)
    return saved


def get_feedback_summary(content_type: str, content_id: str) -> Dict[str, Any]:
    docs = database.get_documents(CONTENT_FEEDBACK, {"content_type": content_type, "content_id": content_id})
    helpful = sum(1 for d in docs if d.get("helpful"))
    ratings = [d["rating"] for d in docs if d.get("rating")]
    average = round(sum(ratings) / len(ratings), 1) if ratings else 0
    return {
        "helpful_count": helpful,
        "not_helpful_count": len(docs) - helpful,
        "average_rating": average,
        "total_ratings": len(ratings),
        "comments": [d["comment"] for d in docs if d.get("comment")],
    }


def get_all_content_feedback() -> List[Dict[str, Any]]:
    return database.get_documents(CONTENT_FEEDBACK, sort=[("created_at", DESCENDING)])


def delete_content_feedback(feedback_id: str) -> bool:
    return database.delete_document(CONTENT_FEEDBACK, feedback_id)


# General feedback inbox

def create_feedback(payload: FeedbackCreate) -> Dict[str, Any]:
    saved = database.create_document(FEEDBACK, Feedback(**payload.model_dump()))
    logger.info("General feedback %s from %s", saved["id"], payload.email)
    return saved


def list_feedback(status: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
    filter_dict = {"status": status} if status else None
    return database.get_documents(FEEDBACK, filter_dict, limit=limit, sort=[("created_at", DESCENDING)])


def update_feedback_status(feedback_id: str, status: str) -> Dict[str, Any]:
    updated = database.update_document(FEEDBACK, feedback_id, {"status": status})
    if updated is None:
        raise NotFoundError("Feedback not found")
    return updated


def delete_feedback(feedback_id: str) -> bool:
    return database.delete_document(FEEDBACK, feedback_id)
