from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument

import database
import notifications
from content_tools import extract_mentions
from database import COMMENTS
from errors import ContentValidationError, NotFoundError, PermissionDeniedError
from logger import get_logger
from schemas import Comment, Notification

logger = get_logger("comments")

DELETED_MESSAGE = "[Comment deleted]"


def get_comment(comment_id: str) -> Optional[Dict[str, Any]]:
    return database.get_document(COMMENTS, comment_id)


def _require_comment(comment_id: str) -> Dict[str, Any]:
    comment = get_comment(comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def _require_owner_or_admin(comment: Dict[str, Any], actor_id: Optional[str], actor_is_admin: bool = False):
    if actor_id is None:
        return
    if comment["user_id"] != actor_id and not actor_is_admin:
        raise PermissionDeniedError("Only the author or an admin can change this comment")


def create_comment(
    content_type: str,
    content_id: str,
    user_id: str,
    message: str,
    user_name: str = "",
    user_email: Optional[str] = None,
    user_avatar: Optional[str] = None,
    parent_id: Optional[str] = None,
    is_admin: bool = False,
) -> Dict[str, Any]:
    message = (message or "").strip()
    if not message:
        raise ContentValidationError("Comment cannot be empty")

    parent = None
    if parent_id:
        parent = get_comment(parent_id)
        if not parent or parent.get("is_deleted"):
            raise NotFoundError("Parent comment not found")
        if (parent["content_type"], parent["content_id"]) != (content_type, content_id):
            raise ContentValidationError("Reply must belong to the same content as its parent")
        # Threads are one level deep
        if parent.get("parent_id"):
            parent_id = parent["parent_id"]

    comment = Comment(
        content_type=content_type,
        content_id=content_id,
        user_id=user_id,
        user_name=user_name,
        user_email=user_email,
        user_avatar=user_avatar,
        message=message,
        parent_id=parent_id,
        mentions=extract_mentions(message),
    )
    saved = database.create_document(COMMENTS, comment)
    logger.info("Comment %s on %s/%s by %s", saved["id"], content_type, content_id, user_id)

    if parent and parent["user_id"] != user_id and is_admin:
        notifications.create_notification(Notification(
            user_id=parent["user_id"],
            type="admin_reply",
            title="An admin replied to your comment",
            message=message[:200],
            related_comment_id=saved["id"],
            related_content_id=content_id,
            related_content_type=content_type,
            admin_id=user_id,
            admin_name=user_name or None,
        ))
    return saved


def build_comment_tree(comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Attach replies to their parents. Input must already be in display order;
    replies whose parent is not in the list are dropped.
    """
    by_id = {c["id"]: {**c, "replies": []} for c in comments}
    roots = []
    for c in comments:
        node = by_id[c["id"]]
        parent_id = c.get("parent_id")
        if parent_id:
            parent = by_id.get(parent_id)
            if parent is not None:
                parent["replies"].append(node)
        else:
            roots.append(node)
    return roots


def get_comments(content_type: str, content_id: str) -> List[Dict[str, Any]]:
    docs = database.get_documents(COMMENTS, {"content_type": content_type, "content_id": content_id})
    visible = [c for c in docs if not c.get("is_deleted")]
    visible.sort(key=lambda c: c.get("created_at") or database.utcnow())
    return build_comment_tree(visible)


def get_comment_count(content_type: str, content_id: str) -> int:
    return database.db[COMMENTS].count_documents(
        {"content_type": content_type, "content_id": content_id, "is_deleted": False}
    )


def edit_comment(
    comment_id: str, message: str, actor_id: Optional[str] = None, actor_is_admin: bool = False
) -> Dict[str, Any]:
    comment = _require_comment(comment_id)
    if comment.get("is_deleted"):
        raise NotFoundError("Comment not found")
    _require_owner_or_admin(comment, actor_id, actor_is_admin)
    message = (message or "").strip()
    if not message:
        raise ContentValidationError("Comment cannot be empty")
    return database.update_document(COMMENTS, comment_id, {
        "message": message,
        "mentions": extract_mentions(message),
        "is_edited": True,
    })


def like_comment(comment_id: str, user_id: str) -> Dict[str, Any]:
    """Toggle user_id's like; returns the updated comment"""
    oid = database.to_object_id(comment_id)
    col = database.db[COMMENTS]
    now = database.utcnow()

    unliked = col.find_one_and_update(
        {"_id": oid, "is_deleted": {"$ne": True}, "liked_by": user_id},
        {"$pull": {"liked_by": user_id}, "$inc": {"likes": -1}, "$set": {"updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if unliked:
        return database.serialize_doc(unliked)

    liked = col.find_one_and_update(
        {"_id": oid, "is_deleted": {"$ne": True}, "liked_by": {"$ne": user_id}},
        {"$push": {"liked_by": user_id}, "$inc": {"likes": 1}, "$set": {"updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if not liked:
        raise NotFoundError("Comment not found")

    liked = database.serialize_doc(liked)
    if liked["user_id"] != user_id:
        notifications.create_notification(Notification(
            user_id=liked["user_id"],
            type="comment_like",
            title="Someone liked your comment",
            message=liked["message"][:200],
            related_comment_id=liked["id"],
            related_content_id=liked["content_id"],
            related_content_type=liked["content_type"],
        ))
    return liked


def delete_comment(
    comment_id: str, actor_id: Optional[str] = None, actor_is_admin: bool = False
) -> Dict[str, Any]:
    """Soft delete: the document stays so reply threads keep their anchor"""
    comment = _require_comment(comment_id)
    _require_owner_or_admin(comment, actor_id, actor_is_admin)
    deleted = database.update_document(COMMENTS, comment_id, {
        "is_deleted": True,
        "message": DELETED_MESSAGE,
    })
    logger.info("Comment %s soft-deleted", comment_id)
    return deleted


def get_all_comments() -> List[Dict[str, Any]]:
    return database.get_documents(COMMENTS, sort=[("created_at", DESCENDING)])
