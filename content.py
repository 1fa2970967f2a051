from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument

import database
from content_tools import calculate_read_time, extract_excerpt, extract_keywords
from database import ARTICLES, FAQS, FEEDBACK, VIDEOS
from errors import ContentValidationError
from logger import get_logger
from schemas import Article, ArticleSave

logger = get_logger("content")

MIN_TITLE_LENGTH = 3


class ContentService:
    """CRUD over one content collection (articles, videos or faqs)"""

    def __init__(self, collection_name: str, content_type: str, title_field: str = "title"):
        self.collection_name = collection_name
        self.content_type = content_type
        self.title_field = title_field

    @property
    def collection(self):
        return database.db[self.collection_name]

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"views": 0, **data}
        if payload.get("status") == "published" and not payload.get("published_at"):
            payload["published_at"] = database.utcnow()
        saved = database.create_document(self.collection_name, payload)
        logger.info("Created %s %s", self.content_type, saved["id"])
        return saved

    def get_all(self, limit: int = 50) -> List[Dict[str, Any]]:
        return database.get_documents(self.collection_name, limit=limit, sort=[("created_at", DESCENDING)])

    def get_by_status(self, status: str) -> List[Dict[str, Any]]:
        return database.get_documents(
            self.collection_name, {"status": status}, sort=[("created_at", DESCENDING)]
        )

    def get_published(self) -> List[Dict[str, Any]]:
        return self.get_by_status("published")

    def get_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        return database.get_document(self.collection_name, doc_id)

    def update(self, doc_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if updates.get("status") == "published":
            current = self.get_by_id(doc_id)
            if current and not current.get("published_at"):
                updates = {**updates, "published_at": database.utcnow()}
        return database.update_document(self.collection_name, doc_id, updates)

    def delete(self, doc_id: str) -> bool:
        deleted = database.delete_document(self.collection_name, doc_id)
        if deleted:
            logger.info("Deleted %s %s", self.content_type, doc_id)
        return deleted

    def increment_views(self, doc_id: str) -> Optional[Dict[str, Any]]:
        result = self.collection.find_one_and_update(
            {"_id": database.to_object_id(doc_id)},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return database.serialize_doc(result)


article_service = ContentService(ARTICLES, "article")
video_service = ContentService(VIDEOS, "video")
faq_service = ContentService(FAQS, "faq", title_field="question")

SERVICES = {
    "article": article_service,
    "video": video_service,
    "faq": faq_service,
}


def get_service(content_type: str) -> Optional[ContentService]:
    return SERVICES.get(content_type)


# Article authoring

def validate_article(
    title: str,
    content: str,
    publish: bool = False,
    scheduled_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
):
    title = (title or "").strip()
    if not title:
        raise ContentValidationError("Title is required")
    if not (content or "").strip():
        raise ContentValidationError("Content is required")
    if len(title) < MIN_TITLE_LENGTH:
        raise ContentValidationError(f"Title must be at least {MIN_TITLE_LENGTH} characters long")
    if publish and scheduled_at is not None:
        now = now or database.utcnow()
        if database.to_naive_utc(scheduled_at) <= now:
            raise ContentValidationError("Scheduled date and time must be in the future")


def derive_article_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Fill excerpt, keywords and read time from the body when not supplied"""
    body = fields.get("content") or ""
    derived = dict(fields)
    if not (derived.get("excerpt") or "").strip():
        derived["excerpt"] = extract_excerpt(body)
    else:
        derived["excerpt"] = derived["excerpt"].strip()
    if not derived.get("keywords"):
        derived["keywords"] = extract_keywords(body)
    derived["read_time"] = calculate_read_time(body)
    return derived


def save_article(payload: ArticleSave, article_id: Optional[str] = None, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """
    Create or update an article from the editor form.

    Publishing with a schedule stores the article as "scheduled"; publishing
    without one stamps published_at. Returns None when article_id does not
    exist.
    """
    now = now or database.utcnow()
    scheduled_at = database.to_naive_utc(payload.scheduled_at)
    validate_article(payload.title, payload.content, payload.publish, scheduled_at, now)

    if payload.publish and scheduled_at is not None:
        status, published_at = "scheduled", None
    elif payload.publish:
        status, published_at = "published", now
    else:
        status, published_at = "draft", None
        scheduled_at = None

    fields = derive_article_fields({
        "title": payload.title.strip(),
        "content": payload.content.strip(),
        "excerpt": payload.excerpt,
        "category": payload.category,
        "author": payload.author or "Admin",
        "tags": payload.tags,
        "keywords": payload.keywords,
    })
    fields.update(status=status, published_at=published_at, scheduled_at=scheduled_at)

    if article_id:
        if status == "published":
            # Keep the original publish date on re-save
            fields.pop("published_at")
        return article_service.update(article_id, fields)

    article = Article(**fields)
    saved = database.create_document(ARTICLES, article)
    logger.info("Created article %s with status %s", saved["id"], status)
    return saved


def autosave_article_draft(article_id: str, snapshot: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Persist an editor snapshot as a draft"""
    fields = {k: v for k, v in snapshot.items() if v is not None}
    if "title" in fields:
        fields["title"] = fields["title"].strip()
    if "content" in fields:
        fields = derive_article_fields(fields)
    fields["status"] = "draft"
    saved = article_service.update(article_id, fields)
    if saved is None:
        logger.warning("Auto-save target article %s no longer exists", article_id)
    return saved


def publish_due_articles(now: Optional[datetime] = None) -> int:
    now = now or database.utcnow()
    result = database.db[ARTICLES].update_many(
        {"status": "scheduled", "scheduled_at": {"$lte": now}},
        {"$set": {"status": "published", "published_at": now, "updated_at": now}},
    )
    if result.modified_count:
        logger.info("Published %d scheduled articles", result.modified_count)
    return result.modified_count


# View tracking

def track_article_view(article_id: str, user_id: str) -> bool:
    """Count a view once per user; returns True when the counter moved"""
    result = database.db[ARTICLES].update_one(
        {"_id": database.to_object_id(article_id), "user_views": {"$ne": user_id}},
        {"$push": {"user_views": user_id}, "$inc": {"views": 1}, "$set": {"updated_at": database.utcnow()}},
    )
    return result.modified_count > 0


def reset_all_article_views() -> int:
    result = database.db[ARTICLES].update_many({}, {"$set": {"views": 0, "user_views": []}})
    logger.info("Reset views on %d articles", result.matched_count)
    return result.matched_count


# Dashboard

def get_content_stats() -> Dict[str, Any]:
    counts = {}
    for name, service in SERVICES.items():
        counts[name] = {
            "total": service.collection.count_documents({}),
            "published": service.collection.count_documents({"status": "published"}),
            "draft": service.collection.count_documents({"status": "draft"}),
        }
    return {
        "total": {
            "articles": counts["article"]["total"],
            "videos": counts["video"]["total"],
            "faqs": counts["faq"]["total"],
            "feedback": database.db[FEEDBACK].count_documents({}),
        },
        "published": {
            "articles": counts["article"]["published"],
            "videos": counts["video"]["published"],
            "faqs": counts["faq"]["published"],
        },
        "draft": {
            "articles": counts["article"]["draft"],
            "videos": counts["video"]["draft"],
            "faqs": counts["faq"]["draft"],
        },
        "unread_feedback": database.db[FEEDBACK].count_documents({"status": "new"}),
    }


def get_trending_content(limit: int = 10) -> List[Dict[str, Any]]:
    items = []
    for content_type, service in SERVICES.items():
        for doc in service.get_published():
            items.append({
                "id": doc["id"],
                "type": content_type,
                "title": doc.get(service.title_field) or "Untitled",
                "category": doc.get("category") or "General",
                "views": doc.get("views", 0),
            })
    items.sort(key=lambda x: x["views"], reverse=True)
    return items[:max(0, limit)]
