"""
Reader activity tracking and personalised recommendations.

Every tracked action is appended to "user_activities" and folded into the
reader's profile in "user_profiles": view and time counters, a rolling list
of the last 100 items seen, and up to ten interest categories. Profile
updates are single-document atomic operators, so concurrent tracking calls
never overwrite each other.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

import database
import search
from content import get_service
from database import USER_ACTIVITIES, USER_PROFILES
from logger import get_logger
from schemas import LearningPreferences, UserActivity

logger = get_logger("activity")

MAX_VIEWED_CONTENT = 100
MAX_INTERESTS = 10
RECOMMENDATION_INTERESTS = 3
PER_INTEREST = {"article": 3, "video": 2, "faq": 2}


def _default_profile(user_id: str, now: datetime) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "interests": [],
        "viewed_content": [],
        "preferences": LearningPreferences().model_dump(),
        "stats": {
            "total_views": 0,
            "total_time_spent": 0,
            "completed": 0,
            "rating_sum": 0,
            "total_ratings": 0,
            "last_activity": now,
        },
        "created_at": now,
    }


def _ensure_profile(user_id: str):
    now = database.utcnow()
    database.db[USER_PROFILES].update_one(
        {"_id": user_id},
        {"$setOnInsert": _default_profile(user_id, now)},
        upsert=True,
    )


def _present(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Add the derived averages to a stored profile"""
    profile = database.serialize_doc(profile)
    stats = profile["stats"]
    views = stats.get("total_views", 0)
    ratings = stats.get("total_ratings", 0)
    stats["average_rating"] = round(stats.get("rating_sum", 0) / ratings, 1) if ratings else 0
    stats["completion_rate"] = round(100 * stats.get("completed", 0) / views, 1) if views else 0
    return profile


def get_user_profile(user_id: str) -> Dict[str, Any]:
    """The reader's activity profile, created with defaults on first access"""
    _ensure_profile(user_id)
    return _present(database.db[USER_PROFILES].find_one({"_id": user_id}))


def update_preferences(user_id: str, preferences: LearningPreferences) -> Dict[str, Any]:
    _ensure_profile(user_id)
    database.db[USER_PROFILES].update_one(
        {"_id": user_id},
        {"$set": {"preferences": preferences.model_dump(), "updated_at": database.utcnow()}},
    )
    return get_user_profile(user_id)


def _content_category(content_type: str, content_id: str) -> str:
    doc = search.get_content_by_id(content_type, content_id)
    return (doc or {}).get("category") or "General"


def _fold_into_profile(activity: Dict[str, Any], now: datetime):
    user_id = activity["user_id"]
    profiles = database.db[USER_PROFILES]
    _ensure_profile(user_id)

    inc = {}
    if activity["action"] == "view":
        inc["stats.total_views"] = 1
    if activity["action"] == "complete" and activity.get("content_id"):
        inc["stats.completed"] = 1
    if activity.get("duration"):
        inc["stats.total_time_spent"] = activity["duration"]
    if activity.get("rating"):
        inc["stats.rating_sum"] = activity["rating"]
        inc["stats.total_ratings"] = 1
    changes = {"$set": {"stats.last_activity": now, "updated_at": now}}
    if inc:
        changes["$inc"] = inc
    profiles.update_one({"_id": user_id}, changes)

    content_id = activity.get("content_id")
    if not content_id:
        return

    seen = {"timestamp": now}
    if activity.get("rating"):
        seen["rating"] = activity["rating"]
    refreshed = profiles.update_one(
        {"_id": user_id, "viewed_content.content_id": content_id},
        {"$set": {f"viewed_content.$.{k}": v for k, v in seen.items()}},
    )
    if refreshed.matched_count:
        return

    category = _content_category(activity["content_type"], content_id)
    profiles.update_one(
        {"_id": user_id, "viewed_content.content_id": {"$ne": content_id}},
        {"$push": {"viewed_content": {
            "$each": [{
                "content_id": content_id,
                "content_type": activity["content_type"],
                "category": category,
                "timestamp": now,
                "rating": activity.get("rating"),
            }],
            "$slice": -MAX_VIEWED_CONTENT,
        }}},
    )
    profiles.update_one(
        {"_id": user_id, "interests": {"$ne": category}},
        {"$push": {"interests": {"$each": [category], "$slice": -MAX_INTERESTS}}},
    )


def track_activity(
    user_id: str,
    content_type: Optional[str],
    content_id: Optional[str],
    action: str,
    session_id: Optional[str] = None,
    duration: Optional[float] = None,
    rating: Optional[int] = None,
    helpful: Optional[bool] = None,
) -> Dict[str, Any]:
    """Record an action and update the reader's profile; returns the stored activity"""
    activity = UserActivity(
        user_id=user_id,
        content_type=content_type,
        content_id=content_id,
        action=action,
        session_id=session_id,
        duration=duration,
        rating=rating,
        helpful=helpful,
    )
    saved = database.create_document(USER_ACTIVITIES, activity)
    _fold_into_profile(saved, saved["created_at"])
    logger.debug("Tracked %s on %s/%s for %s", action, content_type, content_id, user_id)
    return saved


def start_session(user_id: str, session_id: str) -> Dict[str, Any]:
    return track_activity(user_id, None, None, "session_start", session_id=session_id)


def end_session(user_id: str, session_id: str, duration: Optional[float] = None) -> Dict[str, Any]:
    return track_activity(user_id, None, None, "session_end", session_id=session_id, duration=duration)


def get_recent_activity(user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    return database.get_documents(
        USER_ACTIVITIES,
        {"user_id": user_id},
        limit=limit,
        sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
    )


def relevance_score(
    item: Dict[str, Any],
    profile: Dict[str, Any],
    current_category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Rank a recommendation candidate for a reader.

    Learning style match is worth 10 (5 for "mixed"), an interest category 15,
    the category being read right now 8, and content newer than ten days up
    to 10. Popularity adds up to 5, growing with the log of the view count.
    """
    now = now or database.utcnow()
    style = profile.get("preferences", {}).get("learning_style", "mixed")
    content_type = item["type"]
    category = item.get("category") or "General"

    score = 0.0
    if style == "visual" and content_type == "video":
        score += 10
    elif style == "text" and content_type == "article":
        score += 10
    elif style == "mixed":
        score += 5

    if category in profile.get("interests", []):
        score += 15
    score += min(5.0, math.log1p(item.get("views") or 0))
    if current_category and category == current_category:
        score += 8

    created_at = item.get("created_at")
    if created_at:
        days = (now - database.to_naive_utc(created_at)).days
        score += max(0, 10 - days)
    return score


def get_recommendations(
    user_id: str,
    current_category: Optional[str] = None,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Unseen published content from the reader's first three interests:
    up to three articles, two videos and two FAQs per category, ranked by
    relevance_score. Readers without interests get nothing.
    """
    profile = get_user_profile(user_id)
    interests = profile["interests"][:RECOMMENDATION_INTERESTS]
    if not interests:
        return []

    viewed = {v["content_id"] for v in profile["viewed_content"]}
    published = {t: get_service(t).get_published() for t in PER_INTEREST}

    candidates: Dict[str, Dict[str, Any]] = {}
    for category in interests:
        for content_type, count in PER_INTEREST.items():
            in_category = [d for d in published[content_type] if (d.get("category") or "General") == category]
            for doc in in_category[:count]:
                if doc["id"] not in viewed and doc["id"] not in candidates:
                    candidates[doc["id"]] = {**doc, "type": content_type}

    ranked = sorted(
        candidates.values(),
        key=lambda item: relevance_score(item, profile, current_category, now),
        reverse=True,
    )
    results = []
    for item in ranked[:max(0, limit)]:
        result = search.to_search_result(item, item["type"])
        result["score"] = round(relevance_score(item, profile, current_category, now), 2)
        results.append(result)
    return results
