"""
Substring search over published help-center content.

Every query loads the published articles, videos and FAQs and scans them with
a case-insensitive substring match over a fixed field list per type. There is
no index; this is sized for a help center with at most a few thousand items.
"""

from typing import Any, Dict, Iterable, List, Optional

import config
from content import SERVICES
from content_tools import strip_html
from logger import get_logger

logger = get_logger("search")

SNIPPET_LENGTH = 150

SEARCH_FIELDS = {
    "article": ("title", "excerpt", "content", "category", "author", "tags", "keywords"),
    "video": ("title", "description", "category", "tags"),
    "faq": ("question", "answer", "category", "tags"),
}

URL_PREFIXES = {
    "article": "/article",
    "video": "/video",
    "faq": "/faq",
}

DEFAULT_AUTHORS = {
    "article": "Unknown",
    "video": "Admin",
    "faq": "System",
}


def _field_matches(value: Any, term: str) -> bool:
    if not value:
        return False
    if isinstance(value, str):
        return term in value.lower()
    if isinstance(value, (list, tuple)):
        return any(isinstance(v, str) and term in v.lower() for v in value)
    return False


def matches(doc: Dict[str, Any], fields: Iterable[str], term: str) -> bool:
    return any(_field_matches(doc.get(field), term) for field in fields)


def _snippet(text: Optional[str]) -> str:
    clean = strip_html(text or "")
    if len(clean) > SNIPPET_LENGTH:
        return clean[:SNIPPET_LENGTH] + "..."
    return clean


def to_search_result(doc: Dict[str, Any], content_type: str) -> Dict[str, Any]:
    if content_type == "article":
        title = doc.get("title") or "Untitled Article"
        excerpt = doc.get("excerpt") or _snippet(doc.get("content")) or "No description available"
    elif content_type == "video":
        title = doc.get("title") or "Untitled Video"
        excerpt = doc.get("description") or "No description available"
    else:
        title = doc.get("question") or "Untitled FAQ"
        excerpt = _snippet(doc.get("answer")) or "No answer available"
    return {
        "id": doc["id"],
        "title": title,
        "excerpt": excerpt,
        "category": doc.get("category") or "General",
        "type": content_type,
        "author": doc.get("author") or DEFAULT_AUTHORS[content_type],
        "url": f"{URL_PREFIXES[content_type]}/{doc['id']}",
        "thumbnail": doc.get("thumbnail"),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at"),
    }


def _normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def _search_type(content_type: str, term: str) -> List[Dict[str, Any]]:
    docs = SERVICES[content_type].get_published()
    found = [to_search_result(d, content_type) for d in docs if matches(d, SEARCH_FIELDS[content_type], term)]
    logger.debug("Search %r: %d/%d %s documents matched", term, len(found), len(docs), content_type)
    return found


def rank_key(result: Dict[str, Any], term: str):
    """Exact title match first, then title contains the term, then A-Z"""
    title = result["title"].lower()
    return (title != term, term not in title, title)


def search_content(query: Optional[str], max_results: Optional[int] = None) -> List[Dict[str, Any]]:
    term = _normalize_query(query)
    if not term:
        return []
    max_results = config.SEARCH_MAX_RESULTS if max_results is None else max(0, max_results)

    results = []
    for content_type in ("article", "video", "faq"):
        results.extend(_search_type(content_type, term))

    results.sort(key=lambda r: rank_key(r, term))
    logger.info("Search %r returned %d results", term, len(results))
    return results[:max_results]


def search_all_content(query: Optional[str]) -> Dict[str, Any]:
    term = _normalize_query(query)
    if not term:
        return {"articles": [], "videos": [], "faqs": [], "total": 0}

    grouped = {
        "articles": _search_type("article", term),
        "videos": _search_type("video", term),
        "faqs": _search_type("faq", term),
    }
    grouped["total"] = sum(len(v) for v in grouped.values())
    return grouped


def get_content_by_id(content_type: str, content_id: str) -> Optional[Dict[str, Any]]:
    """Published document of the given type, or None"""
    service = SERVICES.get(content_type)
    if service is None:
        logger.warning("Unknown content type: %s", content_type)
        return None
    doc = service.get_by_id(content_id)
    if doc and doc.get("status") == "published":
        return {**doc, "type": content_type}
    return None


def get_content_view_data(content_type: str, content_id: str) -> Optional[Dict[str, Any]]:
    doc = get_content_by_id(content_type, content_id)
    if doc is None:
        return None
    return {
        "id": doc["id"],
        "type": content_type,
        "title": doc.get("title") or doc.get("question") or "Untitled",
        "excerpt": doc.get("excerpt") or doc.get("description") or doc.get("answer") or "",
        "content": doc.get("content") or doc.get("description") or doc.get("answer") or "",
        "category": doc.get("category") or "General",
        "author": doc.get("author") or "Unknown",
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at"),
        "status": doc.get("status"),
        "tags": doc.get("tags") or [],
    }
