from contextlib import asynccontextmanager
from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import activity
import auth
import comments
import config
import content
import database
import feedback
import media
import notifications
import search
import tickets
import users
from auth import Caller
from autosave import AutoSaveRegistry
from content import article_service, faq_service, video_service
from errors import BrainHintsError
from logger import get_logger, setup_logger
from schemas import (
    FAQ,
    ActivityCreate,
    ArticleDraftChange,
    ArticleSave,
    AutoSaveToggle,
    CommentCreate,
    CommentEdit,
    ContentFeedbackSubmit,
    ContentType,
    FAQCreate,
    FAQUpdate,
    FeedbackCreate,
    FeedbackStatusUpdate,
    LearningPreferences,
    Notification,
    NotificationCreate,
    SessionEvent,
    TicketCreate,
    TicketResponseCreate,
    TicketUpdate,
    UserProfile,
    Video,
    VideoCreate,
    VideoUpdate,
)

logger = get_logger("api")

autosaves = AutoSaveRegistry(lambda article_id: partial(content.autosave_article_draft, article_id))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logger()
    try:
        database.ensure_indexes()
    except Exception:
        logger.warning("Could not create indexes; continuing without them", exc_info=True)
    logger.info("BrainHints API started")
    try:
        yield
    finally:
        autosaves.cancel_all()


app = FastAPI(title="BrainHints API", lifespan=lifespan)

# Configure CORS. Note: allow_credentials=False when using wildcard origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BrainHintsError)
async def brainhints_error_handler(request: Request, exc: BrainHintsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Caller identity

def current_caller(authorization: Optional[str] = Header(None)) -> Optional[Caller]:
    token = auth.bearer_token(authorization)
    if token is None:
        return None
    return auth.verify_token(token)


def require_user(caller: Optional[Caller] = Depends(current_caller)) -> Caller:
    if caller is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return caller


def require_user_id(caller: Caller = Depends(require_user)) -> str:
    return caller.uid


def require_admin(caller: Caller = Depends(require_user)) -> Caller:
    if not caller.admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return caller


def _or_404(doc, what: str):
    if doc is None:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return doc


def _by_category(docs, category: Optional[str]):
    if not category:
        return docs
    return [d for d in docs if (d.get("category") or "General") == category]


# Health
@app.get("/")
def read_root():
    return {"message": "BrainHints API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        db = database.db
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if config.DATABASE_URL else "❌ Not Set"
            response["database_name"] = db.name if hasattr(db, "name") else "❌ Unknown"
            response["connection_status"] = "Connected"
            response["collections"] = db.list_collection_names()[:10]
        else:
            response["database"] = "⚠️ Available but not initialized"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# Published content
@app.get("/articles")
def list_articles(category: Optional[str] = None):
    return _by_category(article_service.get_published(), category)


@app.get("/videos")
def list_videos(category: Optional[str] = None):
    return _by_category(video_service.get_published(), category)


@app.get("/faqs")
def list_faqs(category: Optional[str] = None):
    return _by_category(faq_service.get_published(), category)


@app.get("/content/{content_type}/{content_id}")
def get_content(content_type: ContentType, content_id: str):
    return _or_404(search.get_content_view_data(content_type, content_id), "Content")


@app.post("/content/{content_type}/{content_id}/view")
def record_view(content_type: ContentType, content_id: str, caller: Optional[Caller] = Depends(current_caller)):
    _or_404(search.get_content_by_id(content_type, content_id), "Content")
    if content_type == "article":
        if caller is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        return {"counted": content.track_article_view(content_id, caller.uid)}
    content.get_service(content_type).increment_views(content_id)
    return {"counted": True}


@app.get("/trending")
def trending(limit: int = Query(10, ge=1, le=100)):
    return content.get_trending_content(limit)


@app.get("/search")
def run_search(q: str = "", limit: Optional[int] = Query(None, ge=1, le=100)):
    return search.search_content(q, limit)


@app.get("/search/all")
def run_grouped_search(q: str = ""):
    return search.search_all_content(q)


# Users
@app.put("/users/me")
def update_profile(payload: UserProfile, caller: Caller = Depends(require_user)):
    user = users.upsert_user(caller.uid, payload.display_name, payload.email)
    return {**user, "admin": caller.admin}


@app.get("/users/me")
def get_profile(caller: Caller = Depends(require_user)):
    user = _or_404(users.get_user(caller.uid), "User")
    return {**user, "admin": caller.admin}


# Reader activity
@app.post("/activity")
def track_activity(payload: ActivityCreate, user_id: str = Depends(require_user_id)):
    return activity.track_activity(user_id, **payload.model_dump())


@app.get("/activity/recent")
def recent_activity(limit: int = Query(20, ge=1, le=100), user_id: str = Depends(require_user_id)):
    return activity.get_recent_activity(user_id, limit)


@app.post("/activity/sessions/start")
def start_session(payload: SessionEvent, user_id: str = Depends(require_user_id)):
    return activity.start_session(user_id, payload.session_id)


@app.post("/activity/sessions/end")
def end_session(payload: SessionEvent, user_id: str = Depends(require_user_id)):
    return activity.end_session(user_id, payload.session_id, payload.duration)


@app.get("/users/me/activity-profile")
def activity_profile(user_id: str = Depends(require_user_id)):
    return activity.get_user_profile(user_id)


@app.put("/users/me/preferences")
def update_preferences(payload: LearningPreferences, user_id: str = Depends(require_user_id)):
    return activity.update_preferences(user_id, payload)


@app.get("/recommendations")
def recommendations(
    current_category: Optional[str] = None,
    limit: int = Query(10, ge=1, le=50),
    user_id: str = Depends(require_user_id),
):
    return activity.get_recommendations(user_id, current_category, limit)


# Comments
@app.get("/comments")
def list_comments(content_type: ContentType, content_id: str):
    return comments.get_comments(content_type, content_id)


@app.post("/comments")
def add_comment(payload: CommentCreate, caller: Caller = Depends(require_user)):
    return comments.create_comment(user_id=caller.uid, is_admin=caller.admin, **payload.model_dump())


@app.patch("/comments/{comment_id}")
def edit_comment(comment_id: str, payload: CommentEdit, caller: Caller = Depends(require_user)):
    return comments.edit_comment(comment_id, payload.message, actor_id=caller.uid, actor_is_admin=caller.admin)


@app.post("/comments/{comment_id}/like")
def like_comment(comment_id: str, user_id: str = Depends(require_user_id)):
    return comments.like_comment(comment_id, user_id)


@app.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, caller: Caller = Depends(require_user)):
    return comments.delete_comment(comment_id, actor_id=caller.uid, actor_is_admin=caller.admin)


# Feedback
@app.post("/feedback/content")
def submit_content_feedback(payload: ContentFeedbackSubmit, caller: Caller = Depends(require_user)):
    profile = users.get_user(caller.uid) or {}
    return feedback.upsert_content_feedback(
        user_id=caller.uid,
        user_name=profile.get("display_name") or caller.name or "",
        user_email=profile.get("email") or caller.email,
        **payload.model_dump(),
    )


@app.get("/feedback/content/summary")
def content_feedback_summary(content_type: ContentType, content_id: str):
    return feedback.get_feedback_summary(content_type, content_id)


@app.get("/feedback/content/mine")
def my_content_feedback(content_type: ContentType, content_id: str, user_id: str = Depends(require_user_id)):
    return feedback.get_user_feedback(content_type, content_id, user_id)


@app.post("/feedback")
def send_feedback(payload: FeedbackCreate):
    return feedback.create_feedback(payload)


# Support tickets
@app.post("/tickets")
def open_ticket(payload: TicketCreate, user_id: str = Depends(require_user_id)):
    return tickets.create_ticket(payload, user_id)


@app.get("/tickets")
def my_tickets(user_id: str = Depends(require_user_id)):
    return tickets.get_tickets_for_user(user_id)


def _visible_ticket(ticket_id: str, caller: Caller):
    ticket = _or_404(tickets.get_ticket(ticket_id), "Ticket")
    if ticket["user_id"] != caller.uid and not caller.admin:
        raise HTTPException(status_code=403, detail="Not your ticket")
    return ticket


@app.get("/tickets/{ticket_id}")
def get_ticket(ticket_id: str, caller: Caller = Depends(require_user)):
    return _visible_ticket(ticket_id, caller)


@app.post("/tickets/{ticket_id}/responses")
def respond_to_ticket(ticket_id: str, payload: TicketResponseCreate, caller: Caller = Depends(require_user)):
    _visible_ticket(ticket_id, caller)
    return tickets.add_response(
        ticket_id,
        author_id=caller.uid,
        author_name=payload.author_name,
        message=payload.message,
        is_admin=caller.admin,
    )


# Notifications
def _own_notification(notification_id: str, user_id: str):
    notification = _or_404(notifications.get_notification(notification_id), "Notification")
    if notification["user_id"] != user_id:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@app.get("/notifications")
def list_notifications(limit: int = Query(20, ge=1, le=100), user_id: str = Depends(require_user_id)):
    return notifications.get_user_notifications(user_id, limit)


@app.get("/notifications/unread-count")
def unread_notifications(user_id: str = Depends(require_user_id)):
    return {"count": notifications.get_unread_count(user_id)}


@app.post("/notifications/read-all")
def read_all_notifications(user_id: str = Depends(require_user_id)):
    return {"updated": notifications.mark_all_as_read(user_id)}


@app.post("/notifications/{notification_id}/read")
def read_notification(notification_id: str, user_id: str = Depends(require_user_id)):
    _own_notification(notification_id, user_id)
    return notifications.mark_as_read(notification_id)


@app.delete("/notifications/{notification_id}")
def delete_notification(notification_id: str, user_id: str = Depends(require_user_id)):
    _own_notification(notification_id, user_id)
    return {"deleted": notifications.delete_notification(notification_id)}


# Admin
admin = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@admin.get("/stats")
def admin_stats():
    return content.get_content_stats()


@admin.get("/articles")
def admin_list_articles(status: Optional[str] = None, limit: int = Query(50, ge=1, le=500)):
    if status:
        return article_service.get_by_status(status)
    return article_service.get_all(limit)


@admin.get("/articles/{article_id}")
def admin_get_article(article_id: str):
    return _or_404(article_service.get_by_id(article_id), "Article")


@admin.post("/articles")
def admin_create_article(payload: ArticleSave):
    return content.save_article(payload)


@admin.put("/articles/{article_id}")
def admin_update_article(article_id: str, payload: ArticleSave):
    autosaves.close(article_id)
    return _or_404(content.save_article(payload, article_id), "Article")


@admin.delete("/articles/{article_id}")
def admin_delete_article(article_id: str):
    autosaves.close(article_id)
    if not article_service.delete(article_id):
        raise HTTPException(status_code=404, detail="Article not found")
    return {"deleted": True}


@admin.post("/articles/{article_id}/autosave")
def admin_autosave_change(article_id: str, payload: ArticleDraftChange):
    _or_404(article_service.get_by_id(article_id), "Article")
    saver = autosaves.change(article_id, **payload.model_dump(exclude_none=True))
    return {"pending": saver.pending, "enabled": saver.enabled, "last_saved": saver.last_saved}


@admin.put("/articles/{article_id}/autosave")
def admin_autosave_toggle(article_id: str, payload: AutoSaveToggle):
    saver = autosaves.set_enabled(article_id, payload.enabled)
    return {"pending": saver.pending, "enabled": saver.enabled, "last_saved": saver.last_saved}


@admin.delete("/articles/{article_id}/autosave")
def admin_autosave_close(article_id: str):
    autosaves.close(article_id)
    return {"closed": True}


@admin.post("/articles/publish-scheduled")
def admin_publish_scheduled():
    return {"published": content.publish_due_articles()}


@admin.post("/articles/reset-views")
def admin_reset_views():
    return {"reset": content.reset_all_article_views()}


@admin.get("/videos")
def admin_list_videos(limit: int = Query(50, ge=1, le=500)):
    return video_service.get_all(limit)


@admin.post("/videos")
def admin_create_video(payload: VideoCreate):
    return video_service.create(Video(**payload.model_dump()).model_dump())


@admin.put("/videos/{video_id}")
def admin_update_video(video_id: str, payload: VideoUpdate):
    return _or_404(video_service.update(video_id, payload.model_dump(exclude_none=True)), "Video")


@admin.delete("/videos/{video_id}")
def admin_delete_video(video_id: str):
    if not video_service.delete(video_id):
        raise HTTPException(status_code=404, detail="Video not found")
    return {"deleted": True}


@admin.get("/faqs")
def admin_list_faqs(limit: int = Query(50, ge=1, le=500)):
    return faq_service.get_all(limit)


@admin.post("/faqs")
def admin_create_faq(payload: FAQCreate):
    return faq_service.create(FAQ(**payload.model_dump()).model_dump())


@admin.put("/faqs/{faq_id}")
def admin_update_faq(faq_id: str, payload: FAQUpdate):
    return _or_404(faq_service.update(faq_id, payload.model_dump(exclude_none=True)), "FAQ")


@admin.delete("/faqs/{faq_id}")
def admin_delete_faq(faq_id: str):
    if not faq_service.delete(faq_id):
        raise HTTPException(status_code=404, detail="FAQ not found")
    return {"deleted": True}


@admin.get("/comments")
def admin_list_comments():
    return comments.get_all_comments()


@admin.get("/content-feedback")
def admin_list_content_feedback():
    return feedback.get_all_content_feedback()


@admin.delete("/content-feedback/{feedback_id}")
def admin_delete_content_feedback(feedback_id: str):
    if not feedback.delete_content_feedback(feedback_id):
        raise HTTPException(status_code=404, detail="Feedback not found")
    return {"deleted": True}


@admin.get("/feedback")
def admin_list_feedback(status: Optional[str] = None):
    return feedback.list_feedback(status)


@admin.patch("/feedback/{feedback_id}")
def admin_update_feedback(feedback_id: str, payload: FeedbackStatusUpdate):
    return feedback.update_feedback_status(feedback_id, payload.status)


@admin.delete("/feedback/{feedback_id}")
def admin_delete_feedback(feedback_id: str):
    if not feedback.delete_feedback(feedback_id):
        raise HTTPException(status_code=404, detail="Feedback not found")
    return {"deleted": True}


@admin.get("/tickets")
def admin_list_tickets(status: Optional[str] = None, limit: int = Query(50, ge=1, le=500)):
    if status:
        return tickets.get_tickets_by_status(status)
    return tickets.list_tickets(limit)


@admin.patch("/tickets/{ticket_id}")
def admin_update_ticket(ticket_id: str, payload: TicketUpdate):
    return tickets.update_ticket(ticket_id, payload.model_dump(exclude_none=True))


@admin.delete("/tickets/{ticket_id}")
def admin_delete_ticket(ticket_id: str):
    if not tickets.delete_ticket(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return {"deleted": True}


@admin.post("/notifications")
def admin_send_notification(payload: NotificationCreate, caller: Caller = Depends(require_admin)):
    profile = users.get_user(caller.uid) or {}
    notification = Notification(
        admin_id=caller.uid,
        admin_name=caller.name or profile.get("display_name") or None,
        **payload.model_dump(),
    )
    return notifications.create_notification(notification)


@admin.post("/media")
def admin_upload_media(file: UploadFile = File(...), folder: Optional[str] = Form(None)):
    max_bytes = int(config.UPLOAD_MAX_SIZE_MB * 1024 * 1024)
    if file.size is not None and file.size > max_bytes:
        raise HTTPException(status_code=400, detail=f"File size must be less than {config.UPLOAD_MAX_SIZE_MB:g}MB")
    # One byte past the cap is enough to reject oversize bodies without a size header
    data = file.file.read(max_bytes + 1)
    valid, error = media.validate_file(len(data), file.content_type, max_size_mb=config.UPLOAD_MAX_SIZE_MB)
    if not valid:
        raise HTTPException(status_code=400, detail=error)
    result = media.upload_to_cloudinary(data, file.filename or "upload", folder=folder)
    return {**result, "file_type": media.get_file_type(result.get("resource_type"))}


app.include_router(admin)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
