"""
Database Schemas

MongoDB collection schemas for the help center, defined as Pydantic models.
Stored models omit created_at/updated_at; database.create_document stamps
them on insert. Request models (suffix Create/Update/...) describe API
payloads and never reach the database directly.

Collections:
- Article -> "articles"
- Video -> "videos"
- FAQ -> "faqs"
- Comment -> "comments"
- ContentFeedback -> "contentFeedback"
- Feedback -> "feedback"
- SupportTicket -> "supportTickets"
- Notification -> "notifications"
- UserActivity -> "user_activities"
- ActivityProfile -> "user_profiles" (keyed by uid)
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

ContentType = Literal["article", "video", "faq"]
ArticleStatus = Literal["draft", "published", "scheduled"]
PublishStatus = Literal["draft", "published"]
FeedbackStatus = Literal["new", "read", "responded"]
TicketCategory = Literal["technical", "billing", "account", "feature-request", "bug-report", "other"]
TicketPriority = Literal["low", "medium", "high", "urgent"]
TicketStatus = Literal["open", "in-progress", "resolved", "closed"]
ActivityAction = Literal["view", "like", "bookmark", "share", "complete", "rate"]
SessionAction = Literal["session_start", "session_end"]
LearningStyle = Literal["visual", "text", "mixed"]
ContentLength = Literal["short", "medium", "long"]
NotificationType = Literal["admin_reply", "mention", "comment_like", "system"]


# Stored documents

class Article(BaseModel):
    """
    Help-center articles
    Collection name: "articles"
    """
    title: str = Field(..., description="Article title")
    content: str = Field(..., description="HTML body")
    excerpt: str = ""
    category: str = "General"
    author: str = "Admin"
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    status: ArticleStatus = "draft"
    published_at: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None
    read_time: str = "1 min read"
    views: int = Field(0, ge=0)
    user_views: List[str] = Field(default_factory=list, description="User ids counted in views")


class Video(BaseModel):
    """
    Video tutorials hosted on the media CDN
    Collection name: "videos"
    """
    title: str
    description: str = ""
    url: str = Field(..., description="Video URL")
    thumbnail: Optional[str] = None
    category: str = "General"
    duration: Optional[str] = Field(None, description="Display duration, e.g. 4:32")
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    status: PublishStatus = "draft"
    published_at: Optional[datetime] = None
    views: int = Field(0, ge=0)


class FAQ(BaseModel):
    """
    Frequently asked questions
    Collection name: "faqs"
    """
    question: str
    answer: str
    category: str = "General"
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    status: PublishStatus = "draft"
    published_at: Optional[datetime] = None
    views: int = Field(0, ge=0)


class Comment(BaseModel):
    """
    Comments on articles, videos and FAQs; replies point at a root comment
    Collection name: "comments"
    """
    content_type: ContentType
    content_id: str
    user_id: str
    user_name: str = ""
    user_email: Optional[str] = None
    user_avatar: Optional[str] = None
    message: str
    parent_id: Optional[str] = None
    mentions: List[str] = Field(default_factory=list)
    likes: int = Field(0, ge=0)
    liked_by: List[str] = Field(default_factory=list)
    is_edited: bool = False
    is_deleted: bool = False


class ContentFeedback(BaseModel):
    """
    Helpful votes and ratings, one per user per content item
    Collection name: "contentFeedback"
    """
    content_type: ContentType
    content_id: str
    user_id: str
    helpful: bool
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None


class Feedback(BaseModel):
    """
    General feedback sent through the contact form
    Collection name: "feedback"
    """
    name: str
    email: str
    subject: str
    message: str
    category: Optional[str] = None
    status: FeedbackStatus = "new"


class TicketResponse(BaseModel):
    """Embedded in SupportTicket.responses"""
    id: str
    author_id: str
    author_name: str
    author_type: Literal["user", "admin"]
    message: str
    created_at: datetime


class SupportTicket(BaseModel):
    """
    Support tickets opened by users
    Collection name: "supportTickets"
    """
    user_id: str
    user_name: str
    user_email: str
    subject: str
    description: str
    category: TicketCategory = "other"
    priority: TicketPriority = "medium"
    status: TicketStatus = "open"
    attachments: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    resolved_at: Optional[datetime] = None
    responses: List[TicketResponse] = Field(default_factory=list)


class Notification(BaseModel):
    """
    Per-user notifications
    Collection name: "notifications"
    """
    user_id: str = Field(..., description="Recipient")
    type: NotificationType
    title: str
    message: str
    is_read: bool = False
    related_comment_id: Optional[str] = None
    related_content_id: Optional[str] = None
    related_content_type: Optional[ContentType] = None
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None


class UserActivity(BaseModel):
    """
    One tracked reader action; session markers carry no content
    Collection name: "user_activities"
    """
    user_id: str
    action: Union[ActivityAction, SessionAction]
    content_type: Optional[ContentType] = None
    content_id: Optional[str] = None
    session_id: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0, description="Seconds watched or read")
    rating: Optional[int] = Field(None, ge=1, le=5)
    helpful: Optional[bool] = None


class LearningPreferences(BaseModel):
    preferred_content_length: ContentLength = "medium"
    preferred_topics: List[str] = Field(default_factory=list)
    learning_style: LearningStyle = "mixed"


# Request models

class ArticleSave(BaseModel):
    title: str = Field("", max_length=300)
    content: str = ""
    excerpt: Optional[str] = Field(None, max_length=500)
    category: str = "General"
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    publish: bool = False
    scheduled_at: Optional[datetime] = Field(None, description="Publish later instead of now")


class ArticleDraftChange(BaseModel):
    """Partial editor state sent on every keystroke batch"""
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None


class AutoSaveToggle(BaseModel):
    enabled: bool


class VideoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field("", max_length=5000)
    url: str = Field(min_length=1)
    thumbnail: Optional[str] = None
    category: str = "General"
    duration: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    status: PublishStatus = "draft"


class VideoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)
    url: Optional[str] = None
    thumbnail: Optional[str] = None
    category: Optional[str] = None
    duration: Optional[str] = None
    tags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    author: Optional[str] = None
    status: Optional[PublishStatus] = None


class FAQCreate(BaseModel):
    question: str = Field(min_length=1, max_length=500)
    answer: str = Field(min_length=1)
    category: str = "General"
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    status: PublishStatus = "draft"


class FAQUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1, max_length=500)
    answer: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    author: Optional[str] = None
    status: Optional[PublishStatus] = None


class CommentCreate(BaseModel):
    content_type: ContentType
    content_id: str
    user_name: str = Field("", max_length=100)
    user_email: Optional[str] = None
    user_avatar: Optional[str] = None
    message: str = Field(min_length=1, max_length=2000)
    parent_id: Optional[str] = None


class CommentEdit(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class ContentFeedbackSubmit(BaseModel):
    content_type: ContentType
    content_id: str
    helpful: bool
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class FeedbackCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=200)
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
    category: Optional[str] = None


class FeedbackStatusUpdate(BaseModel):
    status: FeedbackStatus


class TicketCreate(BaseModel):
    user_name: str = Field(min_length=1, max_length=100)
    user_email: str = Field(min_length=3, max_length=200)
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    category: TicketCategory = "other"
    priority: TicketPriority = "medium"
    attachments: List[str] = Field(default_factory=list)


class TicketUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    assigned_to: Optional[str] = None


class TicketResponseCreate(BaseModel):
    author_name: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=1, max_length=5000)


class NotificationCreate(BaseModel):
    user_id: str
    type: NotificationType = "system"
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=2000)
    related_content_id: Optional[str] = None
    related_content_type: Optional[ContentType] = None


class UserProfile(BaseModel):
    display_name: str = Field("", max_length=100)
    email: str = Field("", max_length=200)


class ActivityCreate(BaseModel):
    content_type: ContentType
    content_id: str = Field(min_length=1)
    action: ActivityAction
    session_id: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0)
    rating: Optional[int] = Field(None, ge=1, le=5)
    helpful: Optional[bool] = None


class SessionEvent(BaseModel):
    session_id: str = Field(min_length=1, max_length=100)
    duration: Optional[float] = Field(None, ge=0, description="Total session length in seconds")
