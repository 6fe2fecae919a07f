# Re-export all models for convenient imports
from app.models.user import User, UserRole, Experience, Follow
from app.models.post import Post, PostLike, Comment, SavedPost
from app.models.connection import Connection, ConnectionStatus
from app.models.job import (
    Job, JobType, JobLocationType, SavedJob, JobApplication, ApplicationStatus,
    JobAlert, AlertFrequency,
)
from app.models.event import Event, EventRegistration
from app.models.article import Article
from app.models.pitch import Pitch, PitchStatus, PitchUpvote
from app.models.message import Conversation, ConversationParticipant, Message, MessageReadStatus
from app.models.notification import Notification, NotificationType
from app.models.site_settings import SiteSettings
from app.models.audit_log import AuditLog

__all__ = [
    # Users
    "User",
    "UserRole",
    "Experience",
    "Follow",
    # Feed
    "Post",
    "PostLike",
    "Comment",
    "SavedPost",
    # Network
    "Connection",
    "ConnectionStatus",
    # Jobs
    "Job",
    "JobType",
    "JobLocationType",
    "SavedJob",
    "JobApplication",
    "ApplicationStatus",
    "JobAlert",
    "AlertFrequency",
    # Events & resources
    "Event",
    "EventRegistration",
    "Article",
    # Pitch room
    "Pitch",
    "PitchStatus",
    "PitchUpvote",
    # Messaging
    "Conversation",
    "ConversationParticipant",
    "Message",
    "MessageReadStatus",
    "Notification",
    "NotificationType",
    # Admin
    "SiteSettings",
    "AuditLog",
]
