"""
Custom Exceptions for Hindustan Founders Network
================================================

Services raise these instead of HTTPException so business rules stay
independent of the web layer. The exception handler registered in
app.main turns them into JSON responses using `status_code`.

Usage:
    from app.core.exceptions import JobNotFoundError

    if not job:
        raise JobNotFoundError(job_id)
"""

from typing import Optional, Any, Dict, List


class FoundersNetworkError(Exception):
    """Base exception for all Hindustan Founders Network errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(FoundersNetworkError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidCredentialsError(AuthenticationError):
    """Username/password pair did not match"""

    def __init__(self):
        super().__init__("Invalid username or password")
        self.code = "INVALID_CREDENTIALS"


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid or expired"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(FoundersNetworkError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class InactiveUserError(AuthorizationError):
    """Account has been deactivated"""

    def __init__(self):
        super().__init__("Account is inactive")
        self.code = "ACCOUNT_INACTIVE"


class SignupDisabledError(AuthorizationError):
    """New registrations are switched off in site settings"""

    def __init__(self):
        super().__init__("New registrations are currently disabled")
        self.code = "SIGNUP_DISABLED"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(FoundersNetworkError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class PostNotFoundError(ResourceNotFoundError):
    def __init__(self, post_id: str):
        super().__init__("Post", post_id)


class CommentNotFoundError(ResourceNotFoundError):
    def __init__(self, comment_id: str):
        super().__init__("Comment", comment_id)


class ExperienceNotFoundError(ResourceNotFoundError):
    def __init__(self, experience_id: str):
        super().__init__("Experience", experience_id)


class ConnectionNotFoundError(ResourceNotFoundError):
    def __init__(self, connection_id: str):
        super().__init__("Connection", connection_id)


class JobNotFoundError(ResourceNotFoundError):
    def __init__(self, job_id: str):
        super().__init__("Job", job_id)


class JobApplicationNotFoundError(ResourceNotFoundError):
    def __init__(self, application_id: str):
        super().__init__("Application", application_id)


class JobAlertNotFoundError(ResourceNotFoundError):
    def __init__(self, alert_id: str):
        super().__init__("Alert", alert_id)


class EventNotFoundError(ResourceNotFoundError):
    def __init__(self, event_id: str):
        super().__init__("Event", event_id)


class ArticleNotFoundError(ResourceNotFoundError):
    def __init__(self, article_id: str):
        super().__init__("Article", article_id)


class PitchNotFoundError(ResourceNotFoundError):
    def __init__(self, pitch_id: str):
        super().__init__("Pitch", pitch_id)


class ConversationNotFoundError(ResourceNotFoundError):
    def __init__(self, conversation_id: str):
        super().__init__("Conversation", conversation_id)


class MessageNotFoundError(ResourceNotFoundError):
    def __init__(self, message_id: str):
        super().__init__("Message", message_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(FoundersNetworkError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class WeakPasswordError(ValidationError):
    """Password does not meet the strength rules"""

    def __init__(self, message: str):
        super().__init__(message, field="password")
        self.code = "WEAK_PASSWORD"


class InvalidFileTypeError(ValidationError):
    """File type not allowed"""

    def __init__(self, file_type: str, allowed_types: List[str]):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}",
            field="file"
        )
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed_types": allowed_types}


class FileTooLargeError(FoundersNetworkError):
    """Uploaded file exceeds MAX_UPLOAD_SIZE"""

    status_code = 413

    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File too large. Maximum size is {max_size // 1024 // 1024}MB",
            code="FILE_TOO_LARGE",
            details={"size": size, "max_size": max_size}
        )


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(FoundersNetworkError):
    """Request conflicts with existing state"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code=code)


class DuplicateUserError(ConflictError):
    def __init__(self, field: str):
        super().__init__(f"{field.capitalize()} already exists", code="DUPLICATE_USER")
        self.details = {"field": field}


class DuplicateUsernameError(DuplicateUserError):
    def __init__(self):
        super().__init__("username")


class DuplicateEmailError(DuplicateUserError):
    def __init__(self):
        super().__init__("email")


class DuplicateConnectionError(ConflictError):
    def __init__(self):
        super().__init__("Connection request already exists", code="DUPLICATE_CONNECTION")


class AlreadyAppliedError(ConflictError):
    def __init__(self, job_id: str):
        super().__init__("You have already applied to this job", code="ALREADY_APPLIED")
        self.details = {"job_id": str(job_id)}


class EventFullError(ConflictError):
    def __init__(self, event_id: str):
        super().__init__("Event has reached its capacity", code="EVENT_FULL")
        self.details = {"event_id": str(event_id)}


# ============================================
# Availability Errors
# ============================================

class MaintenanceModeError(FoundersNetworkError):
    """Site is in maintenance mode"""

    status_code = 503

    def __init__(self):
        super().__init__(
            "The site is under maintenance. Please try again later.",
            code="MAINTENANCE_MODE"
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: FoundersNetworkError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "detail": error.message,
        "error": error.to_dict()
    }
