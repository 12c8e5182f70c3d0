"""
Standardized exception hierarchy for studyquest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class StudyQuestError(Exception):
    """
    Base exception for all studyquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise StudyQuestError(
            message="Failed to save study session",
            user_id="b7e1c2",
            operation="append_event",
            context={"subject": "Física"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(StudyQuestError):
    """
    Raised when input to the engine fails validation

    Raised before any store call is made, so it never leaves side effects.

    Example:
        raise ValidationError(
            message="Duration must be a positive number of minutes",
            field="duration_minutes",
            value=0,
            user_id="b7e1c2"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(StudyQuestError):
    """
    Base class for store read/write failures
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("user_message", "We couldn't reach your saved data. Please try again.")
        super().__init__(message=message, **kwargs)


class StoreConnectionError(PersistenceError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(PersistenceError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        context = kwargs.pop("context", None) or {}
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={**context, "query": query},
            **kwargs
        )


class RecordNotFoundError(PersistenceError):
    """Requested record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class SyncPendingError(PersistenceError):
    """
    A step after the event append failed

    The activity itself is committed; streak, level or achievements may be
    stale until the next action recomputes them.
    """

    def __init__(
        self,
        message: str,
        event: Optional[Any] = None,
        stage: Optional[str] = None,
        **kwargs
    ):
        self.event = event
        self.stage = stage
        super().__init__(
            message=message,
            user_message="Your session was saved. Progress will sync shortly.",
            context={"stage": stage, "event_id": str(getattr(event, "id", "")) or None},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(StudyQuestError):
    """
    Base class for external API failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'an external service'}. Please try again later."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class OpenAIAPIError(ExternalAPIError):
    """OpenAI API error (insights, quotes)"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            service="OpenAI",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(StudyQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> StudyQuestError:
    """
    Wrap external exceptions (psycopg, httpx, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate StudyQuestError subclass

    Example:
        try:
            await cur.execute(query, params)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="append_event", user_id=user_id) from e
    """
    import psycopg
    import httpx

    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return StoreConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # HTTP errors
    elif isinstance(error, httpx.TimeoutException):
        return ExternalAPIError(
            message=f"API request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return ExternalAPIError(
            message=f"API returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return StudyQuestError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
