"""
Standardized exception hierarchy for the progression engine
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import psycopg
from psycopg import errors as pg_errors

logger = logging.getLogger(__name__)


class ProgressionError(Exception):
    """
    Base exception for all progression engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise ProgressionError(
            message="Failed to unlock achievement",
            user_id="123456",
            operation="unlock",
            context={"achievement_id": "job_hunter"}
        )
    """

    log_level = logging.ERROR

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
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

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
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(ProgressionError):
    """
    Raised when caller input fails validation

    Examples:
    - Negative XP passed to the level calculator
    - Empty user id
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
# Configuration / Catalog Errors
# ==========================================

class ConfigurationError(ProgressionError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        kwargs.setdefault("context", {"config_key": config_key})
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            **kwargs
        )


class CatalogError(ConfigurationError):
    """Achievement catalog failed validation (duplicate ids, bad rewards)"""

    def __init__(self, message: str, achievement_id: Optional[str] = None, **kwargs):
        self.achievement_id = achievement_id
        super().__init__(
            message=message,
            config_key="catalog",
            context={"achievement_id": achievement_id},
            **kwargs
        )


# ==========================================
# Engine Errors
# ==========================================

class UnknownAchievement(ProgressionError):
    """Catalog lookup miss. Fails the one request, never the system."""

    def __init__(self, achievement_id: str, **kwargs):
        self.achievement_id = achievement_id
        super().__init__(
            message=f"Unknown achievement: {achievement_id}",
            user_message="Achievement not found.",
            context={"achievement_id": achievement_id},
            **kwargs
        )


class AggregateDriftDetected(ProgressionError):
    """Cached progression stats disagree with the unlock ledger"""

    def __init__(self, report, **kwargs):
        self.report = report
        super().__init__(
            message=(
                f"Progression cache drift for user {report.user_id}: "
                f"{', '.join(report.mismatched_fields)}"
            ),
            user_id=report.user_id,
            operation=kwargs.pop("operation", "verify"),
            context={
                "cached": report.cached,
                "expected": report.expected,
                "fields": report.mismatched_fields,
            },
            user_message="Your progress is being recalculated.",
            **kwargs
        )


class ActivitySourceError(ProgressionError):
    """Application store collaborator could not provide activity data"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="We couldn't load your application activity. Please try again later.",
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(ProgressionError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        kwargs.setdefault("context", {"query": query})
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your progress. Please try again.",
            **kwargs
        )


class TransactionConflict(DatabaseError):
    """Concurrent writers collided on one user's rows. Safe to retry."""

    # Expected under contention; retry_with_backoff logs exhaustion at ERROR
    log_level = logging.WARNING

    def __init__(self, message: str = "Concurrent update conflict", **kwargs):
        super().__init__(
            message=message,
            user_message="Your progress was updated elsewhere. Please try again.",
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

_CONFLICT_ERRORS = (
    pg_errors.SerializationFailure,
    pg_errors.DeadlockDetected,
    pg_errors.LockNotAvailable,
)


def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> ProgressionError:
    """
    Wrap external exceptions (psycopg) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate ProgressionError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="insert_unlock", user_id="123")
    """
    if isinstance(error, _CONFLICT_ERRORS):
        return TransactionConflict(
            message=f"Transaction conflict: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.OperationalError):
        return ConnectionError(
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

    # Generic fallback
    else:
        return ProgressionError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
