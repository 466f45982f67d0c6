"""
Standardized exception hierarchy for the gamification core
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class GymTrainerError(Exception):
    """
    Base exception for all gym-trainer errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging
    - HTTP status for the API layer

    Example:
        raise GymTrainerError(
            message="Failed to save points entry",
            user_id="user_123",
            operation="award_points",
            context={"activity": "meal_logging"}
        )
    """

    http_status: int = 500
    log_level: int = logging.ERROR

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
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause
            )
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

class ValidationError(GymTrainerError):
    """
    Raised when caller input fails validation

    Examples:
    - Zero or negative award amount
    - Unknown activity category

    Example:
        raise ValidationError(
            message="Points amount must be a positive integer",
            field="amount",
            value=-5,
            user_id="user_123"
        )
    """

    http_status = 422
    log_level = logging.WARNING

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
# Database Errors
# ==========================================

class DatabaseError(GymTrainerError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    http_status = 503

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
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={"query": query},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested database record does not exist"""

    http_status = 404
    log_level = logging.WARNING

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


class UserPointsNotFoundError(RecordNotFoundError):
    """No points aggregate exists for the user"""

    def __init__(self, user_id: str, **kwargs):
        super().__init__(
            message=f"User points not found for {user_id}",
            record_type="User points",
            record_id=user_id,
            user_id=user_id,
            **kwargs
        )


class RewardNotFoundError(RecordNotFoundError):
    """Reward id is not in the catalog"""

    def __init__(self, reward_id: str, **kwargs):
        super().__init__(
            message=f"Reward not found: {reward_id}",
            record_type="Reward",
            record_id=reward_id,
            **kwargs
        )


class WorkoutNotFoundError(RecordNotFoundError):
    """Scheduled workout does not exist (or belongs to another user)"""

    def __init__(self, schedule_id: str, **kwargs):
        super().__init__(
            message=f"Scheduled workout not found: {schedule_id}",
            record_type="Scheduled workout",
            record_id=schedule_id,
            **kwargs
        )


# ==========================================
# Gamification Rule Violations
# ==========================================

class GamificationRuleError(GymTrainerError):
    """
    A well-formed request that the current state does not allow

    Rejected with no partial effect; the caller may resubmit once
    the state changes.
    """

    http_status = 409
    log_level = logging.WARNING


class InsufficientPointsError(GamificationRuleError):
    """Balance is lower than the reward's cost"""

    def __init__(self, user_id: str, balance: int, required: int, **kwargs):
        self.balance = balance
        self.required = required
        super().__init__(
            message=f"Insufficient points: balance {balance}, required {required}",
            user_id=user_id,
            user_message=f"You need {required - balance} more points to redeem this reward.",
            context={"balance": balance, "required": required},
            **kwargs
        )


class RewardInactiveError(GamificationRuleError):
    """Reward exists but is not currently offered"""

    def __init__(self, reward_id: str, **kwargs):
        super().__init__(
            message=f"Reward is not active: {reward_id}",
            user_message="This reward is no longer available.",
            context={"reward_id": reward_id},
            **kwargs
        )


class RedemptionLimitReachedError(GamificationRuleError):
    """User already redeemed this reward the maximum number of times"""

    def __init__(self, reward_id: str, limit: int, **kwargs):
        super().__init__(
            message=f"Redemption limit of {limit} reached for reward {reward_id}",
            user_message="You've already redeemed this reward the maximum number of times.",
            context={"reward_id": reward_id, "limit": limit},
            **kwargs
        )


class WorkoutStateError(GamificationRuleError):
    """Illegal workout schedule transition"""

    def __init__(self, schedule_id: str, status: str, action: str, **kwargs):
        super().__init__(
            message=f"Cannot {action} workout {schedule_id} in status '{status}'",
            user_message=f"This workout is already {status}.",
            context={"schedule_id": schedule_id, "status": status, "action": action},
            **kwargs
        )


# ==========================================
# Authentication & Configuration
# ==========================================

class AuthenticationError(GymTrainerError):
    """Authentication failed"""

    http_status = 401
    log_level = logging.WARNING

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        super().__init__(
            message=message,
            user_message="Authentication failed. Please check your credentials.",
            **kwargs
        )


class ConfigurationError(GymTrainerError):
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
) -> GymTrainerError:
    """
    Wrap driver exceptions (psycopg) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate GymTrainerError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="redeem",
                user_id="user_123",
            ) from e
    """
    import psycopg

    if isinstance(error, GymTrainerError):
        return error

    if isinstance(error, psycopg.OperationalError):
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
            cause=error
        )

    # Generic fallback
    return GymTrainerError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
