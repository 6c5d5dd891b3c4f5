"""Domain error codes for the schedules module."""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    """How a domain error surfaces to callers."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    TRANSIENT = "transient"
    INTERNAL = "internal"


class ErrorCode(Enum):
    """Domain error codes. Values are stable, machine-checkable reasons."""

    INVALID_ID = "invalid_id"
    USER_NOT_FOUND = "user_not_found"
    USER_NOT_VERIFIED = "user_not_verified"
    SCHEDULE_NOT_FOUND = "schedule_not_found"
    SESSION_NOT_FOUND = "session_not_found"
    REGISTRATION_NOT_FOUND = "registration_not_found"
    SESSION_STARTED = "session_started"
    SESSION_FULL = "session_full"
    SESSION_HAS_CAPACITY = "session_has_capacity"
    ALREADY_REGISTERED = "already_registered"
    ALREADY_REQUESTED = "already_requested"
    DUPLICATE_REGISTRATION = "duplicate_registration"
    LEGACY_CONSTRAINT = "legacy_constraint"
    INVALID_STATUS = "invalid_status"
    INVALID_PAYMENT_STATUS = "invalid_payment_status"
    INVALID_SCHEDULE = "invalid_schedule"
    INVALID_SESSION = "invalid_session"
    SCHEDULE_SLUG_EXISTS = "schedule_slug_exists"
    SCHEDULE_HAS_REGISTRATIONS = "schedule_has_registrations"
    INVALID_MESSAGE = "invalid_message"
    INVALID_EMAIL = "invalid_email"
    NOTIFICATION_FAILED = "notification_failed"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code, kind and user-safe message."""

    code: ErrorCode
    message: str
    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, what: str = "ID") -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {what} format",
        )


class UserNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.USER_NOT_FOUND,
            message="User not found",
            kind=ErrorKind.NOT_FOUND,
        )


class UserNotVerifiedError(DomainError):
    """Raised when an unverified user tries to register."""

    def __init__(self, action: str = "register for a schedule") -> None:
        super().__init__(
            code=ErrorCode.USER_NOT_VERIFIED,
            message=f"User must be verified to {action}",
            kind=ErrorKind.FORBIDDEN,
        )


class ScheduleNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.SCHEDULE_NOT_FOUND,
            message="Schedule not found",
            kind=ErrorKind.NOT_FOUND,
        )


class SessionNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_FOUND,
            message="Session not found",
            kind=ErrorKind.NOT_FOUND,
        )


class RegistrationNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message="Registration not found",
            kind=ErrorKind.NOT_FOUND,
        )


class SessionStartedError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.SESSION_STARTED,
            message="Cannot register for a session that has already started",
        )


class SessionFullError(DomainError):
    """Raised when a session has no paid seats left."""

    def __init__(self, message: str = "This session is already at full capacity") -> None:
        super().__init__(code=ErrorCode.SESSION_FULL, message=message)


class SessionHasCapacityError(DomainError):
    """Raised when a full-class request targets a session with free seats."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.SESSION_HAS_CAPACITY,
            message="This session still has available spots. Please register normally instead.",
        )


class AlreadyRegisteredError(DomainError):
    """Raised when a registration already exists for user, schedule and session."""

    def __init__(self, full_class_request: bool = False) -> None:
        if full_class_request:
            super().__init__(
                code=ErrorCode.ALREADY_REQUESTED,
                message="You have already requested a spot for this specific session",
                kind=ErrorKind.CONFLICT,
            )
        else:
            super().__init__(
                code=ErrorCode.ALREADY_REGISTERED,
                message="You have already registered for this specific session",
                kind=ErrorKind.CONFLICT,
            )


class DuplicateRegistrationError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_REGISTRATION,
            message="Duplicate registration detected for this session",
            kind=ErrorKind.CONFLICT,
        )


class LegacyConstraintError(DomainError):
    """Raised when an obsolete uniqueness constraint could not be healed."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.LEGACY_CONSTRAINT,
            message="Temporary database constraint encountered. Please try again in a moment.",
            kind=ErrorKind.TRANSIENT,
        )


class InvalidStatusError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS,
            message="Invalid status. Must be 'pending', 'approved', or 'rejected'",
        )


class InvalidPaymentStatusError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_PAYMENT_STATUS,
            message="Invalid payment status. Must be 'unpaid', 'pending', 'paid', or 'free'",
        )


class InvalidScheduleError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_SCHEDULE, message=message)


class InvalidSessionError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_SESSION, message=message)


class ScheduleSlugExistsError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.SCHEDULE_SLUG_EXISTS,
            message="A schedule with similar content already exists",
            kind=ErrorKind.CONFLICT,
        )


class ScheduleHasRegistrationsError(DomainError):
    """Raised when deleting a schedule that still has registrations."""

    def __init__(self, count: int) -> None:
        super().__init__(
            code=ErrorCode.SCHEDULE_HAS_REGISTRATIONS,
            message=(
                f"Schedule has {count} registration(s). "
                "Delete with force to cancel them and notify users."
            ),
        )


class InvalidMessageError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_MESSAGE,
            message="Message content is required",
        )


class MissingEmailError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_EMAIL,
            message="Student email address is invalid or missing",
        )


class NotificationFailedError(DomainError):
    """Raised when a notification that must be delivered could not be sent."""

    def __init__(self, what: str) -> None:
        super().__init__(
            code=ErrorCode.NOTIFICATION_FAILED,
            message=f"Failed to send {what}",
            kind=ErrorKind.INTERNAL,
        )
