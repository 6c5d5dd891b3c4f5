"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in schedules/models.py (persistence layer).
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import StrEnum

from schedules.domain.value_objects import (
    Capacity,
    Money,
    RegistrationId,
    ScheduleId,
    SessionId,
    TutorId,
    UserId,
)

DEFAULT_SESSION_PERIOD = "2hours"
SESSION_TIME_FORMAT = "%H:%M"


class ScheduleStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"


class RegistrationStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(StrEnum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"
    FREE = "free"

    @property
    def holds_seat(self) -> bool:
        """Only confirmed payment (or a free place) consumes a seat."""
        return self in SEAT_HOLDING_PAYMENT_STATUSES


SEAT_HOLDING_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.FREE})


@dataclass(frozen=True)
class RegistrationState:
    """Review status and payment status of a registration, as one value.

    Every combination is legal. A rejected registration keeps its payment
    status (and therefore its seat) until an admin changes it.
    """

    status: RegistrationStatus = RegistrationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID

    @property
    def holds_seat(self) -> bool:
        return self.payment_status.holds_seat

    def with_status(self, status: RegistrationStatus) -> "RegistrationState":
        return replace(self, status=status)

    def with_payment_status(self, payment_status: PaymentStatus) -> "RegistrationState":
        return replace(self, payment_status=payment_status)

    def takes_seat_on(self, payment_status: PaymentStatus) -> bool:
        """Whether moving to payment_status would claim a new seat."""
        return payment_status.holds_seat and not self.holds_seat


@dataclass(frozen=True)
class Tutor:
    """Domain representation of a Tutor."""

    id: TutorId
    name: str
    email: str
    bio: str = ""
    avatar: str = ""


@dataclass(frozen=True)
class Session:
    """Domain representation of a Session."""

    id: SessionId
    start_date: datetime
    end_date: datetime
    time: str
    capacity: Capacity
    tutor_id: TutorId
    period: str = DEFAULT_SESSION_PERIOD

    @property
    def starts_at(self) -> datetime:
        """Start instant: the start date's calendar day at `time`, in UTC."""
        try:
            clock = datetime.strptime(self.time, SESSION_TIME_FORMAT).time()
        except (TypeError, ValueError):
            return self.start_date
        day = self.start_date
        if day.tzinfo is not None:
            day = day.astimezone(timezone.utc)
        return datetime.combine(day.date(), clock, tzinfo=timezone.utc)

    def has_started(self, now: datetime) -> bool:
        return now >= self.starts_at


@dataclass(frozen=True)
class Schedule:
    """Domain representation of a Schedule."""

    id: ScheduleId
    title: str
    text: str
    slug: str
    price: Money
    status: ScheduleStatus
    sessions: tuple[Session, ...]
    created_at: datetime
    updated_at: datetime

    @property
    def is_published(self) -> bool:
        return self.status == ScheduleStatus.PUBLISHED

    def session(self, session_id: SessionId) -> Session | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def session_ids(self) -> list[SessionId]:
        return [session.id for session in self.sessions]

    def tutor_ids(self) -> list[TutorId]:
        """Tutors across sessions, unique, in session order."""
        seen: list[TutorId] = []
        for session in self.sessions:
            if session.tutor_id not in seen:
                seen.append(session.tutor_id)
        return seen


@dataclass(frozen=True)
class Registration:
    """Domain representation of a Registration."""

    id: RegistrationId
    user_id: UserId
    schedule_id: ScheduleId
    session_id: SessionId
    state: RegistrationState
    created_at: datetime
    updated_at: datetime
    notes: str = ""
    rejection_reason: str = ""
    payment_link: str = ""
    payment_sent: bool = False
    is_full_class_request: bool = False

    @property
    def status(self) -> RegistrationStatus:
        return self.state.status

    @property
    def payment_status(self) -> PaymentStatus:
        return self.state.payment_status


@dataclass(frozen=True)
class UserContact:
    """What the registration engine needs to know about a user."""

    id: UserId
    email: str
    full_name: str
    verified: bool
    phone_number: str = ""


@dataclass(frozen=True)
class RegistrationDetail:
    """A registration joined with its user, schedule and session."""

    registration: Registration
    user: UserContact | None
    schedule: Schedule | None
    session: Session | None


@dataclass(frozen=True)
class SessionCapacity:
    """Occupancy of one session, computed from registration counts."""

    session_id: SessionId
    total_capacity: int
    approved_count: int
    pending_count: int
    paid_count: int
    start_time: datetime
    tutor_id: TutorId

    @property
    def available(self) -> int:
        return max(0, self.total_capacity - self.paid_count)

    @property
    def is_full(self) -> bool:
        return self.paid_count >= self.total_capacity


@dataclass(frozen=True)
class SessionDraft:
    """Validated session input. `id` is set when an existing session is kept."""

    start_date: datetime
    end_date: datetime
    time: str
    capacity: Capacity
    tutor_id: TutorId
    period: str = DEFAULT_SESSION_PERIOD
    id: SessionId | None = None


@dataclass(frozen=True)
class ScheduleDraft:
    """Validated input for a new schedule."""

    title: str
    text: str
    slug: str
    price: Money
    status: ScheduleStatus
    sessions: tuple[SessionDraft, ...]


@dataclass(frozen=True)
class ScheduleChanges:
    """Fields to change on a schedule. None means unchanged."""

    title: str | None = None
    text: str | None = None
    slug: str | None = None
    price: Money | None = None
    status: ScheduleStatus | None = None
    sessions: tuple[SessionDraft, ...] | None = None


@dataclass(frozen=True)
class Page:
    """One page of a listing."""

    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
