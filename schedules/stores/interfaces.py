"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager

from schedules.domain import (
    PaymentStatus,
    Registration,
    RegistrationId,
    RegistrationStatus,
    Schedule,
    ScheduleChanges,
    ScheduleDraft,
    ScheduleId,
    SessionId,
    Tutor,
    TutorId,
    UserContact,
    UserId,
)

REGISTRATION_KEY_FIELDS = frozenset({"user", "schedule", "session"})
LEGACY_REGISTRATION_KEY_FIELDS = frozenset({"user", "schedule"})


class DuplicateKeyError(Exception):
    """A write collided with a uniqueness constraint.

    `fields` names the fields the storage layer reported as duplicated,
    which tells apart the canonical registration key from older shapes.
    """

    def __init__(self, fields: Iterable[str], constraint: str | None = None) -> None:
        self.fields = frozenset(fields)
        self.constraint = constraint
        super().__init__(f"Duplicate key on ({', '.join(sorted(self.fields))})")


class ScheduleStore(ABC):
    """Interface for schedule persistence operations."""

    @abstractmethod
    def list_schedules(
        self, *, include_drafts: bool, offset: int = 0, limit: int | None = None
    ) -> list[Schedule]:
        """Return schedules ordered by created_at descending."""
        ...

    @abstractmethod
    def count_schedules(self, *, include_drafts: bool) -> int:
        ...

    @abstractmethod
    def list_schedules_for_tutor(self, tutor_id: TutorId) -> list[Schedule]:
        """Schedules with at least one session taught by the tutor, newest first."""
        ...

    @abstractmethod
    def get_schedule(self, schedule_id: ScheduleId) -> Schedule | None:
        """Return a schedule with its sessions, or None if not found."""
        ...

    @abstractmethod
    def get_schedule_by_slug(self, slug: str) -> Schedule | None:
        ...

    @abstractmethod
    def slug_exists(self, slug: str, exclude: ScheduleId | None = None) -> bool:
        ...

    @abstractmethod
    def create_schedule(self, draft: ScheduleDraft) -> Schedule:
        ...

    @abstractmethod
    def update_schedule(self, schedule_id: ScheduleId, changes: ScheduleChanges) -> Schedule:
        """Apply changes. A sessions value replaces the whole session list."""
        ...

    @abstractmethod
    def delete_schedule(self, schedule_id: ScheduleId) -> None:
        ...

    @abstractmethod
    def seat_lock(self, schedule_id: ScheduleId) -> AbstractContextManager[None]:
        """Serialize seat-claiming writes for one schedule while held."""
        ...

    @abstractmethod
    def get_tutors(self, tutor_ids: Iterable[TutorId]) -> list[Tutor]:
        """Return the tutors that exist, in the order given."""
        ...


class RegistrationStore(ABC):
    """Interface for registration persistence operations."""

    @abstractmethod
    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        ...

    @abstractmethod
    def find_registration(
        self, user_id: UserId, schedule_id: ScheduleId, session_id: SessionId
    ) -> Registration | None:
        """Return the registration for this user, schedule and session, if any."""
        ...

    @abstractmethod
    def create_registration(
        self,
        user_id: UserId,
        schedule_id: ScheduleId,
        session_id: SessionId,
        *,
        notes: str = "",
        is_full_class_request: bool = False,
    ) -> Registration:
        """Insert a (pending, unpaid) registration.

        Raises:
            DuplicateKeyError: If a uniqueness constraint rejects the insert.
        """
        ...

    @abstractmethod
    def save_registration(self, registration: Registration) -> Registration:
        """Persist the mutable fields of an existing registration."""
        ...

    @abstractmethod
    def count_registrations(
        self,
        *,
        schedule_id: ScheduleId | None = None,
        session_id: SessionId | None = None,
        user_id: UserId | None = None,
        statuses: Iterable[RegistrationStatus] | None = None,
        payment_statuses: Iterable[PaymentStatus] | None = None,
        exclude: RegistrationId | None = None,
    ) -> int:
        ...

    @abstractmethod
    def list_registrations(
        self,
        *,
        schedule_id: ScheduleId | None = None,
        session_id: SessionId | None = None,
        user_id: UserId | None = None,
        status: RegistrationStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Registration]:
        """Return registrations ordered by created_at descending."""
        ...

    @abstractmethod
    def delete_registrations_for_schedule(self, schedule_id: ScheduleId) -> int:
        ...

    @abstractmethod
    def drop_legacy_unique_constraint(self) -> bool:
        """Drop a leftover (user, schedule) uniqueness constraint.

        Returns True if such a constraint was found and dropped.
        """
        ...


class UserDirectory(ABC):
    """Read access to platform users."""

    @abstractmethod
    def find_user(self, user_id: UserId) -> UserContact | None:
        ...
