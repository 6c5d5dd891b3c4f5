"""Capacity evaluator.

Seat usage is always counted from registrations, never stored. Only
registrations whose payment status is paid or free hold a seat.
"""

from schedules.domain import (
    RegistrationId,
    RegistrationStatus,
    Schedule,
    ScheduleId,
    Session,
    SessionCapacity,
)
from schedules.domain.models import SEAT_HOLDING_PAYMENT_STATUSES
from schedules.stores.interfaces import RegistrationStore


class CapacityEvaluator:
    """Derives per-session occupancy from the registration store."""

    def __init__(self, registrations: RegistrationStore) -> None:
        self._registrations = registrations

    def seats_taken(
        self,
        schedule_id: ScheduleId,
        session: Session,
        exclude: RegistrationId | None = None,
    ) -> int:
        """Paid-or-free count for a session."""
        return self._registrations.count_registrations(
            schedule_id=schedule_id,
            session_id=session.id,
            payment_statuses=SEAT_HOLDING_PAYMENT_STATUSES,
            exclude=exclude,
        )

    def is_full(
        self,
        schedule_id: ScheduleId,
        session: Session,
        exclude: RegistrationId | None = None,
    ) -> bool:
        return self.seats_taken(schedule_id, session, exclude=exclude) >= session.capacity.value

    def session_capacity(self, schedule_id: ScheduleId, session: Session) -> SessionCapacity:
        def count_status(status: RegistrationStatus) -> int:
            return self._registrations.count_registrations(
                schedule_id=schedule_id, session_id=session.id, statuses=[status]
            )

        return SessionCapacity(
            session_id=session.id,
            total_capacity=session.capacity.value,
            approved_count=count_status(RegistrationStatus.APPROVED),
            pending_count=count_status(RegistrationStatus.PENDING),
            paid_count=self.seats_taken(schedule_id, session),
            start_time=session.starts_at,
            tutor_id=session.tutor_id,
        )

    def schedule_capacity(self, schedule: Schedule) -> list[SessionCapacity]:
        return [self.session_capacity(schedule.id, session) for session in schedule.sessions]
