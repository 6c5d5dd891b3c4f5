"""Registration engine.

Services:
- Depend only on interfaces (stores, user directory, notifier)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

The unique (user, schedule, session) key in storage is the authoritative
duplicate guard. The lookup before insert only produces a nicer error.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from django.utils import timezone

from schedules.domain import (
    Page,
    PaymentStatus,
    Registration,
    RegistrationDetail,
    RegistrationId,
    RegistrationStatus,
    Schedule,
    ScheduleId,
    Session,
    SessionCapacity,
    SessionId,
    UserContact,
    UserId,
)
from schedules.domain.errors import (
    AlreadyRegisteredError,
    DuplicateRegistrationError,
    InvalidMessageError,
    InvalidPaymentStatusError,
    InvalidStatusError,
    LegacyConstraintError,
    MissingEmailError,
    NotificationFailedError,
    RegistrationNotFoundError,
    ScheduleNotFoundError,
    SessionFullError,
    SessionHasCapacityError,
    SessionNotFoundError,
    SessionStartedError,
    UserNotFoundError,
    UserNotVerifiedError,
)
from schedules.notifications import NotificationError, Notifier
from schedules.services.capacity import CapacityEvaluator
from schedules.services.identifiers import parse_choice, parse_id
from schedules.stores.interfaces import (
    LEGACY_REGISTRATION_KEY_FIELDS,
    REGISTRATION_KEY_FIELDS,
    DuplicateKeyError,
    RegistrationStore,
    ScheduleStore,
    UserDirectory,
)

logger = logging.getLogger(__name__)

DEFAULT_FULL_CLASS_NOTE = "User requested spot in fully booked class"


class RegistrationService:
    """Creates registrations and drives their review and payment states."""

    def __init__(
        self,
        schedules: ScheduleStore,
        registrations: RegistrationStore,
        users: UserDirectory,
        notifier: Notifier,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._schedules = schedules
        self._registrations = registrations
        self._users = users
        self._notifier = notifier
        self._clock = clock or timezone.now
        self._capacity = CapacityEvaluator(registrations)

    # Creation

    def create_registration(self, user_id: str, schedule_id: str, session_id: str) -> Registration:
        """Register a verified user for one future session.

        Raises:
            InvalidIdError: If any id is not a valid UUID.
            UserNotFoundError, ScheduleNotFoundError, SessionNotFoundError
            UserNotVerifiedError: If the user has not verified their account.
            SessionStartedError: If the session has already started.
            AlreadyRegisteredError: If the user already holds a record for the session.
            SessionFullError: If paid-or-free registrations have reached capacity.
            LegacyConstraintError: If an obsolete constraint blocked the insert.
        """
        user, schedule, session = self._resolve_target(user_id, schedule_id, session_id)
        logger.info(f"Registration attempt: user={user.id} schedule={schedule.id} session={session.id}")

        if self._registrations.find_registration(user.id, schedule.id, session.id):
            raise AlreadyRegisteredError()
        if self._capacity.is_full(schedule.id, session):
            raise SessionFullError()

        return self._insert(user.id, schedule.id, session.id)

    def create_full_class_request(
        self, user_id: str, schedule_id: str, session_id: str, message: str = ""
    ) -> Registration:
        """Ask for a place in a session whose seats are all taken.

        Raises:
            SessionHasCapacityError: If the session still has free seats.
            AlreadyRegisteredError: If a record already exists for the session.
        """
        user, schedule, session = self._resolve_target(
            user_id, schedule_id, session_id, action="request a spot"
        )

        existing = self._registrations.find_registration(user.id, schedule.id, session.id)
        if existing is not None:
            raise AlreadyRegisteredError(full_class_request=existing.is_full_class_request)
        if not self._capacity.is_full(schedule.id, session):
            raise SessionHasCapacityError()

        return self._insert(
            user.id,
            schedule.id,
            session.id,
            notes=(message or "").strip() or DEFAULT_FULL_CLASS_NOTE,
            is_full_class_request=True,
        )

    def _resolve_target(
        self,
        user_id: str,
        schedule_id: str,
        session_id: str,
        action: str = "register for a schedule",
    ) -> tuple[UserContact, Schedule, Session]:
        uid = parse_id(UserId, user_id, "user ID")
        sid = parse_id(ScheduleId, schedule_id, "schedule ID")
        sess_id = parse_id(SessionId, session_id, "session ID")

        user = self._users.find_user(uid)
        if user is None:
            raise UserNotFoundError()
        if not user.verified:
            raise UserNotVerifiedError(action)

        schedule = self._schedules.get_schedule(sid)
        if schedule is None:
            raise ScheduleNotFoundError()
        session = schedule.session(sess_id)
        if session is None:
            raise SessionNotFoundError()
        if session.has_started(self._clock()):
            raise SessionStartedError()
        return user, schedule, session

    def _insert(
        self,
        user_id: UserId,
        schedule_id: ScheduleId,
        session_id: SessionId,
        *,
        notes: str = "",
        is_full_class_request: bool = False,
    ) -> Registration:
        def insert() -> Registration:
            return self._registrations.create_registration(
                user_id,
                schedule_id,
                session_id,
                notes=notes,
                is_full_class_request=is_full_class_request,
            )

        try:
            return insert()
        except DuplicateKeyError as exc:
            if exc.fields >= REGISTRATION_KEY_FIELDS:
                raise AlreadyRegisteredError() from exc
            if exc.fields != LEGACY_REGISTRATION_KEY_FIELDS:
                logger.warning(f"Unexpected duplicate key on registration insert: {exc}")
                raise DuplicateRegistrationError() from exc

        logger.warning(
            f"Legacy (user, schedule) constraint blocked registration: "
            f"user={user_id} schedule={schedule_id} session={session_id}"
        )
        if not self._registrations.drop_legacy_unique_constraint():
            raise LegacyConstraintError()

        try:
            return insert()
        except DuplicateKeyError as exc:
            if exc.fields >= REGISTRATION_KEY_FIELDS:
                raise AlreadyRegisteredError() from exc
            raise LegacyConstraintError() from exc

    # Review and payment

    def update_registration_status(
        self, registration_id: str, status: str, notes: str | None = None
    ) -> Registration:
        """Set the review status. Approval does not reserve a seat.

        The new status is saved before the approval email is sent, so a
        NotificationFailedError leaves the registration approved.

        Raises:
            InvalidStatusError: If status is not a known review status.
            RegistrationNotFoundError: If the registration does not exist.
            NotificationFailedError: If the approval email could not be sent.
        """
        new_status = parse_choice(RegistrationStatus, status, InvalidStatusError)
        registration = self._get(registration_id)

        changes = {"state": registration.state.with_status(new_status)}
        if notes:
            changes["notes"] = notes
            if new_status == RegistrationStatus.REJECTED:
                changes["rejection_reason"] = notes
        registration = self._registrations.save_registration(replace(registration, **changes))
        logger.info(f"Registration {registration.id} status set to {new_status}")

        if new_status == RegistrationStatus.APPROVED:
            try:
                self._notifier.send_approval_confirmation(self._populate(registration))
            except NotificationError as exc:
                logger.error(f"Approval email for registration {registration.id} failed: {exc}")
                raise NotificationFailedError("approval confirmation email") from exc
        return registration

    def update_payment_status(self, registration_id: str, payment_status: str) -> Registration:
        """Set the payment status, re-checking capacity when a seat is claimed.

        Raises:
            InvalidPaymentStatusError: If payment_status is not a known value.
            RegistrationNotFoundError, ScheduleNotFoundError, SessionNotFoundError
            SessionFullError: If the session has no seat left for this registration.
        """
        new_status = parse_choice(PaymentStatus, payment_status, InvalidPaymentStatusError)
        registration = self._get(registration_id)

        if not registration.state.takes_seat_on(new_status):
            return self._save_payment_status(registration, new_status)

        with self._schedules.seat_lock(registration.schedule_id):
            schedule = self._schedules.get_schedule(registration.schedule_id)
            if schedule is None:
                raise ScheduleNotFoundError()
            session = schedule.session(registration.session_id)
            if session is None:
                raise SessionNotFoundError()
            if self._capacity.is_full(schedule.id, session, exclude=registration.id):
                raise SessionFullError(
                    f"Cannot mark as {new_status}: session is at full capacity"
                )
            return self._save_payment_status(registration, new_status)

    def _save_payment_status(
        self, registration: Registration, payment_status: PaymentStatus
    ) -> Registration:
        saved = self._registrations.save_registration(
            replace(registration, state=registration.state.with_payment_status(payment_status))
        )
        logger.info(f"Registration {saved.id} payment status set to {payment_status}")
        return saved

    # Reads

    def check_schedule_capacity(self, schedule_id: str) -> list[SessionCapacity]:
        sid = parse_id(ScheduleId, schedule_id, "schedule ID")
        schedule = self._schedules.get_schedule(sid)
        if schedule is None:
            raise ScheduleNotFoundError()
        return self._capacity.schedule_capacity(schedule)

    def get_registration(self, registration_id: str) -> RegistrationDetail:
        return self._populate(self._get(registration_id))

    def list_registrations_for_schedule(
        self,
        schedule_id: str,
        status: str | None = None,
        session_id: str | None = None,
    ) -> list[RegistrationDetail]:
        sid = parse_id(ScheduleId, schedule_id, "schedule ID")
        if self._schedules.get_schedule(sid) is None:
            raise ScheduleNotFoundError()
        registrations = self._registrations.list_registrations(
            schedule_id=sid,
            session_id=parse_id(SessionId, session_id, "session ID") if session_id else None,
            status=parse_choice(RegistrationStatus, status, InvalidStatusError) if status else None,
        )
        return self._populate_many(registrations)

    def list_registrations(
        self, page: int = 1, limit: int = 10, status: str | None = None
    ) -> Page:
        page = max(1, page)
        limit = max(1, limit)
        review_status = (
            parse_choice(RegistrationStatus, status, InvalidStatusError) if status else None
        )
        items = self._registrations.list_registrations(
            status=review_status, offset=(page - 1) * limit, limit=limit
        )
        total = self._registrations.count_registrations(
            statuses=[review_status] if review_status else None
        )
        return Page(items=self._populate_many(items), total=total, page=page, limit=limit)

    def list_registrations_for_user(self, user_id: str) -> list[RegistrationDetail]:
        uid = parse_id(UserId, user_id, "user ID")
        return self._populate_many(self._registrations.list_registrations(user_id=uid))

    # Messaging

    def notify_registration_created(self, registration: Registration) -> None:
        """Confirm to the user and alert the admin. Failures are logged only."""
        detail = self._populate(registration)
        self._deliver("user confirmation", self._notifier.send_user_confirmation, detail)
        self._deliver("admin notification", self._notifier.send_admin_new_registration, detail)

    def notify_full_class_request(self, registration: Registration) -> None:
        self._deliver(
            "full class request notification",
            self._notifier.send_admin_full_class_request,
            self._populate(registration),
        )

    def send_payment_link(self, registration_id: str, link: str) -> Registration:
        """Store the payment link and email it. payment_sent records delivery."""
        registration = replace(self._get(registration_id), payment_link=link)
        sent = self._deliver(
            "payment link", self._notifier.send_payment_link, self._populate(registration), link
        )
        return self._registrations.save_registration(replace(registration, payment_sent=sent))

    def send_custom_message(self, registration_id: str, text: str) -> bool:
        """Email free text to the student. Returns whether it was delivered.

        Raises:
            InvalidMessageError: If text is empty.
            MissingEmailError: If the student has no email address.
        """
        if not text or not text.strip():
            raise InvalidMessageError()
        detail = self._populate(self._get(registration_id))
        if detail.user is None or not detail.user.email:
            raise MissingEmailError()
        return self._deliver("custom message", self._notifier.send_custom_message, detail, text)

    def _deliver(self, what: str, send: Callable[..., None], *args) -> bool:
        try:
            send(*args)
        except NotificationError as exc:
            logger.warning(f"Failed to send {what}: {exc}")
            return False
        return True

    # Helpers

    def _get(self, registration_id: str) -> Registration:
        rid = parse_id(RegistrationId, registration_id, "registration ID")
        registration = self._registrations.get_registration(rid)
        if registration is None:
            raise RegistrationNotFoundError()
        return registration

    def _populate(self, registration: Registration) -> RegistrationDetail:
        schedule = self._schedules.get_schedule(registration.schedule_id)
        return RegistrationDetail(
            registration=registration,
            user=self._users.find_user(registration.user_id),
            schedule=schedule,
            session=schedule.session(registration.session_id) if schedule else None,
        )

    def _populate_many(self, registrations: list[Registration]) -> list[RegistrationDetail]:
        schedules: dict[ScheduleId, Schedule | None] = {}
        users: dict[UserId, UserContact | None] = {}
        details = []
        for registration in registrations:
            if registration.schedule_id not in schedules:
                schedules[registration.schedule_id] = self._schedules.get_schedule(
                    registration.schedule_id
                )
            if registration.user_id not in users:
                users[registration.user_id] = self._users.find_user(registration.user_id)
            schedule = schedules[registration.schedule_id]
            details.append(
                RegistrationDetail(
                    registration=registration,
                    user=users[registration.user_id],
                    schedule=schedule,
                    session=schedule.session(registration.session_id) if schedule else None,
                )
            )
        return details
