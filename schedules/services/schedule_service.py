"""Schedule catalog service: CRUD over schedules and their sessions."""

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, time, timezone
from decimal import Decimal, InvalidOperation

from django.utils.dateparse import parse_date, parse_datetime
from django.utils.text import slugify

from schedules.domain import (
    Capacity,
    Money,
    Page,
    Schedule,
    ScheduleChanges,
    ScheduleDraft,
    ScheduleId,
    ScheduleStatus,
    SessionDraft,
    SessionId,
    Tutor,
    TutorId,
)
from schedules.domain.errors import (
    InvalidScheduleError,
    InvalidSessionError,
    ScheduleHasRegistrationsError,
    ScheduleNotFoundError,
    ScheduleSlugExistsError,
)
from schedules.domain.models import DEFAULT_SESSION_PERIOD
from schedules.notifications import NotificationError, Notifier
from schedules.services.identifiers import parse_id
from schedules.stores.interfaces import RegistrationStore, ScheduleStore, UserDirectory

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 255
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def generate_slug(text: str) -> str:
    return slugify(text)[:SLUG_MAX_LENGTH].strip("-")


class ScheduleService:
    """Service for schedule catalog operations."""

    def __init__(
        self,
        schedules: ScheduleStore,
        registrations: RegistrationStore,
        users: UserDirectory,
        notifier: Notifier,
    ) -> None:
        self._schedules = schedules
        self._registrations = registrations
        self._users = users
        self._notifier = notifier

    def list_schedules(
        self, page: int = 1, limit: int = 10, include_drafts: bool = False
    ) -> Page:
        """Return one page of schedules, newest first. Drafts only for admins."""
        page = max(1, page)
        limit = max(1, limit)
        items = self._schedules.list_schedules(
            include_drafts=include_drafts, offset=(page - 1) * limit, limit=limit
        )
        total = self._schedules.count_schedules(include_drafts=include_drafts)
        return Page(items=items, total=total, page=page, limit=limit)

    def get_schedule_by_slug(self, slug: str) -> Schedule:
        schedule = self._schedules.get_schedule_by_slug(slug)
        if schedule is None:
            raise ScheduleNotFoundError()
        return schedule

    def get_schedule(self, schedule_id: str) -> Schedule:
        """Return a schedule by ID.

        Raises:
            InvalidIdError: If the schedule_id is not a valid UUID.
            ScheduleNotFoundError: If the schedule does not exist.
        """
        schedule = self._schedules.get_schedule(parse_id(ScheduleId, schedule_id, "schedule ID"))
        if schedule is None:
            raise ScheduleNotFoundError()
        return schedule

    def get_schedule_tutors(self, slug: str) -> list[Tutor]:
        """Unique tutors across the schedule's sessions, in session order."""
        return self._schedules.get_tutors(self.get_schedule_by_slug(slug).tutor_ids())

    def is_tutor_assigned(self, schedule_id: str, tutor_id: str) -> bool:
        schedule = self.get_schedule(schedule_id)
        return parse_id(TutorId, tutor_id, "tutor ID") in schedule.tutor_ids()

    def list_schedules_for_tutor(self, tutor_id: str) -> list[Schedule]:
        """Schedules where the tutor teaches at least one session, drafts included."""
        return self._schedules.list_schedules_for_tutor(parse_id(TutorId, tutor_id, "tutor ID"))

    def create_schedule(
        self,
        title: str,
        text: str,
        price: object = 0,
        status: str | None = None,
        sessions: object = None,
    ) -> Schedule:
        """Create a schedule with at least one session.

        Raises:
            InvalidScheduleError: If title, text, price or status is invalid.
            InvalidSessionError: If any session entry is invalid.
            ScheduleSlugExistsError: If the text yields a slug already in use.
        """
        if not title or not str(title).strip():
            raise InvalidScheduleError("Title is required")
        if not text or not str(text).strip():
            raise InvalidScheduleError("Text is required")

        slug = generate_slug(text)
        if not slug:
            raise InvalidScheduleError("Text must contain letters or digits")
        if self._schedules.slug_exists(slug):
            raise ScheduleSlugExistsError()

        draft = ScheduleDraft(
            title=str(title).strip(),
            text=text,
            slug=slug,
            price=_parse_price(0 if price is None else price),
            status=_parse_status(status or ScheduleStatus.DRAFT),
            sessions=self._parse_sessions(sessions),
        )
        schedule = self._schedules.create_schedule(draft)
        logger.info(f"Created schedule {schedule.slug} with {len(schedule.sessions)} session(s)")
        return schedule

    def update_schedule(self, slug: str, **changes) -> Schedule:
        """Apply changes to the schedule found by slug.

        A text change regenerates the slug. Passing sessions replaces the
        whole list; entries carrying an existing id keep it.
        """
        schedule = self.get_schedule_by_slug(slug)

        title = changes.get("title")
        text = changes.get("text")
        new_slug = None
        if text is not None and text != schedule.text:
            new_slug = generate_slug(text)
            if not new_slug:
                raise InvalidScheduleError("Text must contain letters or digits")
            if self._schedules.slug_exists(new_slug, exclude=schedule.id):
                raise ScheduleSlugExistsError()

        price = changes.get("price")
        status = changes.get("status")
        sessions = changes.get("sessions")
        updated = self._schedules.update_schedule(
            schedule.id,
            ScheduleChanges(
                title=str(title).strip() if title else None,
                text=text or None,
                slug=new_slug,
                price=_parse_price(price) if price is not None else None,
                status=_parse_status(status) if status is not None else None,
                sessions=(
                    self._parse_sessions(sessions, known_ids=schedule.session_ids())
                    if sessions is not None
                    else None
                ),
            ),
        )
        logger.info(f"Updated schedule {updated.slug}")
        return updated

    def delete_schedule(self, slug: str, force: bool = False) -> dict:
        """Delete a schedule.

        With registrations present the delete needs force. Forced deletes
        notify each affected user once; failed notices do not stop it.

        Raises:
            ScheduleNotFoundError: If no schedule has this slug.
            ScheduleHasRegistrationsError: If registrations exist and force is false.
        """
        schedule = self.get_schedule_by_slug(slug)
        count = self._registrations.count_registrations(schedule_id=schedule.id)
        if count and not force:
            raise ScheduleHasRegistrationsError(count)

        notified = 0
        deleted_registrations = 0
        if count:
            user_ids = []
            for registration in self._registrations.list_registrations(schedule_id=schedule.id):
                if registration.user_id not in user_ids:
                    user_ids.append(registration.user_id)
            for user_id in user_ids:
                user = self._users.find_user(user_id)
                if user is None or not user.email:
                    continue
                try:
                    self._notifier.send_cancellation_notice(user, schedule)
                except NotificationError as exc:
                    logger.warning(f"Cancellation notice to {user.email} failed: {exc}")
                    continue
                notified += 1
            deleted_registrations = self._registrations.delete_registrations_for_schedule(
                schedule.id
            )

        self._schedules.delete_schedule(schedule.id)
        logger.info(
            f"Deleted schedule {slug}: {deleted_registrations} registration(s) removed, "
            f"{notified} user(s) notified"
        )
        return {
            "deleted": True,
            "notified_users": notified,
            "deleted_registrations": deleted_registrations,
        }

    def _parse_sessions(
        self, raw: object, known_ids: Iterable[SessionId] | None = None
    ) -> tuple[SessionDraft, ...]:
        """Parse session entries.

        known_ids are the ids of the schedule being updated. An entry may keep
        one of them, each at most once. New schedules take no ids.
        """
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                raise InvalidSessionError("Sessions must be a list") from None
        if not raw:
            raise InvalidSessionError("At least one session is required")
        if not isinstance(raw, (list, tuple)):
            raise InvalidSessionError("Sessions must be a list")

        drafts = tuple(_parse_session(entry, index) for index, entry in enumerate(raw, start=1))

        if known_ids is None:
            drafts = tuple(replace(draft, id=None) for draft in drafts)
        known_ids = set(known_ids or ())
        seen: set[SessionId] = set()
        for index, draft in enumerate(drafts, start=1):
            if draft.id is None:
                continue
            if draft.id not in known_ids:
                raise InvalidSessionError(
                    f"Session {index}: session does not belong to this schedule"
                )
            if draft.id in seen:
                raise InvalidSessionError(f"Session {index}: duplicate session ID")
            seen.add(draft.id)

        tutor_ids = list(dict.fromkeys(draft.tutor_id for draft in drafts))
        known = {tutor.id for tutor in self._schedules.get_tutors(tutor_ids)}
        for index, draft in enumerate(drafts, start=1):
            if draft.tutor_id not in known:
                raise InvalidSessionError(f"Session {index}: tutor not found")
        return drafts


def _parse_price(value: object) -> Money:
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise ValueError(value)
        return Money(amount)
    except (InvalidOperation, ValueError):
        raise InvalidScheduleError("Price must be a non-negative number") from None


def _parse_status(value: object) -> ScheduleStatus:
    try:
        return ScheduleStatus(value)
    except ValueError:
        raise InvalidScheduleError("Invalid status. Must be 'draft' or 'published'") from None


def _parse_when(value: object) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return None
    else:
        try:
            parsed = parse_datetime(str(value))
            if parsed is None:
                day = parse_date(str(value))
                parsed = datetime.combine(day, time.min) if day else None
        except ValueError:
            return None
        if parsed is None:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_capacity(value: object) -> Capacity | None:
    if isinstance(value, bool):
        return None
    try:
        return Capacity(int(str(value).strip()))
    except (TypeError, ValueError):
        return None


def _parse_session(entry: object, index: int) -> SessionDraft:
    if not isinstance(entry, dict):
        raise InvalidSessionError(f"Session {index}: must be an object")

    start_date = _parse_when(entry.get("start_date"))
    end_date = _parse_when(entry.get("end_date"))
    if start_date is None or end_date is None:
        raise InvalidSessionError(f"Session {index}: start_date and end_date must be valid dates")
    if end_date < start_date:
        raise InvalidSessionError(f"Session {index}: end_date must not be before start_date")

    session_time = str(entry.get("time") or "").strip()
    if not _TIME_RE.match(session_time):
        raise InvalidSessionError(f"Session {index}: time must be in HH:MM format")

    capacity = _parse_capacity(entry.get("capacity"))
    if capacity is None:
        raise InvalidSessionError(f"Session {index}: capacity must be a positive integer")

    period = entry.get("period")
    period = period.strip() if isinstance(period, str) and period.strip() else DEFAULT_SESSION_PERIOD

    tutor = entry.get("tutor") or entry.get("tutor_id")
    try:
        tutor_id = TutorId.from_string(str(tutor))
    except ValueError:
        raise InvalidSessionError(f"Session {index}: tutor must be a valid tutor ID") from None

    session_id = None
    if entry.get("id"):
        try:
            session_id = SessionId.from_string(str(entry["id"]))
        except ValueError:
            raise InvalidSessionError(f"Session {index}: invalid session ID") from None

    return SessionDraft(
        start_date=start_date,
        end_date=end_date,
        time=session_time,
        capacity=capacity,
        tutor_id=tutor_id,
        period=period,
        id=session_id,
    )
