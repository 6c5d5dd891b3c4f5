"""Django ORM implementation of the schedule, registration and user stores."""

import logging
import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, connection, transaction
from django.db.models import QuerySet

from accounts.models import Tutor as TutorModel
from schedules import models as orm
from schedules.domain import (
    Capacity,
    Money,
    PaymentStatus,
    Registration,
    RegistrationId,
    RegistrationState,
    RegistrationStatus,
    Schedule,
    ScheduleChanges,
    ScheduleDraft,
    ScheduleId,
    ScheduleStatus,
    Session,
    SessionDraft,
    SessionId,
    Tutor,
    TutorId,
    UserContact,
    UserId,
)
from schedules.stores.interfaces import (
    LEGACY_REGISTRATION_KEY_FIELDS,
    DuplicateKeyError,
    RegistrationStore,
    ScheduleStore,
    UserDirectory,
)

logger = logging.getLogger(__name__)

# SQLite: "UNIQUE constraint failed: table.col_a, table.col_b"
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: (?P<columns>[^\n]+)")
# PostgreSQL: 'DETAIL:  Key (col_a, col_b)=(..., ...) already exists.'
_POSTGRES_KEY_RE = re.compile(r"Key \((?P<columns>[^)]*)\)=")
_POSTGRES_CONSTRAINT_RE = re.compile(r'unique constraint "(?P<name>[^"]+)"')

_REGISTRATION_COLUMN_FIELDS = {
    "user_id": "user",
    "schedule_id": "schedule",
    "session_id": "session",
}


def duplicate_key_fields(error: IntegrityError) -> frozenset[str] | None:
    """Return the registration fields named by a uniqueness violation.

    Returns None when the error is not a uniqueness violation.
    """
    message = str(error)
    match = _SQLITE_UNIQUE_RE.search(message) or _POSTGRES_KEY_RE.search(message)
    if match is None:
        return None
    columns = [part.strip().split(".")[-1] for part in match["columns"].split(",")]
    return frozenset(_REGISTRATION_COLUMN_FIELDS.get(column, column) for column in columns)


def _constraint_name(error: IntegrityError) -> str | None:
    match = _POSTGRES_CONSTRAINT_RE.search(str(error))
    return match["name"] if match else None


def _to_tutor(obj: TutorModel) -> Tutor:
    return Tutor(
        id=TutorId(obj.id),
        name=obj.name,
        email=obj.email,
        bio=obj.bio,
        avatar=obj.avatar,
    )


def _to_session(obj: orm.Session) -> Session:
    return Session(
        id=SessionId(obj.id),
        start_date=obj.start_date,
        end_date=obj.end_date,
        time=obj.time,
        period=obj.period,
        capacity=Capacity(obj.capacity),
        tutor_id=TutorId(obj.tutor_id),
    )


def _to_schedule(obj: orm.Schedule) -> Schedule:
    return Schedule(
        id=ScheduleId(obj.id),
        title=obj.title,
        text=obj.text,
        slug=obj.slug,
        price=Money(Decimal(obj.price)),
        status=ScheduleStatus(obj.status),
        sessions=tuple(_to_session(s) for s in obj.sessions.all()),
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def _to_registration(obj: orm.Registration) -> Registration:
    return Registration(
        id=RegistrationId(obj.id),
        user_id=UserId(obj.user_id),
        schedule_id=ScheduleId(obj.schedule_id),
        session_id=SessionId(obj.session),
        state=RegistrationState(
            status=RegistrationStatus(obj.status),
            payment_status=PaymentStatus(obj.payment_status),
        ),
        notes=obj.notes,
        rejection_reason=obj.rejection_reason,
        payment_link=obj.payment_link,
        payment_sent=obj.payment_sent,
        is_full_class_request=obj.is_full_class_request,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


class DjangoScheduleStore(ScheduleStore):
    """Relational schedule store. Sessions live in their own table."""

    def _queryset(self, *, include_drafts: bool = True) -> QuerySet:
        queryset = orm.Schedule.objects.prefetch_related("sessions")
        if not include_drafts:
            queryset = queryset.filter(status=ScheduleStatus.PUBLISHED.value)
        return queryset

    def list_schedules(
        self, *, include_drafts: bool, offset: int = 0, limit: int | None = None
    ) -> list[Schedule]:
        queryset = self._queryset(include_drafts=include_drafts).order_by("-created_at")
        if limit is not None:
            queryset = queryset[offset : offset + limit]
        elif offset:
            queryset = queryset[offset:]
        return [_to_schedule(obj) for obj in queryset]

    def count_schedules(self, *, include_drafts: bool) -> int:
        return self._queryset(include_drafts=include_drafts).count()

    def list_schedules_for_tutor(self, tutor_id: TutorId) -> list[Schedule]:
        queryset = (
            self._queryset()
            .filter(sessions__tutor_id=tutor_id.value)
            .distinct()
            .order_by("-created_at")
        )
        return [_to_schedule(obj) for obj in queryset]

    def get_schedule(self, schedule_id: ScheduleId) -> Schedule | None:
        obj = self._queryset().filter(pk=schedule_id.value).first()
        return _to_schedule(obj) if obj else None

    def get_schedule_by_slug(self, slug: str) -> Schedule | None:
        obj = self._queryset().filter(slug=slug).first()
        return _to_schedule(obj) if obj else None

    def slug_exists(self, slug: str, exclude: ScheduleId | None = None) -> bool:
        queryset = orm.Schedule.objects.filter(slug=slug)
        if exclude is not None:
            queryset = queryset.exclude(pk=exclude.value)
        return queryset.exists()

    def _write_sessions(self, schedule: orm.Schedule, drafts: Iterable[SessionDraft]) -> None:
        rows = []
        for position, draft in enumerate(drafts):
            row = orm.Session(
                schedule=schedule,
                position=position,
                start_date=draft.start_date,
                end_date=draft.end_date,
                time=draft.time,
                period=draft.period,
                capacity=draft.capacity.value,
                tutor_id=draft.tutor_id.value,
            )
            if draft.id is not None:
                row.id = draft.id.value
            rows.append(row)
        orm.Session.objects.bulk_create(rows)

    @transaction.atomic
    def create_schedule(self, draft: ScheduleDraft) -> Schedule:
        obj = orm.Schedule.objects.create(
            title=draft.title,
            text=draft.text,
            slug=draft.slug,
            price=draft.price.amount,
            status=draft.status.value,
        )
        self._write_sessions(obj, draft.sessions)
        return self.get_schedule(ScheduleId(obj.id))

    @transaction.atomic
    def update_schedule(self, schedule_id: ScheduleId, changes: ScheduleChanges) -> Schedule:
        obj = orm.Schedule.objects.select_for_update().get(pk=schedule_id.value)
        if changes.title is not None:
            obj.title = changes.title
        if changes.text is not None:
            obj.text = changes.text
        if changes.slug is not None:
            obj.slug = changes.slug
        if changes.price is not None:
            obj.price = changes.price.amount
        if changes.status is not None:
            obj.status = changes.status.value
        obj.save()

        if changes.sessions is not None:
            obj.sessions.all().delete()
            self._write_sessions(obj, changes.sessions)
        return self.get_schedule(schedule_id)

    def delete_schedule(self, schedule_id: ScheduleId) -> None:
        orm.Schedule.objects.filter(pk=schedule_id.value).delete()

    @contextmanager
    def seat_lock(self, schedule_id: ScheduleId) -> Iterator[None]:
        with transaction.atomic():
            # Row lock on the schedule, released when the outer transaction ends.
            list(
                orm.Schedule.objects.select_for_update()
                .filter(pk=schedule_id.value)
                .values_list("pk", flat=True)
            )
            yield

    def get_tutors(self, tutor_ids: Iterable[TutorId]) -> list[Tutor]:
        ordered = list(tutor_ids)
        found = {
            obj.id: obj for obj in TutorModel.objects.filter(id__in=[t.value for t in ordered])
        }
        return [_to_tutor(found[t.value]) for t in ordered if t.value in found]


class DjangoRegistrationStore(RegistrationStore):
    """Relational registration store guarded by a unique (user, schedule, session) key."""

    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        obj = orm.Registration.objects.filter(pk=registration_id.value).first()
        return _to_registration(obj) if obj else None

    def find_registration(
        self, user_id: UserId, schedule_id: ScheduleId, session_id: SessionId
    ) -> Registration | None:
        obj = orm.Registration.objects.filter(
            user_id=user_id.value,
            schedule_id=schedule_id.value,
            session=session_id.value,
        ).first()
        return _to_registration(obj) if obj else None

    def create_registration(
        self,
        user_id: UserId,
        schedule_id: ScheduleId,
        session_id: SessionId,
        *,
        notes: str = "",
        is_full_class_request: bool = False,
    ) -> Registration:
        try:
            # Savepoint, so a collision leaves the request transaction usable.
            with transaction.atomic():
                obj = orm.Registration.objects.create(
                    user_id=user_id.value,
                    schedule_id=schedule_id.value,
                    session=session_id.value,
                    status=RegistrationStatus.PENDING.value,
                    payment_status=PaymentStatus.UNPAID.value,
                    notes=notes,
                    is_full_class_request=is_full_class_request,
                )
        except IntegrityError as exc:
            fields = duplicate_key_fields(exc)
            if fields is None:
                raise
            raise DuplicateKeyError(fields, _constraint_name(exc)) from exc
        return _to_registration(obj)

    def save_registration(self, registration: Registration) -> Registration:
        obj = orm.Registration.objects.get(pk=registration.id.value)
        obj.status = registration.status.value
        obj.payment_status = registration.payment_status.value
        obj.notes = registration.notes
        obj.rejection_reason = registration.rejection_reason
        obj.payment_link = registration.payment_link
        obj.payment_sent = registration.payment_sent
        obj.save(
            update_fields=[
                "status",
                "payment_status",
                "notes",
                "rejection_reason",
                "payment_link",
                "payment_sent",
                "updated_at",
            ]
        )
        return _to_registration(obj)

    def _filter(
        self,
        *,
        schedule_id: ScheduleId | None = None,
        session_id: SessionId | None = None,
        user_id: UserId | None = None,
    ) -> QuerySet:
        queryset = orm.Registration.objects.all()
        if schedule_id is not None:
            queryset = queryset.filter(schedule_id=schedule_id.value)
        if session_id is not None:
            queryset = queryset.filter(session=session_id.value)
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id.value)
        return queryset

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
        queryset = self._filter(schedule_id=schedule_id, session_id=session_id, user_id=user_id)
        if statuses is not None:
            queryset = queryset.filter(status__in=[s.value for s in statuses])
        if payment_statuses is not None:
            queryset = queryset.filter(payment_status__in=[s.value for s in payment_statuses])
        if exclude is not None:
            queryset = queryset.exclude(pk=exclude.value)
        return queryset.count()

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
        queryset = self._filter(schedule_id=schedule_id, session_id=session_id, user_id=user_id)
        if status is not None:
            queryset = queryset.filter(status=status.value)
        queryset = queryset.order_by("-created_at")
        if limit is not None:
            queryset = queryset[offset : offset + limit]
        elif offset:
            queryset = queryset[offset:]
        return [_to_registration(obj) for obj in queryset]

    def delete_registrations_for_schedule(self, schedule_id: ScheduleId) -> int:
        deleted, _ = orm.Registration.objects.filter(schedule_id=schedule_id.value).delete()
        return deleted

    def drop_legacy_unique_constraint(self) -> bool:
        table = orm.Registration._meta.db_table
        legacy_columns = {
            column
            for column, field in _REGISTRATION_COLUMN_FIELDS.items()
            if field in LEGACY_REGISTRATION_KEY_FIELDS
        }
        quote = connection.ops.quote_name
        try:
            with connection.cursor() as cursor:
                constraints = connection.introspection.get_constraints(cursor, table)
            for name, info in constraints.items():
                if not info["unique"] or info["primary_key"]:
                    continue
                if set(info["columns"]) != legacy_columns:
                    continue
                if info["index"]:
                    statement = f"DROP INDEX {quote(name)}"
                else:
                    statement = f"ALTER TABLE {quote(table)} DROP CONSTRAINT {quote(name)}"
                logger.warning(f"Dropping legacy unique constraint on {table}: {name}")
                with transaction.atomic(), connection.cursor() as cursor:
                    cursor.execute(statement)
                return True
        except DatabaseError:
            logger.exception(f"Failed to drop legacy unique constraint on {table}")
            return False
        return False


class DjangoUserDirectory(UserDirectory):
    """User lookups against the configured auth user model."""

    def find_user(self, user_id: UserId) -> UserContact | None:
        obj = get_user_model().objects.filter(pk=user_id.value).first()
        if obj is None:
            return None
        return UserContact(
            id=UserId(obj.pk),
            email=obj.email,
            full_name=obj.full_name,
            verified=obj.verified,
            phone_number=obj.phone_number,
        )
