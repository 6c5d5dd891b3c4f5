"""Tests for the Django ORM stores.

Run with: pytest tests/test_django_store.py -v
"""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.db import IntegrityError, connection
from django.utils import timezone

from schedules.domain import (
    Capacity,
    Money,
    PaymentStatus,
    RegistrationStatus,
    ScheduleChanges,
    ScheduleDraft,
    ScheduleId,
    ScheduleStatus,
    SessionDraft,
    SessionId,
    TutorId,
    UserId,
)
from schedules.domain.errors import AlreadyRegisteredError
from schedules.models import Registration as RegistrationModel
from schedules.services.registration_service import RegistrationService
from schedules.stores.django_store import (
    DjangoRegistrationStore,
    DjangoScheduleStore,
    DjangoUserDirectory,
    duplicate_key_fields,
)
from schedules.stores.interfaces import (
    LEGACY_REGISTRATION_KEY_FIELDS,
    REGISTRATION_KEY_FIELDS,
    DuplicateKeyError,
)
from tests.fakes import RecordingNotifier

LEGACY_INDEX = "schedules_registration_user_schedule_legacy"


def session_draft(tutor, **overrides):
    start = timezone.now() + timedelta(days=5)
    values = {
        "start_date": start,
        "end_date": start + timedelta(days=1),
        "time": "10:00",
        "capacity": Capacity(4),
        "tutor_id": TutorId(tutor.id),
    }
    values.update(overrides)
    return SessionDraft(**values)


class TestDuplicateKeyFields:
    """Parsing of uniqueness violations reported by the database driver."""

    def test_sqlite_message(self):
        error = IntegrityError(
            "UNIQUE constraint failed: schedules_registration.user_id, "
            "schedules_registration.schedule_id"
        )
        assert duplicate_key_fields(error) == LEGACY_REGISTRATION_KEY_FIELDS

    def test_postgres_message(self):
        error = IntegrityError(
            'duplicate key value violates unique constraint "unique_registration_per_session"\n'
            "DETAIL:  Key (user_id, schedule_id, session_id)=(a, b, c) already exists."
        )
        assert duplicate_key_fields(error) == REGISTRATION_KEY_FIELDS

    def test_other_integrity_error(self):
        error = IntegrityError("NOT NULL constraint failed: schedules_registration.user_id")
        assert duplicate_key_fields(error) is None


@pytest.mark.django_db
class TestDjangoScheduleStore:
    """Tests for DjangoScheduleStore."""

    def test_create_and_read_back_sessions_in_order(self, db_tutor):
        tutor = db_tutor()
        store = DjangoScheduleStore()

        schedule = store.create_schedule(
            ScheduleDraft(
                title="Ink",
                text="Ink drawing",
                slug="ink-drawing",
                price=Money(Decimal("12.50")),
                status=ScheduleStatus.PUBLISHED,
                sessions=(session_draft(tutor, time="09:00"), session_draft(tutor, time="11:00")),
            )
        )

        assert [s.time for s in schedule.sessions] == ["09:00", "11:00"]
        assert store.get_schedule_by_slug("ink-drawing") == schedule
        assert store.slug_exists("ink-drawing")
        assert not store.slug_exists("ink-drawing", exclude=schedule.id)

    def test_update_replaces_sessions_keeping_given_ids(self, db_schedule, db_tutor):
        orm_schedule = db_schedule(sessions=2)
        store = DjangoScheduleStore()
        original = store.get_schedule(ScheduleId(orm_schedule.id))
        kept = original.sessions[1]
        tutor = db_tutor()

        updated = store.update_schedule(
            original.id,
            ScheduleChanges(
                title="Renamed",
                sessions=(session_draft(tutor, id=kept.id, capacity=Capacity(9)),),
            ),
        )

        assert updated.title == "Renamed"
        assert [s.id for s in updated.sessions] == [kept.id]
        assert updated.sessions[0].capacity.value == 9

    def test_list_and_count_hide_drafts(self, db_schedule):
        db_schedule(status="draft")
        published = db_schedule()
        store = DjangoScheduleStore()

        assert [s.id.value for s in store.list_schedules(include_drafts=False)] == [published.id]
        assert store.count_schedules(include_drafts=True) == 2

    def test_get_tutors_keeps_requested_order(self, db_tutor):
        first, second = db_tutor(), db_tutor()
        store = DjangoScheduleStore()

        tutors = store.get_tutors([TutorId(second.id), TutorId(uuid4()), TutorId(first.id)])

        assert [t.id.value for t in tutors] == [second.id, first.id]


@pytest.mark.django_db
class TestDjangoRegistrationStore:
    """Tests for DjangoRegistrationStore."""

    def test_duplicate_triple_raises_duplicate_key(self, db_user, db_schedule):
        user, schedule = db_user(), db_schedule()
        session_id = SessionId(schedule.sessions.first().id)
        store = DjangoRegistrationStore()
        store.create_registration(UserId(user.id), ScheduleId(schedule.id), session_id)

        with pytest.raises(DuplicateKeyError) as exc_info:
            store.create_registration(UserId(user.id), ScheduleId(schedule.id), session_id)

        assert exc_info.value.fields == REGISTRATION_KEY_FIELDS
        assert RegistrationModel.objects.count() == 1

    def test_counts_seat_holders_excluding_one(self, db_user, db_schedule):
        schedule = db_schedule(capacity=3)
        session_id = SessionId(schedule.sessions.first().id)
        store = DjangoRegistrationStore()
        registrations = [
            store.create_registration(UserId(db_user().id), ScheduleId(schedule.id), session_id)
            for _ in range(3)
        ]
        for registration, payment_status in zip(
            registrations, [PaymentStatus.PAID, PaymentStatus.FREE, PaymentStatus.PENDING]
        ):
            store.save_registration(
                replace(registration, state=registration.state.with_payment_status(payment_status))
            )

        seats = store.count_registrations(
            schedule_id=ScheduleId(schedule.id),
            session_id=session_id,
            payment_statuses=[PaymentStatus.PAID, PaymentStatus.FREE],
        )
        others = store.count_registrations(
            schedule_id=ScheduleId(schedule.id),
            session_id=session_id,
            payment_statuses=[PaymentStatus.PAID, PaymentStatus.FREE],
            exclude=registrations[0].id,
        )
        pending = store.count_registrations(
            schedule_id=ScheduleId(schedule.id), statuses=[RegistrationStatus.PENDING]
        )

        assert (seats, others, pending) == (2, 1, 3)

    def test_delete_registrations_for_schedule(self, db_user, db_schedule):
        schedule = db_schedule()
        store = DjangoRegistrationStore()
        store.create_registration(
            UserId(db_user().id), ScheduleId(schedule.id), SessionId(schedule.sessions.first().id)
        )

        assert store.delete_registrations_for_schedule(ScheduleId(schedule.id)) == 1
        assert not RegistrationModel.objects.exists()

    def test_no_legacy_constraint_to_drop(self):
        assert DjangoRegistrationStore().drop_legacy_unique_constraint() is False


@pytest.mark.django_db
class TestLegacyConstraintRecovery:
    """A (user, schedule) unique index left behind by an older schema."""

    @pytest.fixture
    def legacy_index(self, db):
        with connection.cursor() as cursor:
            cursor.execute(
                f"CREATE UNIQUE INDEX {LEGACY_INDEX} "
                "ON schedules_registration (user_id, schedule_id)"
            )

    @pytest.fixture
    def service(self):
        return RegistrationService(
            DjangoScheduleStore(),
            DjangoRegistrationStore(),
            DjangoUserDirectory(),
            RecordingNotifier(),
        )

    def index_names(self):
        with connection.cursor() as cursor:
            return set(connection.introspection.get_constraints(cursor, "schedules_registration"))

    def test_second_session_succeeds_after_dropping_legacy_index(
        self, legacy_index, service, db_user, db_schedule
    ):
        user, schedule = db_user(), db_schedule(sessions=2)
        first, second = schedule.sessions.all()
        service.create_registration(str(user.id), str(schedule.id), str(first.id))

        registration = service.create_registration(str(user.id), str(schedule.id), str(second.id))

        assert registration.session_id.value == second.id
        assert RegistrationModel.objects.filter(user=user).count() == 2
        assert LEGACY_INDEX not in self.index_names()

    def test_same_session_still_conflicts(self, legacy_index, service, db_user, db_schedule):
        user, schedule = db_user(), db_schedule()
        session = schedule.sessions.first()
        service.create_registration(str(user.id), str(schedule.id), str(session.id))

        with pytest.raises(AlreadyRegisteredError):
            service.create_registration(str(user.id), str(schedule.id), str(session.id))
        assert LEGACY_INDEX in self.index_names()


@pytest.mark.django_db
class TestDjangoUserDirectory:
    def test_find_user(self, db_user):
        user = db_user(verified=False)

        contact = DjangoUserDirectory().find_user(UserId(user.id))

        assert contact.email == user.email
        assert not contact.verified

    def test_missing_user(self):
        assert DjangoUserDirectory().find_user(UserId(uuid4())) is None
