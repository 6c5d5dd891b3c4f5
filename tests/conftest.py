"""Pytest configuration and shared fixtures."""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from schedules.domain import (
    Capacity,
    Money,
    Schedule,
    ScheduleId,
    ScheduleStatus,
    Session,
    SessionId,
    Tutor,
    TutorId,
    UserContact,
    UserId,
)
from schedules.services.registration_service import RegistrationService
from schedules.services.schedule_service import ScheduleService
from tests.fakes import (
    NOW,
    InMemoryRegistrationStore,
    InMemoryScheduleStore,
    InMemoryUserDirectory,
    RecordingNotifier,
)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def schedule_store() -> InMemoryScheduleStore:
    return InMemoryScheduleStore()


@pytest.fixture
def registration_store() -> InMemoryRegistrationStore:
    return InMemoryRegistrationStore()


@pytest.fixture
def user_directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def registration_service(schedule_store, registration_store, user_directory, notifier):
    return RegistrationService(
        schedule_store, registration_store, user_directory, notifier, clock=lambda: NOW
    )


@pytest.fixture
def schedule_service(schedule_store, registration_store, user_directory, notifier):
    return ScheduleService(schedule_store, registration_store, user_directory, notifier)


@pytest.fixture
def make_user(user_directory):
    def _make(verified: bool = True, email: str | None = None) -> UserContact:
        user_id = UserId(uuid4())
        return user_directory.add(
            UserContact(
                id=user_id,
                email=f"user-{user_id.value.hex[:8]}@example.com" if email is None else email,
                full_name="Test Student",
                verified=verified,
            )
        )

    return _make


@pytest.fixture
def tutor(schedule_store) -> Tutor:
    return schedule_store.add_tutor(
        Tutor(id=TutorId(uuid4()), name="Ada Tutor", email="ada@example.com")
    )


@pytest.fixture
def make_schedule(schedule_store, tutor):
    def _make(capacity: int = 2, starts_in: timedelta = timedelta(days=7), sessions: int = 1):
        start = NOW + starts_in
        return schedule_store.add(
            Schedule(
                id=ScheduleId(uuid4()),
                title="Watercolour Basics",
                text="Learn watercolour basics",
                slug=f"watercolour-{uuid4().hex[:8]}",
                price=Money(Decimal("50.00")),
                status=ScheduleStatus.PUBLISHED,
                sessions=tuple(
                    Session(
                        id=SessionId(uuid4()),
                        start_date=start + timedelta(days=index),
                        end_date=start + timedelta(days=index),
                        time=f"{start.hour:02d}:{start.minute:02d}",
                        capacity=Capacity(capacity),
                        tutor_id=tutor.id,
                    )
                    for index in range(sessions)
                ),
                created_at=NOW,
                updated_at=NOW,
            )
        )

    return _make


# Database-backed fixtures


@pytest.fixture
def db_user(db):
    from accounts.models import User

    def _make(verified: bool = True, is_staff: bool = False, email: str | None = None):
        return User.objects.create_user(
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            password="pass1234",
            full_name="Test Student",
            verified=verified,
            is_staff=is_staff,
        )

    return _make


@pytest.fixture
def admin_client(db_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=db_user(is_staff=True))
    return client


@pytest.fixture
def db_tutor(db):
    from accounts.models import Tutor as TutorModel

    def _make(user=None):
        return TutorModel.objects.create(
            user=user,
            name="Ada Tutor",
            email=f"tutor-{uuid4().hex[:8]}@example.com",
            bio="Painter",
        )

    return _make


@pytest.fixture
def db_schedule(db, db_tutor):
    from django.utils import timezone

    from schedules.models import Schedule as ScheduleModel
    from schedules.models import Session as SessionModel

    def _make(capacity: int = 2, sessions: int = 1, status: str = "published", tutor=None, slug=None):
        tutor = tutor or db_tutor()
        schedule = ScheduleModel.objects.create(
            title="Watercolour Basics",
            text="Learn watercolour basics",
            slug=slug or f"watercolour-{uuid4().hex[:8]}",
            price=Decimal("50.00"),
            status=status,
        )
        start = timezone.now() + timedelta(days=7)
        for position in range(sessions):
            SessionModel.objects.create(
                schedule=schedule,
                position=position,
                start_date=start + timedelta(days=position),
                end_date=start + timedelta(days=position),
                time="18:00",
                capacity=capacity,
                tutor=tutor,
            )
        return schedule

    return _make
