"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from schedules.domain.models import (
    DEFAULT_SESSION_PERIOD,
    PaymentStatus,
    RegistrationStatus,
    ScheduleStatus,
)

REGISTRATION_UNIQUE_FIELDS = ("user", "schedule", "session")
LEGACY_REGISTRATION_UNIQUE_FIELDS = ("user", "schedule")


class Schedule(models.Model):
    """Persistence model for schedules."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    text = models.TextField()
    slug = models.SlugField(max_length=255, unique=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value.title()) for s in ScheduleStatus],
        default=ScheduleStatus.DRAFT.value,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="schedule_status_created_idx"),
        ]

    def __str__(self) -> str:
        return self.title


class Session(models.Model):
    """Persistence model for schedule sessions. Owned by its schedule."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    schedule = models.ForeignKey(Schedule, on_delete=models.CASCADE, related_name="sessions")
    position = models.PositiveIntegerField(default=0)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    time = models.CharField(max_length=5)
    period = models.CharField(max_length=50, default=DEFAULT_SESSION_PERIOD)
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    tutor = models.ForeignKey(
        "accounts.Tutor", on_delete=models.PROTECT, related_name="sessions"
    )

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["schedule", "position"], name="session_schedule_position_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.schedule.title} - {self.start_date:%Y-%m-%d} {self.time}"


class Registration(models.Model):
    """Persistence model for a user's registration to one session."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="registrations"
    )
    schedule = models.ForeignKey(
        Schedule, on_delete=models.CASCADE, related_name="registrations"
    )
    # Not a foreign key: the session list is replaced wholesale on schedule update.
    session = models.UUIDField(db_column="session_id")
    status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value.title()) for s in RegistrationStatus],
        default=RegistrationStatus.PENDING.value,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value.title()) for s in PaymentStatus],
        default=PaymentStatus.UNPAID.value,
    )
    notes = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")
    payment_link = models.CharField(max_length=1000, blank=True, default="")
    payment_sent = models.BooleanField(default=False)
    is_full_class_request = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=list(REGISTRATION_UNIQUE_FIELDS),
                name="unique_registration_per_session",
            ),
        ]
        indexes = [
            models.Index(
                fields=["schedule", "session", "payment_status"],
                name="registration_seat_count_idx",
            ),
            models.Index(fields=["user", "-created_at"], name="registration_user_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.schedule_id} ({self.status}/{self.payment_status})"
