from schedules.domain.models import (
    Page,
    PaymentStatus,
    Registration,
    RegistrationDetail,
    RegistrationState,
    RegistrationStatus,
    Schedule,
    ScheduleChanges,
    ScheduleDraft,
    ScheduleStatus,
    Session,
    SessionCapacity,
    SessionDraft,
    Tutor,
    UserContact,
)
from schedules.domain.value_objects import (
    Capacity,
    Money,
    RegistrationId,
    ScheduleId,
    SessionId,
    TutorId,
    UserId,
)

__all__ = [
    "Page",
    "PaymentStatus",
    "Registration",
    "RegistrationDetail",
    "RegistrationState",
    "RegistrationStatus",
    "Schedule",
    "ScheduleChanges",
    "ScheduleDraft",
    "ScheduleStatus",
    "Session",
    "SessionCapacity",
    "SessionDraft",
    "Tutor",
    "UserContact",
    "Capacity",
    "Money",
    "RegistrationId",
    "ScheduleId",
    "SessionId",
    "TutorId",
    "UserId",
]
