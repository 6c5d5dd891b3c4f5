from schedules.handlers.views import (
    AllRegistrationsView,
    FullClassRequestView,
    MyRegistrationsView,
    MyTutorSchedulesView,
    PaymentLinkView,
    PaymentStatusView,
    RegistrationCreateView,
    RegistrationDetailView,
    RegistrationStatusView,
    ScheduleByIdView,
    ScheduleCapacityView,
    ScheduleDetailView,
    ScheduleListView,
    ScheduleRegistrationsView,
    ScheduleTutorsView,
    SendMessageView,
    TutorScheduleRegistrationsView,
    TutorSchedulesView,
)

__all__ = [
    "AllRegistrationsView",
    "FullClassRequestView",
    "MyRegistrationsView",
    "MyTutorSchedulesView",
    "PaymentLinkView",
    "PaymentStatusView",
    "RegistrationCreateView",
    "RegistrationDetailView",
    "RegistrationStatusView",
    "ScheduleByIdView",
    "ScheduleCapacityView",
    "ScheduleDetailView",
    "ScheduleListView",
    "ScheduleRegistrationsView",
    "ScheduleTutorsView",
    "SendMessageView",
    "TutorScheduleRegistrationsView",
    "TutorSchedulesView",
]
