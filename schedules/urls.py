from django.urls import path

from schedules.handlers import (
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

urlpatterns = [
    path("schedules", ScheduleListView.as_view(), name="schedule-list"),
    path("schedules/id/<str:schedule_id>", ScheduleByIdView.as_view(), name="schedule-by-id"),
    path("schedules/<slug:slug>", ScheduleDetailView.as_view(), name="schedule-detail"),
    path("schedules/<slug:slug>/tutors", ScheduleTutorsView.as_view(), name="schedule-tutors"),
    path("registrations", RegistrationCreateView.as_view(), name="registration-create"),
    path(
        "registrations/request-full-class",
        FullClassRequestView.as_view(),
        name="registration-full-class-request",
    ),
    path(
        "registrations/my-registrations",
        MyRegistrationsView.as_view(),
        name="registration-mine",
    ),
    path("registrations/all", AllRegistrationsView.as_view(), name="registration-all"),
    path(
        "registrations/schedule/<str:schedule_id>/capacity",
        ScheduleCapacityView.as_view(),
        name="schedule-capacity",
    ),
    path(
        "registrations/schedule/<str:schedule_id>",
        ScheduleRegistrationsView.as_view(),
        name="schedule-registrations",
    ),
    path(
        "registrations/tutor/schedule/<str:schedule_id>",
        TutorScheduleRegistrationsView.as_view(),
        name="tutor-schedule-registrations",
    ),
    path(
        "registrations/<str:registration_id>",
        RegistrationDetailView.as_view(),
        name="registration-detail",
    ),
    path(
        "registrations/<str:registration_id>/status",
        RegistrationStatusView.as_view(),
        name="registration-status",
    ),
    path(
        "registrations/<str:registration_id>/payment-status",
        PaymentStatusView.as_view(),
        name="registration-payment-status",
    ),
    path(
        "registrations/<str:registration_id>/payment-link",
        PaymentLinkView.as_view(),
        name="registration-payment-link",
    ),
    path(
        "registrations/<str:registration_id>/send-message",
        SendMessageView.as_view(),
        name="registration-send-message",
    ),
    path("tutors/me/schedules", MyTutorSchedulesView.as_view(), name="tutor-my-schedules"),
    path(
        "tutors/<str:tutor_id>/schedules",
        TutorSchedulesView.as_view(),
        name="tutor-schedules",
    ),
]
