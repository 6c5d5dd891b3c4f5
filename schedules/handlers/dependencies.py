"""Wiring of services to their Django-backed stores and the email notifier."""

from schedules.notifications import EmailNotifier
from schedules.services.registration_service import RegistrationService
from schedules.services.schedule_service import ScheduleService
from schedules.stores.django_store import (
    DjangoRegistrationStore,
    DjangoScheduleStore,
    DjangoUserDirectory,
)


def get_schedule_service() -> ScheduleService:
    return ScheduleService(
        DjangoScheduleStore(), DjangoRegistrationStore(), DjangoUserDirectory(), EmailNotifier()
    )


def get_registration_service() -> RegistrationService:
    return RegistrationService(
        DjangoScheduleStore(), DjangoRegistrationStore(), DjangoUserDirectory(), EmailNotifier()
    )
