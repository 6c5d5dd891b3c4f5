"""Notifier interface consumed by the registration engine."""

from abc import ABC, abstractmethod

from schedules.domain import RegistrationDetail, Schedule, UserContact


class NotificationError(Exception):
    """A notification could not be delivered."""


class Notifier(ABC):
    """Sends transactional messages about registrations.

    Every method raises NotificationError when delivery fails. Callers
    decide whether a failure matters.
    """

    @abstractmethod
    def send_user_confirmation(self, detail: RegistrationDetail) -> None:
        """Tell the user their registration request was received."""
        ...

    @abstractmethod
    def send_admin_new_registration(self, detail: RegistrationDetail) -> None:
        ...

    @abstractmethod
    def send_admin_full_class_request(self, detail: RegistrationDetail) -> None:
        ...

    @abstractmethod
    def send_approval_confirmation(self, detail: RegistrationDetail) -> None:
        ...

    @abstractmethod
    def send_payment_link(self, detail: RegistrationDetail, link: str) -> None:
        ...

    @abstractmethod
    def send_cancellation_notice(self, user: UserContact, schedule: Schedule) -> None:
        """Tell a registered user that a schedule was cancelled."""
        ...

    @abstractmethod
    def send_custom_message(self, detail: RegistrationDetail, text: str) -> None:
        ...
