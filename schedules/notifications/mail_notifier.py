"""Plain-text email notifications sent through Django's mail framework."""

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail

from schedules.domain import RegistrationDetail, Schedule, Session, UserContact
from schedules.notifications.interfaces import NotificationError, Notifier

logger = logging.getLogger(__name__)


def _session_line(session: Session | None) -> str:
    if session is None:
        return ""
    return (
        f"Dates: {session.start_date:%Y-%m-%d} to {session.end_date:%Y-%m-%d}\n"
        f"Time: {session.time} ({session.period})\n"
    )


def _title(detail: RegistrationDetail) -> str:
    return detail.schedule.title if detail.schedule else "your schedule"


class EmailNotifier(Notifier):
    """Notifier backed by the configured Django email backend."""

    def __init__(self, from_email: str | None = None, admin_email: str | None = None) -> None:
        self._from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self._admin_email = admin_email or settings.ADMIN_EMAIL

    def _send(self, subject: str, message: str, recipient: str | None) -> None:
        if not recipient:
            raise NotificationError(f"No recipient for '{subject}'")
        try:
            sent = send_mail(
                subject=subject,
                message=message,
                from_email=self._from_email,
                recipient_list=[recipient],
                fail_silently=False,
            )
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Failed to send '{subject}' to {recipient}") from exc
        if not sent:
            raise NotificationError(f"Mail backend did not send '{subject}'")
        logger.info(f"Sent '{subject}' to {recipient}")

    @staticmethod
    def _recipient(detail: RegistrationDetail) -> str | None:
        return detail.user.email if detail.user else None

    @staticmethod
    def _name(detail: RegistrationDetail) -> str:
        return detail.user.full_name if detail.user else "student"

    def send_user_confirmation(self, detail: RegistrationDetail) -> None:
        self._send(
            "Schedule Registration Confirmation",
            f"Dear {self._name(detail)},\n\n"
            f"Thank you for registering! We have received your registration request for: "
            f"{_title(detail)}\n"
            f"{_session_line(detail.session)}\n"
            "Next Steps:\n"
            "1. Your request is currently under review\n"
            "2. Once approved, we will send you a payment link\n"
            "3. Complete the payment to secure your spot in the class\n\n"
            "We'll notify you of any updates to your registration status.",
            self._recipient(detail),
        )

    def send_admin_new_registration(self, detail: RegistrationDetail) -> None:
        user = detail.user
        self._send(
            "New Schedule Registration Request",
            "A new registration request has been submitted:\n\n"
            f"Schedule: {_title(detail)}\n"
            f"{_session_line(detail.session)}"
            f"User: {self._name(detail)} ({user.email if user else 'unknown'})\n"
            f"Phone: {(user.phone_number if user else '') or 'Not provided'}\n"
            "Status: Pending Review\n\n"
            "Action Required:\n"
            "1. Review this request in the admin dashboard\n"
            "2. If approved, send a payment link to the user",
            self._admin_email,
        )

    def send_admin_full_class_request(self, detail: RegistrationDetail) -> None:
        user = detail.user
        self._send(
            f"Full Class Request: {_title(detail)}",
            "A user has requested a spot in a fully booked session:\n\n"
            f"Schedule: {_title(detail)}\n"
            f"{_session_line(detail.session)}"
            f"User: {self._name(detail)} ({user.email if user else 'unknown'})\n"
            f"Message: {detail.registration.notes}\n\n"
            "Review the request in the admin dashboard if a spot becomes available.",
            self._admin_email,
        )

    def send_approval_confirmation(self, detail: RegistrationDetail) -> None:
        self._send(
            f"Registration Approved: {_title(detail)}",
            f"Dear {self._name(detail)},\n\n"
            f"Your registration for {_title(detail)} has been approved.\n"
            f"{_session_line(detail.session)}\n"
            "Your seat is confirmed once payment is completed.",
            self._recipient(detail),
        )

    def send_payment_link(self, detail: RegistrationDetail, link: str) -> None:
        self._send(
            f"Payment Required: Your {_title(detail)} Registration",
            f"Dear {self._name(detail)},\n\n"
            f"Good news! Your registration request for {_title(detail)} has been approved.\n\n"
            "Your registration is waiting for payment. Please pay using the following link "
            f"to be able to join the class: {link}\n\n"
            "After completing your payment, please let us know so we can finalize your "
            "registration.",
            self._recipient(detail),
        )

    def send_cancellation_notice(self, user: UserContact, schedule: Schedule) -> None:
        self._send(
            f"Schedule Cancelled: {schedule.title}",
            f"Dear {user.full_name},\n\n"
            "We regret to inform you that the following schedule has been cancelled:\n\n"
            f"{schedule.title}\n\n"
            "This schedule is no longer available. We apologize for any inconvenience.",
            user.email,
        )

    def send_custom_message(self, detail: RegistrationDetail, text: str) -> None:
        self._send(
            f"Message about your {_title(detail)} registration",
            f"Dear {self._name(detail)},\n\n{text}",
            self._recipient(detail),
        )
