"""Mailed one-time codes for email verification and password reset.

Codes are stored hashed. Issuing a code retires any earlier unused code
for the same purpose, and a code is retired after it is used or after
too many wrong guesses.
"""

import logging
import smtplib
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.core.mail import send_mail
from django.utils import timezone
from django.utils.crypto import get_random_string
from rest_framework import serializers
from rest_framework.exceptions import Throttled

from accounts.exceptions import EmailDeliveryError
from accounts.models import EmailCode, User

logger = logging.getLogger(__name__)

MESSAGES = {
    EmailCode.Purpose.VERIFY_EMAIL: (
        "Email Verification Code",
        "Thanks for registering! Your verification code is: {code}",
    ),
    EmailCode.Purpose.RESET_PASSWORD: (
        "Password Reset Code",
        "You requested a password reset. Your reset code is: {code}\n\n"
        "If you did not request this, you can ignore this email.",
    ),
}


def _current(user: User, purpose: str) -> EmailCode | None:
    return EmailCode.objects.filter(user=user, purpose=purpose, is_used=False).first()


def issue_code(user: User, purpose: str) -> str:
    """Store a fresh code for the user and return it in clear."""
    latest = EmailCode.objects.filter(user=user, purpose=purpose).first()
    if latest is not None and settings.EMAIL_CODE_COOLDOWN:
        elapsed = (timezone.now() - latest.created_at).total_seconds()
        if elapsed < settings.EMAIL_CODE_COOLDOWN:
            raise Throttled(wait=settings.EMAIL_CODE_COOLDOWN - elapsed)

    EmailCode.objects.filter(user=user, purpose=purpose, is_used=False).update(is_used=True)
    code = get_random_string(settings.EMAIL_CODE_LENGTH, allowed_chars="0123456789")
    EmailCode.objects.create(
        user=user,
        purpose=purpose,
        code_hash=make_password(code),
        expires_at=timezone.now() + timedelta(seconds=settings.EMAIL_CODE_EXPIRE_TIME),
    )
    return code


def send_code(user: User, purpose: str) -> None:
    """Issue a code and mail it to the user.

    Raises:
        EmailDeliveryError: If the mail backend fails.
    """
    code = issue_code(user, purpose)
    subject, body = MESSAGES[purpose]
    minutes = settings.EMAIL_CODE_EXPIRE_TIME // 60
    message = (
        f"Hi {user.full_name},\n\n{body.format(code=code)}\n"
        f"This code will expire in {minutes} minutes.\n"
    )
    try:
        sent = send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning(f"Sending '{subject}' to {user.email} failed: {exc}")
        raise EmailDeliveryError() from exc
    if not sent:
        raise EmailDeliveryError()
    logger.info(f"Sent '{subject}' to {user.email}")


def consume_code(user: User, purpose: str, code: str) -> None:
    """Check a code and retire it.

    Raises:
        serializers.ValidationError: code_not_found, code_expired or invalid_code.
    """
    record = _current(user, purpose)
    if record is None:
        raise serializers.ValidationError(
            "No code found. Please request a new one.", code="code_not_found"
        )
    if record.is_expired():
        raise serializers.ValidationError(
            "The code has expired. Please request a new one.", code="code_expired"
        )
    if not check_password(code, record.code_hash):
        record.attempts += 1
        if record.attempts >= settings.MAX_EMAIL_CODE_ATTEMPTS:
            record.is_used = True
            logger.warning(f"Retired {purpose} code for {user.email} after too many attempts")
        record.save(update_fields=["attempts", "is_used"])
        raise serializers.ValidationError("Invalid code", code="invalid_code")

    record.is_used = True
    record.used_at = timezone.now()
    record.save(update_fields=["is_used", "used_at"])
