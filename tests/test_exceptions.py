"""Tests for the API error envelope."""

import pytest
from rest_framework import serializers
from rest_framework.exceptions import NotFound, ValidationError

from schedules.domain.errors import (
    InvalidIdError,
    LegacyConstraintError,
    NotificationFailedError,
    ScheduleSlugExistsError,
)
from utils.exceptions import (
    DEFAULT_ERROR_MESSAGE,
    custom_exception_handler,
    get_error_code,
    get_error_message,
    validation_error_response,
)


class TestErrorCode:
    def test_nested_field_error(self):
        exc = ValidationError({"user": [serializers.ErrorDetail("Taken", code="unique")]})

        assert get_error_code(exc) == "unique"

    def test_non_field_error(self):
        exc = ValidationError("Invalid code", code="invalid_code")

        assert get_error_code(exc) == "invalid_code"

    def test_plain_exception(self):
        assert get_error_code(ValueError("boom")) == "error"


class TestErrorMessage:
    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"email": ["Enter a valid email address."]}, "Enter a valid email address."),
            ({"detail": "Not found."}, "Not found."),
            ({"sessions": {"0": ["Bad date"]}}, "Bad date"),
            (["First", "Second"], "First"),
            ("Plain", "Plain"),
            ({}, DEFAULT_ERROR_MESSAGE),
            ([], DEFAULT_ERROR_MESSAGE),
            (None, DEFAULT_ERROR_MESSAGE),
        ],
    )
    def test_first_message(self, data, expected):
        assert get_error_message(data) == expected


class TestExceptionHandler:
    """Tests for custom_exception_handler"""

    @pytest.mark.parametrize(
        "exc,status_code,code",
        [
            (InvalidIdError("schedule ID"), 400, "invalid_id"),
            (ScheduleSlugExistsError(), 409, "schedule_slug_exists"),
            (LegacyConstraintError(), 503, "legacy_constraint"),
            (NotificationFailedError("approval email"), 500, "notification_failed"),
        ],
    )
    def test_domain_errors_map_by_kind(self, exc, status_code, code):
        response = custom_exception_handler(exc, {})

        assert response.status_code == status_code
        assert response.data == {
            "error": True,
            "code": code,
            "message": exc.message,
            "details": None,
            "status_code": status_code,
        }

    def test_drf_errors_keep_details(self):
        response = custom_exception_handler(NotFound("User not found"), {})

        assert response.status_code == 404
        assert response.data["code"] == "not_found"
        assert response.data["message"] == "User not found"
        assert response.data["details"] == {"detail": "User not found"}

    def test_unhandled_errors_are_left_to_django(self):
        assert custom_exception_handler(RuntimeError("boom"), {}) is None


class TestValidationErrorResponse:
    def test_returns_envelope(self):
        response = validation_error_response(
            {"non_field_errors": [serializers.ErrorDetail("Invalid code", code="invalid_code")]}
        )

        assert response.status_code == 400
        assert response.data["error"] is True
        assert response.data["code"] == "invalid_code"
        assert response.data["message"] == "Invalid code"
        assert response.data["status_code"] == 400
