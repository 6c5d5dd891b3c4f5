"""Serializers for request input and for rendering domain models."""

from rest_framework import serializers

from schedules.domain import PaymentStatus, RegistrationStatus


class TutorSerializer(serializers.Serializer):
    """Serializer for Tutor domain model."""

    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()
    bio = serializers.CharField()
    avatar = serializers.CharField()


class SessionSerializer(serializers.Serializer):
    """Serializer for Session domain model."""

    id = serializers.CharField()
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    time = serializers.CharField()
    period = serializers.CharField()
    capacity = serializers.IntegerField(source="capacity.value")
    tutor = serializers.CharField(source="tutor_id")
    start_at = serializers.DateTimeField(source="starts_at")


class ScheduleSerializer(serializers.Serializer):
    """Serializer for Schedule domain model."""

    id = serializers.CharField()
    title = serializers.CharField()
    text = serializers.CharField()
    slug = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, source="price.amount")
    status = serializers.CharField()
    sessions = SessionSerializer(many=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class ScheduleSummarySerializer(serializers.Serializer):
    id = serializers.CharField()
    title = serializers.CharField()
    slug = serializers.CharField()


class UserContactSerializer(serializers.Serializer):
    id = serializers.CharField()
    email = serializers.EmailField()
    full_name = serializers.CharField()
    phone_number = serializers.CharField()


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    id = serializers.CharField()
    user = serializers.CharField(source="user_id")
    schedule = serializers.CharField(source="schedule_id")
    session = serializers.CharField(source="session_id")
    status = serializers.CharField()
    payment_status = serializers.CharField()
    notes = serializers.CharField()
    rejection_reason = serializers.CharField()
    payment_link = serializers.CharField()
    payment_sent = serializers.BooleanField()
    is_full_class_request = serializers.BooleanField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class RegistrationDetailSerializer(serializers.Serializer):
    """A registration with its user, schedule and session joined in."""

    id = serializers.CharField(source="registration.id")
    user = UserContactSerializer(allow_null=True)
    schedule = ScheduleSummarySerializer(allow_null=True)
    session = SessionSerializer(allow_null=True)
    status = serializers.CharField(source="registration.status")
    payment_status = serializers.CharField(source="registration.payment_status")
    notes = serializers.CharField(source="registration.notes")
    rejection_reason = serializers.CharField(source="registration.rejection_reason")
    payment_link = serializers.CharField(source="registration.payment_link")
    payment_sent = serializers.BooleanField(source="registration.payment_sent")
    is_full_class_request = serializers.BooleanField(source="registration.is_full_class_request")
    created_at = serializers.DateTimeField(source="registration.created_at")
    updated_at = serializers.DateTimeField(source="registration.updated_at")


class SessionCapacitySerializer(serializers.Serializer):
    session_id = serializers.CharField()
    total_capacity = serializers.IntegerField()
    approved_count = serializers.IntegerField()
    pending_count = serializers.IntegerField()
    paid_count = serializers.IntegerField()
    available = serializers.IntegerField()
    is_full = serializers.BooleanField()
    start_time = serializers.DateTimeField()
    tutor = serializers.CharField(source="tutor_id")


def pagination(page) -> dict:
    return {
        "current": page.page,
        "total_pages": page.total_pages,
        "count": len(page.items),
        "total": page.total,
    }


# Input


class ScheduleWriteSerializer(serializers.Serializer):
    """Schedule input. Content rules are enforced by the service."""

    title = serializers.CharField(max_length=255)
    text = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    status = serializers.CharField(required=False)
    # A list, or a JSON-encoded list when posted as a form field.
    sessions = serializers.JSONField(required=False)


class RegistrationCreateSerializer(serializers.Serializer):
    schedule_id = serializers.CharField()
    session_id = serializers.CharField()


class FullClassRequestSerializer(RegistrationCreateSerializer):
    message = serializers.CharField(required=False, allow_blank=True, default="")


class RegistrationStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_status(self, value):
        if value not in RegistrationStatus._value2member_map_:
            raise serializers.ValidationError(
                "Invalid status. Must be 'pending', 'approved', or 'rejected'",
                code="invalid_status",
            )
        return value


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.CharField()

    def validate_payment_status(self, value):
        if value not in PaymentStatus._value2member_map_:
            raise serializers.ValidationError(
                "Invalid payment status. Must be 'unpaid', 'pending', 'paid', or 'free'",
                code="invalid_payment_status",
            )
        return value


class PaymentLinkSerializer(serializers.Serializer):
    payment_link = serializers.URLField(max_length=1000)


class CustomMessageSerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True, trim_whitespace=False)
