from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from rest_framework import serializers
from rest_framework.exceptions import NotFound

from accounts.codes import consume_code
from accounts.exceptions import UserExistsError
from accounts.models import EmailCode, Tutor, User


class UserSerializer(serializers.ModelSerializer):
    """
    User Serializer
    """

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "phone_number",
            "verified",
            "is_staff",
            "date_joined",
        ]
        read_only_fields = ["id", "email", "verified", "is_staff", "date_joined"]


class RegisterSerializer(serializers.Serializer):
    """
    User Registration Serializer
    """

    email = serializers.EmailField()
    full_name = serializers.CharField(max_length=255)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        value = User.objects.normalize_email(value)
        if User.objects.filter(email__iexact=value).exists():
            raise UserExistsError()
        return value

    def validate(self, attrs):
        candidate = User(email=attrs["email"], full_name=attrs["full_name"])
        validate_password(attrs["password"], candidate)
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class EmailSerializer(serializers.Serializer):
    """
    Resolves the account behind an email address
    """

    email = serializers.EmailField()

    def validate(self, attrs):
        user = User.objects.filter(email__iexact=attrs["email"]).first()
        if user is None:
            raise NotFound("User not found")
        attrs["user"] = user
        return attrs


class SendVerificationSerializer(EmailSerializer):
    def validate(self, attrs):
        attrs = super().validate(attrs)
        if attrs["user"].verified:
            raise serializers.ValidationError("Email is already verified", code="already_verified")
        return attrs


class VerifyEmailSerializer(SendVerificationSerializer):
    code = serializers.CharField(max_length=12)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        consume_code(attrs["user"], EmailCode.Purpose.VERIFY_EMAIL, attrs["code"])
        return attrs

    def save(self):
        user = self.validated_data["user"]
        user.verified = True
        user.save(update_fields=["verified"])
        return user


class VerifyResetCodeSerializer(EmailSerializer):
    """
    Trades a mailed reset code for a reset token
    """

    code = serializers.CharField(max_length=12)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        consume_code(attrs["user"], EmailCode.Purpose.RESET_PASSWORD, attrs["code"])
        attrs["reset_token"] = default_token_generator.make_token(attrs["user"])
        return attrs


class ResetPasswordSerializer(EmailSerializer):
    reset_token = serializers.CharField()
    password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        user = attrs["user"]
        if not default_token_generator.check_token(user, attrs["reset_token"]):
            raise serializers.ValidationError(
                "Invalid or expired reset token", code="token_invalid"
            )
        if attrs["password"] != attrs["confirm_password"]:
            raise serializers.ValidationError(
                "Password and confirmation do not match", code="passwords_do_not_match"
            )
        validate_password(attrs["password"], user)
        return attrs

    def save(self):
        user = self.validated_data["user"]
        user.set_password(self.validated_data["password"])
        user.save(update_fields=["password"])
        return user


class ChangePasswordSerializer(serializers.Serializer):
    """
    Change Password Serializer
    """

    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        user = self.context["request"].user
        if attrs["new_password"] != attrs["confirm_password"]:
            raise serializers.ValidationError(
                "New password and confirmation do not match", code="passwords_do_not_match"
            )
        if not user.check_password(attrs["old_password"]):
            raise serializers.ValidationError(
                "Current password is incorrect", code="invalid_password"
            )
        if attrs["old_password"] == attrs["new_password"]:
            raise serializers.ValidationError(
                "New password must be different from current password", code="same_as_old"
            )
        validate_password(attrs["new_password"], user)
        return attrs

    def save(self):
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user


class TutorSerializer(serializers.ModelSerializer):
    """
    Tutor Serializer
    """

    user = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Tutor
        fields = ["id", "user", "name", "email", "bio", "description", "avatar", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_user(self, value):
        if value is None:
            return value
        others = Tutor.objects.filter(user=value)
        if self.instance is not None:
            others = others.exclude(pk=self.instance.pk)
        if others.exists():
            raise serializers.ValidationError(
                "This user already has a tutor profile", code="unique"
            )
        return value
