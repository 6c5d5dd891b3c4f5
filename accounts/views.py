"""Account endpoints: signup, email verification, passwords and tutors."""

import logging

from django.db.models import ProtectedError
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.codes import send_code
from accounts.exceptions import EmailDeliveryError, TutorAssignedError
from accounts.models import EmailCode, Tutor
from accounts.serializers import (
    ChangePasswordSerializer,
    EmailSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    SendVerificationSerializer,
    TutorSerializer,
    UserSerializer,
    VerifyEmailSerializer,
    VerifyResetCodeSerializer,
)
from utils.exceptions import validation_error_response
from utils.permissions import IsAdmin, IsTutor

logger = logging.getLogger(__name__)


class RegisterView(APIView):
    """Handler for POST /api/auth/register"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Registered user {user.email}")

        try:
            send_code(user, EmailCode.Purpose.VERIFY_EMAIL)
            verification_sent = True
        except EmailDeliveryError:
            verification_sent = False

        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "message": "User registered successfully. "
                "Please check your email for verification.",
                "user": UserSerializer(user).data,
                "tokens": {"refresh": str(refresh), "access": str(refresh.access_token)},
                "verification_sent": verification_sent,
            },
            status=status.HTTP_201_CREATED,
        )


class SendVerificationView(APIView):
    """Handler for POST /api/auth/send-verification"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = SendVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        send_code(serializer.validated_data["user"], EmailCode.Purpose.VERIFY_EMAIL)
        return Response({"message": "Verification code sent successfully"})


class VerifyEmailView(APIView):
    """Handler for POST /api/auth/verify-email"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = VerifyEmailSerializer(data=request.data)
        # Wrong guesses are counted during validation and must be kept.
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        user = serializer.save()
        logger.info(f"Verified email for {user.email}")
        return Response(
            {"message": "Email verified successfully", "user": UserSerializer(user).data}
        )


class PasswordResetRequestView(APIView):
    """Handler for POST /api/users/request-password-reset"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        send_code(serializer.validated_data["user"], EmailCode.Purpose.RESET_PASSWORD)
        return Response({"message": "Password reset code sent to your email"})


class VerifyResetCodeView(APIView):
    """Handler for POST /api/users/verify-reset-code"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = VerifyResetCodeSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        return Response(
            {
                "message": "Code verified successfully",
                "reset_token": serializer.validated_data["reset_token"],
            }
        )


class ResetPasswordView(APIView):
    """Handler for POST /api/users/reset-password"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Password reset for {user.email}")
        return Response({"message": "Password has been reset successfully"})


class ChangePasswordView(APIView):
    """Handler for POST /api/users/change-password"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = ChangePasswordSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"message": "Password changed successfully"})


class ProfileView(APIView):
    """Handler for GET/PATCH /api/users/profile"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        return Response(UserSerializer(request.user).data)

    def patch(self, request: Request) -> Response:
        serializer = UserSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class TutorViewSet(viewsets.ModelViewSet):
    """
    Tutor management for admins
    """

    queryset = Tutor.objects.select_related("user")
    serializer_class = TutorSerializer
    permission_classes = [IsAdmin]

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise TutorAssignedError() from None
        logger.info(f"Deleted tutor {instance.email}")

    @action(detail=False, methods=["get"], url_path="me/profile", permission_classes=[IsTutor])
    def my_profile(self, request):
        """
        Tutor profile of the signed-in user
        GET /api/tutors/me/profile
        """
        return Response(self.get_serializer(request.user.tutor_profile).data)
