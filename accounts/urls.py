from django.urls import path
from rest_framework.routers import SimpleRouter

from accounts.views import (
    ChangePasswordView,
    PasswordResetRequestView,
    ProfileView,
    RegisterView,
    ResetPasswordView,
    SendVerificationView,
    TutorViewSet,
    VerifyEmailView,
    VerifyResetCodeView,
)

router = SimpleRouter(trailing_slash=False)
router.register(r"tutors", TutorViewSet, basename="tutor")

urlpatterns = [
    path("auth/register", RegisterView.as_view(), name="auth-register"),
    path("auth/send-verification", SendVerificationView.as_view(), name="auth-send-verification"),
    path("auth/verify-email", VerifyEmailView.as_view(), name="auth-verify-email"),
    path(
        "users/request-password-reset",
        PasswordResetRequestView.as_view(),
        name="password-reset-request",
    ),
    path("users/verify-reset-code", VerifyResetCodeView.as_view(), name="password-reset-verify"),
    path("users/reset-password", ResetPasswordView.as_view(), name="password-reset"),
    path("users/change-password", ChangePasswordView.as_view(), name="password-change"),
    path("users/profile", ProfileView.as_view(), name="user-profile"),
]
urlpatterns += router.urls
