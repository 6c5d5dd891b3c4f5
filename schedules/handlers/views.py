"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Leave domain error mapping to utils.exceptions.custom_exception_handler
- Never contain business logic
- Never expose internal error details
"""

import logging

from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from schedules import cache
from schedules.handlers.dependencies import get_registration_service, get_schedule_service
from schedules.handlers.serializers import (
    CustomMessageSerializer,
    FullClassRequestSerializer,
    PaymentLinkSerializer,
    PaymentStatusSerializer,
    RegistrationCreateSerializer,
    RegistrationDetailSerializer,
    RegistrationSerializer,
    RegistrationStatusSerializer,
    ScheduleSerializer,
    ScheduleWriteSerializer,
    SessionCapacitySerializer,
    TutorSerializer,
    pagination,
)
from utils.permissions import IsAdmin, IsAdminOrReadOnly, IsTutor

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _int_param(request: Request, name: str, default: int) -> int:
    try:
        return max(1, int(request.query_params.get(name, default)))
    except (TypeError, ValueError):
        return default


def _page_params(request: Request) -> tuple[int, int]:
    return (
        _int_param(request, "page", 1),
        min(_int_param(request, "limit", DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE),
    )


def _is_admin(request: Request) -> bool:
    return bool(request.user and request.user.is_authenticated and request.user.is_staff)


class ScheduleListView(APIView):
    """Handler for GET/POST /api/schedules"""

    permission_classes = [IsAdminOrReadOnly]

    def get(self, request: Request) -> Response:
        page, limit = _page_params(request)
        include_drafts = _is_admin(request)
        key = None if include_drafts else cache.list_key(page, limit)
        if key:
            cached = cache.get_cached(key)
            if cached is not None:
                return Response(cached)

        result = get_schedule_service().list_schedules(
            page=page, limit=limit, include_drafts=include_drafts
        )
        data = {
            "schedules": ScheduleSerializer(result.items, many=True).data,
            "pagination": pagination(result),
        }
        if key:
            cache.set_cached(key, data)
        return Response(data)

    def post(self, request: Request) -> Response:
        serializer = ScheduleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        schedule = get_schedule_service().create_schedule(**serializer.validated_data)
        return Response(
            {"message": "Schedule created successfully", "schedule": ScheduleSerializer(schedule).data},
            status=status.HTTP_201_CREATED,
        )


class ScheduleByIdView(APIView):
    """Handler for GET /api/schedules/id/{schedule_id}"""

    permission_classes = [AllowAny]

    def get(self, request: Request, schedule_id: str) -> Response:
        schedule = get_schedule_service().get_schedule(schedule_id)
        return Response(ScheduleSerializer(schedule).data)


class ScheduleDetailView(APIView):
    """Handler for GET/PUT/DELETE /api/schedules/{slug}"""

    permission_classes = [IsAdminOrReadOnly]

    def get(self, request: Request, slug: str) -> Response:
        key = cache.detail_key(slug)
        cached = cache.get_cached(key)
        if cached is not None:
            return Response(cached)

        data = ScheduleSerializer(get_schedule_service().get_schedule_by_slug(slug)).data
        cache.set_cached(key, data)
        return Response(data)

    def put(self, request: Request, slug: str) -> Response:
        serializer = ScheduleWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        schedule = get_schedule_service().update_schedule(slug, **serializer.validated_data)
        return Response(
            {"message": "Schedule updated successfully", "schedule": ScheduleSerializer(schedule).data}
        )

    def delete(self, request: Request, slug: str) -> Response:
        force = request.query_params.get("force", "").lower() in ("1", "true", "yes")
        result = get_schedule_service().delete_schedule(slug, force=force)
        return Response({"message": "Schedule deleted successfully", **result})


class ScheduleTutorsView(APIView):
    """Handler for GET /api/schedules/{slug}/tutors"""

    permission_classes = [AllowAny]

    def get(self, request: Request, slug: str) -> Response:
        tutors = get_schedule_service().get_schedule_tutors(slug)
        return Response({"tutors": TutorSerializer(tutors, many=True).data})


class ScheduleCapacityView(APIView):
    """Handler for GET /api/registrations/schedule/{schedule_id}/capacity"""

    permission_classes = [AllowAny]

    def get(self, request: Request, schedule_id: str) -> Response:
        sessions = get_registration_service().check_schedule_capacity(schedule_id)
        return Response({"sessions": SessionCapacitySerializer(sessions, many=True).data})


class RegistrationCreateView(APIView):
    """Handler for POST /api/registrations"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = RegistrationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = get_registration_service()
        registration = service.create_registration(
            user_id=str(request.user.pk),
            schedule_id=serializer.validated_data["schedule_id"],
            session_id=serializer.validated_data["session_id"],
        )
        service.notify_registration_created(registration)
        return Response(
            {
                "message": "Registration submitted successfully",
                "registration": RegistrationSerializer(registration).data,
            },
            status=status.HTTP_201_CREATED,
        )


class FullClassRequestView(APIView):
    """Handler for POST /api/registrations/request-full-class"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = FullClassRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = get_registration_service()
        registration = service.create_full_class_request(
            user_id=str(request.user.pk),
            schedule_id=serializer.validated_data["schedule_id"],
            session_id=serializer.validated_data["session_id"],
            message=serializer.validated_data["message"],
        )
        service.notify_full_class_request(registration)
        return Response(
            {
                "message": "Your request has been submitted. We will contact you if a spot becomes available.",
                "registration": RegistrationSerializer(registration).data,
            },
            status=status.HTTP_201_CREATED,
        )


class MyRegistrationsView(APIView):
    """Handler for GET /api/registrations/my-registrations"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        details = get_registration_service().list_registrations_for_user(str(request.user.pk))
        return Response({"registrations": RegistrationDetailSerializer(details, many=True).data})


class TutorScheduleRegistrationsView(APIView):
    """Handler for GET /api/registrations/tutor/schedule/{schedule_id}"""

    permission_classes = [IsTutor]

    def get(self, request: Request, schedule_id: str) -> Response:
        tutor_id = str(request.user.tutor_profile.pk)
        if not get_schedule_service().is_tutor_assigned(schedule_id, tutor_id):
            raise PermissionDenied("You are not assigned to this schedule")
        details = get_registration_service().list_registrations_for_schedule(
            schedule_id, status=request.query_params.get("status")
        )
        return Response({"registrations": RegistrationDetailSerializer(details, many=True).data})


class MyTutorSchedulesView(APIView):
    """Handler for GET /api/tutors/me/schedules"""

    permission_classes = [IsTutor]

    def get(self, request: Request) -> Response:
        tutor_id = str(request.user.tutor_profile.pk)
        schedules = get_schedule_service().list_schedules_for_tutor(tutor_id)
        return Response({"schedules": ScheduleSerializer(schedules, many=True).data})


class TutorSchedulesView(APIView):
    """Handler for GET /api/tutors/{tutor_id}/schedules"""

    permission_classes = [IsAdmin]

    def get(self, request: Request, tutor_id: str) -> Response:
        schedules = get_schedule_service().list_schedules_for_tutor(tutor_id)
        return Response({"schedules": ScheduleSerializer(schedules, many=True).data})


class ScheduleRegistrationsView(APIView):
    """Handler for GET /api/registrations/schedule/{schedule_id}"""

    permission_classes = [IsAdmin]

    def get(self, request: Request, schedule_id: str) -> Response:
        details = get_registration_service().list_registrations_for_schedule(
            schedule_id,
            status=request.query_params.get("status"),
            session_id=request.query_params.get("session_id"),
        )
        return Response({"registrations": RegistrationDetailSerializer(details, many=True).data})


class AllRegistrationsView(APIView):
    """Handler for GET /api/registrations/all"""

    permission_classes = [IsAdmin]

    def get(self, request: Request) -> Response:
        page, limit = _page_params(request)
        result = get_registration_service().list_registrations(
            page=page, limit=limit, status=request.query_params.get("status")
        )
        return Response(
            {
                "registrations": RegistrationDetailSerializer(result.items, many=True).data,
                "pagination": pagination(result),
            }
        )


class RegistrationDetailView(APIView):
    """Handler for GET /api/registrations/{registration_id}"""

    permission_classes = [IsAdmin]

    def get(self, request: Request, registration_id: str) -> Response:
        detail = get_registration_service().get_registration(registration_id)
        return Response(RegistrationDetailSerializer(detail).data)


class RegistrationStatusView(APIView):
    """Handler for PATCH /api/registrations/{registration_id}/status"""

    permission_classes = [IsAdmin]

    def patch(self, request: Request, registration_id: str) -> Response:
        serializer = RegistrationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        registration = get_registration_service().update_registration_status(
            registration_id,
            serializer.validated_data["status"],
            notes=serializer.validated_data["notes"],
        )
        return Response(
            {
                "message": f"Registration {registration.status} successfully",
                "registration": RegistrationSerializer(registration).data,
            }
        )


class PaymentStatusView(APIView):
    """Handler for PATCH /api/registrations/{registration_id}/payment-status"""

    permission_classes = [IsAdmin]

    def patch(self, request: Request, registration_id: str) -> Response:
        serializer = PaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        registration = get_registration_service().update_payment_status(
            registration_id, serializer.validated_data["payment_status"]
        )
        return Response(
            {
                "message": "Payment status updated successfully",
                "registration": RegistrationSerializer(registration).data,
            }
        )


class PaymentLinkView(APIView):
    """Handler for POST /api/registrations/{registration_id}/payment-link"""

    permission_classes = [IsAdmin]

    def post(self, request: Request, registration_id: str) -> Response:
        serializer = PaymentLinkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        registration = get_registration_service().send_payment_link(
            registration_id, serializer.validated_data["payment_link"]
        )
        message = (
            "Payment link sent successfully"
            if registration.payment_sent
            else "Payment link saved but the email could not be sent"
        )
        return Response(
            {"message": message, "registration": RegistrationSerializer(registration).data}
        )


class SendMessageView(APIView):
    """Handler for POST /api/registrations/{registration_id}/send-message"""

    permission_classes = [IsAdmin]

    def post(self, request: Request, registration_id: str) -> Response:
        serializer = CustomMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sent = get_registration_service().send_custom_message(
            registration_id, serializer.validated_data["message"]
        )
        if not sent:
            logger.warning(f"Custom message for registration {registration_id} was not delivered")
        return Response(
            {
                "message": "Message sent successfully" if sent else "Message could not be sent",
                "email_sent": sent,
            }
        )
