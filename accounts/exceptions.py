from rest_framework import status
from rest_framework.exceptions import APIException


class UserExistsError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A user with this email already exists"
    default_code = "user_exists"


class EmailDeliveryError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The email could not be sent. Please try again later."
    default_code = "email_send_failed"


class TutorAssignedError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Tutor is assigned to schedule sessions and cannot be deleted"
    default_code = "tutor_assigned"
