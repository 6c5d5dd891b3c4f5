"""Integration tests for the schedule and registration HTTP API.

Run with: pytest tests/test_api.py -v
"""

import smtplib
from uuid import uuid4

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from schedules.models import Registration, Schedule


@pytest.fixture
def student(db_user):
    return db_user()


@pytest.fixture
def student_client(student) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=student)
    return client


def registration_payload(schedule, session=None):
    session = session or schedule.sessions.first()
    return {"schedule_id": str(schedule.id), "session_id": str(session.id)}


def pay(registration, payment_status="paid"):
    registration.payment_status = payment_status
    registration.save()


@pytest.mark.django_db
class TestAuthentication:
    """Tests for POST /api/token"""

    def test_obtain_token_pair(self, api_client: APIClient, db_user):
        user = db_user()

        response = api_client.post(
            reverse("token-obtain-pair"), {"email": user.email, "password": "pass1234"}
        )

        assert response.status_code == 200
        assert {"access", "refresh"} <= set(response.json())

    def test_bearer_token_authenticates(self, api_client: APIClient, db_user):
        user = db_user()
        token = api_client.post(
            reverse("token-obtain-pair"), {"email": user.email, "password": "pass1234"}
        ).json()["access"]
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = api_client.get(reverse("registration-mine"))

        assert response.status_code == 200

    def test_anonymous_registration_is_unauthorized(self, api_client: APIClient, db_schedule):
        response = api_client.post(reverse("registration-create"), registration_payload(db_schedule()))

        assert response.status_code == 401
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "not_authenticated"
        assert body["status_code"] == 401


@pytest.mark.django_db
class TestScheduleEndpoints:
    """Tests for /api/schedules"""

    def test_public_list_hides_drafts(self, api_client: APIClient, admin_client, db_schedule):
        db_schedule(status="draft")
        published = db_schedule()

        public = api_client.get(reverse("schedule-list")).json()
        admin = admin_client.get(reverse("schedule-list")).json()

        assert [s["id"] for s in public["schedules"]] == [str(published.id)]
        assert public["pagination"]["total"] == 1
        assert admin["pagination"]["total"] == 2

    def test_detail_includes_sessions(self, api_client: APIClient, db_schedule):
        schedule = db_schedule(sessions=2)

        body = api_client.get(reverse("schedule-detail", args=[schedule.slug])).json()

        assert body["slug"] == schedule.slug
        assert body["price"] == "50.00"
        assert [s["time"] for s in body["sessions"]] == ["18:00", "18:00"]
        assert body["sessions"][0]["start_at"].endswith(("18:00:00Z", "18:00:00+00:00"))

    def test_unknown_slug_is_not_found(self, api_client: APIClient):
        response = api_client.get(reverse("schedule-detail", args=["missing"]))

        assert response.status_code == 404
        assert response.json()["code"] == "schedule_not_found"

    def test_get_by_id(self, api_client: APIClient, db_schedule):
        schedule = db_schedule()

        ok = api_client.get(reverse("schedule-by-id", args=[schedule.id]))
        bad = api_client.get(reverse("schedule-by-id", args=["nope"]))
        missing = api_client.get(reverse("schedule-by-id", args=[uuid4()]))

        assert ok.json()["id"] == str(schedule.id)
        assert (bad.status_code, bad.json()["code"]) == (400, "invalid_id")
        assert missing.status_code == 404

    def test_tutors(self, api_client: APIClient, db_schedule, db_tutor):
        tutor = db_tutor()
        schedule = db_schedule(sessions=2, tutor=tutor)

        body = api_client.get(reverse("schedule-tutors", args=[schedule.slug])).json()

        assert [t["id"] for t in body["tutors"]] == [str(tutor.id)]

    def test_create_requires_admin(self, student_client):
        response = student_client.post(reverse("schedule-list"), {"title": "x", "text": "y"})

        assert response.status_code == 403

    def test_admin_creates_and_updates_schedule(self, admin_client, db_tutor):
        tutor = db_tutor()
        payload = {
            "title": "Life Drawing",
            "text": "Life Drawing Evenings",
            "price": "30.00",
            "status": "published",
            "sessions": [
                {
                    "start_date": "2030-01-10T00:00:00Z",
                    "end_date": "2030-01-10T00:00:00Z",
                    "time": "19:00",
                    "capacity": 6,
                    "tutor": str(tutor.id),
                }
            ],
        }

        created = admin_client.post(reverse("schedule-list"), payload, format="json")

        assert created.status_code == 201
        schedule = created.json()["schedule"]
        assert schedule["slug"] == "life-drawing-evenings"
        assert schedule["sessions"][0]["period"] == "2hours"

        updated = admin_client.put(
            reverse("schedule-detail", args=[schedule["slug"]]),
            {"text": "Life Drawing Mornings"},
            format="json",
        )

        assert updated.status_code == 200
        assert updated.json()["schedule"]["slug"] == "life-drawing-mornings"
        assert len(updated.json()["schedule"]["sessions"]) == 1

    def test_update_with_repeated_session_id_is_bad_request(self, admin_client, db_schedule):
        schedule = db_schedule()
        session = schedule.sessions.first()
        entry = {
            "id": str(session.id),
            "start_date": "2030-01-10T00:00:00Z",
            "end_date": "2030-01-10T00:00:00Z",
            "time": "19:00",
            "capacity": 4,
            "tutor": str(session.tutor_id),
        }

        response = admin_client.put(
            reverse("schedule-detail", args=[schedule.slug]),
            {"sessions": [entry, entry]},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_session"
        assert schedule.sessions.count() == 1

    def test_create_with_invalid_session(self, admin_client, db_tutor):
        response = admin_client.post(
            reverse("schedule-list"),
            {"title": "T", "text": "Bad session", "sessions": [{"time": "9"}]},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_session"

    def test_delete_with_registrations_needs_force(
        self, admin_client, db_schedule, db_user, mailoutbox
    ):
        schedule = db_schedule(sessions=2)
        user = db_user()
        for session in schedule.sessions.all():
            Registration.objects.create(user=user, schedule=schedule, session=session.id)
        url = reverse("schedule-detail", args=[schedule.slug])

        refused = admin_client.delete(url)
        forced = admin_client.delete(f"{url}?force=true")

        assert refused.status_code == 400
        assert refused.json()["code"] == "schedule_has_registrations"
        assert forced.status_code == 200
        assert forced.json()["notified_users"] == 1
        assert [m.to for m in mailoutbox] == [[user.email]]
        assert not Schedule.objects.filter(pk=schedule.pk).exists()
        assert not Registration.objects.exists()


@pytest.mark.django_db
class TestRegistrationEndpoints:
    """Tests for POST /api/registrations and the full-class request"""

    def test_register_sends_user_and_admin_emails(self, student_client, student, db_schedule, mailoutbox):
        schedule = db_schedule()

        response = student_client.post(
            reverse("registration-create"), registration_payload(schedule), format="json"
        )

        assert response.status_code == 201
        body = response.json()["registration"]
        assert (body["status"], body["payment_status"]) == ("pending", "unpaid")
        assert sorted(m.to[0] for m in mailoutbox) == sorted([student.email, "admin@example.com"])

    def test_email_failure_does_not_block_registration(
        self, student_client, db_schedule, monkeypatch
    ):
        def broken_send_mail(**kwargs):
            raise smtplib.SMTPException("down")

        monkeypatch.setattr("schedules.notifications.mail_notifier.send_mail", broken_send_mail)

        response = student_client.post(
            reverse("registration-create"), registration_payload(db_schedule()), format="json"
        )

        assert response.status_code == 201
        assert Registration.objects.count() == 1

    def test_duplicate_registration_conflicts(self, student_client, db_schedule):
        schedule = db_schedule()
        url = reverse("registration-create")
        student_client.post(url, registration_payload(schedule), format="json")

        response = student_client.post(url, registration_payload(schedule), format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "already_registered"

    def test_unverified_user_forbidden(self, db_user, db_schedule):
        client = APIClient()
        client.force_authenticate(user=db_user(verified=False))

        response = client.post(
            reverse("registration-create"), registration_payload(db_schedule()), format="json"
        )

        assert response.status_code == 403
        assert response.json()["code"] == "user_not_verified"

    def test_full_session(self, student_client, db_schedule, db_user):
        schedule = db_schedule(capacity=1)
        session = schedule.sessions.first()
        Registration.objects.create(
            user=db_user(), schedule=schedule, session=session.id, payment_status="free"
        )

        response = student_client.post(
            reverse("registration-create"), registration_payload(schedule), format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "session_full"

    def test_invalid_session_id(self, student_client, db_schedule):
        schedule = db_schedule()

        response = student_client.post(
            reverse("registration-create"),
            {"schedule_id": str(schedule.id), "session_id": "abc"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_id"

    def test_full_class_request(self, student_client, db_schedule, db_user, mailoutbox):
        schedule = db_schedule(capacity=1)
        url = reverse("registration-full-class-request")

        open_seats = student_client.post(url, registration_payload(schedule), format="json")
        Registration.objects.create(
            user=db_user(), schedule=schedule, session=schedule.sessions.first().id,
            payment_status="paid",
        )
        requested = student_client.post(
            url, {**registration_payload(schedule), "message": "Waitlist me"}, format="json"
        )

        assert open_seats.json()["code"] == "session_has_capacity"
        assert requested.status_code == 201
        assert requested.json()["registration"]["is_full_class_request"] is True
        assert requested.json()["registration"]["notes"] == "Waitlist me"
        assert [m.to for m in mailoutbox] == [["admin@example.com"]]

    def test_my_registrations(self, student_client, student, db_schedule, db_user):
        mine = db_schedule()
        Registration.objects.create(user=student, schedule=mine, session=mine.sessions.first().id)
        other = db_schedule()
        Registration.objects.create(user=db_user(), schedule=other, session=other.sessions.first().id)

        body = student_client.get(reverse("registration-mine")).json()

        assert [r["schedule"]["id"] for r in body["registrations"]] == [str(mine.id)]
        assert body["registrations"][0]["user"]["email"] == student.email


@pytest.mark.django_db
class TestCapacityEndpoint:
    def test_reports_each_session(self, api_client: APIClient, db_schedule, db_user):
        schedule = db_schedule(capacity=2, sessions=2)
        first = schedule.sessions.first()
        Registration.objects.create(
            user=db_user(), schedule=schedule, session=first.id, status="approved",
            payment_status="paid",
        )

        response = api_client.get(reverse("schedule-capacity", args=[schedule.id]))

        assert response.status_code == 200
        sessions = response.json()["sessions"]
        assert sessions[0] == {
            **sessions[0],
            "session_id": str(first.id),
            "total_capacity": 2,
            "approved_count": 1,
            "pending_count": 0,
            "paid_count": 1,
            "available": 1,
            "is_full": False,
        }
        assert sessions[1]["paid_count"] == 0


@pytest.mark.django_db
class TestAdminRegistrationEndpoints:
    """Tests for the admin review, payment and messaging endpoints"""

    @pytest.fixture
    def registration(self, student, db_schedule):
        schedule = db_schedule(capacity=1)
        return Registration.objects.create(
            user=student, schedule=schedule, session=schedule.sessions.first().id
        )

    def test_students_cannot_review(self, student_client, registration):
        response = student_client.patch(
            reverse("registration-status", args=[registration.id]), {"status": "approved"}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "permission_denied"

    def test_get_registration(self, admin_client, registration, student):
        body = admin_client.get(reverse("registration-detail", args=[registration.id])).json()

        assert body["id"] == str(registration.id)
        assert body["user"]["email"] == student.email
        assert body["session"]["id"] == str(registration.session)

    def test_approve_sends_confirmation(self, admin_client, registration, mailoutbox):
        response = admin_client.patch(
            reverse("registration-status", args=[registration.id]),
            {"status": "approved"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["registration"]["status"] == "approved"
        assert mailoutbox[0].subject.startswith("Registration Approved")

    def test_approval_email_failure_keeps_approval(self, admin_client, registration, monkeypatch):
        def broken_send_mail(**kwargs):
            raise smtplib.SMTPException("down")

        monkeypatch.setattr("schedules.notifications.mail_notifier.send_mail", broken_send_mail)

        response = admin_client.patch(
            reverse("registration-status", args=[registration.id]),
            {"status": "approved"},
            format="json",
        )

        assert response.status_code == 500
        assert response.json()["code"] == "notification_failed"
        registration.refresh_from_db()
        assert registration.status == "approved"

    def test_reject_with_reason(self, admin_client, registration):
        response = admin_client.patch(
            reverse("registration-status", args=[registration.id]),
            {"status": "rejected", "notes": "No show"},
            format="json",
        )

        assert response.json()["registration"]["rejection_reason"] == "No show"

    def test_invalid_status_value(self, admin_client, registration):
        response = admin_client.patch(
            reverse("registration-status", args=[registration.id]),
            {"status": "done"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_status"

    def test_payment_status_respects_capacity(self, admin_client, registration, db_user):
        other = Registration.objects.create(
            user=db_user(), schedule=registration.schedule, session=registration.session
        )
        url = reverse("registration-payment-status", args=[registration.id])

        paid = admin_client.patch(url, {"payment_status": "paid"}, format="json")
        again = admin_client.patch(url, {"payment_status": "paid"}, format="json")
        blocked = admin_client.patch(
            reverse("registration-payment-status", args=[other.id]),
            {"payment_status": "paid"},
            format="json",
        )

        assert paid.status_code == 200
        assert again.status_code == 200
        assert blocked.status_code == 400
        assert blocked.json()["code"] == "session_full"

    def test_invalid_payment_status_value(self, admin_client, registration):
        response = admin_client.patch(
            reverse("registration-payment-status", args=[registration.id]),
            {"payment_status": "refunded"},
            format="json",
        )

        assert response.json()["code"] == "invalid_payment_status"

    def test_payment_link(self, admin_client, registration, student, mailoutbox):
        response = admin_client.post(
            reverse("registration-payment-link", args=[registration.id]),
            {"payment_link": "https://pay.example.com/abc"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["registration"]["payment_sent"] is True
        assert "https://pay.example.com/abc" in mailoutbox[0].body
        assert mailoutbox[0].to == [student.email]

    def test_send_message(self, admin_client, registration, mailoutbox):
        url = reverse("registration-send-message", args=[registration.id])

        sent = admin_client.post(url, {"message": "See you soon"}, format="json")
        empty = admin_client.post(url, {"message": ""}, format="json")

        assert sent.json()["email_sent"] is True
        assert "See you soon" in mailoutbox[0].body
        assert empty.json()["code"] == "invalid_message"

    def test_list_all_and_by_schedule(self, admin_client, registration):
        everything = admin_client.get(reverse("registration-all"), {"limit": 5}).json()
        by_schedule = admin_client.get(
            reverse("schedule-registrations", args=[registration.schedule_id]),
            {"status": "pending"},
        ).json()

        assert everything["pagination"]["total"] == 1
        assert [r["id"] for r in by_schedule["registrations"]] == [str(registration.id)]


@pytest.mark.django_db
class TestTutorEndpoint:
    """Tests for GET /api/registrations/tutor/schedule/{id}"""

    def test_assigned_tutor_sees_registrations(self, db_user, db_tutor, db_schedule, student):
        tutor_user = db_user()
        schedule = db_schedule(tutor=db_tutor(user=tutor_user))
        Registration.objects.create(
            user=student, schedule=schedule, session=schedule.sessions.first().id
        )
        client = APIClient()
        client.force_authenticate(user=tutor_user)

        response = client.get(reverse("tutor-schedule-registrations", args=[schedule.id]))

        assert response.status_code == 200
        assert len(response.json()["registrations"]) == 1

    def test_other_tutor_is_forbidden(self, db_user, db_tutor, db_schedule):
        schedule = db_schedule()
        outsider = db_user()
        db_tutor(user=outsider)
        client = APIClient()
        client.force_authenticate(user=outsider)

        response = client.get(reverse("tutor-schedule-registrations", args=[schedule.id]))

        assert response.status_code == 403

    def test_non_tutor_is_forbidden(self, student_client, db_schedule):
        response = student_client.get(
            reverse("tutor-schedule-registrations", args=[db_schedule().id])
        )

        assert response.status_code == 403
