import pytest

from servicehub import email_service
from servicehub.appwrite_client import AppwriteException
from servicehub.domain.bookings.service import booking_sort_key, read_status, reschedule_candidates
from servicehub.schema_tolerance import rejected_fields

from conftest import APPOINTMENT_ATTRIBUTES

BOOKING = {
    "serviceName": "Home Cleaning Service",
    "serviceDescription": "Deep clean of kitchen and bathrooms",
    "servicePrice": 149,
    "serviceDuration": 180,
    "bookingDate": "2026-11-03",
    "bookingTime": "10:30",
    "consentForm": True,
    "city": "Halifax",
    "age": 34,
}


def seed_booking(fake_appwrite, owner_id="user_ann", email="ann@servicehub.io", **fields):
    data = {
        "name": "Ann Lee",
        "email": email,
        "serviceName": "Home Cleaning Service",
        "servicePrice": 149,
        "serviceDuration": 180,
        "bookingDate": "2026-11-03T10:30:00.000+00:00",
        "bookingTime": "10:30",
        "consentForm": True,
        **fields,
    }
    if owner_id:
        data["userId"] = owner_id
    return fake_appwrite.add_document("appointments", data)


def test_create_booking_stores_full_payload(client, fake_appwrite):
    response = client.post("/bookings", json=BOOKING)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["booking"]["status"] == "scheduled"
    assert body["email_sent"] is False

    [stored] = fake_appwrite.collection("appointments")
    assert stored["userId"] == "user_ann"
    assert stored["status"] == "scheduled"
    assert stored["email"] == "ann@servicehub.io"
    assert stored["name"] == "Ann Lee"
    assert stored["bookingDate"] == "2026-11-03T10:30:00.000+00:00"
    assert stored["bookingTime"] == "10:30"
    assert stored["city"] == "Halifax"
    assert "serviceNameFull" not in stored


def test_create_booking_without_status_attribute(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = APPOINTMENT_ATTRIBUTES - {"status"}

    response = client.post("/bookings", json=BOOKING)

    assert response.status_code == 200
    [stored] = fake_appwrite.collection("appointments")
    assert "status" not in stored
    assert stored["userId"] == "user_ann"
    assert response.json()["booking"]["status"] == "scheduled"


def test_booking_without_user_id_attribute_is_listed_by_email(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = APPOINTMENT_ATTRIBUTES - {"userId"}

    created = client.post("/bookings", json=BOOKING)
    assert created.status_code == 200
    [stored] = fake_appwrite.collection("appointments")
    assert "userId" not in stored
    assert stored["status"] == "scheduled"

    listed = client.get("/bookings")

    assert listed.status_code == 200
    assert [b["id"] for b in listed.json()] == [stored["$id"]]


def test_list_falls_back_through_email_field_variants(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = {"UserEmail", "serviceName", "bookingDate", "bookingTime"}
    fake_appwrite.add_document(
        "appointments",
        {"UserEmail": "ann@servicehub.io", "serviceName": "Yoga", "bookingDate": "2026-12-01T09:00:00.000+00:00"},
    )
    fake_appwrite.add_document(
        "appointments",
        {"UserEmail": "bo@servicehub.io", "serviceName": "Yoga", "bookingDate": "2026-12-01T09:00:00.000+00:00"},
    )

    response = client.get("/bookings")

    assert response.status_code == 200
    [booking] = response.json()
    assert booking["email"] == "ann@servicehub.io"
    queried = [path for method, path, _ in fake_appwrite.requests if method == "GET"]
    assert len(queried) == 5  # userId, email, Email, userEmail, UserEmail


def test_list_is_ordered_by_booking_date(client, fake_appwrite):
    for day in ("2026-12-10", "2026-11-02", "2026-11-20"):
        seed_booking(fake_appwrite, bookingDate=f"{day}T09:00:00.000+00:00")
    seed_booking(fake_appwrite, owner_id="user_bo", email="bo@servicehub.io")

    response = client.get("/bookings")

    dates = [b["bookingDate"][:10] for b in response.json()]
    assert dates == ["2026-11-02", "2026-11-20", "2026-12-10"]


def test_list_returns_every_page(client, fake_appwrite):
    for n in range(130):
        day = 1 + n % 28
        seed_booking(fake_appwrite, bookingDate=f"2026-{11 + n // 100:02d}-{day:02d}T09:00:00.000+00:00")

    response = client.get("/bookings")

    assert response.status_code == 200
    assert len(response.json()) == 130
    pages = [path for method, path, _ in fake_appwrite.requests if method == "GET"]
    assert len(pages) == 2


def test_booking_sort_key_orders_by_slot():
    documents = [
        {"$id": "late", "bookingDate": "2026-12-01T09:00:00.000+00:00"},
        {"$id": "undated"},
        {"$id": "early", "bookingDate": "2026-11-02T08:00:00.000Z"},
        {"$id": "garbled", "bookingDate": "next tuesday"},
        {"$id": "naive", "bookingDate": "2026-11-15T12:00:00"},
    ]

    ordered = sorted(documents, key=booking_sort_key)

    assert [d["$id"] for d in ordered[:3]] == ["early", "naive", "late"]
    assert {d["$id"] for d in ordered[3:]} == {"undated", "garbled"}


def test_list_normalizes_status_variants(client, fake_appwrite):
    seed_booking(fake_appwrite, bookingDate="2026-11-01T09:00:00.000+00:00", status="canceled")
    seed_booking(fake_appwrite, bookingDate="2026-11-02T09:00:00.000+00:00", appointmentStatus="reschedule_requested")
    seed_booking(fake_appwrite, bookingDate="2026-11-03T09:00:00.000+00:00")

    statuses = [b["status"] for b in client.get("/bookings").json()]

    assert statuses == ["cancelled", "reschedule_requested", "scheduled"]


def test_long_service_name_is_truncated_with_full_copy(client, fake_appwrite):
    long_name = "Professional Photography Session with Outdoor Location Scouting"

    response = client.post("/bookings", json={**BOOKING, "serviceName": long_name})

    [stored] = fake_appwrite.collection("appointments")
    assert stored["serviceName"] == long_name[:50]
    assert stored["serviceNameFull"] == long_name
    assert response.json()["booking"]["serviceName"] == long_name


def test_create_booking_requires_consent(client, fake_appwrite):
    response = client.post("/bookings", json={**BOOKING, "consentForm": False})

    assert response.status_code == 400
    assert fake_appwrite.collection("appointments") == []


def test_create_booking_rejects_bad_time(client):
    response = client.post("/bookings", json={**BOOKING, "bookingTime": "25:00"})

    assert response.status_code == 422


def test_create_booking_with_incompatible_collection(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = APPOINTMENT_ATTRIBUTES - {"consentForm"}

    response = client.post("/bookings", json=BOOKING)

    assert response.status_code == 500
    assert "consentForm" in response.json()["detail"]


def test_create_booking_sends_confirmation(client, fake_appwrite, monkeypatch):
    sent = {}

    async def fake_send(to, **fields):
        sent["to"] = to
        sent.update(fields)
        return {"id": "email_123"}

    monkeypatch.setattr(email_service, "send_booking_confirmation", fake_send)

    response = client.post("/bookings", json=BOOKING)

    body = response.json()
    assert body["email_sent"] is True
    assert body["email_status"] == "Confirmation email sent"
    assert sent["to"] == "ann@servicehub.io"
    assert sent["service_name"] == "Home Cleaning Service"
    assert sent["booking_date_iso"] == "2026-11-03T10:30:00.000+00:00"
    assert sent["duration_minutes"] == 180


def test_email_failure_does_not_fail_booking(client, fake_appwrite, monkeypatch):
    async def broken_send(to, **fields):
        raise RuntimeError("SMTP relay refused connection")

    monkeypatch.setattr(email_service, "send_booking_confirmation", broken_send)

    response = client.post("/bookings", json=BOOKING)

    assert response.status_code == 200
    assert response.json()["email_sent"] is False
    assert response.json()["email_status"] == "SMTP relay refused connection"
    assert len(fake_appwrite.collection("appointments")) == 1


def test_cancel_leaves_slot_untouched(client, fake_appwrite):
    booking = seed_booking(fake_appwrite, status="scheduled")

    response = client.post(f"/bookings/{booking['$id']}/cancel")

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "cancelled"
    stored = fake_appwrite.documents["appointments"][booking["$id"]]
    assert stored["status"] == "cancelled"
    assert stored["bookingDate"] == "2026-11-03T10:30:00.000+00:00"
    assert stored["bookingTime"] == "10:30"


def test_cancel_uses_first_supported_status_field(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = (APPOINTMENT_ATTRIBUTES - {"status"}) | {"bookingStatus"}
    booking = seed_booking(fake_appwrite)

    response = client.post(f"/bookings/{booking['$id']}/cancel")

    assert response.status_code == 200
    stored = fake_appwrite.documents["appointments"][booking["$id"]]
    assert stored["bookingStatus"] == "cancelled"
    attempts = fake_appwrite.writes("PATCH", "appointments")
    assert [sorted(a["data"]) for a in attempts] == [["status"], ["appointmentStatus"], ["bookingStatus"]]


def test_cancel_falls_back_to_boolean_marker(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = (APPOINTMENT_ATTRIBUTES - {"status"}) | {"isCancelled"}
    booking = seed_booking(fake_appwrite)

    response = client.post(f"/bookings/{booking['$id']}/cancel")

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "cancelled"
    assert fake_appwrite.documents["appointments"][booking["$id"]]["isCancelled"] is True


def test_cancel_without_any_status_field_is_configuration_error(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = APPOINTMENT_ATTRIBUTES - {"status"}
    booking = seed_booking(fake_appwrite)

    response = client.post(f"/bookings/{booking['$id']}/cancel")

    assert response.status_code == 500
    assert "status" in response.json()["detail"]
    assert len(fake_appwrite.writes("PATCH", "appointments")) == 4


def test_reschedule_request_keeps_booked_slot(client, fake_appwrite):
    booking = seed_booking(fake_appwrite, status="scheduled")

    response = client.post(
        f"/bookings/{booking['$id']}/reschedule-request",
        json={"requestedDate": "2026-11-10", "requestedTime": "14:00"},
    )

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "reschedule_requested"
    stored = fake_appwrite.documents["appointments"][booking["$id"]]
    assert stored["rescheduleRequestedDate"] == "2026-11-10T14:00:00.000+00:00"
    assert stored["rescheduleRequestedTime"] == "14:00"
    assert stored["bookingDate"] == "2026-11-03T10:30:00.000+00:00"
    assert stored["bookingTime"] == "10:30"


def test_reschedule_candidates_never_touch_slot():
    for candidate in reschedule_candidates("2026-11-10T14:00:00.000+00:00", "14:00"):
        assert "bookingDate" not in candidate
        assert "bookingTime" not in candidate


def test_reschedule_without_supported_fields_is_configuration_error(client, fake_appwrite):
    fake_appwrite.schemas["appointments"] = APPOINTMENT_ATTRIBUTES - {
        "rescheduleRequestedDate",
        "rescheduleRequestedTime",
    }
    booking = seed_booking(fake_appwrite)

    response = client.post(
        f"/bookings/{booking['$id']}/reschedule-request",
        json={"requestedDate": "2026-11-10", "requestedTime": "14:00"},
    )

    assert response.status_code == 500
    stored = fake_appwrite.documents["appointments"][booking["$id"]]
    assert stored["bookingDate"] == "2026-11-03T10:30:00.000+00:00"


def test_actions_on_other_users_booking_are_not_found(client, fake_appwrite):
    booking = seed_booking(fake_appwrite, owner_id="user_bo", email="bo@servicehub.io")

    assert client.post(f"/bookings/{booking['$id']}/cancel").status_code == 404
    assert client.delete(f"/bookings/{booking['$id']}").status_code == 404
    assert fake_appwrite.writes("PATCH", "appointments") == []
    assert booking["$id"] in fake_appwrite.documents["appointments"]


def test_ownership_by_email_when_user_id_missing(client, fake_appwrite):
    booking = seed_booking(fake_appwrite, owner_id=None, email="ANN@servicehub.io")

    response = client.delete(f"/bookings/{booking['$id']}")

    assert response.status_code == 200


def test_unknown_booking_is_not_found(client):
    assert client.post("/bookings/missing/cancel").status_code == 404


def test_delete_booking(client, fake_appwrite):
    booking = seed_booking(fake_appwrite)

    response = client.delete(f"/bookings/{booking['$id']}")

    assert response.status_code == 200
    assert response.json()["message"] == "Booking deleted"
    assert fake_appwrite.collection("appointments") == []


@pytest.mark.parametrize(
    "message, expected",
    [
        ('Invalid document structure: Unknown attribute: "userId"', ["userId"]),
        ('Invalid document structure: Unknown attribute: "serviceNameFull"', ["serviceNameFull"]),
        ("Invalid document structure: Missing required attribute", []),
    ],
)
def test_rejected_fields(message, expected):
    err = AppwriteException(message, code=400)

    assert rejected_fields(err, ["userId", "status", "serviceNameFull"]) == expected


def test_read_status_defaults_to_scheduled():
    assert read_status({}) == "scheduled"
    assert read_status({"isCancelled": True}) == "cancelled"
    assert read_status({"bookingStatus": "Canceled"}) == "cancelled"
