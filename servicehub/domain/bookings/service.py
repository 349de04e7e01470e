"""Booking service - business logic for the appointment lifecycle"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import HTTPException

from ... import config
from ...appwrite_client import AppwriteClient, AppwriteException, permissions_for_user
from ...exceptions import ConfigurationError
from ...schema_tolerance import is_unknown_attribute_error
from ...schemas import CurrentUser
from ...services.notification_service import notify_booking_confirmed
from ...utils.sanitization import truncate
from .repository import EMAIL_FIELDS, BookingRepository
from .schemas import (
    BookingActionResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    RescheduleRequest,
)

logger = logging.getLogger(__name__)

STATUS_FIELDS = ("status", "appointmentStatus", "bookingStatus")

STATUS_SCHEDULED = "scheduled"
STATUS_CANCELLED = "cancelled"
STATUS_RESCHEDULE_REQUESTED = "reschedule_requested"

APPOINTMENT_SCHEMA_HINT = (
    "The appointments collection rejected the booking. Make sure it has the attributes "
    "name, email, serviceName, serviceDescription, servicePrice, serviceDuration, "
    "bookingDate, bookingTime and consentForm."
)
CANCEL_SCHEMA_HINT = (
    "Cannot cancel: the appointments collection has no status attribute. Add a string "
    "attribute 'status' (or a boolean 'isCancelled') to the collection."
)
RESCHEDULE_SCHEMA_HINT = (
    "Cannot request a reschedule: the appointments collection has no attributes for it. "
    "Add string attributes 'rescheduleRequestedDate' and 'rescheduleRequestedTime' "
    "(plus 'status' or a boolean 'rescheduleRequested')."
)


def slot_iso(day: date, time_str: str) -> str:
    """Combine a calendar date and HH:MM into the stored ISO datetime"""
    return f"{day.isoformat()}T{time_str}:00.000+00:00"


def normalize_status(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = str(value).strip().lower()
    if value == "canceled":
        return STATUS_CANCELLED
    return value


def read_status(document: dict) -> str:
    """Display status from the first populated status variant"""
    for field in STATUS_FIELDS:
        status = normalize_status(document.get(field))
        if status:
            return status
    if document.get("isCancelled") is True:
        return STATUS_CANCELLED
    if document.get("rescheduleRequested") is True:
        return STATUS_RESCHEDULE_REQUESTED
    return STATUS_SCHEDULED


def booking_sort_key(document: dict) -> datetime:
    raw = document.get("bookingDate")
    if not raw:
        return datetime.max.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return datetime.max.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_booking_response(document: dict) -> BookingResponse:
    email = next((document[f] for f in EMAIL_FIELDS if document.get(f)), None)
    return BookingResponse(
        id=document.get("$id", ""),
        serviceName=document.get("serviceNameFull") or document.get("serviceName") or "",
        serviceDescription=document.get("serviceDescription"),
        servicePrice=document.get("servicePrice"),
        serviceDuration=document.get("serviceDuration"),
        bookingDate=document.get("bookingDate"),
        bookingTime=document.get("bookingTime"),
        consentForm=document.get("consentForm"),
        name=document.get("name"),
        email=email,
        city=document.get("city"),
        age=document.get("age"),
        status=read_status(document),
        rescheduleRequestedDate=document.get("rescheduleRequestedDate") or document.get("requestedDate"),
        rescheduleRequestedTime=document.get("rescheduleRequestedTime") or document.get("requestedTime"),
        createdAt=document.get("$createdAt"),
    )


def is_owned_by(document: dict, user: CurrentUser) -> bool:
    if document.get("userId"):
        return document["userId"] == user.id
    if not user.email:
        return False
    email = user.email.lower()
    return any(str(document.get(f) or "").lower() == email for f in EMAIL_FIELDS)


def cancel_candidates() -> list[dict]:
    return [{field: STATUS_CANCELLED} for field in STATUS_FIELDS] + [{"isCancelled": True}]


def reschedule_candidates(requested_iso: str, requested_time: str) -> list[dict]:
    """Payload shapes for a reschedule request; the booked slot is never touched"""
    detail = {"rescheduleRequestedDate": requested_iso, "rescheduleRequestedTime": requested_time}
    short_detail = {"requestedDate": requested_iso, "requestedTime": requested_time}
    return [
        *({field: STATUS_RESCHEDULE_REQUESTED, **detail} for field in STATUS_FIELDS),
        {"rescheduleRequested": True, **detail},
        {"status": STATUS_RESCHEDULE_REQUESTED, **short_detail},
        {"rescheduleRequested": True, **short_detail},
    ]


class BookingService:
    """Service layer for bookings"""

    def __init__(self, client: AppwriteClient):
        self.client = client

    def _repo(self) -> BookingRepository:
        return BookingRepository(self.client, config.get_database_config())

    async def _load_owned(self, repo: BookingRepository, booking_id: str, user: CurrentUser) -> dict:
        try:
            document = await repo.get(booking_id)
        except AppwriteException as e:
            if e.code == 404:
                raise HTTPException(status_code=404, detail="Booking not found")
            raise
        if not is_owned_by(document, user):
            raise HTTPException(status_code=404, detail="Booking not found")
        return document

    async def create_booking(self, user: CurrentUser, data: BookingCreate) -> BookingCreateResponse:
        """Persist a confirmed appointment and email a confirmation"""
        if not data.consentForm:
            raise HTTPException(status_code=400, detail="Consent is required to book a service")

        booking_date_iso = slot_iso(data.bookingDate, data.bookingTime)
        service_name = truncate(data.serviceName, config.SERVICE_NAME_MAX_LENGTH)

        base = {
            "name": user.name or user.email,
            "email": user.email,
            "serviceName": service_name,
            "serviceDescription": data.serviceDescription,
            "servicePrice": data.servicePrice,
            "serviceDuration": data.serviceDuration,
            "bookingDate": booking_date_iso,
            "bookingTime": data.bookingTime,
            "consentForm": data.consentForm,
        }
        if data.city:
            base["city"] = data.city
        if data.age is not None:
            base["age"] = data.age

        optional = {"userId": user.id, "status": STATUS_SCHEDULED}
        if service_name != data.serviceName:
            optional["serviceNameFull"] = data.serviceName

        repo = self._repo()
        try:
            document, payload = await repo.create(base, optional, permissions_for_user(user.id))
        except AppwriteException as e:
            if is_unknown_attribute_error(e):
                raise ConfigurationError(f"{APPOINTMENT_SCHEMA_HINT} ({e.message})")
            raise

        dropped = sorted(set(optional) - set(payload))
        if dropped:
            logger.warning(f"⚠️ Booking {document.get('$id')} saved without {dropped}")
        logger.info(f"✅ Booking {document.get('$id')} created for {user.email}")

        notification = await notify_booking_confirmed(
            user.email,
            user_name=user.name,
            service_name=data.serviceName,
            booking_date_iso=booking_date_iso,
            booking_time=data.bookingTime,
            duration_minutes=data.serviceDuration,
            price=data.servicePrice,
        )

        return BookingCreateResponse(
            booking=to_booking_response({**payload, **document}),
            email_sent=notification["email_sent"],
            email_status=notification["email_status"],
        )

    async def list_bookings(self, user: CurrentUser) -> list[BookingResponse]:
        """The user's bookings, earliest slot first"""
        documents = await self._repo().list_for_user(user.id, user.email)
        documents = sorted(documents, key=booking_sort_key)
        return [to_booking_response(d) for d in documents]

    async def cancel_booking(self, user: CurrentUser, booking_id: str) -> BookingActionResponse:
        repo = self._repo()
        document = await self._load_owned(repo, booking_id, user)

        result = await repo.update_first_accepted(booking_id, cancel_candidates())
        if result is None:
            raise ConfigurationError(CANCEL_SCHEMA_HINT)

        updated, accepted = result
        logger.info(f"🗑️ Booking {booking_id} cancelled via {sorted(accepted)}")
        return BookingActionResponse(
            booking_id=booking_id,
            message="Booking cancelled",
            booking=to_booking_response({**document, **accepted, **updated}),
        )

    async def request_reschedule(
        self, user: CurrentUser, booking_id: str, data: RescheduleRequest
    ) -> BookingActionResponse:
        """Record a requested new slot for staff to confirm"""
        repo = self._repo()
        document = await self._load_owned(repo, booking_id, user)

        requested_iso = slot_iso(data.requestedDate, data.requestedTime)
        result = await repo.update_first_accepted(
            booking_id, reschedule_candidates(requested_iso, data.requestedTime)
        )
        if result is None:
            raise ConfigurationError(RESCHEDULE_SCHEMA_HINT)

        updated, accepted = result
        logger.info(f"📅 Reschedule requested for booking {booking_id} to {requested_iso}")
        return BookingActionResponse(
            booking_id=booking_id,
            message="Reschedule request submitted",
            booking=to_booking_response({**document, **accepted, **updated}),
        )

    async def delete_booking(self, user: CurrentUser, booking_id: str) -> BookingActionResponse:
        repo = self._repo()
        await self._load_owned(repo, booking_id, user)
        await repo.delete(booking_id)
        logger.info(f"🗑️ Booking {booking_id} deleted")
        return BookingActionResponse(booking_id=booking_id, message="Booking deleted")
