"""Booking router"""

from typing import List

from fastapi import APIRouter, Depends

from ...appwrite_client import AppwriteClient, get_appwrite_client
from ...auth import get_current_user
from ...schemas import CurrentUser
from .schemas import (
    BookingActionResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    RescheduleRequest,
)
from .service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(client: AppwriteClient = Depends(get_appwrite_client)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(client)


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Get all bookings for the current user"""
    return await service.list_bookings(current_user)


@router.post("", response_model=BookingCreateResponse)
async def create_booking(
    data: BookingCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Book a service into a date/time slot"""
    return await service.create_booking(current_user, data)


@router.post("/{booking_id}/cancel", response_model=BookingActionResponse)
async def cancel_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.cancel_booking(current_user, booking_id)


@router.post("/{booking_id}/reschedule-request", response_model=BookingActionResponse)
async def request_reschedule(
    booking_id: str,
    data: RescheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Ask for a new slot; the existing slot stays booked until staff confirm"""
    return await service.request_reschedule(current_user, booking_id, data)


@router.delete("/{booking_id}", response_model=BookingActionResponse)
async def delete_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.delete_booking(current_user, booking_id)
