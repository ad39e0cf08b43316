# ================================
# BOOKING API ROUTES (api/v1/bookings.py)
# ================================

from fastapi import APIRouter, Depends

from app.dependencies import get_booking_service, require_admin_key
from app.schemas.booking import BookingResponse
from app.services.booking_service import BookingService

router = APIRouter()

@router.get("/{booking_code}", response_model=BookingResponse)
async def get_booking(
    booking_code: str,
    service: BookingService = Depends(get_booking_service),
    _: bool = Depends(require_admin_key)
):
    """Booking details for operators (never includes the access PIN)"""
    return BookingResponse.model_validate(service.get_booking(booking_code))
