"""Availability API routes."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from stieregg.config import get_settings
from stieregg.models.apartment import LocalizedText
from stieregg.models.availability import AvailabilityResponse, ErrorResponse, StayCheckResponse
from stieregg.services.availability_service import AvailabilityError, AvailabilityService
from stieregg.services.booking_service import build_mailto_link
from stieregg.services.catalog import ApartmentNotFoundError
from stieregg.utils.dates import parse_date
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Availability"])

# Service will be injected from main.py
_availability_service: Optional[AvailabilityService] = None


def set_availability_service(service: Optional[AvailabilityService]):
    """Set availability service instance."""
    global _availability_service
    _availability_service = service


def get_availability_service() -> AvailabilityService:
    """Get availability service."""
    if _availability_service is None:
        raise HTTPException(500, "Availability service not initialized")
    return _availability_service


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


class ApartmentSummary(BaseModel):
    """Apartment entry for the listing endpoint."""

    id: str
    slug: str
    name: LocalizedText
    capacity: int


class MailtoResponse(BaseModel):
    """Composed booking inquiry link."""

    mailto: str


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/availability", response_model=AvailabilityResponse, responses=ERROR_RESPONSES)
async def get_availability(
    slug: Optional[str] = Query(None, description="Apartment slug"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Merged booked date ranges of one apartment."""
    if not slug or not slug.strip():
        return error_response(400, "Missing slug parameter")

    try:
        booked_ranges = await service.get_booked_ranges(slug)
    except ApartmentNotFoundError:
        return error_response(404, "Apartment not found")
    except AvailabilityError as e:
        logger.error("availability_endpoint_failed", slug=slug, error=str(e))
        return error_response(500, "Failed to fetch availability")

    return AvailabilityResponse(slug=slug, booked_ranges=booked_ranges)


@router.get("/availability/check", response_model=StayCheckResponse, responses=ERROR_RESPONSES)
async def check_stay(
    slug: Optional[str] = Query(None),
    check_in: Optional[str] = Query(None, alias="checkIn"),
    check_out: Optional[str] = Query(None, alias="checkOut"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Availability and seasonal minimum-stay verdict for a requested stay."""
    if not slug:
        return error_response(400, "Missing slug parameter")

    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None:
        return error_response(400, "checkIn and checkOut must be YYYY-MM-DD dates")

    try:
        result = await service.check_stay(slug, start, end)
    except ApartmentNotFoundError:
        return error_response(404, "Apartment not found")
    except AvailabilityError:
        return error_response(500, "Failed to fetch availability")

    return StayCheckResponse(
        slug=result.slug,
        check_in=result.check_in,
        check_out=result.check_out,
        available=result.available,
        nights=result.nights,
        minimum_nights=result.minimum_nights,
        meets_minimum_nights=result.meets_minimum_nights,
        season=result.season,
    )


@router.get("/apartments", response_model=list[ApartmentSummary])
async def list_apartments(
    guests: int = Query(1, ge=1, le=20),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Configured apartments that fit the party size."""
    return [
        ApartmentSummary(id=a.id, slug=a.slug, name=a.name, capacity=a.capacity)
        for a in service.catalog
        if a.capacity >= guests
    ]


@router.get("/booking/mailto", response_model=MailtoResponse, responses=ERROR_RESPONSES)
async def booking_mailto(
    slug: str = Query(...),
    check_in: Optional[str] = Query(None, alias="checkIn"),
    check_out: Optional[str] = Query(None, alias="checkOut"),
    guests: Optional[int] = Query(None, ge=1, le=20),
    name: Optional[str] = Query(None),
    lang: Literal["de", "en"] = Query("en"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Compose the booking inquiry email link."""
    apartment = service.catalog.find(slug)
    if apartment is None:
        return error_response(404, "Apartment not found")

    booking = get_settings().booking
    try:
        mailto = build_mailto_link(
            apartment,
            check_in,
            check_out,
            guests=guests,
            guest_name=name,
            locale=lang,
            email=booking.inquiry_email,
            site_url=booking.site_url,
        )
    except ValueError as e:
        return error_response(400, str(e))

    return MailtoResponse(mailto=mailto)
