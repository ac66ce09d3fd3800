"""Pydantic models."""

from .apartment import Apartment, LocalizedText
from .availability import (
    AvailabilityResponse,
    BookedRange,
    ErrorResponse,
    StayCheckResponse,
)
from .season import MonthDayRange, SeasonConfig, SeasonRule

__all__ = [
    "Apartment",
    "LocalizedText",
    "AvailabilityResponse",
    "BookedRange",
    "ErrorResponse",
    "StayCheckResponse",
    "MonthDayRange",
    "SeasonConfig",
    "SeasonRule",
]
