"""Pydantic models for booked ranges and availability payloads."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BookedRange(BaseModel):
    """Inclusive start/end dates during which an apartment is unavailable."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "BookedRange":
        if self.start > self.end:
            raise ValueError("BookedRange start must not be after end")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        """Number of booked days, inclusive."""
        return (self.end - self.start).days + 1


class AvailabilityResponse(BaseModel):
    """Response schema for GET /availability."""

    model_config = ConfigDict(populate_by_name=True)

    slug: str
    booked_ranges: list[BookedRange] = Field(default_factory=list, alias="bookedRanges")


class StayCheckResponse(BaseModel):
    """Response schema for GET /availability/check."""

    model_config = ConfigDict(populate_by_name=True)

    slug: str
    check_in: date = Field(alias="checkIn")
    check_out: date = Field(alias="checkOut")
    available: bool
    nights: int
    minimum_nights: int = Field(alias="minimumNights")
    meets_minimum_nights: bool = Field(alias="meetsMinimumNights")
    season: str


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""

    error: str
