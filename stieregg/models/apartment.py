"""Pydantic models for apartment data."""

from typing import Literal

from pydantic import BaseModel, Field

Locale = Literal["de", "en"]


class LocalizedText(BaseModel):
    """German/English text pair."""

    de: str
    en: str

    def get(self, locale: Locale) -> str:
        return self.de if locale == "de" else self.en


class Apartment(BaseModel):
    """Apartment record from static configuration."""

    id: str
    slug: str
    name: LocalizedText
    calendar_urls: list[str] = []
    capacity: int = Field(ge=1)
    # Per-season minimum nights, keyed by season tag
    min_nights: dict[str, int] = {}

    def minimum_nights_override(self, tag: str) -> int | None:
        """Apartment-specific minimum nights for a season tag, if configured."""
        value = self.min_nights.get(tag)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None
