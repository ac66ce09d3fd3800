"""Pydantic models for season configuration."""

from pydantic import BaseModel, Field, model_validator

from .apartment import LocalizedText


class MonthDayRange(BaseModel):
    """
    Yearly recurring range of "MM-DD" strings.

    A range whose start lies after its end (e.g. "12-20" to "01-02")
    wraps over New Year. Strings are kept raw: a malformed bound makes
    the range never match instead of failing the whole configuration.
    """

    start: str
    end: str


class SeasonRule(BaseModel):
    """One season tag with its date ranges and default minimum stay."""

    tag: str
    label: LocalizedText
    minimum_nights: int = Field(ge=1)
    ranges: list[MonthDayRange] = []


class SeasonConfig(BaseModel):
    """Ordered season rules; dates matching none fall into default_tag."""

    default_tag: str = "low"
    seasons: list[SeasonRule]

    @model_validator(mode="after")
    def check_default_present(self) -> "SeasonConfig":
        if not any(rule.tag == self.default_tag for rule in self.seasons):
            raise ValueError(f"Default season '{self.default_tag}' is not configured")
        return self
