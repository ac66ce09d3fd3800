"""Season classifier.

Maps calendar dates to season tags using yearly "MM-DD" ranges from
static configuration. The number of tags is not fixed; the default tag
(usually "low") covers every date that matches no configured range.
"""

import json
import re
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path

from stieregg.config import get_settings
from stieregg.models.apartment import Locale
from stieregg.models.season import SeasonConfig, SeasonRule
from stieregg.utils.clock import Clock
from stieregg.utils.dates import parse_date
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)

MONTH_DAY_PATTERN = re.compile(r"^(\d{1,2})-(\d{1,2})$")


def parse_month_day(value: str) -> int | None:
    """Convert "MM-DD" to month*100+day, or None when malformed."""
    match = MONTH_DAY_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        return None
    month, day = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return month * 100 + day


def month_day_number(day: date) -> int:
    """6 June -> 606."""
    return day.month * 100 + day.day


def is_within_range(day: date, start: str, end: str) -> bool:
    """
    Check whether a date falls inside a yearly MM-DD range.

    Ranges with start after end wrap over New Year. Malformed bounds
    never match.
    """
    start_val = parse_month_day(start)
    end_val = parse_month_day(end)
    if start_val is None or end_val is None:
        return False

    value = month_day_number(day)
    if start_val <= end_val:
        return start_val <= value <= end_val
    return value >= start_val or value <= end_val


class SeasonCalendar:
    """
    Season classifier over an ordered list of season rules.

    Usage:
        seasons = load_season_calendar(path)
        seasons.active_season_tags(date(2025, 12, 25))  # {"high"}
    """

    def __init__(self, config: SeasonConfig, clock: Clock | None = None):
        self.config = config
        self.clock = clock or Clock()
        self._rules: dict[str, SeasonRule] = {rule.tag: rule for rule in config.seasons}

    @property
    def default_tag(self) -> str:
        return self.config.default_tag

    @property
    def tags(self) -> list[str]:
        return [rule.tag for rule in self.config.seasons]

    def active_season_tags(self, day: date | datetime | str) -> set[str]:
        """
        Return every season tag whose ranges contain the date.

        An empty set means the default season. Overlapping configuration
        yields several tags; choosing between them is the caller's job.
        """
        parsed = parse_date(day, self.clock)
        if parsed is None:
            return set()

        active: set[str] = set()
        for rule in self.config.seasons:
            if rule.tag == self.default_tag:
                continue
            if any(is_within_range(parsed, r.start, r.end) for r in rule.ranges):
                active.add(rule.tag)
        return active

    def resolved_tags(self, day: date | datetime | str) -> set[str]:
        """Active tags, falling back to the default tag."""
        return self.active_season_tags(day) or {self.default_tag}

    def season_for(self, day: date | datetime | str) -> str:
        """Display season for a date: first matching rule in config order."""
        active = self.active_season_tags(day)
        for rule in self.config.seasons:
            if rule.tag in active:
                return rule.tag
        return self.default_tag

    def default_minimum_nights(self, tag: str) -> int:
        """Global minimum nights for a tag; unknown tags use the default season."""
        rule = self._rules.get(tag) or self._rules[self.default_tag]
        return rule.minimum_nights

    def label(self, tag: str, locale: Locale = "en") -> str:
        rule = self._rules.get(tag)
        if rule is None:
            return tag
        return rule.label.get(locale)


def load_season_calendar(path: str | Path, clock: Clock | None = None) -> SeasonCalendar:
    """Load season rules from a JSON file; `clock` sets the local timezone for timestamps."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    config = SeasonConfig.model_validate(raw)
    logger.debug("season_config_loaded", path=str(path), tags=[s.tag for s in config.seasons])
    return SeasonCalendar(config, clock)


@lru_cache
def get_season_calendar() -> SeasonCalendar:
    """Season calendar from the configured seasons file."""
    settings = get_settings()
    return load_season_calendar(settings.seasons_file, Clock(settings.timezone))


def active_season_tags(day: date | datetime | str, calendar: SeasonCalendar | None = None) -> set[str]:
    """Module-level shortcut for SeasonCalendar.active_season_tags."""
    return (calendar or get_season_calendar()).active_season_tags(day)
