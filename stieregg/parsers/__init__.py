"""Calendar feed parsers."""

from .ical_parser import IcalParseError, IcalParser, parse_ical_ranges

__all__ = ["IcalParseError", "IcalParser", "parse_ical_ranges"]
