"""Availability, booking rule and calendar services."""
