"""Common utility functions."""

from .geo import calculate_distance, estimate_arrival_minutes, round_half_up
from .query import parse_limit

__all__ = [
    "calculate_distance",
    "estimate_arrival_minutes",
    "round_half_up",
    "parse_limit",
]
