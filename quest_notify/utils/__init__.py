"""Utility helpers for reusable functionality."""

from .datetime import (
    SERVER_TIMESTAMP,
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    normalize_instant,
    now_in_app_naive_datetime,
    now_in_app_timezone,
)

__all__ = [
    "SERVER_TIMESTAMP",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "normalize_instant",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
]
