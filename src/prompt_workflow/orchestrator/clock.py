"""Timestamp helpers for header stamping."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC timestamp."""

    return datetime.now(tz=UTC)


def format_timestamp(value: datetime) -> str:
    """Render a sortable ISO-8601 UTC timestamp with millisecond precision."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    rendered = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def format_duration(seconds: float) -> str:
    return f"{seconds:.1f}"
