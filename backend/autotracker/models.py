"""Data models for the Clockify API responses the tracker relies on."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Tag:
    """A Clockify tag such as ``@Work``."""

    id: str
    name: str


@dataclass(slots=True)
class TimeEntryRef:
    """Identifies the last time entry opened by a clock-in."""

    id: str
    user_id: str


__all__ = ["Tag", "TimeEntryRef"]
