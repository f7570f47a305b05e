from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional

from .state import StateSnapshot


@dataclass(frozen=True, slots=True)
class Activity:
    """Description and tag name used when clocking in."""

    description: str
    tag: str


class Action(str, enum.Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    NO_ACTIVITY = "no_activity"


@dataclass(frozen=True, slots=True)
class Decision:
    action: Action
    activity: Optional[Activity] = None


NORMAL_WORK = "Normal Work"
REMOTE_WORK = "Remote Work"
REMOTE_CALL = "Remote Work/Call"

TAG_WORK = "@Work"
TAG_PC = "@PC"
TAG_PHONE = "@Phone"


# Keyed by (at_work, on_laptop, on_phone). None means clock out.
ACTIVITY_TABLE: Dict[StateSnapshot, Optional[Activity]] = {
    StateSnapshot(False, False, False): None,
    StateSnapshot(True, False, False): Activity(NORMAL_WORK, TAG_WORK),
    StateSnapshot(True, True, False): Activity(NORMAL_WORK, TAG_PC),
    StateSnapshot(True, True, True): Activity(NORMAL_WORK, TAG_PHONE),
    StateSnapshot(False, True, False): Activity(REMOTE_WORK, TAG_PC),
    StateSnapshot(False, True, True): Activity(REMOTE_WORK, TAG_PHONE),
    StateSnapshot(False, False, True): Activity(REMOTE_CALL, TAG_PHONE),
}


def evaluate(snapshot: StateSnapshot) -> Decision:
    """Map the three observed booleans to a time-entry action.

    At work and on the phone but off the laptop has no entry in the
    table and leaves the running time entry untouched.
    """
    key = StateSnapshot(*(bool(value) for value in snapshot))
    if key not in ACTIVITY_TABLE:
        return Decision(Action.NO_ACTIVITY)
    activity = ACTIVITY_TABLE[key]
    if activity is None:
        return Decision(Action.CLOCK_OUT)
    return Decision(Action.CLOCK_IN, activity)
