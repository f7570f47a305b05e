from __future__ import annotations

from threading import RLock
from typing import NamedTuple


STATE_FIELDS = ("at_work", "on_laptop", "on_phone")


class StateSnapshot(NamedTuple):
    at_work: bool
    on_laptop: bool
    on_phone: bool


class WorkingState:
    """Where the user currently is and which devices are in use.

    One instance lives on ``app.state`` for the whole process. Every
    update returns a consistent snapshot taken under the same lock, so
    the evaluator never sees a half-applied change.
    """

    def __init__(self, at_work: bool = False, on_laptop: bool = False, on_phone: bool = False):
        self._lock = RLock()
        self._at_work = at_work
        self._on_laptop = on_laptop
        self._on_phone = on_phone

    @property
    def at_work(self) -> bool:
        with self._lock:
            return self._at_work

    @property
    def on_laptop(self) -> bool:
        with self._lock:
            return self._on_laptop

    @property
    def on_phone(self) -> bool:
        with self._lock:
            return self._on_phone

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return StateSnapshot(self._at_work, self._on_laptop, self._on_phone)

    def update(self, field: str, value: bool) -> StateSnapshot:
        if field not in STATE_FIELDS:
            raise KeyError(f"Unknown state field: {field}")
        with self._lock:
            setattr(self, f"_{field}", bool(value))
            return self.snapshot()
