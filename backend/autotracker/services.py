from __future__ import annotations

import datetime as dt
from threading import RLock
from typing import Dict, Optional, Protocol

from .evaluator import Action, Activity, Decision, evaluate
from .logging_setup import get_logger
from .models import Tag, TimeEntryRef
from .state import StateSnapshot

logger = get_logger(__name__)


class TimeEntryClient(Protocol):
    def get_tags(self) -> list[Tag]: ...

    def start_time_entry(
        self,
        description: str,
        project_id: str,
        tag_ids=(),
        *,
        start: Optional[dt.datetime] = None,
    ) -> TimeEntryRef: ...

    def stop_time_entry(self, user_id: str, *, end: Optional[dt.datetime] = None): ...


class TimeTracker:
    """Turns evaluated working states into Clockify clock-in / clock-out calls."""

    def __init__(self, client: TimeEntryClient, project_id: str):
        self.client = client
        self.project_id = project_id
        self._lock = RLock()
        self._tags: Dict[str, str] = {}
        self._last_entry: Optional[TimeEntryRef] = None

    @property
    def tags(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._tags)

    @property
    def last_entry(self) -> Optional[TimeEntryRef]:
        with self._lock:
            return self._last_entry

    def load_tags(self) -> Dict[str, str]:
        tags = self.client.get_tags()
        tag_map = {tag.name: tag.id for tag in tags}
        logger.info("Available Tags:")
        for tag in tags:
            logger.info(" - %s", tag.name)
        with self._lock:
            self._tags = tag_map
        return dict(tag_map)

    def apply(self, snapshot: StateSnapshot) -> Decision:
        logger.info("Evaluating %s", snapshot)
        decision = evaluate(snapshot)
        if decision.action is Action.CLOCK_IN and decision.activity is not None:
            self.clock_in(decision.activity)
        elif decision.action is Action.CLOCK_OUT:
            self.clock_out()
        else:
            logger.info("No activity for %s", snapshot)
        return decision

    def clock_in(self, activity: Activity) -> TimeEntryRef:
        logger.info("Clock in: %s (%s)", activity.description, activity.tag)
        tag_id = self.tags.get(activity.tag)
        tag_ids = [tag_id] if tag_id else []
        if not tag_id:
            logger.warning("Tag %s is not defined in the workspace", activity.tag)
        entry = self.client.start_time_entry(activity.description, self.project_id, tag_ids)
        if not entry.id:
            logger.warning("Clockify did not open a time entry for %s", activity.description)
            return entry
        with self._lock:
            self._last_entry = entry
        logger.info("Opened time entry %s for user %s", entry.id, entry.user_id)
        return entry

    def clock_out(self) -> Optional[TimeEntryRef]:
        logger.info("Clock out")
        entry = self.last_entry
        if entry is None or not entry.user_id:
            logger.info("No time entry has been opened yet, nothing to close")
            return None
        body = self.client.stop_time_entry(entry.user_id)
        logger.info("response Body: %s", body)
        return entry
