"""HTTP client for the Clockify REST API."""

from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, Optional

import requests

from .logging_setup import get_logger
from .models import Tag, TimeEntryRef

logger = get_logger(__name__)


class ClockifyError(RuntimeError):
    """Raised when Clockify is unreachable, fails server-side or returns garbage."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response


def format_timestamp(value: dt.datetime) -> str:
    """Render a timestamp the way Clockify expects: UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    value = value.astimezone(dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ClockifyClient:
    """Wraps the handful of Clockify calls needed to open and close time entries."""

    def __init__(
        self,
        api_key: str,
        workspace_id: str,
        *,
        base_url: str = "https://api.clockify.me/api/v1",
        timeout: float = 2,
        user_agent: str = "auto-timetracker",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.workspace_id = workspace_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {
            "X-Api-Key": self.api_key,
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

    def _workspace_url(self, path: str) -> str:
        return f"{self.base_url}/workspaces/{self.workspace_id}/{path.lstrip('/')}"

    def _request(self, method: str, url: str, payload: Optional[dict[str, Any]] = None) -> Any:
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ClockifyError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 500:
            raise ClockifyError(
                f"{method} {url} returned {response.status_code}: {response.text}",
                response=response,
            )
        if response.status_code >= 400:
            logger.warning("%s %s returned %s: %s", method, url, response.status_code, response.text)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ClockifyError(f"{method} {url} returned invalid JSON", response=response) from exc

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    def get_tags(self) -> list[Tag]:
        data = self._request("GET", self._workspace_url("tags")) or []
        if not isinstance(data, list):
            raise ClockifyError("Unexpected tag listing payload")
        return [Tag(id=str(item.get("id", "")), name=str(item.get("name", ""))) for item in data]

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------
    def start_time_entry(
        self,
        description: str,
        project_id: str,
        tag_ids: Iterable[str] = (),
        *,
        start: Optional[dt.datetime] = None,
    ) -> TimeEntryRef:
        payload = {
            "start": format_timestamp(start or _now()),
            "billable": True,
            "description": description,
            "projectId": project_id,
            "tagIds": list(tag_ids),
        }
        logger.debug("Starting time entry: %s", payload)
        data = self._request("POST", self._workspace_url("time-entries"), payload)
        if not isinstance(data, dict):
            raise ClockifyError("Unexpected time entry payload")
        return TimeEntryRef(id=str(data.get("id", "")), user_id=str(data.get("userId", "")))

    def stop_time_entry(self, user_id: str, *, end: Optional[dt.datetime] = None) -> Any:
        """Stop the running time entry of ``user_id`` by setting its end time."""
        payload = {"end": format_timestamp(end or _now())}
        logger.debug("Stopping time entry: %s", payload)
        return self._request("PATCH", self._workspace_url(f"user/{user_id}/time-entries"), payload)

    def close(self) -> None:
        self.session.close()


__all__ = ["ClockifyClient", "ClockifyError", "format_timestamp"]
