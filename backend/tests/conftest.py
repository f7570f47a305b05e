from __future__ import annotations

import datetime as dt
import json
from typing import Any, Generator, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from autotracker.clockify import ClockifyError
from autotracker.config import Settings
from autotracker.main import create_app
from autotracker.models import Tag, TimeEntryRef

AUTH_KEY = "secret"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, raw: Optional[bytes] = None):
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        else:
            self.content = json.dumps(payload).encode() if payload is not None else b""
        self.text = self.content.decode()

    def json(self) -> Any:
        return json.loads(self.content)


class FakeSession:
    """Stands in for ``requests.Session``; answers from per-method queues, then a default."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response or FakeResponse()
        self.error = error
        self.queued: dict[str, list[FakeResponse]] = {}
        self.calls: list[dict[str, Any]] = []

    def queue(self, method: str, *responses: FakeResponse) -> None:
        self.queued.setdefault(method, []).extend(responses)

    def request(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        pending = self.queued.get(method)
        if pending:
            return pending.pop(0)
        return self.response

    def close(self) -> None:  # pragma: no cover - nothing to release
        pass


class FakeClockify:
    """Records every upstream call instead of talking to Clockify."""

    def __init__(self, tags: Optional[list[Tag]] = None, user_id: str = "user-1"):
        self.tag_list = tags if tags is not None else [
            Tag(id="tag-work", name="@Work"),
            Tag(id="tag-pc", name="@PC"),
            Tag(id="tag-phone", name="@Phone"),
        ]
        self.user_id = user_id
        self.started: list[dict[str, Any]] = []
        self.stopped: list[str] = []
        self.fail_on: set[str] = set()
        self.closed = False

    def _maybe_fail(self, call: str) -> None:
        if call in self.fail_on:
            raise ClockifyError(f"{call} failed")

    def get_tags(self) -> list[Tag]:
        self._maybe_fail("get_tags")
        return list(self.tag_list)

    def start_time_entry(self, description, project_id, tag_ids=(), *, start: Optional[dt.datetime] = None):
        self._maybe_fail("start_time_entry")
        self.started.append(
            {"description": description, "project_id": project_id, "tag_ids": list(tag_ids)}
        )
        return TimeEntryRef(id=f"entry-{len(self.started)}", user_id=self.user_id)

    def stop_time_entry(self, user_id: str, *, end: Optional[dt.datetime] = None):
        self._maybe_fail("stop_time_entry")
        self.stopped.append(user_id)
        return {"id": f"entry-{len(self.started)}", "userId": user_id}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        auth_key=AUTH_KEY,
        clockify_key="api-key",
        clockify_workspace="ws-1",
        clockify_project="project-1",
        exit_on_upstream_error=False,
    )


@pytest.fixture()
def fake_clockify() -> FakeClockify:
    return FakeClockify()


@pytest.fixture()
def app(test_settings: Settings, fake_clockify: FakeClockify) -> FastAPI:
    return create_app(test_settings, client=fake_clockify)


@pytest.fixture()
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
