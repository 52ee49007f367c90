from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlparse

import pytest
import requests

from v2ex.clients import ForumAPIClient, UserDataStoreClient
from v2ex.config import ForumAPIConfig, StoreConfig


def make_response(request: requests.PreparedRequest, status: Any, body: Any) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    if body is None:
        resp._content = b""
    elif isinstance(body, bytes):
        resp._content = body
    elif isinstance(body, str):
        resp._content = body.encode("utf-8")
    else:
        resp._content = json.dumps(body).encode("utf-8")
    resp.encoding = "utf-8"
    resp.url = request.url
    resp.request = request
    return resp


class FakeSession(requests.Session):
    """
    A real requests.Session whose transport is replaced by canned routes.

    Routes are keyed by (METHOD, path). A value is either (status, body) or
    an exception instance to raise from send().
    """

    def __init__(self) -> None:
        super().__init__()
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.sent: List[requests.PreparedRequest] = []
        self.send_kwargs: List[Dict[str, Any]] = []

    def route(self, method: str, path: str, status: Any = 200, body: Any = None) -> None:
        self.routes[(method, path)] = (status, body)

    def fail(self, method: str, path: str, exc: Exception) -> None:
        self.routes[(method, path)] = exc

    def send(self, request, **kwargs):
        self.sent.append(request)
        self.send_kwargs.append(kwargs)
        key = (request.method, urlparse(request.url).path)
        if key not in self.routes:
            return make_response(request, 404, "not found")
        target = self.routes[key]
        if isinstance(target, Exception):
            raise target
        status, body = target
        return make_response(request, status, body)

    @property
    def last(self) -> requests.PreparedRequest:
        return self.sent[-1]


class FakeStoreSession(requests.Session):
    """
    In-memory emulation of the store's REST filter syntax:
    `col=eq.value` filters, `order=col.desc|asc`, `limit=N`, `select=cols`.
    """

    TIMESTAMP_COLUMNS = {
        "favorites": "created_at",
        "reading_history": "last_read_at",
        "node_subscriptions": "created_at",
        "user_preferences": "created_at",
    }

    def __init__(self) -> None:
        super().__init__()
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.sent: List[requests.PreparedRequest] = []
        self.send_kwargs: List[Dict[str, Any]] = []
        self.status_override: Optional[int] = None
        self._counter = 0

    def send(self, request, **kwargs):
        self.sent.append(request)
        self.send_kwargs.append(kwargs)
        if self.status_override is not None:
            return make_response(request, self.status_override, {"message": "boom"})

        parsed = urlparse(request.url)
        table = parsed.path.rsplit("/", 1)[-1]
        params = parse_qsl(parsed.query)
        rows = self.tables.setdefault(table, [])

        if request.method == "POST":
            row = json.loads(request.body)
            self._counter += 1
            row["id"] = f"row-{self._counter}"
            stamp = f"2026-10-18T12:00:00.{self._counter:06d}+00:00"
            row[self.TIMESTAMP_COLUMNS.get(table, "created_at")] = stamp
            rows.append(row)
            return make_response(request, 201, [row])

        matched = [r for r in rows if self._matches(r, params)]

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if r not in matched]
            return make_response(request, 200, matched)

        for key, value in params:
            if key == "order":
                column, direction = value.rsplit(".", 1)
                matched.sort(key=lambda r: r.get(column) or "", reverse=direction == "desc")
        for key, value in params:
            if key == "limit":
                matched = matched[: int(value)]
        for key, value in params:
            if key == "select":
                columns = value.split(",")
                matched = [{c: r.get(c) for c in columns} for r in matched]
        return make_response(request, 200, matched)

    @staticmethod
    def _matches(row: Dict[str, Any], params: List[Tuple[str, str]]) -> bool:
        for key, value in params:
            if key in ("order", "limit", "select"):
                continue
            if not value.startswith("eq."):
                continue
            if str(row.get(key)) != value[3:]:
                return False
        return True


FORUM_CONFIG = ForumAPIConfig(
    base_url="https://forum.test/api/v2",
    legacy_base_url="https://forum.test/api",
    timeout_seconds=30.0,
)

STORE_CONFIG = StoreConfig(base_url="https://store.test", api_key="anon-key")


@pytest.fixture
def forum_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def forum(forum_session: FakeSession) -> ForumAPIClient:
    return ForumAPIClient(credential="tok-123", config=FORUM_CONFIG, session=forum_session)


@pytest.fixture
def store_session() -> FakeStoreSession:
    return FakeStoreSession()


@pytest.fixture
def store(store_session: FakeStoreSession) -> UserDataStoreClient:
    return UserDataStoreClient(config=STORE_CONFIG, session=store_session)


def member_json(member_id: int = 1, username: str = "alice") -> Dict[str, Any]:
    return {
        "id": member_id,
        "username": username,
        "created": 1500000000,
        "bio": None,
        "avatar_large": f"https://cdn.test/{username}.png",
    }


def node_json(node_id: int = 7, name: str = "swift", title: str = "Swift") -> Dict[str, Any]:
    return {"id": node_id, "name": name, "title": title, "topics": 120}


def topic_json(topic_id: int = 42, title: str = "T", **extra: Any) -> Dict[str, Any]:
    data = {
        "id": topic_id,
        "title": title,
        "url": f"https://forum.test/t/{topic_id}",
        "content": "raw body",
        "content_rendered": "<p>rendered body</p>",
        "member": member_json(),
        "node": node_json(),
        "created": 1700000000,
        "last_modified": 1700000100,
        "last_reply_time": 1700000200,
        "replies": 3,
    }
    data.update(extra)
    return data


def reply_json(reply_id: int = 1, content: str = "hi") -> Dict[str, Any]:
    return {
        "id": reply_id,
        "content": content,
        "content_rendered": f"<p>{content}</p>",
        "member": member_json(2, "bob"),
        "created": 1700000300,
    }
