from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar, runtime_checkable
from urllib.parse import quote

import requests
from requests import exceptions as http_exc

from ..config import ForumAPIConfig, get_config
from ..errors import (
    DecodingError,
    InvalidResponse,
    InvalidURL,
    NetworkError,
    RateLimitExceeded,
    ServerError,
    Unauthorized,
)
from ..models import (
    Envelope,
    Member,
    Node,
    Notification,
    Reply,
    Topic,
    decode_list,
    decode_listing,
    decode_str,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# requests raises these while preparing a URL, before anything is sent
_URL_ERRORS = (http_exc.MissingSchema, http_exc.InvalidSchema, http_exc.InvalidURL)


@runtime_checkable
class ForumClient(Protocol):
    """
    Read access to the forum.

    Implementations return the domain models from `v2ex.models` and raise
    the exceptions from `v2ex.errors`. Pages are 1-based; implementations
    return exactly what the server returns for a page and keep no paging
    state of their own.
    """

    def fetch_node_topics(self, name: str, page: int = 1) -> List[Topic]:
        raise NotImplementedError

    def fetch_topic_replies(self, topic_id: int, page: int = 1) -> List[Reply]:
        raise NotImplementedError

    def fetch_latest_topics(self) -> List[Topic]:
        raise NotImplementedError

    def fetch_hot_topics(self) -> List[Topic]:
        raise NotImplementedError


@dataclass
class ForumCredentials:
    """
    The personal access token issued by the forum.

    Storing it securely is the caller's job; this only knows how to pick
    it up from the environment.
    """

    token: str

    @classmethod
    def from_env(cls) -> Optional["ForumCredentials"]:
        """
        Load the token from V2EX_ACCESS_TOKEN.

        Returns None if the variable is missing or empty.
        """
        token = os.getenv("V2EX_ACCESS_TOKEN")
        if not token:
            return None
        return cls(token=token)


class ForumAPIClient(ForumClient):
    """
    Client for the V2EX API.

    Responsibilities:
    - Build requests against the versioned API (`/api/v2`), adding the
      bearer token when one is set.
    - Hit the three public legacy feeds without any credential.
    - Map HTTP outcomes onto the `v2ex.errors` taxonomy and decode bodies
      into models.

    The token is the only mutable state. Set it once (constructor or
    `set_credential`) before issuing concurrent calls.
    """

    def __init__(
        self,
        credential: Optional[str] = None,
        config: Optional[ForumAPIConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._cfg = config or get_config().forum
        self._token = credential

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self._cfg.user_agent})

    @property
    def credential(self) -> Optional[str]:
        return self._token

    def set_credential(self, credential: Optional[str]) -> None:
        """Bind (or clear, with None) the token after construction."""
        self._token = credential

    # -------------------------------------------------------------------------
    # Public API: versioned, authenticated
    # -------------------------------------------------------------------------

    def fetch_current_user(self) -> Member:
        """
        GET /member. The member comes wrapped in an envelope; a 2xx with no
        `result` (e.g. success=false) is an InvalidResponse.
        """
        envelope = self._get("member", lambda data: Envelope.from_dict(data, Member.from_dict))
        if envelope.result is None:
            raise InvalidResponse(envelope.message or "member response carried no result")
        return envelope.result

    def fetch_node(self, name: str) -> Node:
        return self._get(f"nodes/{_segment(name)}", Node.from_dict)

    def fetch_node_topics(self, name: str, page: int = 1) -> List[Topic]:
        return self._get(
            f"nodes/{_segment(name)}/topics",
            lambda data: decode_listing(data, "topics", Topic.from_dict),
            params={"p": _page(page)},
        )

    def fetch_topic(self, topic_id: int) -> Topic:
        return self._get(f"topics/{topic_id}", Topic.from_dict)

    def fetch_topic_replies(self, topic_id: int, page: int = 1) -> List[Reply]:
        return self._get(
            f"topics/{topic_id}/replies",
            lambda data: decode_listing(data, "replies", Reply.from_dict),
            params={"p": _page(page)},
        )

    def fetch_notifications(self) -> List[Notification]:
        return self._get(
            "notifications",
            lambda data: decode_listing(data, "notifications", Notification.from_dict),
        )

    def delete_notification(self, notification_id: int) -> None:
        # The envelope is decoded to validate the body, then dropped.
        self._request(
            "DELETE",
            self._api_url(f"notifications/{notification_id}"),
            lambda data: Envelope.from_dict(data, decode_str),
            authenticated=True,
        )

    # -------------------------------------------------------------------------
    # Public API: legacy, unauthenticated
    # -------------------------------------------------------------------------

    def fetch_latest_topics(self) -> List[Topic]:
        return self._get_legacy("topics/latest.json", Topic.from_dict)

    def fetch_hot_topics(self) -> List[Topic]:
        return self._get_legacy("topics/hot.json", Topic.from_dict)

    def fetch_all_nodes(self) -> List[Node]:
        return self._get_legacy("nodes/all.json", Node.from_dict)

    # -------------------------------------------------------------------------
    # Internal: HTTP
    # -------------------------------------------------------------------------

    def _api_url(self, endpoint: str) -> str:
        return f"{self._cfg.base_url.rstrip('/')}/{endpoint}"

    def _get(
        self,
        endpoint: str,
        decode: Callable[[Any], T],
        params: Optional[Dict[str, Any]] = None,
    ) -> T:
        return self._request(
            "GET", self._api_url(endpoint), decode, authenticated=True, params=params
        )

    def _get_legacy(self, path: str, decode_item: Callable[[Any], T]) -> List[T]:
        url = f"{self._cfg.legacy_base_url.rstrip('/')}/{path}"
        return self._request(
            "GET",
            url,
            lambda data: decode_list(data, decode_item, path),
            authenticated=False,
        )

    def _request(
        self,
        method: str,
        url: str,
        decode: Callable[[Any], T],
        authenticated: bool,
        params: Optional[Dict[str, Any]] = None,
    ) -> T:
        # A None value drops the header even if the session carries one.
        headers: Dict[str, Optional[str]] = {"Authorization": None}
        if authenticated:
            headers["Content-Type"] = "application/json"
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"

        logger.debug("%s %s params=%s", method, url, params)
        try:
            resp = self._session.request(
                method,
                url,
                headers=headers,
                params=params,
                timeout=self._cfg.timeout_seconds,
            )
        except _URL_ERRORS as exc:
            raise InvalidURL(f"cannot request {url!r}: {exc}") from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(exc) from exc

        return _handle_response(resp, decode)


# -----------------------------------------------------------------------------
# Internal: small helpers
# -----------------------------------------------------------------------------


def _handle_response(resp: requests.Response, decode: Callable[[Any], T]) -> T:
    """
    Map a response to a decoded payload or an exception:

        2xx -> decode (DecodingError on failure)
        401 -> Unauthorized
        429 -> RateLimitExceeded
        *   -> ServerError(body text)
    """
    status = resp.status_code
    if not isinstance(status, int):
        raise InvalidResponse(f"response for {resp.url} has no status code")

    if 200 <= status <= 299:
        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodingError(f"response body is not JSON: {exc}") from exc
        return decode(data)

    logger.warning("HTTP %s for %s", status, resp.url)
    if status == 401:
        raise Unauthorized(resp.text)
    if status == 429:
        raise RateLimitExceeded(resp.text)
    raise ServerError(resp.text or "Unknown error")


def _segment(value: str) -> str:
    return quote(value, safe="")


def _page(page: int) -> int:
    if page < 1:
        raise ValueError(f"pages start at 1, got {page}")
    return page
