from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

import requests
from requests import exceptions as http_exc

from ..config import StoreConfig, get_config
from ..errors import DecodingError, InvalidURL, NetworkError, ServerError
from ..models import (
    FavoriteRecord,
    Node,
    NodeSubscriptionRecord,
    ReadingHistoryRecord,
    Topic,
    UserPreferencesRecord,
    decode_list,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Filter = Tuple[str, str]

_URL_ERRORS = (http_exc.MissingSchema, http_exc.InvalidSchema, http_exc.InvalidURL)

FAVORITES = "favorites"
READING_HISTORY = "reading_history"
NODE_SUBSCRIPTIONS = "node_subscriptions"
USER_PREFERENCES = "user_preferences"


def eq(column: str, value: Any) -> Filter:
    """A `column=eq.value` filter. Repeated filters are AND-combined."""
    return (column, f"eq.{value}")


def order(column: str, descending: bool = True) -> Filter:
    return ("order", f"{column}.{'desc' if descending else 'asc'}")


class UserDataStoreClient:
    """
    Client for the per-user side tables kept next to the forum:
    favorites, reading history, node subscriptions and theme preference.

    Every call carries the project's anonymous key (as `apikey` and as a
    bearer token) and asks the store to echo inserted rows back. Rows are
    keyed by a caller-chosen user id (the forum username in practice).

    Failures are ServerError (non-2xx), NetworkError (transport) or
    DecodingError. Callers treat all of them as non-fatal.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._cfg = config or get_config().store

        self._session = session or requests.Session()
        # Sent per request so a session shared with the forum client never
        # carries the service key to the forum host.
        self._headers = {
            "apikey": self._cfg.api_key,
            "Authorization": f"Bearer {self._cfg.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    # -------------------------------------------------------------------------
    # Favorites
    # -------------------------------------------------------------------------

    def add_favorite(self, user_id: str, topic: Topic) -> List[FavoriteRecord]:
        """Insert a favorite row for `topic`. Returns the stored row(s)."""
        record = FavoriteRecord.for_topic(user_id, topic)
        return self._insert(FAVORITES, record.to_insert(), FavoriteRecord.from_dict)

    def remove_favorite(self, user_id: str, topic_id: int) -> None:
        """Delete matching rows. Removing a missing favorite is not an error."""
        self._delete(FAVORITES, [eq("user_id", user_id), eq("topic_id", topic_id)])

    def get_favorites(self, user_id: str) -> List[FavoriteRecord]:
        """Newest first."""
        return self._select(
            FAVORITES,
            [eq("user_id", user_id), order("created_at")],
            FavoriteRecord.from_dict,
        )

    def is_favorite(self, user_id: str, topic_id: int) -> bool:
        rows = self._select(
            FAVORITES,
            [eq("user_id", user_id), eq("topic_id", topic_id), ("select", "id")],
            lambda row: row,
        )
        return len(rows) > 0

    # -------------------------------------------------------------------------
    # Reading history
    # -------------------------------------------------------------------------

    def add_to_reading_history(self, user_id: str, topic: Topic) -> List[ReadingHistoryRecord]:
        """
        Append a history row. Revisiting a topic appends another row;
        history is a log, not a set.
        """
        record = ReadingHistoryRecord.for_topic(user_id, topic)
        return self._insert(READING_HISTORY, record.to_insert(), ReadingHistoryRecord.from_dict)

    def get_reading_history(self, user_id: str, limit: int = 50) -> List[ReadingHistoryRecord]:
        """Most recently read first, at most `limit` rows."""
        return self._select(
            READING_HISTORY,
            [eq("user_id", user_id), order("last_read_at"), ("limit", str(limit))],
            ReadingHistoryRecord.from_dict,
        )

    # -------------------------------------------------------------------------
    # Node subscriptions
    # -------------------------------------------------------------------------

    def subscribe_to_node(self, user_id: str, node: Node) -> List[NodeSubscriptionRecord]:
        record = NodeSubscriptionRecord.for_node(user_id, node)
        return self._insert(NODE_SUBSCRIPTIONS, record.to_insert(), NodeSubscriptionRecord.from_dict)

    def unsubscribe_from_node(self, user_id: str, node_id: int) -> None:
        self._delete(NODE_SUBSCRIPTIONS, [eq("user_id", user_id), eq("node_id", node_id)])

    def get_node_subscriptions(self, user_id: str) -> List[NodeSubscriptionRecord]:
        """Newest first."""
        return self._select(
            NODE_SUBSCRIPTIONS,
            [eq("user_id", user_id), order("created_at")],
            NodeSubscriptionRecord.from_dict,
        )

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def save_user_preferences(self, user_id: str, theme_mode: str) -> List[UserPreferencesRecord]:
        """
        Append a preference row. Nothing is updated in place, so repeated
        saves leave several rows behind.
        """
        record = UserPreferencesRecord(user_id=user_id, theme_mode=theme_mode)
        return self._insert(USER_PREFERENCES, record.to_insert(), UserPreferencesRecord.from_dict)

    def get_user_preferences(self, user_id: str) -> Optional[UserPreferencesRecord]:
        """The first row the store returns (no ordering is requested), or None."""
        rows = self._select(
            USER_PREFERENCES,
            [eq("user_id", user_id)],
            UserPreferencesRecord.from_dict,
        )
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Internal: HTTP
    # -------------------------------------------------------------------------

    def _insert(self, table: str, row: dict, decode_row: Callable[[Any], T]) -> List[T]:
        resp = self._send("POST", table, json=row)
        return self._decode_rows(table, resp, decode_row)

    def _select(
        self, table: str, params: Sequence[Filter], decode_row: Callable[[Any], T]
    ) -> List[T]:
        resp = self._send("GET", table, params=list(params))
        return self._decode_rows(table, resp, decode_row)

    def _delete(self, table: str, params: Sequence[Filter]) -> None:
        resp = self._send("DELETE", table, params=list(params))
        if not _is_success(resp):
            # Not raised: deleting is best-effort from the caller's side.
            logger.warning("DELETE %s returned HTTP %s", table, resp.status_code)

    def _send(self, method: str, table: str, **kwargs: Any) -> requests.Response:
        url = f"{self._cfg.rest_url}/{table}"
        logger.debug("%s %s %s", method, url, kwargs.get("params") or "")
        try:
            return self._session.request(
                method,
                url,
                headers=self._headers,
                timeout=self._cfg.timeout_seconds,
                **kwargs,
            )
        except _URL_ERRORS as exc:
            raise InvalidURL(f"cannot request {url!r}: {exc}") from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, table, exc)
            raise NetworkError(exc) from exc

    @staticmethod
    def _decode_rows(
        table: str, resp: requests.Response, decode_row: Callable[[Any], T]
    ) -> List[T]:
        if not _is_success(resp):
            logger.warning("%s returned HTTP %s", table, resp.status_code)
            raise ServerError(f"Status code: {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodingError(f"{table}: response body is not JSON: {exc}") from exc
        return decode_list(data, decode_row, table)


def _is_success(resp: requests.Response) -> bool:
    return isinstance(resp.status_code, int) and 200 <= resp.status_code <= 299
