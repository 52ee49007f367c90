from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from .errors import DecodingError
from .rendering import body_text

T = TypeVar("T")

UNKNOWN = "Unknown"


# -----------------------------------------------------------------------------
# Field helpers
# -----------------------------------------------------------------------------


def _expect_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DecodingError(f"{what}: expected an object, got {type(data).__name__}")
    return data


def _is_int(value: Any) -> bool:
    # JSON booleans decode to bool, which is an int subclass in Python
    return isinstance(value, int) and not isinstance(value, bool)


def _req_int(data: Mapping[str, Any], key: str, what: str) -> int:
    value = data.get(key)
    if not _is_int(value):
        raise DecodingError(f"{what}.{key}: expected an integer, got {value!r}")
    return value


def _req_id(data: Mapping[str, Any], key: str, what: str) -> int:
    value = _req_int(data, key, what)
    if value < 0:
        raise DecodingError(f"{what}.{key}: identifiers must be non-negative")
    return value


def _opt_int(data: Mapping[str, Any], key: str, what: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if not _is_int(value):
        raise DecodingError(f"{what}.{key}: expected an integer, got {value!r}")
    return value


def _req_str(data: Mapping[str, Any], key: str, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DecodingError(f"{what}.{key}: expected a string, got {value!r}")
    return value


def _opt_str(data: Mapping[str, Any], key: str, what: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodingError(f"{what}.{key}: expected a string, got {value!r}")
    return value


def _opt_nested(
    data: Mapping[str, Any], key: str, decode: Callable[[Any], T]
) -> Optional[T]:
    value = data.get(key)
    if value is None:
        return None
    return decode(value)


# -----------------------------------------------------------------------------
# Forum entities
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Member:
    """
    A forum user.

    `username` is the handle; callers use it as the user key in the
    side-data store. `avatar` is read from the `avatar_large` field.
    """

    id: int
    username: str
    created: int  # Unix timestamp (seconds)
    bio: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Member":
        data = _expect_mapping(data, "member")
        return cls(
            id=_req_id(data, "id", "member"),
            username=_req_str(data, "username", "member"),
            created=_req_int(data, "created", "member"),
            bio=_opt_str(data, "bio", "member"),
            website=_opt_str(data, "website", "member"),
            github=_opt_str(data, "github", "member"),
            twitter=_opt_str(data, "twitter", "member"),
            location=_opt_str(data, "location", "member"),
            avatar=_opt_str(data, "avatar_large", "member"),
        )


@dataclass(frozen=True)
class Node:
    """A topic category. `name` is the URL-safe slug used as the external key."""

    id: int
    name: str
    title: str
    url: Optional[str] = None
    topics: Optional[int] = None  # topic count
    header: Optional[str] = None
    footer: Optional[str] = None
    avatar: Optional[str] = None
    avatar_large: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Node":
        data = _expect_mapping(data, "node")
        return cls(
            id=_req_id(data, "id", "node"),
            name=_req_str(data, "name", "node"),
            title=_req_str(data, "title", "node"),
            url=_opt_str(data, "url", "node"),
            topics=_opt_int(data, "topics", "node"),
            header=_opt_str(data, "header", "node"),
            footer=_opt_str(data, "footer", "node"),
            avatar=_opt_str(data, "avatar", "node"),
            avatar_large=_opt_str(data, "avatar_large", "node"),
        )


@dataclass(frozen=True)
class Topic:
    """
    A discussion thread.

    `member` and `node` are only missing for deleted or degenerate content;
    use `author_name` / `node_title` to get the "Unknown" placeholder.
    """

    id: int
    title: str
    url: str
    content: Optional[str] = None
    content_rendered: Optional[str] = None
    member: Optional[Member] = None
    node: Optional[Node] = None
    created: Optional[int] = None
    last_modified: Optional[int] = None
    last_reply_time: Optional[int] = None
    replies: Optional[int] = None  # reply count

    @classmethod
    def from_dict(cls, data: Any) -> "Topic":
        data = _expect_mapping(data, "topic")
        return cls(
            id=_req_id(data, "id", "topic"),
            title=_req_str(data, "title", "topic"),
            url=_req_str(data, "url", "topic"),
            content=_opt_str(data, "content", "topic"),
            content_rendered=_opt_str(data, "content_rendered", "topic"),
            member=_opt_nested(data, "member", Member.from_dict),
            node=_opt_nested(data, "node", Node.from_dict),
            created=_opt_int(data, "created", "topic"),
            last_modified=_opt_int(data, "last_modified", "topic"),
            last_reply_time=_opt_int(data, "last_reply_time", "topic"),
            replies=_opt_int(data, "replies", "topic"),
        )

    @property
    def author_name(self) -> str:
        return self.member.username if self.member else UNKNOWN

    @property
    def node_title(self) -> str:
        return self.node.title if self.node else UNKNOWN

    @property
    def plain_text(self) -> str:
        return body_text(self.content_rendered, self.content)


@dataclass(frozen=True)
class Reply:
    id: int
    content: str
    created: int
    content_rendered: Optional[str] = None
    member: Optional[Member] = None
    last_modified: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Reply":
        data = _expect_mapping(data, "reply")
        return cls(
            id=_req_id(data, "id", "reply"),
            content=_req_str(data, "content", "reply"),
            created=_req_int(data, "created", "reply"),
            content_rendered=_opt_str(data, "content_rendered", "reply"),
            member=_opt_nested(data, "member", Member.from_dict),
            last_modified=_opt_int(data, "last_modified", "reply"),
        )

    @property
    def author_name(self) -> str:
        return self.member.username if self.member else UNKNOWN

    @property
    def plain_text(self) -> str:
        return body_text(self.content_rendered, self.content)


@dataclass(frozen=True)
class Notification:
    id: int
    text: str
    created: int
    member: Optional[Member] = None  # the actor
    for_object: Optional[str] = None
    payload: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Notification":
        data = _expect_mapping(data, "notification")
        return cls(
            id=_req_id(data, "id", "notification"),
            text=_req_str(data, "text", "notification"),
            created=_req_int(data, "created", "notification"),
            member=_opt_nested(data, "member", Member.from_dict),
            for_object=_opt_str(data, "for_object", "notification"),
            payload=_opt_str(data, "payload", "notification"),
        )


# -----------------------------------------------------------------------------
# Response shapes
#
# Each endpoint knows which of these it gets back:
#   - an envelope {success, result, message}
#   - an object with the list under a named field ({"topics": [...]})
#   - a bare object or a bare array
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Envelope:
    success: bool
    result: Any = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, decode_result: Callable[[Any], Any]) -> "Envelope":
        data = _expect_mapping(data, "envelope")
        success = data.get("success")
        if not isinstance(success, bool):
            raise DecodingError(f"envelope.success: expected a boolean, got {success!r}")
        result = data.get("result")
        return cls(
            success=success,
            result=None if result is None else decode_result(result),
            message=_opt_str(data, "message", "envelope"),
        )


def decode_list(data: Any, decode_item: Callable[[Any], T], what: str) -> List[T]:
    """Decode a bare JSON array, item by item."""
    if not isinstance(data, list):
        raise DecodingError(f"{what}: expected an array, got {type(data).__name__}")
    return [decode_item(item) for item in data]


def decode_listing(data: Any, field: str, decode_item: Callable[[Any], T]) -> List[T]:
    """
    Decode {field: [...]}. A missing or null field is an empty listing,
    not an error.
    """
    data = _expect_mapping(data, field)
    items = data.get(field)
    if items is None:
        return []
    return decode_list(items, decode_item, field)


def decode_str(data: Any) -> str:
    if not isinstance(data, str):
        raise DecodingError(f"expected a string, got {data!r}")
    return data


# -----------------------------------------------------------------------------
# Side-data records (user-data store)
#
# `id` and timestamps are assigned by the store and are None until the row
# has been inserted. `to_insert()` never sends them.
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class FavoriteRecord:
    user_id: str
    topic_id: int
    topic_title: str
    topic_url: Optional[str] = None
    node_name: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def for_topic(cls, user_id: str, topic: Topic) -> "FavoriteRecord":
        return cls(
            user_id=user_id,
            topic_id=topic.id,
            topic_title=topic.title,
            topic_url=topic.url,
            node_name=topic.node.name if topic.node else None,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "FavoriteRecord":
        data = _expect_mapping(data, "favorite")
        return cls(
            id=_opt_str(data, "id", "favorite"),
            user_id=_req_str(data, "user_id", "favorite"),
            topic_id=_req_id(data, "topic_id", "favorite"),
            topic_title=_req_str(data, "topic_title", "favorite"),
            topic_url=_opt_str(data, "topic_url", "favorite"),
            node_name=_opt_str(data, "node_name", "favorite"),
            created_at=_opt_str(data, "created_at", "favorite"),
        )

    def to_insert(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "topic_id": self.topic_id,
            "topic_title": self.topic_title,
            "topic_url": self.topic_url,
            "node_name": self.node_name,
        }


@dataclass(frozen=True)
class ReadingHistoryRecord:
    user_id: str
    topic_id: int
    topic_title: str
    id: Optional[str] = None
    last_read_at: Optional[str] = None

    @classmethod
    def for_topic(cls, user_id: str, topic: Topic) -> "ReadingHistoryRecord":
        return cls(user_id=user_id, topic_id=topic.id, topic_title=topic.title)

    @classmethod
    def from_dict(cls, data: Any) -> "ReadingHistoryRecord":
        data = _expect_mapping(data, "reading_history")
        return cls(
            id=_opt_str(data, "id", "reading_history"),
            user_id=_req_str(data, "user_id", "reading_history"),
            topic_id=_req_id(data, "topic_id", "reading_history"),
            topic_title=_req_str(data, "topic_title", "reading_history"),
            last_read_at=_opt_str(data, "last_read_at", "reading_history"),
        )

    def to_insert(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "topic_id": self.topic_id,
            "topic_title": self.topic_title,
        }


@dataclass(frozen=True)
class NodeSubscriptionRecord:
    user_id: str
    node_id: int
    node_name: str
    node_title: str
    id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def for_node(cls, user_id: str, node: Node) -> "NodeSubscriptionRecord":
        return cls(
            user_id=user_id,
            node_id=node.id,
            node_name=node.name,
            node_title=node.title,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "NodeSubscriptionRecord":
        data = _expect_mapping(data, "node_subscription")
        return cls(
            id=_opt_str(data, "id", "node_subscription"),
            user_id=_req_str(data, "user_id", "node_subscription"),
            node_id=_req_id(data, "node_id", "node_subscription"),
            node_name=_req_str(data, "node_name", "node_subscription"),
            node_title=_req_str(data, "node_title", "node_subscription"),
            created_at=_opt_str(data, "created_at", "node_subscription"),
        )

    def to_insert(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "node_id": self.node_id,
            "node_name": self.node_name,
            "node_title": self.node_title,
        }


@dataclass(frozen=True)
class UserPreferencesRecord:
    user_id: str
    theme_mode: str  # "light", "dark" or "system"
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "UserPreferencesRecord":
        data = _expect_mapping(data, "user_preferences")
        return cls(
            id=_opt_str(data, "id", "user_preferences"),
            user_id=_req_str(data, "user_id", "user_preferences"),
            theme_mode=_req_str(data, "theme_mode", "user_preferences"),
            created_at=_opt_str(data, "created_at", "user_preferences"),
            updated_at=_opt_str(data, "updated_at", "user_preferences"),
        )

    def to_insert(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "theme_mode": self.theme_mode}
