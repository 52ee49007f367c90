from __future__ import annotations

"""
Call sequences the app runs when a screen opens or a button is pressed.

Primary content (replies, topic listings, the member) propagates errors
so the caller can offer a retry. Side-data steps (favorite status,
reading history, subscriptions, theme) are best-effort: failures are
logged and the screen carries on with a default.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .clients.forum_client import ForumAPIClient
from .clients.store_client import UserDataStoreClient
from .errors import V2EXError
from .models import Member, Node, Notification, Reply, Topic
from .pagination import NodeTopicsPager

logger = logging.getLogger(__name__)

DEFAULT_THEME = "system"


@dataclass
class TopicDetail:
    topic: Topic
    replies: List[Reply] = field(default_factory=list)
    is_favorite: bool = False


@dataclass
class NodeDetail:
    node: Node
    pager: NodeTopicsPager
    is_subscribed: bool = False


def load_topic_detail(
    forum: ForumAPIClient,
    store: UserDataStoreClient,
    topic: Topic,
    user_id: Optional[str],
) -> TopicDetail:
    """
    Topic screen: load replies, then check favorite status, then record the
    visit in reading history. The last two steps need a user id.
    """
    replies = forum.fetch_topic_replies(topic.id)
    detail = TopicDetail(topic=topic, replies=replies)

    if not user_id:
        return detail

    try:
        detail.is_favorite = store.is_favorite(user_id, topic.id)
    except V2EXError as exc:
        logger.warning("favorite check failed for topic %s: %s", topic.id, exc)

    try:
        store.add_to_reading_history(user_id, topic)
    except V2EXError as exc:
        logger.warning("could not record reading history for topic %s: %s", topic.id, exc)

    return detail


def toggle_favorite(
    store: UserDataStoreClient, user_id: str, topic: Topic, currently_favorite: bool
) -> bool:
    """Flip the favorite state. Returns the new state (unchanged on failure)."""
    try:
        if currently_favorite:
            store.remove_favorite(user_id, topic.id)
        else:
            store.add_favorite(user_id, topic)
    except V2EXError as exc:
        logger.warning("toggle favorite failed for topic %s: %s", topic.id, exc)
        return currently_favorite
    return not currently_favorite


def load_node_detail(
    forum: ForumAPIClient,
    store: UserDataStoreClient,
    node: Node,
    user_id: Optional[str],
) -> NodeDetail:
    pager = NodeTopicsPager(forum, node.name)
    pager.load_first()
    detail = NodeDetail(node=node, pager=pager)

    if not user_id:
        return detail

    try:
        subscriptions = store.get_node_subscriptions(user_id)
    except V2EXError as exc:
        logger.warning("subscription check failed for node %s: %s", node.name, exc)
    else:
        detail.is_subscribed = any(s.node_id == node.id for s in subscriptions)

    return detail


def toggle_subscription(
    store: UserDataStoreClient, user_id: str, node: Node, currently_subscribed: bool
) -> bool:
    try:
        if currently_subscribed:
            store.unsubscribe_from_node(user_id, node.id)
        else:
            store.subscribe_to_node(user_id, node)
    except V2EXError as exc:
        logger.warning("toggle subscription failed for node %s: %s", node.name, exc)
        return currently_subscribed
    return not currently_subscribed


def dismiss_notification(
    forum: ForumAPIClient,
    notifications: List[Notification],
    notification: Notification,
) -> List[Notification]:
    """Delete on the server, then drop it from the local list. Errors propagate."""
    forum.delete_notification(notification.id)
    return [n for n in notifications if n.id != notification.id]


def sign_in(forum: ForumAPIClient, token: str) -> Member:
    """
    Bind `token` and validate it by fetching the member. If that fails the
    previous credential state is restored before the error propagates.
    """
    previous = forum.credential
    forum.set_credential(token)
    try:
        return forum.fetch_current_user()
    except V2EXError:
        forum.set_credential(previous)
        raise


def current_theme(store: UserDataStoreClient, user_id: Optional[str]) -> str:
    if not user_id:
        return DEFAULT_THEME
    try:
        prefs = store.get_user_preferences(user_id)
    except V2EXError as exc:
        logger.warning("could not load preferences for %s: %s", user_id, exc)
        return DEFAULT_THEME
    return prefs.theme_mode if prefs else DEFAULT_THEME
