from __future__ import annotations

from typing import Dict, List

import pytest

from conftest import topic_json
from v2ex.errors import NetworkError
from v2ex.models import Topic
from v2ex.pagination import FULL_PAGE_SIZE, NodeTopicsPager, fetch_feed, has_more_pages


def _topics(count: int, start: int = 1) -> List[Topic]:
    return [Topic.from_dict(topic_json(i)) for i in range(start, start + count)]


class StubForum:
    """Serves pre-built pages; a page mapped to an exception raises it."""

    def __init__(self, pages: Dict[int, object]) -> None:
        self.pages = pages
        self.requested: List[int] = []

    def fetch_node_topics(self, name: str, page: int = 1) -> List[Topic]:
        self.requested.append(page)
        result = self.pages.get(page, [])
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_topic_replies(self, topic_id: int, page: int = 1):
        return []

    def fetch_latest_topics(self) -> List[Topic]:
        return _topics(2, start=100)

    def fetch_hot_topics(self) -> List[Topic]:
        return _topics(1, start=200)


@pytest.mark.parametrize("count, expected", [(21, True), (20, True), (19, False), (0, False)])
def test_has_more_pages_boundary(count, expected):
    assert FULL_PAGE_SIZE == 20
    assert has_more_pages(_topics(count)) is expected


def test_nineteen_topics_from_node_listing(forum, forum_session):
    forum_session.route(
        "GET",
        "/api/v2/nodes/swift/topics",
        body={"topics": [topic_json(i) for i in range(1, 20)]},
    )
    pager = NodeTopicsPager(forum, "swift")

    topics = pager.load_first()

    assert forum_session.last.url.endswith("/nodes/swift/topics?p=1")
    assert len(topics) == 19
    assert pager.has_more is False


def test_load_more_appends_next_page_until_short_page():
    forum = StubForum({1: _topics(20, 1), 2: _topics(20, 21), 3: _topics(5, 41)})
    pager = NodeTopicsPager(forum, "python")

    pager.load_first()
    assert pager.has_more is True
    pager.load_more()
    pager.load_more()

    assert forum.requested == [1, 2, 3]
    assert pager.current_page == 3
    assert len(pager.topics) == 45
    assert pager.has_more is False

    # Nothing left: no further request.
    assert pager.load_more() == []
    assert forum.requested == [1, 2, 3]


def test_failed_load_more_rolls_back_page():
    forum = StubForum({1: _topics(20), 2: NetworkError(OSError("down"))})
    pager = NodeTopicsPager(forum, "python")
    pager.load_first()

    with pytest.raises(NetworkError):
        pager.load_more()

    assert pager.current_page == 1
    assert len(pager.topics) == 20

    forum.pages[2] = _topics(3, 21)
    pager.load_more()
    assert forum.requested == [1, 2, 2]
    assert pager.current_page == 2


def test_load_first_resets_state():
    forum = StubForum({1: _topics(20), 2: _topics(20, 21)})
    pager = NodeTopicsPager(forum, "python")
    pager.load_first()
    pager.load_more()

    pager.load_first()

    assert pager.current_page == 1
    assert len(pager.topics) == 20


def test_fetch_feed_selects_feed():
    forum = StubForum({})

    assert [t.id for t in fetch_feed(forum, "latest")] == [100, 101]
    assert [t.id for t in fetch_feed(forum, "hot")] == [200]
    with pytest.raises(ValueError):
        fetch_feed(forum, "trending")
