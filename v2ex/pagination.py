from __future__ import annotations

from typing import List, Sequence

from .clients.forum_client import ForumClient
from .models import Topic

# The API does not report a page size or a total count. A page holding at
# least this many items is taken to mean another page may follow.
FULL_PAGE_SIZE = 20


def has_more_pages(items: Sequence[object]) -> bool:
    return len(items) >= FULL_PAGE_SIZE


class NodeTopicsPager:
    """
    Page-by-page loader for a node's topic listing.

    Keeps:
    - current_page: 1-based page last loaded successfully,
    - has_more: whether `load_more()` should hit the network,
    - topics: everything loaded so far, in server order.
    """

    def __init__(self, client: ForumClient, node_name: str) -> None:
        self._client = client
        self.node_name = node_name
        self.current_page = 1
        self.has_more = True
        self.topics: List[Topic] = []

    def load_first(self) -> List[Topic]:
        """(Re)load page 1, replacing anything loaded before."""
        self.current_page = 1
        topics = self._client.fetch_node_topics(self.node_name, page=1)
        self.topics = list(topics)
        self.has_more = has_more_pages(topics)
        return topics

    def load_more(self) -> List[Topic]:
        """
        Fetch the next page and append it. Returns the new page only.

        On failure the page counter is rolled back and the error re-raised,
        so a later call retries the same page.
        """
        if not self.has_more:
            return []

        self.current_page += 1
        try:
            topics = self._client.fetch_node_topics(self.node_name, page=self.current_page)
        except Exception:
            self.current_page -= 1
            raise

        self.topics.extend(topics)
        self.has_more = has_more_pages(topics)
        return topics


def fetch_feed(client: ForumClient, feed: str) -> List[Topic]:
    """Home feed selector: "latest" or "hot"."""
    if feed == "latest":
        return client.fetch_latest_topics()
    if feed == "hot":
        return client.fetch_hot_topics()
    raise ValueError(f"unknown feed {feed!r}; expected 'latest' or 'hot'")
