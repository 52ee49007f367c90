from __future__ import annotations

"""
CLI entrypoint for browsing the forum from a terminal.

Usage (from repo root):

    python -m v2ex.run_feed latest
    python -m v2ex.run_feed hot
    python -m v2ex.run_feed nodes
    python -m v2ex.run_feed node python --page 2
    python -m v2ex.run_feed topic 1000001

Authenticated commands (node, topic) read the token from V2EX_ACCESS_TOKEN.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence

from v2ex.clients import ForumAPIClient, ForumCredentials
from v2ex.config import get_config
from v2ex.errors import V2EXError
from v2ex.models import Topic
from v2ex.pagination import fetch_feed, has_more_pages
from v2ex.rendering import time_ago


def _print_topics(topics: Sequence[Topic]) -> None:
    for t in topics:
        replies = t.replies if t.replies is not None else 0
        stamp = time_ago(t.last_reply_time or t.created)
        suffix = f", {stamp}" if stamp else ""
        print(
            f"  [{t.node_title}] #{t.id} {t.title} "
            f"({replies} replies, by {t.author_name}{suffix})"
        )


def _page_number(value: str) -> int:
    page = int(value)
    if page < 1:
        raise argparse.ArgumentTypeError(f"pages start at 1, got {page}")
    return page


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="v2ex-feed", description="Print V2EX feeds.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("latest", help="latest topics (public)")
    sub.add_parser("hot", help="hot topics (public)")
    sub.add_parser("nodes", help="all nodes (public)")

    node = sub.add_parser("node", help="topics of one node")
    node.add_argument("name")
    node.add_argument("--page", type=_page_number, default=1)

    topic = sub.add_parser("topic", help="a topic and its first page of replies")
    topic.add_argument("topic_id", type=int)

    return parser


def _run(args: argparse.Namespace, client: ForumAPIClient) -> None:
    if args.command in ("latest", "hot"):
        topics = fetch_feed(client, args.command)
        print(f"[feed] {len(topics)} {args.command} topics")
        _print_topics(topics)

    elif args.command == "nodes":
        nodes = client.fetch_all_nodes()
        print(f"[feed] {len(nodes)} nodes")
        for n in nodes:
            count = n.topics if n.topics is not None else 0
            print(f"  {n.name:24} {n.title} ({count} topics)")

    elif args.command == "node":
        topics = client.fetch_node_topics(args.name, page=args.page)
        print(f"[feed] node {args.name}, page {args.page}: {len(topics)} topics")
        _print_topics(topics)
        if has_more_pages(topics):
            print(f"[feed] more available: --page {args.page + 1}")

    elif args.command == "topic":
        topic = client.fetch_topic(args.topic_id)
        replies = client.fetch_topic_replies(args.topic_id)
        print(f"[feed] {topic.title}  ({topic.node_title}, by {topic.author_name})")
        print(topic.plain_text)
        print(f"\n[feed] {len(replies)} replies")
        for idx, r in enumerate(replies, start=1):
            print(f"  #{idx} {r.author_name} ({time_ago(r.created)}): {r.plain_text}")


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("V2EX_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _build_parser().parse_args(argv)

    creds = ForumCredentials.from_env()
    client = ForumAPIClient(
        credential=creds.token if creds else None,
        config=get_config().forum,
    )

    try:
        _run(args, client)
    except V2EXError as exc:
        print(f"[feed] ERROR: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
