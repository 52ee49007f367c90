from __future__ import annotations

import time
from typing import List, Optional

from bs4 import BeautifulSoup

BLOCK_TAGS = ["p", "div", "li", "pre", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]


def html_to_text(html: str) -> str:
    """
    Flatten the `content_rendered` HTML of a topic or reply into plain text.

    Block elements become paragraphs and <br> becomes a line break. Runs of
    blank lines are collapsed so paragraphs are separated by exactly one
    empty line.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_before("\n\n")
        block.insert_after("\n\n")

    paragraphs: List[str] = []
    current: List[str] = []
    for line in soup.get_text().splitlines():
        line = line.strip()
        if line:
            current.append(line)
        elif current:
            paragraphs.append("\n".join(current))
            current = []
    if current:
        paragraphs.append("\n".join(current))

    return "\n\n".join(paragraphs)


def body_text(rendered: Optional[str], raw: Optional[str]) -> str:
    """Prefer the rendered HTML body; fall back to the raw (markdown) one."""
    if rendered:
        return html_to_text(rendered)
    return (raw or "").strip()


_UNITS = [
    (365 * 24 * 3600, "yr"),
    (30 * 24 * 3600, "mo"),
    (7 * 24 * 3600, "wk"),
    (24 * 3600, "day"),
    (3600, "hr"),
    (60, "min"),
]


def time_ago(timestamp: Optional[int], now: Optional[float] = None) -> str:
    """
    Abbreviated relative time for a Unix timestamp: "3 min ago",
    "2 days ago", "in 1 hr". Under a minute reads "just now".
    """
    if timestamp is None:
        return ""
    if now is None:
        now = time.time()

    delta = int(now - timestamp)
    seconds = abs(delta)
    for size, unit in _UNITS:
        if seconds >= size:
            count = seconds // size
            label = f"{count} {unit}{'s' if unit == 'day' and count != 1 else ''}"
            return f"{label} ago" if delta >= 0 else f"in {label}"
    return "just now"
