"""Downloading and parsing RSS feeds."""

from __future__ import annotations

import html
import urllib.error
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

USER_AGENT = "gator"
REQUEST_TIMEOUT = 30.0


class FetchError(Exception):
    """A feed could not be downloaded or parsed."""


@dataclass
class RSSItem:
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass
class RSSFeed:
    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


def _local_name(tag: object) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _children(parent: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in parent if _local_name(child.tag) == name]


def _char_data(element: ET.Element) -> str:
    """Character data directly inside ``element``, without that of nested elements."""
    return "".join([element.text or "", *(child.tail or "" for child in element)])


def _text_of(parent: ET.Element, name: str) -> str:
    found = _children(parent, name)
    return _char_data(found[0]) if found else ""


def parse_feed(data: bytes | str) -> RSSFeed:
    """Parse an RSS document, unescaping HTML entities in titles and descriptions."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise FetchError(f"invalid feed XML: {exc}") from exc

    channels = _children(root, "channel")
    if not channels:
        return RSSFeed()
    channel = channels[0]
    items = [
        RSSItem(
            title=html.unescape(_text_of(item, "title")),
            link=_text_of(item, "link"),
            description=html.unescape(_text_of(item, "description")),
            pub_date=_text_of(item, "pubDate"),
        )
        for item in _children(channel, "item")
    ]
    return RSSFeed(
        title=html.unescape(_text_of(channel, "title")),
        link=_text_of(channel, "link"),
        description=html.unescape(_text_of(channel, "description")),
        items=items,
    )


def fetch_feed(feed_url: str) -> RSSFeed:
    """Download the feed at ``feed_url`` and parse it."""
    try:
        request = urllib.request.Request(feed_url, headers={"User-Agent": USER_AGENT})
        with urllib.request.urlopen(request, timeout=REQUEST_TIMEOUT) as response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as exc:
        raise FetchError(f"response code not OK: {exc.code}") from exc
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise FetchError(f"request failed: {exc}") from exc
    if status != 200:
        raise FetchError(f"response code not OK: {status}")
    return parse_feed(body)