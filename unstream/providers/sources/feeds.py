"""RSS parsing shared by the feed-backed release checkers (Mirlo, Faircamp)."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from unstream.utils.dates import to_iso


@dataclass(frozen=True)
class FeedItem:
    """One ``<item>`` of an RSS feed with its date folded to ISO."""

    title: str
    link: str
    pub_date: str


class RssFeedParser:
    """Reads ``<item>`` elements in document order (feeds list newest first).

    Items missing a title, a link or a readable ``pubDate`` are skipped.
    """

    def parse(self, xml_text: str, limit: int | None = None) -> list[FeedItem]:
        try:
            root = ET.fromstring(xml_text.strip())
        except ET.ParseError:
            return []

        items: list[FeedItem] = []
        for element in root.iter("item"):
            title = (element.findtext("title") or "").strip()
            link = (element.findtext("link") or "").strip()
            pub_date = to_iso(element.findtext("pubDate"))
            if not title or not link or pub_date is None:
                continue
            items.append(FeedItem(title=title, link=link, pub_date=pub_date))
            if limit is not None and len(items) >= limit:
                break
        return items
