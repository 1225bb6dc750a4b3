"""Extract place records from a Maps results feed."""

from __future__ import annotations

import re

from selectolax.parser import HTMLParser, Node

from ..models import Record, SearchTask

FEED_SELECTOR = "div.m6QErb.DxyBCb.kA9KIf.dS8AEf"
LISTING_SELECTOR = "div.Nv2PK"

NAME_SELECTOR = "div.qBF1Pd.fontHeadlineSmall"
RATING_SELECTOR = "span.MW4etd"
REVIEWS_SELECTOR = "span.UY7F9"
ADDRESS_SELECTOR = "div.W4Efsd:nth-child(1)"
HOURS_SELECTOR = "div.W4Efsd:nth-child(2)"
PHONE_SELECTOR = "div.W4Efsd span.UsdlK"
WEBSITE_SELECTOR = "a.lcr4fd"

SEGMENT_SEPARATOR = "·"
_RATING_PATTERN = re.compile(r"\d+(?:[.,]\d+)?")


class ListingParser:
    """Parse listing cards; every field except the name is optional."""

    def parse_listings(self, html: str, task: SearchTask) -> list[Record]:
        tree = HTMLParser(html)
        scope = tree.css_first(FEED_SELECTOR) or tree.root
        if scope is None:
            return []
        records: list[Record] = []
        for node in scope.css(LISTING_SELECTOR):
            record = self.parse_listing(node, task)
            if record is not None:
                records.append(record)
        return records

    def parse_listing(self, node: Node, task: SearchTask) -> Record | None:
        name = _text(node, NAME_SELECTOR)
        if not name:
            return None
        return Record(
            name=name,
            address=self._address(node),
            rating=self._rating(node),
            review_count=self._review_count(node),
            coordinates=task.center,
            hours=self._hours(node),
            phone=_text(node, PHONE_SELECTOR),
            website=_attribute(node, WEBSITE_SELECTOR, "href"),
        )

    @staticmethod
    def _rating(node: Node) -> float:
        text = _text(node, RATING_SELECTOR)
        match = _RATING_PATTERN.search(text or "")
        if not match:
            return 0.0
        return float(match.group(0).replace(",", "."))

    @staticmethod
    def _review_count(node: Node) -> int:
        text = _text(node, REVIEWS_SELECTOR)
        digits = re.sub(r"\D", "", text or "")
        return int(digits) if digits else 0

    @staticmethod
    def _address(node: Node) -> str:
        line = _text(node, ADDRESS_SELECTOR)
        if not line:
            return ""
        return line.split(SEGMENT_SEPARATOR)[-1].strip()

    @staticmethod
    def _hours(node: Node) -> str | None:
        line = _text(node, HOURS_SELECTOR)
        if not line:
            return None
        segments = line.split(SEGMENT_SEPARATOR)
        if len(segments) < 2:
            return None
        return segments[0].strip() or None


def _text(node: Node, selector: str) -> str | None:
    found = node.css_first(selector)
    if found is None:
        return None
    return " ".join(found.text(separator=" ").split())


def _attribute(node: Node, selector: str, attribute: str) -> str | None:
    found = node.css_first(selector)
    if found is None:
        return None
    value = found.attributes.get(attribute)
    return value.strip() if value else None


__all__ = ["FEED_SELECTOR", "LISTING_SELECTOR", "ListingParser"]
