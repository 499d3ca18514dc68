"""Item adapters over CMS collection trees."""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

DEFAULT_ITEM_SELECTORS = [".sch-cms-item", ".w-dyn-item"]
DEFAULT_MARKER_PREFIX = "sch-data-"

# Markers whose class name does not follow ``<prefix><marker>``.
MARKER_CLASS_OVERRIDES = {"file-link": "file"}


class ChildHandle(Protocol):
    def text(self) -> str: ...

    def link_address(self) -> str | None: ...


class SourceItem(Protocol):
    def text_by_marker(self, marker: str) -> str: ...

    def link_by_marker(self, marker: str) -> str | None: ...

    def first_link(self) -> str | None: ...

    def children(self) -> Sequence[ChildHandle]: ...


@dataclass(frozen=True)
class MarkerScheme:
    """Maps marker names onto the CSS classes editors apply in the CMS."""

    prefix: str = DEFAULT_MARKER_PREFIX
    overrides: Mapping[str, str] = field(
        default_factory=lambda: dict(MARKER_CLASS_OVERRIDES)
    )

    def class_name(self, marker: str) -> str:
        return f"{self.prefix}{self.overrides.get(marker, marker)}"

    def selector(self, marker: str) -> str:
        return f".{self.class_name(marker)}"


def _dedupe(sequence: Iterable[str]) -> list[str]:
    seen = set()
    result: list[str] = []
    for item in sequence:
        if item and item not in seen:
            result.append(item)
            seen.add(item)
    return result


def resolve_marker_prefix(value: str | None) -> str:
    if value:
        return value
    env_value = os.environ.get("HARVEST_MARKER_PREFIX")
    if env_value and env_value.strip():
        return env_value.strip()
    return DEFAULT_MARKER_PREFIX


def resolve_item_selectors(selectors: Iterable[str] | None) -> list[str]:
    if selectors:
        order = [selector.strip() for selector in selectors if selector and selector.strip()]
    else:
        env_value = os.environ.get("HARVEST_ITEM_SELECTORS")
        if env_value:
            order = [selector.strip() for selector in env_value.split(",") if selector.strip()]
        else:
            order = list(DEFAULT_ITEM_SELECTORS)
    return _dedupe(order) or list(DEFAULT_ITEM_SELECTORS)


def resolve_base_url(value: str | None) -> str | None:
    if value:
        return value
    env_value = os.environ.get("HARVEST_BASE_URL")
    if env_value and env_value.strip():
        return env_value.strip()
    return None


def _element_text(tag: Tag) -> str:
    return tag.get_text().strip()


def _anchor_address(tag: Tag, base_url: str | None) -> str | None:
    href = tag.get("href")
    if not isinstance(href, str):
        return None
    href = href.strip()
    # Unbound CMS link fields render as href="#".
    if not href or href == "#":
        return None
    return urljoin(base_url, href) if base_url else href


def _first_anchor_address(tag: Tag, base_url: str | None) -> str | None:
    for anchor in tag.find_all("a", href=True):
        if isinstance(anchor, Tag):
            address = _anchor_address(anchor, base_url)
            if address:
                return address
    return None


def _tag_link(tag: Tag, base_url: str | None) -> str | None:
    """Address of a link element or its first usable descendant link.

    An element that is or holds an ``<a>`` with no usable ``href`` yields ``""``,
    so callers can tell "link without address" from "no link at all".
    """
    if tag.name == "a":
        return _anchor_address(tag, base_url) or ""
    if tag.find("a") is None:
        return None
    return _first_anchor_address(tag, base_url) or ""


class HtmlChild:
    def __init__(self, tag: Tag, base_url: str | None = None) -> None:
        self.tag = tag
        self.base_url = base_url

    def text(self) -> str:
        return _element_text(self.tag)

    def link_address(self) -> str | None:
        return _tag_link(self.tag, self.base_url)


class HtmlItem:
    """One collection item of a parsed page."""

    def __init__(
        self,
        tag: Tag,
        scheme: MarkerScheme | None = None,
        base_url: str | None = None,
    ) -> None:
        self.tag = tag
        self.scheme = scheme or MarkerScheme()
        self.base_url = base_url

    def _marker_element(self, marker: str) -> Tag | None:
        element = self.tag.select_one(self.scheme.selector(marker))
        return element if isinstance(element, Tag) else None

    def text_by_marker(self, marker: str) -> str:
        element = self._marker_element(marker)
        return _element_text(element) if element is not None else ""

    def link_by_marker(self, marker: str) -> str | None:
        element = self._marker_element(marker)
        if element is None:
            return None
        return _tag_link(element, self.base_url)

    def first_link(self) -> str | None:
        return _first_anchor_address(self.tag, self.base_url)

    def children(self) -> list[HtmlChild]:
        return [
            HtmlChild(child, self.base_url)
            for child in self.tag.find_all(recursive=False)
            if isinstance(child, Tag)
        ]


@dataclass
class FixtureChild:
    """In-memory child: ``link`` is the address when the child is or holds a link."""

    content: str = ""
    link: str | None = None

    def text(self) -> str:
        return self.content.strip()

    def link_address(self) -> str | None:
        return self.link


@dataclass
class FixtureItem:
    markers: dict[str, str] = field(default_factory=dict)
    marker_links: dict[str, str] = field(default_factory=dict)
    items: list[FixtureChild] = field(default_factory=list)

    def text_by_marker(self, marker: str) -> str:
        return self.markers.get(marker, "").strip()

    def link_by_marker(self, marker: str) -> str | None:
        return self.marker_links.get(marker)

    def first_link(self) -> str | None:
        for link in self.marker_links.values():
            if link:
                return link
        for child in self.items:
            if child.link:
                return child.link
        return None

    def children(self) -> list[FixtureChild]:
        return list(self.items)


def find_collection_items(
    soup: BeautifulSoup | Tag,
    *,
    slot_name: str | None = None,
    selectors: Iterable[str] | None = None,
) -> list[Tag] | None:
    """Locate collection item elements in document order.

    Returns ``None`` when ``slot_name`` is given and no such slot exists yet,
    which callers treat as "tree not present" rather than an empty collection.
    """

    container: BeautifulSoup | Tag = soup
    if slot_name:
        slot = soup.find("slot", attrs={"name": slot_name})
        if not isinstance(slot, Tag):
            logger.debug("Slot %r not found in page", slot_name)
            return None
        container = slot
    selector = ", ".join(resolve_item_selectors(selectors))
    found = [tag for tag in container.select(selector) if isinstance(tag, Tag)]
    logger.debug("Found %d CMS items", len(found))
    return found


def parse_html(
    text: str,
    *,
    slot_name: str | None = None,
    selectors: Iterable[str] | None = None,
    scheme: MarkerScheme | None = None,
    base_url: str | None = None,
) -> list[HtmlItem] | None:
    soup = BeautifulSoup(text, "lxml")
    tags = find_collection_items(soup, slot_name=slot_name, selectors=selectors)
    if tags is None:
        return None
    resolved_base = resolve_base_url(base_url)
    effective_scheme = scheme or MarkerScheme(prefix=resolve_marker_prefix(None))
    return [HtmlItem(tag, effective_scheme, resolved_base) for tag in tags]


def load_html_items(
    path: Path,
    *,
    slot_name: str | None = None,
    selectors: Iterable[str] | None = None,
    scheme: MarkerScheme | None = None,
    base_url: str | None = None,
) -> list[HtmlItem] | None:
    text = path.read_text(encoding="utf-8", errors="ignore")
    return parse_html(
        text,
        slot_name=slot_name,
        selectors=selectors,
        scheme=scheme,
        base_url=base_url,
    )
