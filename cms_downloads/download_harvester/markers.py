"""Deterministic extraction from editor-applied field markers."""
from __future__ import annotations

from .normalize import PLACEHOLDER_URL, ExtractedFields
from .source import SourceItem


def usable_link(address: str | None) -> str | None:
    if not address or address == PLACEHOLDER_URL:
        return None
    return address


def marked_file_link(item: SourceItem) -> str | None:
    return usable_link(item.link_by_marker("file-link"))


def resolve_marked_link(item: SourceItem) -> str:
    return marked_file_link(item) or usable_link(item.first_link()) or PLACEHOLDER_URL


def extract_marked_fields(item: SourceItem) -> ExtractedFields | None:
    """Read explicit markers, or return ``None`` when the name marker is empty.

    A hit never borrows values from the heuristic tier: absent markers stay empty.
    """

    name = item.text_by_marker("name")
    if not name:
        return None
    return ExtractedFields(
        name=name,
        download_url=resolve_marked_link(item),
        category=item.text_by_marker("category"),
        product_category=item.text_by_marker("product-category"),
        file_size=item.text_by_marker("file-size"),
        file_type=item.text_by_marker("file-type"),
    )
