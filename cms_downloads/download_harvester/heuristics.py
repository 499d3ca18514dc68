"""Fallback classification of unmarked collection items.

Editors do not always apply field markers, so items without a name marker are
classified from the shape of their children: link children supply the download
address, and the remaining text tokens are assigned to fields by an ordered rule
table followed by length-based title selection.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from .markers import marked_file_link, usable_link
from .normalize import PLACEHOLDER_URL, UNTITLED, ExtractedFields
from .source import ChildHandle, SourceItem

logger = logging.getLogger(__name__)

FILE_SIZE_RE = re.compile(r"[0-9]+|[0-9]+(?:\.[0-9]+)?\s*(?:KB|MB|GB|bytes?)", re.IGNORECASE)
FILE_TYPE_RE = re.compile(r"[A-Z0-9]{2,5}")

FILE_TYPE_VOCABULARY = frozenset(
    {
        "PDF",
        "DWG",
        "ZIP",
        "RFA",
        "SKP",
        "DOC",
        "XLS",
        "JPG",
        "PNG",
        "MP4",
        "Other",
    }
)

MAX_TITLE_LENGTH = 100


def is_file_size(token: str) -> bool:
    return FILE_SIZE_RE.fullmatch(token) is not None


def is_file_type(token: str) -> bool:
    return FILE_TYPE_RE.fullmatch(token) is not None or token in FILE_TYPE_VOCABULARY


@dataclass(frozen=True)
class ClassificationRule:
    """A shape rule claiming matching tokens for ``field``; lower priority runs first."""

    field: str
    priority: int
    predicate: Callable[[str], bool]

    def matches(self, token: str) -> bool:
        return self.predicate(token)


SHAPE_RULES: tuple[ClassificationRule, ...] = tuple(
    sorted(
        (
            ClassificationRule("file_size", 10, is_file_size),
            ClassificationRule("file_type", 20, is_file_type),
        ),
        key=lambda rule: rule.priority,
    )
)


@dataclass
class TokenSlots:
    title: str = ""
    category: str = ""
    product_type: str = ""
    file_size: str = ""
    file_type: str = ""
    discarded: list[str] = field(default_factory=list)


def match_rule(
    token: str, rules: Sequence[ClassificationRule] = SHAPE_RULES
) -> ClassificationRule | None:
    for rule in rules:
        if rule.matches(token):
            return rule
    return None


def outranks_title(candidate: str, current: str) -> bool:
    # Equal length never replaces: the earliest token keeps the title.
    return len(current) < len(candidate) < MAX_TITLE_LENGTH


def place_text_token(slots: TokenSlots, token: str) -> None:
    if not slots.title:
        slots.title = token
        return
    if outranks_title(token, slots.title):
        displaced, slots.title = slots.title, token
        if not slots.category:
            slots.category = displaced
        else:
            slots.discarded.append(displaced)
        return
    if not slots.category:
        slots.category = token
    elif not slots.product_type:
        slots.product_type = token
    else:
        slots.discarded.append(token)


def classify_tokens(
    tokens: Iterable[str], rules: Sequence[ClassificationRule] = SHAPE_RULES
) -> TokenSlots:
    slots = TokenSlots()
    for token in tokens:
        rule = match_rule(token, rules)
        if rule is None:
            place_text_token(slots, token)
            continue
        if not getattr(slots, rule.field):
            setattr(slots, rule.field, token)
        else:
            slots.discarded.append(token)
    return slots


def collect_tokens(
    children: Iterable[ChildHandle], address: str | None = None
) -> tuple[list[str], str | None]:
    """Split children into the download address and the ordered text tokens.

    With ``address`` already known every child contributes its text. Otherwise
    link children are left out of the tokens until one supplies a usable address.
    """

    tokens: list[str] = []
    for child in children:
        if address is None:
            link = child.link_address()
            if link is not None:
                address = usable_link(link)
                continue
        text = child.text()
        if text:
            tokens.append(text)
    return tokens, address


def extract_heuristic_fields(item: SourceItem) -> ExtractedFields:
    tokens, address = collect_tokens(item.children(), marked_file_link(item))
    slots = classify_tokens(tokens)
    if slots.discarded:
        logger.debug("Discarded unclassified tokens: %s", slots.discarded)
    return ExtractedFields(
        name=slots.title or UNTITLED,
        download_url=address or PLACEHOLDER_URL,
        category=slots.category,
        product_category=slots.product_type,
        file_size=slots.file_size,
        file_type=slots.file_type,
    )
