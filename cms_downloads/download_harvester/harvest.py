"""Extraction passes over a CMS collection."""
from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Sequence

from .filtering import ValidityFilter
from .heuristics import extract_heuristic_fields
from .markers import extract_marked_fields
from .normalize import TIER_HEURISTIC, TIER_MARKER, DownloadRecord, assemble_record
from .source import SourceItem

logger = logging.getLogger(__name__)


def extract_record(ordinal: int, item: SourceItem) -> DownloadRecord:
    fields = extract_marked_fields(item)
    if fields is not None:
        return assemble_record(ordinal, fields, TIER_MARKER)
    logger.debug("Item %d has no name marker, using heuristics", ordinal)
    return assemble_record(ordinal, extract_heuristic_fields(item), TIER_HEURISTIC)


def extract_records(items: Iterable[SourceItem]) -> list[DownloadRecord]:
    """Assemble one record per item, valid or not, in collection order."""

    return [extract_record(ordinal, item) for ordinal, item in enumerate(items)]


class Harvester:
    """Runs a single extraction pass and keeps its result until invalidated.

    Once a pass has completed, even with no items, later calls return the
    cached result without walking the tree again. Call :meth:`reset`, or pass a
    ``cache_key`` different from the one of the cached pass, to extract again.
    """

    def __init__(self) -> None:
        self._records: list[DownloadRecord] | None = None
        self._cache_key: Hashable | None = None
        self._filter = ValidityFilter()

    @property
    def has_result(self) -> bool:
        return self._records is not None

    @property
    def cache_key(self) -> Hashable | None:
        return self._cache_key

    @property
    def assembled(self) -> Sequence[DownloadRecord]:
        return self._records if self._records is not None else ()

    def reset(self) -> None:
        self._records = None
        self._cache_key = None
        self._filter.clear()

    def is_stale(self, cache_key: Hashable | None) -> bool:
        if self._records is None:
            return True
        return cache_key is not None and cache_key != self._cache_key

    def harvest(
        self,
        items: Iterable[SourceItem] | None,
        *,
        cache_key: Hashable | None = None,
    ) -> list[DownloadRecord]:
        """Return the valid records of the collection.

        ``items`` of ``None`` means the collection tree is not present yet; no
        pass runs and nothing is cached.
        """

        if not self.is_stale(cache_key):
            return self.records()
        if items is None:
            logger.debug("Collection not present, skipping extraction")
            return []
        records = extract_records(items)
        self._records = records
        self._cache_key = cache_key
        kept = self.records()
        marked = sum(1 for record in records if record.tier == TIER_MARKER)
        logger.info(
            "Extracted %d records (%d marked, %d heuristic), %d kept",
            len(records),
            marked,
            len(records) - marked,
            len(kept),
        )
        return kept

    def records(self) -> list[DownloadRecord]:
        if self._records is None:
            return []
        return self._filter(self._records)


def harvest_items(items: Iterable[SourceItem]) -> list[DownloadRecord]:
    return Harvester().harvest(items)
