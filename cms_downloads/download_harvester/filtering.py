"""Memoized validity filter for assembled records."""
from __future__ import annotations

from collections.abc import Sequence

from .normalize import DownloadRecord


def filter_valid(records: Sequence[DownloadRecord]) -> list[DownloadRecord]:
    return [record for record in records if record.is_valid]


class ValidityFilter:
    """Keeps records with a name and a real address.

    The result is recomputed only when a different sequence object is passed in;
    the same input returns the very same list object so consumers can skip work
    on an unchanged reference.
    """

    def __init__(self) -> None:
        self._source: Sequence[DownloadRecord] | None = None
        self._result: list[DownloadRecord] = []

    def __call__(self, records: Sequence[DownloadRecord]) -> list[DownloadRecord]:
        if records is self._source:
            return self._result
        self._source = records
        self._result = filter_valid(records)
        return self._result

    def clear(self) -> None:
        self._source = None
        self._result = []
