"""Upsert-or-merge table shared by every learned pattern type."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Generic, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Similarity = Callable[[T, T], bool]
Merge = Callable[[T, T, datetime], None]


def _default_similar(existing, candidate) -> bool:
    return existing.is_similar(candidate)


def _default_merge(existing, candidate, at: datetime) -> None:
    existing.record_occurrence(at)


class MergeTable(Generic[T]):
    """Ordered collection where similar entries are merged instead of duplicated.

    ``similar(existing, candidate)`` decides whether a candidate describes an
    entry already in the table; ``merge(existing, candidate, at)`` folds the
    sighting into that entry. Both default to the entry's own
    ``is_similar`` / ``record_occurrence`` methods.

    The table is unbounded unless ``max_entries`` is set, in which case the
    least recently inserted-or-merged entry is evicted first.
    """

    def __init__(
        self,
        similar: Optional[Similarity] = None,
        merge: Optional[Merge] = None,
        max_entries: Optional[int] = None,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._similar = similar or _default_similar
        self._merge = merge or _default_merge
        self._max_entries = max_entries
        self._entries: list[T] = []

    @property
    def max_entries(self) -> Optional[int]:
        return self._max_entries

    def upsert(self, candidate: T, at: datetime) -> tuple[T, bool]:
        """Merge ``candidate`` into the first similar entry, or insert it.

        Returns the entry now holding the sighting and whether a merge happened.
        """
        for index, existing in enumerate(self._entries):
            if self._similar(existing, candidate):
                self._merge(existing, candidate, at)
                if self._max_entries is not None:
                    self._entries.append(self._entries.pop(index))
                return existing, True

        self._entries.append(candidate)
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            evicted = self._entries.pop(0)
            logger.debug("Evicted least recently used pattern %r", evicted)
        return candidate, False

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        return next((entry for entry in self._entries if predicate(entry)), None)

    def remove(self, entry: T) -> None:
        self._entries.remove(entry)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
