"""Ordered collection of accepted insertions for one planning session."""

from __future__ import annotations

from typing import Iterator

from stereotax_control.planning.trajectory import InsertionRecord


def drill_order_key(record: InsertionRecord) -> tuple[float, float]:
    """Anterior holes first, then left to right within a row."""
    return (-record.ap, record.hole_ml)


class InsertionRegistry:
    """Append-only sequence of :class:`InsertionRecord`.

    Records are never modified or removed; :meth:`sort_for_drilling`
    only reorders them in place.
    """

    def __init__(self) -> None:
        self._records: list[InsertionRecord] = []

    def append(self, record: InsertionRecord) -> None:
        self._records.append(record)

    def sort_for_drilling(self) -> None:
        """Stable sort: AP descending, then hole ML ascending."""
        self._records.sort(key=drill_order_key)

    def names(self) -> list[str]:
        """Sorted unique base names (no side suffix)."""
        return sorted({r.name for r in self._records})

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[InsertionRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> InsertionRecord:
        return self._records[index]

    def __bool__(self) -> bool:
        return bool(self._records)

    def snapshot(self) -> tuple[InsertionRecord, ...]:
        """Immutable view of the current order."""
        return tuple(self._records)
