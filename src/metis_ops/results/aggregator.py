"""Latest-outcome aggregation across execution runs.

A dataset is usually processed several times over the course of a migration
(retries, new batches, re-harvests). Reports and skip lists must only look at
the most recent attempt per plugin, so outcomes collected from all runs are
merged into a nested store::

    category (PluginType) ─► entity_id (dataset id, ascending) ─► Outcome

Merge rule on ``record``:
    - no outcome for the key yet      -> store it
    - incoming run_id > stored run_id -> replace
    - otherwise (older or equal)      -> keep the stored one (first seen wins)

Run ids are assumed strictly increasing over time; the aggregator compares
them but never derives them. Entries are never removed.

Example:
    >>> aggregator = LatestOutcomeAggregator()
    >>> for result in results_from_all_logs:
    ...     aggregator.record(result)
    >>> previews = aggregator.get(PluginType.PREVIEW)
"""

from __future__ import annotations

import threading
from bisect import insort
from collections.abc import Hashable, Iterable, Mapping
from types import MappingProxyType
from typing import Generic, TypeVar

from metis_ops.results.model import Outcome

O = TypeVar("O", bound=Outcome)

_EMPTY: Mapping = MappingProxyType({})


class _CategoryStore(Generic[O]):
    """Outcomes of one category, kept in ascending entity id order."""

    __slots__ = ("outcomes", "order")

    def __init__(self) -> None:
        self.outcomes: dict[str, O] = {}
        self.order: list[str] = []

    def merge(self, outcome: O) -> bool:
        existing = self.outcomes.get(outcome.entity_id)
        if existing is None:
            insort(self.order, outcome.entity_id)
            self.outcomes[outcome.entity_id] = outcome
            return True
        if outcome.run_id > existing.run_id:
            self.outcomes[outcome.entity_id] = outcome
            return True
        return False

    def view(self) -> Mapping[str, O]:
        return MappingProxyType({entity_id: self.outcomes[entity_id] for entity_id in self.order})


class LatestOutcomeAggregator(Generic[O]):
    """Keeps, per (category, entity id), only the outcome of the latest run.

    ``record`` is atomic per key: the read-compare-write happens under a
    lock, so several producer threads may feed the same aggregator.
    """

    def __init__(self) -> None:
        self._store: dict[Hashable, _CategoryStore[O]] = {}
        self._lock = threading.Lock()

    def record(self, outcome: O) -> bool:
        """Merge an outcome into the store.

        Returns:
            True if the outcome is now the retained one for its key.

        Raises:
            ValueError: The outcome has no category or no entity id.
        """
        if outcome.category is None:
            raise ValueError(f"Outcome has no category: {outcome!r}")
        if not outcome.entity_id:
            raise ValueError(f"Outcome has no entity id: {outcome!r}")
        if outcome.run_id is None:
            raise ValueError(f"Outcome has no run id: {outcome!r}")

        with self._lock:
            category_store = self._store.get(outcome.category)
            if category_store is None:
                category_store = self._store[outcome.category] = _CategoryStore()
            return category_store.merge(outcome)

    def record_all(self, outcomes: Iterable[O]) -> int:
        """Record several outcomes; returns how many became the retained one."""
        return sum(1 for outcome in outcomes if self.record(outcome))

    def get(self, category: Hashable) -> Mapping[str, O]:
        """Immutable, entity-id-ascending view of one category.

        Unknown categories give an empty view, never None.
        """
        with self._lock:
            category_store = self._store.get(category)
            if category_store is None:
                return _EMPTY
            return category_store.view()

    def categories(self) -> list[Hashable]:
        with self._lock:
            return list(self._store)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(store.outcomes) for store in self._store.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        category, entity_id = key
        with self._lock:
            category_store = self._store.get(category)
            return category_store is not None and entity_id in category_store.outcomes


__all__ = ["LatestOutcomeAggregator"]
