"""
Run observers.

The core never logs on its own. It reports what happens to a
:class:`RunObserver`; :class:`LoggingObserver` is the default one and turns
events into log lines.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .models import (
    Chunk,
    CollectedSource,
    CreatedCollection,
    ExecutionResult,
    Item,
    MigrationPlan,
    MoveFailure,
)


class RunObserver:
    """No-op base. Override the hooks you care about."""

    def attempt_failed(self, label: str, attempt: int, max_attempts: int, error: BaseException) -> None:
        pass

    def collection_read(self, source: CollectedSource) -> None:
        pass

    def count_mismatch(self, source: CollectedSource) -> None:
        pass

    def plan_ready(self, plan: MigrationPlan) -> None:
        pass

    def collection_created(self, created: CreatedCollection, chunk_index: int, chunk: Chunk) -> None:
        pass

    def item_moved(self, item: Item, label: str) -> None:
        pass

    def item_failed(self, failure: MoveFailure, label: str) -> None:
        pass

    def run_completed(self, result: ExecutionResult) -> None:
        pass


class LoggingObserver(RunObserver):
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("favsort")

    def attempt_failed(self, label, attempt, max_attempts, error):
        self.logger.warning("%s failed, attempt %d/%d: %s", label, attempt, max_attempts, error)

    def collection_read(self, source):
        expected = f"/{source.expected_count}" if source.expected_count is not None else ""
        self.logger.info("Read folder %r: %d%s items",
                         source.collection.title, len(source.items), expected)

    def count_mismatch(self, source):
        self.logger.warning(
            "Folder %r declares %s items but only %d could be read.",
            source.collection.title or source.collection.id,
            source.expected_count,
            len(source.items),
        )

    def plan_ready(self, plan):
        self.logger.info("Planned %d items into %d folder(s) (limit %d).",
                         plan.total_items, len(plan.chunks), plan.capacity)

    def collection_created(self, created, chunk_index, chunk):
        self.logger.info("Created folder %s (%s), %d items planned",
                         created.name, created.id, created.planned_total)

    def item_moved(self, item, label):
        self.logger.info("✔ %s", label)

    def item_failed(self, failure, label):
        self.logger.error("✘ %s: %s", label, failure.reason)

    def run_completed(self, result):
        self.logger.info(result.summary())


class CompositeObserver(RunObserver):
    """Fan one event stream out to several observers."""

    def __init__(self, observers: Iterable[RunObserver]) -> None:
        self.observers: List[RunObserver] = list(observers)

    def attempt_failed(self, label, attempt, max_attempts, error):
        for o in self.observers:
            o.attempt_failed(label, attempt, max_attempts, error)

    def collection_read(self, source):
        for o in self.observers:
            o.collection_read(source)

    def count_mismatch(self, source):
        for o in self.observers:
            o.count_mismatch(source)

    def plan_ready(self, plan):
        for o in self.observers:
            o.plan_ready(plan)

    def collection_created(self, created, chunk_index, chunk):
        for o in self.observers:
            o.collection_created(created, chunk_index, chunk)

    def item_moved(self, item, label):
        for o in self.observers:
            o.item_moved(item, label)

    def item_failed(self, failure, label):
        for o in self.observers:
            o.item_failed(failure, label)

    def run_completed(self, result):
        for o in self.observers:
            o.run_completed(result)
