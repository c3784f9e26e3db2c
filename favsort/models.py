"""
Data model of a reorganization run.

Everything here is created by one run and discarded with it. Items and groups
are read-only once built; the execution result is assembled by the
orchestrator and frozen when the run ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_CREATOR_ID = "0"


@dataclass(frozen=True)
class SourceCollection:
    id: str
    title: str
    media_count: Optional[int] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "SourceCollection":
        count = raw.get("media_count")
        return cls(
            id=str(raw.get("id", "")),
            title=str(raw.get("title") or ""),
            media_count=int(count) if isinstance(count, (int, float)) else None,
        )


@dataclass(frozen=True)
class Item:
    id: str
    title: str
    creator_id: str
    creator_name: str
    saved_timestamp: int
    source_collection_id: str
    source_collection_title: str

    @classmethod
    def from_api(cls, media: Dict[str, Any], source: SourceCollection) -> "Item":
        """
        Build an item from one entry of the folder resource listing.

        A missing uploader maps to creator ``"0"``; a missing uploader name
        falls back to the creator id.
        """
        upper = media.get("upper") or {}
        creator_id = str(upper.get("mid") or UNKNOWN_CREATOR_ID)
        try:
            saved = int(media.get("fav_time") or 0)
        except (TypeError, ValueError):
            saved = 0
        item_id = str(media.get("id") or "")
        return cls(
            id=item_id,
            title=str(media.get("title") or f"id={item_id}"),
            creator_id=creator_id,
            creator_name=str(upper.get("name") or creator_id),
            saved_timestamp=saved,
            source_collection_id=source.id,
            source_collection_title=source.title,
        )


@dataclass(frozen=True)
class CreatorGroup:
    """All items of one creator, most recently saved first."""

    creator_id: str
    creator_name: str
    items: Tuple[Item, ...]

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Chunk:
    """The planned contents of exactly one destination folder."""

    groups: Tuple[CreatorGroup, ...]

    @property
    def total(self) -> int:
        return sum(g.count for g in self.groups)

    def display_order(self) -> List[Item]:
        return [item for group in self.groups for item in group.items]

    def move_order(self) -> List[Item]:
        # The remote prepends moved items, so moving backwards leaves the
        # destination in display order.
        return list(reversed(self.display_order()))


@dataclass(frozen=True)
class CollectedSource:
    """What a collector read out of one source folder."""

    collection: SourceCollection
    items: Tuple[Item, ...]
    expected_count: Optional[int]

    @property
    def shortfall(self) -> int:
        if self.expected_count is None:
            return 0
        return max(0, self.expected_count - len(self.items))


@dataclass(frozen=True)
class MigrationPlan:
    base_name: str
    capacity: int
    sources: Tuple[CollectedSource, ...]
    groups: Tuple[CreatorGroup, ...]
    chunks: Tuple[Chunk, ...]

    @property
    def items(self) -> List[Item]:
        return [item for source in self.sources for item in source.items]

    @property
    def total_items(self) -> int:
        return sum(len(source.items) for source in self.sources)

    def summary(self) -> str:
        """Human readable overview shown before asking for confirmation."""
        lines = [
            f"About to move {self.total_items} items into {len(self.chunks)} new folder(s).",
            f"Per-folder limit: {self.capacity}.",
            f"Sources: {len(self.sources)} folder(s), {len(self.groups)} creator(s).",
            "",
        ]
        for idx, chunk in enumerate(self.chunks):
            first = chunk.groups[0].creator_name if chunk.groups else "-"
            last = chunk.groups[-1].creator_name if chunk.groups else "-"
            lines.append(
                f"Folder {idx + 1}: {chunk.total} items / {len(chunk.groups)} creators ({first} -> {last})"
            )
        return "\n".join(lines)


@dataclass(frozen=True)
class MoveFailure:
    item: Item
    reason: str
    collection_name: str = ""


@dataclass(frozen=True)
class CreatedCollection:
    name: str
    id: str
    planned_total: int


@dataclass(frozen=True)
class ExecutionResult:
    success_count: int = 0
    failures: Tuple[MoveFailure, ...] = ()
    created_collections: Tuple[CreatedCollection, ...] = ()
    total_items: int = 0

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def summary(self) -> str:
        folders = "; ".join(
            f"{c.name}(id={c.id}, {c.planned_total} items)" for c in self.created_collections
        )
        return (
            f"Done: {self.success_count}/{self.total_items} moved, "
            f"{self.failure_count} failed. New folders: {folders or '-'}"
        )


@dataclass
class ResultBuilder:
    """Mutable accumulator the orchestrator fills while a run is in progress."""

    total_items: int
    success_count: int = 0
    failures: List[MoveFailure] = field(default_factory=list)
    created_collections: List[CreatedCollection] = field(default_factory=list)

    def build(self) -> ExecutionResult:
        return ExecutionResult(
            success_count=self.success_count,
            failures=tuple(self.failures),
            created_collections=tuple(self.created_collections),
            total_items=self.total_items,
        )
