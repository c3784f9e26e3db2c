"""
tests/conftest.py

Shared fakes: an in-memory favourites API and a sleep recorder, so the
async core runs without network access or real delays.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

import pytest

from favsort.bilibili.client import ResourcePage
from favsort.config import Settings
from favsort.errors import RemoteCallFailure, ValidationError
from favsort.models import Item, SourceCollection


def make_item(item_id: str, creator: str, t: int, *, name: Optional[str] = None,
              source_id: str = "100", source_title: str = "src") -> Item:
    return Item(
        id=item_id,
        title=f"video {item_id}",
        creator_id=creator,
        creator_name=name or creator,
        saved_timestamp=t,
        source_collection_id=source_id,
        source_collection_title=source_title,
    )


def media(item_id: int, mid: int, name: str, fav_time: int) -> dict:
    return {
        "id": item_id,
        "title": f"video {item_id}",
        "fav_time": fav_time,
        "upper": {"mid": mid, "name": name},
    }


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClient:
    """
    In-memory stand-in for BilibiliClient.

    ``folders`` maps folder id -> (title, medias). Pages are served from the
    media list in ``page_size`` slices. Moves whose resource id is in
    ``failing_moves`` always fail; ``failing_creates`` titles fail likewise.
    Ids in ``rejected_moves`` fail with a non-retryable ValidationError and
    an empty title is rejected the way the real client rejects it.
    """

    def __init__(self, folders: Dict[str, Tuple[str, List[dict]]],
                 failing_moves: Optional[Set[str]] = None,
                 failing_creates: Optional[Set[str]] = None,
                 rejected_moves: Optional[Set[str]] = None) -> None:
        self.folders = folders
        self.failing_moves = failing_moves or set()
        self.failing_creates = failing_creates or set()
        self.rejected_moves = rejected_moves or set()
        self.created: List[Tuple[str, str]] = []
        self.moves: List[Tuple[str, str, str]] = []
        self.move_attempts: List[str] = []
        self._next_id = 900

    async def list_created_folders(self, mid: str) -> List[SourceCollection]:
        return [
            SourceCollection(id=fid, title=title, media_count=len(medias))
            for fid, (title, medias) in self.folders.items()
        ]

    async def list_resources(self, media_id: str, page: int, page_size: int) -> ResourcePage:
        _, medias = self.folders[media_id]
        start = (page - 1) * page_size
        chunk = medias[start:start + page_size]
        return ResourcePage(
            medias=chunk,
            has_more=start + page_size < len(medias),
            declared_total=len(medias),
        )

    async def create_folder(self, title: str) -> str:
        if not title:
            raise ValidationError("Folder title must not be empty")
        if title in self.failing_creates:
            raise RemoteCallFailure(f"create {title} refused")
        self._next_id += 1
        self.created.append((title, str(self._next_id)))
        return str(self._next_id)

    async def move_resource(self, src: str, dst: str, resource_id: str) -> None:
        self.move_attempts.append(resource_id)
        if resource_id in self.failing_moves:
            raise RemoteCallFailure(f"move {resource_id} refused")
        if resource_id in self.rejected_moves:
            raise ValidationError(f"move {resource_id} rejected")
        self.moves.append((src, dst, resource_id))


@pytest.fixture()
def sleep() -> SleepRecorder:
    """Fresh sleep recorder for each test."""
    return SleepRecorder()


@pytest.fixture()
def settings() -> Settings:
    return Settings()
