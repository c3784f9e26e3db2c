"""
tests/test_collector.py

ResourceCollector driven by canned page sources.

Coverage
--------
- Multi-page read with has_more flag
- Duplicate ids across overlapping pages
- Termination on an empty page
- No declared total: has_more alone ends the read
- Declared total above what could be read (warning, not error)
- Page ceiling -> PaginationOverrun
- Concurrent collection keeps source order
"""

from __future__ import annotations

import asyncio
from typing import Dict, List

import pytest

from conftest import media
from favsort.bilibili.client import ResourcePage
from favsort.bilibili.collector import ResourceCollector, iter_pages
from favsort.config import Settings
from favsort.core.retry import RetryExecutor
from favsort.errors import PaginationOverrun
from favsort.events import RunObserver
from favsort.models import SourceCollection

SOURCE = SourceCollection(id="100", title="Watch later")


class CannedPages:
    """Serve a fixed list of pages; page n is pages[n - 1], past the end is empty."""

    def __init__(self, pages: List[ResourcePage]) -> None:
        self.pages = pages
        self.requested: List[int] = []

    async def __call__(self, collection_id: str, page: int, page_size: int) -> ResourcePage:
        self.requested.append(page)
        if page <= len(self.pages):
            return self.pages[page - 1]
        return ResourcePage(medias=[], has_more=False, declared_total=None)


class MismatchObserver(RunObserver):
    def __init__(self) -> None:
        self.mismatches = []

    def count_mismatch(self, source):
        self.mismatches.append(source)


def test_reads_until_has_more_is_false() -> None:
    pages = CannedPages([
        ResourcePage([media(1, 7, "a", 10), media(2, 7, "a", 9)], True, 3),
        ResourcePage([media(3, 8, "b", 8)], False, 3),
    ])
    result = asyncio.run(ResourceCollector(pages).collect(SOURCE))

    assert [i.id for i in result.items] == ["1", "2", "3"]
    assert result.expected_count == 3
    assert pages.requested == [1, 2]
    assert all(i.source_collection_id == "100" for i in result.items)
    assert result.items[0].source_collection_title == "Watch later"


def test_duplicate_items_across_pages_are_kept_once() -> None:
    pages = CannedPages([
        ResourcePage([media(1, 7, "a", 10), media(2, 7, "a", 9)], True, 3),
        ResourcePage([media(2, 7, "a", 9), media(3, 8, "b", 8)], False, 3),
    ])
    result = asyncio.run(ResourceCollector(pages).collect(SOURCE))
    assert [i.id for i in result.items] == ["1", "2", "3"]


def test_keeps_paging_while_count_short_of_declared_total() -> None:
    # has_more is false on page 1 but only 2 of 3 declared items were seen.
    pages = CannedPages([
        ResourcePage([media(1, 7, "a", 10), media(2, 7, "a", 9)], False, 3),
        ResourcePage([media(3, 8, "b", 8)], False, 3),
    ])
    result = asyncio.run(ResourceCollector(pages).collect(SOURCE))
    assert len(result.items) == 3
    assert pages.requested == [1, 2]


def test_no_declared_total_stops_on_has_more_alone() -> None:
    pages = CannedPages([
        ResourcePage([media(1, 7, "a", 10)], True, None),
        ResourcePage([media(2, 7, "a", 9)], False, None),
    ])
    result = asyncio.run(ResourceCollector(pages).collect(SOURCE))

    assert [i.id for i in result.items] == ["1", "2"]
    assert result.expected_count is None
    assert pages.requested == [1, 2]


def test_empty_page_stops_and_shortfall_is_only_a_warning() -> None:
    observer = MismatchObserver()
    pages = CannedPages([
        ResourcePage([media(1, 7, "a", 10)], True, 5),
    ])
    result = asyncio.run(ResourceCollector(pages, observer=observer).collect(SOURCE))

    assert [i.id for i in result.items] == ["1"]
    assert pages.requested == [1, 2]
    assert result.shortfall == 4
    assert observer.mismatches == [result]


def test_missing_uploader_defaults_to_sentinel_creator() -> None:
    pages = CannedPages([ResourcePage([{"id": 5, "title": "x", "fav_time": 1}], False, 1)])
    result = asyncio.run(ResourceCollector(pages).collect(SOURCE))
    assert result.items[0].creator_id == "0"
    assert result.items[0].creator_name == "0"


def test_page_ceiling_raises_pagination_overrun() -> None:
    async def endless(collection_id, page, page_size):
        return ResourcePage([media(page, 7, "a", page)], True, None)

    collector = ResourceCollector(endless, Settings(max_page=5))
    with pytest.raises(PaginationOverrun) as info:
        asyncio.run(collector.collect(SOURCE))
    assert info.value.max_page == 5


def test_iter_pages_is_restartable() -> None:
    pages = CannedPages([ResourcePage([media(1, 7, "a", 1)], False, 1)])

    async def take_two():
        out = []
        async for page in iter_pages(pages, "100", page_size=20, max_page=10):
            out.append(page)
            if len(out) == 2:
                break
        return out

    first = asyncio.run(take_two())
    second = asyncio.run(take_two())
    assert len(first) == len(second) == 2
    assert pages.requested == [1, 2, 1, 2]


def test_collect_all_returns_sources_in_input_order(sleep) -> None:
    data: Dict[str, List[dict]] = {
        "1": [media(11, 7, "a", 1)],
        "2": [media(21, 8, "b", 2), media(22, 8, "b", 3)],
    }

    async def pages(collection_id, page, page_size):
        # the first folder answers last
        if collection_id == "1":
            await asyncio.sleep(0.01)
        medias = data[collection_id] if page == 1 else []
        return ResourcePage(medias, False, len(data[collection_id]))

    collections = [SourceCollection("1", "one"), SourceCollection("2", "two")]
    collector = ResourceCollector(pages)
    sources = asyncio.run(collector.collect_all(collections, RetryExecutor(sleep=sleep)))

    assert [s.collection.id for s in sources] == ["1", "2"]
    assert [len(s.items) for s in sources] == [1, 2]
