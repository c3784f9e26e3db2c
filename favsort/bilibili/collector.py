# favsort/bilibili/collector.py
import asyncio
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from ..config import Settings
from ..core.retry import RetryExecutor
from ..errors import PaginationOverrun
from ..events import RunObserver
from ..models import CollectedSource, Item, SourceCollection
from .client import ResourcePage

# (collection_id, page_index, page_size) -> page
PageSource = Callable[[str, int, int], Awaitable[ResourcePage]]


async def iter_pages(fetch_page: PageSource,
                     collection_id: str,
                     *,
                     page_size: int = 20,
                     max_page: int = 1000) -> AsyncIterator[ResourcePage]:
    """
    Yield pages 1, 2, 3, ... of a folder until the source is drained.

    The caller decides when to stop (see :meth:`ResourceCollector.collect`);
    asking for a page past ``max_page`` raises :class:`PaginationOverrun`.
    """
    page_index = 1
    while True:
        if page_index > max_page:
            raise PaginationOverrun(collection_id, max_page)
        yield await fetch_page(collection_id, page_index, page_size)
        page_index += 1


class ResourceCollector:
    """
    Read every item of a source folder, page by page, dropping duplicates.

    Pages can overlap when the folder changes while it is being read; an id
    that was already seen is skipped.
    """

    def __init__(self,
                 fetch_page: PageSource,
                 settings: Optional[Settings] = None,
                 observer: Optional[RunObserver] = None) -> None:
        self._fetch_page = fetch_page
        self.settings = settings or Settings()
        self.observer = observer or RunObserver()

    async def collect(self, collection: SourceCollection) -> CollectedSource:
        items: List[Item] = []
        seen = set()
        expected: Optional[int] = None

        pages = iter_pages(
            self._fetch_page,
            collection.id,
            page_size=self.settings.page_size,
            max_page=self.settings.max_page,
        )
        async for page in pages:
            if page.declared_total is not None:
                expected = page.declared_total

            for media in page.medias:
                item = Item.from_api(media, collection)
                if not item.id or item.id in seen:
                    continue
                seen.add(item.id)
                items.append(item)

            more_by_flag = page.has_more
            # without a declared total, the has_more flag alone decides
            more_by_count = expected is not None and len(items) < expected
            if not more_by_flag and not more_by_count:
                break
            if not page.medias:
                break

        source = CollectedSource(collection=collection, items=tuple(items), expected_count=expected)
        if source.shortfall:
            self.observer.count_mismatch(source)
        return source

    async def collect_all(self,
                          collections: Sequence[SourceCollection],
                          retry: RetryExecutor) -> List[CollectedSource]:
        """
        Read several folders concurrently, each read wrapped in ``retry``.

        Results come back in the order of ``collections`` regardless of which
        read finished first.
        """

        async def read(collection: SourceCollection) -> CollectedSource:
            source = await retry.run(
                lambda: self.collect(collection),
                f"read folder {collection.title}",
            )
            self.observer.collection_read(source)
            return source

        return list(await asyncio.gather(*(read(c) for c in collections)))

