import asyncio
from functools import partial
from typing import Any, List, Optional, Sequence, Union

from ..bilibili.collector import ResourceCollector
from ..config import Settings
from ..errors import FavSortError, MigrationAborted, ValidationError
from ..events import LoggingObserver, RunObserver
from ..models import (
    Chunk,
    CreatedCollection,
    ExecutionResult,
    Item,
    MigrationPlan,
    MoveFailure,
    ResultBuilder,
)
from ..planner.grouping import build_chunks, group_by_creator
from ..planner.naming import (
    NamingPolicy,
    build_target_folder_name,
    normalize_base_name,
    pick_folders_by_name,
    validate_capacity,
)
from .retry import RetryExecutor, Sleep


class MigrationOrchestrator:
    """
    Two-phase driver of a reorganization run.

    :meth:`plan` only reads: it resolves the source folders, reads them
    concurrently, groups and packs the items. :meth:`run` then creates the
    destination folders and moves items one at a time. Whether a plan is
    executed at all is the caller's decision.

    ``client`` needs ``list_created_folders(mid)``,
    ``list_resources(media_id, page, page_size)``, ``create_folder(title)``
    and ``move_resource(src, dst, resource_id)`` coroutines.
    """

    def __init__(self,
                 client: Any,
                 settings: Optional[Settings] = None,
                 observer: Optional[RunObserver] = None,
                 *,
                 sleep: Sleep = asyncio.sleep) -> None:
        self._client = client
        self.settings = settings or Settings()
        self.observer = observer or LoggingObserver()
        self._sleep = sleep
        self._retry = RetryExecutor(
            self.settings.max_retry,
            self.settings.retry_base_delay_seconds,
            observer=self.observer,
            sleep=sleep,
        )
        self._collector = ResourceCollector(client.list_resources, self.settings, self.observer)

    # ---------- planning ----------
    async def plan(self,
                   mid: str,
                   folder_names: Sequence[str],
                   base_name: Optional[str] = None,
                   capacity: Union[str, int, None] = None) -> MigrationPlan:
        """
        Build the plan without touching anything remotely.

        Raises ValidationError (including OversizedGroup) for bad input or an
        impossible plan, PaginationOverrun for a runaway listing and
        RetryExhausted when reading fails repeatedly.
        """
        s = self.settings
        cap = validate_capacity(capacity, s.max_folder_size, s.default_target_folder_size)
        base = normalize_base_name(base_name or "", s.base_name_max_length, s.default_folder_base_name)
        names = [n.strip() for n in folder_names if n and n.strip()]
        if not names:
            raise ValidationError("Enter at least one source folder name.")

        folders = await self._retry.run(
            lambda: self._client.list_created_folders(mid), "list folders"
        )
        selected, missing = pick_folders_by_name(folders, names)
        if missing:
            raise ValidationError(f"These folders do not exist or do not match: {', '.join(missing)}")
        if not selected:
            raise ValidationError("No folder matched.")

        sources = await self._collector.collect_all(selected, self._retry)
        if not any(source.items for source in sources):
            raise ValidationError("The selected folders contain no items to move.")

        items: List[Item] = [item for source in sources for item in source.items]
        groups = group_by_creator(items)
        chunks = build_chunks(groups, cap)

        plan = MigrationPlan(
            base_name=base,
            capacity=cap,
            sources=tuple(sources),
            groups=tuple(groups),
            chunks=tuple(chunks),
        )
        self.observer.plan_ready(plan)
        return plan

    def default_naming_policy(self) -> NamingPolicy:
        return partial(
            build_target_folder_name,
            max_length=self.settings.max_folder_name_length,
            default=self.settings.default_folder_base_name,
        )

    # ---------- execution ----------
    async def run(self, plan: MigrationPlan,
                  naming_policy: Optional[NamingPolicy] = None) -> ExecutionResult:
        """
        Create one folder per chunk and move the chunk's items into it.

        Chunks go strictly in order. A folder that cannot be created, for any
        reason, aborts the run with MigrationAborted (earlier folders and moves
        stay as they are). A move that fails, retried or not, is recorded and
        the run goes on.
        """
        naming_policy = naming_policy or self.default_naming_policy()
        builder = ResultBuilder(total_items=plan.total_items)
        total_chunks = len(plan.chunks)

        for chunk_index, chunk in enumerate(plan.chunks):
            name = naming_policy(plan.base_name, chunk_index, total_chunks)
            try:
                dst_id = await self._retry.run(
                    partial(self._client.create_folder, name), f"create folder {name}"
                )
            except FavSortError as e:
                raise MigrationAborted(
                    f"Could not create folder {name!r}; stopped at folder "
                    f"{chunk_index + 1}/{total_chunks}: {e}",
                    builder.build(),
                    chunk_index,
                ) from e

            created = CreatedCollection(name=name, id=str(dst_id), planned_total=chunk.total)
            builder.created_collections.append(created)
            self.observer.collection_created(created, chunk_index, chunk)

            await self._move_chunk(chunk, chunk_index, total_chunks, created, builder)

        result = builder.build()
        self.observer.run_completed(result)
        return result

    async def _move_chunk(self,
                          chunk: Chunk,
                          chunk_index: int,
                          total_chunks: int,
                          destination: CreatedCollection,
                          builder: ResultBuilder) -> None:
        moves = chunk.move_order()
        for position, item in enumerate(moves, start=1):
            label = (
                f"folder {chunk_index + 1}/{total_chunks} {position}/{len(moves)} | "
                f"[{item.source_collection_title}] {item.title} | creator={item.creator_name}"
            )
            try:
                await self._retry.run(
                    partial(self._client.move_resource,
                            item.source_collection_id, destination.id, item.id),
                    f"move {label}",
                )
            except FavSortError as e:
                failure = MoveFailure(item=item, reason=str(e),
                                      collection_name=destination.name)
                builder.failures.append(failure)
                self.observer.item_failed(failure, label)
            else:
                builder.success_count += 1
                self.observer.item_moved(item, label)

            await self._sleep(self.settings.move_delay_seconds)
