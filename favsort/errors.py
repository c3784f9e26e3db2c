"""
Exception taxonomy for favsort.

Validation and pagination failures are raised before any remote mutation.
Remote call failures are retried by :class:`favsort.core.retry.RetryExecutor`
and surface as :class:`RetryExhausted` once the attempt ceiling is reached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import CreatorGroup, ExecutionResult


class FavSortError(Exception):
    """Base class for every error raised by favsort."""


class ValidationError(FavSortError):
    """Bad input or an impossible plan. Nothing has been mutated yet."""


class OversizedGroup(ValidationError):
    """A single creator owns more items than one destination folder may hold."""

    def __init__(self, group: "CreatorGroup", capacity: int) -> None:
        self.group = group
        self.capacity = capacity
        super().__init__(
            f"Creator {group.creator_name!r} alone has {group.count} items, "
            f"more than the per-folder limit of {capacity}; "
            f"cannot keep their items in one folder."
        )


class PaginationOverrun(FavSortError):
    """Paging a source folder went past the page ceiling."""

    def __init__(self, collection_id: str, max_page: int) -> None:
        self.collection_id = collection_id
        self.max_page = max_page
        super().__init__(
            f"Folder {collection_id} needed more than {max_page} pages; "
            f"aborting, the remote listing looks broken."
        )


class RemoteCallFailure(FavSortError):
    """A list, create or move call did not succeed."""

    def __init__(self, message: str, *, code: Optional[int] = None,
                 status_code: Optional[int] = None) -> None:
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class RetryExhausted(FavSortError):
    """Every attempt of a retried action failed."""

    def __init__(self, label: str, attempts: int, last_error: BaseException) -> None:
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{label} failed {attempts} times in a row: {last_error}")


class MigrationAborted(FavSortError):
    """
    A fatal failure stopped the run after mutation had started.

    ``result`` holds what had been done up to that point; nothing is rolled back.
    """

    def __init__(self, message: str, result: "ExecutionResult", chunk_index: int) -> None:
        self.result = result
        self.chunk_index = chunk_index
        super().__init__(message)
