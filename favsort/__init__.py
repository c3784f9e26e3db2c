"""
favsort: regroup Bilibili favourite folders by uploader.

Items from one or more source folders are grouped by creator and moved into
new folders of bounded size, never splitting a creator across two folders.
"""

from .config import Settings, load_settings
from .core import MigrationOrchestrator, RetryExecutor
from .errors import (
    FavSortError,
    MigrationAborted,
    OversizedGroup,
    PaginationOverrun,
    RemoteCallFailure,
    RetryExhausted,
    ValidationError,
)
from .models import ExecutionResult, MigrationPlan

__version__ = "0.1.0"

__all__ = [
    "ExecutionResult",
    "FavSortError",
    "MigrationAborted",
    "MigrationOrchestrator",
    "MigrationPlan",
    "OversizedGroup",
    "PaginationOverrun",
    "RemoteCallFailure",
    "RetryExecutor",
    "RetryExhausted",
    "Settings",
    "ValidationError",
    "load_settings",
]
