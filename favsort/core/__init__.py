"""
Core package: retrying remote calls and orchestrating a run.
This package exposes the MigrationOrchestrator class which ties together
the collector, the planner and the API client to perform a reorganization.
"""

from .orchestrator import MigrationOrchestrator
from .retry import RetryExecutor

__all__ = [
    "MigrationOrchestrator",
    "RetryExecutor",
]
