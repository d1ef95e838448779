"""
Domain layer for ecscicd.

Contains pure domain objects with no I/O or side effects:
- WatchedRepository: The repository, branch and working copy being watched
- SyncResult / BuildResult / PublishResult: What each stage produced
- RunOutcome: The state machine walked by one invocation

These objects are immutable where possible and provide
serialization methods for JSON output.
"""

from .repository import WatchedRepository
from .operation import (
    PipelineState,
    SyncResult,
    BuildResult,
    PublishResult,
    RunOutcome,
)

__all__ = [
    'WatchedRepository',
    'PipelineState',
    'SyncResult',
    'BuildResult',
    'PublishResult',
    'RunOutcome',
]
