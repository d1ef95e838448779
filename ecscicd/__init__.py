"""
ecscicd - A minimal CI trigger that builds and pushes container images.

Each invocation checks one GitHub repository branch. When the branch head
differs from the commit last built, the working copy is pulled, a docker
image is built with a timestamped tag and a ``latest`` alias, and the
timestamped tag is pushed to AWS ECR.

Quick Start:
    from ecscicd import load_config, PipelineService

    outcome = PipelineService(load_config()).run()
    print(outcome.status_line)

Domain Objects:
    WatchedRepository - Repository, branch and working copy being watched
    RunOutcome - State machine walked by one invocation

Services:
    SyncService - Clone/fetch and the build-required decision
    BuildService - Pull, image build, marker update
    PublishService - ECR login and push
    PipelineService - One full invocation
"""

__version__ = "0.1.0"

from .domain import (
    WatchedRepository,
    PipelineState,
    SyncResult,
    BuildResult,
    PublishResult,
    RunOutcome,
)

from .services import (
    SyncService,
    BuildService,
    PublishService,
    PipelineService,
)

from .config import CIConfig, load_config

__all__ = [
    "__version__",
    "WatchedRepository",
    "PipelineState",
    "SyncResult",
    "BuildResult",
    "PublishResult",
    "RunOutcome",
    "SyncService",
    "BuildService",
    "PublishService",
    "PipelineService",
    "CIConfig",
    "load_config",
]
