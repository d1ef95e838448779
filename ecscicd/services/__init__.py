"""
Service layer for ecscicd.

Contains business logic that orchestrates domain objects and infrastructure:
- SyncService: Clone/fetch and the build-required decision
- BuildService: Pull, image build, marker update
- PublishService: Registry login and push
- PipelineService: One full invocation

Services are the primary API for commands to use.
They handle coordination between infrastructure and domain layers.
"""

from .sync_service import SyncService
from .build_service import BuildService
from .publish_service import PublishService
from .pipeline_service import PipelineService

__all__ = [
    'SyncService',
    'BuildService',
    'PublishService',
    'PipelineService',
]
