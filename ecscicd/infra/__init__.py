"""
Infrastructure layer for ecscicd.

Contains abstractions for external systems:
- GitClient: git command execution (local and remote heads, clone/fetch/pull)
- DockerClient: image build, registry login and push
- EcrClient: ECR login password retrieval
- MarkerStore: last-built commit persistence

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient
from .docker_client import DockerClient
from .ecr_client import EcrClient, registry_host
from .marker_store import MarkerStore, MARKER_FILENAME

__all__ = [
    'GitClient',
    'DockerClient',
    'EcrClient',
    'registry_host',
    'MarkerStore',
    'MARKER_FILENAME',
]
