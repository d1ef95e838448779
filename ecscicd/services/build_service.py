"""
Build service for ecscicd.

Pulls the new commit, builds the image with a timestamped version tag and
a ``latest`` alias, then records the built commit in the marker.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from ..domain.operation import BuildResult
from ..infra.docker_client import DockerClient
from ..infra.git_client import GitClient
from ..infra.marker_store import MarkerStore

logger = logging.getLogger(__name__)

# Sortable, second granularity: 2024-01-01t000000
TAG_TIME_FORMAT = "%Y-%m-%dt%H%M%S"
LATEST = "latest"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def image_tags(registry: str, when: datetime) -> Tuple[str, str]:
    """
    Version and alias tags for an image built at ``when``.

    Two builds in the same second get the same version tag.
    """
    return f"{registry}:{when.strftime(TAG_TIME_FORMAT)}", f"{registry}:{LATEST}"


class BuildService:
    """
    Runs the pull -> build -> record steps for a working copy.

    Each step gates the next; the marker is only rewritten once the image
    has been built.
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        docker_client: Optional[DockerClient] = None,
        marker_store: Optional[MarkerStore] = None,
        clock: Callable[[], datetime] = utc_now,
        dockerfile: Optional[str] = None
    ):
        self.git = git_client or GitClient()
        self.docker = docker_client or DockerClient()
        self.markers = marker_store or MarkerStore()
        self.clock = clock
        self.dockerfile = dockerfile

    def build(self, working_copy: Union[str, Path], registry: str) -> BuildResult:
        """
        Build and tag an image from ``working_copy``.

        Args:
            working_copy: Checked-out repository holding the build descriptor
            registry: Registry repository URL the tags are based on

        Returns:
            BuildResult; its version_tag is what gets published

        Raises:
            VcsError: pull or rev-parse failed
            BuildError: docker build failed
            MarkerError: the marker could not be written
        """
        logger.info(f"Pulling latest changes into {working_copy}")
        self.git.pull(working_copy)

        built_at = self.clock()
        version_tag, latest_tag = image_tags(registry, built_at)

        logger.info(f"Building {version_tag}")
        self.docker.build(working_copy, [version_tag, latest_tag], dockerfile=self.dockerfile)

        commit = self.git.head(working_copy)
        self.markers.write(working_copy, commit)
        logger.info(f"Built {version_tag} from {commit}")

        return BuildResult(
            version_tag=version_tag,
            latest_tag=latest_tag,
            commit=commit,
            built_at=built_at,
        )
