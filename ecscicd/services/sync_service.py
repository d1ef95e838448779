"""
Sync service for ecscicd.

Makes sure the working copy exists and decides whether a build is needed.
The working tree itself is never moved to the new commit here; the build
pulls it in, so detecting and applying a change stay separate steps.
"""

import logging
from typing import Optional

from ..domain.operation import SyncResult
from ..domain.repository import WatchedRepository
from ..exit_codes import MarkerError
from ..infra.git_client import GitClient
from ..infra.marker_store import MarkerStore

logger = logging.getLogger(__name__)


class SyncService:
    """
    Clones or fetches the watched repository and compares commits.

    Example:
        service = SyncService()
        result = service.sync(repo, auth_url)
        if result.build_required:
            ...
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        marker_store: Optional[MarkerStore] = None
    ):
        self.git = git_client or GitClient()
        self.markers = marker_store or MarkerStore()

    def sync(self, repo: WatchedRepository, auth_url: str) -> SyncResult:
        """
        Bring the working copy up to date and decide if a build is required.

        A fresh clone always requires a build. Otherwise the remote branch
        head is compared with the stored marker; any difference requires one.

        Raises:
            VcsError: clone, fetch or a commit query failed
            MarkerError: the marker could not be read or written
        """
        if not repo.path.exists():
            return self._clone(repo, auth_url)

        logger.info(f"Fetching {repo.branch} for {repo.full_name}")
        self.git.fetch(repo.path, repo.branch)

        remote_commit = self.git.remote_head(auth_url, repo.branch)
        stored_commit = self.markers.read(repo.path)

        build_required = build_needed(remote_commit, stored_commit)
        if build_required:
            logger.info(
                f"New commit on {repo.branch}: {remote_commit} (last built {stored_commit or 'never'})"
            )
        else:
            logger.info(f"{repo.full_name} already built at {remote_commit}")

        return SyncResult(
            working_copy_ready=True,
            build_required=build_required,
            cloned=False,
            remote_commit=remote_commit,
            stored_commit=stored_commit,
        )

    def _clone(self, repo: WatchedRepository, auth_url: str) -> SyncResult:
        try:
            repo.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MarkerError(f"error creating the repos directory: {e}", stage="marker") from e

        self.git.clone(auth_url, repo.path, repo.branch)

        commit = self.git.head(repo.path)
        self.markers.write(repo.path, commit)
        logger.info(f"Cloned {repo.full_name} at {commit}, first build required")

        return SyncResult(
            working_copy_ready=True,
            build_required=True,
            cloned=True,
            remote_commit=commit,
            stored_commit=commit,
        )


def build_needed(remote_commit: str, stored_commit: Optional[str]) -> bool:
    """True when the remote head differs from the last built commit."""
    return remote_commit != (stored_commit or "")
