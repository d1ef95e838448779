"""
Git client infrastructure for ecscicd.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Every failure is raised as a VcsError naming the git step that failed.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from ..exit_codes import VcsError
from ..utils import describe_failure, mask_secrets, run_command

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        local = client.head("/path/to/repo")
        remote = client.remote_head("https://github.com/owner/repo", "main")
        if local != remote:
            print("Repository is behind")
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: wait for completion)
        """
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        stage: str,
        cwd: Optional[PathLike] = None,
        capture_output: bool = False,
    ) -> Optional[str]:
        """
        Run a git command, raising VcsError on any failure.

        Args:
            args: Arguments following ``git``
            stage: Step name reported if the command fails
            cwd: Working directory
            capture_output: Return stdout instead of logging it

        Returns:
            Stripped stdout when capture_output is set
        """
        cmd = ["git", *args]
        try:
            output, _ = run_command(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=capture_output,
                timeout=self.timeout,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise VcsError(f"git {stage} failed: {describe_failure(e)}", stage=stage) from e
        return output

    def is_git_repo(self, path: PathLike) -> bool:
        """Check if path is a git repository."""
        return (Path(path) / ".git").exists()

    def clone(self, url: str, path: PathLike, branch: str) -> None:
        """Clone ``branch`` of ``url`` into ``path``."""
        logger.info(f"Cloning {mask_secrets(url)} ({branch}) into {path}")
        self._run(["clone", "--branch", branch, url, str(path)], stage="clone")

    def fetch(self, path: PathLike, branch: str, remote: str = "origin") -> None:
        """
        Fetch ``branch`` from the remote.

        Only remote-tracking state changes; the checked-out tree is left alone.
        """
        self._run(["-C", str(path), "fetch", remote, branch], stage="fetch")

    def pull(self, path: PathLike) -> None:
        """Pull the checked-out branch into the working tree."""
        self._run(["-C", str(path), "pull"], stage="pull")

    def head(self, path: PathLike) -> str:
        """
        Get the commit currently checked out.

        Args:
            path: Path to git repository

        Returns:
            Full commit hash of HEAD
        """
        output = self._run(
            ["-C", str(path), "rev-parse", "HEAD"], stage="rev-parse", capture_output=True
        )
        if not output:
            raise VcsError(f"git rev-parse returned no commit for {path}", stage="rev-parse")
        return output

    def remote_head(self, url: str, branch: str) -> str:
        """
        Get the commit a remote branch points at, without a local copy.

        Args:
            url: Remote repository URL
            branch: Branch name

        Returns:
            Commit hash of the remote branch
        """
        ref = f"refs/heads/{branch}"
        # A bare branch name also matches refs like refs/heads/feature/<branch>.
        output = self._run(["ls-remote", url, ref], stage="ls-remote", capture_output=True)
        for line in (output or "").splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1] == ref:
                return parts[0]
        raise VcsError(f"no remote hash found for {branch}", stage="ls-remote")
