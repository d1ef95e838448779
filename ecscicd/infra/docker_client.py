"""
Docker client infrastructure for ecscicd.

Wraps the ``docker`` CLI for building, registry login and pushing.
Build failures surface as BuildError, login and push failures as PublishError.
"""

import logging
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..exit_codes import BuildError, PublishError
from ..utils import describe_failure, run_command

logger = logging.getLogger(__name__)


class DockerClient:
    """
    Abstraction over docker commands.

    Example:
        docker = DockerClient()
        docker.build("repos/app", ["registry/app:2024-01-01t000000", "registry/app:latest"])
        docker.push("registry/app:2024-01-01t000000")
    """

    def __init__(self, executable: str = "docker", timeout: Optional[float] = None):
        self.executable = executable
        self.timeout = timeout

    def build(
        self,
        context: Union[str, Path],
        tags: Iterable[str],
        dockerfile: Optional[str] = None
    ) -> None:
        """
        Build one image from ``context`` and apply every tag to it.

        Args:
            context: Build context directory (the working copy)
            tags: Image references to tag the result with
            dockerfile: Build descriptor relative to the context
        """
        cmd: List[str] = [self.executable, "build"]
        for tag in tags:
            cmd += ["-t", tag]
        if dockerfile:
            cmd += ["-f", dockerfile]
        cmd.append(".")

        try:
            run_command(cmd, cwd=str(context), timeout=self.timeout)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise BuildError(f"docker build failed: {describe_failure(e)}") from e

    def login(self, registry: str, username: str, password: str) -> None:
        """Log in to ``registry``, handing the password over stdin."""
        cmd = [
            self.executable, "login",
            "--username", username,
            "--password-stdin",
            registry,
        ]
        try:
            run_command(cmd, input=password, timeout=self.timeout)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise PublishError(f"docker login failed: {describe_failure(e)}", stage="login") from e

    def push(self, tag: str) -> None:
        """Push a single image reference."""
        try:
            run_command([self.executable, "push", tag], timeout=self.timeout)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise PublishError(f"docker push failed: {describe_failure(e)}", stage="push") from e
