"""
AWS ECR credential retrieval for ecscicd.

Uses the ``aws`` CLI so the usual AWS credential chain (environment,
profiles, instance roles) applies unchanged.
"""

import logging
import subprocess
from typing import Optional

from ..exit_codes import PublishError
from ..utils import describe_failure, run_command

logger = logging.getLogger(__name__)

ECR_USERNAME = "AWS"


class EcrClient:
    """
    Fetches short-lived registry passwords from ECR.

    Example:
        ecr = EcrClient()
        password = ecr.get_login_password("eu-west-2")
    """

    username = ECR_USERNAME

    def __init__(self, executable: str = "aws", timeout: Optional[float] = None):
        self.executable = executable
        self.timeout = timeout

    def get_login_password(self, region: str) -> str:
        """
        Get a registry password valid for twelve hours.

        Args:
            region: AWS region hosting the registry

        Returns:
            Password to hand to ``docker login``
        """
        cmd = [self.executable, "ecr", "get-login-password", "--region", region]
        try:
            output, _ = run_command(cmd, capture_output=True, timeout=self.timeout)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise PublishError(
                f"failed to get ECR login password: {describe_failure(e)}",
                stage="credentials"
            ) from e

        if not output:
            raise PublishError(
                f"failed to get ECR login password: empty response for {region}",
                stage="credentials"
            )
        return output


def registry_host(registry: str) -> str:
    """
    Host part of a registry repository URL.

    ``123.dkr.ecr.eu-west-2.amazonaws.com/app`` -> ``123.dkr.ecr.eu-west-2.amazonaws.com``
    """
    host = registry.split("://", 1)[-1]
    return host.split("/", 1)[0]
