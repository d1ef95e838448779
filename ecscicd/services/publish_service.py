"""
Publish service for ecscicd.

Logs docker in to ECR with a short-lived password and pushes the built tag.
"""

import logging
from typing import Iterable, Optional

from ..domain.operation import PublishResult
from ..infra.docker_client import DockerClient
from ..infra.ecr_client import EcrClient, registry_host

logger = logging.getLogger(__name__)


class PublishService:
    """
    Pushes built images to the registry.

    Only ``version_tag`` is pushed unless extra tags (such as the ``latest``
    alias) are passed explicitly.
    """

    def __init__(
        self,
        ecr_client: Optional[EcrClient] = None,
        docker_client: Optional[DockerClient] = None
    ):
        self.ecr = ecr_client or EcrClient()
        self.docker = docker_client or DockerClient()

    def publish(
        self,
        registry: str,
        version_tag: str,
        region: str,
        extra_tags: Iterable[str] = ()
    ) -> PublishResult:
        """
        Authenticate and push.

        Args:
            registry: Registry repository URL
            version_tag: Image reference to push
            region: AWS region for the login password
            extra_tags: Further references to push after version_tag

        Raises:
            PublishError: with stage credentials, login or push
        """
        password = self.ecr.get_login_password(region)

        host = registry_host(registry)
        logger.info(f"Logging in to {host}")
        self.docker.login(host, self.ecr.username, password)

        pushed = []
        for tag in (version_tag, *extra_tags):
            logger.info(f"Pushing {tag}")
            self.docker.push(tag)
            pushed.append(tag)

        return PublishResult(registry=registry, pushed_tags=tuple(pushed))
