"""
Pipeline service for ecscicd.

Runs one invocation: sync, then (if a build is required) build and publish.
Used by the `ecscicd run` command.
"""

import logging
from typing import Optional

from ..config import CIConfig
from ..domain.operation import PipelineState, RunOutcome
from ..exit_codes import CIError, CommandError
from ..infra.docker_client import DockerClient
from ..infra.ecr_client import EcrClient
from ..infra.git_client import GitClient
from ..infra.marker_store import MarkerStore
from .build_service import BuildService
from .publish_service import PublishService
from .sync_service import SyncService

logger = logging.getLogger(__name__)


class PipelineService:
    """
    Orchestrates sync -> build -> publish for the configured repository.

    Failures never escape ``run``; they end the invocation in the FAILED
    state and the caller turns the outcome into an exit code.

    Example:
        service = PipelineService(load_config())
        outcome = service.run()
        print(outcome.status_line)
    """

    def __init__(
        self,
        config: CIConfig,
        sync_service: Optional[SyncService] = None,
        build_service: Optional[BuildService] = None,
        publish_service: Optional[PublishService] = None
    ):
        self.config = config

        git = GitClient(timeout=config.command_timeout)
        docker = DockerClient(timeout=config.command_timeout)
        markers = MarkerStore()

        self.sync_service = sync_service or SyncService(git, markers)
        self.build_service = build_service or BuildService(
            git, docker, markers, dockerfile=config.dockerfile
        )
        self.publish_service = publish_service or PublishService(
            EcrClient(timeout=config.command_timeout), docker
        )
        self.last_outcome: Optional[RunOutcome] = None

    def check(self) -> RunOutcome:
        """Run only the sync step and report the decision."""
        outcome = RunOutcome()
        self.last_outcome = outcome
        self._sync(outcome)
        return outcome

    def run(self) -> RunOutcome:
        """Run the whole pipeline once."""
        outcome = self.check()
        if outcome.state != PipelineState.BUILD_REQUIRED:
            return outcome

        config = self.config
        repo = config.repository

        outcome.advance(PipelineState.BUILDING)
        try:
            outcome.build = self.build_service.build(repo.path, config.registry)
        except CommandError as e:
            self._fail(outcome, e)
            return outcome
        outcome.advance(PipelineState.BUILT)

        extra_tags = (outcome.build.latest_tag,) if config.push_latest else ()
        outcome.advance(PipelineState.PUBLISHING)
        try:
            outcome.publish = self.publish_service.publish(
                config.registry, outcome.build.version_tag, config.region, extra_tags
            )
        except CommandError as e:
            self._fail(outcome, e)
            logger.warning(
                f"Marker already records {outcome.build.commit}; "
                f"{outcome.build.version_tag} will not be pushed again until a new commit lands"
            )
            return outcome

        outcome.advance(PipelineState.PUBLISHED)
        logger.info(f"Successfully pushed {outcome.build.version_tag}")
        return outcome

    def _sync(self, outcome: RunOutcome) -> None:
        config = self.config
        try:
            repo = config.repository
            outcome.sync = self.sync_service.sync(repo, config.auth_url)
        except CommandError as e:
            self._fail(outcome, e)
            return

        if outcome.sync.build_required:
            outcome.advance(PipelineState.BUILD_REQUIRED)
        else:
            outcome.advance(PipelineState.NO_BUILD)

    @staticmethod
    def _fail(outcome: RunOutcome, exc: CommandError) -> None:
        stage = exc.stage if isinstance(exc, CIError) else None
        logger.error(f"{stage or 'pipeline'} stage failed: {exc}")
        outcome.fail(exc, stage=stage, exit_code=exc.exit_code)
