"""
Pipeline result domain objects for ecscicd.

Provides the result types produced by each stage of one ci invocation
and the state machine the invocation walks through.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class PipelineState(Enum):
    """States of a single invocation."""
    START = "start"
    NO_BUILD = "no_build"
    BUILD_REQUIRED = "build_required"
    BUILDING = "building"
    BUILT = "built"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (PipelineState.NO_BUILD, PipelineState.PUBLISHED, PipelineState.FAILED)


# Legal transitions; FAILED is reachable from every non-terminal state.
TRANSITIONS = {
    PipelineState.START: (PipelineState.NO_BUILD, PipelineState.BUILD_REQUIRED),
    PipelineState.BUILD_REQUIRED: (PipelineState.BUILDING,),
    PipelineState.BUILDING: (PipelineState.BUILT,),
    PipelineState.BUILT: (PipelineState.PUBLISHING,),
    PipelineState.PUBLISHING: (PipelineState.PUBLISHED,),
}


@dataclass(frozen=True)
class SyncResult:
    """Outcome of bringing the working copy up to date and comparing commits."""
    working_copy_ready: bool
    build_required: bool
    cloned: bool = False
    remote_commit: Optional[str] = None
    stored_commit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'working_copy_ready': self.working_copy_ready,
            'build_required': self.build_required,
            'cloned': self.cloned,
            'remote_commit': self.remote_commit,
            'stored_commit': self.stored_commit,
        }


@dataclass(frozen=True)
class BuildResult:
    """
    A built image.

    ``version_tag`` is the reference handed on to publishing; ``latest_tag``
    points at the same image.
    """
    version_tag: str
    latest_tag: str
    commit: str
    built_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version_tag': self.version_tag,
            'latest_tag': self.latest_tag,
            'commit': self.commit,
            'built_at': self.built_at.isoformat(),
        }


@dataclass(frozen=True)
class PublishResult:
    """Tags pushed to the registry."""
    registry: str
    pushed_tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'registry': self.registry,
            'pushed_tags': list(self.pushed_tags),
        }


@dataclass
class RunOutcome:
    """
    Everything that happened during one invocation.

    Collects the state history and the result of each stage that ran.
    On failure ``error``, ``error_type`` and ``failed_stage`` say where
    the invocation stopped.
    """
    state: PipelineState = PipelineState.START
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.START])
    sync: Optional[SyncResult] = None
    build: Optional[BuildResult] = None
    publish: Optional[PublishResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    failed_stage: Optional[str] = None
    exit_code: int = 0

    @property
    def success(self) -> bool:
        """True if the invocation ended without a failure."""
        return self.state != PipelineState.FAILED

    @property
    def version_tag(self) -> Optional[str]:
        return self.build.version_tag if self.build else None

    @property
    def unpublished(self) -> bool:
        """Built, marker advanced, but the image never reached the registry."""
        return self.build is not None and self.publish is None and not self.success

    def advance(self, state: PipelineState) -> None:
        """Move to ``state``, refusing transitions the state machine does not allow."""
        if state != PipelineState.FAILED and state not in TRANSITIONS.get(self.state, ()):
            raise ValueError(f"Illegal transition {self.state.value} -> {state.value}")
        if self.state.terminal:
            raise ValueError(f"Invocation already finished in {self.state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, exc: Exception, stage: Optional[str] = None, exit_code: int = 1) -> None:
        """Record ``exc`` as the reason the invocation stopped."""
        self.error = str(exc)
        self.error_type = type(exc).__name__
        self.failed_stage = stage
        self.exit_code = exit_code
        self.advance(PipelineState.FAILED)

    @property
    def status_line(self) -> str:
        """Human-readable one-line summary."""
        if self.state == PipelineState.NO_BUILD:
            return "No build required"
        if self.state == PipelineState.BUILD_REQUIRED:
            commit = self.sync.remote_commit if self.sync else None
            return f"Build required for {commit or 'unknown commit'}"
        if self.state == PipelineState.PUBLISHED:
            return f"Build result: {self.version_tag}"
        if self.state == PipelineState.FAILED:
            line = f"CI process failed at {self.failed_stage or 'unknown'} stage: {self.error}"
            if self.unpublished:
                line += f" (built {self.version_tag} but it was not published)"
            return line
        return f"Pipeline stopped in state {self.state.value}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            'state': self.state.value,
            'success': self.success,
            'history': [s.value for s in self.history],
        }
        if self.sync:
            result['sync'] = self.sync.to_dict()
        if self.build:
            result['build'] = self.build.to_dict()
            result['version_tag'] = self.build.version_tag
        if self.publish:
            result['publish'] = self.publish.to_dict()
        if self.error:
            result['error'] = self.error
            result['type'] = self.error_type
            result['stage'] = self.failed_stage
            result['exit_code'] = self.exit_code
        return result
