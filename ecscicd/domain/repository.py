"""
Repository domain object for ecscicd.

WatchedRepository identifies the repository, branch and working copy the
trigger watches. It is built once from configuration and never changes.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

GITHUB_HOST = "github.com"


@dataclass(frozen=True)
class WatchedRepository:
    """The single repository a ci invocation works on."""
    owner: str
    name: str
    branch: str
    path: Path

    @classmethod
    def from_project(
        cls,
        project: str,
        branch: str = "main",
        repos_dir: Union[str, Path] = "repos"
    ) -> 'WatchedRepository':
        """
        Build from an ``owner/name`` project identifier.

        A trailing ``.git`` on the name is dropped; the working copy lives at
        ``<repos_dir>/<name>``.
        """
        parts = project.strip().strip('/').split('/')
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"project must look like 'owner/repository', got {project!r}")

        owner = parts[0]
        name = parts[1]
        if name.endswith('.git'):
            name = name[:-len('.git')]
        if not name:
            raise ValueError(f"project must look like 'owner/repository', got {project!r}")

        return cls(owner=owner, name=name, branch=branch, path=Path(repos_dir) / name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def clone_url(self, token: str = "") -> str:
        """HTTPS URL, authenticated with ``token`` when one is given."""
        credentials = f"{token}@" if token else ""
        return f"https://{credentials}{GITHUB_HOST}/{self.full_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'owner': self.owner,
            'name': self.name,
            'branch': self.branch,
            'path': str(self.path),
        }
