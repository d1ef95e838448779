"""
Tests for the infrastructure layer.

Tests cover:
- GitClient (local/remote heads, clone, fetch, pull)
- MarkerStore (read/write of .last_commit)
- DockerClient (build, login, push)
- EcrClient (login password)
"""

import shutil
import subprocess
import sys
import pytest
from pathlib import Path
from unittest.mock import patch

from ecscicd.exit_codes import BuildError, MarkerError, PublishError, VcsError, VCS_ERROR, IO_ERROR
from ecscicd.infra.docker_client import DockerClient
from ecscicd.infra.ecr_client import EcrClient, registry_host
from ecscicd.infra.git_client import GitClient
from ecscicd.infra.marker_store import MarkerStore, MARKER_FILENAME


# ============================================================================
# GitClient
# ============================================================================

class TestGitClient:
    """Tests for GitClient."""

    @patch('ecscicd.infra.git_client.run_command')
    def test_head(self, mock_run):
        """head returns the rev-parse output."""
        mock_run.return_value = ("abc123", 0)

        assert GitClient().head("/repo") == "abc123"

        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "-C", "/repo", "rev-parse", "HEAD"]
        assert kwargs['capture_output'] is True

    @patch('ecscicd.infra.git_client.run_command')
    def test_head_not_a_repository(self, mock_run):
        """A failed rev-parse becomes a VcsError."""
        mock_run.side_effect = subprocess.CalledProcessError(
            128, "git rev-parse HEAD", stderr="fatal: not a git repository"
        )

        with pytest.raises(VcsError) as exc_info:
            GitClient().head("/nowhere")

        assert exc_info.value.stage == "rev-parse"
        assert exc_info.value.exit_code == VCS_ERROR
        assert "not a git repository" in str(exc_info.value)

    @patch('ecscicd.infra.git_client.run_command')
    def test_head_empty_output(self, mock_run):
        mock_run.return_value = (None, 0)

        with pytest.raises(VcsError):
            GitClient().head("/repo")

    @patch('ecscicd.infra.git_client.run_command')
    def test_missing_git_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "git")

        with pytest.raises(VcsError) as exc_info:
            GitClient().head("/repo")

        assert "executable not found" in str(exc_info.value)

    @patch('ecscicd.infra.git_client.run_command')
    def test_remote_head(self, mock_run):
        """remote_head asks for the full branch ref."""
        mock_run.return_value = ("def456\trefs/heads/main", 0)

        commit = GitClient().remote_head("https://tok@github.com/o/r", "main")

        assert commit == "def456"
        args, _ = mock_run.call_args
        assert args[0] == ["git", "ls-remote", "https://tok@github.com/o/r", "refs/heads/main"]

    @patch('ecscicd.infra.git_client.run_command')
    def test_remote_head_ignores_similarly_named_refs(self, mock_run):
        mock_run.return_value = (
            "0e2b5d2\trefs/heads/feature/main\n32349bf\trefs/heads/main", 0
        )

        assert GitClient().remote_head("https://github.com/o/r", "main") == "32349bf"

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_remote_head_against_real_repository(self, tmp_path):
        """A branch named feature/main must not shadow main."""
        src = tmp_path / "src"
        src.mkdir()

        def git(*args):
            return subprocess.run(
                ["git", "-c", "user.name=ci", "-c", "user.email=ci@example.com", *args],
                cwd=src, check=True, capture_output=True, text=True
            ).stdout.strip()

        git("init", "-q")
        git("checkout", "-q", "-b", "main")
        git("commit", "-q", "--allow-empty", "-m", "first")
        main_commit = git("rev-parse", "HEAD")
        git("checkout", "-q", "-b", "feature/main")
        git("commit", "-q", "--allow-empty", "-m", "second")
        feature_commit = git("rev-parse", "HEAD")

        commit = GitClient().remote_head(str(src), "main")

        assert commit == main_commit
        assert commit != feature_commit

    @patch('ecscicd.infra.git_client.run_command')
    def test_remote_head_missing_branch(self, mock_run):
        """An empty ls-remote result means the branch does not exist."""
        mock_run.return_value = (None, 0)

        with pytest.raises(VcsError) as exc_info:
            GitClient().remote_head("https://github.com/o/r", "release")

        assert str(exc_info.value) == "no remote hash found for release"
        assert exc_info.value.stage == "ls-remote"

    @patch('ecscicd.infra.git_client.run_command')
    def test_remote_head_unreachable_masks_token(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(
            128, "git ls-remote",
            stderr="fatal: unable to access 'https://tok@github.com/o/r/': Could not resolve host"
        )

        with pytest.raises(VcsError) as exc_info:
            GitClient().remote_head("https://tok@github.com/o/r", "main")

        assert "tok@" not in str(exc_info.value)

    @patch('ecscicd.infra.git_client.run_command')
    def test_clone(self, mock_run):
        mock_run.return_value = (None, 0)

        GitClient().clone("https://tok@github.com/o/r", Path("repos/r"), "develop")

        args, _ = mock_run.call_args
        assert args[0] == ["git", "clone", "--branch", "develop", "https://tok@github.com/o/r", "repos/r"]

    @patch('ecscicd.infra.git_client.run_command')
    def test_fetch(self, mock_run):
        mock_run.return_value = (None, 0)

        GitClient().fetch("repos/r", "main")

        args, _ = mock_run.call_args
        assert args[0] == ["git", "-C", "repos/r", "fetch", "origin", "main"]

    @patch('ecscicd.infra.git_client.run_command')
    def test_pull_failure_names_stage(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "git pull")

        with pytest.raises(VcsError) as exc_info:
            GitClient().pull("repos/r")

        assert exc_info.value.stage == "pull"

    @patch('ecscicd.infra.git_client.run_command')
    def test_timeout_is_forwarded(self, mock_run):
        mock_run.return_value = (None, 0)

        GitClient(timeout=15).fetch("repos/r", "main")

        _, kwargs = mock_run.call_args
        assert kwargs['timeout'] == 15

    def test_is_git_repo(self, tmp_path):
        assert not GitClient().is_git_repo(tmp_path)
        (tmp_path / ".git").mkdir()
        assert GitClient().is_git_repo(tmp_path)


# ============================================================================
# MarkerStore
# ============================================================================

class TestMarkerStore:
    """Tests for MarkerStore."""

    def test_missing_marker_is_absent(self, tmp_path):
        """No marker file means no previous build, not an error."""
        assert MarkerStore().read(tmp_path) is None

    def test_write_then_read(self, tmp_path):
        store = MarkerStore()
        store.write(tmp_path, "abc123")

        assert store.read(tmp_path) == "abc123"
        assert (tmp_path / MARKER_FILENAME).read_text() == "abc123"

    def test_read_trims_whitespace(self, tmp_path):
        (tmp_path / MARKER_FILENAME).write_text("  abc123\n\n")

        assert MarkerStore().read(tmp_path) == "abc123"

    def test_write_overwrites(self, tmp_path):
        store = MarkerStore()
        store.write(tmp_path, "abc123")
        store.write(tmp_path, "def456\n")

        assert store.read(tmp_path) == "def456"
        assert (tmp_path / MARKER_FILENAME).read_text() == "def456"

    def test_written_marker_is_world_readable(self, tmp_path):
        MarkerStore().write(tmp_path, "abc123")

        assert (tmp_path / MARKER_FILENAME).stat().st_mode & 0o777 == 0o644

    def test_write_leaves_no_temp_files(self, tmp_path):
        MarkerStore().write(tmp_path, "abc123")

        assert [p.name for p in tmp_path.iterdir()] == [MARKER_FILENAME]

    def test_empty_marker_is_absent(self, tmp_path):
        (tmp_path / MARKER_FILENAME).write_text("\n")

        assert MarkerStore().read(tmp_path) is None

    def test_unreadable_marker_raises(self, tmp_path):
        (tmp_path / MARKER_FILENAME).mkdir()

        with pytest.raises(MarkerError) as exc_info:
            MarkerStore().read(tmp_path)

        assert exc_info.value.exit_code == IO_ERROR

    def test_write_into_missing_directory_raises(self, tmp_path):
        with pytest.raises(MarkerError):
            MarkerStore().write(tmp_path / "missing", "abc123")

    def test_path_for(self, tmp_path):
        assert MarkerStore().path_for(tmp_path) == tmp_path / ".last_commit"


# ============================================================================
# DockerClient
# ============================================================================

class TestDockerClient:
    """Tests for DockerClient."""

    @patch('ecscicd.infra.docker_client.run_command')
    def test_build_applies_every_tag(self, mock_run):
        mock_run.return_value = (None, 0)

        DockerClient().build("repos/r", ["reg/app:2024-01-01t000000", "reg/app:latest"])

        args, kwargs = mock_run.call_args
        assert args[0] == [
            "docker", "build",
            "-t", "reg/app:2024-01-01t000000",
            "-t", "reg/app:latest",
            ".",
        ]
        assert kwargs['cwd'] == "repos/r"

    @patch('ecscicd.infra.docker_client.run_command')
    def test_build_with_dockerfile(self, mock_run):
        mock_run.return_value = (None, 0)

        DockerClient().build("repos/r", ["reg/app:v"], dockerfile="docker/Dockerfile.prod")

        args, _ = mock_run.call_args
        assert args[0][-3:] == ["-f", "docker/Dockerfile.prod", "."]

    @patch('ecscicd.infra.docker_client.run_command')
    def test_build_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "docker build", stderr="failed to solve")

        with pytest.raises(BuildError) as exc_info:
            DockerClient().build("repos/r", ["reg/app:v"])

        assert exc_info.value.stage == "build"
        assert "failed to solve" in str(exc_info.value)

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script")
    def test_build_tolerates_undecodable_output(self, tmp_path):
        """A successful build that prints non-UTF-8 bytes is still a success."""
        fake_docker = tmp_path / "docker"
        fake_docker.write_text("#!/bin/sh\nprintf 'Step 1/1 \\377\\376 caf\\351\\n'\n")
        fake_docker.chmod(0o755)

        DockerClient(executable=str(fake_docker)).build(str(tmp_path), ["reg/app:v"])

    @patch('ecscicd.infra.docker_client.run_command')
    def test_login_sends_password_on_stdin(self, mock_run):
        mock_run.return_value = (None, 0)

        DockerClient().login("123.dkr.ecr.eu-west-2.amazonaws.com", "AWS", "secret-pw")

        args, kwargs = mock_run.call_args
        assert "secret-pw" not in args[0]
        assert kwargs['input'] == "secret-pw"
        assert args[0] == [
            "docker", "login", "--username", "AWS", "--password-stdin",
            "123.dkr.ecr.eu-west-2.amazonaws.com",
        ]

    @patch('ecscicd.infra.docker_client.run_command')
    def test_login_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "docker login")

        with pytest.raises(PublishError) as exc_info:
            DockerClient().login("host", "AWS", "pw")

        assert exc_info.value.stage == "login"

    @patch('ecscicd.infra.docker_client.run_command')
    def test_push_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "docker push")

        with pytest.raises(PublishError) as exc_info:
            DockerClient().push("reg/app:v")

        assert exc_info.value.stage == "push"


# ============================================================================
# EcrClient
# ============================================================================

class TestEcrClient:
    """Tests for EcrClient."""

    @patch('ecscicd.infra.ecr_client.run_command')
    def test_get_login_password(self, mock_run):
        mock_run.return_value = ("eyJwYXlsb2FkIjoi", 0)

        assert EcrClient().get_login_password("eu-west-2") == "eyJwYXlsb2FkIjoi"

        args, kwargs = mock_run.call_args
        assert args[0] == ["aws", "ecr", "get-login-password", "--region", "eu-west-2"]
        assert kwargs['capture_output'] is True

    @patch('ecscicd.infra.ecr_client.run_command')
    def test_get_login_password_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(255, "aws ecr get-login-password")

        with pytest.raises(PublishError) as exc_info:
            EcrClient().get_login_password("eu-west-2")

        assert exc_info.value.stage == "credentials"

    @patch('ecscicd.infra.ecr_client.run_command')
    def test_get_login_password_empty(self, mock_run):
        mock_run.return_value = (None, 0)

        with pytest.raises(PublishError):
            EcrClient().get_login_password("eu-west-2")

    def test_username(self):
        assert EcrClient().username == "AWS"

    @pytest.mark.parametrize("registry,host", [
        ("123.dkr.ecr.eu-west-2.amazonaws.com/app", "123.dkr.ecr.eu-west-2.amazonaws.com"),
        ("123.dkr.ecr.eu-west-2.amazonaws.com/team/app", "123.dkr.ecr.eu-west-2.amazonaws.com"),
        ("https://registry.example.com/app", "registry.example.com"),
        ("myregistry", "myregistry"),
    ])
    def test_registry_host(self, registry, host):
        assert registry_host(registry) == host
