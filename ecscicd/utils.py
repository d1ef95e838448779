"""
Shared utility functions for ecscicd.
"""
import logging
import re
import subprocess
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# https://<token>@github.com/... -> https://***@github.com/...
_URL_CREDENTIALS = re.compile(r"(https?://)[^/@\s]+@")


def mask_secrets(text: str) -> str:
    """Hide credentials embedded in URLs."""
    if not text:
        return text
    return _URL_CREDENTIALS.sub(r"\1***@", text)


def format_command(command: Sequence[str]) -> str:
    """Render a command for logs and error messages, credentials masked."""
    return mask_secrets(' '.join(str(part) for part in command))


def run_command(
    command: Sequence[str],
    cwd: Optional[str] = None,
    capture_output: bool = False,
    check: bool = True,
    input: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Tuple[Optional[str], int]:
    """
    Runs an external command and logs the output.

    Commands are always passed as argument lists, never through a shell,
    since arguments can carry access tokens.

    Args:
        command: The command and its arguments.
        cwd: The working directory.
        capture_output: If True, return stdout, otherwise return None in its place.
        check: If True, raise CalledProcessError on non-zero exit codes.
        input: Text fed to the command's stdin.
        timeout: Seconds before the command is killed (None waits forever).

    Returns:
        tuple: (stdout_str, returncode)

    Raises:
        subprocess.CalledProcessError: non-zero exit and check is True.
        FileNotFoundError: the executable is not installed.
        subprocess.TimeoutExpired: the command outlived ``timeout``.
    """
    cmd_str = format_command(command)
    logger.debug(f"Running command in '{cwd or '.'}': {cmd_str}")

    result = subprocess.run(
        list(command),
        capture_output=True,
        text=True,
        cwd=cwd,
        input=input,
        timeout=timeout,
        check=False,  # Disable check here to handle output manually
        encoding='utf-8',
        errors='replace'
    )

    if result.stdout and result.stdout.strip() and not capture_output:
        logger.debug(mask_secrets(result.stdout.strip()))

    if result.returncode != 0:
        if result.stderr and result.stderr.strip():
            logger.debug(mask_secrets(result.stderr.strip()))
        if check:
            raise subprocess.CalledProcessError(
                result.returncode, cmd_str, output=result.stdout, stderr=result.stderr
            )

    stdout = result.stdout.strip() if capture_output and result.stdout else None
    return stdout, result.returncode


def describe_failure(exc: BaseException) -> str:
    """One-line reason for a failed external command."""
    if isinstance(exc, subprocess.CalledProcessError):
        detail = (exc.stderr or exc.output or '').strip()
        reason = f"exit status {exc.returncode}"
        if detail:
            reason += f": {mask_secrets(detail.splitlines()[-1])}"
        return reason
    if isinstance(exc, subprocess.TimeoutExpired):
        return f"timed out after {exc.timeout}s"
    if isinstance(exc, FileNotFoundError):
        return f"executable not found: {exc.filename or exc}"
    return mask_secrets(str(exc))
