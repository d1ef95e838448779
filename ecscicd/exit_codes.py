"""
Standard exit codes for ecscicd commands.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration missing or invalid
PERMISSION_ERROR = 67    # Insufficient permissions
VCS_ERROR = 72           # git clone/fetch/pull/rev-parse/ls-remote failed
IO_ERROR = 73            # Commit marker could not be read or written
BUILD_ERROR = 74         # Container image build failed
PUBLISH_ERROR = 75       # Registry credentials, login or push failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConfigError': CONFIG_ERROR,
    'VcsError': VCS_ERROR,
    'MarkerError': IO_ERROR,
    'BuildError': BUILD_ERROR,
    'PublishError': PUBLISH_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    exit_code = getattr(exc, 'exit_code', None)
    if isinstance(exit_code, int):
        return exit_code
    return EXCEPTION_EXIT_CODES.get(exc.__class__.__name__, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when required settings are missing or malformed."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class CIError(CommandError):
    """
    A pipeline stage failed.

    ``stage`` names the step that failed (clone, fetch, pull, build, push...)
    so the caller can report where the invocation stopped.
    """
    def __init__(self, message: str, stage: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message, exit_code)
        self.stage = stage


class VcsError(CIError):
    """A git query or mutation failed, including a missing remote ref."""
    def __init__(self, message: str, stage: str = "git"):
        super().__init__(message, stage, VCS_ERROR)


class MarkerError(CIError):
    """The commit marker file could not be read or written."""
    def __init__(self, message: str, stage: str = "marker"):
        super().__init__(message, stage, IO_ERROR)


class BuildError(CIError):
    """The container image build failed."""
    def __init__(self, message: str, stage: str = "build"):
        super().__init__(message, stage, BUILD_ERROR)


class PublishError(CIError):
    """Credential retrieval, registry login or image push failed."""
    def __init__(self, message: str, stage: str = "push"):
        super().__init__(message, stage, PUBLISH_ERROR)

