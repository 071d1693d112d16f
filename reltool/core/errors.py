"""Error codes for CLI exit status.

Every failure surfaced by a release run maps to one of these codes, so
wrapper scripts and CI jobs can tell a bad invocation apart from a broken
environment or a failed build.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad version string, bad selection, bad arguments)
    - 2: Environment error (missing programs, toolchain, key file)
    - 3: Build error (an external command exited non-zero)
    - 5: I/O error (unreadable or malformed files)
    - 6: Repository state error (dirty tree, version markers not updated)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    IO_ERROR = 5
    REPO_ERROR = 6

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        """Check if this code indicates success."""
        return self == ErrorCode.OK
