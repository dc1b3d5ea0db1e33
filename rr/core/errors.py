"""Error codes for CLI exit status.

Each failure the command line can report maps to one stable shell exit code.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad flags, invalid retention settings)
    - 3: Config error (config file present but unusable)
    - 5: I/O error (data file missing, unreadable or malformed)
    """

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 3
    IO_ERROR = 5
