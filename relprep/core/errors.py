"""Process exit codes.

Only success and failure are distinguished; the kind of error is printed on
stderr.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the ``relprep`` command.

    These values are used as process exit codes and should remain stable.
    """

    OK = 0
    FAILURE = 1

