"""
Standard exit codes for regindex commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

from .exceptions import (
    EventDecodeError,
    IndexServiceError,
    NotFoundError,
    SchemaError,
)

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # Repository/tag pair not in the index
STORE_ERROR = 65         # Statement against the index store failed
CONFIG_ERROR = 66        # Configuration file error
SCHEMA_ERROR = 67        # Store could not be opened or initialized
DATA_ERROR = 70          # Malformed event payload
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


def exit_code_for(error: Optional[BaseException]) -> int:
    """Map an exception to the exit code a command should return."""
    if error is None:
        return SUCCESS
    if isinstance(error, KeyboardInterrupt):
        return INTERRUPTED
    if isinstance(error, NotFoundError):
        return NOT_FOUND
    if isinstance(error, EventDecodeError):
        return DATA_ERROR
    if isinstance(error, SchemaError):
        return SCHEMA_ERROR
    if isinstance(error, IndexServiceError):
        return STORE_ERROR
    return GENERAL_ERROR


def exit_with_code(code: int, message: Optional[str] = None):
    """
    Exit with a specific code and optional message.

    Args:
        code: Exit code
        message: Optional message to print to stderr
    """
    import sys
    if message:
        print(message, file=sys.stderr)
    sys.exit(code)
