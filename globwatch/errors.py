"""
Error types for GlobWatch.

Every error raised by the core carries the exit code the command line
should return when the error ends the run:

  0 - execution stopped by the user
  1 - invalid or incomplete configuration
  2 - unexpected error
"""

EXIT_CANCELLED = 0
EXIT_INVALID_CONFIG = 1
EXIT_UNEXPECTED = 2


class GlobWatchError(Exception):
    """Base class for GlobWatch errors."""

    exit_code = EXIT_UNEXPECTED


class ConfigurationError(GlobWatchError):
    """Raised when the configuration is invalid or incomplete."""

    exit_code = EXIT_INVALID_CONFIG


class WatchSetupError(ConfigurationError):
    """Raised when the root directory cannot be watched."""

    pass


class ProcessSpawnError(GlobWatchError):
    """Raised when the configured command cannot be started."""

    pass


def exit_code_for(exc):
    """
    Map an exception that ended the run to a process exit code.

    Args:
        exc (BaseException): The exception, or None for a clean stop.

    Returns:
        int: The exit code.
    """
    if exc is None:
        return EXIT_CANCELLED
    if isinstance(exc, GlobWatchError):
        return exc.exit_code
    return EXIT_UNEXPECTED
