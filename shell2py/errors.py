"""
Errors raised by the capture pipeline.

Every error carries the process exit code the CLI terminates with when
it reaches the top level. EXIT_USAGE has no class: it is what the CLI
returns for a missing or unknown subcommand, the same code click uses
for its own usage errors. LogReadError is the one non-fatal member:
the capture degrades to "no commands recorded".
"""

EXIT_USAGE = 2
EXIT_SPAWN = 3
EXIT_WORKSPACE = 4
EXIT_ARTIFACT = 5


class Shell2PyError(Exception):
    """Base class for shell2py errors."""

    exit_code = 1


class WorkspaceCreationError(Shell2PyError):
    """Temporary workspace or its log file could not be created."""

    exit_code = EXIT_WORKSPACE


class SpawnError(Shell2PyError):
    """The capture shell could not be launched at all."""

    exit_code = EXIT_SPAWN


class LogReadError(Shell2PyError):
    """The command log could not be read back after the session."""


class ArtifactWriteError(Shell2PyError):
    """The replay script or metadata could not be written."""

    exit_code = EXIT_ARTIFACT
