"""
Capture session runner.

Launches the user's shell interactively with the generated
instrumentation attached and blocks until it exits. The shell's
standard streams are the controlling terminal; nothing is captured.
"""

import os
import signal
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional

from shell2py.capture.instrumentation import (
    InstrumentationStrategy,
    PosixTracedStrategy,
    ShellKind,
    get_strategy,
)
from shell2py.capture.workspace import Workspace
from shell2py.errors import SpawnError
from shell2py.logging import get_shell2py_logger

logger = get_shell2py_logger(__name__)

# Checked in order: "zsh" before "bash"
KNOWN_SHELLS = (
    ("zsh", ShellKind.ZSH_HOOKED),
    ("bash", ShellKind.POSIX_TRACED),
)


@dataclass(frozen=True)
class ExitStatus:
    """How the capture shell ended."""
    code: Optional[int]
    signal: Optional[str] = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        if returncode < 0:
            try:
                name = signal.Signals(-returncode).name
            except ValueError:
                name = str(-returncode)
            return cls(code=None, signal=name)
        return cls(code=returncode)

    def __str__(self):
        return f"code={self.code} signal={self.signal}"


def shell_name(shell_path: str) -> str:
    return os.path.basename(shell_path).lower()


def detect_shell(shell_path: str) -> Optional[ShellKind]:
    """
    Detect the instrumentation family from the shell's base name.

    Args:
        shell_path: Path to the shell executable (e.g. /usr/bin/zsh)

    Returns:
        ShellKind, or None for unrecognized shells
    """
    name = shell_name(shell_path)
    for needle, kind in KNOWN_SHELLS:
        if needle in name:
            return kind
    return None


def select_strategy(shell_path: str) -> InstrumentationStrategy:
    """Pick the strategy for a shell, falling back to the DEBUG-trap one."""
    kind = detect_shell(shell_path)
    if kind is None:
        logger.warning(
            f"Detected shell '{shell_name(shell_path)}'. shell2py supports bash and zsh best. "
            f"Trying to spawn {shell_path} but capture may not work."
        )
        return PosixTracedStrategy()

    logger.info(f"Detected {shell_name(shell_path)}: launching an interactive shell "
                f"with temporary instrumentation.")
    return get_strategy(kind)


def run_session(workspace: Workspace, shell_path: str,
                strategy: Optional[InstrumentationStrategy] = None,
                env: Optional[Mapping[str, str]] = None) -> ExitStatus:
    """
    Run the instrumented shell and wait for it to exit.

    Args:
        workspace: Workspace holding the rc files and log
        shell_path: Shell executable to launch
        strategy: Instrumentation strategy (default: detected from shell_path)
        env: Base environment (default: os.environ)

    Returns:
        ExitStatus of the shell; a non-zero code is a normal outcome

    Raises:
        SpawnError: If the shell cannot be launched at all
    """
    if strategy is None:
        strategy = select_strategy(shell_path)

    argv = strategy.command(shell_path, workspace)
    child_env = strategy.environment(shell_path, workspace, env)
    logger.debug(f"Spawning {argv}")

    try:
        process = subprocess.Popen(argv, env=child_env)
    except OSError as e:
        raise SpawnError(f"Failed to spawn capture shell {shell_path}: {e}") from e

    # Ctrl+C belongs to the interactive shell while it runs
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        returncode = process.wait()
    finally:
        signal.signal(signal.SIGINT, previous)

    return ExitStatus.from_returncode(returncode)
