"""
Per-capture temporary workspace.

Holds the command log, the save marker and the generated rc files.
The workspace is left on disk after the session for diagnostics.
"""

import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from shell2py.errors import WorkspaceCreationError
from shell2py.logging import get_shell2py_logger

logger = get_shell2py_logger(__name__)

LOG_FILENAME = "commands.log"
MARKER_FILENAME = ".save_marker"
BASH_RC_FILENAME = "capture_rc.sh"
ZSH_RC_FILENAME = ".zshrc"
WORKSPACE_PREFIX = "shell2py-"


class CaptureOutcome(Enum):
    """Whether the user saved the capture."""
    SAVED = "saved"
    NOT_SAVED = "not_saved"


@dataclass(frozen=True)
class Workspace:
    """Paths owned by a single capture."""
    root: Path
    log_path: Path
    marker_path: Path
    bash_rc_path: Path
    zsh_rc_path: Path

    @classmethod
    def at(cls, root: Path) -> "Workspace":
        root = Path(root)
        return cls(
            root=root,
            log_path=root / LOG_FILENAME,
            marker_path=root / MARKER_FILENAME,
            bash_rc_path=root / BASH_RC_FILENAME,
            zsh_rc_path=root / ZSH_RC_FILENAME,
        )


def create_workspace(base_dir: Optional[str] = None) -> Workspace:
    """
    Create a fresh workspace with an empty, owner-only command log.

    Args:
        base_dir: Parent directory (default: system temp dir)

    Returns:
        The new Workspace

    Raises:
        WorkspaceCreationError: If the directory or log cannot be created
    """
    try:
        root = tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=base_dir)
    except OSError as e:
        raise WorkspaceCreationError(f"Cannot create temp workspace: {e}") from e

    workspace = Workspace.at(Path(root))

    try:
        fd = os.open(workspace.log_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        os.close(fd)
    except OSError as e:
        raise WorkspaceCreationError(
            f"Cannot create command log {workspace.log_path}: {e}"
        ) from e

    logger.debug(f"Workspace created at {workspace.root}")
    return workspace


def write_instrumentation(workspace: Workspace, rc_files: Dict[Path, str]) -> None:
    """
    Write generated rc scripts, readable and writable by the owner only.

    Args:
        workspace: Workspace the files belong to
        rc_files: Mapping of destination path to script text
    """
    for path, content in rc_files.items():
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise WorkspaceCreationError(f"Cannot write {path}: {e}") from e

        logger.debug(f"Wrote instrumentation {path.relative_to(workspace.root)}")


def capture_outcome(workspace: Workspace) -> CaptureOutcome:
    """Saved if and only if the save marker exists."""
    if workspace.marker_path.exists():
        return CaptureOutcome.SAVED
    return CaptureOutcome.NOT_SAVED
