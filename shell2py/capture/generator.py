"""
Replay artifact generator.

Turns recorded log entries into:
- <token>-replay.py: executable script that replays every command
  through `sh -c`, stopping at the first failure
- <token>-meta.json: capture metadata and the full entry list
"""

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from shell2py.capture.parser import LogEntry
from shell2py.capture.workspace import Workspace
from shell2py.errors import ArtifactWriteError
from shell2py.logging import get_shell2py_logger

logger = get_shell2py_logger(__name__)

REPLAY_PRELUDE = '''\
import subprocess
import sys


def run(cmd):
    print("> " + cmd, flush=True)
    try:
        result = subprocess.run(["sh", "-c", cmd])
    except OSError as e:
        print(f"Failed to run command: {e}", file=sys.stderr)
        sys.exit(1)
    if result.returncode < 0:
        # killed by a signal
        sys.exit(128 - result.returncode)
    if result.returncode != 0:
        print(f"Command exited with code {result.returncode}", file=sys.stderr)
        sys.exit(result.returncode)
'''


@dataclass(frozen=True)
class ReplayArtifact:
    """Files written for a saved capture."""
    script_path: Path
    meta_path: Path


def iso_timestamp(now: datetime) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. 2026-01-02T03:04:05.678Z."""
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def filename_token(now: datetime) -> str:
    """Filesystem-safe token: colons and periods replaced by dashes."""
    return iso_timestamp(now).replace(":", "-").replace(".", "-")


def command_literal(command: str) -> str:
    """
    Encode command text as a Python string literal.

    JSON string escaping is a strict subset of Python's literal syntax,
    so quotes, backslashes, newlines and control characters round-trip.
    """
    return json.dumps(command, ensure_ascii=False)


class ReplayGenerator:
    """
    Generate replay scripts from recorded entries.

    Example:
        generator = ReplayGenerator()
        source = generator.render_script(entries, "2026-01-01T00:00:00.000Z")
    """

    def render_script(self, entries: List[LogEntry], generated_at: str) -> str:
        lines = [
            "#!/usr/bin/env python3",
            "# Generated by shell2py",
            f"# Captured commands: {len(entries)}",
            f"# Generated at: {generated_at}",
            "",
            REPLAY_PRELUDE,
            "",
            'if __name__ == "__main__":',
        ]
        for entry in entries:
            lines.append(f"    run({command_literal(entry.command)})")

        return "\n".join(lines) + "\n"

    def render_metadata(self, entries: List[LogEntry], workspace: Workspace,
                        captured_at: str) -> str:
        meta = {
            "originalCapturedAt": captured_at,
            "tmpWorkspace": str(workspace.root),
            "entries": [entry.to_dict() for entry in entries],
        }
        return json.dumps(meta, indent=2, ensure_ascii=False)

    def generate(self, entries: List[LogEntry], workspace: Workspace,
                 output_dir: Path, now: Optional[datetime] = None) -> ReplayArtifact:
        """
        Write the replay script, then its metadata document.

        Args:
            entries: Non-empty list of recorded entries
            workspace: Workspace the entries came from
            output_dir: Destination directory (created if missing)
            now: Generation time (default: current UTC time)

        Returns:
            ReplayArtifact with both paths

        Raises:
            ArtifactWriteError: If the directory or files cannot be written
        """
        if not entries:
            raise ValueError("Cannot generate a replay artifact without entries")

        if now is None:
            now = datetime.now(timezone.utc)

        stamp = iso_timestamp(now)
        token = filename_token(now)
        output_dir = Path(output_dir)
        script_path = output_dir / f"{token}-replay.py"
        meta_path = output_dir / f"{token}-meta.json"

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            _write_new(script_path, self.render_script(entries, stamp), 0o755)
        except OSError as e:
            raise ArtifactWriteError(f"Cannot write replay artifact to {output_dir}: {e}") from e

        try:
            _write_new(meta_path, self.render_metadata(entries, workspace, stamp), 0o644)
        except OSError as e:
            # A script without its metadata is not an artifact
            script_path.unlink()
            raise ArtifactWriteError(f"Cannot write replay metadata {meta_path}: {e}") from e

        logger.debug(f"Wrote {len(entries)} replay steps to {script_path}")
        return ReplayArtifact(script_path=script_path, meta_path=meta_path)


def _write_new(path: Path, content: str, mode: int) -> None:
    """Create a file that must not exist yet."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        # mode passed to os.open is filtered by the umask
        os.chmod(path, mode)
    except OSError:
        os.unlink(path)
        raise


def generate_artifact(entries: List[LogEntry], workspace: Workspace,
                      output_dir: Path, now: Optional[datetime] = None) -> ReplayArtifact:
    """Write replay script + metadata for a saved capture."""
    return ReplayGenerator().generate(entries, workspace, output_dir, now)
