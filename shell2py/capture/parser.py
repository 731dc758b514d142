"""
Command log parser for capture mode.

Parses the raw "<timestamp> <command>" log written by the shell hook
into LogEntry records and drops the user's own control invocations.
"""

import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from shell2py.config import CONTROL_COMMAND
from shell2py.errors import LogReadError
from shell2py.logging import get_shell2py_logger

logger = get_shell2py_logger(__name__)

LINE_SPLIT = re.compile(r"\r?\n")


@dataclass(frozen=True)
class LogEntry:
    """One command recorded by the shell hook."""
    timestamp: Optional[str]  # ISO-8601 UTC, None for malformed lines
    command: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_line(line: str) -> LogEntry:
    """
    Split a log line at its first space.

    Never raises: a line without a space becomes an entry with no
    timestamp and the whole line as command text.
    """
    timestamp, sep, command = line.partition(" ")
    if not sep:
        return LogEntry(timestamp=None, command=line)
    return LogEntry(timestamp=timestamp, command=command)


def is_control_invocation(command: str, control_name: str = CONTROL_COMMAND) -> bool:
    """True for `<control_name>` or `<control_name> <args...>`."""
    words = command.split(None, 1)
    return bool(words) and words[0] == control_name


class LogParser:
    """
    Parse a capture session's command log.

    Example:
        parser = LogParser()
        entries = parser.parse_file(workspace.log_path)
    """

    def __init__(self, control_name: str = CONTROL_COMMAND):
        self.control_name = control_name

    def parse(self, text: str) -> List[LogEntry]:
        """
        Parse log text into entries, in order.

        Args:
            text: Full log content

        Returns:
            Entries with control invocations and blank commands removed
        """
        entries = []
        for line in LINE_SPLIT.split(text.rstrip()):
            if not line:
                continue

            entry = parse_line(line)
            if not entry.command.strip():
                continue
            if is_control_invocation(entry.command, self.control_name):
                continue

            entries.append(entry)
        return entries

    def parse_file(self, log_path: Path) -> List[LogEntry]:
        """
        Read and parse a log file.

        Raises:
            LogReadError: If the file cannot be read
        """
        try:
            data = Path(log_path).read_bytes()
        except OSError as e:
            raise LogReadError(f"Cannot read command log {log_path}: {e}") from e

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(
                f"Command log {log_path} is not valid UTF-8; undecodable bytes were "
                f"replaced and those commands will not replay exactly as typed."
            )
            text = data.decode("utf-8", errors="replace")

        return self.parse(text)


def parse_log(log_path: Path, control_name: str = CONTROL_COMMAND) -> List[LogEntry]:
    """Read the command log and return the meaningful entries."""
    return LogParser(control_name).parse_file(log_path)
