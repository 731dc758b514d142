__version__ = "0.1.0"

from shell2py.capture import CaptureSession, CaptureResult, LogEntry, Workspace
from shell2py.config import CaptureSettings
from shell2py.logging import get_logger, get_shell2py_logger, setup_logging

"""
Foundations of shell2py:
    CaptureSession runs one capture: workspace, instrumented shell, replay artifact.
    CaptureSettings holds the shell, output directory and control command name.
    Workspace is the temp directory holding the command log and save marker.
    LogEntry is one recorded command with its UTC timestamp.
"""

__all__ = [
    "CaptureSession",
    "CaptureResult",
    "CaptureSettings",
    "LogEntry",
    "Workspace",
    "get_logger",
    "get_shell2py_logger",
    "setup_logging",
]
