"""
Capture mode - record shell commands and generate replay scripts.

Components:
- Workspace: per-capture temp directory (log, save marker, rc files)
- Instrumentation: bash/zsh rc generation and launch strategies
- Runner: spawns the instrumented shell and waits for it
- Parser: reads the command log back into entries
- Generator: writes the replay script and metadata

Usage:
    shell2py capture
    # run commands...
    shell2py save      # inside the capture shell
"""

from shell2py.capture.generator import ReplayArtifact, generate_artifact
from shell2py.capture.instrumentation import (
    InstrumentationStrategy,
    PosixTracedStrategy,
    ShellKind,
    ZshHookedStrategy,
    generate_instrumentation,
)
from shell2py.capture.parser import LogEntry, LogParser, parse_log
from shell2py.capture.runner import ExitStatus, detect_shell, run_session
from shell2py.capture.session import CaptureResult, CaptureSession
from shell2py.capture.workspace import CaptureOutcome, Workspace, create_workspace

__all__ = [
    'CaptureOutcome',
    'CaptureResult',
    'CaptureSession',
    'ExitStatus',
    'InstrumentationStrategy',
    'LogEntry',
    'LogParser',
    'PosixTracedStrategy',
    'ReplayArtifact',
    'ShellKind',
    'Workspace',
    'ZshHookedStrategy',
    'create_workspace',
    'detect_shell',
    'generate_artifact',
    'generate_instrumentation',
    'parse_log',
    'run_session',
]
