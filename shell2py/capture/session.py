"""
Capture session orchestration.

Ties the pipeline together: workspace -> instrumentation -> shell ->
outcome -> log -> replay artifact.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from shell2py.capture.generator import ReplayArtifact, generate_artifact
from shell2py.capture.instrumentation import render_all
from shell2py.capture.parser import LogEntry, parse_log
from shell2py.capture.runner import ExitStatus, run_session, select_strategy, shell_name
from shell2py.capture.workspace import (
    CaptureOutcome,
    Workspace,
    capture_outcome,
    create_workspace,
    write_instrumentation,
)
from shell2py.config import CaptureSettings
from shell2py.errors import LogReadError
from shell2py.logging import get_shell2py_logger

logger = get_shell2py_logger(__name__)


@dataclass
class CaptureResult:
    """What one capture produced."""
    workspace: Workspace
    status: ExitStatus
    outcome: CaptureOutcome
    entries: List[LogEntry] = field(default_factory=list)
    artifact: Optional[ReplayArtifact] = None


class CaptureSession:
    """
    Complete capture session manager.

    Example:
        session = CaptureSession(CaptureSettings.from_env())
        result = session.run()
        if result.artifact:
            print(result.artifact.script_path)
    """

    def __init__(self, settings: Optional[CaptureSettings] = None):
        if settings is None:
            settings = CaptureSettings.from_env()
        self.settings = settings

    def prepare(self) -> Workspace:
        """Create the workspace and write both shells' rc files."""
        workspace = create_workspace(self.settings.tmp_dir)
        write_instrumentation(
            workspace,
            render_all(workspace, self.settings.control_name, self.settings.pause),
        )
        return workspace

    def run(self) -> CaptureResult:
        """
        Run a full capture.

        Raises:
            WorkspaceCreationError: Workspace could not be set up
            SpawnError: Shell could not be launched
            ArtifactWriteError: Replay files could not be written
        """
        workspace = self.prepare()
        strategy = select_strategy(self.settings.shell)

        logger.banner(shell_name(self.settings.shell), self.settings.control_name,
                      str(workspace.root))

        status = run_session(workspace, self.settings.shell, strategy)
        logger.info(f"Capture shell exited ({status}).")

        return self.finalize(workspace, status)

    def finalize(self, workspace: Workspace, status: ExitStatus) -> CaptureResult:
        """Turn a finished session into a result, writing the artifact if saved."""
        outcome = capture_outcome(workspace)
        result = CaptureResult(workspace=workspace, status=status, outcome=outcome)

        if outcome is CaptureOutcome.NOT_SAVED:
            logger.info("No save marker found. Nothing will be generated "
                        "(capture canceled or exited without saving).")
            logger.path("Temporary data available at", str(workspace.root))
            return result

        try:
            result.entries = parse_log(workspace.log_path, self.settings.control_name)
        except LogReadError as e:
            logger.warning(f"{e}. Treating capture as empty.")

        if not result.entries:
            logger.info("No recorded commands to generate script from.")
            logger.path("Commands log", str(workspace.log_path))
            return result

        result.artifact = generate_artifact(
            result.entries, workspace, self.settings.resolved_output_dir()
        )

        logger.success(f"Captured {len(result.entries)} command(s)")
        logger.path("Generated script", str(result.artifact.script_path))
        logger.path("Metadata", str(result.artifact.meta_path))
        logger.path("Temporary workspace retained at", str(workspace.root))
        logger.hint("Tip: review the generated script before running it. "
                    "It will execute the same shell commands again.")
        return result
