"""
Capture settings.

Settings come from the environment and can be overridden by CLI options.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_SHELL = "/bin/bash"
DEFAULT_OUTPUT_DIRNAME = "generated"
CONTROL_COMMAND = "shell2py"
DEFAULT_PAUSE = 0.05


@dataclass
class CaptureSettings:
    """Settings for one capture invocation."""
    shell: str = DEFAULT_SHELL
    output_dir: Optional[str] = None  # None = <cwd>/generated
    control_name: str = CONTROL_COMMAND
    pause: float = DEFAULT_PAUSE  # seconds the shell waits after save/cancel
    tmp_dir: Optional[str] = None  # None = system temp dir

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "CaptureSettings":
        """
        Build settings from environment variables.

        Reads:
            SHELL: User's shell (default: /bin/bash)
            SHELL2PY_OUTPUT_DIR: Where artifacts go (default: ./generated)
            SHELL2PY_PAUSE: Pause after save/cancel in seconds

        Args:
            environ: Mapping to read from (default: os.environ)
        """
        if environ is None:
            environ = os.environ

        pause = DEFAULT_PAUSE
        raw_pause = environ.get("SHELL2PY_PAUSE")
        if raw_pause:
            try:
                pause = float(raw_pause)
            except ValueError:
                raise ValueError(f"SHELL2PY_PAUSE must be a number, got {raw_pause!r}")

        return cls(
            shell=environ.get("SHELL") or DEFAULT_SHELL,
            output_dir=environ.get("SHELL2PY_OUTPUT_DIR") or None,
            pause=pause,
        )

    def resolved_output_dir(self) -> Path:
        """Output directory as an absolute path."""
        if self.output_dir is None:
            return Path.cwd() / DEFAULT_OUTPUT_DIRNAME
        return Path(self.output_dir).resolve()
