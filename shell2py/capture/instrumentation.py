"""
Shell instrumentation for capture sessions.

Each supported shell family gets a strategy that knows how to:
- render the rc script that logs every command and defines the
  in-shell control command (save/cancel)
- build the argv and environment that make the shell load that rc
  instead of the user's own startup files

Strategies:
- PosixTracedStrategy: bash, DEBUG trap gated on $HISTCMD
- ZshHookedStrategy: zsh, preexec hook via add-zsh-hook
"""

import os
import shlex
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from shell2py.capture.workspace import Workspace
from shell2py.config import CONTROL_COMMAND, DEFAULT_PAUSE

PROMPT_MARKER = "[shell2py capture] "
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class ShellKind(Enum):
    """Supported instrumentation families."""
    POSIX_TRACED = "posix_traced"
    ZSH_HOOKED = "zsh_hooked"


def env_names(control_name: str) -> Dict[str, str]:
    """Environment variable names exported into the capture shell."""
    prefix = control_name.upper().replace("-", "_")
    return {"log": f"{prefix}_LOG", "marker": f"{prefix}_MARKER"}


class InstrumentationStrategy(ABC):
    """
    Abstract base class for shell-specific capture instrumentation.

    Implementations:
    - PosixTracedStrategy
    - ZshHookedStrategy
    """

    kind: ShellKind

    @abstractmethod
    def rc_path(self, workspace: Workspace) -> Path:
        """Where this shell's rc script lives inside the workspace."""
        pass

    @abstractmethod
    def render(self, log_path: str, marker_path: str,
               control_name: str = CONTROL_COMMAND,
               pause: float = DEFAULT_PAUSE) -> str:
        """
        Render the rc script text.

        Args:
            log_path: Command log the hook appends to
            marker_path: Save marker the control command creates/removes
            control_name: Name of the in-shell control command
            pause: Seconds to sleep after save/cancel (0 = no sleep)

        Returns:
            Script text, no side effects
        """
        pass

    @abstractmethod
    def command(self, shell_path: str, workspace: Workspace) -> List[str]:
        """Build argv for launching an interactive instrumented shell."""
        pass

    def environment(self, shell_path: str, workspace: Workspace,
                    base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Build the child environment (default: inherited unchanged)."""
        return dict(os.environ if base_env is None else base_env)

    # Shared rendering helpers

    def _exports(self, log_path: str, marker_path: str, control_name: str) -> List[str]:
        names = env_names(control_name)
        return [
            f"export {names['log']}={shlex.quote(str(log_path))}",
            f"export {names['marker']}={shlex.quote(str(marker_path))}",
        ]

    @abstractmethod
    def _lookup_binary(self, control_name: str) -> str:
        """Shell test that succeeds if a real executable of that name is on PATH."""
        pass

    def _control_function(self, control_name: str, pause: float) -> List[str]:
        marker = "$" + env_names(control_name)["marker"]
        sleep = [f"    sleep {pause:g}"] if pause > 0 else []

        return [
            f"{control_name}() {{",
            '  if [ "$1" = "save" ]; then',
            f'    echo "[{control_name}] saving capture and exiting..."',
            f'    mkdir -p "$(dirname "{marker}")"',
            f'    touch "{marker}"',
            *sleep,
            "    exit 0",
            '  elif [ "$1" = "cancel" ]; then',
            f'    echo "[{control_name}] canceling capture and exiting..."',
            f'    rm -f "{marker}"',
            *sleep,
            "    exit 0",
            f"  elif {self._lookup_binary(control_name)}; then",
            f'    command {control_name} "$@"',
            "  fi",
            "}",
        ]

    @staticmethod
    def _header(control_name: str, kind: str) -> List[str]:
        return [f"# {control_name} temporary {kind} (auto-generated). Do not commit.", ""]


class PosixTracedStrategy(InstrumentationStrategy):
    """
    bash instrumentation via a DEBUG trap.

    The trap fires before every simple command, but only logs when
    $HISTCMD changes, so each command line is recorded once, in full,
    from the history list (pipelines, loops and multi-line commands
    included). It is installed last so the rc's own statements are not
    recorded. bash loads the script through --rcfile; other POSIX shells
    get it through $ENV, best effort.
    """

    kind = ShellKind.POSIX_TRACED

    def rc_path(self, workspace: Workspace) -> Path:
        return workspace.bash_rc_path

    def render(self, log_path, marker_path, control_name=CONTROL_COMMAND, pause=DEFAULT_PAUSE):
        log_var = "$" + env_names(control_name)["log"]
        prefix = f"_{control_name.replace('-', '_')}"
        hook = f"{prefix}_log_command"
        last = f"{prefix}_histcmd"

        lines = self._header(control_name, "rc")
        lines += self._exports(log_path, marker_path, control_name)
        lines.append("")
        lines += self._control_function(control_name, pause)
        lines += [
            "",
            "# Prompt hint to show capture mode",
            'if [ -n "$PS1" ]; then',
            f'  PS1={shlex.quote(PROMPT_MARKER)}"$PS1"',
            "fi",
            "",
            "# Prompt hooks would be recorded as commands; every line must reach history",
            "unset PROMPT_COMMAND HISTCONTROL HISTIGNORE HISTTIMEFORMAT",
            "set -o history",
            "shopt -s cmdhist",
            "",
            "# Log each history entry once, before its first simple command runs",
            f"{last}=",
            f"{hook}() {{",
            f'  [ "$HISTCMD" = "${last}" ] && return 0',
            f"  {last}=$HISTCMD",
            "  local line",
            "  line=$(builtin history 1)",
            '  line="${line#*[0-9][ *] }"',
            f'  printf "%s %s\\n" "$(date -u +"{TIMESTAMP_FORMAT}")" "$line" >> "{log_var}"',
            "}",
            "",
            f"trap {hook} DEBUG",
            "",
        ]
        return "\n".join(lines)

    def _lookup_binary(self, control_name):
        return f"type -P {control_name} >/dev/null 2>&1"

    def command(self, shell_path, workspace):
        if _supports_rcfile(shell_path):
            return [shell_path, "--rcfile", str(self.rc_path(workspace)), "-i"]
        return [shell_path, "-i"]

    def environment(self, shell_path, workspace, base_env=None):
        env = super().environment(shell_path, workspace, base_env)
        if not _supports_rcfile(shell_path):
            # POSIX sh reads $ENV for interactive shells
            env["ENV"] = str(self.rc_path(workspace))
        return env


class ZshHookedStrategy(InstrumentationStrategy):
    """
    zsh instrumentation via a preexec hook.

    ZDOTDIR points at the workspace so zsh picks up the generated .zshrc
    in place of the user's own.
    """

    kind = ShellKind.ZSH_HOOKED

    def rc_path(self, workspace: Workspace) -> Path:
        return workspace.zsh_rc_path

    def render(self, log_path, marker_path, control_name=CONTROL_COMMAND, pause=DEFAULT_PAUSE):
        log_var = "$" + env_names(control_name)["log"]
        hook = f"_{control_name.replace('-', '_')}_preexec"

        lines = self._header(control_name, "zshrc")
        lines += self._exports(log_path, marker_path, control_name)
        lines += [
            "",
            "# $1 is the command line about to be executed",
            f"{hook}() {{",
            f'  printf "%s %s\\n" "$(date -u +"{TIMESTAMP_FORMAT}")" "$1" >> "{log_var}"',
            "  return 0",
            "}",
            "",
            f"if autoload -Uz add-zsh-hook 2>/dev/null && add-zsh-hook preexec {hook} 2>/dev/null; then",
            "  :",
            "else",
            f'  preexec() {{ {hook} "$1"; }}',
            "fi",
            "",
        ]
        lines += self._control_function(control_name, pause)
        lines += [
            "",
            "# Prompt hint to show capture mode",
            'if [ -n "$PROMPT" ]; then',
            f'  PROMPT={shlex.quote(PROMPT_MARKER)}"$PROMPT"',
            "fi",
            "",
        ]
        return "\n".join(lines)

    def _lookup_binary(self, control_name):
        return f"whence -p {control_name} >/dev/null 2>&1"

    def command(self, shell_path, workspace):
        return [shell_path, "-i"]

    def environment(self, shell_path, workspace, base_env=None):
        env = super().environment(shell_path, workspace, base_env)
        env["ZDOTDIR"] = str(workspace.root)
        return env


STRATEGIES = {
    ShellKind.POSIX_TRACED: PosixTracedStrategy,
    ShellKind.ZSH_HOOKED: ZshHookedStrategy,
}


def get_strategy(kind: ShellKind) -> InstrumentationStrategy:
    return STRATEGIES[kind]()


def generate_instrumentation(kind: ShellKind, log_path: str, marker_path: str,
                             control_name: str = CONTROL_COMMAND,
                             pause: float = DEFAULT_PAUSE) -> str:
    """
    Generate the rc script for a shell family.

    Example:
        text = generate_instrumentation(ShellKind.ZSH_HOOKED,
                                        "/tmp/x/commands.log",
                                        "/tmp/x/.save_marker")
    """
    return get_strategy(kind).render(log_path, marker_path, control_name, pause)


def render_all(workspace: Workspace, control_name: str = CONTROL_COMMAND,
               pause: float = DEFAULT_PAUSE) -> Dict[Path, str]:
    """Render every strategy's rc for the workspace, keyed by destination path."""
    rc_files = {}
    for kind in ShellKind:
        strategy = get_strategy(kind)
        rc_files[strategy.rc_path(workspace)] = strategy.render(
            str(workspace.log_path), str(workspace.marker_path), control_name, pause
        )
    return rc_files


def _supports_rcfile(shell_path: str) -> bool:
    return "bash" in os.path.basename(shell_path).lower()
