"""
Logging for shell2py.

Example:
    from shell2py.logging import get_shell2py_logger

    logger = get_shell2py_logger(__name__)
    logger.info("Launching capture shell")
    logger.warning("Unrecognized shell, capture may not work")
    logger.success("Replay script written")
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

SHELL2PY_THEME = Theme({
    "log.time": "dim cyan",
    "log.level.debug": "dim blue",
    "log.level.info": "green",
    "log.level.warning": "yellow",
    "log.level.error": "bold red",
    "log.level.critical": "bold white on red",
    "shell2py.success": "bold green",
    "shell2py.banner": "bright_blue",
    "shell2py.shell": "cyan",
    "shell2py.command": "bold green",
    "shell2py.key": "bold yellow",
    "shell2py.label": "bold white",
    "shell2py.hint": "dim",
})

# Global console instance
console = Console(theme=SHELL2PY_THEME, stderr=True)

_initialized = False


def setup_logging(
    level: str = "INFO",
    show_time: bool = True,
    show_path: bool = False,
    rich_tracebacks: bool = True,
) -> None:
    """
    Init shell2py's logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        show_time: Show timestamps in log output
        show_path: Show file path in log output
        rich_tracebacks: Use rich formatting for tracebacks

    Note:
        Subsequent calls only adjust the level, so handlers are never
        duplicated.
    """
    global _initialized

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if _initialized:
        logging.getLogger().setLevel(numeric_level)
        return

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
        force=True,
    )

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a standard logger, initializing logging on first use."""
    if not _initialized:
        setup_logging()

    return logging.getLogger(name)


class Shell2PyLogger:
    """
    shell2py-specific logger.

    Wraps a standard logger and adds console helpers for the capture
    banner and for reporting generated files.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.console = console

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(message, **kwargs)

    def success(self, message: str) -> None:
        """Print a success line with a check mark."""
        self.console.print(f"[shell2py.success]✓[/shell2py.success] {escape(message)}")

    def path(self, label: str, value: str) -> None:
        """
        Print a labelled filesystem path.

        Args:
            label: Short description (e.g. "Generated script")
            value: Path to display, printed verbatim
        """
        self.console.print(
            f"[shell2py.label]{escape(label)}:[/shell2py.label] {escape(str(value))}"
        )

    def hint(self, message: str) -> None:
        self.console.print(f"[shell2py.hint]{escape(message)}[/shell2py.hint]")

    def banner(self, shell_name: str, control_name: str, workspace_root: str) -> None:
        """
        Print the capture-mode banner shown before the shell starts.

        Args:
            shell_name: Detected shell family (bash, zsh, ...)
            control_name: In-shell control command name
            workspace_root: Temporary workspace directory
        """
        save = f"{control_name} save"
        cancel = f"{control_name} cancel"

        self.console.print(
            f"[shell2py.banner]Entering capture mode[/shell2py.banner] "
            f"[shell2py.shell]({escape(shell_name)})[/shell2py.shell]."
        )
        self.console.print("All commands you run will be recorded (not their output).")
        self.console.print(
            f"Inside the capture shell run:  "
            f"[shell2py.command]{escape(save)}[/shell2py.command]   (to save and exit)"
        )
        self.console.print(
            f"                          or:  "
            f"[shell2py.command]{escape(cancel)}[/shell2py.command] (to cancel and exit)\n"
        )
        self.path("Temp workspace", workspace_root)
        self.console.print(
            "Press [shell2py.key]Ctrl+D[/shell2py.key] or type "
            "[shell2py.key]exit[/shell2py.key] to quit without saving."
        )
        self.console.print("")


def get_shell2py_logger(name: str) -> Shell2PyLogger:
    """
    Get a Shell2PyLogger instance for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Shell2PyLogger instance

    Example:
        logger = get_shell2py_logger(__name__)
        logger.success("Capture saved")
        logger.path("Metadata", "generated/...-meta.json")
    """
    return Shell2PyLogger(name)
