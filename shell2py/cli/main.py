"""
shell2py CLI - capture shell sessions as replay scripts.

Commands:
    shell2py capture     - Enter capture mode (interactive shell)
    shell2py --version   - Show version

Inside the capture shell:
    shell2py save        - Save and exit, generating the replay script
    shell2py cancel      - Cancel the capture and exit
"""

import sys
from typing import Optional

import click

from shell2py import __version__
from shell2py.config import CaptureSettings
from shell2py.errors import EXIT_USAGE, Shell2PyError
from shell2py.logging import setup_logging


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="shell2py")
@click.option('--log-level', default='INFO', envvar='SHELL2PY_LOG_LEVEL',
              help='Log level (default: INFO)')
@click.pass_context
def cli(ctx, log_level: str):
    """shell2py - Record shell commands and replay them later."""
    setup_logging(level=log_level)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(EXIT_USAGE)


@cli.command()
@click.option('--shell', envvar='SHELL', help="Shell to launch (default: $SHELL or /bin/bash)")
@click.option('--output-dir', '-o', envvar='SHELL2PY_OUTPUT_DIR', type=click.Path(file_okay=False),
              help='Where replay scripts go (default: ./generated)')
@click.option('--pause', type=float, envvar='SHELL2PY_PAUSE',
              help='Seconds the shell waits after save/cancel')
def capture(shell: Optional[str], output_dir: Optional[str], pause: Optional[float]):
    """
    Enter capture mode.

    Every command run in the capture shell is recorded (not its output).
    Run 'shell2py save' inside it to generate a replay script, or
    'shell2py cancel' to discard the capture.

    Example:
        shell2py capture
        shell2py capture --shell /bin/zsh -o replays
    """
    from shell2py.capture.session import CaptureSession

    settings = CaptureSettings.from_env()
    if shell:
        settings.shell = shell
    if output_dir:
        settings.output_dir = output_dir
    if pause is not None:
        settings.pause = pause

    try:
        CaptureSession(settings).run()
    except Shell2PyError as e:
        click.secho(str(e), fg="red", err=True)
        sys.exit(e.exit_code)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
