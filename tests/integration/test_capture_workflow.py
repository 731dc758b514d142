"""
Integration tests for capture workflows.

Drives a real bash and zsh through the generated instrumentation, then
turns the log into replay artifacts and runs them.
"""

import json
import os
import shutil
import subprocess
import sys

import pytest

from shell2py.capture.generator import generate_artifact
from shell2py.capture.instrumentation import (
    PROMPT_MARKER,
    PosixTracedStrategy,
    ZshHookedStrategy,
    render_all,
)
from shell2py.capture.parser import LogEntry, parse_log
from shell2py.capture.runner import ExitStatus
from shell2py.capture.session import CaptureSession
from shell2py.capture.workspace import (
    CaptureOutcome,
    capture_outcome,
    create_workspace,
    write_instrumentation,
)
from shell2py.config import CaptureSettings

BASH = shutil.which("bash")
ZSH = shutil.which("zsh")


def _run_replay(script_path, cwd):
    return subprocess.run(
        [sys.executable, str(script_path)],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=60,
    )


def _drive_shell(strategy, shell_path, tmp_path, script, extra_env=None):
    """Run an instrumented interactive shell with `script` as its input."""
    workspace = create_workspace(str(tmp_path))
    write_instrumentation(workspace, render_all(workspace, pause=0))

    env = {
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
        "HOME": str(tmp_path),
        "TERM": "dumb",
    }
    env.update(extra_env or {})
    result = subprocess.run(
        strategy.command(shell_path, workspace),
        env=strategy.environment(shell_path, workspace, env),
        input=script,
        cwd=str(tmp_path),
        capture_output=True,
        text=True,
        timeout=60,
        # no controlling terminal, so the shell skips job control
        start_new_session=True,
    )
    return workspace, result


def _commands(workspace):
    return [e.command for e in parse_log(workspace.log_path)]


@pytest.mark.skipif(BASH is None, reason="bash not installed")
class TestBashCapture:
    """Feed commands to an instrumented interactive bash."""

    def _session(self, tmp_path, script, extra_env=None):
        return _drive_shell(PosixTracedStrategy(), BASH, tmp_path, script, extra_env)

    def test_save_records_commands_in_order(self, tmp_path):
        workspace, result = self._session(tmp_path, "echo hi\nls\nshell2py save\n")

        assert result.returncode == 0
        assert capture_outcome(workspace) is CaptureOutcome.SAVED
        assert _commands(workspace) == ["echo hi", "ls"]

    def test_compound_commands_are_one_entry_each(self, tmp_path):
        """Each command line is logged once, in full, however many simple commands it runs."""
        script = (
            "echo a | tr a b\n"
            "for i in 1 2; do touch f$i; done\n"
            "echo x > out.txt\n"
            "true && echo ok\n"
            "shell2py save\n"
        )
        workspace, _ = self._session(tmp_path, script)

        assert _commands(workspace) == [
            "echo a | tr a b",
            "for i in 1 2; do touch f$i; done",
            "echo x > out.txt",
            "true && echo ok",
        ]
        assert (tmp_path / "f2").exists()

    def test_loop_over_several_lines_is_one_entry(self, tmp_path):
        workspace, _ = self._session(
            tmp_path, "for i in 1 2\ndo\ntouch g$i\ndone\nshell2py save\n"
        )

        commands = _commands(workspace)
        assert len(commands) == 1
        assert commands[0].startswith("for i in 1 2")
        assert "touch g$i" in commands[0]
        assert commands[0].endswith("done")

    def test_repeated_and_space_prefixed_commands(self, tmp_path):
        """History filters from the environment do not hide commands."""
        workspace, _ = self._session(
            tmp_path,
            "echo hi\necho hi\n echo spaced\nshell2py save\n",
            extra_env={"HISTCONTROL": "ignoreboth", "HISTIGNORE": "echo*"},
        )

        assert [c.strip() for c in _commands(workspace)] == ["echo hi", "echo hi", "echo spaced"]

    def test_captured_compound_commands_replay(self, tmp_path):
        capture_dir = tmp_path / "capture"
        replay_dir = tmp_path / "replay"
        capture_dir.mkdir()
        replay_dir.mkdir()
        workspace, _ = self._session(
            capture_dir,
            "echo a | tr a b > piped.txt\nfor i in 1 2; do echo $i >> seq.txt; done\nshell2py save\n",
        )

        artifact = generate_artifact(parse_log(workspace.log_path), workspace, tmp_path / "generated")
        result = _run_replay(artifact.script_path, replay_dir)

        assert result.returncode == 0
        assert (replay_dir / "piped.txt").read_text() == "b\n"
        assert (replay_dir / "seq.txt").read_text() == "1\n2\n"

    def test_log_lines_have_utc_timestamps(self, tmp_path):
        workspace, _ = self._session(tmp_path, "echo hi\nshell2py save\n")

        entry = parse_log(workspace.log_path)[0]
        assert entry.timestamp.endswith("Z")
        assert len(entry.timestamp) == len("2026-01-01T00:00:00Z")

    def test_control_invocation_is_logged_raw(self, tmp_path):
        """The hook sees save itself; the parser drops it."""
        workspace, _ = self._session(tmp_path, "shell2py save\n")

        assert "shell2py save" in workspace.log_path.read_text()
        assert parse_log(workspace.log_path) == []

    def test_cancel_leaves_no_marker(self, tmp_path):
        workspace, result = self._session(tmp_path, "echo hi\nshell2py cancel\n")

        assert result.returncode == 0
        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED

    def test_cancel_removes_existing_marker(self, tmp_path):
        workspace, _ = self._session(tmp_path, "touch \"$SHELL2PY_MARKER\"\nshell2py cancel\n")

        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED

    def test_exit_without_saving(self, tmp_path):
        workspace, _ = self._session(tmp_path, "echo hi\nexit\n")

        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED

    def test_end_of_input_without_saving(self, tmp_path):
        workspace, _ = self._session(tmp_path, "echo hi\n")

        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED

    def test_paths_exported(self, tmp_path):
        out = tmp_path / "seen.txt"
        workspace, _ = self._session(
            tmp_path, f'echo "$SHELL2PY_LOG" > {out}\nshell2py save\n'
        )

        assert out.read_text().strip() == str(workspace.log_path)


@pytest.mark.skipif(ZSH is None, reason="zsh not installed")
class TestZshCapture:
    """Feed commands to an instrumented interactive zsh."""

    def _session(self, tmp_path, script):
        return _drive_shell(ZshHookedStrategy(), ZSH, tmp_path, script)

    def test_save_records_commands_in_order(self, tmp_path):
        workspace, result = self._session(tmp_path, "echo hi\nls\nshell2py save\n")

        assert result.returncode == 0
        assert capture_outcome(workspace) is CaptureOutcome.SAVED
        assert _commands(workspace) == ["echo hi", "ls"]

    def test_compound_commands_are_one_entry_each(self, tmp_path):
        script = (
            "echo a | tr a b\n"
            "for i in 1 2; do touch f$i; done\n"
            "echo x > out.txt\n"
            "shell2py save\n"
        )
        workspace, _ = self._session(tmp_path, script)

        assert _commands(workspace) == [
            "echo a | tr a b",
            "for i in 1 2; do touch f$i; done",
            "echo x > out.txt",
        ]

    def test_log_lines_have_utc_timestamps(self, tmp_path):
        workspace, _ = self._session(tmp_path, "echo hi\nshell2py save\n")

        entry = parse_log(workspace.log_path)[0]
        assert entry.timestamp.endswith("Z")
        assert len(entry.timestamp) == len("2026-01-01T00:00:00Z")

    def test_other_control_arguments_keep_the_shell_running(self, tmp_path):
        workspace, _ = self._session(tmp_path, "shell2py status\necho after\nshell2py save\n")

        assert capture_outcome(workspace) is CaptureOutcome.SAVED
        assert _commands(workspace) == ["echo after"]

    def test_cancel_leaves_no_marker(self, tmp_path):
        workspace, result = self._session(tmp_path, "echo hi\nshell2py cancel\n")

        assert result.returncode == 0
        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED
        assert "shell2py cancel" in workspace.log_path.read_text()

    def test_exit_without_saving(self, tmp_path):
        workspace, _ = self._session(tmp_path, "echo hi\nexit\n")

        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED
        assert "echo hi" in _commands(workspace)

    def test_end_of_input_without_saving(self, tmp_path):
        workspace, _ = self._session(tmp_path, "echo hi\n")

        assert capture_outcome(workspace) is CaptureOutcome.NOT_SAVED

    def test_workspace_rc_replaces_user_zshrc(self, tmp_path):
        """ZDOTDIR wins over $HOME/.zshrc."""
        (tmp_path / ".zshrc").write_text("touch user-zshrc-loaded\n")
        out = tmp_path / "prompt.txt"
        workspace, _ = self._session(tmp_path, f'print -r -- "$PROMPT" > {out}\nshell2py save\n')

        assert not (tmp_path / "user-zshrc-loaded").exists()
        assert out.read_text().startswith(PROMPT_MARKER)


class TestFinalize:
    """CaptureSession.finalize decides whether an artifact is written."""

    def _session(self, tmp_path):
        settings = CaptureSettings(output_dir=str(tmp_path / "generated"))
        return CaptureSession(settings), create_workspace(str(tmp_path))

    def test_not_saved_generates_nothing(self, tmp_path):
        session, workspace = self._session(tmp_path)
        workspace.log_path.write_text("2026-01-01T00:00:00Z echo hi\n")

        result = session.finalize(workspace, ExitStatus(code=0))

        assert result.outcome is CaptureOutcome.NOT_SAVED
        assert result.artifact is None
        assert not (tmp_path / "generated").exists()

    def test_saved_with_only_control_commands(self, tmp_path):
        session, workspace = self._session(tmp_path)
        workspace.log_path.write_text("2026-01-01T00:00:00Z shell2py save\n")
        workspace.marker_path.touch()

        result = session.finalize(workspace, ExitStatus(code=0))

        assert result.outcome is CaptureOutcome.SAVED
        assert result.entries == []
        assert result.artifact is None

    def test_unreadable_log_degrades(self, tmp_path):
        session, workspace = self._session(tmp_path)
        workspace.marker_path.touch()
        workspace.log_path.unlink()

        result = session.finalize(workspace, ExitStatus(code=0))

        assert result.entries == []
        assert result.artifact is None

    def test_saved_writes_artifact(self, tmp_path):
        session, workspace = self._session(tmp_path)
        workspace.log_path.write_text(
            "2026-01-01T00:00:00Z echo hi\n"
            "2026-01-01T00:00:01Z ls\n"
            "2026-01-01T00:00:02Z shell2py save\n"
        )
        workspace.marker_path.touch()

        result = session.finalize(workspace, ExitStatus(code=0))

        assert result.artifact is not None
        meta = json.loads(result.artifact.meta_path.read_text())
        assert [e["command"] for e in meta["entries"]] == ["echo hi", "ls"]
        assert meta["tmpWorkspace"] == str(workspace.root)


class TestReplay:
    """Run generated replay scripts."""

    def _artifact(self, tmp_path, commands):
        workspace = create_workspace(str(tmp_path))
        entries = [LogEntry("2026-01-01T00:00:00Z", c) for c in commands]
        return generate_artifact(entries, workspace, tmp_path / "generated")

    def test_replays_in_order(self, tmp_path):
        (tmp_path / "marker-file").touch()
        artifact = self._artifact(tmp_path, ["echo hi", "ls"])

        result = _run_replay(artifact.script_path, tmp_path)

        assert result.returncode == 0
        assert result.stdout.index("hi\n") < result.stdout.index("marker-file")

    def test_stops_at_first_failure(self, tmp_path):
        artifact = self._artifact(tmp_path, ["false", "echo after"])

        result = _run_replay(artifact.script_path, tmp_path)

        assert result.returncode == 1
        assert "after" not in result.stdout

    def test_propagates_exit_status(self, tmp_path):
        artifact = self._artifact(tmp_path, ["exit 42", "echo never"])

        result = _run_replay(artifact.script_path, tmp_path)

        assert result.returncode == 42
        assert "never" not in result.stdout

    def test_special_characters_preserved(self, tmp_path):
        command = """printf '%s|' "it's" "a \\"quoted\\" word" '`tick`' '$HOME'"""
        artifact = self._artifact(tmp_path, [command])

        result = _run_replay(artifact.script_path, tmp_path)

        assert result.returncode == 0
        assert """it's|a "quoted" word|`tick`|$HOME|""" in result.stdout

    def test_multiline_command(self, tmp_path):
        artifact = self._artifact(tmp_path, ["echo one\necho two"])

        result = _run_replay(artifact.script_path, tmp_path)

        assert result.returncode == 0
        assert "one\ntwo\n" in result.stdout

    def test_side_effects_reproduced(self, tmp_path):
        target = tmp_path / "made" / "file.txt"
        artifact = self._artifact(tmp_path, [f"mkdir -p {target.parent}", f"echo data > {target}"])

        _run_replay(artifact.script_path, tmp_path)

        assert target.read_text() == "data\n"
