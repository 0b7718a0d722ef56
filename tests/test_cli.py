"""Tests for cli.py — Click CLI commands."""

import os
import sys
from unittest.mock import patch

from click.testing import CliRunner

from flow_exec.cli import main
from flow_exec.errors import NonZeroExit, SpawnError
from flow_exec.process import CapturedProcess


def test_run_prints_captured_output(mock_process):
    mock_process.responses.append(CapturedProcess(exit_status=0, stdout=b"out", stderr=b"err"))
    runner = CliRunner()
    result = runner.invoke(main, ["run", "ghc", "--version"])
    assert result.exit_code == 0
    assert b"out" in result.stdout_bytes
    assert mock_process.calls == [("execute_out", "ghc", ["--version"], None, None, b"")]


def test_run_exit_code_propagated(mock_process):
    mock_process.responses.append(CapturedProcess(exit_status=3, stdout=b"", stderr=b""))
    runner = CliRunner()
    result = runner.invoke(main, ["run", "ghc"])
    assert result.exit_code == 3


def test_run_options(mock_process, tmp_path):
    stdin_file = tmp_path / "input.txt"
    stdin_file.write_bytes(b"payload")
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["run", "--cwd", str(tmp_path), "--env", "CC=clang", "--input", str(stdin_file), "cc", "-v"],
    )
    assert result.exit_code == 0
    _, exe, args, cwd, env, data = mock_process.calls[0]
    assert (exe, args, cwd, data) == ("cc", ["-v"], str(tmp_path), b"payload")
    assert env["CC"] == "clang"
    assert env.get("PATH") == os.environ.get("PATH")


def test_run_bad_env(mock_process):
    runner = CliRunner()
    result = runner.invoke(main, ["run", "--env", "NOEQUALS", "ghc"])
    assert result.exit_code == 2
    assert mock_process.calls == []


def test_run_spawn_error():
    with patch("flow_exec.process.execute_out", side_effect=SpawnError("ghc", [], "not found")):
        runner = CliRunner()
        result = runner.invoke(main, ["run", "ghc"])
    assert result.exit_code == 1
    assert "ERROR: could not start 'ghc'" in result.output


def test_run_real_child():
    runner = CliRunner()
    result = runner.invoke(main, ["run", sys.executable, "-c", "print('from child')"])
    assert result.exit_code == 0
    assert b"from child" in result.stdout_bytes


def test_logged(mock_process):
    runner = CliRunner()
    result = runner.invoke(main, ["logged", "configure", "sh", "./configure", "--prefix=/opt"])
    assert result.exit_code == 0
    assert mock_process.calls == [
        ("exec_logged", "sh", ["./configure", "--prefix=/opt"], "configure", None, None, None)
    ]
    assert "── configure " in result.output
    assert "✓ sh finished" in result.output


def test_logged_logs_dir(mock_process, tmp_path):
    runner = CliRunner()
    runner.invoke(main, ["logged", "--logs-dir", str(tmp_path), "build", "make"])
    assert mock_process.calls[0][-1] == str(tmp_path)


def test_logged_failure(mock_process):
    mock_process.responses.append(NonZeroExit(4, "make", ["install"]))
    runner = CliRunner()
    result = runner.invoke(main, ["logged", "install", "make", "install"])
    assert result.exit_code == 4
    assert "✗" in result.output
    assert "FAILED" in result.output


def test_exec(mock_process):
    runner = CliRunner()
    result = runner.invoke(main, ["exec", "ghc", "--make", "Main.hs"])
    assert result.exit_code == 0
    assert mock_process.calls == [("execute", "ghc", ["--make", "Main.hs"], None, None)]


def test_exec_shell(mock_process):
    runner = CliRunner()
    result = runner.invoke(main, ["exec", "--shell", "echo", "hi there"])
    assert result.exit_code == 0
    assert mock_process.calls == [("execute_shell", "echo", ["hi there"], None, None)]


def test_exec_failure(mock_process):
    mock_process.responses.append(NonZeroExit(7, "ghc", []))
    runner = CliRunner()
    result = runner.invoke(main, ["exec", "ghc"])
    assert result.exit_code == 7


def test_exec_killed_by_signal(mock_process):
    mock_process.responses.append(NonZeroExit(-15, "ghc", []))
    runner = CliRunner()
    result = runner.invoke(main, ["exec", "ghc"])
    assert result.exit_code == 1


def test_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FLOW_EXEC_MSYS2", str(tmp_path / "msys"))
    runner = CliRunner()
    result = runner.invoke(main, ["env"])
    assert result.exit_code == 0
    assert os.path.join(str(tmp_path / "msys"), "usr", "bin") in result.output
    assert os.path.join(str(tmp_path / "msys"), "mingw64", "bin") in result.output


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "flow-exec" in result.output
    assert "0.1.0" in result.output


def test_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.output
    assert "logged" in result.output
    assert "exec" in result.output
    assert "env" in result.output
