"""Shared test fixtures."""

import sys

import pytest


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings, logs and GitHub Actions formatting out of the real environment."""
    for var in ("FLOW_EXEC_CONFIG", "FLOW_EXEC_LOGS_DIR", "FLOW_EXEC_MSYS2", "GITHUB_ACTIONS"):
        monkeypatch.delenv(var, raising=False)
    base = tmp_path / "flow-exec-home"
    monkeypatch.setenv("FLOW_EXEC_BASE_DIR", str(base))
    return base


@pytest.fixture
def python_child():
    """argv prefix running a Python snippet in a child interpreter."""

    def make(script: str) -> tuple[str, list[str]]:
        return sys.executable, ["-c", script]

    return make


@pytest.fixture
def mock_process(monkeypatch):
    """Mock the launcher entry points for tests."""
    from flow_exec import process

    calls = []
    responses = []

    def fake_execute_out(exe, args=(), cwd=None, env=None, input=b""):
        calls.append(("execute_out", exe, list(args), cwd, env, input))
        if responses:
            return responses.pop(0)
        return process.CapturedProcess(exit_status=0, stdout=b"", stderr=b"")

    def fake_exec_logged(exe, args, log_name, cwd=None, env=None, logs_dir=None, mirror=None):
        calls.append(("exec_logged", exe, list(args), log_name, cwd, env, logs_dir))
        return responses.pop(0) if responses else None

    def fake_execute(exe, args=(), cwd=None, env=None):
        calls.append(("execute", exe, list(args), cwd, env))
        return responses.pop(0) if responses else None

    def fake_execute_shell(exe, args=(), cwd=None, env=None):
        calls.append(("execute_shell", exe, list(args), cwd, env))
        return responses.pop(0) if responses else None

    monkeypatch.setattr(process, "execute_out", fake_execute_out)
    monkeypatch.setattr(process, "exec_logged", fake_exec_logged)
    monkeypatch.setattr(process, "execute", fake_execute)
    monkeypatch.setattr(process, "execute_shell", fake_execute_shell)

    return type("MockProcess", (), {"calls": calls, "responses": responses})()
