"""Child process launcher — the single mock seam for all tests.

Every invocation owns its process handle and pipes: they are released on
every exit path, and a child still running when a later step fails is
killed and reaped.
"""

import errno
import os
import shlex
import shutil
import subprocess
from collections.abc import Iterator, Sequence
from contextlib import closing, contextmanager
from dataclasses import dataclass

from flow_exec import config, environ, log
from flow_exec.drain import fork_wait
from flow_exec.errors import NonZeroExit, SpawnError, StreamError, to_process_error
from flow_exec.tee import tee


@dataclass(frozen=True)
class CapturedProcess:
    exit_status: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    def check(self, exe: str, args: Sequence[str]) -> NonZeroExit | None:
        return to_process_error(exe, args, self.exit_status)


@dataclass(frozen=True)
class LaunchConfig:
    exe: str
    args: tuple[str, ...] = ()
    cwd: str | None = None
    env: environ.Environment | None = None
    input: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class LogTarget:
    stdout_path: str
    stderr_path: str

    @classmethod
    def for_name(cls, name: str, logs_dir: str) -> "LogTarget":
        base = os.path.join(logs_dir, name)
        return cls(stdout_path=base + ".stdout.log", stderr_path=base + ".stderr.log")


def _ignore_broken_pipe(proc: subprocess.Popen, op, *args) -> None:
    """Run a write/close on the child's stdin. The child may have exited already.

    Windows reports a write to a pipe whose reader is gone as EINVAL rather
    than EPIPE; that only counts as a closed stdin once the child has exited.
    """
    try:
        op(*args)
    except BrokenPipeError:
        pass
    except OSError as e:
        if e.errno != errno.EINVAL or proc.poll() is None:
            raise


class _AppendLog:
    """Log file opened in append mode when the first chunk arrives."""

    def __init__(self, path: str):
        self.name = path
        self._file = None

    def write(self, data: bytes) -> int:
        if self._file is None:
            self._file = open(self.name, "ab")
        return self._file.write(data)

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()


def _require(cfg: LaunchConfig, stream, name: str):
    if stream is None:
        raise SpawnError(cfg.exe, cfg.args, f"failed to get a {name} handle")
    return stream


@contextmanager
def _spawned(
    cfg: LaunchConfig, argv, env: dict[str, str], shell: bool = False, **pipes
) -> Iterator[subprocess.Popen]:
    """Start the child; always close its pipes and reap it on the way out."""
    try:
        proc = subprocess.Popen(argv, cwd=cfg.cwd, env=env, shell=shell, **pipes)
    except OSError as e:
        raise SpawnError(cfg.exe, cfg.args, e.strerror or str(e)) from e

    try:
        yield proc
    except BaseException:
        proc.kill()
        raise
    finally:
        if proc.stdin is not None:
            _ignore_broken_pipe(proc, proc.stdin.close)
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        proc.wait()


def _drain_name(proc: subprocess.Popen, stream: str) -> str:
    return f"flow-exec-{proc.pid}-{stream}"


def capture(cfg: LaunchConfig) -> CapturedProcess:
    """Run a child with all three pipes and collect its output in memory.

    stdout and stderr are drained on two workers while cfg.input is written
    to stdin, so a child producing more than a pipe buffer on either stream
    cannot block.
    """
    env = environ.augment_environment(cfg.env)
    with _spawned(
        cfg,
        [cfg.exe, *cfg.args],
        env,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    ) as proc:
        stdin = _require(cfg, proc.stdin, "stdin")
        stdout = _require(cfg, proc.stdout, "stdout")
        stderr = _require(cfg, proc.stderr, "stderr")

        try:
            with fork_wait(stdout.read, _drain_name(proc, "stdout"), proc.kill) as wait_out:
                with fork_wait(stderr.read, _drain_name(proc, "stderr"), proc.kill) as wait_err:
                    if cfg.input:
                        _ignore_broken_pipe(proc, stdin.write, cfg.input)
                    # close flushes, which can hit the broken pipe too
                    _ignore_broken_pipe(proc, stdin.close)

                    out = wait_out()
                    err = wait_err()
        except OSError as e:
            raise StreamError(cfg.exe, cfg.args, e) from e

        status = proc.wait()
    return CapturedProcess(exit_status=status, stdout=out, stderr=err)


def execute_out(
    exe: str,
    args: Sequence[str] = (),
    cwd: str | None = None,
    env: environ.Environment | None = None,
    input: bytes = b"",
) -> CapturedProcess:
    """Run a command and capture stdout/stderr as bytes."""
    return capture(LaunchConfig(exe=exe, args=tuple(args), cwd=cwd, env=env, input=input))


def exec_logged(
    exe: str,
    args: Sequence[str],
    log_name: str,
    cwd: str | None = None,
    env: environ.Environment | None = None,
    logs_dir: str | None = None,
    mirror=None,
) -> NonZeroExit | None:
    """Run a command, teeing stdout/stderr to <logs_dir>/<log_name>.{stdout,stderr}.log.

    Both streams are also mirrored live to our own stderr (or ``mirror``).
    Log files are appended to, never truncated, and only created once the
    child writes to that stream.
    """
    cfg = LaunchConfig(exe=exe, args=tuple(args), cwd=cwd, env=env)
    if logs_dir is None:
        logs_dir = config.load_settings().logs_dir
    target = LogTarget.for_name(log_name, logs_dir)
    env_ = environ.augment_environment(env)

    log.debug(f"Running {exe} with arguments {list(args)!r}")
    os.makedirs(os.path.dirname(target.stdout_path) or ".", exist_ok=True)

    with closing(_AppendLog(target.stdout_path)) as out_log, closing(
        _AppendLog(target.stderr_path)
    ) as err_log:
        with _spawned(
            cfg, [exe, *cfg.args], env_, stdout=subprocess.PIPE, stderr=subprocess.PIPE
        ) as proc:
            stdout = _require(cfg, proc.stdout, "stdout")
            stderr = _require(cfg, proc.stderr, "stderr")

            try:
                with fork_wait(
                    lambda: tee(stdout, out_log, mirror), _drain_name(proc, "stdout"), proc.kill
                ) as wait_out:
                    with fork_wait(
                        lambda: tee(stderr, err_log, mirror), _drain_name(proc, "stderr"), proc.kill
                    ) as wait_err:
                        wait_out()
                        wait_err()
            except OSError as e:
                raise StreamError(cfg.exe, cfg.args, e) from e

            status = proc.wait()
    return to_process_error(exe, cfg.args, status)


def execute(
    exe: str,
    args: Sequence[str] = (),
    cwd: str | None = None,
    env: environ.Environment | None = None,
) -> NonZeroExit | None:
    """Run a command with passthrough stdin/stdout/stderr."""
    cfg = LaunchConfig(exe=exe, args=tuple(args), cwd=cwd, env=env)
    with _spawned(cfg, [exe, *cfg.args], environ.augment_environment(env)) as proc:
        status = proc.wait()
    return to_process_error(exe, cfg.args, status)


def shell_command(exe: str, args: Sequence[str]) -> str:
    """Quote exe + args into one command line for the platform shell."""
    argv = [exe, *args]
    if os.name == "nt":
        return subprocess.list2cmdline(argv)
    return shlex.join(argv)


def _resolve_executable(exe: str, cwd: str | None, env: dict[str, str]) -> str | None:
    if os.path.dirname(exe):
        if cwd is not None and not os.path.isabs(exe):
            exe = os.path.join(cwd, exe)
        return shutil.which(exe)
    return shutil.which(exe, path=env.get(environ.SEARCH_PATH))


def execute_shell(
    exe: str,
    args: Sequence[str] = (),
    cwd: str | None = None,
    env: environ.Environment | None = None,
) -> NonZeroExit | None:
    """Run exe + args through the shell with passthrough streams.

    Failures report the whole command line as the executable and no
    arguments.
    """
    command = shell_command(exe, args)
    cfg = LaunchConfig(exe=command, cwd=cwd, env=env)
    env_ = environ.augment_environment(env)
    if _resolve_executable(exe, cwd, env_) is None:
        raise SpawnError(command, [], f"{exe}: command not found")

    with _spawned(cfg, command, env_, shell=True) as proc:
        status = proc.wait()
    return to_process_error(command, [], status)
