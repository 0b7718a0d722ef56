"""Click entry point — all commands."""

import os
import sys

import click

from flow_exec import __version__, environ, log, process
from flow_exec.errors import NonZeroExit, ProcessError

_run_settings = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def _parse_env(pairs: tuple[str, ...]) -> dict[str, str] | None:
    """KEY=VALUE options layered over our own environment, or None if none given."""
    if not pairs:
        return None
    env = dict(os.environ)
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--env")
        env[key] = value
    return env


def _exit_code(err: NonZeroExit | None) -> int:
    if err is None:
        return 0
    # signal deaths are reported as negative statuses
    return err.code if err.code > 0 else 1


@click.group()
@click.version_option(version=__version__, prog_name="flow-exec")
def main():
    """Run toolchain commands with captured, logged or passthrough output."""


@main.command(context_settings=_run_settings)
@click.option("--cwd", default=None, help="Working directory for the command")
@click.option("--env", "env_pairs", multiple=True, help="Set KEY=VALUE in the command's environment")
@click.option("--input", "input_file", type=click.File("rb"), default=None, help="Feed this file to stdin")
@click.argument("exe")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def run(cwd, env_pairs, input_file, exe, args):
    """Run a command, capturing stdout/stderr, then print them."""
    data = input_file.read() if input_file is not None else b""
    try:
        result = process.execute_out(exe, list(args), cwd=cwd, env=_parse_env(env_pairs), input=data)
    except ProcessError as e:
        log.error(str(e))
        sys.exit(1)

    click.get_binary_stream("stdout").write(result.stdout)
    click.get_binary_stream("stderr").write(result.stderr)
    sys.exit(_exit_code(result.check(exe, list(args))))


@main.command(context_settings=_run_settings)
@click.option("--cwd", default=None, help="Working directory for the command")
@click.option("--env", "env_pairs", multiple=True, help="Set KEY=VALUE in the command's environment")
@click.option("--logs-dir", default=None, help="Directory for log files (default: settings logs_dir)")
@click.argument("name")
@click.argument("exe")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def logged(cwd, env_pairs, logs_dir, name, exe, args):
    """Run a command, teeing its output to NAME.stdout.log / NAME.stderr.log."""
    log.header(name)
    try:
        err = process.exec_logged(
            exe, list(args), name, cwd=cwd, env=_parse_env(env_pairs), logs_dir=logs_dir
        )
    except ProcessError as e:
        log.error(str(e))
        log.footer("FAILED")
        sys.exit(1)

    if err is None:
        log.success(f"{exe} finished")
    else:
        log.failure(str(err))
    log.footer("complete" if err is None else "FAILED")
    sys.exit(_exit_code(err))


@main.command(name="exec", context_settings=_run_settings)
@click.option("--shell", is_flag=True, help="Run through the shell as a single command line")
@click.option("--cwd", default=None, help="Working directory for the command")
@click.option("--env", "env_pairs", multiple=True, help="Set KEY=VALUE in the command's environment")
@click.argument("exe")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def exec_cmd(shell, cwd, env_pairs, exe, args):
    """Run a command with passthrough stdin/stdout/stderr."""
    runner = process.execute_shell if shell else process.execute
    try:
        err = runner(exe, list(args), cwd=cwd, env=_parse_env(env_pairs))
    except ProcessError as e:
        log.error(str(e))
        sys.exit(1)

    if err is not None:
        log.failure(str(err))
    sys.exit(_exit_code(err))


@main.command()
def env():
    """Show the search path children are started with."""
    augmented = environ.augment_environment()
    log.info(f"{environ.SEARCH_PATH}:")
    for entry in environ.split_search_path(augmented[environ.SEARCH_PATH]):
        log.step(entry)


if __name__ == "__main__":
    main()
