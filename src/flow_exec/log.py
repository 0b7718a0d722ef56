"""Timestamped output + GitHub Actions workflow commands.

Progress goes to stdout. Diagnostics (debug, error) go to stderr, next to
the child output mirrored there by logged runs.
"""

import os
import sys
from datetime import datetime


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def _workflow_command(command: str, msg: str = "") -> None:
    if _is_github_actions():
        print(f"::{command}::{msg}", flush=True)


def _rule(title: str) -> str:
    return f"── {title} " + "─" * max(0, 45 - len(title))


def info(msg: str) -> None:
    print(f"[{_timestamp()}] {msg}", flush=True)


def header(title: str) -> None:
    _workflow_command("group", title)
    info(_rule(title))


def footer(title: str) -> None:
    info(_rule(title))
    _workflow_command("endgroup")


def step(msg: str) -> None:
    info(f"  {msg}")


def success(msg: str) -> None:
    info(f"  ✓ {msg}")


def failure(msg: str) -> None:
    _workflow_command("error", msg)
    info(f"  ✗ {msg}")


def debug(msg: str) -> None:
    _workflow_command("debug", msg)
    print(f"[{_timestamp()}] DEBUG: {msg}", file=sys.stderr, flush=True)


def error(msg: str) -> None:
    _workflow_command("error", msg)
    print(f"[{_timestamp()}] ERROR: {msg}", file=sys.stderr, flush=True)
