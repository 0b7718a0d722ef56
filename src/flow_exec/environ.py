"""Child environment with the msys2 toolchain on the search path."""

import os
from collections.abc import Iterable, Mapping

from flow_exec import config

SEARCH_PATH_NAMES = ("PATH", "Path")
SEARCH_PATH = "Path" if os.name == "nt" else "PATH"

Environment = Mapping[str, str] | Iterable[tuple[str, str]]


def msys2_dir() -> str:
    """FLOW_EXEC_MSYS2 if set, else <base_dir>/msys64. Need not exist."""
    return config.load_settings().msys2_dir


def toolchain_paths(msys2: str) -> list[str]:
    return [
        os.path.join(msys2, "usr", "bin"),
        os.path.join(msys2, "mingw64", "bin"),
    ]


def split_search_path(value: str | None) -> list[str]:
    """Split a search path value.

    An empty entry means the current directory on POSIX and is kept as ".";
    Windows ignores empty entries, so they are dropped there.
    """
    if not value:
        return []
    if os.name == "nt":
        return [p for p in value.split(os.pathsep) if p]
    return [p or "." for p in value.split(os.pathsep)]


def to_dict(env: Environment | None) -> dict[str, str]:
    """Copy an environment. Pairs are applied in order, last write wins."""
    if env is None:
        return dict(os.environ)
    if isinstance(env, Mapping):
        return dict(env)
    return {name: value for name, value in env}


def augment_environment(env: Environment | None = None, msys2: str | None = None) -> dict[str, str]:
    """Return a new environment with the toolchain dirs first on the search path.

    Entries already present under PATH, then Path, follow. Both spellings
    are removed and a single SEARCH_PATH entry holds the merged value.
    Neither ``env`` nor os.environ is modified.
    """
    result = to_dict(env)
    if msys2 is None:
        msys2 = msys2_dir()

    current = []
    for name in SEARCH_PATH_NAMES:
        current.extend(split_search_path(result.pop(name, None)))

    result[SEARCH_PATH] = os.pathsep.join(toolchain_paths(msys2) + current)
    return result


def export_search_path(env: Mapping[str, str]) -> str:
    """Write the search path of ``env`` into this process's environment.

    Other in-process callers (and children spawned without an explicit
    environment) see the toolchain dirs afterwards.
    """
    value = env[SEARCH_PATH]
    os.environ[SEARCH_PATH] = value
    return value
