"""Small filesystem helpers for installed toolchain binaries."""

import os
import shutil


def is_broken_symlink(path: str) -> bool:
    """True if ``path`` is a symlink whose target does not exist.

    Relative targets are resolved against the link's own directory.
    """
    if not os.path.islink(path):
        return False
    target = os.readlink(path)
    # os.path.join drops the directory when target is absolute
    return not os.path.exists(os.path.join(os.path.dirname(path), target))


def copy_file(src: str, dst: str, fail_if_exists: bool) -> None:
    """Copy ``src`` to ``dst``, contents and permission bits."""
    if fail_if_exists and os.path.lexists(dst):
        raise FileExistsError(f"{dst} already exists")
    shutil.copy2(src, dst)


def delete_file(path: str) -> None:
    os.remove(path)


def chmod_755(path: str) -> None:
    os.chmod(path, 0o755)


def install(src: str, dst: str, fail_if_exists: bool) -> None:
    """Copy a binary into place and make it executable."""
    copy_file(src, dst, fail_if_exists)
    chmod_755(dst)
