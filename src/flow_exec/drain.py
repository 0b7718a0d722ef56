"""Cancellable futures for draining child pipes.

A drain runs one blocking read-to-completion on a worker thread while the
coordinating thread does other work. ``wait()`` hands back the result or
re-raises whatever the worker raised.

Threads cannot be killed from outside, so forced termination goes through
an ``on_abort`` hook: the launcher passes ``proc.kill``, which closes the
child's end of every pipe and lets a blocked read return end-of-file. The
worker is then joined. A worker that fails runs the same hook itself, so
a sibling reading another pipe of the same child is released instead of
waiting on a child that is stuck writing to a pipe nobody drains.
"""

import contextlib
import threading
from collections.abc import Callable, Iterator
from typing import Any


class Drain:
    """Handle on one running drain worker."""

    def __init__(
        self,
        action: Callable[[], Any],
        name: str | None = None,
        on_abort: Callable[[], None] | None = None,
    ):
        self._action = action
        self._on_abort = on_abort
        self._result: Any = None
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def name(self) -> str:
        return self._thread.name

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> "Drain":
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self._result = self._action()
        except BaseException as e:
            self._error = e
            self._abort()

    def _abort(self) -> None:
        if self._on_abort is not None:
            self._on_abort()

    def wait(self) -> Any:
        """Block until the action finishes. Re-raises the action's exception."""
        self._thread.join()
        if self._error is not None:
            raise self._error
        return self._result

    def cancel(self) -> None:
        """Terminate the worker. Returns only once the thread has exited."""
        if self._thread.is_alive():
            self._abort()
        self._thread.join()


def drain(
    action: Callable[[], Any],
    name: str | None = None,
    on_abort: Callable[[], None] | None = None,
) -> Drain:
    """Start ``action`` on a worker thread and return its handle immediately."""
    return Drain(action, name=name, on_abort=on_abort).start()


@contextlib.contextmanager
def fork_wait(
    action: Callable[[], Any],
    name: str | None = None,
    on_abort: Callable[[], None] | None = None,
) -> Iterator[Callable[[], Any]]:
    """Run ``action`` in the background for the duration of the block.

    Yields the ``wait`` callable. If the block raises, or is interrupted,
    the worker is cancelled before the exception leaves the block.
    """
    handle = drain(action, name=name, on_abort=on_abort)
    try:
        yield handle.wait
    except BaseException:
        handle.cancel()
        raise
