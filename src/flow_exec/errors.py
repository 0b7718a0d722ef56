"""Result taxonomy for child processes + exit status mapping."""

from collections.abc import Sequence


class ProcessError(RuntimeError):
    """Base for every failure a launched executable can report."""

    def __init__(self, exe: str, args: Sequence[str], msg: str):
        super().__init__(msg)
        self.exe = exe
        self.arguments = list(args)


class NonZeroExit(ProcessError):
    """The child ran and terminated with a non-zero status."""

    def __init__(self, code: int, exe: str, args: Sequence[str]):
        super().__init__(exe, args, f"{_describe(exe, args)} failed with exit code {code}")
        self.code = code

    def __eq__(self, other):
        if not isinstance(other, NonZeroExit):
            return NotImplemented
        return (self.code, self.exe, self.arguments) == (other.code, other.exe, other.arguments)

    def __hash__(self):
        return hash((self.code, self.exe, tuple(self.arguments)))


class SpawnError(ProcessError):
    """The child could not be started, or a pipe handle was not obtained."""

    def __init__(self, exe: str, args: Sequence[str], reason: str):
        super().__init__(exe, args, f"could not start {_describe(exe, args)}: {reason}")
        self.reason = reason


class StreamError(ProcessError):
    """Reading from or writing to one of the child's pipes failed."""

    def __init__(self, exe: str, args: Sequence[str], cause: BaseException):
        super().__init__(exe, args, f"I/O failure while running {_describe(exe, args)}: {cause}")
        self.cause = cause


def _describe(exe: str, args: Sequence[str]) -> str:
    if not args:
        return repr(exe)
    return f"{exe!r} with arguments {list(args)!r}"


def to_process_error(exe: str, args: Sequence[str], status: int) -> NonZeroExit | None:
    """Map a raw exit status to None (success) or NonZeroExit.

    Negative statuses (terminated by signal, as reported by subprocess)
    are failures too.
    """
    if status == 0:
        return None
    return NonZeroExit(status, exe, args)
