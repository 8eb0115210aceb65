from dataclasses import dataclass
from enum import Enum
from typing import Optional

INJECTED_MESSAGE = "injected fault"


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_RESET = "connection_reset"
    CONNECTION_ABORTED = "connection_aborted"
    BROKEN_PIPE = "broken_pipe"
    ALREADY_EXISTS = "already_exists"
    WOULD_BLOCK = "would_block"
    TIMED_OUT = "timed_out"
    INTERRUPTED = "interrupted"
    OTHER = "other"


# Order matters: the first matching class wins.
_KIND_BY_TYPE: tuple[tuple[type[BaseException], ErrorKind], ...] = (
    (FileNotFoundError, ErrorKind.NOT_FOUND),
    (PermissionError, ErrorKind.PERMISSION_DENIED),
    (ConnectionRefusedError, ErrorKind.CONNECTION_REFUSED),
    (ConnectionResetError, ErrorKind.CONNECTION_RESET),
    (ConnectionAbortedError, ErrorKind.CONNECTION_ABORTED),
    (BrokenPipeError, ErrorKind.BROKEN_PIPE),
    (FileExistsError, ErrorKind.ALREADY_EXISTS),
    (BlockingIOError, ErrorKind.WOULD_BLOCK),
    (TimeoutError, ErrorKind.TIMED_OUT),
    (InterruptedError, ErrorKind.INTERRUPTED),
)


def kind_of(exc: BaseException) -> ErrorKind:
    if isinstance(exc, AnnotatedError):
        return exc.kind
    for exc_type, kind in _KIND_BY_TYPE:
        if isinstance(exc, exc_type):
            return kind
    return ErrorKind.OTHER


@dataclass(frozen=True)
class Location:
    component: str
    file_name: str
    line: int

    def __str__(self) -> str:
        return f"{self.component} {self.file_name}:{self.line}"


class AnnotatedError(OSError):
    """I/O-style error whose message is prefixed with the guard call site.

    The wrapped exception is kept as ``__cause__`` but its class is not:
    a guarded ``FileNotFoundError`` is not caught by
    ``except FileNotFoundError``. Check ``kind`` (``ErrorKind.NOT_FOUND``)
    or ``errno`` instead.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.OTHER,
        location: Optional[Location] = None,
        errno: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.location = location
        self.errno = errno

    def __str__(self) -> str:
        return self.message

    @property
    def injected(self) -> bool:
        return isinstance(self, FaultError)

    @classmethod
    def wrap(cls, exc: BaseException, location: Location) -> "AnnotatedError":
        error_cls = FaultError if isinstance(exc, FaultError) else AnnotatedError
        return error_cls(
            f"{location} -> {exc}",
            kind=kind_of(exc),
            location=location,
            errno=getattr(exc, "errno", None),
        )


class FaultError(AnnotatedError):
    """Raised in place of a guarded operation when the countdown hits zero."""

    @classmethod
    def at(cls, location: Location) -> "FaultError":
        return cls(f"{location} -> {INJECTED_MESSAGE}", kind=ErrorKind.OTHER, location=location)
