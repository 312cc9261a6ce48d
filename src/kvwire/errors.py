"""Exceptions raised by the session and codec layers.

Transport and framing failures are fatal to the current connection;
``ApplicationError`` is a normal reply that reports a failed command.
"""

from __future__ import annotations


class KVError(Exception):
    """Base class for all kvwire errors."""


class KVConnectionError(KVError, ConnectionError):
    """The connection could not be established, used or torn down."""


class KVTimeoutError(KVConnectionError):
    """A connect or read deadline expired."""


class MalformedReplyError(KVError):
    """The reply stream is desynchronized and cannot be decoded further."""


class ApplicationError(KVError):
    """An error reply returned by the server for one command.

    ``code`` is the leading upper-case word of the message (``ERR``,
    ``WRONGTYPE``, ...) or an empty string when there is none.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        head = message.split(" ", 1)[0]
        self.code = head if head.isupper() else ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApplicationError):
            return NotImplemented
        return self.message == other.message

    def __hash__(self) -> int:
        return hash(self.message)

    def __repr__(self) -> str:
        return f"ApplicationError({self.message!r})"


class SessionStateError(KVError):
    """An operation is not valid in the session's current state."""


class PipelineEmptyError(SessionStateError):
    """A reply was requested but no command is waiting for one."""


class UnexpectedReplyError(KVError, TypeError):
    """A reply did not have the shape the caller asked for."""
