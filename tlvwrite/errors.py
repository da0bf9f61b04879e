"""Exceptions raised while encoding TLV data."""

from __future__ import annotations


class TlvError(Exception):
    """Base class for every error raised by the TLV writer."""

    description = "TLV error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.description)

    @property
    def message(self) -> str:
        """The message carried by this error."""
        return str(self.args[0])


class IncorrectStateError(TlvError, RuntimeError):
    """The writer is not in a state that allows the requested operation."""

    description = "incorrect state"


class ContainerOpenError(TlvError, RuntimeError):
    """A container writer is still open on this writer."""

    description = "TLV container open"


class BufferTooSmallError(TlvError):
    """The encoded data does not fit in the space the writer may use."""

    description = "buffer too small"


class InvalidTagError(TlvError, ValueError):
    """The tag cannot be used inside the current container."""

    description = "invalid TLV tag"


class WrongTypeError(TlvError, ValueError):
    """The TLV type is not acceptable for the operation."""

    description = "wrong TLV type"


class InvalidArgumentError(TlvError, ValueError):
    """An argument has a value the writer does not accept."""

    description = "invalid argument"


class MessageTooLongError(TlvError, ValueError):
    """The data is longer than a TLV element can describe."""

    description = "message too long"


class NoMemoryError(TlvError):
    """No further buffer space could be obtained."""

    description = "no memory"


class InternalError(TlvError):
    """A backing store did not provide what the writer needs."""

    description = "internal error"