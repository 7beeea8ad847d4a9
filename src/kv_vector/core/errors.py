"""Exception hierarchy for the vector layer.

Defines all custom exceptions used throughout the implementation.
"""

from __future__ import annotations


class VectorError(Exception):
    """Base exception for all vector layer errors."""
    pass


class InvalidIndexError(VectorError, IndexError):
    """Raised when an index is negative or not representable in 64 bits."""
    pass


class OutOfRangeError(VectorError, IndexError):
    """Raised when reading an index at or past the vector's size."""
    pass


class UnsupportedTypeError(VectorError, TypeError):
    """Raised when a scalar has no encoding."""
    pass


class CodecError(VectorError, ValueError):
    """Raised when stored bytes cannot be decoded."""
    pass


class EmptyInputError(CodecError):
    """Raised when decoding a zero-length value."""
    pass


class UnknownTagError(CodecError):
    """Raised when a value carries an unrecognized type tag."""
    pass


class MalformedPayloadError(CodecError):
    """Raised when a value payload does not match its tag."""
    pass


class DecodeError(CodecError):
    """Raised when a key is outside its namespace or has a bad index suffix."""
    pass


class StoreError(VectorError):
    """Base exception for backing store failures."""
    pass


class ConflictError(StoreError):
    """Raised on commit when a concurrent commit invalidated our reads."""
    pass


class TransactionTooOldError(StoreError):
    """Raised when a read version predates the retained history."""
    pass


class TransactionClosedError(StoreError):
    """Raised when using a transaction after commit or cancel."""
    pass


class DirectoryNotFoundError(VectorError, KeyError):
    """Raised when opening a directory path that was never created."""
    pass
