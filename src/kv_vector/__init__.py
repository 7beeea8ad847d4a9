"""kv-vector - sparse vectors on an ordered transactional key-value store."""

from .codec.keys import Subspace
from .components.directory import DirectoryLayer
from .components.memstore import MemoryStore, MemoryTransaction
from .core.config import StoreConfig
from .core.errors import (
    VectorError,
    InvalidIndexError,
    OutOfRangeError,
    UnsupportedTypeError,
    CodecError,
    EmptyInputError,
    UnknownTagError,
    MalformedPayloadError,
    DecodeError,
    StoreError,
    ConflictError,
    TransactionTooOldError,
    TransactionClosedError,
    DirectoryNotFoundError,
)
from .core.iterator import VectorIterator
from .core.types import IndexValue, Key, Kind, Scalar, Value
from .core.vector import Vector

__all__ = [
    "Subspace",
    "DirectoryLayer",
    "MemoryStore",
    "MemoryTransaction",
    "StoreConfig",
    "VectorError",
    "InvalidIndexError",
    "OutOfRangeError",
    "UnsupportedTypeError",
    "CodecError",
    "EmptyInputError",
    "UnknownTagError",
    "MalformedPayloadError",
    "DecodeError",
    "StoreError",
    "ConflictError",
    "TransactionTooOldError",
    "TransactionClosedError",
    "DirectoryNotFoundError",
    "VectorIterator",
    "IndexValue",
    "Key",
    "Kind",
    "Scalar",
    "Value",
    "Vector",
]
