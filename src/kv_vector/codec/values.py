"""Tagged scalar encoding for stored vector elements.

Value format:
    [tag (1B)] [payload]

    0x01 INT    signed int64, big-endian (8B)
    0x02 FLOAT  IEEE-754 double, big-endian (8B)
    0x03 TEXT   UTF-8 bytes, unterminated (rest of buffer)
"""

from __future__ import annotations

import struct

from ..core.errors import (
    EmptyInputError,
    MalformedPayloadError,
    UnknownTagError,
    UnsupportedTypeError,
)
from ..core.types import Kind, RawValue, Scalar, Value

TAG_INT = 0x01
TAG_FLOAT = 0x02
TAG_TEXT = 0x03

_INT = struct.Struct(">q")
_FLOAT = struct.Struct(">d")


def encode(scalar: Scalar) -> RawValue:
    """Pack a scalar into its tagged byte form.

    A Value is packed by its kind; its payload must fit that kind. An int
    payload is accepted for FLOAT and widened.

    Raises:
        UnsupportedTypeError: For bool, EMPTY, out-of-range ints, a payload
            that does not match its kind, or any other type
    """
    if isinstance(scalar, Value):
        return _encode_value(scalar)

    # bool is an int subclass but not part of the union
    if isinstance(scalar, bool):
        raise UnsupportedTypeError(f"unencodable element ({scalar!r}, type bool)")
    if isinstance(scalar, int):
        return _pack_int(scalar)
    if isinstance(scalar, float):
        return bytes([TAG_FLOAT]) + _FLOAT.pack(scalar)
    if isinstance(scalar, str):
        return bytes([TAG_TEXT]) + scalar.encode("utf-8")

    raise UnsupportedTypeError(
        f"unencodable element ({scalar!r}, type {type(scalar).__name__})"
    )


def _pack_int(value: int) -> RawValue:
    try:
        return bytes([TAG_INT]) + _INT.pack(value)
    except struct.error as e:
        raise UnsupportedTypeError(f"integer {value} does not fit in 64 bits") from e


def _encode_value(value: Value) -> RawValue:
    payload = value.payload
    if value.is_empty:
        raise UnsupportedTypeError("the EMPTY sentinel cannot be stored")
    if isinstance(payload, bool):
        raise UnsupportedTypeError(f"{value.kind.name} value has a bool payload")

    if value.is_int and isinstance(payload, int):
        return _pack_int(payload)
    if value.is_float and isinstance(payload, (int, float)):
        return bytes([TAG_FLOAT]) + _FLOAT.pack(float(payload))
    if value.is_text and isinstance(payload, str):
        return bytes([TAG_TEXT]) + payload.encode("utf-8")

    raise UnsupportedTypeError(
        f"{value.kind.name} value has a {type(payload).__name__} payload"
    )


def decode(data: RawValue) -> Value:
    """Unpack tagged bytes into a Value.

    Raises:
        EmptyInputError: If data is empty
        UnknownTagError: If the tag byte is not recognized
        MalformedPayloadError: If the payload does not match the tag
    """
    if len(data) == 0:
        raise EmptyInputError("no bytes to decode")

    tag = data[0]
    payload = data[1:]

    if tag == TAG_INT:
        if len(payload) != _INT.size:
            raise MalformedPayloadError(f"int payload is {len(payload)} bytes, expected 8")
        return Value(Kind.INT, _INT.unpack(payload)[0])
    if tag == TAG_FLOAT:
        if len(payload) != _FLOAT.size:
            raise MalformedPayloadError(f"float payload is {len(payload)} bytes, expected 8")
        return Value(Kind.FLOAT, _FLOAT.unpack(payload)[0])
    if tag == TAG_TEXT:
        try:
            return Value(Kind.TEXT, payload.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"text payload is not UTF-8: {e}") from e

    raise UnknownTagError(f"unable to decode element with unknown tag {tag:02x}")
