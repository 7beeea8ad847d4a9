"""Vector layer core."""

from .iterator import VectorIterator
from .vector import Vector

__all__ = ["Vector", "VectorIterator"]
