"""
=============================================================================
TYPED SCALAR FIELD READERS
=============================================================================

Each reader is a ``dict`` mapping a parameter name to a caller-owned
``Slot``. Reading fills every slot from the matching path parameter,
query parameter or header:

    user_id = Slot()
    verbose = Slot()

    reader = RequestReader(
        path=Int64({"id": user_id}),
        query=Bool({"verbose": verbose}),
    )
    reader.read_request(request, ctx)

    user_id.value   # 42
    verbose.value   # True

=============================================================================
BEST-EFFORT PARSING
=============================================================================

These readers never fail. A missing or malformed value leaves the type's
zero value in the slot:

    ┌──────────┬──────────────┬────────────────────────────────────────┐
    │ Reader   │ Zero value   │ Accepted syntax                        │
    ├──────────┼──────────────┼────────────────────────────────────────┤
    │ Bool     │ False        │ 1 t T TRUE true True 0 f F ...         │
    │ Int*     │ 0            │ [+-]digits, within 64 bits             │
    │ Uint*    │ 0            │ [+]digits, within 64 bits              │
    │ Float*   │ 0.0          │ decimal / exponent / inf / nan         │
    │ String   │ ""           │ anything                               │
    └──────────┴──────────────┴────────────────────────────────────────┘

Narrow integer readers parse a 64-bit value and then wrap it to their
width, so Int8 over "300" yields 44. Float32 rounds to single precision.

Validation belongs in ``validate()``, not here.

=============================================================================
"""

import math
import re
import struct
from abc import ABCMeta, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ..http.headers import Headers
from .codec import parse_bool

T = TypeVar("T")

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_UINT_RE = re.compile(r"^\+?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*(?:[eE][+-]?[0-9]+)?|\.[0-9]+(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)$", re.IGNORECASE)


class Slot(Generic[T]):
    """
    A mutable cell the caller owns and a reader writes into.

    Usage:
        page = Slot(1)
        Int({"page": page}).read_query({"page": ["3"]})
        page.value   # 3
    """

    __slots__ = ("value",)

    def __init__(self, value: Optional[T] = None):
        self.value = value

    def set(self, value: T) -> None:
        self.value = value

    def get(self) -> Optional[T]:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Slot):
            return self.value == other.value
        return NotImplemented

    def __repr__(self) -> str:
        return f"Slot({self.value!r})"


# =============================================================================
# PARSERS
# =============================================================================

def _wrap_signed(value: int, bits: int) -> int:
    mask = (1 << bits) - 1
    value &= mask
    return value - (1 << bits) if value >> (bits - 1) else value


def parse_int(text: str, bits: int = 64) -> int:
    """Parse a signed integer, 0 on failure, wrapped to ``bits``."""
    if not _INT_RE.fullmatch(text):
        return 0
    value = int(text)
    if not -(1 << 63) <= value < (1 << 63):
        return 0
    return _wrap_signed(value, bits)


def parse_uint(text: str, bits: int = 64) -> int:
    """Parse an unsigned integer, 0 on failure, wrapped to ``bits``."""
    if not _UINT_RE.fullmatch(text):
        return 0
    value = int(text)
    if value >= (1 << 64):
        return 0
    return value & ((1 << bits) - 1)


def parse_float(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        return 0.0
    return float(text)


def to_float32(value: float) -> float:
    """Round a double to the nearest single-precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def parse_bool_or_false(text: str) -> bool:
    try:
        return parse_bool(text)
    except ValueError:
        return False


# =============================================================================
# READERS
# =============================================================================

class FieldReader(dict, metaclass=ABCMeta):
    """
    Abstract base for the typed readers: name → ``Slot``.

    Not used directly; subclasses implement ``parse(text)``. The same
    mapping can serve as a path, query or header reader.
    """

    @abstractmethod
    def parse(self, text: str) -> Any:
        """Convert one raw value; never raises, falls back to the zero value."""

    def _fill(self, lookup) -> None:
        for key, slot in self.items():
            slot.value = self.parse(lookup(key))

    def read_path(self, params: Dict[str, str]) -> None:
        self._fill(lambda key: params.get(key, ""))

    def read_query(self, query: Dict[str, List[str]]) -> None:
        def first(key: str) -> str:
            values = query.get(key)
            return values[0] if values else ""
        self._fill(first)

    def read_header(self, headers: Headers) -> None:
        self._fill(headers.get)


class Bool(FieldReader):
    def parse(self, text: str) -> bool:
        return parse_bool_or_false(text)


class Int(FieldReader):
    bits = 64

    def parse(self, text: str) -> int:
        return parse_int(text, self.bits)


class Int8(Int):
    bits = 8


class Int16(Int):
    bits = 16


class Int32(Int):
    bits = 32


class Int64(Int):
    bits = 64


class Uint(FieldReader):
    bits = 64

    def parse(self, text: str) -> int:
        return parse_uint(text, self.bits)


class Uint8(Uint):
    bits = 8


class Uint16(Uint):
    bits = 16


class Uint32(Uint):
    bits = 32


class Uint64(Uint):
    bits = 64


class Float32(FieldReader):
    def parse(self, text: str) -> float:
        return to_float32(parse_float(text))


class Float64(FieldReader):
    def parse(self, text: str) -> float:
        return parse_float(text)


class String(FieldReader):
    def parse(self, text: str) -> str:
        return text
