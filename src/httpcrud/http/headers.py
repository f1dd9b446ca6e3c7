"""
=============================================================================
HTTP HEADER COLLECTION
=============================================================================

A case-insensitive, multi-valued header map shared by requests and
responses.

=============================================================================
WHY NOT A PLAIN DICT?
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HEADER STORAGE                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. CASE-INSENSITIVE NAMES (RFC 7230)                              │
    │      "content-type" == "Content-Type" == "CONTENT-TYPE"             │
    │                                                                      │
    │   2. REPEATED FIELDS                                                │
    │      Set-Cookie: a=1                                                │
    │      Set-Cookie: b=2        ← cannot be comma-joined!               │
    │                                                                      │
    │   3. CANONICAL OUTPUT                                               │
    │      Names are written back as "Content-Type", "X-Real-Ip", ...    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Names are canonicalized on the way in: the first letter and every letter
following a hyphen are upper-cased, the rest lower-cased.

=============================================================================
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple


def canonical_name(name: str) -> str:
    """
    Return the canonical form of a header name.

    Example:
        canonical_name("x-forwarded-for")  # "X-Forwarded-For"
    """
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.strip().split("-"))


class Headers:
    """
    Case-insensitive multi-valued header collection.

    Usage:
        headers = Headers()
        headers.set("content-type", "text/plain")
        headers.add("Set-Cookie", "a=1")
        headers.add("Set-Cookie", "b=2")

        headers.get("Content-Type")       # "text/plain"
        headers.get_all("set-cookie")     # ["a=1", "b=2"]
    """

    def __init__(self, pairs: Optional[Iterable[Tuple[str, str]]] = None):
        # canonical name → list of values, in insertion order
        self._values: Dict[str, List[str]] = {}
        if pairs:
            for name, value in pairs:
                self.add(name, value)

    @classmethod
    def from_dict(cls, mapping: Dict[str, object]) -> "Headers":
        """Build headers from a dict of name → value (or list of values)."""
        headers = cls()
        for name, value in mapping.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    headers.add(name, str(item))
            else:
                headers.add(name, str(value))
        return headers

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get(self, name: str, default: str = "") -> str:
        """Return the first value for ``name`` or ``default``."""
        values = self._values.get(canonical_name(name))
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        """Return every value for ``name`` (empty list if absent)."""
        return list(self._values.get(canonical_name(name), []))

    def set(self, name: str, value: str) -> None:
        """Replace any existing values for ``name`` with ``value``."""
        self._values[canonical_name(name)] = [value]

    def add(self, name: str, value: str) -> None:
        """Append ``value`` to the values of ``name``."""
        self._values.setdefault(canonical_name(name), []).append(value)

    def delete(self, name: str) -> None:
        self._values.pop(canonical_name(name), None)

    def items(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(name, value)`` once per value, in insertion order."""
        for name, values in self._values.items():
            for value in values:
                yield name, value

    def to_dict(self) -> Dict[str, List[str]]:
        """Snapshot as ``{canonical name: [values]}``."""
        return {name: list(values) for name, values in self._values.items()}

    def copy(self) -> "Headers":
        return Headers(self.items())

    # =========================================================================
    # PROTOCOL METHODS
    # =========================================================================

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_name(name) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._values == other._values
        return NotImplemented

    def __repr__(self) -> str:
        return f"Headers({self.to_dict()!r})"
