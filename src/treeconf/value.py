"""Value model: the kind tag and payload carried by every setting."""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Union

from .exceptions import TypeMismatchError

if TYPE_CHECKING:
    from .setting import Setting

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class Kind(Enum):
    """Fixed tag of a value."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    GROUP = "group"
    LIST = "list"
    ARRAY = "array"

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_KINDS

    @property
    def is_aggregate(self) -> bool:
        return not self.is_scalar

    @property
    def label(self) -> str:
        """Name used in error messages."""
        return self.value

    @classmethod
    def of(cls, obj: Any) -> "Kind":
        """Infer the scalar kind of a Python object.

        Args:
            obj: Python scalar  # (bool, int, float or str)

        Returns:
            Matching kind

        Raises:
            TypeError: If the object has no scalar kind
        """
        # bool is a subclass of int, check it first
        if isinstance(obj, bool):
            return cls.BOOL
        if isinstance(obj, int):
            return cls.INT
        if isinstance(obj, float):
            return cls.FLOAT
        if isinstance(obj, str):
            return cls.STRING
        raise TypeError(f"No setting kind for value of type {type(obj).__name__}")


_SCALAR_KINDS = frozenset({Kind.INT, Kind.FLOAT, Kind.BOOL, Kind.STRING})

Payload = Union[int, float, bool, str, Dict[str, "Setting"], List["Setting"]]


def check_scalar(kind: Kind, obj: Any) -> Any:
    """Validate a Python scalar against a scalar kind.

    Args:
        kind: Target kind
        obj: Candidate payload

    Returns:
        The payload, unchanged

    Raises:
        TypeMismatchError: If the Python type does not fit the kind
        ValueError: If an INT is outside 64 bits or a FLOAT is not finite
    """
    actual = Kind.of(obj) if isinstance(obj, (bool, int, float, str)) else None
    actual_label = actual.label if actual else type(obj).__name__

    if actual is not kind:
        raise TypeMismatchError(kind.label, actual_label)

    if kind is Kind.INT and not INT64_MIN <= obj <= INT64_MAX:
        raise ValueError(f"Integer {obj} does not fit in 64 bits")
    if kind is Kind.FLOAT and not math.isfinite(obj):
        raise ValueError(f"Float {obj} has no textual representation")
    return obj


class Value:
    """Tagged union of a kind and its payload.

    Both fields are read-only; a scalar payload changes only through
    :meth:`assign`, which keeps the kind fixed.
    """

    __slots__ = ("_kind", "_data")

    def __init__(self, kind: Kind, data: Payload):
        self._kind = kind
        self._data = data

    @property
    def kind(self) -> Kind:
        return self._kind

    @property
    def data(self) -> Payload:
        return self._data

    @classmethod
    def default(cls, kind: Kind) -> "Value":
        """Build a value of the given kind with its zero payload."""
        if kind is Kind.INT:
            return cls(kind, 0)
        if kind is Kind.FLOAT:
            return cls(kind, 0.0)
        if kind is Kind.BOOL:
            return cls(kind, False)
        if kind is Kind.STRING:
            return cls(kind, "")
        if kind is Kind.GROUP:
            return cls(kind, {})
        return cls(kind, [])

    def _expect(self, kind: Kind) -> Any:
        if self.kind is not kind:
            raise TypeMismatchError(kind.label, self.kind.label)
        return self.data

    def as_int(self) -> int:
        return self._expect(Kind.INT)

    def as_float(self) -> float:
        return self._expect(Kind.FLOAT)

    def as_bool(self) -> bool:
        return self._expect(Kind.BOOL)

    def as_str(self) -> str:
        return self._expect(Kind.STRING)

    def assign(self, kind: Kind, obj: Any) -> None:
        """Replace the scalar payload, keeping the stored kind.

        Args:
            kind: Kind the caller intends to write
            obj: New payload

        Raises:
            TypeMismatchError: If ``kind`` differs from the stored kind or ``obj`` does not fit it
        """
        if self.kind is not kind:
            raise TypeMismatchError(kind.label, self.kind.label)
        self._data = check_scalar(kind, obj)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self.kind is Kind.GROUP:
            # member order is part of the document
            return list(self.data.items()) == list(other.data.items())
        return self.data == other.data

    def __repr__(self) -> str:
        if self.kind.is_scalar:
            return f"Value({self.kind.label}, {self.data!r})"
        return f"Value({self.kind.label}, {len(self.data)} children)"
