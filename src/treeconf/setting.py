"""Setting node: one named or positional element of a configuration tree."""

from __future__ import annotations

import weakref
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import DuplicateNameError, NestingDepthError, SettingNotFoundError, TypeMismatchError
from .path import NAME_RE, Segment, join_path, resolve, resolve_typed
from .value import Kind, Value

DEFAULT_MAX_DEPTH = 200


class Setting:
    """Node of a configuration tree.

    A setting owns its children. The parent link is a weak back-reference used
    only to rebuild paths and locate errors; it never keeps the parent alive.
    Settings are created as the root of a new tree or through :meth:`add` on an
    existing node, so a node can never end up under two parents.
    """

    def __init__(
        self,
        kind: Kind,
        name: Optional[str] = None,
        source_line: int = 0,
        source_file: Optional[str] = None,
    ):
        """Initialize a detached setting.

        Only :meth:`root` and :meth:`add` should call this; ``add`` attaches the
        new node to its parent.

        Args:
            kind: Kind of the value, fixed for the node's lifetime
            name: Setting name  # (None for the root and for list/array elements)
            source_line: Line the setting was parsed from  # (0 when synthesized)
            source_file: File the setting was parsed from, if any
        """
        self._name = name
        self._value = Value.default(kind)
        self.source_line = source_line
        self.source_file = source_file
        self._parent: Optional[weakref.ref] = None

    @classmethod
    def root(cls) -> "Setting":
        """Create an empty tree: a nameless, parentless group."""
        return cls(Kind.GROUP)

    # -- structure ------------------------------------------------------

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def value(self) -> Value:
        return self._value

    @property
    def kind(self) -> Kind:
        return self._value.kind

    @property
    def parent(self) -> Optional["Setting"]:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def depth(self) -> int:
        """Number of ancestors  # (0 for the root, 1 for top-level settings)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def is_scalar(self) -> bool:
        return self.kind.is_scalar

    @property
    def is_aggregate(self) -> bool:
        return self.kind.is_aggregate

    @property
    def children(self) -> List["Setting"]:
        """Child settings in order  # (empty for scalars)."""
        if self.kind is Kind.GROUP:
            return list(self.value.data.values())
        if self.kind.is_aggregate:
            return list(self.value.data)
        return []

    def child(self, name: str) -> Optional["Setting"]:
        """Return the group member called ``name``, or None."""
        if self.kind is not Kind.GROUP:
            return None
        return self.value.data.get(name)

    def child_at(self, index: int) -> Optional["Setting"]:
        """Return the list/array element at ``index``, or None when out of bounds."""
        if self.kind not in (Kind.LIST, Kind.ARRAY):
            return None
        elements = self.value.data
        if 0 <= index < len(elements):
            return elements[index]
        return None

    @property
    def index(self) -> int:
        """Position of this setting among its siblings  # (-1 for the root)."""
        parent = self.parent
        if parent is None:
            return -1
        for position, sibling in enumerate(parent.children):
            if sibling is self:
                return position
        return -1

    @property
    def path(self) -> str:
        """Path of this setting from the root  # ("" for the root)."""
        segments: List[Segment] = []
        node: Optional[Setting] = self
        while node is not None and not node.is_root:
            segments.append(node.name if node.name is not None else node.index)
            node = node.parent
        return join_path(list(reversed(segments)))

    def __len__(self) -> int:
        return len(self.value.data) if self.kind.is_aggregate else 0

    def __iter__(self) -> Iterator["Setting"]:
        return iter(self.children)

    def __getitem__(self, key: str | int) -> "Setting":
        """Return the child at an index, or the setting at a relative path."""
        if isinstance(key, int):
            found = self.child_at(key)
            if found is None:
                raise SettingNotFoundError(f"[{key}]")
            return found
        return resolve(self, key)

    def __contains__(self, path: str) -> bool:
        try:
            resolve(self, path)
        except SettingNotFoundError:
            return False
        return True

    # -- child creation -------------------------------------------------

    def add(
        self,
        name: Optional[str],
        kind: Kind,
        value: Any = None,
        line: int = 0,
        file: Optional[str] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> "Setting":
        """Create a child setting.

        Args:
            name: Member name for groups  # (must be None for lists and arrays)
            kind: Kind of the new setting
            value: Initial scalar payload  # (None keeps the kind's default)
            line: Source line to record  # (0 when synthesized)
            file: Source file to record
            max_depth: Deepest nesting level allowed for a new group, list or array

        Returns:
            The new child

        Raises:
            DuplicateNameError: If the group already has a member called ``name``
            TypeMismatchError: If this setting is a scalar, the kind breaks array homogeneity
                or ``value`` does not fit ``kind``
            NestingDepthError: If an aggregate child would sit deeper than ``max_depth``
            ValueError: If ``name`` is missing, present where not allowed, or not a valid name
        """
        line_info = {"line": line or None, "file": file if line else None}
        if self.kind.is_scalar:
            raise TypeMismatchError("group, list or array", self.kind.label, path=self.path, **line_info)

        if self.kind is Kind.GROUP:
            # true/false lex as booleans and cannot name a setting
            if name is None or not NAME_RE.match(name) or name.lower() in ("true", "false"):
                raise ValueError(f"Invalid setting name: {name!r}")
            if name in self.value.data:
                raise DuplicateNameError(self.path, name, **line_info)
        elif name is not None:
            raise ValueError(f"Elements of a {self.kind.label} cannot be named (got {name!r})")

        if self.kind is Kind.ARRAY:
            if kind.is_aggregate:
                raise TypeMismatchError("scalar", kind.label, path=self.path, **line_info)
            if self.value.data and self.value.data[0].kind is not kind:
                raise TypeMismatchError(self.value.data[0].kind.label, kind.label, path=self.path, **line_info)

        if kind.is_aggregate:
            if value is not None:
                raise TypeMismatchError("scalar", kind.label, path=self.path, **line_info)
            if self.depth + 1 > max_depth:
                raise NestingDepthError(self.path, max_depth)

        child = Setting(kind, name=name, source_line=line, source_file=file)
        if value is not None:
            try:
                child.value.assign(kind, value)
            except TypeMismatchError as e:
                raise TypeMismatchError(e.expected, e.actual, path=self.path, **line_info) from e

        child._parent = weakref.ref(self)
        if self.kind is Kind.GROUP:
            self.value.data[name] = child
        else:
            self.value.data.append(child)
        return child

    # -- typed access ---------------------------------------------------

    def get(self) -> Any:
        """Return the scalar payload of this setting."""
        if self.kind.is_aggregate:
            raise TypeMismatchError("scalar", self.kind.label, path=self.path)
        return self.value.data

    def _get(self, kind: Kind) -> Any:
        if self.kind is not kind:
            raise TypeMismatchError(kind.label, self.kind.label, path=self.path)
        return self.value.data

    def get_int(self) -> int:
        return self._get(Kind.INT)

    def get_float(self) -> float:
        return self._get(Kind.FLOAT)

    def get_bool(self) -> bool:
        return self._get(Kind.BOOL)

    def get_string(self) -> str:
        return self._get(Kind.STRING)

    def _set(self, kind: Kind, obj: Any) -> None:
        try:
            self.value.assign(kind, obj)
        except TypeMismatchError as e:
            raise TypeMismatchError(e.expected, e.actual, path=self.path) from e

    def set(self, obj: Any) -> None:
        """Replace the scalar payload; ``obj`` must fit the stored kind."""
        if self.kind.is_aggregate:
            raise TypeMismatchError("scalar", self.kind.label, path=self.path)
        self._set(self.kind, obj)

    def set_int(self, value: int) -> None:
        self._set(Kind.INT, value)

    def set_float(self, value: float) -> None:
        self._set(Kind.FLOAT, value)

    def set_bool(self, value: bool) -> None:
        self._set(Kind.BOOL, value)

    def set_string(self, value: str) -> None:
        self._set(Kind.STRING, value)

    # -- relative lookup ------------------------------------------------

    def lookup(self, path: str) -> "Setting":
        """Resolve ``path`` relative to this setting."""
        return resolve(self, path)

    def lookup_int(self, path: str) -> int:
        return resolve_typed(self, path, Kind.INT).value.data

    def lookup_float(self, path: str) -> float:
        return resolve_typed(self, path, Kind.FLOAT).value.data

    def lookup_bool(self, path: str) -> bool:
        return resolve_typed(self, path, Kind.BOOL).value.data

    def lookup_string(self, path: str) -> str:
        return resolve_typed(self, path, Kind.STRING).value.data

    # -- conversion -----------------------------------------------------

    def to_python(self) -> Any:
        """Convert to plain Python data.

        Returns:
            Nested dicts, lists and scalars  # (groups become dicts, lists and arrays become lists)
        """
        if self.kind is Kind.GROUP:
            return {name: child.to_python() for name, child in self.value.data.items()}
        if self.kind.is_aggregate:
            return [child.to_python() for child in self.value.data]
        return self.value.data

    @classmethod
    def from_python(cls, data: Dict[str, Any], max_depth: int = DEFAULT_MAX_DEPTH) -> "Setting":
        """Build a tree from a mapping of plain Python data.

        Dicts become groups, lists whose items are scalars of one kind become
        arrays (an empty list becomes an empty array) and any other list becomes
        a list.

        Args:
            data: Mapping of setting names to values
            max_depth: Deepest nesting level allowed

        Returns:
            Root group of the new tree
        """
        root = cls.root()
        for name, item in data.items():
            root._add_python(name, item, max_depth)
        return root

    def _add_python(self, name: Optional[str], item: Any, max_depth: int) -> "Setting":
        if isinstance(item, dict):
            child = self.add(name, Kind.GROUP, max_depth=max_depth)
            for key, value in item.items():
                child._add_python(key, value, max_depth)
        elif isinstance(item, (list, tuple)):
            child = self.add(name, _sequence_kind(item), max_depth=max_depth)
            for element in item:
                child._add_python(None, element, max_depth)
        else:
            child = self.add(name, Kind.of(item), item)
        return child

    # -- comparison -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        """Structural equality: names, kinds and values, recursively."""
        if not isinstance(other, Setting):
            return NotImplemented
        return self.name == other.name and self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        label = self.path or "<root>"
        if self.kind.is_scalar:
            return f"Setting({label!r}, {self.kind.label}, {self.value.data!r})"
        return f"Setting({label!r}, {self.kind.label}, {len(self)} children)"


def _sequence_kind(items: Any) -> Kind:
    """Pick ARRAY for homogeneous scalar sequences, LIST otherwise."""
    kinds = set()
    for item in items:
        if isinstance(item, (dict, list, tuple)):
            return Kind.LIST
        kinds.add(Kind.of(item))
    return Kind.ARRAY if len(kinds) <= 1 else Kind.LIST
