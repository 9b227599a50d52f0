"""Path grammar and resolution.

A path is a sequence of segments separated by ``.``. A segment is either a
setting name (member of a group) or ``[n]`` (0-based element of a list or
array), e.g. ``server.listeners.[0].port``. ``listeners[0]`` is accepted as
shorthand for ``listeners.[0]``. The empty path designates the start node.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Sequence, Union

from .exceptions import SettingNotFoundError, TypeMismatchError
from .value import Kind

if TYPE_CHECKING:
    from .setting import Setting

Segment = Union[str, int]

NAME_PATTERN = r"[A-Za-z*][-A-Za-z0-9_*]*"
NAME_RE = re.compile(rf"^{NAME_PATTERN}$")
_INDEX_RE = re.compile(r"\[(\d+)\]")
_SEGMENT_RE = re.compile(rf"^(?P<name>{NAME_PATTERN})?(?P<indices>(?:\[\d+\])*)$")


def split_path(path: str) -> List[Segment]:
    """Split a path string into name and index segments.

    Args:
        path: Path string  # (e.g. "a.b.[2].c")

    Returns:
        Segments in walk order  # (str for names, int for indices)

    Raises:
        SettingNotFoundError: If the path is malformed
    """
    if path == "":
        return []

    segments: List[Segment] = []
    for part in path.split("."):
        match = _SEGMENT_RE.match(part)
        if part == "" or match is None:
            raise SettingNotFoundError(path, "malformed path")
        if match.group("name"):
            segments.append(match.group("name"))
        segments.extend(int(index) for index in _INDEX_RE.findall(match.group("indices")))
    return segments


def join_path(segments: Sequence[Segment]) -> str:
    """Render segments back into canonical path text."""
    return ".".join(f"[{segment}]" if isinstance(segment, int) else segment for segment in segments)


def resolve(node: "Setting", path: str) -> "Setting":
    """Resolve a path relative to a node.

    Args:
        node: Start node  # (usually the root group)
        path: Path string

    Returns:
        The setting the path designates

    Raises:
        SettingNotFoundError: If any segment does not resolve
    """
    current = node
    for segment in split_path(path):
        if isinstance(segment, int):
            if current.kind not in (Kind.LIST, Kind.ARRAY):
                raise SettingNotFoundError(path, f"index [{segment}] applied to a {current.kind.label}")
            found = current.child_at(segment)
        else:
            if current.kind is not Kind.GROUP:
                raise SettingNotFoundError(path, f"member '{segment}' applied to a {current.kind.label}")
            found = current.child(segment)

        if found is None:
            raise SettingNotFoundError(path)
        current = found
    return current


def resolve_typed(node: "Setting", path: str, kind: Kind) -> "Setting":
    """Resolve a path and require the terminal setting to be of ``kind``.

    Raises:
        SettingNotFoundError: If the path does not resolve
        TypeMismatchError: If the setting found has another kind
    """
    setting = resolve(node, path)
    if setting.kind is not kind:
        raise TypeMismatchError(kind.label, setting.kind.label, path=path)
    return setting
