"""Canonical text rendering of a setting tree."""

from __future__ import annotations

from typing import List, TextIO

from .setting import Setting
from .value import INT32_MAX, INT32_MIN, Kind

DEFAULT_INDENT_WIDTH = 2

_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\t": "\\t", "\r": "\\r", "\f": "\\f"}


def quote(text: str) -> str:
    """Render a string literal, escaping quotes, backslashes and control characters."""
    chars: List[str] = []
    for char in text:
        if char in _ESCAPES:
            chars.append(_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            chars.append(f"\\x{ord(char):02x}")
        else:
            chars.append(char)
    return '"' + "".join(chars) + '"'


def format_scalar(setting: Setting) -> str:
    """Render a scalar so that re-parsing yields the same kind and value."""
    value = setting.get()
    if setting.kind is Kind.BOOL:
        return "true" if value else "false"
    if setting.kind is Kind.INT:
        # unsuffixed literals wider than 32 bits would parse as floats
        return f"{value}L" if not INT32_MIN <= value <= INT32_MAX else str(value)
    if setting.kind is Kind.FLOAT:
        text = repr(value)
        if not any(marker in text for marker in ".eE"):
            text += ".0"
        return text
    return quote(value)


class Serializer:
    """Renders trees one ``name = value;`` per line."""

    def __init__(self, indent_width: int = DEFAULT_INDENT_WIDTH):
        """Initialize serializer.

        Args:
            indent_width: Spaces per nesting level
        """
        self.indent_width = indent_width

    def serialize(self, root: Setting) -> str:
        """Render a tree.

        Args:
            root: Root group  # (any group renders as a document of its members)

        Returns:
            Configuration text
        """
        if root.kind is not Kind.GROUP:
            raise ValueError(f"Only groups can be serialized as a document, got a {root.kind.label}")
        return self._members(root, 0)

    def write(self, root: Setting, stream: TextIO) -> None:
        """Render a tree into a text stream."""
        stream.write(self.serialize(root))

    def _pad(self, level: int) -> str:
        return " " * (self.indent_width * level)

    def _members(self, group: Setting, level: int) -> str:
        pad = self._pad(level)
        return "".join(f"{pad}{child.name} = {self._value(child, level)};\n" for child in group)

    def _value(self, node: Setting, level: int) -> str:
        if node.is_scalar:
            return format_scalar(node)

        if node.kind is Kind.GROUP:
            if len(node) == 0:
                return "{}"
            return "{\n" + self._members(node, level + 1) + self._pad(level) + "}"

        opener, closer = ("[", "]") if node.kind is Kind.ARRAY else ("(", ")")
        if all(child.is_scalar for child in node):
            return opener + ", ".join(format_scalar(child) for child in node) + closer

        # lists holding aggregates get one element per line
        inner = self._pad(level + 1)
        items = [inner + self._value(child, level + 1) for child in node]
        return opener + "\n" + ",\n".join(items) + "\n" + self._pad(level) + closer


def serialize(root: Setting, indent_width: int = DEFAULT_INDENT_WIDTH) -> str:
    """Render a tree as configuration text."""
    return Serializer(indent_width=indent_width).serialize(root)
