"""treeconf configuration object module."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

import yaml

from .exceptions import ConfigSyntaxError, SettingNotFoundError, TypeMismatchError
from .includes import FileIncludeResolver, IncludeExpander, IncludeResolver
from .parser import Parser
from .path import resolve, resolve_typed
from .serializer import DEFAULT_INDENT_WIDTH, Serializer
from .setting import DEFAULT_MAX_DEPTH, Setting
from .value import Kind

logger: logging.Logger = logging.getLogger("treeconf.config")


class Config:
    """Owns one configuration tree and gives typed, path-based access to it."""

    def __init__(
        self,
        include_dir: Optional[str] = None,
        include_resolver: Optional[IncludeResolver] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        indent_width: int = DEFAULT_INDENT_WIDTH,
    ):
        """Initialize an empty configuration.

        Args:
            include_dir: Directory ``@include`` names are resolved against
            include_resolver: Source of included text  # (defaults to reading files)
            max_depth: Maximum nesting depth accepted when parsing and adding settings
            indent_width: Spaces per nesting level when writing
        """
        self.include_dir = include_dir
        self.include_resolver = include_resolver or FileIncludeResolver()
        self.max_depth = max_depth
        self.indent_width = indent_width
        self._root = Setting.root()

    @property
    def root(self) -> Setting:
        """Root group of the owned tree."""
        return self._root

    # -- reading and writing --------------------------------------------

    def read_string(self, text: str, filename: Optional[str] = None) -> None:
        """Parse ``text`` and replace the owned tree with the result.

        The current tree is kept untouched when parsing fails.

        Args:
            text: Configuration text
            filename: Name reported in diagnostics

        Raises:
            ConfigSyntaxError: If the text is malformed or an include fails
            TypeMismatchError: If an array mixes element kinds
            DuplicateNameError: If a group repeats a setting name
        """
        source = IncludeExpander(self.include_resolver, self.include_dir).expand(text, filename)
        parser = Parser(max_depth=self.max_depth, filename=filename, origins=source.origins)
        self._root = parser.parse(source.text)
        logger.debug("Loaded %d top-level settings from %s", len(self._root), filename or "<string>")

    def read(self, stream: TextIO) -> None:
        """Parse the whole content of a text stream."""
        name = getattr(stream, "name", None)
        self.read_string(stream.read(), filename=name if isinstance(name, str) else None)

    def read_file(self, path: Union[str, Path]) -> None:
        """Parse a UTF-8 encoded configuration file.

        Raises:
            ConfigSyntaxError: If the file is not valid UTF-8 or its text is malformed
            OSError: If the file cannot be opened
        """
        with open(path, "rb") as f:
            data = f.read()
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            line = data.count(b"\n", 0, e.start) + 1
            raise ConfigSyntaxError(line, f"cannot decode file as UTF-8: {e.reason}", str(path)) from e
        self.read_string(text, filename=str(path))

    def write_string(self) -> str:
        """Render the owned tree as configuration text."""
        return Serializer(indent_width=self.indent_width).serialize(self._root)

    def write(self, stream: TextIO) -> None:
        """Write the owned tree into a text stream."""
        Serializer(indent_width=self.indent_width).write(self._root, stream)

    def write_file(self, path: Union[str, Path]) -> None:
        """Write the owned tree into a file, replacing its content."""
        with open(path, "w", encoding="utf-8") as f:
            self.write(f)
        logger.debug("Wrote %d top-level settings to %s", len(self._root), path)

    # -- lookup ---------------------------------------------------------

    def lookup(self, path: str) -> Setting:
        """Return the setting at ``path``.

        Raises:
            SettingNotFoundError: If the path does not resolve
        """
        return resolve(self._root, path)

    def lookup_int(self, path: str) -> int:
        return resolve_typed(self._root, path, Kind.INT).get()

    def lookup_float(self, path: str) -> float:
        return resolve_typed(self._root, path, Kind.FLOAT).get()

    def lookup_bool(self, path: str) -> bool:
        return resolve_typed(self._root, path, Kind.BOOL).get()

    def lookup_string(self, path: str) -> str:
        return resolve_typed(self._root, path, Kind.STRING).get()

    def exists(self, path: str) -> bool:
        return path in self._root

    def get(self, path: str, default: Any = None) -> Any:
        """Return the plain Python value at ``path``, or ``default`` when absent.

        Args:
            path: Path string
            default: Value returned when the path does not resolve

        Returns:
            Scalar, or nested dicts/lists for aggregates
        """
        try:
            return resolve(self._root, path).to_python()
        except SettingNotFoundError:
            return default

    def __getitem__(self, path: str) -> Setting:
        return self.lookup(path)

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    # -- mutation -------------------------------------------------------

    def add_setting(self, parent_path: str, name: str, kind: Union[Kind, str]) -> Setting:
        """Create a setting under an existing group.

        Args:
            parent_path: Path of the parent group  # ("" for the root)
            name: Name of the new setting
            kind: Kind of the new setting  # (Kind member or its value, e.g. "int")

        Returns:
            The new setting, holding the kind's default value

        Raises:
            SettingNotFoundError: If the parent does not exist
            TypeMismatchError: If the parent is not a group
            DuplicateNameError: If the parent already holds ``name``
            NestingDepthError: If an aggregate setting would nest deeper than ``max_depth``
        """
        parent = self.lookup(parent_path)
        if parent.kind is not Kind.GROUP:
            raise TypeMismatchError(Kind.GROUP.label, parent.kind.label, path=parent_path)
        return parent.add(name, Kind(kind), max_depth=self.max_depth)

    # -- conversion -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert the owned tree to nested plain Python data."""
        return self._root.to_python()

    def to_yaml(self, stream: Optional[TextIO] = None) -> Optional[str]:
        """Dump the owned tree as YAML.

        Args:
            stream: Stream to write to  # (None returns the YAML text)

        Returns:
            YAML text when no stream is given
        """
        return yaml.safe_dump(self.to_dict(), stream, default_flow_style=False, indent=2, sort_keys=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **options: Any) -> "Config":
        """Build a configuration from nested plain Python data.

        Args:
            data: Mapping of setting names to values
            **options: Keyword arguments for :class:`Config`

        Returns:
            New configuration owning the built tree
        """
        config = cls(**options)
        config._root = Setting.from_python(data, max_depth=config.max_depth)
        return config

    def __str__(self) -> str:
        return self.write_string()

    def __repr__(self) -> str:
        return f"Config({self.to_dict()})"
