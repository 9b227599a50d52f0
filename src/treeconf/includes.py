"""``@include`` pre-processing.

A line of the form ``@include "file"`` is replaced by the text of that file
before parsing. Expansion keeps track of where every resulting line came from
so that parse errors point into the included file rather than into the
expanded text.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .exceptions import IncludeError

logger: logging.Logger = logging.getLogger("treeconf.includes")

MAX_INCLUDE_DEPTH = 10

Origin = Tuple[Optional[str], int]

_INCLUDE_RE = re.compile(r'^\s*@include\s+"(?P<file>[^"]*)"\s*(?:(?:#|//).*)?$')

# strings and line comments can hide comment delimiters
_COMMENT_SCAN_RE = re.compile(r'"(?:[^"\\]|\\.)*"?|#|//|/\*')


class IncludeResolver(Protocol):
    """Source of included text."""

    def __call__(self, directory: Optional[str], filename: str) -> str:
        """Return the text of ``filename``, relative to ``directory`` when given."""
        ...


class FileIncludeResolver:
    """Reads included files from the filesystem."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def __call__(self, directory: Optional[str], filename: str) -> str:
        path = Path(filename)
        if directory and not path.is_absolute():
            path = Path(directory) / path
        return path.read_text(encoding=self.encoding)


@dataclass
class SourceText:
    """Expanded text plus the origin of each of its lines."""

    text: str
    origins: List[Origin] = field(default_factory=list)  # (origins[i] is the (file, line) of line i + 1)


class IncludeExpander:
    """Expands ``@include`` directives recursively."""

    def __init__(self, resolver: IncludeResolver, include_dir: Optional[str] = None):
        """Initialize expander.

        Args:
            resolver: Callable returning the text of an included file
            include_dir: Directory relative include names are looked up in
        """
        self.resolver = resolver
        self.include_dir = include_dir

    def expand(self, text: str, filename: Optional[str] = None) -> SourceText:
        """Expand all include directives in ``text``.

        Args:
            text: Configuration text
            filename: Name of the file ``text`` was read from, if any

        Returns:
            Expanded text and per-line origins

        Raises:
            IncludeError: If an included file cannot be read, includes itself, or nesting is too deep
        """
        lines: List[str] = []
        origins: List[Origin] = []
        self._expand(text, filename, [], lines, origins)
        return SourceText("\n".join(lines), origins)

    def _expand(
        self,
        text: str,
        filename: Optional[str],
        stack: List[str],
        lines: List[str],
        origins: List[Origin],
    ) -> None:
        in_comment = False
        for number, line in enumerate(text.split("\n"), start=1):
            match = None if in_comment else _INCLUDE_RE.match(line)
            if match is None:
                lines.append(line)
                origins.append((filename, number))
                in_comment = _ends_in_comment(line, in_comment)
                continue

            name = match.group("file")
            key = os.path.normpath(os.path.join(self.include_dir or "", name))
            if key in stack:
                raise IncludeError(number, f"recursive include of '{name}'", filename)
            if len(stack) >= MAX_INCLUDE_DEPTH:
                raise IncludeError(number, f"include nesting deeper than {MAX_INCLUDE_DEPTH} levels", filename)

            logger.debug("Including %s from %s:%d", key, filename or "<string>", number)
            try:
                included = self.resolver(self.include_dir, name)
            except OSError as e:
                raise IncludeError(number, f"cannot open include file '{name}': {e.strerror or e}", filename) from e
            except UnicodeDecodeError as e:
                raise IncludeError(number, f"cannot decode include file '{name}': {e.reason}", filename) from e

            self._expand(included, key, stack + [key], lines, origins)


def _ends_in_comment(line: str, in_comment: bool) -> bool:
    """Tell whether a ``/* ... */`` comment is still open at the end of ``line``.

    Args:
        line: One line of configuration text
        in_comment: Whether a block comment was open at the start of the line

    Returns:
        Block comment state after the line
    """
    pos = 0
    while True:
        if in_comment:
            end = line.find("*/", pos)
            if end < 0:
                return True
            in_comment = False
            pos = end + 2
            continue

        match = _COMMENT_SCAN_RE.search(line, pos)
        if match is None:
            return False
        token = match.group()
        if token in ("#", "//"):
            return False
        in_comment = token == "/*"
        pos = match.end()
