"""Custom exceptions for treeconf."""

from typing import Optional


class TreeConfError(Exception):
    """Base exception for treeconf errors."""

    pass


class ConfigSyntaxError(TreeConfError):
    """Raised when configuration text cannot be parsed.

    Parsing is all or nothing, so no partial tree accompanies this error.
    """

    def __init__(self, line: int, message: str, file: Optional[str] = None):
        """Initialize syntax error.

        Args:
            line: 1-based line of the offending token  # (0 when unknown)
            message: Description of the problem
            file: Name of the file the line belongs to, if any
        """
        self.line = line
        self.message = message
        self.file = file
        location = f"{file}:{line}" if file else f"line {line}"
        super().__init__(f"{message} ({location})")

    @property
    def text(self) -> str:
        """Error text without location, the way libconfig reports it."""
        return self.message


class IncludeError(ConfigSyntaxError):
    """Raised when an ``@include`` directive cannot be expanded."""

    pass


def _location(line: Optional[int], file: Optional[str]) -> str:
    """Render a source location suffix  # ("" when the line is unknown)."""
    if not line:
        return ""
    return f" ({file}:{line})" if file else f" (line {line})"


class TypeMismatchError(TreeConfError):
    """Raised when a setting's kind differs from the requested kind."""

    def __init__(
        self,
        expected: str,
        actual: str,
        path: Optional[str] = None,
        line: Optional[int] = None,
        file: Optional[str] = None,
    ):
        """Initialize type mismatch error.

        Args:
            expected: Label of the requested kind
            actual: Label of the kind actually found
            path: Path of the setting involved, if known
            line: Source line of the offending element, if known
            file: File the line belongs to, if any
        """
        self.expected = expected
        self.actual = actual
        self.path = path
        self.line = line
        self.file = file

        message = f"Type mismatch: expected {expected}, found {actual}"
        if path:
            message += f" at '{path}'"
        super().__init__(message + _location(line, file))


class SettingNotFoundError(TreeConfError):
    """Raised when a path does not resolve to any setting."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        message = f"'{path}' Not Found"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DuplicateNameError(TreeConfError):
    """Raised when a group already holds a setting with the requested name."""

    def __init__(self, path: str, name: str, line: Optional[int] = None, file: Optional[str] = None):
        """Initialize duplicate name error.

        Args:
            path: Path of the group the setting was added to  # ("" for the root)
            name: Colliding setting name
            line: Source line of the duplicate, when raised while parsing
            file: File the line belongs to, if any
        """
        self.path = path
        self.name = name
        self.line = line
        self.file = file
        where = f"group '{path}'" if path else "root group"
        super().__init__(f"Duplicate setting name '{name}' in {where}" + _location(line, file))


class NestingDepthError(TreeConfError):
    """Raised when a group, list or array would nest deeper than allowed."""

    def __init__(self, path: str, max_depth: int):
        self.path = path
        self.max_depth = max_depth
        where = f"'{path}'" if path else "the root group"
        super().__init__(f"Cannot nest below {where}: maximum nesting depth of {max_depth} exceeded")
