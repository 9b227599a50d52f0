"""treeconf - Typed, hierarchical configuration trees.

Parses the libconfig text language into a tree of typed settings, resolves
dotted/indexed paths for typed lookup and mutation, and writes trees back to
canonical text.
"""
# ruff: noqa: F401

from .config import Config
from .exceptions import (
    ConfigSyntaxError,
    DuplicateNameError,
    IncludeError,
    NestingDepthError,
    SettingNotFoundError,
    TreeConfError,
    TypeMismatchError,
)
from .includes import FileIncludeResolver, IncludeResolver
from .parser import Parser, parse
from .serializer import Serializer, serialize
from .setting import Setting
from .value import Kind, Value

__version__ = "0.1.0"
