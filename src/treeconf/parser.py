"""Parser for the libconfig text language.

Grammar::

    document   := assignment*
    assignment := name ('=' | ':') value (';' | ',')?
    value      := scalar | group | list | array
    group      := '{' assignment* '}'
    list       := '(' (value (',' value)*)? ')'
    array      := '[' (scalar (',' scalar)*)? ']'
    scalar     := integer | float | bool | string
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, List, NoReturn, Optional, Sequence, Tuple

from .exceptions import ConfigSyntaxError
from .includes import Origin
from .path import NAME_PATTERN
from .setting import DEFAULT_MAX_DEPTH, Setting
from .value import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN, Kind

_TOKEN_RE = re.compile(
    r"""
    (?P<newline>\n)
  | (?P<space>[ \t\r\f\v]+)
  | (?P<comment>(?:\#|//)[^\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<string>"(?:[^"\\\n]|\\.)*")
  | (?P<float>[-+]?(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?|[-+]?\d+[eE][-+]?\d+)
  | (?P<integer>[-+]?(?:0[xX][0-9A-Fa-f]+|\d+)(?:LL|L)?)
  | (?P<name>"""
    + NAME_PATTERN
    + r""")
  | (?P<punct>[=:;,{}()\[\]])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(x[0-9A-Fa-f]{2}|.)")
_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r", "f": "\f"}

_OPENERS = {"{": Kind.GROUP, "(": Kind.LIST, "[": Kind.ARRAY}
_CLOSERS = {Kind.GROUP: "}", Kind.LIST: ")", Kind.ARRAY: "]"}


@dataclass
class Token:
    """Lexical token."""

    type: str  # name, integer, float, bool, string, punct or eof
    text: str
    line: int

    def describe(self) -> str:
        if self.type == "eof":
            return "end of input"
        return f"'{self.text}'"


class Parser:
    """Recursive-descent parser producing a setting tree."""

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        filename: Optional[str] = None,
        origins: Optional[Sequence[Origin]] = None,
    ):
        """Initialize parser.

        Args:
            max_depth: Maximum nesting of groups, lists and arrays
            filename: Name reported in diagnostics and recorded on settings
            origins: Per-line source locations  # (origins[i] is the (file, line) of text line i + 1)
        """
        self.max_depth = max_depth
        self.filename = filename
        self.origins = origins
        self._tokens: List[Token] = []
        self._pos = 0

    def parse(self, text: str) -> Setting:
        """Parse a whole document.

        Args:
            text: Configuration text

        Returns:
            Root group of the new tree

        Raises:
            ConfigSyntaxError: On the first malformed construct
            TypeMismatchError: If an array mixes element kinds
            DuplicateNameError: If a group repeats a setting name
        """
        self._tokens = self._tokenize(text)
        self._pos = 0

        root = Setting.root()
        while self._peek().type != "eof":
            self._assignment(root, depth=0)
        return root

    # -- lexing ---------------------------------------------------------

    def _tokenize(self, text: str) -> List[Token]:
        tokens: List[Token] = []
        line = 1
        pos = 0
        while pos < len(text):
            match = _TOKEN_RE.match(text, pos)
            if match is None:
                if text.startswith("/*", pos):
                    self._fail(line, "unterminated comment")
                if text[pos] == '"':
                    self._fail(line, "unterminated string")
                self._fail(line, f"unexpected character '{text[pos]}'")

            kind = match.lastgroup
            value = match.group()
            if kind == "name" and value.lower() in ("true", "false"):
                kind = "bool"
            if kind not in ("newline", "space", "comment", "block_comment"):
                tokens.append(Token(kind, value, line))
            line += value.count("\n")
            pos = match.end()

        tokens.append(Token("eof", "", line))
        return tokens

    # -- grammar --------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _next(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != "eof":
            self._pos += 1
        return token

    def _expect(self, text: str) -> Token:
        token = self._next()
        if token.type != "punct" or token.text != text:
            self._fail(token.line, f"expected '{text}', found {token.describe()}")
        return token

    def _at(self, *texts: str) -> bool:
        token = self._peek()
        return token.type == "punct" and token.text in texts

    def _assignment(self, group: Setting, depth: int) -> None:
        token = self._next()
        if token.type != "name":
            self._fail(token.line, f"expected setting name, found {token.describe()}")
        if not self._at("=", ":"):
            self._fail(self._peek().line, f"expected '=' or ':' after '{token.text}', found {self._peek().describe()}")
        self._next()

        self._value(group, token.text, depth)
        if self._at(";", ","):
            self._next()

    def _value(self, parent: Setting, name: Optional[str], depth: int) -> None:
        token = self._peek()
        if token.type == "punct" and token.text in _OPENERS:
            self._aggregate(parent, name, _OPENERS[token.text], depth)
            return
        if token.type not in ("integer", "float", "bool", "string"):
            self._fail(token.line, f"unexpected {token.describe()}")
        kind, payload = self._scalar()
        self._add(parent, name, kind, token.line, payload)

    def _aggregate(self, parent: Setting, name: Optional[str], kind: Kind, depth: int) -> None:
        opener = self._next()
        if depth + 1 > self.max_depth:
            self._fail(opener.line, f"maximum nesting depth of {self.max_depth} exceeded")
        node = self._add(parent, name, kind, opener.line)
        closer = _CLOSERS[kind]

        if kind is Kind.GROUP:
            while not self._at("}"):
                if self._peek().type == "eof":
                    self._fail(self._peek().line, "unexpected end of input, expected '}'")
                self._assignment(node, depth + 1)
        elif not self._at(closer):
            self._element(node, depth + 1)
            while self._at(","):
                self._next()
                self._element(node, depth + 1)
        self._expect(closer)

    def _element(self, node: Setting, depth: int) -> None:
        if node.kind is Kind.ARRAY and self._peek().type not in ("integer", "float", "bool", "string"):
            self._fail(self._peek().line, f"arrays may only hold scalar values, found {self._peek().describe()}")
        self._value(node, None, depth)

    def _add(self, parent: Setting, name: Optional[str], kind: Kind, line: int, value: Any = None) -> Setting:
        """Create a child recorded at the source location of ``line``."""
        file, source_line = self._locate(line)
        return parent.add(name, kind, value, line=source_line, file=file, max_depth=self.max_depth)

    def _scalar(self) -> Tuple[Kind, Any]:
        token = self._next()
        if token.type == "bool":
            return Kind.BOOL, token.text.lower() == "true"
        if token.type == "float":
            value = float(token.text)
            if not math.isfinite(value):
                self._fail(token.line, f"float value out of range: {token.text}")
            return Kind.FLOAT, value
        if token.type == "integer":
            return self._integer(token)

        parts = [self._unescape(token)]
        while self._peek().type == "string":
            # adjacent string literals are concatenated
            parts.append(self._unescape(self._next()))
        return Kind.STRING, "".join(parts)

    def _integer(self, token: Token) -> Tuple[Kind, Any]:
        body = token.text.rstrip("L")
        forced = body != token.text
        sign = -1 if body.startswith("-") else 1
        digits = body.lstrip("+-")
        if digits[:2].lower() == "0x":
            value = sign * int(digits[2:], 16)
        else:
            value = sign * int(digits, 10)

        if forced:
            if not INT64_MIN <= value <= INT64_MAX:
                self._fail(token.line, f"integer value out of range: {token.text}")
            return Kind.INT, value
        if INT32_MIN <= value <= INT32_MAX:
            return Kind.INT, value
        # without the L suffix, literals wider than 32 bits are floats
        try:
            return Kind.FLOAT, float(value)
        except OverflowError:
            self._fail(token.line, f"integer value out of range: {token.text}")

    def _unescape(self, token: Token) -> str:
        def replace(match: re.Match) -> str:
            escape = match.group(1)
            if escape[0] == "x" and len(escape) == 3:
                return chr(int(escape[1:], 16))
            if escape in _ESCAPES:
                return _ESCAPES[escape]
            self._fail(token.line, f"invalid escape sequence '\\{escape}'")

        return _ESCAPE_RE.sub(replace, token.text[1:-1])

    # -- diagnostics ----------------------------------------------------

    def _locate(self, line: int) -> Origin:
        """Map a line of the parsed text to its (file, line) origin."""
        if self.origins and 0 < line <= len(self.origins):
            return self.origins[line - 1]
        return self.filename, line

    def _fail(self, line: int, message: str) -> NoReturn:
        file, source_line = self._locate(line)
        raise ConfigSyntaxError(source_line, message, file)


def parse(text: str, max_depth: int = DEFAULT_MAX_DEPTH, filename: Optional[str] = None) -> Setting:
    """Parse configuration text into a new tree.

    Args:
        text: Configuration text
        max_depth: Maximum nesting depth
        filename: Name reported in diagnostics

    Returns:
        Root group of the tree
    """
    return Parser(max_depth=max_depth, filename=filename).parse(text)
