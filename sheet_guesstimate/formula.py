# formula.py
"""
A small tokenizer and syntax tree for spreadsheet formulas.

Only the shapes the translator cares about are structured: function calls,
parenthesised groups, cell references and ``A1:B2`` ranges. Everything else
stays a verbatim token, so ``serialize(parse(text)) == text`` for any input.
"""

import math
import re
from dataclasses import dataclass, replace
from typing import Callable, Iterator, Optional, Union

from openpyxl.utils import get_column_letter, range_boundaries

# Matches, in priority order:
#   "text", 'My Sheet'!A1, Sheet1!$B$2, A1, 12.5e3, SUM(, TRUE, <=, (, ), ",", ":"
TOKEN_RE = re.compile(
    r"""
      (?P<STRING>"(?:[^"]|"")*"?)
    | (?P<REF>
        (?:(?P<sheet>'(?:[^']|'')+'|[A-Za-z0-9_][A-Za-z0-9_.]*)!)?
        (?P<address>\$?[A-Z]{1,3}\$?[0-9]+)
        (?![A-Za-z0-9_.(!])
      )
    | (?P<NUMBER>(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)
    | (?P<FUNC>[A-Za-z_][A-Za-z0-9_.]*(?=\())
    | (?P<NAME>[A-Za-z_\\][A-Za-z0-9_.]*)
    | (?P<OP><>|<=|>=|[-+*/^&=<>%])
    | (?P<LPAREN>\()
    | (?P<RPAREN>\))
    | (?P<COMMA>,)
    | (?P<COLON>:)
    | (?P<SPACE>\s+)
    | (?P<OTHER>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_BARE_SHEET = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.]*")


def format_number(value: float) -> str:
    """Shortest text for a number; integral values lose their ``.0``."""
    if math.isfinite(value) and value == int(value) and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def sheet_text(sheet: str) -> str:
    """Sheet name as it must be written in front of ``!``."""
    if _BARE_SHEET.fullmatch(sheet):
        return sheet
    return "'" + sheet.replace("'", "''") + "'"


# ──────────────────────────────────────────────────────────────
# Nodes
# ──────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Token:
    kind: str
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Ref:
    sheet: Optional[str]    # unquoted sheet name, None for a bare address
    address: str            # "A1", without "$" markers
    text: str               # as written

    @classmethod
    def make(cls, address: str, sheet: Optional[str] = None) -> "Ref":
        text = f"{sheet_text(sheet)}!{address}" if sheet else address
        return cls(sheet=sheet, address=address, text=text)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Range:
    start: Ref
    end: Ref

    @property
    def sheet(self) -> Optional[str]:
        return self.start.sheet or self.end.sheet

    def cells(self) -> list[Ref]:
        """Every reference covered, column by column."""
        return [Ref.make(a, self.sheet) for a in expand_range(self.start.address, self.end.address)]

    def __str__(self) -> str:
        return f"{self.start}:{self.end}"


@dataclass(frozen=True)
class Group:
    body: tuple
    closed: bool = True

    def __str__(self) -> str:
        return "(" + serialize(self.body) + (")" if self.closed else "")


@dataclass(frozen=True)
class Call:
    name: str               # as written
    args: tuple             # one Expression per comma-separated argument
    closed: bool = True

    @property
    def key(self) -> str:
        return self.name.upper()

    def arguments(self) -> list[tuple]:
        """Arguments, with ``F()`` giving no arguments rather than one empty one."""
        if len(self.args) == 1 and not strip(self.args[0]):
            return []
        return list(self.args)

    def __str__(self) -> str:
        return self.name + "(" + ",".join(serialize(a) for a in self.args) + (")" if self.closed else "")


Node = Union[Token, Ref, Range, Group, Call]
Expression = tuple  # tuple[Node, ...]


def serialize(expr: Expression) -> str:
    return "".join(str(node) for node in expr)


def strip(expr: Expression) -> Expression:
    """Drop whitespace tokens."""
    return tuple(n for n in expr if not (isinstance(n, Token) and n.kind == "SPACE"))


def only(expr: Expression) -> Optional[Node]:
    """The single node of an argument, ignoring whitespace, or None."""
    nodes = strip(expr)
    return nodes[0] if len(nodes) == 1 else None


# ──────────────────────────────────────────────────────────────
# Ranges
# ──────────────────────────────────────────────────────────────
def expand_range(start: str, end: str) -> list[str]:
    """Given "A1","B3" returns all cells in that rectangle; empty if reversed."""
    try:
        min_col, min_row, max_col, max_row = range_boundaries(f"{start}:{end}")
    except ValueError:
        return []
    if None in (min_col, min_row, max_col, max_row):
        return []
    cells = []
    for col in range(min_col, max_col + 1):
        letter = get_column_letter(col)
        for row in range(min_row, max_row + 1):
            cells.append(f"{letter}{row}")
    return cells


# ──────────────────────────────────────────────────────────────
# Parsing
# ──────────────────────────────────────────────────────────────
def tokenize(formula: str) -> list[Token]:
    return [Token(m.lastgroup, m.group()) for m in TOKEN_RE.finditer(formula)]


def _ref(token: Token) -> Ref:
    m = TOKEN_RE.fullmatch(token.text)
    sheet = m.group("sheet")
    if sheet and sheet.startswith("'"):
        sheet = sheet[1:-1].replace("''", "'")
    return Ref(sheet=sheet, address=m.group("address").replace("$", ""), text=token.text)


class _Parser:
    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def next(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def sequence(self, depth: int, in_call: bool) -> Expression:
        nodes = []
        while (tok := self.peek()) is not None:
            if tok.kind == "RPAREN" and depth:
                break
            if tok.kind == "COMMA" and in_call:
                break
            nodes.append(self.node(depth))
        return tuple(nodes)

    def node(self, depth: int) -> Node:
        tok = self.next()
        if tok.kind == "FUNC":
            self.next()  # "("
            args = []
            while True:
                args.append(self.sequence(depth + 1, in_call=True))
                end = self.peek()
                if end is None:
                    return Call(tok.text, tuple(args), closed=False)
                self.next()
                if end.kind == "RPAREN":
                    return Call(tok.text, tuple(args))
        if tok.kind == "LPAREN":
            body = self.sequence(depth + 1, in_call=False)
            if self.peek() is None:
                return Group(body, closed=False)
            self.next()
            return Group(body)
        if tok.kind == "REF":
            colon, end = self.peek(), self.peek(1)
            if colon is not None and colon.kind == "COLON" and end is not None and end.kind == "REF":
                self.pos += 2
                return Range(_ref(tok), _ref(end))
            return _ref(tok)
        return tok


def parse(formula: str) -> Expression:
    return _Parser(tokenize(formula)).sequence(depth=0, in_call=False)


# ──────────────────────────────────────────────────────────────
# Traversal
# ──────────────────────────────────────────────────────────────
Rewrite = Callable[[Node], Union[Node, Expression, None]]


def rewrite(expr: Expression, fn: Rewrite) -> Expression:
    """
    Bottom-up rewrite. ``fn`` returns a replacement node, a tuple of nodes to
    splice in, or None to keep the node as is.
    """
    out = []
    for node in expr:
        if isinstance(node, Call):
            node = replace(node, args=tuple(rewrite(a, fn) for a in node.args))
        elif isinstance(node, Group):
            node = replace(node, body=rewrite(node.body, fn))
        result = fn(node)
        if result is None:
            out.append(node)
        elif isinstance(result, tuple):
            out.extend(result)
        else:
            out.append(result)
    return tuple(out)


def rewrite_sequences(expr: Expression, fn: Callable[[Expression], Expression]) -> Expression:
    """Apply ``fn`` to every node sequence: top level, group bodies, call arguments."""
    out = []
    for node in expr:
        if isinstance(node, Call):
            node = replace(node, args=tuple(rewrite_sequences(a, fn) for a in node.args))
        elif isinstance(node, Group):
            node = replace(node, body=rewrite_sequences(node.body, fn))
        out.append(node)
    return fn(tuple(out))


def walk(expr: Expression) -> Iterator[Node]:
    for node in expr:
        yield node
        if isinstance(node, Call):
            for arg in node.args:
                yield from walk(arg)
        elif isinstance(node, Group):
            yield from walk(node.body)
