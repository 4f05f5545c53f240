"""
Boolean tag queries.

Grammar, lowest precedence first::

    query   := or
    or      := and ( '|' and )*
    and     := primary ( '&' primary )*
    primary := '(' or ')' | TAG

A TAG is any run of characters other than whitespace and ``&|()``.
``&`` binds tighter than ``|``, so ``a | b & c`` means ``a | (b & c)``.

Usage::

    q = compile_query("#heap & (#tree | #list)")
    q(["#heap", "#tree"])   # True
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .errors import QuerySyntaxError

# Maximum depth of nested parentheses
MAX_NESTING = 64

LPAREN = "("
RPAREN = ")"
AND = "&"
OR = "|"
TAG = "tag"

_TOKEN_RE = re.compile(r'\(|\)|&|\||[^\s&|()]+')


@dataclass(frozen=True)
class Token:
    """A lexical token with its character offset in the query."""
    kind: str
    text: str
    position: int


def tokenize(text: str) -> list[Token]:
    """Split a query into parentheses, operators and tag literals."""
    if not isinstance(text, str):
        raise TypeError(f"Query must be a string, not {type(text).__name__}")
    tokens = []
    for m in _TOKEN_RE.finditer(text):
        value = m.group()
        kind = value if value in (LPAREN, RPAREN, AND, OR) else TAG
        tokens.append(Token(kind, value, m.start()))
    return tokens


# -----------------------------------------------------------------------------
# Expression tree
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Literal:
    """True when the tag set contains ``name`` exactly."""
    name: str

    def __str__(self) -> str:
        return self.name


class _Operator:
    """Shared behaviour of binary nodes.

    Parsing builds long ``a & b & c ...`` chains as left-leaning trees, so
    comparison, hashing and rendering walk the chain in a loop instead of
    recursing once per operand.
    """
    symbol = ""

    def operands(self) -> list["Expression"]:
        """Operands of the chain of this operator rooted here, left to right."""
        op = type(self)
        operands = []
        node = self
        while isinstance(node, op):
            operands.append(node.right)
            node = node.left
        operands.append(node)
        operands.reverse()
        return operands

    def __eq__(self, other):
        if not isinstance(other, (Literal, _Operator)):
            return NotImplemented
        if type(other) is not type(self):
            return False
        mine, theirs = self.operands(), other.operands()
        return len(mine) == len(theirs) and all(a == b for a, b in zip(mine, theirs))

    def __hash__(self):
        return hash((type(self).__name__, tuple(hash(o) for o in self.operands())))

    def __str__(self) -> str:
        first, *rest = self.operands()
        text = str(first)
        for operand in rest:
            text = f"({text} {self.symbol} {operand})"
        return text

    def __repr__(self) -> str:
        first, *rest = self.operands()
        text = repr(first)
        name = type(self).__name__
        for operand in rest:
            text = f"{name}({text}, {operand!r})"
        return text


@dataclass(frozen=True, eq=False, repr=False)
class And(_Operator):
    left: "Expression"
    right: "Expression"
    symbol = AND


@dataclass(frozen=True, eq=False, repr=False)
class Or(_Operator):
    left: "Expression"
    right: "Expression"
    symbol = OR


Expression = Union[Literal, And, Or]


def evaluate(expr: Expression, tags: Union[set, frozenset]) -> bool:
    """Evaluate an expression against a set of tag names.

    Chains of the same operator are walked iteratively, so long
    ``a & b & c & ...`` queries don't grow the call stack.
    """
    if isinstance(expr, Literal):
        return expr.name in tags
    if isinstance(expr, And):
        return all(evaluate(o, tags) for o in expr.operands())
    return any(evaluate(o, tags) for o in expr.operands())


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------

class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str):
        self._text = text
        self._tokens = tokenize(text)
        self._index = 0
        self._depth = 0

    def _peek(self) -> Optional[Token]:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _at(self, kind: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == kind

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _unexpected(self, token: Optional[Token]) -> QuerySyntaxError:
        if token is None:
            position = len(self._text)
            return QuerySyntaxError(
                f"Unexpected end of input at position {position}", position
            )
        return QuerySyntaxError(
            f"Unexpected token {token.text!r} at position {token.position}",
            token.position,
            token.text,
        )

    def parse(self) -> Expression:
        expr = self._parse_or()
        token = self._peek()
        if token is not None:
            raise self._unexpected(token)
        return expr

    def _parse_or(self) -> Expression:
        expr = self._parse_and()
        while self._at(OR):
            self._advance()
            expr = Or(expr, self._parse_and())
        return expr

    def _parse_and(self) -> Expression:
        expr = self._parse_primary()
        while self._at(AND):
            self._advance()
            expr = And(expr, self._parse_primary())
        return expr

    def _parse_primary(self) -> Expression:
        token = self._peek()
        if token is None:
            raise self._unexpected(None)
        if token.kind == TAG:
            self._advance()
            return Literal(token.text)
        if token.kind != LPAREN:
            raise self._unexpected(token)

        self._advance()
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise QuerySyntaxError(
                f"Expression nested too deeply (max {MAX_NESTING}) at position {token.position}",
                token.position,
                token.text,
            )
        expr = self._parse_or()
        closing = self._peek()
        if closing is None or closing.kind != RPAREN:
            position = closing.position if closing else len(self._text)
            raise QuerySyntaxError(
                f"Expected ')' at position {position}",
                position,
                closing.text if closing else None,
            )
        self._advance()
        self._depth -= 1
        return expr


def parse(text: str) -> Expression:
    """Parse a query string into an expression tree.

    Raises:
        QuerySyntaxError: on empty input, unbalanced parentheses,
            misplaced operators or trailing tokens
    """
    return _Parser(text).parse()


@dataclass(frozen=True)
class TagQuery:
    """A compiled query, callable on a collection of tag names."""
    expression: Expression

    def __call__(self, tags: Iterable[str]) -> bool:
        return evaluate(self.expression, frozenset(tags))

    def __str__(self) -> str:
        return str(self.expression)


def compile_query(text: str) -> TagQuery:
    """Compile a query string into a predicate over tag collections."""
    return TagQuery(parse(text))
