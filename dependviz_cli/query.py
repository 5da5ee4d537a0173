"""Search query language for narrowing graph nodes by free text.

Grammar, lowest to highest precedence::

    or_expr  := and_expr (OR and_expr)*
    and_expr := not_expr (AND not_expr)*
    not_expr := NOT not_expr | term
    term     := '(' or_expr ')' | [STRING ':'] (REGEX | STRING)

Keywords are case-insensitive. A term without a field searches ``name``.
Regex literals are written ``/pattern/`` with backslash escapes and match
case-insensitively from the start of the field value.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

from . import DependVizError
from .models import Node

logger = logging.getLogger(__name__)

OPERATORS = {"AND", "OR", "NOT"}
_WORD_BREAKS = set("():/")


class QueryParseError(DependVizError):
    """Raised when a query string cannot be parsed into an AST."""


class TokenType(str, Enum):
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    REGEX = "REGEX"
    COLON = "COLON"
    OPERATOR = "OPERATOR"
    STRING = "STRING"


@dataclass(frozen=True)
class Token:
    kind: TokenType
    value: str


@dataclass(frozen=True)
class Term:
    field: str
    value: str
    is_regex: bool = False


@dataclass(frozen=True)
class Not:
    operand: "QueryNode"


@dataclass(frozen=True)
class And:
    left: "QueryNode"
    right: "QueryNode"


@dataclass(frozen=True)
class Or:
    left: "QueryNode"
    right: "QueryNode"


QueryNode = Union[Term, Not, And, Or]


def tokenize(query: str) -> List[Token]:
    """Split a raw query into tokens. Never raises."""
    tokens: List[Token] = []
    i = 0
    length = len(query)

    while i < length:
        ch = query[i]

        if ch.isspace():
            i += 1
            continue

        if ch == "(":
            tokens.append(Token(TokenType.LPAREN, "("))
            i += 1
            continue

        if ch == ")":
            tokens.append(Token(TokenType.RPAREN, ")"))
            i += 1
            continue

        if ch == "/":
            start = i
            i += 1
            pattern: List[str] = []
            while i < length and query[i] != "/":
                if query[i] == "\\" and i + 1 < length:
                    pattern.append(query[i : i + 2])
                    i += 2
                else:
                    pattern.append(query[i])
                    i += 1
            if i < length:
                tokens.append(Token(TokenType.REGEX, "".join(pattern)))
                i += 1
            else:
                # Unterminated literal degrades to plain text
                tokens.append(Token(TokenType.STRING, query[start:]))
            continue

        if ch == ":":
            tokens.append(Token(TokenType.COLON, ":"))
            i += 1
            continue

        start = i
        while i < length and not query[i].isspace() and query[i] not in _WORD_BREAKS:
            i += 1
        word = query[start:i]
        upper = word.upper()
        if upper in OPERATORS:
            tokens.append(Token(TokenType.OPERATOR, upper))
        else:
            tokens.append(Token(TokenType.STRING, word))

    return tokens


class QueryParser:
    """Recursive-descent parser with one token of lookahead."""

    def __init__(self, query: str) -> None:
        self.query = query.strip()
        self.tokens: List[Token] = []
        self.pos = 0

    def parse(self) -> Optional[QueryNode]:
        if not self.query:
            return None
        self.tokens = tokenize(self.query)
        if not self.tokens:
            return None
        self.pos = 0
        # Tokens left over after a complete expression are ignored.
        return self._parse_or()

    def _peek(self, offset: int = 0) -> Optional[Token]:
        idx = self.pos + offset
        return self.tokens[idx] if idx < len(self.tokens) else None

    def _at_operator(self, name: str) -> bool:
        token = self._peek()
        return token is not None and token.kind is TokenType.OPERATOR and token.value == name

    def _parse_or(self) -> QueryNode:
        left = self._parse_and()
        while self._at_operator("OR"):
            self.pos += 1
            left = Or(left, self._parse_and())
        return left

    def _parse_and(self) -> QueryNode:
        left = self._parse_not()
        while self._at_operator("AND"):
            self.pos += 1
            left = And(left, self._parse_not())
        return left

    def _parse_not(self) -> QueryNode:
        if self._at_operator("NOT"):
            self.pos += 1
            return Not(self._parse_not())
        return self._parse_term()

    def _parse_term(self) -> QueryNode:
        token = self._peek()
        if token is None:
            raise QueryParseError("Unexpected end of query")

        if token.kind is TokenType.LPAREN:
            self.pos += 1
            expr = self._parse_or()
            closing = self._peek()
            if closing is None or closing.kind is not TokenType.RPAREN:
                raise QueryParseError("Unclosed parenthesis")
            self.pos += 1
            return expr

        following = self._peek(1)
        if token.kind is TokenType.STRING and following is not None and following.kind is TokenType.COLON:
            field = token.value.lower()
            self.pos += 2
            value = self._peek()
            if value is None or value.kind not in (TokenType.REGEX, TokenType.STRING):
                raise QueryParseError("Expected value after field:")
            self.pos += 1
            return Term(field, value.value, value.kind is TokenType.REGEX)

        if token.kind in (TokenType.REGEX, TokenType.STRING):
            self.pos += 1
            return Term("name", token.value, token.kind is TokenType.REGEX)

        raise QueryParseError(f"Unexpected token: {token.kind.value}")


def parse_query(query: str) -> Optional[QueryNode]:
    """Parse *query*; returns ``None`` for an empty query."""
    return QueryParser(query).parse()


def _field_text(field: str, node: Node) -> str:
    if field == "type":
        return node.node_type or ""
    if field in ("path", "filepath"):
        return node.path or ""
    # "name" and any unrecognised field
    return node.name or ""


def match_term(term: Term, node: Node) -> bool:
    text = _field_text(term.field, node)
    if term.is_regex:
        try:
            pattern = re.compile(term.value, re.IGNORECASE)
        except re.error as exc:
            logger.debug("Invalid regex /%s/: %s", term.value, exc)
            return False
        return pattern.match(text) is not None
    return term.value.lower() in text.lower()


def evaluate(ast: Optional[QueryNode], node: Node) -> bool:
    """Decide whether *node* satisfies the parsed query."""
    if ast is None:
        return True
    if isinstance(ast, Term):
        return match_term(ast, node)
    if isinstance(ast, Not):
        return not evaluate(ast.operand, node)
    if isinstance(ast, And):
        return evaluate(ast.left, node) and evaluate(ast.right, node)
    if isinstance(ast, Or):
        return evaluate(ast.left, node) or evaluate(ast.right, node)
    raise TypeError(f"Unsupported query node: {ast!r}")


def filter_nodes(nodes: Iterable[Node], query: str) -> List[Node]:
    """Keep the nodes matching *query*.

    A query that fails to parse filters nothing, so half-typed input never
    hides the whole graph.
    """
    nodes = list(nodes)
    if not query or not query.strip():
        return nodes
    try:
        ast = parse_query(query)
    except QueryParseError as exc:
        logger.debug("Ignoring unparsable query %r: %s", query, exc)
        return nodes
    if ast is None:
        return nodes
    return [node for node in nodes if evaluate(ast, node)]


def format_ast(ast: Optional[QueryNode]) -> str:
    """Render an AST as a compact prefix expression for display."""
    if ast is None:
        return "<match all>"
    if isinstance(ast, Term):
        value = f"/{ast.value}/" if ast.is_regex else repr(ast.value)
        return f"{ast.field}:{value}"
    if isinstance(ast, Not):
        return f"NOT({format_ast(ast.operand)})"
    if isinstance(ast, And):
        return f"AND({format_ast(ast.left)}, {format_ast(ast.right)})"
    return f"OR({format_ast(ast.left)}, {format_ast(ast.right)})"
