"""Parser for the cellular sheaf DSL.

Grammar (one statement per line, ``;`` also ends a statement, ``#`` starts
a comment):

    statement        := declaration-list | equation
    declaration-list := declaration (',' declaration)*
    declaration      := NAME | NAME '::' NAME '{' INT '}'
    equation         := product '==' product
    product          := NAME '(' NAME ')' | NAME '*' NAME

Blank and comment-only lines carry no statement and are dropped. Statements
are classified top to bottom: anything containing ``==`` is an equation,
everything else must be a declaration list. Matrices bound from Python are
appended to the context as untyped declarations, in binding order.

Example:
    >>> expr = parse_sheaf_expression('''
    ...     x::Stalk{4}, y::Stalk{4}
    ...     A(x) == B(y)
    ... ''', {"A": [[1, 0, 0, 0]], "B": [[1, 0, 0, 0]]})
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..utils.config import Config
from ..utils.exceptions import InvalidProductError, MalformedStatementError
from .terms import (
    Declaration,
    Equation,
    Product,
    RestrictionMap,
    SheafExpression,
    TypedDeclaration,
    TypeName,
    UntypedDeclaration,
    VertexStalk,
)

# Simple logging setup for this module
import logging
logger = logging.getLogger(__name__)

TOKEN_TYPES = [
    ("COMMENT", re.escape(Config.dsl.COMMENT_PREFIX) + r"[^\n]*"),
    ("NEWLINE", r"\n"),
    ("WHITESPACE", r"[ \t\r\f\v]+"),
    ("DCOLON", r"::"),
    ("EQEQ", r"=="),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACE", r"\{"),
    ("RBRACE", r"\}"),
    ("STAR", r"\*"),
    ("COMMA", r","),
    ("SEMICOLON", re.escape(Config.dsl.STATEMENT_SEPARATOR)),
    ("NUMBER", r"\d+"),
    ("NAME", r"[^\W\d]\w*"),
    ("MISMATCH", r"."),
]

token_pattern = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in TOKEN_TYPES))

STATEMENT_END = ("NEWLINE", "SEMICOLON")

Bindings = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]


@dataclass(frozen=True)
class Token:
    """Token with position tracking for error messages."""
    type: str
    value: str
    position: int = 0
    line: int = 1
    column: int = 1

    def __repr__(self):
        return f"{self.type}:{self.value}@{self.line}:{self.column}"


def tokenize(source: str) -> List[Token]:
    """Split DSL source into tokens, dropping whitespace and comments.

    NEWLINE and SEMICOLON tokens are kept; they delimit statements.
    """
    tokens = []
    line = 1
    line_start = 0

    for match in token_pattern.finditer(source):
        kind = match.lastgroup
        value = match.group()
        position = match.start()

        if kind not in ("WHITESPACE", "COMMENT"):
            tokens.append(Token(kind, value, position, line, position - line_start + 1))

        if kind == "NEWLINE":
            line += 1
            line_start = position + 1

    return tokens


class _Statement:
    """Cursor over the tokens of one statement."""

    def __init__(self, tokens: List[Token], source: str):
        self.tokens = tokens
        self.pos = 0
        self.text = source[tokens[0].position:tokens[-1].position + len(tokens[-1].value)]
        self.line = tokens[0].line

    def peek(self, offset: int = 0) -> Optional[Token]:
        pos = self.pos + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return None

    def match(self, *expected_types: str) -> Optional[Token]:
        token = self.peek()
        if token and token.type in expected_types:
            self.pos += 1
            return token
        return None

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def split(self, separator: str) -> List[List[Token]]:
        parts, current = [], []
        for token in self.tokens:
            if token.type == separator:
                parts.append(current)
                current = []
            else:
                current.append(token)
        parts.append(current)
        return parts


class SheafParser:
    """Turns DSL source into a :class:`SheafExpression`.

    Args:
        source: Program text, or a sequence of statement strings
    """

    def __init__(self, source: Union[str, Sequence[str]]):
        if not isinstance(source, str):
            source = "\n".join(source)
        self.source = source
        self.tokens = tokenize(source)

    def statements(self) -> List[_Statement]:
        """Group tokens into non-empty statements."""
        statements, current = [], []
        for token in self.tokens:
            if token.type in STATEMENT_END:
                if current:
                    statements.append(_Statement(current, self.source))
                current = []
            else:
                current.append(token)
        if current:
            statements.append(_Statement(current, self.source))
        return statements

    def parse(self, bindings: Bindings = None) -> SheafExpression:
        """Parse the program and append ``bindings`` to its context.

        Raises:
            MalformedStatementError: If a statement is neither form
            InvalidProductError: If an equation side is not ``A(x)`` / ``A*x``
        """
        declarations: List[Declaration] = []
        equations: List[Equation] = []

        for statement in self.statements():
            if any(token.type == "EQEQ" for token in statement.tokens):
                equations.append(self.parse_equation(statement))
            else:
                declarations.extend(self.parse_declaration_list(statement))

        for name, value in _iter_bindings(bindings):
            declarations.append(UntypedDeclaration(name, value))

        logger.debug(f"Parsed {len(declarations)} declarations and {len(equations)} equations")
        return SheafExpression(tuple(declarations), tuple(equations))

    def parse_declaration_list(self, statement: _Statement) -> List[Declaration]:
        return [self.parse_declaration(part, statement) for part in statement.split("COMMA")]

    def parse_declaration(self, tokens: List[Token], statement: _Statement) -> Declaration:
        types = [t.type for t in tokens]

        if types == ["NAME"]:
            return UntypedDeclaration(tokens[0].value)

        if types == ["NAME", "DCOLON", "NAME", "LBRACE", "NUMBER", "RBRACE"]:
            dim = int(tokens[4].value)
            if dim < 1:
                raise MalformedStatementError(
                    statement.text, statement.line,
                    f"Vertex stalk {tokens[0].value!r} must have positive dimension, got {dim}.")
            return TypedDeclaration(tokens[0].value, TypeName(tokens[2].value, dim))

        declaration = " ".join(t.value for t in tokens) if tokens else "<empty>"
        raise MalformedStatementError(
            statement.text, statement.line,
            f"Variable declaration: {declaration} format is invalid.")

    def parse_equation(self, statement: _Statement) -> Equation:
        sides = statement.split("EQEQ")
        if len(sides) != 2 or not sides[0] or not sides[1]:
            raise MalformedStatementError(statement.text, statement.line)
        lhs, rhs = (self.parse_product(side, statement) for side in sides)
        return Equation(lhs, rhs, line=statement.line, text=statement.text)

    def parse_product(self, tokens: List[Token], statement: _Statement) -> Product:
        """``A(x)`` or ``A*x``, with placeholder matrix and dimension."""
        cursor = _Statement(tokens, self.source)
        map_name = cursor.match("NAME")
        if map_name is not None:
            if cursor.match("LPAREN"):
                vertex = cursor.match("NAME")
                if vertex is not None and cursor.match("RPAREN") and cursor.at_end():
                    return Product(RestrictionMap(map_name.value), VertexStalk(vertex.value))
            elif cursor.match("STAR"):
                vertex = cursor.match("NAME")
                if vertex is not None and cursor.at_end():
                    return Product(RestrictionMap(map_name.value), VertexStalk(vertex.value))

        raise InvalidProductError(cursor.text, statement.line)


def _iter_bindings(bindings: Bindings) -> Iterable[Tuple[str, Any]]:
    if bindings is None:
        return []
    if isinstance(bindings, Mapping):
        return list(bindings.items())
    return [(name, value) for name, value in bindings]


def parse_sheaf_expression(source: Union[str, Sequence[str]], bindings: Bindings = None) -> SheafExpression:
    """Parse DSL source into a :class:`SheafExpression`.

    Args:
        source: Program text, or a sequence of statement strings
        bindings: Restriction-map matrices by name, as an ordered mapping or a
            sequence of (name, matrix) pairs

    Returns:
        The parsed, undecorated expression
    """
    return SheafParser(source).parse(bindings)
