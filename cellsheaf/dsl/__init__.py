"""Sheaf description language.

Source text is tokenized and parsed into a term model, then checked and
compiled into a cellular sheaf by the semantic analyzer.
"""

from .terms import (
    TypeName,
    UntypedDeclaration,
    TypedDeclaration,
    RestrictionMap,
    VertexStalk,
    Product,
    Equation,
    SheafExpression,
)
from .parser import Token, tokenize, SheafParser, parse_sheaf_expression
from .semantic import InferredEdge, EdgeMaps, SheafParameters, analyze, construct

__all__ = [
    "TypeName",
    "UntypedDeclaration",
    "TypedDeclaration",
    "RestrictionMap",
    "VertexStalk",
    "Product",
    "Equation",
    "SheafExpression",
    "Token",
    "tokenize",
    "SheafParser",
    "parse_sheaf_expression",
    "InferredEdge",
    "EdgeMaps",
    "SheafParameters",
    "analyze",
    "construct",
]
