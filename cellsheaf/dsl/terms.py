"""Term model for the cellular sheaf DSL.

A sheaf program is a context of declarations followed by equations:

    x::Stalk{4}, y::Stalk{4}, z::Stalk{4}
    A(x) == B(y)
    B(y) == C(z)

``A``, ``B``, ``C`` are restriction maps whose matrices are bound from
outside the program; ``x``, ``y``, ``z`` are vertex stalks. Each equation
``A(x) == B(y)`` relates two incident vertices through a shared edge stalk.

Node kinds form closed unions (``Declaration``, ``Term``). Every node is a
frozen dataclass; later phases never mutate a node, they build decorated
copies with :func:`dataclasses.replace`.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

import numpy as np

from ..utils.validation import as_matrix


@dataclass(frozen=True)
class TypeName:
    """Type annotation of a typed declaration, e.g. ``Stalk{4}``."""
    name: str
    dim: int

    def __str__(self) -> str:
        return f"{self.name}{{{self.dim}}}"


@dataclass(frozen=True)
class UntypedDeclaration:
    """``A``: a restriction map, optionally carrying its bound matrix."""
    name: str
    value: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.value is not None:
            object.__setattr__(self, "value", as_matrix(self.value, self.name))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class TypedDeclaration:
    """``x::Stalk{4}``: a vertex stalk of the given dimension."""
    name: str
    type: TypeName

    def __str__(self) -> str:
        return f"{self.name}::{self.type}"


Declaration = Union[UntypedDeclaration, TypedDeclaration]


@dataclass(frozen=True)
class RestrictionMap:
    """The ``A`` in a product ``A(x)``; ``matrix`` is filled in by decoration."""
    name: str
    matrix: Optional[np.ndarray] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class VertexStalk:
    """The ``x`` in a product ``A(x)``; ``dim`` is filled in by decoration."""
    name: str
    dim: Optional[int] = field(default=None, compare=False)


@dataclass(frozen=True)
class Product:
    """Application of a restriction map to a vertex stalk."""
    restriction_map: RestrictionMap
    vertex_stalk: VertexStalk

    def __str__(self) -> str:
        return f"{self.restriction_map.name}({self.vertex_stalk.name})"


@dataclass(frozen=True)
class Equation:
    """``lhs == rhs``; one edge of the sheaf.

    ``text`` keeps the statement as written (``A*x == B*y``) for messages.
    """
    lhs: Product
    rhs: Product
    line: Optional[int] = field(default=None, compare=False)
    text: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.lhs} == {self.rhs}"

    @property
    def source_text(self) -> str:
        return self.text if self.text is not None else str(self)


@dataclass(frozen=True)
class SheafExpression:
    """Root node: ordered declarations and ordered equations."""
    context: Tuple[Declaration, ...] = ()
    equations: Tuple[Equation, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "context", tuple(self.context))
        object.__setattr__(self, "equations", tuple(self.equations))

    def __str__(self) -> str:
        lines = [", ".join(str(d) for d in self.context)] if self.context else []
        lines.extend(str(eq) for eq in self.equations)
        return "\n".join(lines)


Term = Union[TypeName, UntypedDeclaration, TypedDeclaration, RestrictionMap,
             VertexStalk, Product, Equation, SheafExpression]


def product(map_name: str, vertex_name: str) -> Product:
    """Undecorated product ``map_name(vertex_name)``."""
    return Product(RestrictionMap(map_name), VertexStalk(vertex_name))


def declaration_name(declaration: Declaration) -> str:
    if isinstance(declaration, (UntypedDeclaration, TypedDeclaration)):
        return declaration.name
    raise TypeError(f"not a declaration: {declaration!r}")


def declaration_kind(declaration: Declaration) -> str:
    """``"restriction map"`` or ``"vertex stalk"``."""
    if isinstance(declaration, UntypedDeclaration):
        return "restriction map"
    if isinstance(declaration, TypedDeclaration):
        return "vertex stalk"
    raise TypeError(f"not a declaration: {declaration!r}")
