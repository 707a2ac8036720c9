"""Semantic analysis: from a parsed SheafExpression to a CellularSheaf.

Phases, each a pure pass over the term model:

1. Symbol table: reject unsupported declaration types and redeclarations.
2. Resolution: every name used in an equation must be declared, maps in
   map position and stalks in vertex position.
3. Decoration: each product gets a copy carrying its resolved matrix and
   vertex dimension.
4. Edge inference: both maps must accept their vertex stalk and land in the
   same edge stalk, whose dimension is the common row count.
5. Vertex collection: typed declarations, in context order.

All checks are eager and per equation; the first failure aborts the
analysis, so a partially built sheaf never escapes.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..sheaf.data_structures import AbstractCellularSheaf, CellularSheaf
from ..sheaf.potential import Potential, PotentialSheaf
from ..utils.config import Config
from ..utils.exceptions import (
    DimensionMismatchError,
    DuplicateDeclarationError,
    InconsistentEdgeError,
    ReferenceKindError,
    UnboundValueError,
    UndefinedReferenceError,
    UnsupportedTypeError,
)
from .terms import (
    Declaration,
    Equation,
    Product,
    SheafExpression,
    TypedDeclaration,
    UntypedDeclaration,
    declaration_kind,
    declaration_name,
)

# Simple logging setup for this module
import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InferredEdge:
    """A decorated equation together with its inferred edge stalk.

    Attributes:
        equation: Equation whose products carry matrices and dimensions
        edge_index: 0-based position of the edge in the coboundary
        edge_number: 1-based ordinal of the equation, used in messages
        edge_dim: Dimension of the inferred edge stalk
    """
    equation: Equation
    edge_index: int
    edge_number: int
    edge_dim: int


@dataclass(frozen=True)
class EdgeMaps:
    """Arguments of one ``set_edge_maps`` call."""
    v1: int
    v2: int
    e: int
    map1: np.ndarray = field(repr=False)
    map2: np.ndarray = field(repr=False)


@dataclass
class SheafParameters:
    """Construction parameters emitted by the analyzer."""
    vertex_dims: List[int] = field(default_factory=list)
    vertex_names: List[str] = field(default_factory=list)
    vertex_index: Dict[str, int] = field(default_factory=dict)
    edge_dims: List[int] = field(default_factory=list)
    edges: List[InferredEdge] = field(default_factory=list)
    edge_maps: List[EdgeMaps] = field(default_factory=list)


def build_symbol_table(context: Sequence[Declaration]) -> Dict[str, Declaration]:
    """Map each declared name to its declaration.

    Raises:
        UnsupportedTypeError: For a typed declaration whose type is not supported
        DuplicateDeclarationError: For a name declared twice
    """
    table: Dict[str, Declaration] = {}
    for declaration in context:
        if isinstance(declaration, TypedDeclaration) and declaration.type.name not in Config.dsl.SUPPORTED_TYPES:
            raise UnsupportedTypeError(declaration.name, declaration.type.name, Config.dsl.SUPPORTED_TYPES)

        name = declaration_name(declaration)
        if name in table:
            raise DuplicateDeclarationError(name)
        table[name] = declaration

    logger.debug(f"Symbol table: {len(table)} names")
    return table


def _resolve(name: str, role: str, table: Dict[str, Declaration], equation: Equation) -> Declaration:
    if name not in table:
        raise UndefinedReferenceError(name, equation.source_text, role=role)
    return table[name]


def _check_kind(name: str, declaration: Declaration, expected: type, equation: Equation) -> None:
    if not isinstance(declaration, expected):
        wanted = "restriction map" if expected is UntypedDeclaration else "vertex stalk"
        raise ReferenceKindError(name, equation.source_text, wanted, declaration_kind(declaration))


def decorate_product(product: Product, table: Dict[str, Declaration], equation: Equation) -> Product:
    """Copy of ``product`` carrying its matrix and vertex dimension."""
    map_name = product.restriction_map.name
    vertex_name = product.vertex_stalk.name

    map_decl = table[map_name]
    vertex_decl = table[vertex_name]
    _check_kind(map_name, map_decl, UntypedDeclaration, equation)
    _check_kind(vertex_name, vertex_decl, TypedDeclaration, equation)
    if map_decl.value is None:
        raise UnboundValueError(map_name, equation.source_text)

    return replace(
        product,
        restriction_map=replace(product.restriction_map, matrix=map_decl.value),
        vertex_stalk=replace(product.vertex_stalk, dim=vertex_decl.type.dim),
    )


def decorate_equation(equation: Equation, table: Dict[str, Declaration]) -> Equation:
    """Resolve all four names of ``equation`` and return a decorated copy.

    Raises:
        UndefinedReferenceError: If a name is not declared
        ReferenceKindError: If a map is used as a stalk or vice versa
        UnboundValueError: If a map has no bound matrix
    """
    _resolve(equation.lhs.restriction_map.name, "Restriction map", table, equation)
    _resolve(equation.rhs.restriction_map.name, "Restriction map", table, equation)
    _resolve(equation.lhs.vertex_stalk.name, "Vertex stalk", table, equation)
    _resolve(equation.rhs.vertex_stalk.name, "Vertex stalk", table, equation)

    return replace(
        equation,
        lhs=decorate_product(equation.lhs, table, equation),
        rhs=decorate_product(equation.rhs, table, equation),
    )


def infer_edge(equation: Equation, edge_index: int) -> InferredEdge:
    """Check a decorated equation and infer its edge stalk dimension.

    Raises:
        DimensionMismatchError: If a map's column count differs from its
            vertex stalk dimension
        InconsistentEdgeError: If the two maps have different row counts
    """
    lhs_map = equation.lhs.restriction_map.matrix
    rhs_map = equation.rhs.restriction_map.matrix
    lhs_dim = equation.lhs.vertex_stalk.dim
    rhs_dim = equation.rhs.vertex_stalk.dim

    for side, matrix, dim in (("left", lhs_map, lhs_dim), ("right", rhs_map, rhs_dim)):
        if matrix.shape[1] != dim:
            raise DimensionMismatchError(
                f"{side.capitalize()} restriction map (Size: {matrix.shape}) cannot map "
                f"{side} vertex stalk (Dimension: {dim}) in \"{equation.source_text}\".",
                equation=equation.source_text,
                side=side,
                map_shape=matrix.shape,
                vertex_dim=dim,
            )

    if lhs_map.shape[0] != rhs_map.shape[0]:
        raise InconsistentEdgeError(equation.source_text, lhs_map.shape, rhs_map.shape)

    return InferredEdge(equation, edge_index, edge_index + 1, int(lhs_map.shape[0]))


def collect_vertices(context: Sequence[Declaration]) -> SheafParameters:
    """Vertex dimensions and name -> index table, in context order."""
    params = SheafParameters()
    for declaration in context:
        if isinstance(declaration, TypedDeclaration):
            params.vertex_index[declaration.name] = len(params.vertex_dims)
            params.vertex_dims.append(declaration.type.dim)
            params.vertex_names.append(declaration.name)
    return params


def analyze(expr: SheafExpression) -> SheafParameters:
    """Validate ``expr`` and emit the parameters needed to build its sheaf."""
    table = build_symbol_table(expr.context)

    edges = []
    for edge_index, equation in enumerate(expr.equations):
        inferred = infer_edge(decorate_equation(equation, table), edge_index)
        logger.debug(f"Edge {inferred.edge_number}: {equation} -> dim {inferred.edge_dim}")
        edges.append(inferred)

    params = collect_vertices(expr.context)
    params.edges = edges
    params.edge_dims = [edge.edge_dim for edge in edges]
    params.edge_maps = [
        EdgeMaps(
            v1=params.vertex_index[edge.equation.lhs.vertex_stalk.name],
            v2=params.vertex_index[edge.equation.rhs.vertex_stalk.name],
            e=edge.edge_index,
            map1=edge.equation.lhs.restriction_map.matrix,
            map2=edge.equation.rhs.restriction_map.matrix,
        )
        for edge in edges
    ]
    return params


def build_sheaf(params: SheafParameters,
                potentials: Optional[Sequence[Potential]] = None) -> AbstractCellularSheaf:
    """Allocate a sheaf from analyzer output and assign every edge block."""
    if potentials is None:
        sheaf = CellularSheaf(params.vertex_dims, params.edge_dims, vertex_names=params.vertex_names)
    else:
        sheaf = PotentialSheaf(params.vertex_dims, params.edge_dims, potentials,
                               vertex_names=params.vertex_names)

    for maps in params.edge_maps:
        sheaf.set_edge_maps(maps.v1, maps.v2, maps.e, maps.map1, maps.map2)
    return sheaf


def construct(expr: SheafExpression,
              potentials: Optional[Sequence[Potential]] = None) -> AbstractCellularSheaf:
    """Realize ``expr`` as a CellularSheaf (or a PotentialSheaf when
    ``potentials`` are given, one per equation).

    Raises:
        SemanticError: Any analysis failure; nothing is built in that case
    """
    params = analyze(expr)
    sheaf = build_sheaf(params, potentials)
    logger.info(f"Constructed {type(sheaf).__name__}: {len(params.vertex_dims)} vertices, "
                f"{len(params.edge_dims)} edges")
    return sheaf
