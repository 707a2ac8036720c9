"""Constant sheaves over networkx graphs."""

import networkx as nx
import numpy as np

from ..utils.exceptions import ValidationError
from .data_structures import CellularSheaf

# Simple logging setup for this module
import logging
logger = logging.getLogger(__name__)


def constant_sheaf(graph: nx.Graph, dimension: int) -> CellularSheaf:
    """Build the constant sheaf of the given dimension on ``graph``.

    Every vertex and edge stalk is R^dimension and every restriction map is
    the identity, so global sections are the assignments that are equal on
    each connected component. Vertices follow ``graph.nodes`` order and edges
    follow ``graph.edges`` order; node labels become ``vertex_names``.

    Raises:
        ValidationError: If ``dimension`` is not a positive integer
    """
    if not isinstance(dimension, (int, np.integer)) or dimension < 1:
        raise ValidationError("dimension must be a positive integer",
                              parameter="dimension", actual=dimension)

    nodes = list(graph.nodes)
    index = {node: i for i, node in enumerate(nodes)}
    edges = list(graph.edges())

    sheaf = CellularSheaf([dimension] * len(nodes), [dimension] * len(edges),
                          vertex_names=[str(node) for node in nodes])
    identity = np.eye(dimension)
    for e, (u, v) in enumerate(edges):
        sheaf.set_edge_maps(index[u], index[v], e, identity, identity)

    logger.info(f"Constant sheaf: {len(nodes)} vertices, {len(edges)} edges, stalk dim {dimension}")
    return sheaf
