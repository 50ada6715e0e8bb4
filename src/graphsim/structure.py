"""
Structural (signless) matrices derived from a graph topology.

Four families are supported, selected with :class:`StructuralVariant`:

1. **Adjacency**: binary node × node connectivity.
2. **Laplacian**: ``D - A`` with (out-)degrees on the diagonal.
3. **Common neighbour**: ``A Aᵀ``; shared-neighbour counts per node pair
   with degrees on the diagonal.
4. **Distance**: shortest-path lengths rescaled so the diagonal is 1 and
   reachable pairs lie in (0, 1]. Geometric decay (``0.5 ** d``) by default,
   linear ``1 - d / (diameter + 1)`` decay when ``absolute=True``.
   Unreachable pairs are 0.

Every builder returns a float ``np.ndarray`` ordered like ``graph.nodes``.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Union

import networkx as nx
import numpy as np
from scipy.sparse.csgraph import shortest_path

from graphsim.errors import InputFormatError
from graphsim.utils import MatrixLike, as_square_matrix

logger = logging.getLogger(__name__)


class StructuralVariant(str, Enum):
    """Closed set of structural matrix families a sigma can be built from."""

    ADJACENCY = "adjacency"
    LAPLACIAN = "laplacian"
    COMMON_NEIGHBOR = "common_neighbor"
    DISTANCE = "distance"

    @classmethod
    def coerce(cls, value: Union["StructuralVariant", str]) -> "StructuralVariant":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().replace("-", "_"))
        except ValueError as exc:
            choices = ", ".join(v.value for v in cls)
            raise InputFormatError(f"Unknown structural variant {value!r}; expected one of {choices}") from exc

    @classmethod
    def from_flags(cls, comm: bool = False, laplacian: bool = False, dist: bool = False) -> "StructuralVariant":
        """Map the legacy boolean selectors onto a single variant.

        Raises
        ------
        InputFormatError
            If more than one selector is set.
        """
        selected = [name for name, flag in (("comm", comm), ("laplacian", laplacian), ("dist", dist)) if flag]
        if len(selected) > 1:
            raise InputFormatError(f"only one of commonlink, laplacian or distance can be used, got {selected}")
        if comm:
            return cls.COMMON_NEIGHBOR
        if laplacian:
            return cls.LAPLACIAN
        if dist:
            return cls.DISTANCE
        return cls.ADJACENCY


def check_graph(graph) -> None:
    if not isinstance(graph, nx.Graph):
        raise InputFormatError(f"graph must be a networkx graph, got {type(graph).__name__}")
    if graph.number_of_nodes() < 1:
        raise InputFormatError("graph must contain at least one node")


# ---------------------------------------------------------------------------
# Adjacency-matrix based builders
# ---------------------------------------------------------------------------

def _binary(mat: np.ndarray, directed: bool) -> np.ndarray:
    adj = (mat != 0).astype(float)
    if not directed:
        adj = np.maximum(adj, adj.T)
    np.fill_diagonal(adj, 0.0)
    return adj


def make_laplacian_adjmat(mat: MatrixLike, directed: bool = False) -> np.ndarray:
    """Graph Laplacian ``D - A`` of an adjacency matrix."""
    values, _ = as_square_matrix(mat, name="adjacency matrix")
    adj = _binary(values, directed)
    return np.diag(adj.sum(axis=1)) - adj


def make_commonlink_adjmat(mat: MatrixLike, directed: bool = False) -> np.ndarray:
    """Count neighbours shared by each node pair; the diagonal holds degrees."""
    values, _ = as_square_matrix(mat, name="adjacency matrix")
    adj = _binary(values, directed)
    return adj @ adj.T


def make_distance_adjmat(mat: MatrixLike, absolute: bool = False, directed: bool = False) -> np.ndarray:
    """
    Rescaled shortest-path matrix of an adjacency matrix.

    Parameters
    ----------
    mat : array-like, shape (n, n)
        Adjacency matrix; any non-zero entry is an edge.
    absolute : bool
        Linear decay ``1 - d / (diameter + 1)`` instead of ``0.5 ** d``.
    directed : bool
        Follow edge direction when computing path lengths.

    Returns
    -------
    np.ndarray, shape (n, n)
        Diagonal exactly 1, reachable pairs in (0, 1), unreachable pairs 0.
    """
    values, _ = as_square_matrix(mat, name="adjacency matrix")
    adj = _binary(values, directed)
    dist = shortest_path(adj, directed=directed, unweighted=True)
    finite = np.isfinite(dist)

    scaled = np.zeros_like(dist)
    if absolute:
        diameter = dist[finite].max()
        scaled[finite] = 1.0 - dist[finite] / (diameter + 1.0)
    else:
        scaled[finite] = 0.5 ** dist[finite]
    np.fill_diagonal(scaled, 1.0)
    return scaled


# ---------------------------------------------------------------------------
# Graph based builders
# ---------------------------------------------------------------------------

def make_adjmatrix_graph(graph: nx.Graph, directed: bool = False) -> np.ndarray:
    """Binary adjacency of ``graph`` in ``graph.nodes`` order; self loops dropped."""
    check_graph(graph)
    counts = nx.to_numpy_array(graph, nodelist=list(graph.nodes), weight=None)
    return _binary(counts, directed and graph.is_directed())


def make_laplacian_graph(graph: nx.Graph, directed: bool = False) -> np.ndarray:
    return make_laplacian_adjmat(make_adjmatrix_graph(graph, directed), directed=directed)


def make_commonlink_graph(graph: nx.Graph, directed: bool = False) -> np.ndarray:
    return make_commonlink_adjmat(make_adjmatrix_graph(graph, directed), directed=directed)


def make_distance_graph(graph: nx.Graph, absolute: bool = False, directed: bool = False) -> np.ndarray:
    return make_distance_adjmat(make_adjmatrix_graph(graph, directed), absolute=absolute, directed=directed)


def make_structural_matrix(
    graph: nx.Graph,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    directed: bool = False,
    absolute: bool = False,
) -> np.ndarray:
    """Build the structural matrix of ``variant`` for ``graph``."""
    variant = StructuralVariant.coerce(variant)
    logger.debug("Building %s matrix for %d nodes", variant.value, graph.number_of_nodes())
    if variant is StructuralVariant.ADJACENCY:
        return make_adjmatrix_graph(graph, directed=directed)
    if variant is StructuralVariant.LAPLACIAN:
        return make_laplacian_graph(graph, directed=directed)
    if variant is StructuralVariant.COMMON_NEIGHBOR:
        return make_commonlink_graph(graph, directed=directed)
    return make_distance_graph(graph, absolute=absolute, directed=directed)


def structural_from_adjmat(
    mat: MatrixLike,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    directed: bool = False,
    absolute: bool = False,
) -> np.ndarray:
    """Derive the structural matrix of ``variant`` from an adjacency matrix."""
    variant = StructuralVariant.coerce(variant)
    values, _ = as_square_matrix(mat, name="adjacency matrix")
    if variant is StructuralVariant.ADJACENCY:
        return _binary(values, directed)
    if variant is StructuralVariant.LAPLACIAN:
        return make_laplacian_adjmat(values, directed=directed)
    if variant is StructuralVariant.COMMON_NEIGHBOR:
        return make_commonlink_adjmat(values, directed=directed)
    return make_distance_adjmat(values, absolute=absolute, directed=directed)


__all__ = [
    "StructuralVariant",
    "check_graph",
    "make_adjmatrix_graph",
    "make_laplacian_graph",
    "make_commonlink_graph",
    "make_distance_graph",
    "make_laplacian_adjmat",
    "make_commonlink_adjmat",
    "make_distance_adjmat",
    "make_structural_matrix",
    "structural_from_adjmat",
]
