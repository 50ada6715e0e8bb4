"""
Edge polarity ("state") handling and the node × node sign matrix.

Polarity may be given as integers (``1``/``0`` activating, ``-1``/``2``
inhibiting), as text (``"activating"``/``"inhibiting"``), as any other
signed number (its sign is used), as one value for all edges, as one value
per edge in ``graph.edges`` order, or as a precomputed sign matrix.

Signs between nodes that are not adjacent follow the breadth-first shortest
path joining them: an odd number of inhibiting edges on the path gives -1.
"""
from __future__ import annotations

import logging
from typing import Dict, Hashable, List, Optional, Sequence, Union

import networkx as nx
import numpy as np
import pandas as pd

from graphsim.errors import InputFormatError
from graphsim.structure import StructuralVariant, check_graph
from graphsim.utils import MatrixLike, as_square_matrix, is_real_scalar

logger = logging.getLogger(__name__)

ACTIVATING_LABELS = ("activating", "activation")
INHIBITING_LABELS = ("inhibiting", "inhibition")

StateSpec = Union[None, int, float, str, Sequence, Dict, np.ndarray, pd.DataFrame]


def resolve_polarity(value) -> int:
    """Return +1 for an activating and -1 for an inhibiting polarity value."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in ACTIVATING_LABELS:
            return 1
        if key in INHIBITING_LABELS:
            return -1
    elif is_real_scalar(value) and np.isfinite(value):
        v = float(value)
        if v in (0.0, 1.0):
            return 1
        if v in (-1.0, 2.0):
            return -1
        return 1 if v > 0 else -1
    raise InputFormatError(
        f"Unrecognised edge state {value!r}; use 1/0/'activating' or -1/2/'inhibiting'"
    )


def is_state_matrix(state) -> bool:
    if isinstance(state, pd.DataFrame):
        return True
    if state is None or isinstance(state, (str, dict)):
        return False
    try:
        return np.ndim(state) == 2
    except ValueError:
        return False


def edge_states(graph: nx.Graph, state: StateSpec = None) -> Dict[tuple, int]:
    """
    Resolve ``state`` into one sign per edge of ``graph``.

    Parameters
    ----------
    graph : nx.Graph
        Any networkx graph; edges are taken in ``graph.edges`` order.
    state : None, scalar, str, sequence or dict
        None marks every edge activating. A dict is keyed by edge tuple.

    Returns
    -------
    dict
        Edge tuple → +1 / -1.
    """
    edges = list(graph.edges)
    if state is None:
        return {edge: 1 for edge in edges}
    if isinstance(state, dict):
        resolved = {}
        for edge in edges:
            key = edge if edge in state else (edge[1], edge[0]) + tuple(edge[2:])
            if key not in state:
                raise InputFormatError(f"No state given for edge {edge}")
            resolved[edge] = resolve_polarity(state[key])
        return resolved
    if isinstance(state, str) or is_real_scalar(state):
        sign = resolve_polarity(state)
        return {edge: sign for edge in edges}

    values = list(state)
    if len(values) == 1:
        values = values * len(edges)
    if len(values) != len(edges):
        raise InputFormatError(
            f"state has {len(values)} entries but the graph has {len(edges)} edges"
        )
    return {edge: resolve_polarity(v) for edge, v in zip(edges, values)}


def edge_states_from_graph(graph: nx.Graph, attr: str = "state", default=1) -> List:
    """Read polarity values stored on the edges, in ``graph.edges`` order."""
    return [data.get(attr, default) for *_, data in graph.edges(data=True)]


def collapse_graph(graph: nx.Graph, state: StateSpec = None) -> nx.Graph:
    """
    Collapse ``graph`` to a simple undirected graph with a ``state`` per edge.

    Parallel and anti-parallel edges merge into one; the merged edge is
    inhibiting if any of them is. Self loops are dropped. A new graph is
    returned and ``graph`` is left untouched.
    """
    check_graph(graph)
    signs = edge_states(graph, state)
    collapsed = nx.Graph()
    collapsed.add_nodes_from(graph.nodes)
    for edge, sign in signs.items():
        u, v = edge[0], edge[1]
        if u == v:
            continue
        if collapsed.has_edge(u, v):
            collapsed[u][v]["state"] = min(collapsed[u][v]["state"], sign)
        else:
            collapsed.add_edge(u, v, state=sign)
    return collapsed


def make_state_matrix(graph: nx.Graph, state: StateSpec = None) -> np.ndarray:
    """
    Build the node × node sign matrix for ``graph``.

    Parameters
    ----------
    graph : nx.Graph
        Graph whose node order defines the matrix order.
    state : see module docstring
        A 2-D input is taken as a precomputed state matrix; only its sign
        is kept.

    Returns
    -------
    np.ndarray, shape (n, n)
        Symmetric entries in {-1, 0, 1}; diagonal 1, unreachable pairs 0.
    """
    check_graph(graph)
    nodes = list(graph.nodes)
    n = len(nodes)

    if is_state_matrix(state):
        values, _ = as_square_matrix(state, name="state matrix")
        if values.shape[0] != n:
            raise InputFormatError(
                f"state matrix is {values.shape[0]}x{values.shape[0]} but the graph has {n} nodes"
            )
        signs = np.sign(values)
        np.fill_diagonal(signs, 1.0)
        return signs

    collapsed = collapse_graph(graph, state)
    index = {node: i for i, node in enumerate(nodes)}
    state_mat = np.zeros((n, n))
    for source in nodes:
        i = index[source]
        path_sign = {source: 1}
        for u, v in nx.bfs_edges(collapsed, source):
            path_sign[v] = path_sign[u] * collapsed[u][v]["state"]
        for node, sign in path_sign.items():
            j = index[node]
            if j >= i:
                state_mat[i, j] = state_mat[j, i] = sign
    return state_mat


def graph_from_structural_matrix(
    mat: MatrixLike,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    nodes: Optional[Sequence[Hashable]] = None,
) -> nx.Graph:
    """
    Recover the undirected edge set implied by a structural matrix.

    Any non-zero off-diagonal entry is an edge, except for distance
    matrices where only the nearest pairs (largest off-diagonal value) are.
    Edges are added in row-major upper-triangle order.
    """
    variant = StructuralVariant.coerce(variant)
    values, labels = as_square_matrix(mat, name="structural matrix")
    n = values.shape[0]
    nodes = list(nodes) if nodes is not None else (labels or list(range(n)))

    off = values.copy()
    np.fill_diagonal(off, 0.0)
    if variant is StructuralVariant.DISTANCE:
        top = off.max() if n > 1 else 0.0
        mask = (off > 0) & np.isclose(off, top)
    else:
        mask = off != 0
    mask = np.triu(mask | mask.T, k=1)

    graph = nx.Graph()
    graph.add_nodes_from(nodes)
    graph.add_edges_from((nodes[i], nodes[j]) for i, j in np.argwhere(mask))
    return graph


__all__ = [
    "StateSpec",
    "resolve_polarity",
    "is_state_matrix",
    "edge_states",
    "edge_states_from_graph",
    "collapse_graph",
    "make_state_matrix",
    "graph_from_structural_matrix",
]
