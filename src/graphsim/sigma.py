"""
Synthesis of sigma (covariance) matrices from graph structure.

A sigma matrix is built in three steps:

1. **Normalise** a structural matrix to correlation scale: unit diagonal,
   off-diagonal entries in ``[0, cor]``. The rule depends on the
   :class:`~graphsim.structure.StructuralVariant`.
2. **Sign** every entry with the state matrix, so inhibiting relationships
   become negative correlations.
3. **Rescale** by per-node standard deviations,
   ``sigma[i, j] = sd[i] * sigma[i, j] * sd[j]``.

The result is not guaranteed to be positive semi-definite; see
:mod:`graphsim.correction`.
"""
from __future__ import annotations

import logging
from typing import Hashable, List, Optional, Sequence, Union

import networkx as nx
import numpy as np
import pandas as pd

from graphsim.errors import InputFormatError
from graphsim.state import StateSpec, graph_from_structural_matrix, make_state_matrix
from graphsim.structure import StructuralVariant, make_structural_matrix
from graphsim.utils import MatrixLike, ScalarOrVector, as_square_matrix, broadcast, default_labels

logger = logging.getLogger(__name__)


def check_cor(cor: float) -> float:
    try:
        cor = float(cor)
    except (TypeError, ValueError) as exc:
        raise InputFormatError(f"cor must be a number in (0, 1], got {cor!r}") from exc
    if not 0.0 < cor <= 1.0:
        raise InputFormatError(f"cor must lie in (0, 1], got {cor}")
    return cor


def _off_diagonal(mat: np.ndarray) -> np.ndarray:
    return mat[~np.eye(mat.shape[0], dtype=bool)]


def _require_edges(mat: np.ndarray, kind: str) -> None:
    off = _off_diagonal(mat)
    if off.size == 0 or not np.any(off > 0):
        raise InputFormatError(f"{kind} matrix has no edges to derive correlations from")


def _two_pass_max_normalize(mat: np.ndarray) -> np.ndarray:
    """Divide each row by its maximum, then each column by its maximum."""
    row_max = mat.max(axis=1, keepdims=True)
    row_max[row_max == 0] = 1.0
    mat = mat / row_max
    col_max = mat.max(axis=0, keepdims=True)
    col_max[col_max == 0] = 1.0
    return mat / col_max


def _scale_normalized(mat: np.ndarray, cor: float, symmetric: bool) -> np.ndarray:
    # Row/column max normalisation is directional; restore the input's symmetry.
    if symmetric:
        mat = (mat + mat.T) / 2.0
    sig = np.where(mat > 0, cor * mat / mat.max(), 0.0)
    np.fill_diagonal(sig, 1.0)
    return sig


# ---------------------------------------------------------------------------
# Normalisation variants
# ---------------------------------------------------------------------------

def normalize_adjacency(mat: MatrixLike, cor: float = 0.8) -> np.ndarray:
    """Every connected pair gets correlation ``cor``; the diagonal is 1."""
    cor = check_cor(cor)
    values, _ = as_square_matrix(mat, name="adjacency matrix")
    _require_edges(values, "adjacency")
    sig = np.where(values > 0, cor, 0.0)
    np.fill_diagonal(sig, 1.0)
    return sig


def normalize_common_neighbor(mat: MatrixLike, cor: float = 0.8) -> np.ndarray:
    """Scale shared-neighbour counts to ``[0, cor]`` by row then column maxima."""
    cor = check_cor(cor)
    values, _ = as_square_matrix(mat, name="common neighbour matrix")
    values = np.abs(values)
    _require_edges(values, "common neighbour")
    symmetric = np.allclose(values, values.T)
    return _scale_normalized(_two_pass_max_normalize(values), cor, symmetric)


def normalize_laplacian(mat: MatrixLike, cor: float = 0.8) -> np.ndarray:
    """
    Scale Laplacian magnitudes to ``[0, cor]``.

    Zero diagonal entries (isolated nodes) are set to 1 before the row and
    column max normalisation so every row has a non-zero maximum.
    """
    cor = check_cor(cor)
    values, _ = as_square_matrix(mat, name="laplacian matrix")
    values = np.abs(values)
    _require_edges(values, "laplacian")
    diag = np.diag(values).copy()
    diag[diag == 0] = 1.0
    np.fill_diagonal(values, diag)
    symmetric = np.allclose(values, values.T)
    return _scale_normalized(_two_pass_max_normalize(values), cor, symmetric)


def check_distance_matrix(values: np.ndarray) -> float:
    """
    Enforce the distance matrix invariant and return its largest off-diagonal entry.

    The diagonal must be exactly 1 and every off-diagonal entry must lie in
    ``[0, 1]`` with at least one positive entry (0 marks unreachable pairs).
    """
    if not np.all(np.diag(values) == 1):
        raise InputFormatError("distance matrix must have a diagonal of 1 (distance matrix expected, not adjacency matrix)")
    off = _off_diagonal(values)
    if off.size == 0 or not off.max() > 0:
        raise InputFormatError("distance matrix has no edges to derive correlations from")
    if off.min() < 0 or off.max() > 1:
        raise InputFormatError("distance matrix expected, not adjacency matrix: off-diagonal entries must lie in [0, 1]")
    return float(off.max())


def normalize_distance(mat: MatrixLike, cor: float = 0.8) -> np.ndarray:
    """Scale a rescaled distance matrix so the nearest pairs get ``cor``."""
    cor = check_cor(cor)
    values, _ = as_square_matrix(mat, name="distance matrix")
    top = check_distance_matrix(values)
    sig = values / top * cor
    sig = np.where(sig > 0, sig, 0.0)
    np.fill_diagonal(sig, 1.0)
    return sig


NORMALIZERS = {
    StructuralVariant.ADJACENCY: normalize_adjacency,
    StructuralVariant.COMMON_NEIGHBOR: normalize_common_neighbor,
    StructuralVariant.LAPLACIAN: normalize_laplacian,
    StructuralVariant.DISTANCE: normalize_distance,
}


# ---------------------------------------------------------------------------
# Sign and standard deviation
# ---------------------------------------------------------------------------

def apply_state_signs(sig: np.ndarray, state_mat: MatrixLike) -> np.ndarray:
    """Multiply ``sig`` by the sign of ``state_mat``; the diagonal keeps its sign."""
    signs, _ = as_square_matrix(state_mat, name="state matrix")
    if signs.shape != sig.shape:
        raise InputFormatError(f"state matrix shape {signs.shape} does not match sigma shape {sig.shape}")
    signs = np.sign(signs)
    np.fill_diagonal(signs, 1.0)
    # + 0.0 turns the -0.0 of unconnected inhibited pairs into 0.0
    return sig * signs + 0.0


def rescale_sd(sig: np.ndarray, sd: ScalarOrVector = 1) -> np.ndarray:
    """Scale a correlation-scale matrix to covariance scale with ``sd`` per node."""
    sd = broadcast(sd, sig.shape[0], name="sd")
    if not np.all(np.isfinite(sd)) or np.any(sd < 0):
        raise InputFormatError(f"sd must be finite and non-negative, got {sd}")
    if np.all(sd == 1):
        return sig
    return sd[:, None] * sig * sd[None, :]


def _labelled(sig: np.ndarray, nodes: Sequence[Hashable]) -> pd.DataFrame:
    return pd.DataFrame(sig, index=list(nodes), columns=list(nodes))


def _nodes_for(values: np.ndarray, labels: Optional[List]) -> List:
    return labels if labels is not None else default_labels(values.shape[0])


# ---------------------------------------------------------------------------
# Sigma from precomputed structural matrices
# ---------------------------------------------------------------------------

def _sigma_from_matrix(
    mat: MatrixLike,
    variant: StructuralVariant,
    state: StateSpec,
    cor: float,
    sd: ScalarOrVector,
) -> pd.DataFrame:
    values, labels = as_square_matrix(mat, name=f"{variant.value} matrix")
    nodes = _nodes_for(values, labels)
    sig = NORMALIZERS[variant](values, cor)
    if state is None and variant is StructuralVariant.DISTANCE:
        state = "activating"
    if state is not None:
        graph = graph_from_structural_matrix(values, variant, nodes)
        sig = apply_state_signs(sig, make_state_matrix(graph, state))
    return _labelled(rescale_sd(sig, sd), nodes)


def make_sigma_mat_adjmat(mat: MatrixLike, state: StateSpec = None, cor: float = 0.8, sd: ScalarOrVector = 1) -> pd.DataFrame:
    """
    Sigma matrix from an adjacency matrix.

    Parameters
    ----------
    mat : array-like or pd.DataFrame, shape (n, n)
        Adjacency matrix; a DataFrame's index supplies the node labels.
    state : optional
        Edge polarity (see :mod:`graphsim.state`); None keeps every
        correlation positive.
    cor : float
        Correlation of adjacent nodes, in (0, 1]. Default: 0.8.
    sd : float or array-like
        Standard deviation per node. Default: 1.

    Returns
    -------
    pd.DataFrame, shape (n, n)
    """
    return _sigma_from_matrix(mat, StructuralVariant.ADJACENCY, state, cor, sd)


def make_sigma_mat_comm(mat: MatrixLike, state: StateSpec = None, cor: float = 0.8, sd: ScalarOrVector = 1) -> pd.DataFrame:
    """Sigma matrix from a common-neighbour (shared link) count matrix."""
    return _sigma_from_matrix(mat, StructuralVariant.COMMON_NEIGHBOR, state, cor, sd)


def make_sigma_mat_laplacian(mat: MatrixLike, state: StateSpec = None, cor: float = 0.8, sd: ScalarOrVector = 1) -> pd.DataFrame:
    """Sigma matrix from a graph Laplacian."""
    return _sigma_from_matrix(mat, StructuralVariant.LAPLACIAN, state, cor, sd)


def make_sigma_mat_dist_adjmat(mat: MatrixLike, state: StateSpec = None, cor: float = 0.8, sd: ScalarOrVector = 1) -> pd.DataFrame:
    """
    Sigma matrix from a rescaled distance matrix.

    ``mat`` must come from :func:`graphsim.structure.make_distance_adjmat`
    or follow the same convention (diagonal of 1, off-diagonal in [0, 1]).
    Signs are resolved on the nearest-neighbour graph implied by ``mat``.
    """
    return _sigma_from_matrix(mat, StructuralVariant.DISTANCE, state, cor, sd)


# ---------------------------------------------------------------------------
# Sigma from graphs
# ---------------------------------------------------------------------------

def make_sigma_mat_graph(
    graph: nx.Graph,
    state: StateSpec = None,
    cor: float = 0.8,
    sd: ScalarOrVector = 1,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    directed: bool = False,
) -> pd.DataFrame:
    """
    Sigma matrix for ``graph`` using the adjacency, common-neighbour or
    Laplacian structure. Distance requests are forwarded to
    :func:`make_sigma_mat_dist_graph`.
    """
    variant = StructuralVariant.coerce(variant)
    if variant is StructuralVariant.DISTANCE:
        return make_sigma_mat_dist_graph(graph, state=state, cor=cor, sd=sd, directed=directed)
    mat = make_structural_matrix(graph, variant, directed=directed)
    sig = NORMALIZERS[variant](mat, cor)
    sig = apply_state_signs(sig, make_state_matrix(graph, state))
    return _labelled(rescale_sd(sig, sd), graph.nodes)


def make_sigma_mat_dist_graph(
    graph: nx.Graph,
    state: StateSpec = None,
    cor: float = 0.8,
    sd: ScalarOrVector = 1,
    absolute: bool = False,
    directed: bool = False,
) -> pd.DataFrame:
    """Sigma matrix for ``graph`` with correlations decaying along shortest paths."""
    if state is None:
        state = "activating"
    mat = make_structural_matrix(graph, StructuralVariant.DISTANCE, directed=directed, absolute=absolute)
    sig = normalize_distance(mat, cor)
    sig = apply_state_signs(sig, make_state_matrix(graph, state))
    return _labelled(rescale_sd(sig, sd), graph.nodes)


def synthesize_sigma(
    structural_or_graph: Union[nx.Graph, MatrixLike],
    state: StateSpec = None,
    cor: float = 0.8,
    sd: ScalarOrVector = 1,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    directed: bool = False,
    absolute: bool = False,
) -> pd.DataFrame:
    """
    Build a labelled sigma matrix from a graph or a precomputed structural matrix.

    Parameters
    ----------
    structural_or_graph : nx.Graph or array-like
        A networkx graph, or the structural matrix of ``variant`` (for
        example a Laplacian when ``variant="laplacian"``).
    state : optional
        Edge polarity, see :mod:`graphsim.state`.
    cor : float
        Maximum correlation magnitude, in (0, 1]. Default: 0.8.
    sd : float or array-like
        Standard deviation per node. Default: 1.
    variant : StructuralVariant or str
        Structural matrix family. Default: adjacency.
    directed : bool
        Let edge direction shape the structural matrix (graph input only).
    absolute : bool
        Linear rather than geometric distance decay (graph input, distance
        variant only).

    Returns
    -------
    pd.DataFrame
        Sigma matrix with node labels on both axes. Not yet checked for
        positive semi-definiteness.
    """
    variant = StructuralVariant.coerce(variant)
    if isinstance(structural_or_graph, nx.Graph):
        if variant is StructuralVariant.DISTANCE:
            return make_sigma_mat_dist_graph(
                structural_or_graph, state=state, cor=cor, sd=sd, absolute=absolute, directed=directed
            )
        return make_sigma_mat_graph(
            structural_or_graph, state=state, cor=cor, sd=sd, variant=variant, directed=directed
        )
    return _sigma_from_matrix(structural_or_graph, variant, state, cor, sd)


__all__ = [
    "check_cor",
    "check_distance_matrix",
    "normalize_adjacency",
    "normalize_common_neighbor",
    "normalize_laplacian",
    "normalize_distance",
    "apply_state_signs",
    "rescale_sd",
    "make_sigma_mat_adjmat",
    "make_sigma_mat_comm",
    "make_sigma_mat_laplacian",
    "make_sigma_mat_dist_adjmat",
    "make_sigma_mat_graph",
    "make_sigma_mat_dist_graph",
    "synthesize_sigma",
]
