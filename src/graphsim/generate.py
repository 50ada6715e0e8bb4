"""
Simulation of expression data from a graph.

generate_expression(n, graph, ...)
    Samples for every node of a networkx graph.
generate_expression_mat(n, mat, ...)
    Samples for the nodes of a precomputed adjacency matrix.
generate_samples(n, sigma, ...)
    Samples from an explicit sigma matrix.

Every entry point returns a ``pd.DataFrame`` of shape (nodes, samples)
with node labels as the index and ``sample_1 … sample_n`` as columns.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

import networkx as nx
import numpy as np
import pandas as pd

from graphsim.correction import validate_and_correct
from graphsim.errors import InputFormatError
from graphsim.sigma import rescale_sd, synthesize_sigma
from graphsim.state import StateSpec, graph_from_structural_matrix, make_state_matrix
from graphsim.structure import StructuralVariant, check_graph, structural_from_adjmat
from graphsim.utils import (
    MatrixLike,
    ScalarOrVector,
    as_square_matrix,
    broadcast,
    default_labels,
    is_real_scalar,
)

logger = logging.getLogger(__name__)

Seed = Union[None, int, np.random.Generator]


def resolve_sample_count(n) -> int:
    """
    Coerce a requested sample size to a positive integer.

    Non-integral values are truncated towards zero with a warning.

    Raises
    ------
    InputFormatError
        If ``n`` is not a single number or is smaller than 1 after truncation.
    """
    if isinstance(n, (list, tuple, np.ndarray, pd.Series)):
        flat = np.asarray(n, dtype=object).reshape(-1)
        if flat.size != 1:
            raise InputFormatError("sample size n must be an integer of length 1")
        n = flat[0]
    if not is_real_scalar(n) or not np.isfinite(n):
        raise InputFormatError(f"sample size n must be an integer of length 1, got {n!r}")

    if isinstance(n, (int, np.integer)):
        count = int(n)
    else:
        count = int(np.floor(n))
        if count != n:
            logger.warning("rounding to sample size %d", count)
    if count < 1:
        raise InputFormatError(f"sample size n must be at least 1, got {n!r}")
    return count


def generate_samples(
    n,
    sigma: Union[pd.DataFrame, MatrixLike],
    mean: ScalarOrVector = 0,
    sd: Optional[ScalarOrVector] = None,
    seed: Seed = None,
) -> pd.DataFrame:
    """
    Draw multivariate normal samples for a sigma matrix.

    Parameters
    ----------
    n : int
        Number of samples; see :func:`resolve_sample_count`.
    sigma : pd.DataFrame or array-like, shape (g, g)
        Covariance matrix. A DataFrame's index supplies row labels.
    mean : float or array-like
        Mean per node. Default: 0.
    sd : float or array-like, optional
        When given, ``sigma`` is taken as correlation scale and rescaled by
        these standard deviations first.
    seed : int, np.random.Generator or None
        Source of randomness.

    Returns
    -------
    pd.DataFrame, shape (g, n)
    """
    count = resolve_sample_count(n)
    values, labels = as_square_matrix(sigma, name="sigma")
    nodes = labels if labels is not None else default_labels(values.shape[0])
    if sd is not None:
        values = rescale_sd(values, sd)
    mean = broadcast(mean, len(nodes), name="mean")

    values, _ = validate_and_correct(values)
    rng = np.random.default_rng(seed)
    draws = rng.multivariate_normal(mean, values, size=count)

    return pd.DataFrame(
        draws.T,
        index=nodes,
        columns=[f"sample_{i}" for i in range(1, count + 1)],
    )


def generate_expression(
    n,
    graph: nx.Graph,
    state: StateSpec = None,
    cor: float = 0.8,
    mean: ScalarOrVector = 0,
    sd: ScalarOrVector = 1,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    absolute: bool = False,
    directed: bool = False,
    seed: Seed = None,
) -> pd.DataFrame:
    """
    Simulate expression for every node of ``graph``.

    Parameters
    ----------
    n : int
        Number of simulated samples.
    graph : nx.Graph
        Regulatory graph; may be directed and may contain parallel edges.
    state : optional
        Edge polarity (see :mod:`graphsim.state`). Default: all activating.
    cor : float
        Maximum correlation between related nodes. Default: 0.8.
    mean, sd : float or array-like
        Mean and standard deviation per node. Defaults: 0 and 1.
    variant : StructuralVariant or str
        Structural matrix the correlations are derived from.
    absolute : bool
        Linear distance decay for the distance variant.
    directed : bool
        Let edge direction shape the structural matrix.
    seed : int, np.random.Generator or None
        Source of randomness.

    Returns
    -------
    pd.DataFrame, shape (nodes, n)
    """
    check_graph(graph)
    count = resolve_sample_count(n)
    n_nodes = graph.number_of_nodes()
    mean = broadcast(mean, n_nodes, name="mean")
    sd = broadcast(sd, n_nodes, name="sd")

    sigma = synthesize_sigma(
        graph, state=state, cor=cor, sd=sd, variant=variant, directed=directed, absolute=absolute
    )
    logger.info("Simulating %d samples for %d nodes (%s)", count, n_nodes, StructuralVariant.coerce(variant).value)
    return generate_samples(count, sigma, mean=mean, seed=seed)


def generate_expression_mat(
    n,
    mat: MatrixLike,
    state: StateSpec = None,
    cor: float = 0.8,
    mean: ScalarOrVector = 0,
    sd: ScalarOrVector = 1,
    variant: Union[StructuralVariant, str] = StructuralVariant.ADJACENCY,
    absolute: bool = False,
    directed: bool = False,
    seed: Seed = None,
) -> pd.DataFrame:
    """
    Simulate expression for the nodes of an adjacency matrix.

    The structural matrix of ``variant`` is derived from ``mat``; edge
    states are matched to the edges of ``mat`` in row-major upper-triangle
    order. Other parameters are as for :func:`generate_expression`.
    """
    values, labels = as_square_matrix(mat, name="adjacency matrix")
    nodes = labels if labels is not None else default_labels(values.shape[0])
    count = resolve_sample_count(n)
    mean = broadcast(mean, len(nodes), name="mean")
    sd = broadcast(sd, len(nodes), name="sd")

    variant = StructuralVariant.coerce(variant)
    structural = structural_from_adjmat(values, variant, directed=directed, absolute=absolute)
    state_mat = make_state_matrix(graph_from_structural_matrix(values, StructuralVariant.ADJACENCY, nodes), state)

    sigma = synthesize_sigma(
        pd.DataFrame(structural, index=nodes, columns=nodes),
        state=state_mat,
        cor=cor,
        sd=sd,
        variant=variant,
    )
    return generate_samples(count, sigma, mean=mean, seed=seed)


__all__ = [
    "resolve_sample_count",
    "generate_samples",
    "generate_expression",
    "generate_expression_mat",
]
