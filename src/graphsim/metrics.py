"""
Diagnostics comparing simulated expression with the structure it came from.

Functions
---------
empirical_correlation(expr)
    Pearson correlation between nodes (rows) of a nodes × samples table.
sigma_to_correlation(sigma)
    Correlation matrix implied by a covariance matrix.
correlation_error(expr, sigma)
    Absolute deviation of the empirical from the target correlations.
sign_agreement(expr, sigma)
    Fraction of non-zero target correlations reproduced with the right sign.
edge_recovery_auc(expr, adjacency)
    ROC AUC of |correlation| as a score for adjacent node pairs.
summarize_simulation(expr, sigma, adjacency=None)
    All of the above in one dict.
"""

from __future__ import annotations

from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from graphsim.utils import MatrixLike, as_square_matrix


def empirical_correlation(expr: Union[pd.DataFrame, np.ndarray]) -> pd.DataFrame:
    """
    Pearson correlation between the rows of ``expr``.

    Parameters
    ----------
    expr : pd.DataFrame or np.ndarray, shape (nodes, samples)

    Returns
    -------
    pd.DataFrame, shape (nodes, nodes)
    """
    if not isinstance(expr, pd.DataFrame):
        expr = pd.DataFrame(np.asarray(expr, dtype=float))
    return expr.T.corr()


def sigma_to_correlation(sigma: MatrixLike) -> np.ndarray:
    """Rescale a covariance matrix to unit diagonal; zero-variance nodes get 0 correlation."""
    values, _ = as_square_matrix(sigma, name="sigma")
    sd = np.sqrt(np.clip(np.diag(values), 0.0, None))
    inv = np.divide(1.0, sd, out=np.zeros_like(sd), where=sd > 0)
    corr = inv[:, None] * values * inv[None, :]
    np.fill_diagonal(corr, 1.0)
    return corr


def _upper(mat: np.ndarray) -> np.ndarray:
    return mat[np.triu_indices(mat.shape[0], k=1)]


def correlation_error(expr: Union[pd.DataFrame, np.ndarray], sigma: MatrixLike) -> Dict[str, float]:
    """
    Deviation of empirical correlations from those implied by ``sigma``.

    Returns
    -------
    dict with keys ``max_abs_error``, ``mean_abs_error`` and ``frobenius``
    (over the off-diagonal upper triangle).
    """
    observed = _upper(empirical_correlation(expr).to_numpy())
    target = _upper(sigma_to_correlation(sigma))
    diff = np.abs(observed - target)
    if diff.size == 0:
        return {"max_abs_error": 0.0, "mean_abs_error": 0.0, "frobenius": 0.0}
    return {
        "max_abs_error": float(diff.max()),
        "mean_abs_error": float(diff.mean()),
        "frobenius": float(np.sqrt(2.0 * np.sum(diff ** 2))),
    }


def sign_agreement(
    expr: Union[pd.DataFrame, np.ndarray],
    sigma: MatrixLike,
    min_abs: float = 0.0,
) -> float:
    """
    Fraction of node pairs with a non-zero target correlation whose empirical
    correlation has the same sign.

    Parameters
    ----------
    min_abs : float
        Only pairs with ``|target| > min_abs`` are counted.
    """
    observed = _upper(empirical_correlation(expr).to_numpy())
    target = _upper(sigma_to_correlation(sigma))
    mask = np.abs(target) > min_abs
    if not mask.any():
        return float("nan")
    return float(np.mean(np.sign(observed[mask]) == np.sign(target[mask])))


def edge_recovery_auc(expr: Union[pd.DataFrame, np.ndarray], adjacency: MatrixLike) -> float:
    """
    ROC AUC for separating adjacent from non-adjacent pairs by ``|correlation|``.

    Returns NaN when every pair is adjacent or none is.
    """
    adj, _ = as_square_matrix(adjacency, name="adjacency matrix")
    adj = (adj != 0) | (adj.T != 0)
    labels = _upper(adj).astype(int)
    if labels.min() == labels.max():
        return float("nan")
    scores = np.abs(_upper(empirical_correlation(expr).to_numpy()))
    return float(roc_auc_score(labels, scores))


def summarize_simulation(
    expr: Union[pd.DataFrame, np.ndarray],
    sigma: MatrixLike,
    adjacency: Optional[MatrixLike] = None,
) -> Dict[str, float]:
    summary = correlation_error(expr, sigma)
    summary["sign_agreement"] = sign_agreement(expr, sigma)
    summary["n_nodes"] = int(np.shape(expr)[0])
    summary["n_samples"] = int(np.shape(expr)[1])
    if adjacency is not None:
        summary["edge_recovery_auc"] = edge_recovery_auc(expr, adjacency)
    return summary


__all__ = [
    "empirical_correlation",
    "sigma_to_correlation",
    "correlation_error",
    "sign_agreement",
    "edge_recovery_auc",
    "summarize_simulation",
]
