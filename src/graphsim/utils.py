"""Shared helpers for matrix coercion and per-node parameter broadcasting."""

from __future__ import annotations

from numbers import Real
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from graphsim.errors import InputFormatError

# A per-node parameter is either one value for every node or one value per node.
ScalarOrVector = Union[float, Sequence[float], np.ndarray, pd.Series]
MatrixLike = Union[np.ndarray, pd.DataFrame, Sequence[Sequence[float]]]


def broadcast(value: ScalarOrVector, n_nodes: int, name: str = "value") -> np.ndarray:
    """
    Broadcast a scalar or per-node parameter to a vector of length ``n_nodes``.

    Parameters
    ----------
    value : float or array-like
        A single number, or one number per node. Length-1 sequences are
        treated as scalars.
    n_nodes : int
        Number of nodes the parameter applies to.
    name : str
        Parameter name used in error messages.

    Returns
    -------
    np.ndarray, shape (n_nodes,)

    Raises
    ------
    InputFormatError
        If ``value`` is not numeric or its length matches neither 1 nor
        ``n_nodes``.
    """
    if isinstance(value, (str, bytes)):
        raise InputFormatError(f"{name} must be numeric, got {value!r}")
    if isinstance(value, pd.Series):
        value = value.to_numpy()
    try:
        arr = np.asarray(value, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InputFormatError(f"{name} must be numeric, got {value!r}") from exc

    if arr.ndim == 0 or arr.size == 1:
        return np.full(n_nodes, float(arr.reshape(-1)[0]))
    if arr.ndim != 1 or arr.size != n_nodes:
        raise InputFormatError(
            f"{name} must be a scalar or a vector of length {n_nodes}, got shape {arr.shape}"
        )
    return arr.copy()


def as_square_matrix(mat: MatrixLike, name: str = "matrix") -> Tuple[np.ndarray, Optional[List]]:
    """
    Coerce ``mat`` into a square float array and recover its node labels.

    Returns
    -------
    values : np.ndarray, shape (n, n)
    labels : list or None
        Row labels when ``mat`` is a DataFrame, otherwise None.
    """
    labels = None
    if isinstance(mat, pd.DataFrame):
        labels = list(mat.index)
        values = mat.to_numpy(dtype=float)
    else:
        if isinstance(mat, (str, bytes)) or np.isscalar(mat):
            raise InputFormatError(f"{name} must be a square matrix, got {type(mat).__name__}")
        try:
            values = np.array(mat, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InputFormatError(f"{name} must be a numeric square matrix") from exc

    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise InputFormatError(f"{name} must be square, got shape {values.shape}")
    if values.shape[0] < 1:
        raise InputFormatError(f"{name} must have at least one node")
    if not np.all(np.isfinite(values)):
        raise InputFormatError(f"{name} contains non-finite entries")
    return values, labels


def default_labels(n_nodes: int) -> List[str]:
    return [f"node_{i + 1}" for i in range(n_nodes)]


def is_real_scalar(value) -> bool:
    return isinstance(value, (Real, np.number)) and not isinstance(value, (bool, np.bool_))


__all__ = [
    "ScalarOrVector",
    "MatrixLike",
    "broadcast",
    "as_square_matrix",
    "default_labels",
    "is_real_scalar",
]
