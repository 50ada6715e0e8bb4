"""
Validity checks and repair of sigma matrices.

A sigma matrix built from graph structure is not always a valid covariance
matrix: directed structure makes it asymmetric, and dense correlation
patterns (a path ``A - B - C`` at ``cor = 0.8``) are not positive
semi-definite. Invalid matrices are replaced by the nearest positive
semi-definite matrix with the same diagonal, found by Higham's alternating
projections with Dykstra's correction.
"""
from __future__ import annotations

import logging
from typing import Tuple, Union

import numpy as np
import pandas as pd
from scipy.linalg import eigh, eigvalsh

from graphsim.utils import MatrixLike, as_square_matrix

logger = logging.getLogger(__name__)


def is_symmetric(mat: MatrixLike, tol: float = 1e-8) -> bool:
    values, _ = as_square_matrix(mat, name="sigma")
    scale = max(1.0, float(np.abs(values).max()))
    return bool(np.allclose(values, values.T, rtol=0.0, atol=tol * scale))


def is_positive_semidefinite(mat: MatrixLike, tol: float = 1e-8) -> bool:
    """True when every eigenvalue of the symmetric part is ``>= -tol`` (relative)."""
    values, _ = as_square_matrix(mat, name="sigma")
    eigenvalues = eigvalsh((values + values.T) / 2.0)
    scale = max(1.0, float(np.abs(eigenvalues).max()))
    return bool(eigenvalues[0] >= -tol * scale)


def nearest_correlation(
    mat: MatrixLike,
    keep_diag: bool = True,
    max_iter: int = 100,
    conv_tol: float = 1e-7,
    eig_tol: float = 1e-6,
    posd_tol: float = 1e-8,
) -> np.ndarray:
    """
    Nearest positive semi-definite matrix with a fixed diagonal.

    Parameters
    ----------
    mat : array-like, shape (n, n)
        Candidate matrix; only its symmetric part is used.
    keep_diag : bool
        Keep the diagonal of ``mat`` (variances). When False the diagonal is
        fixed to 1, giving a correlation matrix.
    max_iter : int
        Maximum number of alternating projections.
    conv_tol : float
        Relative change (infinity norm) at which iteration stops.
    eig_tol : float
        Eigenvalues below ``eig_tol`` times the largest are treated as zero.
    posd_tol : float
        Floor for the smallest eigenvalue, relative to the largest, applied
        after the projections so the result is numerically positive definite.

    Returns
    -------
    np.ndarray, shape (n, n)
        Symmetric matrix with the requested diagonal.

    References
    ----------
    Higham, N. J. (2002). Computing the nearest correlation matrix: a problem
    from finance. IMA Journal of Numerical Analysis, 22(3), 329-343.
    """
    values, _ = as_square_matrix(mat, name="sigma")
    x = (values + values.T) / 2.0
    target_diag = np.diag(x).copy() if keep_diag else np.ones(x.shape[0])

    dykstra = np.zeros_like(x)
    for iteration in range(1, max_iter + 1):
        y = x
        r = y - dykstra
        eigenvalues, vectors = eigh(r)
        keep = eigenvalues > eig_tol * max(eigenvalues[-1], 0.0)
        if not keep.any():
            x = np.zeros_like(r)
        else:
            kept = vectors[:, keep]
            x = (kept * eigenvalues[keep]) @ kept.T
        dykstra = x - r
        np.fill_diagonal(x, target_diag)
        change = np.linalg.norm(y - x, np.inf) / np.linalg.norm(y, np.inf)
        if change <= conv_tol:
            logger.debug("nearest correlation converged after %d iterations", iteration)
            break
    else:
        logger.warning("nearest correlation did not converge in %d iterations", max_iter)

    eigenvalues, vectors = eigh(x)
    floor = posd_tol * abs(eigenvalues[-1])
    if eigenvalues[0] < floor:
        eigenvalues = np.maximum(eigenvalues, floor)
        old_diag = np.diag(x).copy()
        x = (vectors * eigenvalues) @ vectors.T
        scale = np.sqrt(np.maximum(floor, old_diag) / np.diag(x))
        x = scale[:, None] * x * scale[None, :]
    return (x + x.T) / 2.0


def validate_and_correct(
    sigma: Union[pd.DataFrame, MatrixLike],
    tol: float = 1e-8,
) -> Tuple[Union[pd.DataFrame, np.ndarray], bool]:
    """
    Check a sigma matrix and replace it by its nearest valid approximation if needed.

    Symmetry is checked first, then positive semi-definiteness of the
    (possibly corrected) result. Each failed check logs a warning.

    Parameters
    ----------
    sigma : pd.DataFrame or array-like, shape (n, n)
    tol : float
        Relative tolerance for both checks.

    Returns
    -------
    sigma : pd.DataFrame or np.ndarray
        Same type as the input; labels are preserved.
    corrected : bool
        Whether an approximation was substituted.
    """
    values, labels = as_square_matrix(sigma, name="sigma")
    corrected = False

    if not is_symmetric(values, tol=tol):
        logger.warning("sigma matrix was not symmetric, nearest approximation used.")
        values = nearest_correlation(values, keep_diag=True)
        corrected = True

    if not is_positive_semidefinite(values, tol=tol):
        logger.warning("sigma matrix was not positive definite, nearest approximation used.")
        values = nearest_correlation(values, keep_diag=True)
        corrected = True

    if isinstance(sigma, pd.DataFrame):
        return pd.DataFrame(values, index=labels, columns=list(sigma.columns)), corrected
    return values, corrected


__all__ = [
    "is_symmetric",
    "is_positive_semidefinite",
    "nearest_correlation",
    "validate_and_correct",
]
