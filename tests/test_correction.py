import logging

import numpy as np
import pandas as pd
import pytest

from graphsim.correction import (
    is_positive_semidefinite,
    is_symmetric,
    nearest_correlation,
    validate_and_correct,
)


PATH_SIGMA = np.array([[1, 0.8, 0], [0.8, 1, 0.8], [0, 0.8, 1]])


def test_checks_on_valid_matrix():
    sigma = np.array([[1, 0.5], [0.5, 1]])
    assert is_symmetric(sigma)
    assert is_positive_semidefinite(sigma)


def test_path_sigma_is_not_psd():
    assert is_symmetric(PATH_SIGMA)
    assert not is_positive_semidefinite(PATH_SIGMA)


def test_singular_psd_is_accepted():
    assert is_positive_semidefinite(np.ones((3, 3)))


def test_valid_sigma_is_unchanged(caplog):
    sigma = np.array([[1, 0.3, 0], [0.3, 1, 0.3], [0, 0.3, 1]])
    with caplog.at_level(logging.WARNING):
        result, corrected = validate_and_correct(sigma)
    assert not corrected
    assert np.array_equal(result, sigma)
    assert caplog.text == ""


def test_non_psd_is_corrected(caplog):
    with caplog.at_level(logging.WARNING):
        result, corrected = validate_and_correct(PATH_SIGMA)
    assert corrected
    assert "not positive definite" in caplog.text
    assert np.allclose(np.diag(result), 1.0)
    assert np.allclose(result, result.T)
    assert np.linalg.eigvalsh(result).min() > 0
    # The correction stays close: adjacent pairs remain strongly correlated.
    assert 0.6 < result[0, 1] < 0.8
    assert abs(result[0, 2]) < 0.2


def test_correction_is_idempotent():
    once, _ = validate_and_correct(PATH_SIGMA)
    twice, corrected = validate_and_correct(once)
    assert not corrected
    assert np.array_equal(once, twice)


def test_asymmetric_is_corrected(caplog):
    sigma = np.array([[1, 0.8, 0], [0, 1, 0.8], [0, 0, 1]])
    with caplog.at_level(logging.WARNING):
        result, corrected = validate_and_correct(sigma)
    assert corrected
    assert "not symmetric" in caplog.text
    assert is_symmetric(result)
    assert is_positive_semidefinite(result)


def test_correction_keeps_variances():
    sd = np.array([1.0, 2.0, 0.5])
    sigma = np.outer(sd, sd) * PATH_SIGMA
    result, corrected = validate_and_correct(sigma)
    assert corrected
    assert np.allclose(np.diag(result), sd ** 2)
    assert is_positive_semidefinite(result)


def test_correction_keeps_labels():
    labels = ["A", "B", "C"]
    sigma = pd.DataFrame(PATH_SIGMA, index=labels, columns=labels)
    result, corrected = validate_and_correct(sigma)
    assert corrected
    assert isinstance(result, pd.DataFrame)
    assert list(result.index) == labels
    assert list(result.columns) == labels


def test_nearest_correlation_unit_diagonal():
    mat = np.array([[2.0, 1.9, 0.0], [1.9, 2.0, 1.9], [0.0, 1.9, 2.0]])
    result = nearest_correlation(mat, keep_diag=False)
    assert np.allclose(np.diag(result), 1.0)
    assert np.linalg.eigvalsh(result).min() > -1e-10


def test_nearest_correlation_preserves_sign_pattern():
    signs = np.diag([1.0, 1.0, -1.0])
    sigma = signs @ PATH_SIGMA @ signs
    result = nearest_correlation(sigma)
    assert result[1, 2] < 0
    assert result[0, 1] > 0
