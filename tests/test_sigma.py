import networkx as nx
import numpy as np
import pandas as pd
import pytest

from graphsim.errors import InputFormatError
from graphsim.sigma import (
    apply_state_signs,
    make_sigma_mat_adjmat,
    make_sigma_mat_comm,
    make_sigma_mat_dist_adjmat,
    make_sigma_mat_laplacian,
    normalize_adjacency,
    rescale_sd,
    synthesize_sigma,
)
from graphsim.structure import StructuralVariant, make_commonlink_adjmat, make_distance_adjmat


PATH_ADJ = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=float)


# ---------------------------------------------------------------------------
# Variant values on a three node path
# ---------------------------------------------------------------------------

def test_adjacency_sigma_path(path_graph):
    sigma = synthesize_sigma(path_graph, cor=0.8)
    expected = np.array([[1, 0.8, 0], [0.8, 1, 0.8], [0, 0.8, 1]])
    assert list(sigma.index) == ["A", "B", "C"]
    assert list(sigma.columns) == ["A", "B", "C"]
    assert np.allclose(sigma.to_numpy(), expected)


def test_adjacency_sigma_inhibiting_edge(path_graph):
    sigma = synthesize_sigma(path_graph, state=["activating", "inhibiting"], cor=0.8)
    assert sigma.loc["B", "C"] == pytest.approx(-0.8)
    assert sigma.loc["C", "B"] == pytest.approx(-0.8)
    assert sigma.loc["A", "B"] == pytest.approx(0.8)
    assert sigma.loc["A", "C"] == 0.0


def test_common_neighbor_sigma_path(path_graph):
    sigma = synthesize_sigma(path_graph, variant="common_neighbor")
    expected = np.array([[1, 0, 0.8], [0, 1, 0], [0.8, 0, 1]])
    assert np.allclose(sigma.to_numpy(), expected)


def test_laplacian_sigma_path(path_graph):
    sigma = synthesize_sigma(path_graph, variant=StructuralVariant.LAPLACIAN)
    expected = np.array([[1, 0.6, 0], [0.6, 1, 0.6], [0, 0.6, 1]])
    assert np.allclose(sigma.to_numpy(), expected)


def test_distance_sigma_path(path_graph):
    sigma = synthesize_sigma(path_graph, variant="distance")
    expected = np.array([[1, 0.8, 0.4], [0.8, 1, 0.8], [0.4, 0.8, 1]])
    assert np.allclose(sigma.to_numpy(), expected)


def test_distance_sigma_inhibition_propagates(path_graph):
    sigma = synthesize_sigma(path_graph, state=[1, -1], variant="distance")
    assert sigma.loc["A", "C"] == pytest.approx(-0.4)
    assert sigma.loc["B", "C"] == pytest.approx(-0.8)
    assert sigma.loc["A", "B"] == pytest.approx(0.8)


# ---------------------------------------------------------------------------
# Invariants shared by all variants
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("variant", list(StructuralVariant))
@pytest.mark.parametrize("cor", [0.3, 0.8, 1.0])
def test_unit_diagonal_and_bounded(branched_graph, variant, cor):
    state = [1, -1, 1, 1, -1, 1]
    sigma = synthesize_sigma(branched_graph, state=state, cor=cor, variant=variant).to_numpy()
    off = sigma[~np.eye(sigma.shape[0], dtype=bool)]
    assert np.all(np.diag(sigma) == 1.0)
    assert np.all(np.abs(off) <= cor + 1e-12)


@pytest.mark.parametrize("variant", list(StructuralVariant))
def test_symmetric_for_symmetric_structure(variant):
    graph = nx.karate_club_graph()
    sigma = synthesize_sigma(graph, variant=variant).to_numpy()
    assert np.allclose(sigma, sigma.T)


def test_directed_adjacency_is_asymmetric(path_graph):
    sigma = synthesize_sigma(path_graph, directed=True).to_numpy()
    assert sigma[0, 1] == pytest.approx(0.8)
    assert sigma[1, 0] == 0.0


def test_single_inhibiting_edge_sign():
    graph = nx.Graph([("A", "B"), ("B", "C"), ("C", "D"), ("D", "E"), ("A", "F")])
    state = [-1, 1, 1, 1, 1]
    sigma = synthesize_sigma(graph, state=state)
    assert sigma.loc["A", "B"] < 0
    others = [node for node in graph.nodes if node not in ("A", "B")]
    assert np.all(sigma.loc[others, others].to_numpy() >= 0)


# ---------------------------------------------------------------------------
# Standard deviations
# ---------------------------------------------------------------------------

def test_sd_rescale_formula(path_graph):
    sd = np.array([1.0, 2.0, 3.0])
    base = synthesize_sigma(path_graph).to_numpy()
    sigma = synthesize_sigma(path_graph, sd=sd).to_numpy()
    assert np.allclose(sigma, np.outer(sd, sd) * base)
    assert np.allclose(np.diag(sigma), sd ** 2)


def test_sd_rescale_is_quadratic(branched_graph):
    sd = np.linspace(0.5, 2.0, 7)
    c = 3.0
    one = synthesize_sigma(branched_graph, sd=sd, variant="distance").to_numpy()
    scaled = synthesize_sigma(branched_graph, sd=c * sd, variant="distance").to_numpy()
    assert np.allclose(scaled, c ** 2 * one)


def test_unit_sd_is_skipped():
    sig = normalize_adjacency(PATH_ADJ)
    assert rescale_sd(sig, 1) is sig


def test_negative_sd_rejected(path_graph):
    with pytest.raises(InputFormatError):
        synthesize_sigma(path_graph, sd=[1, -1, 1])


def test_sd_wrong_length_rejected(path_graph):
    with pytest.raises(InputFormatError):
        synthesize_sigma(path_graph, sd=[1, 2])


# ---------------------------------------------------------------------------
# Sign application
# ---------------------------------------------------------------------------

def test_apply_state_signs_uses_sign_only():
    sig = normalize_adjacency(PATH_ADJ)
    state_mat = np.array([[0, 5, 0], [5, 0, -0.1], [0, -0.1, 0]])
    signed = apply_state_signs(sig, state_mat)
    assert np.allclose(np.diag(signed), 1.0)
    assert signed[0, 1] == pytest.approx(0.8)
    assert signed[1, 2] == pytest.approx(-0.8)


# ---------------------------------------------------------------------------
# Precomputed matrices
# ---------------------------------------------------------------------------

def test_adjmat_labels_and_state():
    frame = pd.DataFrame(PATH_ADJ, index=["g1", "g2", "g3"], columns=["g1", "g2", "g3"])
    sigma = make_sigma_mat_adjmat(frame, state=[1, -1])
    assert list(sigma.index) == ["g1", "g2", "g3"]
    assert sigma.loc["g2", "g3"] == pytest.approx(-0.8)


def test_adjmat_default_labels():
    sigma = make_sigma_mat_adjmat(PATH_ADJ)
    assert list(sigma.index) == ["node_1", "node_2", "node_3"]


def test_comm_matrix_matches_graph(path_graph):
    by_matrix = make_sigma_mat_comm(make_commonlink_adjmat(PATH_ADJ))
    by_graph = synthesize_sigma(path_graph, variant="common_neighbor")
    assert np.allclose(by_matrix.to_numpy(), by_graph.to_numpy())


def test_laplacian_isolated_node():
    lap = np.array([[1, -1, 0], [-1, 1, 0], [0, 0, 0]], dtype=float)
    sigma = make_sigma_mat_laplacian(lap).to_numpy()
    assert np.all(np.diag(sigma) == 1.0)
    assert sigma[0, 2] == 0.0
    assert sigma[0, 1] == pytest.approx(0.8)


def test_dist_matrix_matches_graph(path_graph):
    by_matrix = make_sigma_mat_dist_adjmat(make_distance_adjmat(PATH_ADJ))
    by_graph = synthesize_sigma(path_graph, variant="distance")
    assert np.allclose(by_matrix.to_numpy(), by_graph.to_numpy())


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

def test_distance_rejects_adjacency_matrix():
    with pytest.raises(InputFormatError, match="distance matrix"):
        make_sigma_mat_dist_adjmat(PATH_ADJ)
    with pytest.raises(InputFormatError, match="distance matrix"):
        synthesize_sigma(PATH_ADJ, variant="distance")


def test_distance_rejects_out_of_range():
    dist = np.array([[1, 3], [3, 1]], dtype=float)
    with pytest.raises(InputFormatError):
        make_sigma_mat_dist_adjmat(dist)


@pytest.mark.parametrize("variant", list(StructuralVariant))
def test_no_edges_rejected(variant):
    graph = nx.Graph()
    graph.add_nodes_from(["A", "B"])
    with pytest.raises(InputFormatError):
        synthesize_sigma(graph, variant=variant)


@pytest.mark.parametrize("cor", [0.0, -0.5, 1.5, "high"])
def test_cor_out_of_range(path_graph, cor):
    with pytest.raises(InputFormatError):
        synthesize_sigma(path_graph, cor=cor)


def test_non_square_rejected():
    with pytest.raises(InputFormatError):
        synthesize_sigma(np.ones((2, 3)))


def test_scalar_input_rejected():
    with pytest.raises(InputFormatError):
        synthesize_sigma("not a graph")
