import networkx as nx
import numpy as np
import pytest

from graphsim.errors import InputFormatError
from graphsim.structure import (
    StructuralVariant,
    make_adjmatrix_graph,
    make_commonlink_graph,
    make_distance_adjmat,
    make_distance_graph,
    make_laplacian_graph,
    make_structural_matrix,
    structural_from_adjmat,
)


# ---------------------------------------------------------------------------
# StructuralVariant
# ---------------------------------------------------------------------------

def test_variant_from_flags():
    assert StructuralVariant.from_flags() is StructuralVariant.ADJACENCY
    assert StructuralVariant.from_flags(comm=True) is StructuralVariant.COMMON_NEIGHBOR
    assert StructuralVariant.from_flags(laplacian=True) is StructuralVariant.LAPLACIAN
    assert StructuralVariant.from_flags(dist=True) is StructuralVariant.DISTANCE


def test_variant_rejects_conflicting_flags():
    with pytest.raises(InputFormatError):
        StructuralVariant.from_flags(comm=True, laplacian=True)


def test_variant_coerce():
    assert StructuralVariant.coerce("common-neighbor") is StructuralVariant.COMMON_NEIGHBOR
    assert StructuralVariant.coerce("Laplacian") is StructuralVariant.LAPLACIAN
    with pytest.raises(InputFormatError):
        StructuralVariant.coerce("bogus")


# ---------------------------------------------------------------------------
# Graph builders
# ---------------------------------------------------------------------------

def test_adjacency_undirected_by_default(path_graph):
    adj = make_adjmatrix_graph(path_graph)
    expected = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=float)
    assert np.array_equal(adj, expected)


def test_adjacency_directed(path_graph):
    adj = make_adjmatrix_graph(path_graph, directed=True)
    expected = np.array([[0, 1, 0], [0, 0, 1], [0, 0, 0]], dtype=float)
    assert np.array_equal(adj, expected)


def test_adjacency_collapses_parallel_edges_and_loops():
    graph = nx.MultiDiGraph([("A", "B"), ("A", "B"), ("B", "A"), ("B", "B")])
    adj = make_adjmatrix_graph(graph)
    assert np.array_equal(adj, np.array([[0.0, 1.0], [1.0, 0.0]]))


def test_adjacency_rejects_non_graph():
    with pytest.raises(InputFormatError):
        make_adjmatrix_graph(np.eye(3))


def test_laplacian(path_graph):
    lap = make_laplacian_graph(path_graph)
    expected = np.array([[1, -1, 0], [-1, 2, -1], [0, -1, 1]], dtype=float)
    assert np.array_equal(lap, expected)


def test_commonlink(path_graph):
    comm = make_commonlink_graph(path_graph)
    expected = np.array([[1, 0, 1], [0, 2, 0], [1, 0, 1]], dtype=float)
    assert np.array_equal(comm, expected)


def test_distance_geometric(path_graph):
    dist = make_distance_graph(path_graph)
    expected = np.array([[1, 0.5, 0.25], [0.5, 1, 0.5], [0.25, 0.5, 1]])
    assert np.allclose(dist, expected)


def test_distance_absolute(path_graph):
    dist = make_distance_graph(path_graph, absolute=True)
    expected = np.array([[1, 2 / 3, 1 / 3], [2 / 3, 1, 2 / 3], [1 / 3, 2 / 3, 1]])
    assert np.allclose(dist, expected)


def test_distance_unreachable_is_zero():
    adj = np.array([[0, 1, 0], [1, 0, 0], [0, 0, 0]], dtype=float)
    dist = make_distance_adjmat(adj)
    assert dist[0, 2] == 0.0
    assert dist[2, 1] == 0.0
    assert np.all(np.diag(dist) == 1.0)


def test_make_structural_matrix_dispatch(branched_graph):
    for variant in StructuralVariant:
        mat = make_structural_matrix(branched_graph, variant)
        assert mat.shape == (7, 7)
        assert np.allclose(mat, mat.T)


def test_structural_from_adjmat_matches_graph(branched_graph):
    adj = make_adjmatrix_graph(branched_graph)
    for variant in StructuralVariant:
        assert np.allclose(
            structural_from_adjmat(adj, variant),
            make_structural_matrix(branched_graph, variant),
        )


def test_structural_from_adjmat_respects_directed(path_graph):
    adj = make_adjmatrix_graph(path_graph, directed=True)
    undirected = structural_from_adjmat(adj, StructuralVariant.ADJACENCY)
    assert np.allclose(undirected, undirected.T)
    assert np.allclose(undirected, make_adjmatrix_graph(path_graph))
    assert np.allclose(structural_from_adjmat(adj, StructuralVariant.ADJACENCY, directed=True), adj)
