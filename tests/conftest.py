import networkx as nx
import pytest


@pytest.fixture
def path_graph():
    """Directed path A -> B -> C."""
    return nx.DiGraph([("A", "B"), ("B", "C")])


@pytest.fixture
def branched_graph():
    """Small directed graph with a branch and a cycle-free fan out."""
    return nx.DiGraph([("A", "B"), ("B", "C"), ("C", "D"), ("C", "E"), ("E", "F"), ("B", "G")])
