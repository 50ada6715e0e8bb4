"""Reading edge lists and writing labelled matrices."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import networkx as nx
import pandas as pd

logger = logging.getLogger(__name__)

EDGE_COLUMNS = ("source", "target")


def _sep_for(path: Path) -> str:
    suffixes = [s.lower() for s in path.suffixes]
    return "\t" if ".tsv" in suffixes or ".txt" in suffixes else ","


def read_edge_list(path: Union[str, Path], directed: bool = True) -> Tuple[nx.Graph, Optional[List]]:
    """
    Load a graph from a CSV/TSV edge list.

    The file needs ``source`` and ``target`` columns and may carry a
    ``state`` column with edge polarity.

    Returns
    -------
    graph : nx.MultiDiGraph or nx.MultiGraph
        One edge per row, so repeated pairs reach :func:`collapse_graph`.
    states : list or None
        Polarity per edge in ``graph.edges`` order, or None when the file
        has no ``state`` column.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing edge list: {p}")
    edges = pd.read_csv(p, sep=_sep_for(p))
    missing = [c for c in EDGE_COLUMNS if c not in edges.columns]
    if missing:
        raise ValueError(f"Edge list {p} is missing columns: {missing}")

    graph = nx.MultiDiGraph() if directed else nx.MultiGraph()
    has_state = "state" in edges.columns
    for row in edges.itertuples(index=False):
        attrs = {"state": getattr(row, "state")} if has_state else {}
        graph.add_edge(row.source, row.target, **attrs)
    logger.info("Loaded %d nodes and %d edges from %s", graph.number_of_nodes(), graph.number_of_edges(), p)

    if not has_state:
        return graph, None
    return graph, [data["state"] for _, _, data in graph.edges(data=True)]


def write_matrix(frame: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write a labelled matrix as TSV (``.tsv``/``.txt`` suffix) or CSV."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(out, sep=_sep_for(out))
    return out


__all__ = ["read_edge_list", "write_matrix"]
