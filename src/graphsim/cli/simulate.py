"""
graphsim-simulate: Simulate expression data from a signed regulatory graph.

Subcommands
-----------
  init-config  Write a starter JSON config.
  sigma        Build the (corrected) sigma matrix for an edge list.
  generate     Simulate a nodes × samples expression table for an edge list.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from graphsim.structure import StructuralVariant


def setup_logging(level: str = "INFO") -> logging.Logger:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s: %(message)s",
    )
    return logging.getLogger(__name__)


def _add_model_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--edges", required=True,
                        help="CSV/TSV edge list with source, target and optional state columns.")
    parser.add_argument("--config", help="JSON config (see init-config); flags below override it.")
    parser.add_argument("--cor", type=float, help="Maximum correlation of related nodes (default: 0.8).")
    parser.add_argument("--sd", type=float, help="Standard deviation of every node (default: 1).")
    parser.add_argument("--variant", choices=[v.value for v in StructuralVariant],
                        help="Structural matrix to derive correlations from (default: adjacency).")
    parser.add_argument("--absolute", action="store_true", default=None,
                        help="Linear instead of geometric decay for the distance variant.")
    parser.add_argument("--directed", action="store_true", default=None,
                        help="Let edge direction shape the structural matrix.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="graphsim-simulate",
        description="Simulate expression data from a signed regulatory graph.",
    )
    parser.add_argument("-L", "--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    subs = parser.add_subparsers(dest="command", required=True)

    # ------------------------------------------------------------------
    # init-config
    # ------------------------------------------------------------------
    ip = subs.add_parser("init-config", help="Write a starter JSON config.")
    ip.add_argument("--output", required=True, help="Destination JSON path.")

    # ------------------------------------------------------------------
    # sigma
    # ------------------------------------------------------------------
    sp = subs.add_parser("sigma", help="Write the sigma matrix for an edge list.")
    _add_model_arguments(sp)
    sp.add_argument("--output", required=True, help="Output CSV/TSV path (nodes × nodes).")
    sp.add_argument("--raw", action="store_true",
                    help="Write the synthesized matrix without positive-definite correction.")

    # ------------------------------------------------------------------
    # generate
    # ------------------------------------------------------------------
    gp = subs.add_parser("generate", help="Simulate expression for an edge list.")
    _add_model_arguments(gp)
    gp.add_argument("--output", required=True, help="Output CSV/TSV path (nodes × samples).")
    gp.add_argument("--n-samples", type=float, help="Number of samples (default: 100).")
    gp.add_argument("--mean", type=float, help="Mean of every node (default: 0).")
    gp.add_argument("--seed", type=int, help="Random seed.")
    gp.add_argument("--save-sigma", help="Also write the corrected sigma matrix here.")
    gp.add_argument("--summary", help="Write diagnostics comparing data and sigma as JSON.")

    return parser


def resolve_config(args):
    """Merge the optional JSON config with command line overrides."""
    from graphsim.config import SimulationConfig, load_config

    config = load_config(args.config) if args.config else SimulationConfig()
    overrides = {
        "cor": args.cor,
        "sd": args.sd,
        "variant": args.variant,
        "absolute": args.absolute,
        "directed": args.directed,
        "n_samples": getattr(args, "n_samples", None),
        "mean": getattr(args, "mean", None),
        "seed": getattr(args, "seed", None),
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    config.validate()
    return config


def _build_sigma(args, config):
    from graphsim.io import read_edge_list
    from graphsim.sigma import synthesize_sigma

    graph, states = read_edge_list(args.edges)
    sigma = synthesize_sigma(
        graph,
        state=states,
        cor=config.cor,
        sd=config.sd,
        variant=config.variant,
        directed=config.directed,
        absolute=config.absolute,
    )
    return graph, states, sigma


def handle_init_config(args, logger: logging.Logger) -> None:
    from graphsim.config import write_starter_config

    write_starter_config(args.output)
    logger.info("Wrote starter config to %s", args.output)


def handle_sigma(args, logger: logging.Logger) -> None:
    from graphsim.correction import validate_and_correct
    from graphsim.io import write_matrix

    config = resolve_config(args)
    _, _, sigma = _build_sigma(args, config)
    if not args.raw:
        sigma, corrected = validate_and_correct(sigma)
        if corrected:
            logger.info("Sigma matrix replaced by its nearest positive definite approximation")
    out = write_matrix(sigma, args.output)
    logger.info("Saved %d × %d sigma matrix to %s", sigma.shape[0], sigma.shape[1], out)


def handle_generate(args, logger: logging.Logger) -> None:
    from graphsim.correction import validate_and_correct
    from graphsim.generate import generate_samples
    from graphsim.io import write_matrix
    from graphsim.metrics import summarize_simulation
    from graphsim.structure import make_adjmatrix_graph

    config = resolve_config(args)
    graph, _, sigma = _build_sigma(args, config)
    sigma, _ = validate_and_correct(sigma)

    logger.info(
        "Simulating %s samples for %d nodes (%s, cor=%.2f)",
        config.n_samples, sigma.shape[0], config.variant.value, config.cor,
    )
    expr = generate_samples(config.n_samples, sigma, mean=config.mean, seed=config.seed)
    out = write_matrix(expr, args.output)
    logger.info("Saved simulated data to %s", out)

    if args.save_sigma:
        write_matrix(sigma, args.save_sigma)
        logger.info("Saved sigma matrix to %s", args.save_sigma)

    if args.summary:
        summary = summarize_simulation(expr, sigma, adjacency=make_adjmatrix_graph(graph))
        with open(args.summary, "w") as f:
            json.dump(summary, f, indent=2)
        logger.info("Simulation summary: %s", summary)


def cli(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_logging(args.log_level)

    if args.command == "init-config":
        handle_init_config(args, logger)
    elif args.command == "sigma":
        handle_sigma(args, logger)
    elif args.command == "generate":
        handle_generate(args, logger)
    else:  # pragma: no cover - safeguarded by argparse
        parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    cli()
