"""
Run one of the textbook analyses from the command line::

    python -m colliderlab family --n 4000 --plot family.png
    python -m colliderlab happiness --metric rsq
"""
from __future__ import annotations

import argparse
import logging
import sys

from ._exceptions import InvalidParameter
from .analysis import family_analysis, happiness_analysis
from .config import METRICS, ExperimentConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="colliderlab",
        description="Simulate a collider example and compare models with and without the extra variable",
    )
    parser.add_argument("example", choices=["family", "happiness"], help="Which example to run")
    parser.add_argument("--seed", type=int, default=None, help="Simulation seed (family: 1, happiness: 1977)")
    parser.add_argument("--n", type=int, default=None, help="Number of families, default 4000 (family example only)")
    parser.add_argument("--folds", type=int, default=5, help="Cross-validation folds")
    parser.add_argument("--metric", choices=METRICS, default="rmse", help="Metric for picking hyperparameters")
    parser.add_argument("--n-jobs", type=int, default=None, help="Parallel jobs for the grid search")
    parser.add_argument("--no-predict", action="store_true", help="Only compare OLS coefficients")
    parser.add_argument("--plot", metavar="PATH", default=None, help="Save a diagnostic figure to PATH")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def _save_figure(analysis, path: str) -> None:
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from . import plotting

    fig, axes = plt.subplots(2, 2, figsize=(12, 9), constrained_layout=True)
    unobserved = analysis.dag.unobserved(analysis.baseline + (analysis.outcome,))
    plotting.draw_dag(analysis.dag, unobserved=unobserved, ax=axes[0, 0])
    plotting.plot_coefficients(analysis.coefficients, ax=axes[0, 1])
    if analysis.experiment is not None:
        plotting.plot_predictions(analysis.experiment, ax=axes[1, 0])
        plotting.plot_metrics(analysis.experiment.metrics, analysis.experiment.config.metric, ax=axes[1, 1])
    else:
        axes[1, 0].set_axis_off()
        axes[1, 1].set_axis_off()
    fig.savefig(path)
    plt.close(fig)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.example == "happiness" and args.n is not None:
        parser.error("--n only applies to the family example")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = ExperimentConfig(
            seed=args.seed if args.seed is not None else 1,
            folds=args.folds,
            metric=args.metric,
            n_jobs=args.n_jobs,
        )
    except InvalidParameter as exc:
        parser.error(str(exc))
    predict = not args.no_predict
    if args.example == "family":
        seed = args.seed if args.seed is not None else 1
        n = args.n if args.n is not None else 4000
        if n <= 0:
            parser.error(f"--n must be positive, got {n}")
        analysis = family_analysis(n=n, seed=seed, config=config, predict=predict)
    else:
        seed = args.seed if args.seed is not None else 1977
        analysis = happiness_analysis(seed=seed, config=config, predict=predict)

    print(analysis.summary())
    print(analysis.explain())

    if args.plot:
        _save_figure(analysis, args.plot)
        print(f"Figure saved to {args.plot}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
