"""
matplotlib figures for the two collider examples.

Every function draws onto ``ax`` when given one, otherwise onto a fresh
figure, and returns the axes so callers can keep styling or save them.
"""
from __future__ import annotations

import math
from collections.abc import Iterable

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ._exceptions import InvalidParameter
from .coefficients import CoefficientComparison, fit_ols
from .comparison import rank_workflows
from .dag import DAG


def _axes(ax):
    if ax is not None:
        return ax
    fig = plt.figure(constrained_layout=True)
    return fig.add_subplot()


def _layout(dag: DAG) -> dict[str, tuple[float, float]]:
    positions = dag.coordinates
    missing = sorted(dag.nodes - set(positions))
    for i, node in enumerate(missing):
        angle = 2 * math.pi * i / len(missing)
        positions[node] = (math.cos(angle), math.sin(angle))
    return positions


def draw_dag(dag: DAG, unobserved: Iterable[str] = (), ax=None):
    """
    Draw the graph with nodes at their placed coordinates.

    Nodes without coordinates are spread on a unit circle. Nodes listed in
    ``unobserved`` are drawn circled.
    """
    if not dag.edges:
        raise InvalidParameter("Cannot draw an empty DAG.")
    ax = _axes(ax)
    positions = _layout(dag)
    hidden = set(unobserved)

    for cause, effect in dag.edges:
        ax.annotate(
            "",
            xy=positions[effect],
            xytext=positions[cause],
            arrowprops=dict(arrowstyle="-|>", color="k", lw=1.2, shrinkA=12, shrinkB=12),
        )
    for node, (x, y) in positions.items():
        bbox = dict(boxstyle="circle", fc="white", ec="k") if node in hidden else None
        ax.text(x, y, node, ha="center", va="center", fontsize=14, bbox=bbox)

    xs = [p[0] for p in positions.values()]
    ys = [p[1] for p in positions.values()]
    ax.set_xlim(min(xs) - 0.3, max(xs) + 0.3)
    ax.set_ylim(min(ys) - 0.3, max(ys) + 0.3)
    ax.set_axis_off()
    return ax


def plot_predictions(result, ax=None):
    """Predicted versus actual test values for every workflow of an experiment."""
    ax = _axes(ax)
    predictions = result.predictions
    for i, (wflow_id, group) in enumerate(predictions.groupby("wflow_id", sort=False)):
        ax.scatter(group["truth"], group["prediction"], s=12, alpha=0.5, color=f"C{i}", label=wflow_id)

    lo = float(min(predictions["truth"].min(), predictions["prediction"].min()))
    hi = float(max(predictions["truth"].max(), predictions["prediction"].max()))
    ax.plot([lo, hi], [lo, hi], color="k", lw=1, ls="--")
    ax.set(xlabel=f"observed {result.outcome}", ylabel=f"predicted {result.outcome}",
           title="Held-out predictions")
    ax.legend()
    return ax


def plot_coefficients(comparison: CoefficientComparison, ax=None):
    """Estimates ± 2 sd for both predictor sets, one row per predictor."""
    ax = _axes(ax)
    table = comparison.table
    y = np.arange(len(table))
    for offset, column, color in [(-0.12, "baseline", "C0"), (0.12, "alternative", "C1")]:
        fit = getattr(comparison, column)
        ax.errorbar(
            table[column], y + offset, xerr=2 * table[f"{column}_sd"],
            fmt="o", color=color, capsize=3, label=fit.formula,
        )
    ax.axvline(0, color="k", lw=1, ls=":")
    ax.set_yticks(y)
    ax.set_yticklabels(table.index)
    ax.set(xlabel="coefficient", title="Coefficients with and without the extra variable")
    ax.legend()
    return ax


def plot_metrics(metrics: pd.DataFrame, metric: str = "rmse", ax=None):
    """Bar chart of one test metric per workflow, best first."""
    ax = _axes(ax)
    ranking = rank_workflows(metrics, metric)
    colors = [f"C{sorted(set(ranking['feature_set'])).index(fs)}" for fs in ranking["feature_set"]]
    ax.bar(ranking["wflow_id"], ranking["estimate"], color=colors)
    ax.set(ylabel=metric, title=f"Test {metric} by workflow")
    ax.tick_params(axis="x", labelrotation=30)
    return ax


def plot_haunted(data: pd.DataFrame, band: tuple[float, float] = (0.45, 0.60), ax=None):
    """
    Grandparents' versus children's education, coloured by neighbourhood.

    Parents inside the ``band`` percentiles are filled in, and the line is
    the regression of C on G among just those families: selecting on the
    collider P makes G look harmful.
    """
    ax = _axes(ax)
    good = data["U"] == 1
    lo, hi = np.quantile(data["P"], band)
    mid = (data["P"] >= lo) & (data["P"] <= hi)

    ax.scatter(data.loc[good, "G"], data.loc[good, "C"], facecolors="none", edgecolors="C0", alpha=0.6)
    ax.scatter(data.loc[~good, "G"], data.loc[~good, "C"], facecolors="none", edgecolors="k", alpha=0.6)
    ax.scatter(data.loc[good & mid, "G"], data.loc[good & mid, "C"], c="C0", alpha=0.8,
               label="good neighbourhoods")
    ax.scatter(data.loc[~good & mid, "G"], data.loc[~good & mid, "C"], c="k", alpha=0.8,
               label="bad neighbourhoods")

    fit = fit_ols(data.loc[mid], "C", ["G"])
    ax.axline((0, fit.coef["Intercept"]), slope=fit.coef["G"], color="k", lw=1)
    ax.set(
        title=f"Parents in the {band[0]:.0%} to {band[1]:.0%} percentiles",
        xlabel="grandparent education (G)",
        ylabel="child education (C)",
    )
    ax.legend()
    return ax
