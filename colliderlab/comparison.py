from __future__ import annotations

import pandas as pd

from ._exceptions import InvalidParameter
from .config import LOWER_IS_BETTER, METRICS


def _check_metric(metric: str) -> None:
    if metric not in LOWER_IS_BETTER:
        raise InvalidParameter(f"Unknown metric '{metric}'. Choose one of: {', '.join(METRICS)}.")


def rank_workflows(metrics: pd.DataFrame, metric: str = "rmse") -> pd.DataFrame:
    """
    Order workflows from best to worst on one metric.

    Parameters
    ----------
    metrics : pd.DataFrame
        Long metric table as produced by ``ExperimentResult.metrics``.
    metric : str
        ``rmse`` and ``mae`` rank ascending, ``rsq`` descending.

    Returns
    -------
    pd.DataFrame
        ``rank, wflow_id, feature_set, model, estimate``, best first.
    """
    _check_metric(metric)
    table = metrics.loc[metrics["metric"] == metric, ["wflow_id", "feature_set", "model", "estimate"]]
    table = table.sort_values("estimate", ascending=LOWER_IS_BETTER[metric], kind="mergesort")
    table = table.reset_index(drop=True)
    table.insert(0, "rank", range(1, len(table) + 1))
    return table


def compare_feature_sets(metrics: pd.DataFrame, baseline: str, alternative: str) -> pd.DataFrame:
    """
    Put each model's scores on two feature sets side by side.

    Returns one row per (model, metric) fitted on both feature sets, with
    ``difference = alternative - baseline`` and ``improved`` telling whether
    the alternative set scored better (lower error, or higher R²). Models
    that failed on either feature set are left out.
    """
    if baseline == alternative:
        raise InvalidParameter(f"Cannot compare feature set '{baseline}' with itself.")
    available = set(metrics["feature_set"])
    for name in (baseline, alternative):
        if name not in available:
            raise InvalidParameter(
                f"Feature set '{name}' has no metrics. Known feature sets: {sorted(available)}"
            )

    wide = metrics.pivot_table(
        index=["model", "metric"], columns="feature_set", values="estimate", aggfunc="first"
    )
    table = wide[[baseline, alternative]].dropna().reset_index()
    table.columns.name = None
    table = table.rename(columns={baseline: "baseline", alternative: "alternative"})
    table["difference"] = table["alternative"] - table["baseline"]
    lower = table["metric"].map(LOWER_IS_BETTER).astype(bool)
    table["improved"] = (lower & (table["difference"] < 0)) | (~lower & (table["difference"] > 0))
    order = {m: i for i, m in enumerate(METRICS)}
    return table.sort_values(
        ["model", "metric"], key=lambda col: col.map(order) if col.name == "metric" else col
    ).reset_index(drop=True)


class ComparisonReport:
    """
    Baseline versus alternative feature set, across every model.

    Example::

        report = ComparisonReport(result.metrics, "baseline", "with_confounder")
        print(report.summary())
    """

    def __init__(self, metrics: pd.DataFrame, baseline: str, alternative: str, metric: str = "rmse") -> None:
        _check_metric(metric)
        self._baseline = baseline
        self._alternative = alternative
        self._metric = metric
        self._table = compare_feature_sets(metrics, baseline, alternative)
        self._ranking = rank_workflows(metrics, metric)

    @property
    def table(self) -> pd.DataFrame:
        """Output of :func:`compare_feature_sets`."""
        return self._table.copy()

    @property
    def ranking(self) -> pd.DataFrame:
        """Output of :func:`rank_workflows` on the report metric."""
        return self._ranking.copy()

    @property
    def best(self) -> str:
        """Id of the top-ranked workflow."""
        return str(self._ranking.iloc[0]["wflow_id"])

    def improved(self, metric: str | None = None) -> bool:
        """
        ``True`` if the alternative set is at least as good for every model on
        ``metric``. ``False`` when no model was fitted on both feature sets.
        """
        metric = metric or self._metric
        _check_metric(metric)
        rows = self._table[self._table["metric"] == metric]
        if rows.empty:
            return False
        lower = LOWER_IS_BETTER[metric]
        diff = rows["difference"]
        return bool((diff <= 0).all() if lower else (diff >= 0).all())

    def summary(self) -> str:
        lines = [
            "",
            f"Feature set comparison: {self._baseline} vs {self._alternative}",
            "─" * 50,
            f"  {'model':<16}{'metric':<8}{'baseline':>12}{'alternative':>13}{'diff':>10}",
        ]
        for row in self._table.itertuples(index=False):
            mark = "better" if row.improved else ""
            lines.append(
                f"  {row.model:<16}{row.metric:<8}{row.baseline:>12.4f}"
                f"{row.alternative:>13.4f}{row.difference:>+10.4f}  {mark}"
            )
        lines += ["", f"  Ranking by {self._metric}:"]
        for row in self._ranking.itertuples(index=False):
            lines.append(f"    {row.rank}. {row.wflow_id:<32}{row.estimate:>10.4f}")
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()
