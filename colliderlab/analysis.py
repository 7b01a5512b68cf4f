"""
The two textbook analyses, end to end.

Each function simulates its dataset, compares OLS coefficients with and
without the extra variable, then runs the predictive experiment on both
feature sets::

    analysis = family_analysis(n=4000, seed=1)
    print(analysis.explain())
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from ._explain import explain_analysis
from .coefficients import CoefficientComparison, compare_coefficients
from .comparison import ComparisonReport
from .config import ExperimentConfig
from .dag import DAG
from .experiment import ExperimentResult, FeatureSet, ModelSpec, run_experiment
from .simulation import FamilyParams, adults, family_dag, family_set, happiness_dag, sim_happiness

logger = logging.getLogger(__name__)


class Analysis:
    """
    One dataset analysed with two feature sets.

    ``experiment`` and ``comparison`` are ``None`` when the analysis was run
    with ``predict=False``.
    """

    def __init__(
        self,
        title: str,
        data: pd.DataFrame,
        dag: DAG,
        outcome: str,
        baseline: Sequence[str],
        alternative: Sequence[str],
        truth: dict[str, float],
        coefficients: CoefficientComparison,
        experiment: ExperimentResult | None = None,
        comparison: ComparisonReport | None = None,
    ) -> None:
        self.title = title
        self.data = data
        self.dag = dag
        self.outcome = outcome
        self.baseline = tuple(baseline)
        self.alternative = tuple(alternative)
        self.truth = truth
        self.coefficients = coefficients
        self.experiment = experiment
        self.comparison = comparison

    def explain(self) -> str:
        """Plain-language walkthrough of the graph, the coefficients and the predictions."""
        return explain_analysis(self)

    def summary(self) -> str:
        parts = [self.coefficients.summary()]
        if self.experiment is not None:
            parts.append(self.experiment.summary())
        if self.comparison is not None:
            parts.append(self.comparison.summary())
        return "\n".join(parts)

    def __repr__(self) -> str:
        return self.summary()


def _run(
    title: str,
    data: pd.DataFrame,
    dag: DAG,
    outcome: str,
    baseline: Sequence[str],
    alternative: Sequence[str],
    truth: dict[str, float],
    config: ExperimentConfig | None,
    models: Sequence[ModelSpec] | None,
    predict: bool,
) -> Analysis:
    coefficients = compare_coefficients(data, outcome, baseline, alternative)
    experiment = comparison = None
    if predict:
        config = config or ExperimentConfig()
        feature_sets = [FeatureSet("baseline", baseline), FeatureSet("with_confounder", alternative)]
        experiment = run_experiment(data, outcome, feature_sets, config=config, models=models)
        fitted = set(experiment.metrics["feature_set"])
        if {"baseline", "with_confounder"} <= fitted:
            comparison = ComparisonReport(experiment.metrics, "baseline", "with_confounder", metric=config.metric)
        else:
            logger.warning(
                "No model could be fitted on the %s feature set; skipping the comparison",
                " or ".join(sorted({"baseline", "with_confounder"} - fitted)),
            )
    return Analysis(title, data, dag, outcome, baseline, alternative, truth, coefficients, experiment, comparison)


def family_analysis(
    n: int = 4000,
    params: FamilyParams | None = None,
    seed: int = 1,
    config: ExperimentConfig | None = None,
    models: Sequence[ModelSpec] | None = None,
    predict: bool = True,
) -> Analysis:
    """
    Grandparents, parents and children with an unmeasured neighbourhood.

    Compares ``C ~ P + G`` with ``C ~ P + G + U``.
    """
    params = params or FamilyParams()
    data = family_set(n=n, seed=seed, **params.as_dict())
    logger.info("Simulated %d families with %s", n, params)
    return _run(
        "Haunted DAG: education across three generations",
        data,
        family_dag(),
        "C",
        ["P", "G"],
        ["P", "G", "U"],
        {"P": params.b_PC, "G": params.b_GC},
        config,
        models,
        predict,
    )


def happiness_analysis(
    seed: int = 1977,
    n_years: int = 1000,
    aom: int = 18,
    config: ExperimentConfig | None = None,
    models: Sequence[ModelSpec] | None = None,
    predict: bool = True,
) -> Analysis:
    """
    Age, marriage and happiness among adults.

    Compares ``happiness ~ age`` with ``happiness ~ age + married``. Age has
    no effect on happiness in the simulation.
    """
    data = adults(sim_happiness(seed=seed, n_years=n_years, aom=aom), aom=aom)
    logger.info("Simulated %d adults", len(data))
    return _run(
        "Happiness, age and marriage",
        data,
        happiness_dag(),
        "happiness",
        ["age"],
        ["age", "married"],
        {"age": 0.0},
        config,
        models,
        predict,
    )
