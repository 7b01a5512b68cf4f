from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd
from sklearn.base import BaseEstimator, clone
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.linear_model import ElasticNet
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from .._exceptions import InvalidParameter


@dataclass(frozen=True)
class FeatureSet:
    """
    A named list of predictor columns.

    An experiment compares two of these, typically one without and one with
    the collider or confounder::

        FeatureSet("baseline", ["P", "G"])
        FeatureSet("with_confounder", ["P", "G", "U"])
    """

    name: str
    columns: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        if not self.name:
            raise InvalidParameter("A feature set needs a non-empty name.")
        if not self.columns:
            raise InvalidParameter(f"Feature set '{self.name}' has no columns.")
        if len(set(self.columns)) != len(self.columns):
            raise InvalidParameter(f"Feature set '{self.name}' lists a column twice: {list(self.columns)}")

    def validate(self, data: pd.DataFrame, outcome: str) -> None:
        """Check the columns exist in ``data`` and do not include the outcome."""
        missing = [c for c in self.columns if c not in data.columns]
        if missing:
            raise InvalidParameter(
                f"Feature set '{self.name}' uses columns not found in the dataframe: {missing}"
            )
        if outcome in self.columns:
            raise InvalidParameter(
                f"Feature set '{self.name}' includes the outcome '{outcome}' as a predictor."
            )


@dataclass(frozen=True)
class ModelSpec:
    """
    One model to train on every feature set, with the grid to tune over.

    ``param_grid`` keys are estimator parameter names; they are prefixed with
    the pipeline step name when handed to ``GridSearchCV``.
    """

    name: str
    estimator: BaseEstimator
    param_grid: dict[str, Sequence[Any]] = field(default_factory=dict)
    scale: bool = True
    """Standardise the predictors before fitting."""

    def pipeline_grid(self) -> dict[str, list[Any]]:
        return {f"model__{key}": list(values) for key, values in self.param_grid.items()}


def build_recipe(features: FeatureSet, model: ModelSpec) -> Pipeline:
    """
    Preprocessing plus model as one scikit-learn pipeline.

    The ``prep`` step keeps only the feature set's columns (scaling them when
    ``model.scale`` is set); everything else in the frame is dropped, so the
    same training frame can be fed to every workflow.
    """
    transformer = StandardScaler() if model.scale else "passthrough"
    prep = ColumnTransformer(
        [("features", transformer, list(features.columns))],
        remainder="drop",
        verbose_feature_names_out=False,
    )
    return Pipeline([("prep", prep), ("model", clone(model.estimator))])


def default_models(seed: int | None = 1) -> list[ModelSpec]:
    """
    The two models compared in every experiment: a penalised linear
    regression and gradient-boosted trees, each with a small grid.
    """
    return [
        ModelSpec(
            name="linear",
            estimator=ElasticNet(max_iter=10_000),
            param_grid={
                "alpha": [1e-4, 1e-3, 1e-2, 1e-1],
                "l1_ratio": [0.1, 0.5, 1.0],
            },
            scale=True,
        ),
        ModelSpec(
            name="boosted_trees",
            estimator=GradientBoostingRegressor(random_state=seed),
            param_grid={
                "n_estimators": [100, 300],
                "max_depth": [1, 2, 3],
                "learning_rate": [0.05, 0.1],
            },
            scale=False,
        ),
    ]
