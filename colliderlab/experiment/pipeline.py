from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import GridSearchCV, KFold, train_test_split
from sklearn.pipeline import Pipeline

from .._exceptions import FittingFailure, InvalidParameter
from ..config import LOWER_IS_BETTER, METRICS, ExperimentConfig
from .models import FeatureSet, ModelSpec, build_recipe, default_models

logger = logging.getLogger(__name__)

# scikit-learn scorers are "greater is better", so error metrics come back negated.
_SCORERS = {
    "rmse": "neg_root_mean_squared_error",
    "rsq": "r2",
    "mae": "neg_mean_absolute_error",
}


def _score_to_metric(metric: str, score: float) -> float:
    return -score if LOWER_IS_BETTER[metric] else score


def regression_metrics(truth, prediction) -> dict[str, float]:
    """RMSE, R² and MAE of ``prediction`` against ``truth``."""
    return {
        "rmse": float(np.sqrt(mean_squared_error(truth, prediction))),
        "rsq": float(r2_score(truth, prediction)),
        "mae": float(mean_absolute_error(truth, prediction)),
    }


class WorkflowResult:
    """
    One tuned, refitted and evaluated (feature set, model) combination.
    """

    def __init__(
        self,
        wflow_id: str,
        features: FeatureSet,
        model: ModelSpec,
        search: GridSearchCV,
        metric: str,
        test_metrics: dict[str, float],
        predictions: pd.DataFrame,
    ) -> None:
        self.wflow_id = wflow_id
        self.features = features
        self.model = model
        self._search = search
        self._metric = metric
        self.test_metrics = test_metrics
        self.predictions = predictions

    @property
    def feature_set(self) -> str:
        return self.features.name

    @property
    def model_name(self) -> str:
        return self.model.name

    @property
    def best_params(self) -> dict:
        """Winning grid point, with the pipeline step prefix stripped."""
        return {key.split("__", 1)[1]: value for key, value in self._search.best_params_.items()}

    @property
    def best_cv_score(self) -> float:
        """Mean cross-validated value of the selection metric at the best grid point."""
        return _score_to_metric(self._metric, float(self._search.best_score_))

    @property
    def cv_metrics(self) -> dict[str, float]:
        """Mean cross-validated value of every metric at the best grid point."""
        i = self._search.best_index_
        results = self._search.cv_results_
        return {
            metric: _score_to_metric(metric, float(results[f"mean_test_{metric}"][i]))
            for metric in METRICS
        }

    @property
    def cv_results(self) -> pd.DataFrame:
        """Every grid point with its mean and std per metric, errors reported as positive values."""
        results = self._search.cv_results_
        table = pd.DataFrame(results["params"]).rename(columns=lambda c: c.split("__", 1)[1])
        for metric in METRICS:
            sign = -1.0 if LOWER_IS_BETTER[metric] else 1.0
            table[f"mean_{metric}"] = sign * np.asarray(results[f"mean_test_{metric}"])
            table[f"std_{metric}"] = np.asarray(results[f"std_test_{metric}"])
        table["rank"] = results[f"rank_test_{self._metric}"]
        return table.sort_values("rank").reset_index(drop=True)

    @property
    def pipeline(self) -> Pipeline:
        """The recipe refitted on the whole training set with the best parameters."""
        return self._search.best_estimator_

    def coefficients(self) -> pd.Series:
        """
        Learned coefficients of a linear model, indexed by predictor.

        Predictors are standardised when the model scales its inputs, so the
        values are per standard deviation of each predictor.

        Raises
        ------
        TypeError
            If the model has no ``coef_`` (e.g. gradient-boosted trees).
        """
        estimator = self.pipeline.named_steps["model"]
        if not hasattr(estimator, "coef_"):
            raise TypeError(f"Model '{self.model_name}' has no linear coefficients.")
        names = self.pipeline.named_steps["prep"].get_feature_names_out()
        return pd.Series(np.ravel(estimator.coef_), index=list(names), name=self.wflow_id)

    def __repr__(self) -> str:
        scores = ", ".join(f"{m}={self.test_metrics[m]:.4f}" for m in METRICS)
        return f"WorkflowResult({self.wflow_id!r}, {scores})"


class ExperimentResult:
    """
    Everything produced by :func:`run_experiment`.

    Metric and prediction tables are in long format, one row per workflow and
    metric (or test row), so they can be filtered, pivoted and plotted
    directly.
    """

    def __init__(
        self,
        outcome: str,
        config: ExperimentConfig,
        workflows: dict[str, WorkflowResult],
        failures: list[FittingFailure],
        n_train: int,
        n_test: int,
    ) -> None:
        self.outcome = outcome
        self.config = config
        self._workflows = workflows
        self._failures = failures
        self.n_train = n_train
        self.n_test = n_test

    @property
    def workflows(self) -> dict[str, WorkflowResult]:
        """Successful workflows by id, in the order they were run."""
        return dict(self._workflows)

    @property
    def failures(self) -> list[FittingFailure]:
        """Workflows that could not be fitted, excluded from every table."""
        return list(self._failures)

    def __getitem__(self, wflow_id: str) -> WorkflowResult:
        return self._workflows[wflow_id]

    def _long_metrics(self, source: str) -> pd.DataFrame:
        rows = []
        for wf in self._workflows.values():
            values = wf.test_metrics if source == "test" else wf.cv_metrics
            for metric in METRICS:
                rows.append({
                    "wflow_id": wf.wflow_id,
                    "feature_set": wf.feature_set,
                    "model": wf.model_name,
                    "metric": metric,
                    "estimate": values[metric],
                })
        return pd.DataFrame(rows, columns=["wflow_id", "feature_set", "model", "metric", "estimate"])

    @property
    def metrics(self) -> pd.DataFrame:
        """Held-out test metrics: ``wflow_id, feature_set, model, metric, estimate``."""
        return self._long_metrics("test")

    @property
    def cv_metrics(self) -> pd.DataFrame:
        """Cross-validated metrics at each workflow's best grid point, same layout as ``metrics``."""
        return self._long_metrics("cv")

    @property
    def predictions(self) -> pd.DataFrame:
        """Test-set predictions: ``wflow_id, feature_set, model, row, truth, prediction``."""
        frames = [wf.predictions for wf in self._workflows.values()]
        if not frames:
            return pd.DataFrame(columns=["wflow_id", "feature_set", "model", "row", "truth", "prediction"])
        return pd.concat(frames, ignore_index=True)

    def summary(self) -> str:
        lines = [
            "",
            f"Experiment: predicting {self.outcome}",
            "─" * 50,
            f"  Train rows / test rows : {self.n_train} / {self.n_test}",
            f"  CV folds               : {self.config.folds}  (seed {self.config.seed})",
            f"  Selection metric       : {self.config.metric}",
            "",
            f"  {'workflow':<32}" + "".join(f"{m:>10}" for m in METRICS),
        ]
        for wf in self._workflows.values():
            lines.append(
                f"  {wf.wflow_id:<32}" + "".join(f"{wf.test_metrics[m]:>10.4f}" for m in METRICS)
            )
        if self._failures:
            lines.append("")
            lines.append(f"  {len(self._failures)} workflow(s) failed and were excluded:")
            for failure in self._failures:
                lines.append(f"    {failure}")
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()


def _split(data: pd.DataFrame, config: ExperimentConfig) -> tuple[pd.DataFrame, pd.DataFrame]:
    stratify = None
    if config.strata is not None:
        if config.strata not in data.columns:
            raise InvalidParameter(f"Strata column '{config.strata}' not found in dataframe.")
        stratify = data[config.strata]
    return train_test_split(
        data, test_size=config.test_size, random_state=config.seed, stratify=stratify
    )


def _fit_workflow(
    wflow_id: str,
    features: FeatureSet,
    model: ModelSpec,
    train: pd.DataFrame,
    test: pd.DataFrame,
    outcome: str,
    folds: KFold,
    config: ExperimentConfig,
) -> WorkflowResult:
    search = GridSearchCV(
        build_recipe(features, model),
        param_grid=model.pipeline_grid(),
        scoring=_SCORERS,
        refit=config.metric,
        cv=folds,
        n_jobs=config.n_jobs,
        error_score=np.nan,
    )
    search.fit(train, train[outcome])

    if not np.isfinite(search.best_score_):
        raise FittingFailure(wflow_id, "every grid point failed during cross-validation")

    prediction = search.predict(test)
    truth = test[outcome].to_numpy()
    predictions = pd.DataFrame({
        "wflow_id": wflow_id,
        "feature_set": features.name,
        "model": model.name,
        "row": test.index,
        "truth": truth,
        "prediction": prediction,
    })
    return WorkflowResult(
        wflow_id,
        features,
        model,
        search,
        config.metric,
        regression_metrics(truth, prediction),
        predictions,
    )


def run_experiment(
    data: pd.DataFrame,
    outcome: str,
    feature_sets: Sequence[FeatureSet],
    config: ExperimentConfig | None = None,
    models: Sequence[ModelSpec] | None = None,
) -> ExperimentResult:
    """
    Tune, refit and evaluate every model on every feature set.

    The data is split once into train and test sets, and the training set
    once into cross-validation folds; every workflow sees the same
    partitions. For each workflow the whole grid is scored on every fold,
    the best grid point (by ``config.metric``) is refitted on the full
    training set, and the refitted pipeline is evaluated on the test set.

    Parameters
    ----------
    data : pd.DataFrame
        Must contain the outcome and every column of every feature set.
    outcome : str
        Column to predict.
    feature_sets : sequence of FeatureSet
        Variable sets to compare, typically a baseline and one that adds the
        collider or confounder.
    config : ExperimentConfig, optional
        Split, fold and selection settings. Defaults to ``ExperimentConfig()``.
    models : sequence of ModelSpec, optional
        Defaults to :func:`default_models` seeded with ``config.seed``.

    Raises
    ------
    InvalidParameter
        If the outcome or a feature column is missing, or feature set or
        model names are not unique enough to give every workflow its own id.
    FittingFailure
        If every workflow fails. Individual failures are logged and listed
        on ``ExperimentResult.failures`` instead.
    """
    config = config or ExperimentConfig()
    models = list(models) if models is not None else default_models(config.seed)

    if outcome not in data.columns:
        raise InvalidParameter(f"Outcome column '{outcome}' not found in dataframe.")
    if not feature_sets:
        raise InvalidParameter("At least one feature set is required.")
    names = [fs.name for fs in feature_sets]
    if len(set(names)) != len(names):
        raise InvalidParameter(f"Feature set names must be unique, got {names}.")
    model_names = [m.name for m in models]
    if len(set(model_names)) != len(model_names):
        raise InvalidParameter(f"Model names must be unique, got {model_names}.")
    wflow_ids = [f"{fs}_{m}" for fs in names for m in model_names]
    if len(set(wflow_ids)) != len(wflow_ids):
        raise InvalidParameter(
            f"Feature set and model names combine into duplicate workflow ids: {wflow_ids}"
        )
    for features in feature_sets:
        features.validate(data, outcome)

    train, test = _split(data, config)
    folds = KFold(n_splits=config.folds, shuffle=True, random_state=config.seed)
    logger.info(
        "Running %d workflow(s) on %d train / %d test rows, %d folds",
        len(feature_sets) * len(models), len(train), len(test), config.folds,
    )

    workflows: dict[str, WorkflowResult] = {}
    failures: list[FittingFailure] = []
    for features in feature_sets:
        for model in models:
            wflow_id = f"{features.name}_{model.name}"
            try:
                result = _fit_workflow(wflow_id, features, model, train, test, outcome, folds, config)
            except FittingFailure as exc:
                logger.warning("Workflow %s failed: %s", wflow_id, exc)
                failures.append(exc)
                continue
            except Exception as exc:
                logger.warning("Workflow %s failed: %s", wflow_id, exc)
                failures.append(FittingFailure(wflow_id, str(exc), cause=exc))
                continue
            logger.info(
                "Workflow %s: best %s, test %s=%.4f",
                wflow_id, result.best_params, config.metric, result.test_metrics[config.metric],
            )
            workflows[wflow_id] = result

    if not workflows:
        raise FittingFailure("all", f"none of the {len(failures)} workflow(s) could be fitted")

    return ExperimentResult(outcome, config, workflows, failures, len(train), len(test))
