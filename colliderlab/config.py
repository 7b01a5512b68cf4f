from __future__ import annotations

from dataclasses import dataclass

from ._exceptions import InvalidParameter

METRICS = ("rmse", "rsq", "mae")
"""Metrics collected for every workflow, in report order."""

LOWER_IS_BETTER = {"rmse": True, "rsq": False, "mae": True}


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Settings shared by every workflow in one experiment.

    The same ``seed`` drives the train/test split and the cross-validation
    folds, so the baseline and with-confounder feature sets are always
    scored on identical partitions.
    """

    seed: int = 1
    """Seed for the split, the folds and the stochastic models."""

    test_size: float = 0.2
    """Fraction of rows held out for the final evaluation."""

    folds: int = 5
    """Number of cross-validation folds used during the grid search."""

    metric: str = "rmse"
    """Metric used to pick the best grid point: one of ``rmse``, ``rsq``, ``mae``."""

    n_jobs: int | None = None
    """Passed to ``GridSearchCV``; ``-1`` uses every core."""

    strata: str | None = None
    """Optional column to stratify the train/test split on."""

    def __post_init__(self) -> None:
        if not 0 < self.test_size < 1:
            raise InvalidParameter(f"'test_size' must be between 0 and 1, got {self.test_size}.")
        if isinstance(self.folds, bool) or not isinstance(self.folds, int) or self.folds < 2:
            raise InvalidParameter(f"'folds' must be an integer of at least 2, got {self.folds!r}.")
        if self.metric not in METRICS:
            raise InvalidParameter(
                f"Unknown metric '{self.metric}'. Choose one of: {', '.join(METRICS)}."
            )
