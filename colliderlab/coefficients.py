"""
Coefficient inspection: what the regression *believes* about each cause.

Predictive accuracy can improve when a collider is added to a model even
though the coefficients become causally wrong. These helpers fit plain OLS
with statsmodels so the estimates can be read next to the values used to
simulate the data.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence

import pandas as pd
import statsmodels.formula.api as smf

from ._exceptions import InvalidParameter

_PRECIS_ALPHA = 0.11  # 89% intervals, as in the book


class CoefficientFit:
    """
    An OLS fit of one outcome on a set of predictors.
    """

    def __init__(self, result, outcome: str, predictors: tuple[str, ...]) -> None:
        self._result = result
        self._outcome = outcome
        self._predictors = predictors

    @property
    def outcome(self) -> str:
        return self._outcome

    @property
    def predictors(self) -> tuple[str, ...]:
        return self._predictors

    @property
    def formula(self) -> str:
        return f"{self._outcome} ~ {' + '.join(self._predictors)}"

    @property
    def coef(self) -> pd.Series:
        """Point estimates, including ``Intercept``."""
        return self._result.params.copy()

    @property
    def std_err(self) -> pd.Series:
        return self._result.bse.copy()

    def conf_int(self, level: float = 0.89) -> pd.DataFrame:
        """Lower and upper interval bounds per coefficient."""
        if not 0 < level < 1:
            raise InvalidParameter(f"'level' must be between 0 and 1, got {level}.")
        ci = self._result.conf_int(alpha=1 - level)
        ci.columns = ["lower", "upper"]
        return ci

    @property
    def rsquared(self) -> float:
        return float(self._result.rsquared)

    @property
    def sigma(self) -> float:
        """Residual standard deviation."""
        return float(self._result.mse_resid ** 0.5)

    @property
    def statsmodels_result(self):
        """The underlying statsmodels result, for full diagnostics."""
        return self._result

    def precis(self) -> pd.DataFrame:
        """Compact table of mean, sd and the 89% interval per coefficient."""
        ci = self._result.conf_int(alpha=_PRECIS_ALPHA)
        return pd.DataFrame({
            "mean": self._result.params,
            "sd": self._result.bse,
            "5.5%": ci[0],
            "94.5%": ci[1],
        })

    def summary(self) -> str:
        table = self.precis()
        lines = [
            "",
            f"OLS: {self.formula}",
            "─" * 50,
            f"  {'':<12}{'mean':>10}{'sd':>10}{'5.5%':>10}{'94.5%':>10}",
        ]
        for name, row in table.iterrows():
            lines.append(
                f"  {name:<12}{row['mean']:>10.4f}{row['sd']:>10.4f}"
                f"{row['5.5%']:>10.4f}{row['94.5%']:>10.4f}"
            )
        lines += [
            "",
            f"  sigma        : {self.sigma:.4f}",
            f"  R²           : {self.rsquared:.4f}",
            "",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()


def fit_ols(data: pd.DataFrame, outcome: str, predictors: Sequence[str]) -> CoefficientFit:
    """
    Regress ``outcome`` on ``predictors`` with an intercept.

    Raises
    ------
    InvalidParameter
        If a column is missing, no predictors are given, or the outcome is
        among the predictors.
    """
    predictors = tuple(predictors)
    if not predictors:
        raise InvalidParameter("At least one predictor is required.")
    if outcome in predictors:
        raise InvalidParameter(f"Outcome '{outcome}' cannot also be a predictor.")
    missing = [c for c in (outcome, *predictors) if c not in data.columns]
    if missing:
        raise InvalidParameter(f"Columns not found in dataframe: {missing}")

    result = smf.ols(f"{outcome} ~ {' + '.join(predictors)}", data=data).fit()
    return CoefficientFit(result, outcome, predictors)


class CoefficientComparison:
    """
    The same outcome regressed on two predictor sets.

    ``table`` has one row per predictor appearing in either fit; a predictor
    absent from one fit has ``NaN`` in that fit's columns.
    """

    def __init__(self, baseline: CoefficientFit, alternative: CoefficientFit) -> None:
        self.baseline = baseline
        self.alternative = alternative

    @property
    def table(self) -> pd.DataFrame:
        names = list(dict.fromkeys([*self.baseline.predictors, *self.alternative.predictors]))
        base, alt = self.baseline.precis(), self.alternative.precis()
        return pd.DataFrame({
            "baseline": base["mean"].reindex(names),
            "baseline_sd": base["sd"].reindex(names),
            "alternative": alt["mean"].reindex(names),
            "alternative_sd": alt["sd"].reindex(names),
        })

    def shift(self, predictor: str) -> float:
        """How far ``predictor``'s estimate moves from the baseline fit to the alternative."""
        row = self.table.loc[predictor]
        return float(row["alternative"] - row["baseline"])

    def summary(self) -> str:
        lines = [
            "",
            f"Coefficients: {self.baseline.formula}  vs  {self.alternative.formula}",
            "─" * 50,
            f"  {'':<12}{'baseline':>12}{'alternative':>14}",
        ]
        for name, row in self.table.iterrows():
            b = "—" if pd.isna(row["baseline"]) else f"{row['baseline']:.4f}"
            a = "—" if pd.isna(row["alternative"]) else f"{row['alternative']:.4f}"
            lines.append(f"  {name:<12}{b:>12}{a:>14}")
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()


def compare_coefficients(
    data: pd.DataFrame,
    outcome: str,
    baseline: Sequence[str],
    alternative: Sequence[str],
) -> CoefficientComparison:
    """Fit ``outcome`` on both predictor sets and line the coefficients up."""
    return CoefficientComparison(
        fit_ols(data, outcome, baseline),
        fit_ols(data, outcome, alternative),
    )


class RecoveryCheck:
    """Whether one true coefficient lies inside its estimated interval."""

    def __init__(self, name: str, passed: bool, detail: str) -> None:
        self.name = name
        self.passed = passed
        self.detail = detail

    def __repr__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"RecoveryCheck({status!r}, {self.name!r})"


class RecoveryReport:
    """
    Results of comparing a fit against the coefficients used to simulate
    the data.

    Obtain via :func:`check_recovery`::

        fit = fit_ols(df, "C", ["P", "G"])
        report = check_recovery(fit, {"P": 1.0, "G": 0.0})
        print(report.summary())
    """

    def __init__(self, checks: list[RecoveryCheck], formula: str, level: float) -> None:
        self._checks = checks
        self._formula = formula
        self._level = level

    @property
    def checks(self) -> list[RecoveryCheck]:
        """All checks, in the order the true coefficients were given."""
        return list(self._checks)

    @property
    def passed(self) -> bool:
        """``True`` if every true coefficient was recovered."""
        return all(c.passed for c in self._checks)

    @property
    def failed_checks(self) -> list[RecoveryCheck]:
        return [c for c in self._checks if not c.passed]

    def summary(self) -> str:
        lines = [
            "",
            f"Coefficient recovery ({self._level:.0%} intervals): {self._formula}",
            "─" * 50,
        ]
        for check in self._checks:
            status = "PASS" if check.passed else "FAIL"
            lines.append(f"  [{status}]  {check.name}: {check.detail}")
        lines.append("")
        if self.passed:
            lines.append("  Every true coefficient lies inside its interval.")
        else:
            n = len(self.failed_checks)
            lines.append(f"  {n} coefficient(s) not recovered: the estimate is biased.")
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()


def check_recovery(fit: CoefficientFit, truth: Mapping[str, float], level: float = 0.89) -> RecoveryReport:
    """
    Check each true coefficient against the fit's interval.

    Parameters
    ----------
    fit : CoefficientFit
    truth : mapping of predictor name to the value used in the simulation
    level : float
        Interval coverage, 0.89 by default.

    Raises
    ------
    InvalidParameter
        If ``truth`` names a predictor that is not in the fit.
    """
    ci = fit.conf_int(level)
    coef = fit.coef
    checks = []
    for name, value in truth.items():
        if name not in coef.index:
            raise InvalidParameter(f"'{name}' is not a coefficient of {fit.formula}.")
        lo, hi = float(ci.loc[name, "lower"]), float(ci.loc[name, "upper"])
        estimate = float(coef[name])
        passed = lo <= value <= hi
        detail = f"estimate {estimate:.4f}, interval [{lo:.4f}, {hi:.4f}], true {value:.4f}"
        checks.append(RecoveryCheck(name, passed, detail))
    return RecoveryReport(checks, fit.formula, level)
