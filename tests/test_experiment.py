import numpy as np
import pandas as pd
import pytest
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.linear_model import ElasticNet, LinearRegression

from colliderlab import (
    ExperimentConfig,
    FeatureSet,
    FittingFailure,
    InvalidParameter,
    ModelSpec,
    adults,
    default_models,
    family_set,
    run_experiment,
    sim_happiness,
)
from colliderlab.experiment import build_recipe

FAMILY_SETS = [FeatureSet("baseline", ["P", "G"]), FeatureSet("with_confounder", ["P", "G", "U"])]


class _Broken(RegressorMixin, BaseEstimator):
    """A regressor that can never be fitted."""

    def fit(self, X, y):
        raise RuntimeError("cannot fit")

    def predict(self, X):
        raise RuntimeError("cannot predict")


class _FailsOnOddRows(RegressorMixin, BaseEstimator):
    """Fits a constant, but refuses any training set with an odd number of rows."""

    def fit(self, X, y):
        if len(X) % 2:
            raise RuntimeError("odd number of rows")
        self.mean_ = float(np.mean(y))
        return self

    def predict(self, X):
        return np.full(len(X), self.mean_)


def small_models():
    return [
        ModelSpec("linear", ElasticNet(max_iter=10_000), {"alpha": [1e-4, 1e-2]}),
        ModelSpec(
            "boosted_trees",
            GradientBoostingRegressor(random_state=1),
            {"n_estimators": [100], "max_depth": [1, 2]},
            scale=False,
        ),
    ]


def make_data(n=1_000, seed=1):
    return family_set(n=n, seed=seed)


class TestFeatureSet:
    def test_columns_become_tuple(self):
        assert FeatureSet("a", ["P", "G"]).columns == ("P", "G")

    def test_empty_columns(self):
        with pytest.raises(InvalidParameter, match="no columns"):
            FeatureSet("a", [])

    def test_duplicate_columns(self):
        with pytest.raises(InvalidParameter, match="twice"):
            FeatureSet("a", ["P", "P"])

    def test_missing_column(self):
        with pytest.raises(InvalidParameter, match="not found"):
            FeatureSet("a", ["P", "X"]).validate(make_data(50), "C")

    def test_outcome_in_features(self):
        with pytest.raises(InvalidParameter, match="outcome"):
            FeatureSet("a", ["P", "C"]).validate(make_data(50), "C")


class TestRecipe:
    def test_selects_only_feature_columns(self):
        df = make_data(200)
        pipe = build_recipe(FeatureSet("a", ["P", "G"]), ModelSpec("ols", LinearRegression()))
        pipe.fit(df, df["C"])
        assert list(pipe.named_steps["prep"].get_feature_names_out()) == ["P", "G"]

    def test_scaling(self):
        df = make_data(200)
        pipe = build_recipe(FeatureSet("a", ["P", "G"]), ModelSpec("ols", LinearRegression()))
        scaled = pipe.named_steps["prep"].fit_transform(df)
        np.testing.assert_allclose(scaled.mean(axis=0), 0, atol=1e-10)
        np.testing.assert_allclose(scaled.std(axis=0), 1, atol=1e-10)

    def test_unscaled_passthrough(self):
        df = make_data(200)
        pipe = build_recipe(FeatureSet("a", ["P"]), ModelSpec("ols", LinearRegression(), scale=False))
        np.testing.assert_allclose(pipe.named_steps["prep"].fit_transform(df)[:, 0], df["P"])

    def test_default_models(self):
        models = default_models(seed=3)
        assert [m.name for m in models] == ["linear", "boosted_trees"]
        assert models[1].estimator.random_state == 3
        assert models[0].scale and not models[1].scale
        assert models[0].pipeline_grid()["model__alpha"] == [1e-4, 1e-3, 1e-2, 1e-1]


class TestConfig:
    def test_defaults(self):
        config = ExperimentConfig()
        assert (config.seed, config.test_size, config.folds, config.metric) == (1, 0.2, 5, "rmse")

    @pytest.mark.parametrize("kwargs, match", [
        ({"test_size": 0}, "test_size"),
        ({"test_size": 1.2}, "test_size"),
        ({"folds": 1}, "folds"),
        ({"metric": "auc"}, "Unknown metric"),
    ])
    def test_invalid(self, kwargs, match):
        with pytest.raises(InvalidParameter, match=match):
            ExperimentConfig(**kwargs)


class TestRunExperiment:
    def test_workflows_and_tables(self):
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), small_models())
        assert list(result.workflows) == [
            "baseline_linear", "baseline_boosted_trees",
            "with_confounder_linear", "with_confounder_boosted_trees",
        ]
        assert result.failures == []
        assert result.n_train == 800 and result.n_test == 200

        metrics = result.metrics
        assert list(metrics.columns) == ["wflow_id", "feature_set", "model", "metric", "estimate"]
        assert len(metrics) == 4 * 3
        assert set(metrics["metric"]) == {"rmse", "rsq", "mae"}
        assert (metrics.loc[metrics["metric"] == "rmse", "estimate"] > 0).all()
        assert len(result.cv_metrics) == 4 * 3

    def test_every_workflow_sees_the_same_test_rows(self):
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), small_models())
        rows = result.predictions.groupby("wflow_id")["row"].apply(lambda r: tuple(sorted(r)))
        assert rows.nunique() == 1
        assert len(result.predictions) == 4 * 200

    def test_same_seed_same_result(self):
        config = ExperimentConfig(folds=3, seed=9)
        a = run_experiment(make_data(), "C", FAMILY_SETS, config, small_models())
        b = run_experiment(make_data(), "C", FAMILY_SETS, config, small_models())
        pd.testing.assert_frame_equal(a.metrics, b.metrics)

    def test_best_params_and_cv_results(self):
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), small_models())
        wf = result["with_confounder_boosted_trees"]
        assert set(wf.best_params) == {"n_estimators", "max_depth"}
        table = wf.cv_results
        assert len(table) == 2
        assert table.loc[0, "rank"] == 1
        assert table.loc[0, "mean_rmse"] == pytest.approx(wf.best_cv_score)
        assert wf.cv_metrics["rmse"] == pytest.approx(wf.best_cv_score)

    def test_selection_metric(self):
        result = run_experiment(
            make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3, metric="rsq"), small_models()
        )
        wf = result["baseline_linear"]
        assert wf.best_cv_score == pytest.approx(wf.cv_metrics["rsq"])
        assert wf.best_cv_score == max(wf.cv_results["mean_rsq"])

    def test_linear_coefficients(self):
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), small_models())
        coef = result["baseline_linear"].coefficients()
        assert list(coef.index) == ["P", "G"]
        assert coef["G"] < 0
        with pytest.raises(TypeError, match="no linear coefficients"):
            result["baseline_boosted_trees"].coefficients()

    def test_stratified_split(self):
        config = ExperimentConfig(folds=3, strata="U")
        result = run_experiment(make_data(), "C", FAMILY_SETS, config, small_models()[:1])
        df = make_data()
        test_rows = result["baseline_linear"].predictions["row"]
        assert df.loc[test_rows, "U"].mean() == pytest.approx(df["U"].mean(), abs=0.02)

    def test_missing_strata(self):
        with pytest.raises(InvalidParameter, match="Strata"):
            run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(strata="X"), small_models())

    def test_summary(self):
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), small_models())
        summary = result.summary()
        assert "predicting C" in summary
        assert "with_confounder_linear" in summary


class TestValidation:
    def test_missing_outcome(self):
        with pytest.raises(InvalidParameter, match="Outcome"):
            run_experiment(make_data(), "Y", FAMILY_SETS)

    def test_no_feature_sets(self):
        with pytest.raises(InvalidParameter, match="At least one"):
            run_experiment(make_data(), "C", [])

    def test_duplicate_feature_set_names(self):
        sets = [FeatureSet("a", ["P"]), FeatureSet("a", ["G"])]
        with pytest.raises(InvalidParameter, match="unique"):
            run_experiment(make_data(), "C", sets)

    def test_duplicate_model_names(self):
        models = [ModelSpec("m", ElasticNet()), ModelSpec("m", LinearRegression())]
        with pytest.raises(InvalidParameter, match="Model names must be unique"):
            run_experiment(make_data(), "C", FAMILY_SETS, models=models)

    def test_colliding_workflow_ids(self):
        sets = [FeatureSet("a_b", ["P"]), FeatureSet("a", ["G"])]
        models = [ModelSpec("c", LinearRegression()), ModelSpec("b_c", LinearRegression())]
        with pytest.raises(InvalidParameter, match="duplicate workflow ids"):
            run_experiment(make_data(), "C", sets, models=models)


class TestFailurePolicy:
    def test_failed_workflow_is_excluded(self, caplog):
        models = small_models()[:1] + [ModelSpec("broken", _Broken())]
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), models)

        assert list(result.workflows) == ["baseline_linear", "with_confounder_linear"]
        assert [f.wflow_id for f in result.failures] == ["baseline_broken", "with_confounder_broken"]
        assert all(isinstance(f, FittingFailure) for f in result.failures)
        assert "broken" not in set(result.metrics["model"])
        assert "2 workflow(s) failed" in result.summary()
        assert "baseline_broken" in caplog.text

    def test_grid_with_no_complete_cross_validation_is_excluded(self):
        """
        800 training rows in 3 folds give fold training sets of 533, 533 and
        534 rows: one fold fits, the other two fail, so every grid mean is NaN
        even though the full-data refit succeeds.
        """
        models = small_models()[:1] + [ModelSpec("odd", _FailsOnOddRows())]
        result = run_experiment(make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), models)

        assert [f.wflow_id for f in result.failures] == ["baseline_odd", "with_confounder_odd"]
        assert all("every grid point failed" in str(f) for f in result.failures)
        assert all(f.cause is None for f in result.failures)
        assert "odd" not in set(result.metrics["model"])

    def test_all_workflows_failing_raises(self):
        with pytest.raises(FittingFailure, match="none of the 2"):
            run_experiment(
                make_data(), "C", FAMILY_SETS, ExperimentConfig(folds=3), [ModelSpec("broken", _Broken())]
            )


class TestConfounderImprovesPrediction:
    def test_family(self):
        """Adding U removes its share of the noise in C, so held-out error drops."""
        result = run_experiment(make_data(n=4_000), "C", FAMILY_SETS, ExperimentConfig(), small_models())
        m = result.metrics.set_index(["wflow_id", "metric"])["estimate"]
        for model in ("linear", "boosted_trees"):
            assert m[(f"with_confounder_{model}", "rmse")] < m[(f"baseline_{model}", "rmse")]
            assert m[(f"with_confounder_{model}", "rsq")] > m[(f"baseline_{model}", "rsq")]

    def test_happiness(self):
        df = adults(sim_happiness(seed=1977))
        sets = [FeatureSet("baseline", ["age"]), FeatureSet("with_confounder", ["age", "married"])]
        result = run_experiment(df, "happiness", sets, ExperimentConfig(), small_models())
        m = result.metrics.set_index(["wflow_id", "metric"])["estimate"]

        assert m[("with_confounder_linear", "rmse")] < m[("baseline_linear", "rmse")]
        assert m[("baseline_linear", "rsq")] < 0.05
        assert m[("with_confounder_linear", "rsq")] < 0.5
        assert result["with_confounder_linear"].coefficients()["age"] < 0
