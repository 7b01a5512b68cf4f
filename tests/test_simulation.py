import math

import numpy as np
import pandas as pd
import pytest

from colliderlab import FamilyParams, InvalidParameter, adults, family_set, fit_ols, sim_happiness


class TestFamilySet:
    def test_columns_and_shape(self):
        df = family_set(n=50, seed=3)
        assert list(df.columns) == ["C", "P", "G", "U"]
        assert len(df) == 50

    def test_u_is_plus_or_minus_one(self):
        df = family_set(n=500, seed=3)
        assert set(df["U"].unique()) == {-1, 1}

    def test_same_seed_same_data(self):
        a = family_set(n=300, b_GC=0.5, seed=11)
        b = family_set(n=300, b_GC=0.5, seed=11)
        pd.testing.assert_frame_equal(a, b)

    def test_different_seed_different_data(self):
        a = family_set(n=300, seed=11)
        b = family_set(n=300, seed=12)
        assert not np.allclose(a["C"], b["C"])

    def test_different_parameters_different_data(self):
        a = family_set(n=300, b_U=2, seed=11)
        b = family_set(n=300, b_U=0, seed=11)
        assert not np.allclose(a["C"], b["C"])

    @pytest.mark.parametrize("n", [0, -5, 2.5, "10", True])
    def test_invalid_n(self, n):
        with pytest.raises(InvalidParameter, match="'n'"):
            family_set(n=n)

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan, "1", None])
    def test_non_finite_coefficient(self, value):
        with pytest.raises(InvalidParameter, match="b_U"):
            family_set(n=10, b_U=value)

    def test_invalid_parameter_is_a_value_error(self):
        with pytest.raises(ValueError):
            family_set(n=0)

    def test_structural_coefficients_recovered_with_u(self):
        """With every cause in the regression, OLS recovers the structural equation for C."""
        df = family_set(n=5_000, b_GC=0.5, b_PC=1.0, b_U=2.0, seed=5)
        coef = fit_ols(df, "C", ["P", "G", "U"]).coef
        assert abs(coef["P"] - 1.0) < 0.1
        assert abs(coef["G"] - 0.5) < 0.1
        assert abs(coef["U"] - 2.0) < 0.15


class TestFamilyParams:
    def test_defaults_match_book(self):
        assert FamilyParams().as_dict() == {"b_GP": 1.0, "b_GC": 0.0, "b_PC": 1.0, "b_U": 2.0}

    def test_coerces_to_float(self):
        params = FamilyParams(b_GP=2)
        assert isinstance(params.b_GP, float)

    def test_rejects_nan(self):
        with pytest.raises(InvalidParameter, match="b_GC"):
            FamilyParams(b_GC=float("nan"))


class TestSimHappiness:
    def test_stationary_population(self):
        df = sim_happiness(seed=1977, n_years=1000)
        assert list(df.columns) == ["age", "married", "happiness"]
        assert len(df) == 65 * 20
        assert df["age"].min() == 1
        assert df["age"].max() == 65
        assert (df.groupby("age").size() == 20).all()

    def test_happiness_grid(self):
        df = sim_happiness(seed=1977, n_years=100)
        expected = np.linspace(-2, 2, 20)
        for _, group in df.groupby("age"):
            np.testing.assert_allclose(np.sort(group["happiness"].to_numpy()), expected)

    def test_only_adults_marry(self):
        df = sim_happiness(seed=1977, n_years=200)
        assert set(df["married"].unique()) <= {0, 1}
        assert df.loc[df["age"] < 18, "married"].sum() == 0
        assert df.loc[df["age"] >= 18, "married"].sum() > 0

    def test_happier_people_marry_more(self):
        df = adults(sim_happiness(seed=1977))
        assert df.loc[df["married"] == 1, "happiness"].mean() > df.loc[df["married"] == 0, "happiness"].mean()

    def test_same_seed_same_data(self):
        pd.testing.assert_frame_equal(sim_happiness(seed=7, n_years=120), sim_happiness(seed=7, n_years=120))

    def test_short_run_population_still_growing(self):
        df = sim_happiness(seed=1, n_years=10)
        assert len(df) == 10 * 20
        assert df["married"].sum() == 0

    @pytest.mark.parametrize("kwargs", [
        {"n_years": 0},
        {"max_age": -1},
        {"n_births": 1.5},
        {"aom": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(InvalidParameter):
            sim_happiness(**kwargs)

    def test_age_of_marriage_above_max_age(self):
        with pytest.raises(InvalidParameter, match="aom"):
            sim_happiness(max_age=30, aom=40)

    def test_adults(self):
        df = adults(sim_happiness(seed=1977))
        assert df["age"].min() == 18
        assert len(df) == (65 - 17) * 20
        assert list(df.index) == list(range(len(df)))
