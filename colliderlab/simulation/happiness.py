"""
Age, marriage and happiness (Statistical Rethinking, section 6.3.1).

Happiness is fixed at birth and never changes with age. Marriage depends on
both: only adults marry, and happier people are more likely to. Marriage is
therefore a collider of happiness and age, and a regression of happiness on
age that also includes marriage status finds age to be harmful.
"""
from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .._exceptions import InvalidParameter
from ..dag import DAG
from ._validation import check_positive_int

logger = logging.getLogger(__name__)


def _inv_logit(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def sim_happiness(
    seed: int | None = 1977,
    n_years: int = 1000,
    max_age: int = 65,
    n_births: int = 20,
    aom: int = 18,
) -> pd.DataFrame:
    """
    Run the age-structured population simulation.

    Each year every living person ages by one year, ``n_births`` people are
    born with happiness evenly spaced on ``[-2, 2]``, every unmarried person
    aged ``aom`` or over marries with probability ``inv_logit(happiness - 4)``,
    and everyone older than ``max_age`` dies.

    Parameters
    ----------
    seed : int, optional
        Seed for ``numpy.random.default_rng``.
    n_years : int
        Number of simulated years. After ``max_age`` years the population is
        stationary at ``max_age * n_births`` people.
    max_age : int
        Oldest age at which people are still alive.
    n_births : int
        Births per year.
    aom : int
        Age of marriage: the youngest age at which people can marry.

    Returns
    -------
    pd.DataFrame
        Columns ``age``, ``married`` (0/1) and ``happiness``, oldest first.
    """
    n_years = check_positive_int("n_years", n_years)
    max_age = check_positive_int("max_age", max_age)
    n_births = check_positive_int("n_births", n_births)
    aom = check_positive_int("aom", aom)
    if aom > max_age:
        raise InvalidParameter(
            f"'aom' ({aom}) must not exceed 'max_age' ({max_age}); nobody could ever marry."
        )

    rng = np.random.default_rng(seed)
    newborn_happiness = np.linspace(-2, 2, n_births)

    age = np.empty(0, dtype=int)
    married = np.empty(0, dtype=int)
    happiness = np.empty(0, dtype=float)

    for _ in range(n_years):
        age = np.concatenate([age + 1, np.ones(n_births, dtype=int)])
        married = np.concatenate([married, np.zeros(n_births, dtype=int)])
        happiness = np.concatenate([happiness, newborn_happiness])

        eligible = (age >= aom) & (married == 0)
        draws = rng.binomial(1, _inv_logit(happiness[eligible] - 4))
        married[eligible] = draws

        alive = age <= max_age
        age, married, happiness = age[alive], married[alive], happiness[alive]

    logger.debug(
        "Simulated %d years: %d people, %d married", n_years, len(age), int(married.sum())
    )
    return pd.DataFrame({"age": age, "married": married, "happiness": happiness})


def adults(data: pd.DataFrame, aom: int = 18) -> pd.DataFrame:
    """Rows of ``data`` old enough to marry, with a fresh index."""
    return data.loc[data["age"] >= aom].reset_index(drop=True)


def happiness_dag() -> DAG:
    """The generating graph of :func:`sim_happiness`: ``H → M ← A``."""
    dag = DAG()
    dag.assume("happiness").causes("married").at(0, 0)
    dag.assume("age").causes("married").at(2, 0)
    dag.place("married", 1, 0)
    return dag
