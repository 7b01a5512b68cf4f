"""
The "haunted DAG": three generations of education with an unmeasured
neighbourhood effect.

::

    G → P → C
    G → C
    U → P,  U → C      (U is never measured in the textbook analysis)

Parents (P) are a collider of grandparents (G) and the neighbourhood (U).
Regressing children's education on both P and G while U stays unobserved
makes G look harmful even when its direct effect is zero.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd

from ..dag import DAG
from ._validation import check_finite, check_positive_int


@dataclass(frozen=True)
class FamilyParams:
    """
    Structural coefficients of the family model.

    The defaults reproduce the textbook setup: grandparents influence
    parents, parents influence children, grandparents have no direct effect
    on children, and the neighbourhood moves both parents and children by
    two units.
    """

    b_GP: float = 1.0
    """Direct effect of G on P."""

    b_GC: float = 0.0
    """Direct effect of G on C."""

    b_PC: float = 1.0
    """Direct effect of P on C."""

    b_U: float = 2.0
    """Effect of U on both P and C."""

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            object.__setattr__(self, name, check_finite(name, value))

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def family_set(
    n: int = 200,
    b_GP: float = 1.0,
    b_GC: float = 0.0,
    b_PC: float = 1.0,
    b_U: float = 2.0,
    seed: int | None = None,
) -> pd.DataFrame:
    """
    Simulate ``n`` independent families from the structural equations::

        U ~ 2 * Bernoulli(0.5) - 1
        G ~ Normal(0, 1)
        P ~ Normal(b_GP*G + b_U*U, 1)
        C ~ Normal(b_PC*P + b_GC*G + b_U*U, 1)

    Parameters
    ----------
    n : int
        Number of families (rows). Must be positive.
    b_GP, b_GC, b_PC, b_U : float
        Structural coefficients. Must be finite.
    seed : int, optional
        Seed for ``numpy.random.default_rng``. The same seed and parameters
        always produce the same frame.

    Returns
    -------
    pd.DataFrame
        Columns ``C, P, G, U``.

    Raises
    ------
    InvalidParameter
        If ``n`` is not a positive integer or a coefficient is not finite.
    """
    n = check_positive_int("n", n)
    params = FamilyParams(b_GP=b_GP, b_GC=b_GC, b_PC=b_PC, b_U=b_U)
    rng = np.random.default_rng(seed)

    U = 2 * rng.binomial(1, 0.5, size=n) - 1
    G = rng.normal(size=n)
    P = rng.normal(params.b_GP * G + params.b_U * U, 1.0)
    C = rng.normal(params.b_PC * P + params.b_GC * G + params.b_U * U, 1.0)

    return pd.DataFrame({"C": C, "P": P, "G": G, "U": U})


def family_dag() -> DAG:
    """The generating graph of :func:`family_set`, laid out as in the book."""
    dag = DAG()
    dag.assume("G").causes("P", "C").at(0, -0.5)
    dag.assume("P").causes("C").at(1, 0)
    dag.assume("U").causes("P", "C").at(1.5, -0.5)
    dag.place("C", 1, -1)
    return dag
