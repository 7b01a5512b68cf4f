"""
The haunted DAG: grandparents seem to harm their grandchildren's education.

G → P → C, G → C, and an unmeasured neighbourhood U → P, U → C.
The true direct effect of G on C is zero. Regressing C on P and G while
U stays unmeasured conditions on the collider P and makes G look harmful.
Measuring U removes the bias.
"""

from colliderlab import check_recovery, compare_coefficients, family_dag, family_set

df = family_set(n=200, b_GP=1, b_GC=0, b_PC=1, b_U=2, seed=1)

print(family_dag())
print("Colliders:", sorted(family_dag().colliders()))

comparison = compare_coefficients(df, "C", ["P", "G"], ["P", "G", "U"])
print(comparison.baseline.summary())
print(comparison.alternative.summary())
print(comparison.summary())

truth = {"P": 1.0, "G": 0.0}
print(check_recovery(comparison.baseline, truth).summary())
print(check_recovery(comparison.alternative, truth).summary())
