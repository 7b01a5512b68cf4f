"""
Happiness does not change with age, yet age appears to make people unhappy.

Happier adults are more likely to marry, and older adults have had more
years to marry. Marriage is a collider of happiness and age: once a model
includes it, age picks up a negative coefficient.
"""

from colliderlab import adults, compare_coefficients, happiness_dag, sim_happiness

d = sim_happiness(seed=1977, n_years=1000)
print(d.describe())

d2 = adults(d)
print(happiness_dag())

comparison = compare_coefficients(d2, "happiness", ["age"], ["age", "married"])
print(comparison.baseline.summary())
print(comparison.alternative.summary())
