"""
Adding marriage improves prediction while corrupting the age coefficient.

Predictive accuracy and causal correctness are different questions: the
model that conditions on the collider forecasts happiness better, but its
age coefficient is causally wrong.
"""

from colliderlab import happiness_analysis
from colliderlab.config import ExperimentConfig

analysis = happiness_analysis(seed=1977, config=ExperimentConfig(seed=1, strata="married"))
print(analysis.summary())
print(analysis.explain())
print(analysis.experiment["with_confounder_linear"].coefficients())
