"""
Does measuring the neighbourhood help prediction?

Tunes a penalised linear model and gradient-boosted trees on (P, G) and on
(P, G, U), with the same split and folds for both, and compares held-out
error. U carries real signal about C, so every model improves.
"""

import logging

from colliderlab import ComparisonReport, ExperimentConfig, FeatureSet, family_set, run_experiment

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

df = family_set(n=4_000, seed=1)
feature_sets = [FeatureSet("baseline", ["P", "G"]), FeatureSet("with_confounder", ["P", "G", "U"])]

result = run_experiment(df, "C", feature_sets, ExperimentConfig(seed=1, folds=5, n_jobs=-1))
print(result.summary())

for wflow_id, wf in result.workflows.items():
    print(f"{wflow_id:<32} best params: {wf.best_params}")

print(ComparisonReport(result.metrics, "baseline", "with_confounder").summary())

print("Linear coefficients (per standard deviation):")
print(result["baseline_linear"].coefficients())
print(result["with_confounder_linear"].coefficients())
