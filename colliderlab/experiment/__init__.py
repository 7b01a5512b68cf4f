from .models import FeatureSet, ModelSpec, build_recipe, default_models
from .pipeline import ExperimentResult, WorkflowResult, regression_metrics, run_experiment

__all__ = [
    "FeatureSet", "ModelSpec", "build_recipe", "default_models",
    "run_experiment", "ExperimentResult", "WorkflowResult", "regression_metrics",
]
