from .dag import DAG
from .config import ExperimentConfig
from .simulation import FamilyParams, family_set, family_dag, sim_happiness, adults, happiness_dag
from .experiment import FeatureSet, ModelSpec, default_models, run_experiment, ExperimentResult, WorkflowResult
from .comparison import rank_workflows, compare_feature_sets, ComparisonReport
from .coefficients import (
    CoefficientFit, CoefficientComparison, RecoveryCheck, RecoveryReport,
    fit_ols, compare_coefficients, check_recovery,
)
from .analysis import Analysis, family_analysis, happiness_analysis
from ._exceptions import InvalidParameter, FittingFailure, GraphError

__all__ = [
    "DAG",
    "ExperimentConfig",
    "FamilyParams", "family_set", "family_dag", "sim_happiness", "adults", "happiness_dag",
    "FeatureSet", "ModelSpec", "default_models", "run_experiment", "ExperimentResult", "WorkflowResult",
    "rank_workflows", "compare_feature_sets", "ComparisonReport",
    "CoefficientFit", "CoefficientComparison", "RecoveryCheck", "RecoveryReport",
    "fit_ols", "compare_coefficients", "check_recovery",
    "Analysis", "family_analysis", "happiness_analysis",
    "InvalidParameter", "FittingFailure", "GraphError",
]
