"""
Model inference and ensemble decision
"""

from .decision import ensemble_predictions
from .inference import (
    PredictionModel,
    CallableModel,
    ProbabilisticClassifierModel,
    run_ensemble_predictions,
    run_single_prediction,
)

__all__ = [
    "ensemble_predictions",
    "PredictionModel",
    "CallableModel",
    "ProbabilisticClassifierModel",
    "run_ensemble_predictions",
    "run_single_prediction",
]
