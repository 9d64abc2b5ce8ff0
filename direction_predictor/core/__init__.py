"""
Core models, enums, and exceptions
"""

from .models import (
    SignalRecord,
    SignalSet,
    BalanceReport,
    EngineeredFeatures,
    FeatureVector,
    EnsembleDecision,
    ModelRunResult,
    PredictionRecord
)

from .enums import (
    PredictionClass,
    SignalCategory,
    AssetClass,
    TimeFrame,
    Aggregation
)

from .exceptions import (
    PredictorError,
    ValidationError,
    MissingColumnsError,
    InsufficientDataError,
    FeatureEngineeringError,
    ModelInferenceError,
    EnsembleError,
    ConfigurationError
)

__all__ = [
    "SignalRecord",
    "SignalSet",
    "BalanceReport",
    "EngineeredFeatures",
    "FeatureVector",
    "EnsembleDecision",
    "ModelRunResult",
    "PredictionRecord",
    "PredictionClass",
    "SignalCategory",
    "AssetClass",
    "TimeFrame",
    "Aggregation",
    "PredictorError",
    "ValidationError",
    "MissingColumnsError",
    "InsufficientDataError",
    "FeatureEngineeringError",
    "ModelInferenceError",
    "EnsembleError",
    "ConfigurationError"
]
