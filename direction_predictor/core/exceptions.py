"""
Custom exceptions for the direction predictor
"""


class PredictorError(Exception):
    """Base exception for direction predictor errors"""
    pass


class ValidationError(PredictorError):
    """Raised when input validation fails"""
    pass


class MissingColumnsError(ValidationError):
    """Raised when required raw columns are absent from the input"""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class InsufficientDataError(ValidationError):
    """Raised when the input has fewer samples than required"""

    def __init__(self, message: str, fields=None):
        self.fields = list(fields or [])
        super().__init__(message)


class FeatureEngineeringError(PredictorError):
    """Raised when the feature pipeline cannot produce any features"""
    pass


class ModelInferenceError(PredictorError):
    """Raised when a model returns unusable output"""
    pass


class EnsembleError(PredictorError):
    """Raised when no usable model predictions are available"""
    pass


class ConfigurationError(PredictorError):
    """Raised when configuration is invalid"""
    pass
