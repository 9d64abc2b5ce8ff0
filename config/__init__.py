"""
Configuration management
"""

from .settings import PredictorConfig, create_config, validate_config

__all__ = ["PredictorConfig", "create_config", "validate_config"]
