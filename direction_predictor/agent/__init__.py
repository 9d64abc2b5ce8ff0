"""
Prediction service
"""

from .predictor import DirectionPredictor

__all__ = ["DirectionPredictor"]
