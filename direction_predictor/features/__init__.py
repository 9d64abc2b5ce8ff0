"""
Feature engineering pipelines
"""

from typing import Optional

from config.settings import PredictorConfig
from direction_predictor.core.enums import AssetClass
from .base import BaseFeatureEngineer, SignalCandidate
from .crypto import CryptoFeatureEngineer
from .extractor import extract_feature_vector
from .forex import ConservativeFeatureEngineer
from .quality import BalanceQualityEnforcer


def create_feature_engineer(config: Optional[PredictorConfig] = None) -> BaseFeatureEngineer:
    """Fresh engineer for the configured asset class"""
    config = config or PredictorConfig()
    if AssetClass(config.asset_class) is AssetClass.FOREX:
        return ConservativeFeatureEngineer(config)
    return CryptoFeatureEngineer(config)


__all__ = [
    "BaseFeatureEngineer",
    "SignalCandidate",
    "CryptoFeatureEngineer",
    "ConservativeFeatureEngineer",
    "BalanceQualityEnforcer",
    "extract_feature_vector",
    "create_feature_engineer",
]
