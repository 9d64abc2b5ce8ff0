"""
Directionally balanced feature engineering for crypto markets
"""

import logging
from typing import Optional

import pandas as pd

from config.settings import PredictorConfig
from direction_predictor.core.dataset import required_columns
from direction_predictor.core.enums import CRYPTO_FEATURE_VERSION, SignalCategory
from direction_predictor.core.models import EngineeredFeatures, SignalSet
from direction_predictor.indicators.technical import add_intrabar_features
from .base import BaseFeatureEngineer
from .clarity import ClarityContextGenerator
from .directional import DirectionalSignalGenerator
from .quality import BalanceQualityEnforcer

logger = logging.getLogger(__name__)


class CryptoFeatureEngineer(BaseFeatureEngineer):
    """
    Balanced bullish/bearish feature set.

    Pipeline: intrabar features, ATR, mirrored directional signals,
    clarity metrics, neutral context, then balance and quality
    enforcement. After a run the bullish and bearish groups are always
    the same size.
    """

    feature_version = CRYPTO_FEATURE_VERSION
    required_columns = tuple(required_columns())

    def __init__(self, config: Optional[PredictorConfig] = None):
        super().__init__(config)
        self.directional = DirectionalSignalGenerator(self.config, self.cache)
        self.clarity = ClarityContextGenerator(self.config, self.cache)
        self.enforcer = BalanceQualityEnforcer.from_config(self.config)

    def _new_signal_set(self) -> SignalSet:
        return SignalSet({
            SignalCategory.BULLISH: self.config.max_bullish,
            SignalCategory.BEARISH: self.config.max_bearish,
            SignalCategory.NEUTRAL: self.config.max_neutral,
            SignalCategory.CLARITY: None,
        })

    def add_atr(self, df: pd.DataFrame) -> pd.DataFrame:
        for tf in self.config.timeframes:
            if all(f"{tf}_{field}" in df.columns for field in ("high", "low", "close")):
                df[f"{tf}_atr"] = self.cache.atr(df, tf, self.config.atr_period)
        return df

    def check_directional_balance(self) -> None:
        bullish = self.signals.count(SignalCategory.BULLISH)
        bearish = self.signals.count(SignalCategory.BEARISH)
        logger.info(f"Directional signals: {bullish} bullish, {bearish} bearish")
        if abs(bullish - bearish) > self.config.imbalance_warning:
            logger.warning(f"⚠️ Bullish/bearish imbalance detected: {bullish} vs {bearish}")

    def engineer_features(self, df: pd.DataFrame, symbol: str = "UNKNOWN") -> EngineeredFeatures:
        logger.info(f"🔧 Engineering features {self.feature_version} for {symbol}")
        self.reset()

        add_intrabar_features(df, self.config.timeframes, self.config.epsilon)
        self.add_atr(df)

        self.add_signals(df, self.directional.candidates())
        self.check_directional_balance()

        self.add_signals(df, self.clarity.clarity_candidates(self.signals))
        self.add_signals(df, self.clarity.context_candidates())

        removed, problems = self.enforcer.enforce(df, self.signals)
        self.log_balance_report()

        return EngineeredFeatures(
            symbol=symbol,
            dataset=df,
            signals=self.signals,
            feature_version=self.feature_version,
            removed=removed,
            problems=problems,
        )
