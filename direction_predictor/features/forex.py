"""
Conservative feature engineering for forex markets.

Every feature is backward-looking: momentum compares against shifted
prices, and moving averages and volatilities fall back to expanding
windows until the rolling window fills. All features are tagged NEUTRAL
and kept without balancing.
"""

import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from config.settings import PredictorConfig
from direction_predictor.core.dataset import required_columns
from direction_predictor.core.enums import FOREX_FEATURE_VERSION, SignalCategory
from direction_predictor.core.models import EngineeredFeatures
from direction_predictor.indicators.technical import TechnicalIndicators, intrabar_features, ohlc_columns
from direction_predictor.indicators.windowing import (
    pct_change,
    rolling_or_expanding,
    safe_divide,
    shift,
)
from .base import BaseFeatureEngineer, SignalCandidate

logger = logging.getLogger(__name__)

NEUTRAL = SignalCategory.NEUTRAL

# Intrabar suffixes as the forex models were trained on them
INTRABAR_NAMES = {
    "return": "trend",
    "range": "range_pct",
    "body_ratio": "body_ratio",
    "upper_shadow": "upper_shadow",
    "lower_shadow": "lower_shadow",
    "close_position": "close_position",
}

MOMENTUM_PERIODS = (1, 3, 6, 12)
SMA_PERIODS = (10, 20, 50)
VOLATILITY_WINDOWS = (10, 20)
VOLUME_MA_WINDOW = 20
RSI_PERIOD = 14


class ConservativeFeatureEngineer(BaseFeatureEngineer):
    """Leak-free feature set of roughly fifty conservative features"""

    feature_version = FOREX_FEATURE_VERSION
    required_columns = tuple(required_columns(fields=("open", "high", "low", "close")))

    def __init__(self, config: Optional[PredictorConfig] = None):
        super().__init__(config)
        self._intrabar: Dict[str, Dict[str, pd.Series]] = {}

    def reset(self) -> None:
        super().reset()
        self._intrabar = {}

    def candidates(self) -> List[SignalCandidate]:
        """All forex features in output order"""
        candidates = []
        for tf in self.config.timeframes:
            candidates.extend(self.intrabar_candidates(tf))
        candidates.extend(self.momentum_candidates())
        candidates.extend(self.moving_average_candidates())
        candidates.extend(self.volatility_candidates())
        candidates.extend(self.volume_candidates())
        candidates.extend(self.multi_timeframe_candidates())
        candidates.extend(self.indicator_candidates())
        return candidates

    def engineer_features(self, df: pd.DataFrame, symbol: str = "UNKNOWN") -> EngineeredFeatures:
        logger.info(f"🔧 Engineering conservative features {self.feature_version} for {symbol}")
        self.reset()

        self.add_signals(df, self.candidates())
        logger.info(f"✅ Created {len(self.signals)} conservative features")

        return EngineeredFeatures(
            symbol=symbol,
            dataset=df,
            signals=self.signals,
            feature_version=self.feature_version,
        )

    def verify_features(self, df: pd.DataFrame) -> List[str]:
        """Report missing, near-constant or infinite feature columns"""
        issues = []
        for name in self.get_feature_list():
            if name not in df.columns:
                issues.append(f"{name}: column not found")
                continue

            values = df[name].to_numpy(dtype=np.float64)
            finite = values[np.isfinite(values)]
            if len(finite) > 0 and finite.std() < 1e-8:
                issues.append(f"{name}: suspiciously low variance")
            if np.isinf(values).any():
                issues.append(f"{name}: contains infinite values")

        if issues:
            logger.warning(f"⚠️ Found {len(issues)} potential feature issues: {issues[:5]}")
        return issues

    # =========================================================================
    # Intrabar
    # =========================================================================

    def _intrabar_value(self, df: pd.DataFrame, tf: str, suffix: str) -> pd.Series:
        if tf not in self._intrabar:
            self._intrabar[tf] = intrabar_features(df, tf, self.config.epsilon)
        return self._intrabar[tf][suffix]

    def intrabar_candidates(self, tf: str) -> List[SignalCandidate]:
        return [
            SignalCandidate(
                f"{tf}_{name}", NEUTRAL,
                lambda df, suffix=suffix: self._intrabar_value(df, tf, suffix),
                ohlc_columns(tf)
            )
            for suffix, name in INTRABAR_NAMES.items()
        ]

    # =========================================================================
    # Momentum and moving averages
    # =========================================================================

    def momentum_candidates(self) -> List[SignalCandidate]:
        candidates = [
            SignalCandidate(
                f"1h_momentum_{period}", NEUTRAL,
                lambda df, period=period: pct_change(df["1h_close"], period),
                ("1h_close",)
            )
            for period in MOMENTUM_PERIODS
        ]
        candidates.append(SignalCandidate(
            "1h_momentum_accel", NEUTRAL,
            lambda df: df["1h_momentum_1"] - shift(df["1h_momentum_1"], 2),
            ("1h_momentum_1",)
        ))
        return candidates

    def moving_average_candidates(self) -> List[SignalCandidate]:
        eps = self.config.epsilon
        candidates = []
        for period in SMA_PERIODS:
            sma = f"1h_sma_{period}"
            candidates.append(SignalCandidate(
                sma, NEUTRAL,
                lambda df, period=period: rolling_or_expanding(df["1h_close"], period, period, "mean"),
                ("1h_close",)
            ))
            candidates.append(SignalCandidate(
                f"1h_dist_sma_{period}", NEUTRAL,
                lambda df, sma=sma: (df["1h_close"] - df[sma]) / (df[sma] + eps),
                ("1h_close", sma)
            ))

        candidates.extend([
            SignalCandidate(
                "1h_ma_cross_10_20", NEUTRAL,
                lambda df: (df["1h_sma_10"] - df["1h_sma_20"]) / (df["1h_sma_20"] + eps),
                ("1h_sma_10", "1h_sma_20")
            ),
            SignalCandidate(
                "1h_ma_cross_20_50", NEUTRAL,
                lambda df: (df["1h_sma_20"] - df["1h_sma_50"]) / (df["1h_sma_50"] + eps),
                ("1h_sma_20", "1h_sma_50")
            ),
            SignalCandidate(
                "1h_ma_slope_20", NEUTRAL,
                lambda df: pct_change(df["1h_sma_20"], 5),
                ("1h_sma_20",)
            ),
        ])
        return candidates

    # =========================================================================
    # Volatility and volume
    # =========================================================================

    def volatility_candidates(self) -> List[SignalCandidate]:
        short, long = VOLATILITY_WINDOWS
        candidates = [
            SignalCandidate("1h_returns", NEUTRAL, lambda df: pct_change(df["1h_close"], 1), ("1h_close",)),
        ]
        candidates.extend(
            SignalCandidate(
                f"1h_volatility_{window}", NEUTRAL,
                lambda df, window=window: rolling_or_expanding(
                    df["1h_returns"], window, window, "std", expanding_min_periods=2
                ),
                ("1h_returns",)
            )
            for window in VOLATILITY_WINDOWS
        )
        candidates.append(SignalCandidate(
            "1h_vol_ratio", NEUTRAL,
            lambda df: safe_divide(df[f"1h_volatility_{short}"], df[f"1h_volatility_{long}"]),
            (f"1h_volatility_{short}", f"1h_volatility_{long}")
        ))
        return candidates

    def volume_candidates(self) -> List[SignalCandidate]:
        return [
            SignalCandidate(
                "1h_volume_ma", NEUTRAL,
                lambda df: rolling_or_expanding(df["1h_volume"], VOLUME_MA_WINDOW, VOLUME_MA_WINDOW, "mean"),
                ("1h_volume",)
            ),
            SignalCandidate(
                "1h_volume_ratio", NEUTRAL,
                lambda df: safe_divide(df["1h_volume"], df["1h_volume_ma"]),
                ("1h_volume", "1h_volume_ma")
            ),
            SignalCandidate(
                "1h_volume_trend", NEUTRAL,
                lambda df: pct_change(df["1h_volume"], 3),
                ("1h_volume",)
            ),
            SignalCandidate(
                "1h_pv_momentum", NEUTRAL,
                lambda df: df["1h_returns"] * df["1h_volume_ratio"],
                ("1h_returns", "1h_volume_ratio")
            ),
        ]

    # =========================================================================
    # Multi-timeframe and indicators
    # =========================================================================

    def multi_timeframe_candidates(self) -> List[SignalCandidate]:
        eps = self.config.epsilon
        return [
            SignalCandidate(
                "4h_vs_1d_price", NEUTRAL,
                lambda df: (df["4h_close"] - df["1d_close"]) / (df["1d_close"] + eps),
                ("4h_close", "1d_close")
            ),
            SignalCandidate(
                "1h_vs_4h_price", NEUTRAL,
                lambda df: (df["1h_close"] - df["4h_close"]) / (df["4h_close"] + eps),
                ("1h_close", "4h_close")
            ),
            SignalCandidate(
                "1h_in_4h_range", NEUTRAL,
                lambda df: (df["1h_close"] - df["4h_low"]) / (df["4h_high"] - df["4h_low"] + eps),
                ("1h_close", "4h_low", "4h_high")
            ),
            SignalCandidate(
                "1h_in_1d_range", NEUTRAL,
                lambda df: (df["1h_close"] - df["1d_low"]) / (df["1d_high"] - df["1d_low"] + eps),
                ("1h_close", "1d_low", "1d_high")
            ),
            SignalCandidate(
                "trend_alignment", NEUTRAL,
                lambda df: np.sign(df["1d_trend"]) * np.sign(df["4h_trend"]) * np.sign(df["1h_trend"]),
                ("1d_trend", "4h_trend", "1h_trend")
            ),
        ]

    def indicator_candidates(self) -> List[SignalCandidate]:
        eps = self.config.epsilon
        return [
            SignalCandidate(
                "1h_rsi", NEUTRAL,
                lambda df: TechnicalIndicators.rsi(df["1h_returns"], RSI_PERIOD, eps),
                ("1h_returns",)
            ),
            SignalCandidate("1h_rsi_norm", NEUTRAL, lambda df: (df["1h_rsi"] - 50) / 50, ("1h_rsi",)),
            SignalCandidate(
                "1h_bb_position", NEUTRAL,
                lambda df: TechnicalIndicators.bollinger_position(
                    df["1h_close"], df["1h_sma_20"], df["1h_volatility_20"], 2.0, eps
                ),
                ("1h_close", "1h_sma_20", "1h_volatility_20")
            ),
        ]
