"""
Directional clarity and neutral-context signals.

These carry no directional bias of their own: they describe how clearly
the bullish and bearish groups disagree, how choppy or compressed price
action is, and which volatility/volume regime the market is in.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from config.settings import PredictorConfig
from direction_predictor.core.enums import SignalCategory
from direction_predictor.core.models import SignalSet
from direction_predictor.indicators.technical import IndicatorCache
from direction_predictor.indicators.windowing import (
    min_max_normalize,
    pct_change,
    rolling_aggregate,
    safe_clip,
    safe_divide,
)
from .base import SignalCandidate

logger = logging.getLogger(__name__)

CLARITY = SignalCategory.CLARITY
NEUTRAL = SignalCategory.NEUTRAL

PERCENTILE_BUCKETS = (0.25, 0.5, 0.75)


def bucketize(values, thresholds: Sequence[float]) -> np.ndarray:
    """Bucket index: value <= thresholds[0] -> 0, ..., above the last -> len(thresholds)"""
    arr = np.asarray(values, dtype=np.float64)
    buckets = np.searchsorted(np.asarray(thresholds, dtype=np.float64), arr, side="left").astype(np.float64)
    buckets[np.isnan(arr)] = np.nan
    return buckets


class ClarityContextGenerator:
    """Builds clarity, neutral and context candidates"""

    def __init__(self, config: PredictorConfig, cache: IndicatorCache):
        self.config = config
        self.cache = cache
        self._signals: Optional[SignalSet] = None
        self._scores: Optional[Tuple[pd.Series, pd.Series]] = None

    def clarity_candidates(self, signals: SignalSet) -> List[SignalCandidate]:
        """Clarity metrics over the current directional signals, then neutral ones"""
        self._signals = signals
        self._scores = None

        return [
            SignalCandidate("directional_clarity", CLARITY, self.directional_clarity),
            SignalCandidate("directional_bias", CLARITY, self.directional_bias),
            SignalCandidate(
                "trend_consistency", CLARITY, self.trend_consistency,
                ("1h_close", "4h_close", "1d_close")
            ),
            SignalCandidate("choppiness_index", NEUTRAL, self.choppiness_index, ("1h_close", "1h_atr")),
            SignalCandidate("range_compression", NEUTRAL, self.range_compression, ("1h_high", "1h_low")),
            SignalCandidate("sideways_movement", NEUTRAL, self.sideways_movement, ("1h_close",)),
        ]

    def context_candidates(self) -> List[SignalCandidate]:
        """Regime and context metrics without trend bias"""
        return [
            SignalCandidate("vol_regime", NEUTRAL, self.vol_regime, ("1h_atr",)),
            SignalCandidate("volume_regime", NEUTRAL, self.volume_regime, ("1h_volume",)),
            SignalCandidate("range_expansion_ratio", NEUTRAL, self.range_expansion_ratio, ("1h_high", "1h_low")),
            SignalCandidate("price_ma_distance", NEUTRAL, self.price_ma_distance, ("1h_close",)),
        ]

    # =========================================================================
    # Clarity
    # =========================================================================

    def _group_score(self, df: pd.DataFrame, names: Sequence[str]) -> Optional[pd.Series]:
        columns = [name for name in names if name in df.columns]
        if not columns:
            return None
        normalized = pd.concat([min_max_normalize(df[col]) for col in columns], axis=1)
        return normalized.mean(axis=1, skipna=True)

    def _directional_scores(self, df: pd.DataFrame) -> Optional[Tuple[pd.Series, pd.Series]]:
        if self._scores is None and self._signals is not None:
            bullish = self._group_score(df, self._signals.names(SignalCategory.BULLISH))
            bearish = self._group_score(df, self._signals.names(SignalCategory.BEARISH))
            if bullish is not None and bearish is not None:
                self._scores = (bullish, bearish)
        return self._scores

    def directional_clarity(self, df: pd.DataFrame) -> Optional[pd.Series]:
        """High when one direction clearly dominates, low when they cancel out"""
        scores = self._directional_scores(df)
        if scores is None:
            return None
        bullish, bearish = scores
        return (bullish - bearish).abs()

    def directional_bias(self, df: pd.DataFrame) -> Optional[pd.Series]:
        scores = self._directional_scores(df)
        if scores is None:
            return None
        bullish, bearish = scores
        return bullish - bearish

    def trend_consistency(self, df: pd.DataFrame) -> pd.Series:
        """1 when 1h/4h and 4h/1d momentum agree in sign, 0.5 for one pair, 0 for none"""
        h1 = pct_change(df["1h_close"], self.config.momentum_period)
        h4 = pct_change(df["4h_close"], 1)
        d1 = pct_change(df["1d_close"], 1)

        agree_1h_4h = ((h1 > 0) == (h4 > 0)).astype(float)
        agree_4h_1d = ((h4 > 0) == (d1 > 0)).astype(float)
        consistency = (agree_1h_4h + agree_4h_1d) / 2
        return consistency.where(h1.notna() & h4.notna() & d1.notna())

    # =========================================================================
    # Neutral
    # =========================================================================

    def choppiness_index(self, df: pd.DataFrame) -> pd.Series:
        """High when price barely moves relative to its own volatility"""
        close = df["1h_close"]
        momentum = pct_change(close, self.config.momentum_period).abs()
        volatility = safe_divide(df["1h_atr"], close)
        return 1 - safe_clip(safe_divide(momentum, volatility, 0.0), 0, 1)

    def _bar_range(self, df: pd.DataFrame) -> Tuple[pd.Series, pd.Series]:
        window = self.config.range_window
        current = df["1h_high"] - df["1h_low"]
        average = rolling_aggregate(current, window, window // 2, "mean")
        return current, average

    def range_compression(self, df: pd.DataFrame) -> pd.Series:
        current, average = self._bar_range(df)
        return 1 - safe_clip(safe_divide(current, average, 1.0), 0, 1)

    def sideways_movement(self, df: pd.DataFrame) -> pd.Series:
        change = pct_change(df["1h_close"], self.config.sideways_period).abs()
        return 1 / (1 + change * 100)

    # =========================================================================
    # Context
    # =========================================================================

    def atr_percentile(self, atr: pd.Series) -> np.ndarray:
        """
        Share of the previous ``regime_lookback`` ATR values below the current one.

        Defaults to the 50th percentile during warm-up or when fewer than
        ``regime_min_samples`` valid values are available.
        """
        values = np.asarray(atr, dtype=np.float64)
        lookback = self.config.regime_lookback
        percentile = np.full(len(values), np.nan)

        for i, value in enumerate(values):
            if np.isnan(value):
                continue
            if i < self.config.regime_warmup:
                percentile[i] = 0.5
                continue

            window = values[max(0, i - lookback):i]
            valid = window[~np.isnan(window)]
            if len(valid) < self.config.regime_min_samples:
                percentile[i] = 0.5
            else:
                percentile[i] = np.count_nonzero(valid < value) / len(valid)

        return percentile

    def vol_regime(self, df: pd.DataFrame) -> pd.Series:
        percentile = self.atr_percentile(df["1h_atr"])
        return pd.Series(bucketize(percentile, PERCENTILE_BUCKETS), index=df.index)

    def volume_regime(self, df: pd.DataFrame) -> pd.Series:
        volume_ma = self.cache.volume_ma(df, "1h", self.config.volume_ma_window)
        surge = safe_divide(df["1h_volume"], volume_ma)
        return pd.Series(bucketize(surge, self.config.volume_regime_thresholds), index=df.index)

    def range_expansion_ratio(self, df: pd.DataFrame) -> pd.Series:
        current, average = self._bar_range(df)
        return safe_divide(current, average)

    def price_ma_distance(self, df: pd.DataFrame) -> pd.Series:
        """Absolute distance of close from its moving average"""
        window = self.config.price_ma_window
        close = df["1h_close"]
        ma = rolling_aggregate(close, window, window // 2, "mean")
        return safe_divide((close - ma).abs(), ma)
