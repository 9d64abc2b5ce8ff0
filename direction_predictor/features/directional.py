"""
Directional (bullish/bearish) signal generation.

Each bearish signal mirrors a bullish one: lows instead of highs,
downside momentum instead of upside. All comparisons against prior bars
go through ``shift`` so a value at bar i never depends on bars after i.
"""

import logging
from typing import List

import pandas as pd

from config.settings import PredictorConfig
from direction_predictor.core.enums import SignalCategory
from direction_predictor.indicators.technical import IndicatorCache, TechnicalIndicators
from direction_predictor.indicators.windowing import (
    pct_change,
    rolling_aggregate,
    safe_clip,
    safe_divide,
    shift,
)
from .base import SignalCandidate

logger = logging.getLogger(__name__)

BULLISH = SignalCategory.BULLISH
BEARISH = SignalCategory.BEARISH


class DirectionalSignalGenerator:
    """
    Builds the mirrored bullish/bearish candidate table.

    The table order is part of the feature contract: all bullish signals
    first, then their bearish mirrors in the same order.
    """

    def __init__(self, config: PredictorConfig, cache: IndicatorCache):
        self.config = config
        self.cache = cache

    def candidates(self) -> List[SignalCandidate]:
        ohlc = ("1h_open", "1h_high", "1h_low", "1h_close")
        hlcv = ("1h_high", "1h_low", "1h_close", "1h_volume")

        bullish = [
            SignalCandidate("volume_on_breakout_up", BULLISH, self.volume_on_breakout_up, ("1h_high", "1h_volume")),
            SignalCandidate("accumulation_volume", BULLISH, self.accumulation_volume, hlcv),
            SignalCandidate(
                "support_bounce_strength", BULLISH, self.support_bounce_strength,
                ("4h_low", "1h_close", "1h_volume")
            ),
            SignalCandidate("bullish_momentum_1h", BULLISH, lambda df: self.upside_momentum(df, "1h"), ("1h_close",)),
            SignalCandidate("bullish_momentum_4h", BULLISH, lambda df: self.upside_momentum(df, "4h"), ("4h_close",)),
            SignalCandidate("higher_highs", BULLISH, self.higher_highs, ("1h_high",)),
            SignalCandidate("bullish_body_strength", BULLISH, self.bullish_body_strength, ohlc),
            SignalCandidate("positive_volume_delta", BULLISH, self.positive_volume_delta, ("1h_close", "1h_volume")),
        ]

        bearish = [
            SignalCandidate("volume_on_breakdown", BEARISH, self.volume_on_breakdown, ("1h_low", "1h_volume")),
            SignalCandidate("distribution_patterns", BEARISH, self.distribution_patterns, hlcv),
            SignalCandidate(
                "resistance_rejection_strength", BEARISH, self.resistance_rejection_strength,
                ("4h_high", "1h_close", "1h_volume")
            ),
            SignalCandidate("bearish_momentum_1h", BEARISH, lambda df: self.downside_momentum(df, "1h"), ("1h_close",)),
            SignalCandidate("bearish_momentum_4h", BEARISH, lambda df: self.downside_momentum(df, "4h"), ("4h_close",)),
            SignalCandidate("lower_lows", BEARISH, self.lower_lows, ("1h_low",)),
            SignalCandidate("bearish_body_strength", BEARISH, self.bearish_body_strength, ohlc),
            SignalCandidate("negative_volume_delta", BEARISH, self.negative_volume_delta, ("1h_close", "1h_volume")),
        ]

        return bullish + bearish

    # =========================================================================
    # Shared inputs
    # =========================================================================

    def _volume_surge(self, df: pd.DataFrame) -> pd.Series:
        """1h volume relative to its moving average"""
        volume_ma = self.cache.volume_ma(df, "1h", self.config.volume_ma_window)
        if volume_ma is None:
            raise KeyError("1h_volume")
        return safe_divide(df["1h_volume"], volume_ma)

    def _flow(self, df: pd.DataFrame, clv_part: pd.Series) -> pd.Series:
        """Volume-weighted share of a CLV component over the flow window"""
        window = self.config.flow_window
        volume = df["1h_volume"]
        weighted = rolling_aggregate(clv_part * volume, window, window // 2, "sum")
        total = rolling_aggregate(volume, window, window // 2, "sum")
        return safe_divide(weighted, total)

    def _volume_ratio(self, df: pd.DataFrame) -> pd.Series:
        window = self.config.volume_delta_window
        volume = df["1h_volume"]
        return safe_divide(volume, rolling_aggregate(volume, window, window // 2, "mean"))

    # =========================================================================
    # Bullish signals
    # =========================================================================

    def volume_on_breakout_up(self, df: pd.DataFrame) -> pd.Series:
        """Volume surge on bars that clear the prior lookback high"""
        lookback = self.config.breakout_lookback
        high = df["1h_high"]
        prior_high = rolling_aggregate(shift(high, 1), lookback, lookback // 2, "max")
        surge = self._volume_surge(df)
        return surge.where(high > prior_high, 0.0).where(prior_high.notna() & high.notna())

    def accumulation_volume(self, df: pd.DataFrame) -> pd.Series:
        clv = TechnicalIndicators.clv(df["1h_high"], df["1h_low"], df["1h_close"])
        return self._flow(df, safe_clip(clv, lower=0))

    def support_bounce_strength(self, df: pd.DataFrame) -> pd.Series:
        """Volume surge while 1h close sits inside the band around 4h support"""
        window = self.config.support_window
        low_band, high_band = self.config.support_band
        close = df["1h_close"]

        support = rolling_aggregate(df["4h_low"], window, window // 2, "min")
        distance = safe_divide(close - support, support)
        near = distance.between(low_band, high_band).astype(float)
        return (near * self._volume_surge(df)).where(support.notna() & close.notna())

    def upside_momentum(self, df: pd.DataFrame, tf: str) -> pd.Series:
        momentum = pct_change(df[f"{tf}_close"], self.config.momentum_period)
        return safe_clip(momentum, lower=0)

    def higher_highs(self, df: pd.DataFrame) -> pd.Series:
        high = df["1h_high"]
        prev_1, prev_2 = shift(high, 1), shift(high, 2)
        pattern = ((high > prev_1) & (prev_1 > prev_2)).astype(float)
        return pattern.where(prev_2.notna() & prev_1.notna() & high.notna())

    def bullish_body_strength(self, df: pd.DataFrame) -> pd.Series:
        o, h, l, c = df["1h_open"], df["1h_high"], df["1h_low"], df["1h_close"]
        bullish_candle = (c > o).astype(float).where(c.notna() & o.notna())
        return bullish_candle * safe_divide(c - o, h - l)

    def positive_volume_delta(self, df: pd.DataFrame) -> pd.Series:
        close = df["1h_close"]
        prev_close = shift(close, 1)
        price_up = (close > prev_close).astype(float).where(prev_close.notna() & close.notna())
        return price_up * self._volume_ratio(df)

    # =========================================================================
    # Bearish signals
    # =========================================================================

    def volume_on_breakdown(self, df: pd.DataFrame) -> pd.Series:
        """Volume surge on bars that break the prior lookback low"""
        lookback = self.config.breakout_lookback
        low = df["1h_low"]
        prior_low = rolling_aggregate(shift(low, 1), lookback, lookback // 2, "min")
        surge = self._volume_surge(df)
        return surge.where(low < prior_low, 0.0).where(prior_low.notna() & low.notna())

    def distribution_patterns(self, df: pd.DataFrame) -> pd.Series:
        clv = TechnicalIndicators.clv(df["1h_high"], df["1h_low"], df["1h_close"])
        return self._flow(df, safe_clip(clv, upper=0).abs())

    def resistance_rejection_strength(self, df: pd.DataFrame) -> pd.Series:
        """Volume surge while 1h close sits inside the band below 4h resistance"""
        window = self.config.support_window
        low_band, high_band = self.config.support_band
        close = df["1h_close"]

        resistance = rolling_aggregate(df["4h_high"], window, window // 2, "max")
        distance = safe_divide(resistance - close, resistance)
        near = distance.between(low_band, high_band).astype(float)
        return (near * self._volume_surge(df)).where(resistance.notna() & close.notna())

    def downside_momentum(self, df: pd.DataFrame, tf: str) -> pd.Series:
        momentum = pct_change(df[f"{tf}_close"], self.config.momentum_period)
        return safe_clip(momentum, upper=0).abs()

    def lower_lows(self, df: pd.DataFrame) -> pd.Series:
        low = df["1h_low"]
        prev_1, prev_2 = shift(low, 1), shift(low, 2)
        pattern = ((low < prev_1) & (prev_1 < prev_2)).astype(float)
        return pattern.where(prev_2.notna() & prev_1.notna() & low.notna())

    def bearish_body_strength(self, df: pd.DataFrame) -> pd.Series:
        o, h, l, c = df["1h_open"], df["1h_high"], df["1h_low"], df["1h_close"]
        bearish_candle = (c < o).astype(float).where(c.notna() & o.notna())
        return bearish_candle * safe_divide(o - c, h - l)

    def negative_volume_delta(self, df: pd.DataFrame) -> pd.Series:
        close = df["1h_close"]
        prev_close = shift(close, 1)
        price_down = (close < prev_close).astype(float).where(prev_close.notna() & close.notna())
        return price_down * self._volume_ratio(df)
