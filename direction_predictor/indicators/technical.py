"""
Technical indicators and per-timeframe basic features
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from direction_predictor.core.enums import DEFAULT_TIMEFRAMES, EPSILON
from .windowing import as_series, rolling_aggregate, safe_divide, shift

logger = logging.getLogger(__name__)


class TechnicalIndicators:
    """Collection of series-valued technical analysis indicators"""

    @staticmethod
    def true_range(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
        """True Range; high - low where there is no previous close"""
        high, low = as_series(high), as_series(low)
        close_prev = shift(close, 1)

        high_low = high - low
        high_close = (high - close_prev).abs()
        low_close = (low - close_prev).abs()

        tr = pd.concat([high_low, high_close, low_close], axis=1).max(axis=1, skipna=False)
        return tr.where(close_prev.notna(), high_low)

    @staticmethod
    def atr(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> pd.Series:
        """Average True Range"""
        tr = TechnicalIndicators.true_range(high, low, close)
        return rolling_aggregate(tr, period, max(1, period // 2), "mean")

    @staticmethod
    def clv(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
        """Close Location Value: ((close - low) - (high - close)) / (high - low)"""
        high, low, close = as_series(high), as_series(low), as_series(close)
        return safe_divide((close - low) - (high - close), high - low, 0.0)

    @staticmethod
    def rsi(returns: pd.Series, period: int = 14, epsilon: float = EPSILON) -> pd.Series:
        """Relative Strength Index from a return series (simple averages)"""
        returns = as_series(returns)
        gains = returns.clip(lower=0).where(returns.notna())
        losses = (-returns).clip(lower=0).where(returns.notna())

        avg_gain = rolling_aggregate(gains, period, period, "mean")
        avg_loss = rolling_aggregate(losses, period, period, "mean")

        rs = avg_gain / (avg_loss + epsilon)
        return 100 - (100 / (1 + rs))

    @staticmethod
    def bollinger_position(
        close: pd.Series,
        sma: pd.Series,
        volatility: pd.Series,
        std_dev: float = 2.0,
        epsilon: float = EPSILON
    ) -> pd.Series:
        """Position of close inside return-volatility Bollinger Bands (0 = lower, 1 = upper)"""
        close, sma, volatility = as_series(close), as_series(sma), as_series(volatility)
        band = std_dev * volatility * sma
        upper = sma + band
        lower = sma - band
        return (close - lower) / (upper - lower + epsilon)


def ohlc_columns(tf: str) -> Tuple[str, str, str, str]:
    return (f"{tf}_open", f"{tf}_high", f"{tf}_low", f"{tf}_close")


def intrabar_features(df: pd.DataFrame, tf: str, epsilon: float = EPSILON) -> Dict[str, pd.Series]:
    """
    Per-bar geometry of one timeframe, keyed by feature suffix.

    Describes the current bar only, so no shift is needed.
    """
    o, h, l, c = (df[col] for col in ohlc_columns(tf))
    total_range = h - l

    return {
        "return": (c - o) / (o + epsilon),
        "range": total_range / (c + epsilon),
        "body_ratio": (c - o).abs() / (total_range + epsilon),
        "upper_shadow": (h - np.maximum(o, c)) / (c + epsilon),
        "lower_shadow": (np.minimum(o, c) - l) / (c + epsilon),
        "close_position": (c - l) / (total_range + epsilon),
    }


def add_intrabar_features(
    df: pd.DataFrame,
    timeframes: Iterable[str] = DEFAULT_TIMEFRAMES,
    epsilon: float = EPSILON
) -> pd.DataFrame:
    """Write ``{tf}_{suffix}`` intrabar columns for each timeframe with OHLC present"""
    for tf in timeframes:
        if not all(col in df.columns for col in ohlc_columns(tf)):
            logger.debug(f"Skipping intrabar features for {tf}: missing OHLC")
            continue

        for suffix, values in intrabar_features(df, tf, epsilon).items():
            df[f"{tf}_{suffix}"] = values

    return df


class IndicatorCache:
    """
    Per-run cache for ATR and volume moving averages.

    Owned by one feature engineer and cleared at the start of every run so
    values never leak between symbols.
    """

    def __init__(self):
        self._atr: Dict[Tuple[str, int], pd.Series] = {}
        self._volume_ma: Dict[Tuple[str, int], Optional[pd.Series]] = {}

    def clear(self) -> None:
        self._atr.clear()
        self._volume_ma.clear()

    def __len__(self) -> int:
        return len(self._atr) + len(self._volume_ma)

    def atr(self, df: pd.DataFrame, tf: str, period: int = 14) -> pd.Series:
        """ATR for a timeframe, computed once per (timeframe, period)"""
        key = (tf, period)
        if key not in self._atr:
            self._atr[key] = TechnicalIndicators.atr(
                df[f"{tf}_high"], df[f"{tf}_low"], df[f"{tf}_close"], period
            )
        return self._atr[key]

    def volume_ma(self, df: pd.DataFrame, tf: str = "1h", window: int = 24) -> Optional[pd.Series]:
        """Volume moving average, or None when the volume column is absent"""
        key = (tf, window)
        if key not in self._volume_ma:
            column = f"{tf}_volume"
            if column in df.columns:
                self._volume_ma[key] = rolling_aggregate(df[column], window, window // 2, "mean")
            else:
                self._volume_ma[key] = None
        return self._volume_ma[key]
