"""
Array windowing utilities.

Every series operation is null-aware: NaN marks "not yet computable" and
propagates forward instead of being coerced to zero. Comparisons against
the past must go through ``shift`` with a positive period.
"""

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from direction_predictor.core.enums import Aggregation, DEFAULT_FILL_VALUE

ArrayLike = Union[pd.Series, np.ndarray, Sequence[Optional[float]]]


def as_series(values: ArrayLike) -> pd.Series:
    """Coerce a sequence to a float Series; None becomes NaN"""
    if isinstance(values, pd.Series):
        return values.astype(np.float64)
    return pd.Series(np.asarray(values, dtype=np.float64))


def shift(series: ArrayLike, periods: int = 1) -> pd.Series:
    """
    Shift samples by ``periods`` (pandas semantics).

    Positive periods move sample i-k to position i, negative periods look
    ahead. Vacated positions are NaN; periods=0 returns a copy.
    """
    s = as_series(series)
    if periods == 0:
        return s.copy()
    return s.shift(periods)


def _default_min_periods(window: int, op: Aggregation) -> int:
    if op in (Aggregation.MEAN, Aggregation.STD):
        return window
    return window // 2


def _aggregate(window_obj, op: Aggregation) -> pd.Series:
    if op is Aggregation.STD:
        # Population standard deviation
        return window_obj.std(ddof=0)
    return getattr(window_obj, op.value)()


def rolling_aggregate(
    series: ArrayLike,
    window: int,
    min_periods: Optional[int] = None,
    op: Union[str, Aggregation] = Aggregation.MEAN
) -> pd.Series:
    """
    Trailing-window aggregate ending at each index.

    NaN samples are skipped; the result is NaN wherever fewer than
    ``min_periods`` valid samples fall in the window.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")

    op = Aggregation(op)
    s = as_series(series)
    if min_periods is None:
        min_periods = _default_min_periods(window, op)
    if min_periods > window:
        return pd.Series(np.nan, index=s.index)

    return _aggregate(s.rolling(window=window, min_periods=max(min_periods, 0)), op)


def expanding_aggregate(
    series: ArrayLike,
    min_periods: int = 1,
    op: Union[str, Aggregation] = Aggregation.MEAN
) -> pd.Series:
    """Aggregate over ``[0..i]`` at each index"""
    op = Aggregation(op)
    s = as_series(series)
    return _aggregate(s.expanding(min_periods=max(min_periods, 0)), op)


def rolling_or_expanding(
    series: ArrayLike,
    window: int,
    min_periods: Optional[int] = None,
    op: Union[str, Aggregation] = Aggregation.MEAN,
    expanding_min_periods: int = 1
) -> pd.Series:
    """Rolling value where defined, otherwise the expanding value at that index"""
    rolling = rolling_aggregate(series, window, min_periods, op)
    expanding = expanding_aggregate(series, expanding_min_periods, op)
    return rolling.where(rolling.notna(), expanding)


def pct_change(series: ArrayLike, periods: int = 1) -> pd.Series:
    """Percent change versus ``periods`` bars ago; NaN when the base is NaN or zero"""
    s = as_series(series)
    previous = shift(s, periods)
    valid = previous.notna() & (previous != 0)
    return ((s - previous) / previous.where(valid)).where(valid)


def safe_divide(
    numerator: Union[ArrayLike, float],
    denominator: Union[ArrayLike, float],
    fill_value: float = DEFAULT_FILL_VALUE
):
    """
    Element-wise division returning ``fill_value`` where the denominator
    is None, NaN or zero.

    Returns a Series when either operand is a Series (index preserved), a
    float for scalar operands and an ndarray otherwise.
    """
    index = None
    for operand in (numerator, denominator):
        if isinstance(operand, pd.Series):
            index = operand.index
            break

    num = np.asarray(numerator, dtype=np.float64)
    den = np.asarray(denominator, dtype=np.float64)
    num, den = np.broadcast_arrays(num, den)

    out = np.full(num.shape, fill_value, dtype=np.float64)
    valid = ~np.isnan(den) & (den != 0)
    np.divide(num, den, out=out, where=valid)

    if index is not None:
        return pd.Series(out, index=index)
    if out.ndim == 0:
        return float(out)
    return out


def safe_clip(
    values: ArrayLike,
    lower: Optional[float] = None,
    upper: Optional[float] = None
) -> pd.Series:
    """Clip to the given bounds; NaN stays NaN"""
    return as_series(values).clip(lower=lower, upper=upper)


def min_max_normalize(series: ArrayLike) -> pd.Series:
    """Scale to [0, 1] over the full series; a constant series maps to 0"""
    s = as_series(series)
    valid = s[np.isfinite(s)]
    if valid.empty:
        return pd.Series(np.nan, index=s.index)

    low, high = valid.min(), valid.max()
    if high == low:
        return s.where(s.isna(), 0.0)
    return (s - low) / (high - low)
