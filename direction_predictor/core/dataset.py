"""
Input dataset construction and validation
"""

import logging
from typing import Iterable, List, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from .enums import DEFAULT_TIMEFRAMES, MIN_SAMPLES, OHLCV_FIELDS
from .exceptions import InsufficientDataError, MissingColumnsError

logger = logging.getLogger(__name__)

RawMarketData = Union[pd.DataFrame, Mapping[str, Sequence[float]]]


def required_columns(
    timeframes: Iterable[str] = DEFAULT_TIMEFRAMES,
    fields: Iterable[str] = OHLCV_FIELDS
) -> List[str]:
    """Raw column names for every timeframe/field pair"""
    fields = list(fields)
    return [f"{tf}_{name}" for tf in timeframes for name in fields]


def build_dataset(
    raw: RawMarketData,
    required: Sequence[str],
    min_samples: int = MIN_SAMPLES
) -> pd.DataFrame:
    """
    Build a float DataFrame from raw OHLCV columns.

    Fails before any feature work when a required column is absent or
    empty, when columns disagree in length, or when fewer than
    ``min_samples`` bars are available.
    """
    if raw is None:
        raise MissingColumnsError(required)

    missing = [col for col in required if col not in raw or raw[col] is None]
    if missing:
        raise MissingColumnsError(missing)

    if isinstance(raw, pd.DataFrame):
        df = raw.copy()
    else:
        lengths = {col: len(values) for col, values in raw.items() if values is not None}
        if len(set(lengths.values())) > 1:
            raise InsufficientDataError(
                f"Columns have unequal lengths: {lengths}", fields=list(lengths)
            )
        df = pd.DataFrame({col: values for col, values in raw.items() if values is not None})

    df = df.reset_index(drop=True)
    for col in df.columns:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(np.float64)

    empty = [col for col in required if df[col].notna().sum() == 0]
    if empty:
        raise MissingColumnsError(empty)

    if len(df) < min_samples:
        raise InsufficientDataError(
            f"Need at least {min_samples} samples, got {len(df)} "
            f"for {', '.join(required)}",
            fields=required
        )

    logger.debug(f"Dataset built: {len(df)} rows, {len(df.columns)} columns")
    return df
