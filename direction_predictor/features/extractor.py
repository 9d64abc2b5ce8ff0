"""
Feature vector extraction from an engineered dataset
"""

import logging
from typing import List, Sequence

import numpy as np
import pandas as pd

from direction_predictor.core.enums import DEFAULT_FILL_VALUE
from direction_predictor.core.exceptions import InsufficientDataError
from direction_predictor.core.models import FeatureVector

logger = logging.getLogger(__name__)


def extract_feature_vector(
    df: pd.DataFrame,
    feature_names: Sequence[str],
    fill_value: float = DEFAULT_FILL_VALUE
) -> FeatureVector:
    """
    Project the most recent row onto ``feature_names``.

    Absent columns and missing or non-finite values are replaced by
    ``fill_value`` and reported as substitutions, never raised.
    """
    if df is None or len(df) == 0:
        raise InsufficientDataError("No data rows available for feature extraction")

    last = df.iloc[-1]
    values: List[float] = []
    substitutions: List[str] = []

    for name in feature_names:
        if name not in df.columns:
            values.append(fill_value)
            substitutions.append(f"{name}=missing")
            continue

        value = last[name]
        if value is None or pd.isna(value):
            values.append(fill_value)
            substitutions.append(f"{name}=NaN")
        elif not np.isfinite(float(value)):
            values.append(fill_value)
            substitutions.append(f"{name}={value}")
        else:
            values.append(float(value))

    array = np.asarray(values, dtype=np.float64)
    array.setflags(write=False)

    logger.info(f"Extracted {len(array)} features")
    if substitutions:
        logger.warning(
            f"⚠️ Feature issues ({len(substitutions)}): {', '.join(substitutions[:3])}"
        )

    return FeatureVector(names=tuple(feature_names), values=array, substitutions=tuple(substitutions))
