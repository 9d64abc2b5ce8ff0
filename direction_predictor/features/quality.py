"""
Directional balance and feature quality enforcement
"""

import logging
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from config.settings import PredictorConfig
from direction_predictor.core.enums import MAX_NAN_FRACTION, MAX_ZERO_FRACTION, SignalCategory
from direction_predictor.core.models import SignalSet

logger = logging.getLogger(__name__)


class BalanceQualityEnforcer:
    """
    Keeps the bullish and bearish groups the same size and drops signals
    that are unusable as model inputs.

    Both passes mutate the signal set and the dataset in place and are
    idempotent: running them a second time removes nothing.
    """

    def __init__(
        self,
        max_nan_fraction: float = MAX_NAN_FRACTION,
        max_zero_fraction: float = MAX_ZERO_FRACTION
    ):
        self.max_nan_fraction = max_nan_fraction
        self.max_zero_fraction = max_zero_fraction

    @classmethod
    def from_config(cls, config: PredictorConfig) -> "BalanceQualityEnforcer":
        return cls(config.max_nan_fraction, config.max_zero_fraction)

    def enforce_balance(self, df: pd.DataFrame, signals: SignalSet) -> List[str]:
        """Trim the larger directional group from its end; returns removed names"""
        bullish = signals.names(SignalCategory.BULLISH)
        bearish = signals.names(SignalCategory.BEARISH)

        excess = len(bullish) - len(bearish)
        if excess > 0:
            to_remove = bullish[-excess:]
            logger.info(f"⚖️ Removed {excess} excess bullish features: {to_remove}")
        elif excess < 0:
            to_remove = bearish[excess:]
            logger.info(f"⚖️ Removed {-excess} excess bearish features: {to_remove}")
        else:
            return []

        removed = signals.remove(to_remove)
        df.drop(columns=[c for c in removed if c in df.columns], inplace=True)
        return removed

    def _problem(self, df: pd.DataFrame, name: str, total_rows: int):
        if name not in df.columns:
            return "missing"

        series = df[name]
        nan_fraction = series.isna().sum() / total_rows
        if nan_fraction > self.max_nan_fraction:
            return f"NaN: {nan_fraction * 100:.1f}%"

        if series.dropna().nunique() <= 1:
            return "constant"

        zero_fraction = (series == 0).sum() / total_rows
        if zero_fraction > self.max_zero_fraction:
            return f"mostly zeros: {zero_fraction * 100:.1f}%"

        return None

    @staticmethod
    def repair(series: pd.Series) -> pd.Series:
        """Replace non-finite values: forward fill, then backward fill, then 0"""
        cleaned = series.replace([np.inf, -np.inf], np.nan)
        return cleaned.ffill().bfill().fillna(0.0)

    def check_quality(self, df: pd.DataFrame, signals: SignalSet) -> Dict[str, str]:
        """
        Remove signals that are missing, too sparse, constant or mostly zero.

        Returns a mapping of removed name to rejection reason. Retained
        signals holding non-finite values are repaired in place.
        """
        total_rows = max(len(df), 1)
        problems: Dict[str, str] = {}

        for name in signals.names():
            reason = self._problem(df, name, total_rows)
            if reason is not None:
                problems[name] = reason
                continue

            if not np.isfinite(df[name].to_numpy(dtype=np.float64)).all():
                df[name] = self.repair(df[name])

        if problems:
            logger.warning(f"⚠️ Found {len(problems)} problematic features")
            for name, reason in problems.items():
                logger.debug(f"   {name} ({reason})")
            signals.remove(problems)
            df.drop(columns=[c for c in problems if c in df.columns], inplace=True)
        else:
            logger.debug("All features passed quality checks")

        return problems

    def enforce(self, df: pd.DataFrame, signals: SignalSet) -> Tuple[List[str], List[str]]:
        """
        Balance, quality check, then balance again.

        Returns the removed names (in removal order) and the human-readable
        problem list.
        """
        removed = self.enforce_balance(df, signals)

        problems = self.check_quality(df, signals)
        removed.extend(problems)

        removed.extend(self.enforce_balance(df, signals))

        bullish = signals.count(SignalCategory.BULLISH)
        bearish = signals.count(SignalCategory.BEARISH)
        logger.info(f"✅ Final balance: {bullish} bullish, {bearish} bearish")

        return removed, [f"{name} ({reason})" for name, reason in problems.items()]
