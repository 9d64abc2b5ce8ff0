"""
Base feature engineer and common signal utilities
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from config.settings import PredictorConfig
from direction_predictor.core.enums import SignalCategory
from direction_predictor.core.models import EngineeredFeatures, SignalSet
from direction_predictor.indicators.technical import IndicatorCache

logger = logging.getLogger(__name__)

SignalFunction = Callable[[pd.DataFrame], Optional[pd.Series]]


@dataclass(frozen=True)
class SignalCandidate:
    """A signal that may be computed and tagged, in generation order"""
    name: str
    category: SignalCategory
    compute: SignalFunction
    requires: Tuple[str, ...] = ()


class BaseFeatureEngineer(ABC):
    """Abstract base class for all feature engineers"""

    feature_version = ""
    required_columns: Sequence[str] = ()

    def __init__(self, config: Optional[PredictorConfig] = None):
        self.config = config or PredictorConfig()
        self.name = self.__class__.__name__
        self.cache = IndicatorCache()
        self.signals = self._new_signal_set()
        self.failed_signals: List[str] = []

    def _new_signal_set(self) -> SignalSet:
        return SignalSet()

    def reset(self) -> None:
        """Clear caches and signal lists before an independent run"""
        self.cache.clear()
        self.signals = self._new_signal_set()
        self.failed_signals = []

    @abstractmethod
    def engineer_features(self, df: pd.DataFrame, symbol: str = "UNKNOWN") -> EngineeredFeatures:
        """Add engineered columns to ``df`` and return the retained signal set"""
        pass

    def add_signal(
        self,
        df: pd.DataFrame,
        name: str,
        category: SignalCategory,
        compute: SignalFunction,
        requires: Sequence[str] = ()
    ) -> bool:
        """
        Compute and tag one signal column.

        A capped category skips the signal without computing it. Missing
        input columns and runtime failures are logged and the signal is
        omitted; nothing here aborts the pipeline.
        """
        if not self.signals.can_add(category):
            logger.debug(f"{self.name}: {category.value} cap reached, skipping {name}")
            return False

        missing = [col for col in requires if col not in df.columns]
        if missing:
            logger.debug(f"{self.name}: skipping {name}, missing {missing}")
            return False

        try:
            values = compute(df)
            if values is None:
                logger.debug(f"{self.name}: {name} not computable")
                return False
            df[name] = np.asarray(values, dtype=np.float64)
        except Exception as e:
            logger.warning(f"{self.name}: signal {name} failed: {e}")
            self.failed_signals.append(name)
            return False

        return self.signals.add(name, category)

    def add_signals(self, df: pd.DataFrame, candidates: Sequence[SignalCandidate]) -> int:
        """Attempt each candidate in order; returns how many were added"""
        added = 0
        for candidate in candidates:
            if self.add_signal(df, candidate.name, candidate.category, candidate.compute, candidate.requires):
                added += 1
        return added

    def get_feature_list(self) -> List[str]:
        return self.signals.ordered_names()

    def log_balance_report(self) -> None:
        report = self.signals.balance_report()
        logger.info(
            f"{self.name}: {report.total_features} features | "
            f"{report.bullish_count} bullish, {report.bearish_count} bearish, "
            f"{report.neutral_count} neutral, {report.clarity_count} clarity | "
            f"balanced: {'YES' if report.is_balanced else 'NO'}"
        )
