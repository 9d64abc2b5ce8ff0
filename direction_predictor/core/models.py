"""
Data models shared across the feature pipeline and the ensemble
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from .enums import SignalCategory


@dataclass(frozen=True)
class SignalRecord:
    """A named signal column tagged with its category"""
    name: str
    category: SignalCategory


@dataclass(frozen=True)
class BalanceReport:
    """Counts of retained signals per category"""
    total_features: int
    bullish_count: int
    bearish_count: int
    neutral_count: int
    clarity_count: int

    @property
    def bullish_pct(self) -> float:
        return self.bullish_count / self.total_features * 100 if self.total_features > 0 else 0.0

    @property
    def bearish_pct(self) -> float:
        return self.bearish_count / self.total_features * 100 if self.total_features > 0 else 0.0

    @property
    def is_balanced(self) -> bool:
        return self.bullish_count == self.bearish_count

    @property
    def balance_ratio(self) -> float:
        return self.bullish_count / self.bearish_count if self.bearish_count > 0 else 0.0

    def to_dict(self) -> Dict:
        return {
            "total_features": self.total_features,
            "bullish_count": self.bullish_count,
            "bearish_count": self.bearish_count,
            "neutral_count": self.neutral_count,
            "clarity_count": self.clarity_count,
            "bullish_pct": self.bullish_pct,
            "bearish_pct": self.bearish_pct,
            "is_balanced": self.is_balanced,
            "balance_ratio": self.balance_ratio,
        }


class SignalSet:
    """
    Ordered collection of tagged signal records.

    Each name appears once. Categories may carry a cap; a category with no
    cap (None or absent) accepts any number of signals.
    """

    def __init__(self, caps: Optional[Dict[SignalCategory, Optional[int]]] = None):
        self.caps: Dict[SignalCategory, Optional[int]] = dict(caps or {})
        self._records: List[SignalRecord] = []

    def __contains__(self, name: str) -> bool:
        return any(r.name == name for r in self._records)

    def __iter__(self) -> Iterator[SignalRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def count(self, category: SignalCategory) -> int:
        return sum(1 for r in self._records if r.category is category)

    def can_add(self, category: SignalCategory) -> bool:
        cap = self.caps.get(category)
        return cap is None or self.count(category) < cap

    def add(self, name: str, category: SignalCategory) -> bool:
        """Tag a signal; returns False when capped or already present"""
        if name in self or not self.can_add(category):
            return False
        self._records.append(SignalRecord(name, category))
        return True

    def remove(self, names: Iterable[str]) -> List[str]:
        """Remove signals by name, returning the names actually removed"""
        targets = set(names)
        removed = [r.name for r in self._records if r.name in targets]
        self._records = [r for r in self._records if r.name not in targets]
        return removed

    def names(self, category: Optional[SignalCategory] = None) -> List[str]:
        if category is None:
            return [r.name for r in self._records]
        return [r.name for r in self._records if r.category is category]

    def category_of(self, name: str) -> Optional[SignalCategory]:
        for record in self._records:
            if record.name == name:
                return record.category
        return None

    def ordered_names(self) -> List[str]:
        """Feature order: bullish, bearish, neutral, clarity; insertion order within each"""
        ordered: List[str] = []
        for category in SignalCategory:
            for name in self.names(category):
                if name not in ordered:
                    ordered.append(name)
        return ordered

    def categories(self) -> Dict[str, List[str]]:
        return {category.value: self.names(category) for category in SignalCategory}

    def balance_report(self) -> BalanceReport:
        return BalanceReport(
            total_features=len(self.ordered_names()),
            bullish_count=self.count(SignalCategory.BULLISH),
            bearish_count=self.count(SignalCategory.BEARISH),
            neutral_count=self.count(SignalCategory.NEUTRAL),
            clarity_count=self.count(SignalCategory.CLARITY),
        )


@dataclass
class EngineeredFeatures:
    """Output of a feature engineering run"""
    symbol: str
    dataset: pd.DataFrame
    signals: SignalSet
    feature_version: str
    removed: List[str] = field(default_factory=list)
    problems: List[str] = field(default_factory=list)

    @property
    def feature_names(self) -> List[str]:
        return self.signals.ordered_names()

    @property
    def balance(self) -> BalanceReport:
        return self.signals.balance_report()


@dataclass(frozen=True)
class FeatureVector:
    """Last-row projection of the retained signals, in feature order"""
    names: Tuple[str, ...]
    values: np.ndarray
    substitutions: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.values)

    @property
    def substitution_count(self) -> int:
        return len(self.substitutions)

    def to_list(self) -> List[float]:
        return [float(v) for v in self.values]


@dataclass(frozen=True)
class EnsembleDecision:
    """Aggregated class decision from one or more models"""
    class_index: int
    class_name: str
    confidence: float
    probabilities: Dict[str, float]
    models_used: int

    def to_dict(self) -> Dict:
        return {
            "class": self.class_index,
            "className": self.class_name,
            "confidence": self.confidence,
            "probabilities": dict(self.probabilities),
            "modelsUsed": self.models_used,
        }


@dataclass
class ModelRunResult:
    """Outcome of one model's inference call"""
    model: str
    success: bool
    prediction: Optional[Tuple[float, ...]] = None
    error: Optional[str] = None
    duration: float = 0.0


@dataclass
class PredictionRecord:
    """Decision plus pipeline metadata handed to storage"""
    symbol: str
    asset_class: str
    decision: EnsembleDecision
    balance: BalanceReport
    feature_count: int
    feature_version: str
    substitutions: int
    models_attempted: int
    model_results: List[ModelRunResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def models_used(self) -> int:
        return self.decision.models_used

    @property
    def models_failed(self) -> int:
        return self.models_attempted - self.decision.models_used

    def to_dict(self) -> Dict:
        return {
            "symbol": self.symbol,
            "asset_class": self.asset_class,
            "prediction": self.decision.class_index,
            "class": self.decision.class_name,
            "confidence": self.decision.confidence,
            "probabilities": dict(self.decision.probabilities),
            "models_used": self.models_used,
            "models_failed": self.models_failed,
            "models_attempted": self.models_attempted,
            "feature_count": self.feature_count,
            "feature_version": self.feature_version,
            "feature_substitutions": self.substitutions,
            "balance": self.balance.to_dict(),
            "model_results": [
                {"model": r.model, "success": r.success, "error": r.error, "duration": r.duration}
                for r in self.model_results
            ],
            "timestamp": self.timestamp.isoformat(),
        }
