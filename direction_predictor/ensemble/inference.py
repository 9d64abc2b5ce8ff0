"""
Model adapters and the concurrent inference runner
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Sequence, Tuple

import numpy as np

from direction_predictor.core.enums import PREDICTION_TIMEOUT_SECONDS, PredictionClass
from direction_predictor.core.exceptions import ModelInferenceError
from direction_predictor.core.models import FeatureVector, ModelRunResult

logger = logging.getLogger(__name__)


class PredictionModel(ABC):
    """A pre-trained 3-class model: feature vector in, [down, neutral, up] out"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def predict(self, features: np.ndarray) -> Sequence[float]:
        """Class scores for a single feature vector"""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class CallableModel(PredictionModel):
    """Wraps a plain function of the feature vector"""

    def __init__(self, name: str, func: Callable[[np.ndarray], Sequence[float]]):
        super().__init__(name)
        self.func = func

    def predict(self, features: np.ndarray) -> Sequence[float]:
        return self.func(features)


class ProbabilisticClassifierModel(PredictionModel):
    """
    Wraps any estimator exposing ``predict_proba`` (scikit-learn style).

    The estimator receives a single-row 2-D batch; the first row of its
    output is taken as the class probabilities.
    """

    def __init__(self, name: str, estimator: Any):
        if not hasattr(estimator, "predict_proba"):
            raise TypeError(f"{type(estimator).__name__} has no predict_proba")
        super().__init__(name)
        self.estimator = estimator

    def predict(self, features: np.ndarray) -> Sequence[float]:
        batch = np.asarray(features, dtype=np.float64).reshape(1, -1)
        return np.asarray(self.estimator.predict_proba(batch))[0]


def validate_prediction(model: str, output: Any) -> Tuple[float, ...]:
    """Coerce model output to a 3-tuple, raising ModelInferenceError when unusable"""
    try:
        values = np.asarray(output, dtype=np.float64).ravel()
    except (TypeError, ValueError) as e:
        raise ModelInferenceError(f"{model}: non-numeric output ({e})")

    if values.size != len(PredictionClass):
        raise ModelInferenceError(
            f"{model}: expected {len(PredictionClass)} values, got {values.size}"
        )
    if not np.isfinite(values).all():
        raise ModelInferenceError(f"{model}: non-finite output {values.tolist()}")

    return tuple(float(v) for v in values)


async def run_single_prediction(
    model: PredictionModel,
    vector: FeatureVector,
    timeout: float = PREDICTION_TIMEOUT_SECONDS
) -> ModelRunResult:
    """Run one model in a worker thread; failures become an unsuccessful result"""
    start = time.perf_counter()
    try:
        output = await asyncio.wait_for(asyncio.to_thread(model.predict, vector.values), timeout)
        prediction = validate_prediction(model.name, output)
    except asyncio.TimeoutError:
        error = f"Timeout for {model.name} after {timeout}s"
        logger.warning(f"   ✗ {error}")
        return ModelRunResult(model.name, False, error=error, duration=time.perf_counter() - start)
    except Exception as e:
        logger.warning(f"   ✗ {model.name} failed: {e}")
        return ModelRunResult(model.name, False, error=str(e), duration=time.perf_counter() - start)

    duration = time.perf_counter() - start
    logger.debug(f"   ✓ {model.name} completed in {duration:.3f}s")
    return ModelRunResult(model.name, True, prediction=prediction, duration=duration)


async def run_ensemble_predictions(
    models: Sequence[PredictionModel],
    vector: FeatureVector,
    timeout: float = PREDICTION_TIMEOUT_SECONDS
) -> Tuple[List[Tuple[float, ...]], List[ModelRunResult]]:
    """
    Run every model concurrently against the same vector.

    Returns the successful predictions (in model order) and one result
    per model. A failing model never affects the others.
    """
    logger.info(f"🧠 Running {len(models)} models...")

    results = await asyncio.gather(
        *(run_single_prediction(model, vector, timeout) for model in models)
    )
    predictions = [r.prediction for r in results if r.success]

    logger.info(f"Success rate: {len(predictions)}/{len(models)}")
    return predictions, list(results)
