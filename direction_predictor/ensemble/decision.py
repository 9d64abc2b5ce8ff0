"""
Probability-averaging ensemble decision
"""

import logging
from typing import Sequence

import numpy as np

from direction_predictor.core.enums import CLASS_NAMES, PredictionClass
from direction_predictor.core.exceptions import EnsembleError
from direction_predictor.core.models import EnsembleDecision

logger = logging.getLogger(__name__)

NUM_CLASSES = len(PredictionClass)


def ensemble_predictions(predictions: Sequence[Sequence[float]]) -> EnsembleDecision:
    """
    Average per-model [down, neutral, up] probabilities into one decision.

    The mean is renormalized to sum to 1; the winning class is the arg-max
    with ties going to the lowest index, and its probability is the
    confidence. Non-finite entries count as 0.
    """
    if predictions is None or len(predictions) == 0:
        raise EnsembleError("No predictions to ensemble")

    rows = []
    for i, prediction in enumerate(predictions):
        row = np.asarray(prediction, dtype=np.float64).ravel()
        if row.shape != (NUM_CLASSES,):
            raise EnsembleError(
                f"Prediction {i} has {row.size} values, expected {NUM_CLASSES}"
            )
        rows.append(np.where(np.isfinite(row), row, 0.0))

    logger.info(f"🎯 Averaging {len(rows)} predictions...")
    mean = np.mean(rows, axis=0)

    total = mean.sum()
    if not np.isfinite(total) or total <= 0:
        logger.warning(f"⚠️ Degenerate probability sum {total}, using uniform distribution")
        normalized = np.full(NUM_CLASSES, 1.0 / NUM_CLASSES)
    else:
        normalized = mean / total

    class_index = int(np.argmax(normalized))
    confidence = float(normalized[class_index])
    class_name = CLASS_NAMES[class_index]

    logger.info(
        f"Predicted: {class_name} ({confidence * 100:.1f}%) | "
        f"DOWN={normalized[0] * 100:.1f}%, NEUTRAL={normalized[1] * 100:.1f}%, "
        f"UP={normalized[2] * 100:.1f}%"
    )

    return EnsembleDecision(
        class_index=class_index,
        class_name=class_name,
        confidence=confidence,
        probabilities={
            "down": float(normalized[PredictionClass.DOWN]),
            "neutral": float(normalized[PredictionClass.NEUTRAL]),
            "up": float(normalized[PredictionClass.UP]),
        },
        models_used=len(rows),
    )
