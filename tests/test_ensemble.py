import time

import numpy as np
import pytest

from direction_predictor.core.exceptions import EnsembleError, ModelInferenceError
from direction_predictor.core.models import FeatureVector
from direction_predictor.ensemble.decision import ensemble_predictions
from direction_predictor.ensemble.inference import (
    CallableModel,
    ProbabilisticClassifierModel,
    run_ensemble_predictions,
    validate_prediction,
)


def make_vector(size=4):
    return FeatureVector(names=tuple(f"f{i}" for i in range(size)), values=np.arange(size, dtype=float))


class TestEnsembleDecision:
    def test_single_prediction(self):
        decision = ensemble_predictions([[0.1, 0.1, 0.8]])
        assert decision.class_name == "UP"
        assert decision.class_index == 2
        assert decision.confidence == pytest.approx(0.8)
        assert decision.models_used == 1

    def test_average_of_two(self):
        decision = ensemble_predictions([[0.9, 0.05, 0.05], [0.1, 0.1, 0.8]])
        assert decision.class_name == "DOWN"
        assert decision.confidence == pytest.approx(0.5)
        assert decision.probabilities["neutral"] == pytest.approx(0.075)
        assert decision.probabilities["up"] == pytest.approx(0.425)

    def test_renormalizes_unnormalized_scores(self):
        decision = ensemble_predictions([[1.0, 2.0, 1.0], [1.0, 2.0, 1.0]])
        assert decision.class_name == "NEUTRAL"
        assert decision.confidence == pytest.approx(0.5)
        assert sum(decision.probabilities.values()) == pytest.approx(1.0)

    def test_ties_go_to_lowest_index(self):
        assert ensemble_predictions([[0.4, 0.2, 0.4]]).class_name == "DOWN"
        assert ensemble_predictions([[0.2, 0.4, 0.4]]).class_name == "NEUTRAL"

    def test_empty_raises(self):
        with pytest.raises(EnsembleError):
            ensemble_predictions([])

    def test_wrong_length_raises(self):
        with pytest.raises(EnsembleError):
            ensemble_predictions([[0.5, 0.5]])

    def test_zero_sum_falls_back_to_uniform(self):
        decision = ensemble_predictions([[0.0, 0.0, 0.0]])
        assert decision.class_name == "DOWN"
        assert decision.confidence == pytest.approx(1 / 3)

    def test_to_dict_keys(self):
        result = ensemble_predictions([[0.1, 0.1, 0.8]]).to_dict()
        assert set(result) == {"class", "className", "confidence", "probabilities", "modelsUsed"}
        assert set(result["probabilities"]) == {"down", "neutral", "up"}


class TestValidatePrediction:
    def test_accepts_nested_output(self):
        assert validate_prediction("m", [[0.2, 0.3, 0.5]]) == (0.2, 0.3, 0.5)

    def test_rejects_wrong_size(self):
        with pytest.raises(ModelInferenceError):
            validate_prediction("m", [0.2, 0.8])

    def test_rejects_non_finite(self):
        with pytest.raises(ModelInferenceError):
            validate_prediction("m", [0.2, np.nan, 0.5])


class FakeEstimator:
    def __init__(self):
        self.seen_shape = None

    def predict_proba(self, batch):
        self.seen_shape = batch.shape
        return np.array([[0.1, 0.2, 0.7]])


def test_probabilistic_classifier_adapter():
    estimator = FakeEstimator()
    model = ProbabilisticClassifierModel("sk", estimator)

    assert list(model.predict(np.ones(5))) == [0.1, 0.2, 0.7]
    assert estimator.seen_shape == (1, 5)


def test_probabilistic_classifier_requires_predict_proba():
    with pytest.raises(TypeError):
        ProbabilisticClassifierModel("bad", object())


@pytest.mark.asyncio
async def test_failures_are_isolated():
    def broken(features):
        raise RuntimeError("model crashed")

    models = [
        CallableModel("good", lambda features: [0.2, 0.3, 0.5]),
        CallableModel("broken", broken),
        CallableModel("malformed", lambda features: [1.0]),
    ]

    predictions, results = await run_ensemble_predictions(models, make_vector())

    assert predictions == [(0.2, 0.3, 0.5)]
    assert [r.model for r in results] == ["good", "broken", "malformed"]
    assert [r.success for r in results] == [True, False, False]
    assert "model crashed" in results[1].error


@pytest.mark.asyncio
async def test_timeout_excludes_slow_model():
    def slow(features):
        time.sleep(0.5)
        return [0.1, 0.1, 0.8]

    models = [CallableModel("slow", slow), CallableModel("fast", lambda features: [0.6, 0.2, 0.2])]

    predictions, results = await run_ensemble_predictions(models, make_vector(), timeout=0.1)

    assert predictions == [(0.6, 0.2, 0.2)]
    assert not results[0].success
    assert "Timeout" in results[0].error


@pytest.mark.asyncio
async def test_models_receive_feature_values():
    received = []

    def capture(features):
        received.append(np.array(features))
        return [0.3, 0.3, 0.4]

    await run_ensemble_predictions([CallableModel("capture", capture)], make_vector(3))

    np.testing.assert_array_equal(received[0], [0.0, 1.0, 2.0])
