import numpy as np
import pytest

from config.settings import PredictorConfig
from direction_predictor.agent.predictor import DirectionPredictor
from direction_predictor.core.exceptions import EnsembleError, InsufficientDataError, MissingColumnsError
from direction_predictor.ensemble.inference import CallableModel
from tests.conftest import make_ohlcv


def constant_model(name, probabilities):
    return CallableModel(name, lambda features: probabilities)


def failing_model(name):
    def predict(features):
        raise RuntimeError(f"{name} unavailable")
    return CallableModel(name, predict)


@pytest.fixture
def models():
    return [
        constant_model("bidirectional_attention", [0.1, 0.2, 0.7]),
        constant_model("hierarchical_lstm", [0.2, 0.2, 0.6]),
        constant_model("hybrid_transformer", [0.3, 0.3, 0.4]),
    ]


@pytest.mark.asyncio
async def test_predict_end_to_end(config, models, raw_data):
    record = await DirectionPredictor(config, models).predict("BTCUSDT", raw_data)

    assert record.decision.class_name == "UP"
    assert record.decision.confidence == pytest.approx(1.7 / 3)
    assert record.models_used == 3
    assert record.models_failed == 0
    assert record.feature_version == "v7.1"
    assert record.balance.is_balanced
    assert record.feature_count == record.balance.total_features


@pytest.mark.asyncio
async def test_failed_models_are_excluded(config, models, raw_data):
    models.append(failing_model("temporal_transformer"))

    record = await DirectionPredictor(config, models).predict("BTCUSDT", raw_data)

    assert record.models_attempted == 4
    assert record.models_used == 3
    assert record.models_failed == 1
    assert record.model_results[-1].error == "temporal_transformer unavailable"


@pytest.mark.asyncio
async def test_all_models_failing_raises(config, raw_data):
    predictor = DirectionPredictor(config, [failing_model("a"), failing_model("b")])
    with pytest.raises(EnsembleError):
        await predictor.predict("BTCUSDT", raw_data)


@pytest.mark.asyncio
async def test_few_models_warns(config, raw_data, caplog):
    predictor = DirectionPredictor(config, [constant_model("only", [0.5, 0.3, 0.2])])
    with caplog.at_level("WARNING"):
        record = await predictor.predict("BTCUSDT", raw_data)

    assert "Only 1 models configured" in caplog.text
    assert record.decision.class_name == "DOWN"


@pytest.mark.asyncio
async def test_missing_columns_fail_before_inference(config, raw_data):
    calls = []
    model = CallableModel("spy", lambda features: calls.append(1) or [0.3, 0.3, 0.4])
    raw_data.pop("1d_low")

    with pytest.raises(MissingColumnsError):
        await DirectionPredictor(config, [model]).predict("BTCUSDT", raw_data)
    assert calls == []


@pytest.mark.asyncio
async def test_short_history_is_rejected(config, models):
    with pytest.raises(InsufficientDataError):
        await DirectionPredictor(config, models).predict("BTCUSDT", make_ohlcv(n=20))


@pytest.mark.asyncio
async def test_store_receives_record(config, models, raw_data):
    stored = []
    record = await DirectionPredictor(config, models, store=stored.append).predict("BTCUSDT", raw_data)
    assert stored == [record]


@pytest.mark.asyncio
async def test_async_store_is_awaited(config, models, raw_data):
    stored = []

    async def store(record):
        stored.append(record.symbol)

    await DirectionPredictor(config, models, store=store).predict("ETHUSDT", raw_data)
    assert stored == ["ETHUSDT"]


@pytest.mark.asyncio
async def test_store_failure_is_not_raised(config, models, raw_data, caplog):
    def store(record):
        raise ConnectionError("database down")

    with caplog.at_level("ERROR"):
        record = await DirectionPredictor(config, models, store=store).predict("BTCUSDT", raw_data)

    assert record.decision.class_name == "UP"
    assert "database down" in caplog.text


@pytest.mark.asyncio
async def test_models_see_engineered_vector(config, raw_data):
    seen = []

    def capture(features):
        seen.append(np.array(features))
        return [0.3, 0.3, 0.4]

    predictor = DirectionPredictor(config, [CallableModel("capture", capture)])
    _, vector = predictor.engineer("BTCUSDT", make_ohlcv())
    await predictor.predict("BTCUSDT", raw_data)

    np.testing.assert_array_equal(seen[0], vector.values)


@pytest.mark.asyncio
async def test_forex_prediction(raw_data):
    config = PredictorConfig(asset_class="forex")
    models = [constant_model(name, [0.6, 0.3, 0.1]) for name in config.models]

    record = await DirectionPredictor(config, models).predict("EURUSD", raw_data)

    assert record.feature_version == "v3.0"
    assert record.decision.class_name == "DOWN"
    assert record.balance.neutral_count == record.feature_count
