"""
Shared fixtures: deterministic synthetic OHLCV data
"""

from typing import Dict, Sequence

import numpy as np
import pytest

from config.settings import PredictorConfig
from direction_predictor.core.dataset import build_dataset, required_columns

TIMEFRAME_VOLATILITY = {"1h": 0.01, "4h": 0.02, "1d": 0.04}


def make_ohlcv(
    n: int = 300,
    seed: int = 42,
    timeframes: Sequence[str] = ("1h", "4h", "1d"),
    base_price: float = 100.0
) -> Dict[str, np.ndarray]:
    """Random-walk OHLCV columns with valid bar geometry"""
    rng = np.random.default_rng(seed)
    data = {}
    for tf in timeframes:
        scale = TIMEFRAME_VOLATILITY.get(tf, 0.01)
        close = base_price * np.exp(np.cumsum(rng.normal(0, scale, n)))
        open_ = np.concatenate([[base_price], close[:-1]]) * (1 + rng.normal(0, scale / 4, n))
        high = np.maximum(open_, close) * (1 + rng.uniform(0.001, scale, n))
        low = np.minimum(open_, close) * (1 - rng.uniform(0.001, scale, n))
        volume = rng.uniform(1000, 5000, n)

        data[f"{tf}_open"] = open_
        data[f"{tf}_high"] = high
        data[f"{tf}_low"] = low
        data[f"{tf}_close"] = close
        data[f"{tf}_volume"] = volume
    return data


@pytest.fixture
def raw_data():
    return make_ohlcv()


@pytest.fixture
def ohlcv_df(raw_data):
    return build_dataset(raw_data, required_columns())


@pytest.fixture
def config():
    return PredictorConfig()


@pytest.fixture
def forex_config():
    return PredictorConfig(asset_class="forex")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "PREDICTOR_ASSET_CLASS",
        "PREDICTOR_MIN_SAMPLES",
        "PREDICTOR_MIN_MODELS",
        "PREDICTOR_TIMEOUT",
        "PREDICTOR_MODELS",
        "PREDICTOR_LOG_LEVEL",
        "PREDICTOR_LOG_TO_FILE",
    ):
        monkeypatch.delenv(key, raising=False)
