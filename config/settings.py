"""
Configuration management for the direction predictor
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from direction_predictor.core.enums import (
    AssetClass,
    DEFAULT_FILL_VALUE,
    DEFAULT_TIMEFRAMES,
    EPSILON,
    IMBALANCE_WARNING_THRESHOLD,
    MAX_BEARISH_SIGNALS,
    MAX_BULLISH_SIGNALS,
    MAX_NAN_FRACTION,
    MAX_NEUTRAL_SIGNALS,
    MAX_ZERO_FRACTION,
    MIN_MODELS_REQUIRED,
    MIN_SAMPLES,
    PREDICTION_TIMEOUT_SECONDS,
    TimeFrame,
)
from direction_predictor.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    AssetClass.CRYPTO.value: [
        "bidirectional_attention",
        "hierarchical_lstm",
        "hybrid_transformer",
        "multiscale_transformer",
        "temporal_transformer",
    ],
    AssetClass.FOREX.value: [
        "bidirectional_attention",
        "hierarchical_lstm",
        "hybrid_transformer",
        "temporal_transformer",
    ],
}


@dataclass
class PredictorConfig:
    """Main configuration for the feature pipeline and ensemble"""

    # Instrument
    asset_class: str = AssetClass.CRYPTO.value
    timeframes: Tuple[str, ...] = DEFAULT_TIMEFRAMES
    min_samples: int = MIN_SAMPLES

    # Feature balance
    max_bullish: int = MAX_BULLISH_SIGNALS
    max_bearish: int = MAX_BEARISH_SIGNALS
    max_neutral: int = MAX_NEUTRAL_SIGNALS
    imbalance_warning: int = IMBALANCE_WARNING_THRESHOLD

    # Feature quality
    max_nan_fraction: float = MAX_NAN_FRACTION
    max_zero_fraction: float = MAX_ZERO_FRACTION

    # Numerics
    epsilon: float = EPSILON
    fill_value: float = DEFAULT_FILL_VALUE

    # Indicator windows
    atr_period: int = 14
    volume_ma_window: int = 24
    breakout_lookback: int = 10
    flow_window: int = 24
    support_window: int = 20
    support_band: Tuple[float, float] = (-0.02, 0.03)
    momentum_period: int = 3
    volume_delta_window: int = 20
    range_window: int = 24
    sideways_period: int = 10
    price_ma_window: int = 20

    # Regime classifiers
    regime_lookback: int = 168
    regime_min_samples: int = 10
    regime_warmup: int = 50
    volume_regime_thresholds: Tuple[float, float, float] = (0.8, 1.2, 2.0)

    # Ensemble
    models: List[str] = field(default_factory=lambda: list(DEFAULT_MODELS[AssetClass.CRYPTO.value]))
    min_models_required: int = MIN_MODELS_REQUIRED
    prediction_timeout: float = PREDICTION_TIMEOUT_SECONDS

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False

    def validate(self) -> bool:
        """Validate configuration parameters"""

        try:
            AssetClass(self.asset_class)
        except ValueError:
            logger.error(f"Unknown asset_class: {self.asset_class}")
            return False

        if not self.timeframes:
            logger.error("At least one timeframe is required")
            return False

        supported = {tf.value for tf in TimeFrame}
        unsupported = [tf for tf in self.timeframes if tf not in supported]
        if unsupported:
            logger.error(f"Unsupported timeframes: {unsupported}")
            return False

        if self.min_samples < 1:
            logger.error("min_samples must be positive")
            return False

        for name in ("max_bullish", "max_bearish", "max_neutral"):
            if getattr(self, name) < 0:
                logger.error(f"{name} must not be negative")
                return False

        if not 0 <= self.max_nan_fraction <= 1:
            logger.error("max_nan_fraction must be between 0 and 1")
            return False

        if not 0 <= self.max_zero_fraction <= 1:
            logger.error("max_zero_fraction must be between 0 and 1")
            return False

        low, high = self.support_band
        if low > high:
            logger.error("support_band lower bound exceeds upper bound")
            return False

        if list(self.volume_regime_thresholds) != sorted(self.volume_regime_thresholds):
            logger.error("volume_regime_thresholds must be ascending")
            return False

        if self.prediction_timeout <= 0:
            logger.error("prediction_timeout must be positive")
            return False

        return True

    def to_dict(self) -> Dict:
        """Convert config to dictionary"""
        config_dict = {}
        for key, value in self.__dict__.items():
            if isinstance(value, tuple):
                config_dict[key] = list(value)
            else:
                config_dict[key] = value
        return config_dict

    def save(self, filepath: str) -> None:
        """Save configuration to file"""
        config_dict = self.to_dict()
        with open(filepath, 'w') as f:
            json.dump(config_dict, f, indent=2)
        logger.info(f"Configuration saved to {filepath}")


def _load_env_numbers() -> Dict:
    """Numeric settings from the environment; raises ValueError on bad input"""

    numbers = {}

    if os.getenv('PREDICTOR_MIN_SAMPLES'):
        numbers['min_samples'] = int(os.getenv('PREDICTOR_MIN_SAMPLES'))

    if os.getenv('PREDICTOR_MIN_MODELS'):
        numbers['min_models_required'] = int(os.getenv('PREDICTOR_MIN_MODELS'))

    if os.getenv('PREDICTOR_TIMEOUT'):
        numbers['prediction_timeout'] = float(os.getenv('PREDICTOR_TIMEOUT'))

    return numbers


def load_env_config() -> Dict:
    """Load configuration from environment variables (and a .env file)"""

    load_dotenv()
    env_config = {}

    try:
        env_config.update(_load_env_numbers())
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric environment value: {e}") from e

    if os.getenv('PREDICTOR_ASSET_CLASS'):
        env_config['asset_class'] = os.getenv('PREDICTOR_ASSET_CLASS').lower()

    if os.getenv('PREDICTOR_MODELS'):
        env_config['models'] = [m.strip() for m in os.getenv('PREDICTOR_MODELS').split(',') if m.strip()]

    if os.getenv('PREDICTOR_LOG_LEVEL'):
        env_config['log_level'] = os.getenv('PREDICTOR_LOG_LEVEL').upper()

    if os.getenv('PREDICTOR_LOG_TO_FILE'):
        env_config['log_to_file'] = os.getenv('PREDICTOR_LOG_TO_FILE').lower() == 'true'

    return env_config


def load_config_file(filepath: str) -> Dict:
    """Load configuration from JSON file"""

    if not os.path.exists(filepath):
        logger.warning(f"Config file not found: {filepath}")
        return {}

    try:
        with open(filepath, 'r') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading config file {filepath}: {e}")
        return {}


def _coerce_tuples(config_data: Dict) -> Dict:
    """JSON has no tuples; restore them for tuple-typed fields"""
    for key in ('timeframes', 'support_band', 'volume_regime_thresholds'):
        if key in config_data and isinstance(config_data[key], list):
            config_data[key] = tuple(config_data[key])
    return config_data


def create_config(
    asset_class: Optional[str] = None,
    config_path: Optional[str] = None,
    log_level: Optional[str] = None
) -> PredictorConfig:
    """Create configuration with precedence: CLI > env vars > config file > defaults"""

    config_data = {}

    # Load from config file if provided
    if config_path:
        config_data.update(load_config_file(config_path))
    else:
        default_config_path = Path(__file__).parent / "predictor_config.json"
        if default_config_path.exists():
            config_data.update(load_config_file(str(default_config_path)))

    # Override with environment variables
    config_data.update(load_env_config())

    # CLI overrides
    if asset_class:
        config_data['asset_class'] = asset_class
    if log_level:
        config_data['log_level'] = log_level

    # Asset-specific model list unless one was given explicitly
    if 'models' not in config_data:
        asset = config_data.get('asset_class', AssetClass.CRYPTO.value)
        config_data['models'] = list(DEFAULT_MODELS.get(asset, DEFAULT_MODELS[AssetClass.CRYPTO.value]))

    known = {f.name for f in fields(PredictorConfig)}
    unknown = sorted(set(config_data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {unknown}")
        config_data = {k: v for k, v in config_data.items() if k in known}

    try:
        config = PredictorConfig(**_coerce_tuples(config_data))
    except TypeError as e:
        raise ConfigurationError(f"Configuration error: {e}") from e

    return config


def validate_config(config: PredictorConfig) -> bool:
    """Validate configuration and log warnings"""

    if not config.validate():
        return False

    if config.max_bullish != config.max_bearish:
        logger.warning(
            f"Asymmetric directional caps: {config.max_bullish} bullish vs {config.max_bearish} bearish"
        )

    if len(config.models) < config.min_models_required:
        logger.warning(
            f"Only {len(config.models)} models configured (minimum recommended: {config.min_models_required})"
        )

    if config.min_samples < 50:
        logger.warning(f"Low min_samples: {config.min_samples}, features will be sparse")

    return True


def create_default_config_file() -> None:
    """Create default configuration file"""

    config = PredictorConfig()
    config_path = Path(__file__).parent / "predictor_config.json"
    config.save(str(config_path))

    logger.info(f"Default config created at {config_path}")


if __name__ == "__main__":
    create_default_config_file()
