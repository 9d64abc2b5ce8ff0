"""
Enums and constants for the direction predictor
"""

from enum import Enum, IntEnum


class PredictionClass(IntEnum):
    """Model output classes, ordered as the probability triple"""
    DOWN = 0
    NEUTRAL = 1
    UP = 2


class SignalCategory(Enum):
    """Signal categories, listed in feature vector order"""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    CLARITY = "clarity"


class AssetClass(Enum):
    """Supported instrument families"""
    CRYPTO = "crypto"
    FOREX = "forex"


class TimeFrame(Enum):
    """Time frames for analysis"""
    HOUR_1 = "1h"
    HOUR_4 = "4h"
    DAY_1 = "1d"


class Aggregation(Enum):
    """Window aggregate operations"""
    MEAN = "mean"
    STD = "std"
    SUM = "sum"
    MIN = "min"
    MAX = "max"


# Raw OHLCV fields, combined with a timeframe prefix: "1h_close"
OHLCV_FIELDS = ("open", "high", "low", "close", "volume")
DEFAULT_TIMEFRAMES = tuple(tf.value for tf in TimeFrame)

# Feature set versions; bump on any change to signal generation order
CRYPTO_FEATURE_VERSION = "v7.1"
FOREX_FEATURE_VERSION = "v3.0"

# Numerical guards
EPSILON = 1e-10
DEFAULT_FILL_VALUE = 0.0

# Feature balance sizing
MAX_BULLISH_SIGNALS = 15
MAX_BEARISH_SIGNALS = 15
MAX_NEUTRAL_SIGNALS = 20
IMBALANCE_WARNING_THRESHOLD = 2

# Quality thresholds
MAX_NAN_FRACTION = 0.10
MAX_ZERO_FRACTION = 0.95

# Input requirements
MIN_SAMPLES = 50

# Ensemble
CLASS_NAMES = tuple(c.name for c in PredictionClass)
MIN_MODELS_REQUIRED = 3
PREDICTION_TIMEOUT_SECONDS = 5.0

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
