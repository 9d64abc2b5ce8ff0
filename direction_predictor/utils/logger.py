"""
Logging utilities for the direction predictor
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from direction_predictor.core.enums import LOG_FORMAT, LOG_DATE_FORMAT
from direction_predictor.core.models import BalanceReport, EnsembleDecision, ModelRunResult


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    log_dir: str = "logs"
) -> None:
    """
    Setup logging configuration for the predictor

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Whether to log to file
        log_dir: Directory for log files
    """

    if log_to_file:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # Console handler on stderr so stdout stays clean for CLI output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_filename = f"direction_predictor_{datetime.now().strftime('%Y%m%d')}.log"
        log_filepath = Path(log_dir) / log_filename

        file_handler = logging.FileHandler(log_filepath)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized at {level}")
    if log_to_file:
        logger.info(f"📁 Log file: {log_filepath}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class PipelineLogger:
    """
    Structured messages for one prediction run
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.run_count = 0

    def log_run_start(self, symbol: str, asset_class: str, rows: int) -> None:
        self.run_count += 1
        self.logger.info(f"🔄 Prediction #{self.run_count}: {symbol} ({asset_class}, {rows} bars)")

    def log_feature_summary(self, symbol: str, feature_count: int, version: str, substitutions: int) -> None:
        message = f"🧮 {symbol}: {feature_count} features ({version})"
        if substitutions:
            message += f" | {substitutions} substituted"
        self.logger.info(message)

    def log_balance_report(self, report: BalanceReport) -> None:
        status = "✅ PERFECT BALANCE" if report.is_balanced else "⚠️ IMBALANCE"
        self.logger.info(
            f"{status}: {report.bullish_count} bullish / {report.bearish_count} bearish | "
            f"{report.neutral_count} neutral, {report.clarity_count} clarity"
        )

    def log_model_result(self, result: ModelRunResult) -> None:
        if result.success:
            self.logger.debug(f"   ✓ {result.model} ({result.duration:.3f}s): {result.prediction}")
        else:
            self.logger.warning(f"   ✗ {result.model}: {result.error}")

    def log_decision(self, symbol: str, decision: EnsembleDecision, models_attempted: int) -> None:
        self.logger.info(
            f"📡 {symbol}: {decision.class_name} (conf: {decision.confidence:.2f}) | "
            f"{decision.models_used}/{models_attempted} models"
        )

    def log_error_with_context(self, error: Exception, context: str, symbol: str = None) -> None:
        message = f"❌ {context}"
        if symbol:
            message += f" ({symbol})"
        message += f": {str(error)}"

        self.logger.error(message, exc_info=True)


def log_startup_info(config) -> None:
    """Log startup information"""
    logger = get_logger("startup")

    logger.info("=" * 50)
    logger.info("🤖 Direction Predictor Starting")
    logger.info("=" * 50)
    logger.info(f"Asset class: {config.asset_class.upper()}")
    logger.info(f"Timeframes: {', '.join(config.timeframes)}")
    logger.info(f"Caps: {config.max_bullish} bullish / {config.max_bearish} bearish / {config.max_neutral} neutral")
    logger.info(f"Models: {', '.join(config.models)}")
    logger.info("=" * 50)
