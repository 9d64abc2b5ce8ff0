import logging
import sys

import pytest

from direction_predictor.core.models import EnsembleDecision, ModelRunResult
from direction_predictor.utils.logger import PipelineLogger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_console_handler_writes_to_stderr():
    setup_logging("DEBUG")
    root = logging.getLogger()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert root.handlers[0].stream is sys.stderr


def test_file_handler_is_created(tmp_path):
    setup_logging("warning", log_to_file=True, log_dir=str(tmp_path / "logs"))

    assert logging.getLogger().level == logging.WARNING
    assert len(list((tmp_path / "logs").glob("direction_predictor_*.log"))) == 1


def test_pipeline_logger_messages(caplog):
    pipeline = PipelineLogger("tests.pipeline")
    decision = EnsembleDecision(2, "UP", 0.6, {"down": 0.2, "neutral": 0.2, "up": 0.6}, 2)

    with caplog.at_level("INFO"):
        pipeline.log_run_start("BTCUSDT", "crypto", 300)
        pipeline.log_model_result(ModelRunResult("lstm", False, error="boom"))
        pipeline.log_decision("BTCUSDT", decision, 3)

    assert pipeline.run_count == 1
    assert "Prediction #1: BTCUSDT" in caplog.text
    assert "lstm: boom" in caplog.text
    assert "UP (conf: 0.60) | 2/3 models" in caplog.text
