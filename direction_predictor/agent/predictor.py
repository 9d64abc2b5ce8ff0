"""
Prediction service that orchestrates feature engineering, inference and
the ensemble decision
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence, Tuple

from config.settings import PredictorConfig
from direction_predictor.core.dataset import RawMarketData, build_dataset
from direction_predictor.core.exceptions import EnsembleError, FeatureEngineeringError
from direction_predictor.core.models import EngineeredFeatures, FeatureVector, PredictionRecord
from direction_predictor.ensemble.decision import ensemble_predictions
from direction_predictor.ensemble.inference import PredictionModel, run_ensemble_predictions
from direction_predictor.features import create_feature_engineer, extract_feature_vector
from direction_predictor.utils.logger import PipelineLogger

logger = logging.getLogger(__name__)

PredictionStore = Callable[[PredictionRecord], Any]


class DirectionPredictor:
    """
    End-to-end direction prediction for one asset class.

    A fresh feature engineer is built for every call, so concurrent or
    successive predictions never share indicator caches or signal lists.
    """

    def __init__(
        self,
        config: PredictorConfig,
        models: Sequence[PredictionModel],
        store: Optional[PredictionStore] = None
    ):
        self.config = config
        self.models = list(models)
        self.store = store
        self.pipeline_logger = PipelineLogger(__name__)

        logger.info(
            f"🤖 Direction predictor initialized: {config.asset_class}, "
            f"{len(self.models)} models"
        )

    def engineer(self, symbol: str, raw_data: RawMarketData) -> Tuple[EngineeredFeatures, FeatureVector]:
        """Validate raw data and build the feature vector without running models"""
        engineer = create_feature_engineer(self.config)
        df = build_dataset(raw_data, engineer.required_columns, self.config.min_samples)
        self.pipeline_logger.log_run_start(symbol, self.config.asset_class, len(df))

        features = engineer.engineer_features(df, symbol)
        if not features.feature_names:
            raise FeatureEngineeringError(f"No features produced for {symbol}")

        vector = extract_feature_vector(features.dataset, features.feature_names, self.config.fill_value)
        self.pipeline_logger.log_feature_summary(
            symbol, len(vector), features.feature_version, vector.substitution_count
        )
        return features, vector

    async def predict(self, symbol: str, raw_data: RawMarketData) -> PredictionRecord:
        """
        Full prediction for one symbol.

        Raises ValidationError subclasses for bad input and EnsembleError
        when every model fails. Storage failures are only logged.
        """
        features, vector = self.engineer(symbol, raw_data)
        self.pipeline_logger.log_balance_report(features.balance)

        if len(self.models) < self.config.min_models_required:
            logger.warning(
                f"⚠️ Only {len(self.models)} models configured "
                f"(minimum recommended: {self.config.min_models_required})"
            )

        predictions, results = await run_ensemble_predictions(
            self.models, vector, self.config.prediction_timeout
        )
        for result in results:
            self.pipeline_logger.log_model_result(result)

        if not predictions:
            raise EnsembleError(f"All {len(self.models)} predictions failed for {symbol}")

        decision = ensemble_predictions(predictions)
        self.pipeline_logger.log_decision(symbol, decision, len(self.models))

        record = PredictionRecord(
            symbol=symbol,
            asset_class=self.config.asset_class,
            decision=decision,
            balance=features.balance,
            feature_count=len(vector),
            feature_version=features.feature_version,
            substitutions=vector.substitution_count,
            models_attempted=len(self.models),
            model_results=results,
        )

        await self._store(record)
        return record

    async def _store(self, record: PredictionRecord) -> None:
        if self.store is None:
            return

        try:
            result = self.store(record)
            if asyncio.iscoroutine(result):
                await result
            logger.debug(f"Stored prediction for {record.symbol}")
        except Exception as e:
            self.pipeline_logger.log_error_with_context(e, "Storing prediction failed", record.symbol)
