#!/usr/bin/env python3
"""
Direction Predictor - Main Entry Point
"""

import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Optional, Sequence

import pandas as pd

from config.settings import create_config, validate_config
from direction_predictor.agent.predictor import DirectionPredictor
from direction_predictor.core.exceptions import ConfigurationError, PredictorError
from direction_predictor.ensemble.decision import ensemble_predictions
from direction_predictor.utils.logger import log_startup_info, setup_logging


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Direction Predictor')

    parser.add_argument(
        '--mode',
        choices=['features', 'ensemble'],
        default='features',
        help='features: engineer an OHLCV file; ensemble: combine probability triples (default: features)'
    )

    parser.add_argument(
        '--input',
        type=str,
        help='OHLCV input file (.json mapping of column -> values, or .csv)'
    )

    parser.add_argument(
        '--probabilities',
        type=str,
        help='JSON list of [down, neutral, up] triples, inline or as a file path'
    )

    parser.add_argument(
        '--symbol',
        type=str,
        default='UNKNOWN',
        help='Symbol name used in logs and output'
    )

    parser.add_argument(
        '--asset',
        choices=['crypto', 'forex'],
        help='Asset class (default: from config, crypto)'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to custom config file'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Logging level (default: INFO)'
    )

    return parser.parse_args(argv)


def load_market_data(path: str) -> pd.DataFrame:
    """Read OHLCV columns from a JSON or CSV file"""
    if path.lower().endswith('.csv'):
        return pd.read_csv(path)

    with open(path, 'r') as f:
        return pd.DataFrame(json.load(f))


def load_probabilities(value: str) -> List[List[float]]:
    if os.path.exists(value):
        with open(value, 'r') as f:
            return json.load(f)
    return json.loads(value)


def run_features(predictor: DirectionPredictor, path: str, symbol: str) -> Dict:
    """Engineer features for one file and summarize them"""
    features, vector = predictor.engineer(symbol, load_market_data(path))
    return {
        "symbol": symbol,
        "feature_version": features.feature_version,
        "balance": features.balance.to_dict(),
        "categories": features.signals.categories(),
        "removed": features.removed,
        "problems": features.problems,
        "substitutions": list(vector.substitutions),
        "features": dict(zip(vector.names, vector.to_list())),
    }


def run_ensemble(value: str) -> Dict:
    return ensemble_predictions(load_probabilities(value)).to_dict()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""

    args = parse_arguments(argv)

    try:
        config = create_config(
            asset_class=args.asset,
            config_path=args.config,
            log_level=args.log_level
        )
    except ConfigurationError as e:
        setup_logging(level=args.log_level or "INFO")
        logging.getLogger(__name__).error(f"❌ {e}")
        return 2

    setup_logging(level=config.log_level, log_to_file=config.log_to_file)
    logger = logging.getLogger(__name__)

    if not validate_config(config):
        logger.error("❌ Configuration validation failed")
        return 2

    try:
        if args.mode == 'features':
            if not args.input:
                logger.error("❌ --input is required in features mode")
                return 2
            log_startup_info(config)
            predictor = DirectionPredictor(config, models=[])
            output = run_features(predictor, args.input, args.symbol)
        else:
            if not args.probabilities:
                logger.error("❌ --probabilities is required in ensemble mode")
                return 2
            output = run_ensemble(args.probabilities)

    except (PredictorError, OSError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
