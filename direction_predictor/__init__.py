"""
Direction predictor: balanced technical features and ensemble decisions
for crypto and forex OHLCV data
"""

__version__ = "1.0.0"
