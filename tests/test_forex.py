import numpy as np
import pytest

from direction_predictor.core.dataset import build_dataset
from direction_predictor.core.enums import SignalCategory
from direction_predictor.features import ConservativeFeatureEngineer, create_feature_engineer
from direction_predictor.indicators.windowing import pct_change
from tests.conftest import make_ohlcv


@pytest.fixture
def forex_df(forex_config):
    raw = make_ohlcv(n=200, seed=7, base_price=1.1)
    for tf in ("4h", "1d"):
        raw.pop(f"{tf}_volume")
    return build_dataset(raw, ConservativeFeatureEngineer.required_columns, forex_config.min_samples)


def test_factory_picks_forex_engineer(forex_config):
    assert isinstance(create_feature_engineer(forex_config), ConservativeFeatureEngineer)


def test_required_columns_exclude_volume():
    assert "1h_volume" not in ConservativeFeatureEngineer.required_columns
    assert "1d_close" in ConservativeFeatureEngineer.required_columns


def test_all_features_neutral_and_ordered(forex_df, forex_config):
    result = ConservativeFeatureEngineer(forex_config).engineer_features(forex_df, "EURUSD")
    names = result.feature_names

    assert result.feature_version == "v3.0"
    assert names[:6] == [
        "1h_trend", "1h_range_pct", "1h_body_ratio",
        "1h_upper_shadow", "1h_lower_shadow", "1h_close_position",
    ]
    assert names[-3:] == ["1h_rsi", "1h_rsi_norm", "1h_bb_position"]
    assert result.balance.neutral_count == len(names)
    assert result.balance.bullish_count == result.balance.bearish_count == 0
    assert len(names) == 48


def test_volume_features_skipped_without_volume(forex_df, forex_config):
    df = forex_df.drop(columns=["1h_volume"])
    result = ConservativeFeatureEngineer(forex_config).engineer_features(df, "EURUSD")

    assert "1h_volume_ratio" not in result.feature_names
    assert "1h_pv_momentum" not in result.feature_names
    assert "1h_rsi" in result.feature_names


def test_momentum_matches_pct_change(forex_df, forex_config):
    ConservativeFeatureEngineer(forex_config).engineer_features(forex_df)
    expected = pct_change(forex_df["1h_close"], 3)
    np.testing.assert_allclose(forex_df["1h_momentum_3"], expected, equal_nan=True)


def test_moving_average_uses_expanding_warmup(forex_df, forex_config):
    ConservativeFeatureEngineer(forex_config).engineer_features(forex_df)
    sma_50 = forex_df["1h_sma_50"]
    assert not sma_50.isna().any()
    assert sma_50.iloc[0] == pytest.approx(forex_df["1h_close"].iloc[0])
    assert sma_50.iloc[60] == pytest.approx(forex_df["1h_close"].iloc[11:61].mean())


def test_trend_alignment_is_sign_product(forex_df, forex_config):
    ConservativeFeatureEngineer(forex_config).engineer_features(forex_df)
    assert set(np.unique(forex_df["trend_alignment"])) <= {-1.0, 0.0, 1.0}


def test_no_future_data(forex_df, forex_config):
    cutoff = 150
    prefix = forex_df.iloc[:cutoff].copy()
    full = ConservativeFeatureEngineer(forex_config).engineer_features(forex_df)
    truncated = ConservativeFeatureEngineer(forex_config).engineer_features(prefix)

    assert full.feature_names == truncated.feature_names
    for name in full.feature_names:
        np.testing.assert_allclose(
            forex_df[name].to_numpy()[:cutoff], prefix[name].to_numpy(),
            rtol=1e-9, equal_nan=True, err_msg=name,
        )


def test_verify_features_reports_constant(forex_df, forex_config):
    engineer = ConservativeFeatureEngineer(forex_config)
    engineer.engineer_features(forex_df)
    forex_df["1h_rsi_norm"] = 0.5

    issues = engineer.verify_features(forex_df)

    assert any(issue.startswith("1h_rsi_norm") for issue in issues)


def test_all_tagged_neutral(forex_df, forex_config):
    engineer = ConservativeFeatureEngineer(forex_config)
    engineer.engineer_features(forex_df)
    assert {engineer.signals.category_of(n) for n in engineer.get_feature_list()} == {SignalCategory.NEUTRAL}
