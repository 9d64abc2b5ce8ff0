import numpy as np
import pandas as pd
import pytest

from direction_predictor.indicators.windowing import (
    expanding_aggregate,
    min_max_normalize,
    pct_change,
    rolling_aggregate,
    rolling_or_expanding,
    safe_clip,
    safe_divide,
    shift,
)


def assert_values(series, expected):
    np.testing.assert_allclose(np.asarray(series, dtype=float), np.asarray(expected, dtype=float), equal_nan=True)


class TestShift:
    def test_positive_shift_looks_back(self):
        assert_values(shift([1, 2, 3], 1), [np.nan, 1, 2])

    def test_shift_by_two(self):
        assert_values(shift([1, 2, 3, 4], 2), [np.nan, np.nan, 1, 2])

    def test_negative_shift_looks_ahead(self):
        assert_values(shift([1, 2, 3], -1), [2, 3, np.nan])

    def test_shift_past_length_is_all_nan(self):
        assert shift([1, 2, 3], 5).isna().all()

    def test_zero_shift_returns_copy(self):
        original = pd.Series([1.0, 2.0])
        result = shift(original, 0)
        assert_values(result, [1, 2])
        result.iloc[0] = 99
        assert original.iloc[0] == 1.0


class TestRollingAggregate:
    def test_mean_defaults_to_full_window(self):
        assert_values(rolling_aggregate([1, 2, 3, 4], 3), [np.nan, np.nan, 2, 3])

    def test_min_defaults_to_half_window(self):
        assert_values(rolling_aggregate([4, 3, 2, 1], 4, op="min"), [np.nan, 3, 2, 1])

    def test_std_is_population(self):
        assert rolling_aggregate([1, 3], 2, op="std").iloc[1] == pytest.approx(1.0)

    def test_nan_samples_are_skipped(self):
        result = rolling_aggregate([1, np.nan, 3], 3, min_periods=2)
        assert result.iloc[2] == pytest.approx(2.0)
        assert np.isnan(result.iloc[1])

    def test_min_periods_above_window_is_all_nan(self):
        assert rolling_aggregate([1, 2, 3], 2, min_periods=3).isna().all()

    def test_invalid_window_raises(self):
        with pytest.raises(ValueError):
            rolling_aggregate([1, 2, 3], 0)

    def test_sum_and_max(self):
        assert_values(rolling_aggregate([1, 2, 3], 2, min_periods=1, op="sum"), [1, 3, 5])
        assert_values(rolling_aggregate([1, 5, 3], 2, min_periods=1, op="max"), [1, 5, 5])


def test_expanding_aggregate():
    assert_values(expanding_aggregate([1, 2, 3]), [1, 1.5, 2])
    assert_values(expanding_aggregate([1, 3, 5], min_periods=2, op="std"), [np.nan, 1, np.sqrt(8 / 3)])


def test_rolling_falls_back_to_expanding():
    result = rolling_or_expanding([1, 2, 3, 4, 5], 3, 3)
    assert_values(result, [1, 1.5, 2, 3, 4])


def test_short_series_falls_back_entirely():
    values = [1, 2, 3, 4, 5]
    assert rolling_aggregate(values, 10, 10).isna().all()
    assert_values(rolling_or_expanding(values, 10, 10), expanding_aggregate(values))
    assert_values(rolling_or_expanding(values, 10, 10), [1, 1.5, 2, 2.5, 3])


class TestPctChange:
    def test_basic(self):
        assert_values(pct_change([100, 110, 99], 1), [np.nan, 0.1, -0.1])

    def test_zero_or_missing_base_is_nan(self):
        result = pct_change([0, 5, np.nan, 4], 1)
        assert np.isnan(result.iloc[1])
        assert np.isnan(result.iloc[3])


class TestSafeDivide:
    def test_scalars(self):
        assert safe_divide(6, 3) == 2.0
        assert safe_divide(1, 0) == 0.0
        assert safe_divide(1, 0, fill_value=-1.0) == -1.0

    def test_lists_with_none_and_zero(self):
        result = safe_divide([1, 2, 3], [1, 0, None])
        assert_values(result, [1, 0, 0])

    def test_series_index_preserved(self):
        numerator = pd.Series([2.0, 4.0], index=[10, 11])
        result = safe_divide(numerator, 2)
        assert isinstance(result, pd.Series)
        assert list(result.index) == [10, 11]
        assert_values(result, [1, 2])

    def test_nan_numerator_propagates(self):
        assert np.isnan(safe_divide([np.nan], [2.0])[0])


def test_safe_clip_keeps_nan():
    assert_values(safe_clip([-1, np.nan, 2], lower=0), [0, np.nan, 2])


class TestMinMaxNormalize:
    def test_scales_to_unit_interval(self):
        assert_values(min_max_normalize([2, 4, 6]), [0, 0.5, 1])

    def test_constant_maps_to_zero(self):
        assert_values(min_max_normalize([3, 3, np.nan]), [0, 0, np.nan])

    def test_all_nan(self):
        assert min_max_normalize([np.nan, np.nan]).isna().all()
