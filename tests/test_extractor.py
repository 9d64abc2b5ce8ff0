import numpy as np
import pandas as pd
import pytest

from direction_predictor.core.exceptions import InsufficientDataError
from direction_predictor.features.extractor import extract_feature_vector


def make_df():
    return pd.DataFrame({
        "a": [1.0, 2.0, 3.0],
        "b": [4.0, 5.0, np.nan],
        "c": [7.0, 8.0, np.inf],
        "d": [0.0, 0.0, -2.5],
    })


def test_last_row_in_requested_order():
    vector = extract_feature_vector(make_df(), ["d", "a"])
    assert vector.names == ("d", "a")
    assert vector.to_list() == [-2.5, 3.0]
    assert vector.substitution_count == 0


def test_substitutions_for_missing_nan_and_infinite():
    vector = extract_feature_vector(make_df(), ["a", "b", "c", "missing"])

    assert vector.to_list() == [3.0, 0.0, 0.0, 0.0]
    assert vector.substitution_count == 3
    assert vector.substitutions[0] == "b=NaN"
    assert vector.substitutions[2] == "missing=missing"


def test_custom_fill_value():
    vector = extract_feature_vector(make_df(), ["b"], fill_value=-1.0)
    assert vector.to_list() == [-1.0]


def test_vector_is_read_only():
    vector = extract_feature_vector(make_df(), ["a"])
    with pytest.raises(ValueError):
        vector.values[0] = 10.0


def test_empty_dataset_is_fatal():
    with pytest.raises(InsufficientDataError):
        extract_feature_vector(pd.DataFrame({"a": []}), ["a"])


def test_substitutions_are_logged(caplog):
    with caplog.at_level("WARNING"):
        extract_feature_vector(make_df(), ["b"])
    assert "Feature issues (1)" in caplog.text


def test_deterministic(ohlcv_df):
    names = ["1h_close", "4h_close", "1d_volume"]
    first = extract_feature_vector(ohlcv_df, names)
    second = extract_feature_vector(ohlcv_df, names)
    np.testing.assert_array_equal(first.values, second.values)
