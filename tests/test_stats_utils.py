import numpy as np
import pandas as pd
import pytest

from stl_core.analysis.stats_utils import component_strength, seasonal_autocorrelation, zscore
from stl_core.analysis.stl import STLResult


def test_zscore_of_empty_remainder_is_empty():
    assert zscore(pd.Series(dtype=float)).empty


def test_zscore_of_perfect_fit_is_zero():
    resid = pd.Series(np.full(24, 0.5), index=pd.RangeIndex(24), name="resid")
    z = zscore(resid)
    assert z.index.equals(resid.index)
    assert z.name == "resid"
    assert np.array_equal(z.to_numpy(), np.zeros(24))


def test_zscore_flags_the_largest_remainder():
    resid = pd.Series([-1.0, 1.0, -1.0, 1.0, 8.0, -1.0, 1.0, -1.0])
    z = zscore(resid)
    assert abs(float(z.mean())) < 1e-12
    assert float(z.std(ddof=0)) == pytest.approx(1.0)
    assert int(z.abs().idxmax()) == 4


def test_seasonal_autocorrelation_of_pure_cycle():
    i = np.arange(144)
    s = np.sin(2 * np.pi * i / 12)
    assert seasonal_autocorrelation(s, 12) > 0.9


def test_seasonal_autocorrelation_degenerate_is_nan():
    assert np.isnan(seasonal_autocorrelation(np.ones(50), 12))
    assert np.isnan(seasonal_autocorrelation(np.arange(10.0), 12))


def test_component_strength():
    rng = np.random.default_rng(0)
    n = 120
    i = np.arange(n, dtype=float)
    trend = 0.5 * i
    seasonal = 10.0 * np.sin(2 * np.pi * i / 12)
    remainder = rng.normal(0, 0.1, n)
    res = STLResult(
        times=np.arange(n),
        series=trend + seasonal + remainder,
        trend=trend,
        seasonal=seasonal,
        remainder=remainder,
    )
    out = component_strength(res)
    assert out["trend"] > 0.95
    assert out["seasonal"] > 0.95

    flat = STLResult(times=res.times, series=remainder, trend=np.zeros(n), seasonal=np.zeros(n), remainder=remainder)
    out = component_strength(flat)
    assert out["trend"] == 0.0
    assert out["seasonal"] == 0.0
