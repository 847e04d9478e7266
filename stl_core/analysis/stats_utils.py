from __future__ import annotations

from typing import Dict

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import acf

from stl_core.analysis.stl import STLResult


def zscore(resid: pd.Series) -> pd.Series:
    """
    Population z-score of a remainder series. Empty input is returned as is,
    a constant remainder (perfect fit) scores zero everywhere.
    """
    if resid is None or resid.empty:
        return resid
    r = resid.to_numpy(dtype=float)
    sd = float(np.std(r))
    if not np.isfinite(sd) or sd == 0.0:
        z = np.zeros_like(r)
    else:
        z = (r - r.mean()) / sd
    return pd.Series(z, index=resid.index, name=resid.name)


def seasonal_autocorrelation(seasonal, period: int) -> float:
    """Autocorrelation of the seasonal component at lag `period`."""
    s = np.asarray(seasonal, dtype=float)
    if s.size <= int(period) or float(np.std(s)) == 0.0:
        return float("nan")
    return float(acf(s, nlags=int(period), fft=True)[int(period)])


def component_strength(result: STLResult) -> Dict[str, float]:
    """
    Trend / seasonal strength in [0, 1] (Wang, Smith & Hyndman 2006):
      F_T = max(0, 1 - var(R) / var(T + R))
      F_S = max(0, 1 - var(R) / var(S + R))
    """
    r = np.asarray(result.remainder, dtype=float)
    var_r = float(np.var(r))

    def _strength(component: np.ndarray) -> float:
        denom = float(np.var(np.asarray(component, dtype=float) + r))
        if denom == 0.0:
            return 0.0
        return max(0.0, 1.0 - var_r / denom)

    return {"trend": _strength(result.trend), "seasonal": _strength(result.seasonal)}
