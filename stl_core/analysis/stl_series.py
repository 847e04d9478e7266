from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from stl_core.analysis.errors import InvalidArgumentError
from stl_core.analysis.stats_utils import zscore
from stl_core.analysis.stl import Config, STLDecomposition


def _index_to_times(index: pd.Index) -> np.ndarray:
    """int64 loess x-coordinates: nanoseconds since the first timestamp for datetimes, positions otherwise."""
    if isinstance(index, pd.DatetimeIndex):
        if len(index) == 0:
            return np.empty(0, dtype=np.int64)
        return np.asarray((index - index[0]) // pd.Timedelta(1, "ns"), dtype=np.int64)
    if pd.api.types.is_integer_dtype(index.dtype):
        return index.to_numpy(dtype=np.int64)
    return np.arange(len(index), dtype=np.int64)


def stl_decompose_series(
    s: pd.Series,
    period: int,
    *,
    inner: int = 1,
    outer: int = 1,
    periodic: bool = False,
    low_pass_bandwidth: float = 0.25,
    trend_bandwidth: float = 0.25,
    seasonal_bandwidth: float = 1.0,
) -> Tuple[Dict[str, pd.Series], Dict[str, Any]]:
    """
    STL on a pandas Series. NaNs are dropped (no imputation) and the index is
    sorted; components come back on that index.

    Returns (parts, details) with parts keyed observed/seasonal/trend/resid,
    plus resid_z (the remainder z-scored) for downstream outlier checks.
    """
    y = pd.to_numeric(s, errors="coerce").astype(float).dropna().sort_index()
    if not y.index.is_unique:
        raise InvalidArgumentError("series index has duplicate timestamps")

    cfg = Config.for_period(
        period,
        len(y),
        number_of_inner_loop_passes=int(inner),
        number_of_robustness_iterations=int(outer),
        low_pass_filter_bandwidth=float(low_pass_bandwidth),
        trend_component_bandwidth=float(trend_bandwidth),
        seasonal_component_bandwidth=float(seasonal_bandwidth),
        periodic=bool(periodic),
    )
    res = STLDecomposition(cfg).decompose(_index_to_times(y.index), y.to_numpy())

    parts = {
        "observed": y,
        "seasonal": pd.Series(res.seasonal, index=y.index, name="seasonal"),
        "trend":    pd.Series(res.trend,    index=y.index, name="trend"),
        "resid":    pd.Series(res.remainder, index=y.index, name="resid"),
    }
    parts["resid_z"] = zscore(parts["resid"]).rename("resid_z")
    details = {
        "period": int(period),
        "inner": int(inner), "outer": int(outer),
        "periodic": bool(periodic),
        "trend_bandwidth": float(cfg.trend_component_bandwidth),
        "seasonal_bandwidth": float(cfg.seasonal_component_bandwidth),
        "low_pass_bandwidth": float(cfg.low_pass_filter_bandwidth),
        "n_points": int(len(y)),
    }
    return parts, details


def stl_figures(parts: Dict[str, pd.Series], title: str = "", unit: str = "") -> Dict[str, go.Figure]:
    figs = {}
    suffix = {"observed": "", "seasonal": " (seasonal)", "trend": " (trend)", "resid": " (residual)"}
    for name in ("observed", "seasonal", "trend", "resid"):
        ser = parts[name]
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=ser.index, y=ser.values, mode="lines", name=name))
        fig.update_layout(
            height=260,
            margin=dict(l=10, r=10, t=30, b=10),
            title=f"{title}: {name.capitalize()} (STL)" if title else f"{name.capitalize()} (STL)",
            yaxis_title=f"{unit}{suffix.get(name, '')}".strip(),
            hovermode="x",
        )
        figs[name] = fig
    return figs
