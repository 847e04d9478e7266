from __future__ import annotations

from typing import Optional

import numpy as np

from stl_core.analysis.smoothing import LOESS_ROBUSTNESS_ITERATIONS, Smoother, moving_average


def low_pass_filter(
    series: np.ndarray,
    period: int,
    bandwidth: float,
    smoother: Smoother,
    weights: Optional[np.ndarray] = None,
    robustness_iterations: int = LOESS_ROBUSTNESS_ITERATIONS,
) -> np.ndarray:
    """Moving averages of length period, period and 3, then a loess pass over 0..n-1."""
    out = moving_average(series, period)
    out = moving_average(out, period)
    out = moving_average(out, 3)
    x = np.arange(len(out), dtype=float)
    return smoother.smooth(x, out, bandwidth, robustness_iterations, weights)
