from __future__ import annotations

import logging

import numpy as np

from stl_core.analysis.errors import InvalidArgumentError
from stl_core.analysis.smoothing import median

logger = logging.getLogger(__name__)


def bisquare(u: float) -> float:
    """(1 - u^2)^2 on [0, 1), zero beyond."""
    if u < 0:
        raise InvalidArgumentError(f"Invalid u, must be >= 0: {u}")
    if u < 1:
        return (1.0 - u * u) ** 2
    return 0.0


def robustness_weights(remainder: np.ndarray) -> np.ndarray:
    """
    Per-point weights in [0, 1] from the current remainder.
    h = 6 * median(|remainder|); weight = bisquare(|r| / h).
    A zero h (remainder identically zero at the median) gives weight 1 everywhere.
    """
    abs_r = np.abs(np.asarray(remainder, dtype=float))
    h = 6.0 * median(abs_r)
    if h == 0.0:
        logger.warning("median absolute remainder is zero; using unit robustness weights")
        return np.ones_like(abs_r)
    return np.array([bisquare(u) for u in abs_r / h], dtype=float)
