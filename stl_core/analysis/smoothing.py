"""
Smoothing primitives used by the STL engine.

- LoessSmoother: local-linear loess over a sliding nearest-neighbour window,
  tricube distance weights, optional per-point weights and bisquare
  robustness iterations.
- median / moving_average: the descriptive statistics the engine needs.

Anything with a matching ``smooth`` method can stand in for LoessSmoother.
"""
from __future__ import annotations

from typing import Optional, Protocol

import numpy as np
import pandas as pd

from stl_core.analysis.errors import DegenerateInputError, InvalidArgumentError

LOESS_ROBUSTNESS_ITERATIONS = 4  # same as R
LOESS_ACCURACY = 1e-12


class Smoother(Protocol):
    def smooth(
        self,
        x: np.ndarray,
        y: np.ndarray,
        bandwidth: float,
        robustness_iterations: int = LOESS_ROBUSTNESS_ITERATIONS,
        weights: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        ...


def _tricube(u: np.ndarray) -> np.ndarray:
    a = np.abs(u)
    return np.where(a < 1.0, (1.0 - a ** 3) ** 3, 0.0)


def _next_nonzero(weights: np.ndarray, i: int) -> int:
    j = i + 1
    while j < weights.size and weights[j] == 0:
        j += 1
    return j


def _slide_window(x: np.ndarray, weights: np.ndarray, i: int, left: int, right: int) -> tuple[int, int]:
    """Advance [left, right] by one non-zero-weight point if that brings it closer to x[i]."""
    next_right = _next_nonzero(weights, right)
    if next_right < x.size and x[next_right] - x[i] < x[i] - x[left]:
        return _next_nonzero(weights, left), next_right
    return left, right


def _check_inputs(x: np.ndarray, y: np.ndarray, bandwidth: float, weights: Optional[np.ndarray]) -> None:
    if x.ndim != 1 or y.ndim != 1 or x.size != y.size:
        raise InvalidArgumentError(f"x and y must be 1-D with equal length, got {x.shape} and {y.shape}")
    if not 0.0 < bandwidth <= 1.0:
        raise InvalidArgumentError(f"bandwidth must be in (0, 1], got {bandwidth}")
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise InvalidArgumentError("x and y must be finite")
    if x.size > 1 and np.any(np.diff(x) <= 0):
        raise InvalidArgumentError("x must be strictly increasing")
    if weights is not None:
        if weights.shape != x.shape:
            raise InvalidArgumentError(f"weights must match x, got {weights.shape} and {x.shape}")
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise InvalidArgumentError("weights must be finite and non-negative")


def window_points(bandwidth: float, m: int) -> int:
    """Points in a loess window of `bandwidth` over m samples."""
    return int(round(float(bandwidth) * int(m)))


class LoessSmoother:
    def __init__(self, accuracy: float = LOESS_ACCURACY):
        self.accuracy = float(accuracy)

    def smooth(
        self,
        x: np.ndarray,
        y: np.ndarray,
        bandwidth: float,
        robustness_iterations: int = LOESS_ROBUSTNESS_ITERATIONS,
        weights: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Smooth y(x) and return the fitted values at every x.

        The window holds round(bandwidth * m) points. After the first fit,
        `robustness_iterations` refits down-weight large residuals with the
        bisquare kernel (scaled by 6 * median residual).
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        w_ext = None if weights is None else np.asarray(weights, dtype=float)
        _check_inputs(x, y, float(bandwidth), w_ext)

        m = x.size
        if m <= 2:
            return y.copy()

        n_points = window_points(bandwidth, m)
        if n_points < 2:
            raise InvalidArgumentError(
                f"bandwidth {bandwidth} covers {n_points} of {m} points; need at least 2"
            )
        if w_ext is None:
            w_ext = np.ones(m)

        robust = np.ones(m)
        fit = np.empty(m)
        residuals = np.empty(m)

        for it in range(int(robustness_iterations) + 1):
            left, right = 0, n_points - 1
            for i in range(m):
                if i > 0:
                    left, right = _slide_window(x, w_ext, i, left, right)
                xi = x[i]
                edge = left if xi - x[left] > x[right] - xi else right
                span = abs(x[edge] - xi)
                if span == 0.0:
                    raise DegenerateInputError(f"empty loess window at index {i}")

                dx = x[left:right + 1] - xi
                w = _tricube(dx / span) * robust[left:right + 1] * w_ext[left:right + 1]
                sw = float(w.sum())
                if not sw > 0.0:
                    raise DegenerateInputError(f"loess weights sum to zero at index {i}")

                ys = y[left:right + 1]
                mean_x = float(np.dot(w, dx)) / sw
                mean_y = float(np.dot(w, ys)) / sw
                var_x = float(np.dot(w, dx * dx)) / sw - mean_x * mean_x
                if np.sqrt(abs(var_x)) < self.accuracy:
                    beta = 0.0
                else:
                    beta = (float(np.dot(w, dx * ys)) / sw - mean_x * mean_y) / var_x
                # local line evaluated at dx == 0
                fit[i] = mean_y - beta * mean_x
                residuals[i] = abs(y[i] - fit[i])

            if it == int(robustness_iterations):
                break

            median_residual = np.sort(residuals)[m // 2]
            if abs(median_residual) < self.accuracy:
                break
            arg = residuals / (6.0 * median_residual)
            robust = np.where(arg >= 1.0, 0.0, (1.0 - arg * arg) ** 2)

        return fit


def median(x) -> float:
    return float(np.median(np.asarray(x, dtype=float)))


def moving_average(x, window: int) -> np.ndarray:
    """
    Trailing mean over the last `window` values ending at each point.
    The first window-1 points average whatever is available so far.
    """
    if int(window) < 1:
        raise InvalidArgumentError(f"window must be >= 1, got {window}")
    s = pd.Series(np.asarray(x, dtype=float))
    return s.rolling(int(window), min_periods=1).mean().to_numpy()
