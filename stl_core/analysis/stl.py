# stl.py
"""
STL: a Seasonal-Trend decomposition procedure based on Loess.

Cleveland et al., "STL: A Seasonal-Trend Decomposition Procedure based on
Loess", Journal of Official Statistics 6(1), 1990, pp. 3-73.

Additive only: series = trend + seasonal + remainder.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from stl_core.analysis.cycle_subseries import combine_cycle_subseries, extract_cycle_subseries
from stl_core.analysis.errors import InvalidArgumentError, InvalidParameterError
from stl_core.analysis.low_pass import low_pass_filter
from stl_core.analysis.robustness import robustness_weights
from stl_core.analysis.smoothing import LOESS_ROBUSTNESS_ITERATIONS, LoessSmoother, Smoother, window_points

logger = logging.getLogger(__name__)


def periodic_trend_bandwidth(number_of_observations: int, number_of_data_points: int) -> float:
    """Trend bandwidth satisfying n_t >= 1.5 * n_p / (1 - 1.5 / n_s) with n_s = 10n + 1."""
    n_p = float(number_of_observations)
    n = float(number_of_data_points)
    return (1.5 * n_p) / (1.0 - 1.5 / (n * 10.0 + 1.0)) / n


@dataclass
class Config:
    number_of_observations: int  # points per seasonal cycle, n_p
    number_of_data_points: int  # series length, n
    number_of_inner_loop_passes: int = 1  # n_i
    number_of_robustness_iterations: int = 1  # n_o
    low_pass_filter_bandwidth: float = 0.25  # like n_l
    trend_component_bandwidth: float = 0.25  # like n_t
    seasonal_component_bandwidth: float = 1.0  # all points of each cycle subseries
    periodic: bool = False
    loess_robustness_iterations: int = LOESS_ROBUSTNESS_ITERATIONS

    @classmethod
    def for_period(cls, period: int, n: int, **overrides) -> "Config":
        return cls(number_of_observations=int(period), number_of_data_points=int(n), **overrides)

    def check(self) -> None:
        if self.number_of_observations < 2:
            raise InvalidParameterError("Periodicity (number_of_observations) must be >= 2")
        if self.number_of_data_points <= 2 * self.number_of_observations:
            raise InvalidParameterError(
                "number_of_data_points (total length) must contain more than "
                "2 * periodicity (number_of_observations) points"
            )
        for name in ("number_of_inner_loop_passes", "number_of_robustness_iterations"):
            if getattr(self, name) < 1:
                raise InvalidParameterError(f"{name} must be >= 1")
        if self.loess_robustness_iterations < 0:
            raise InvalidParameterError("loess_robustness_iterations must be >= 0")
        for name in ("low_pass_filter_bandwidth", "trend_component_bandwidth", "seasonal_component_bandwidth"):
            bw = getattr(self, name)
            if not 0.0 < bw <= 1.0:
                raise InvalidParameterError(f"{name} must be in (0, 1], got {bw}")

        if self.periodic:
            self.trend_component_bandwidth = periodic_trend_bandwidth(
                self.number_of_observations, self.number_of_data_points
            )

        n, p = self.number_of_data_points, self.number_of_observations
        spans = [("trend_component_bandwidth", n), ("low_pass_filter_bandwidth", n)]
        # cycle subseries hold n // p or n // p + 1 points; 2 or fewer are passed through
        for m in sorted({n // p, -(-n // p)}):
            if m > 2:
                spans.append(("seasonal_component_bandwidth", m))
        for name, m in spans:
            if window_points(getattr(self, name), m) < 2:
                raise InvalidParameterError(
                    f"{name}={getattr(self, name)} covers fewer than 2 of {m} points"
                )


@dataclass(frozen=True)
class STLResult:
    """series == trend + seasonal + remainder, element-wise."""
    times: np.ndarray
    series: np.ndarray
    trend: np.ndarray
    seasonal: np.ndarray
    remainder: np.ndarray


@dataclass(frozen=True)
class STLState:
    trend: np.ndarray
    seasonal: np.ndarray
    remainder: np.ndarray
    robustness: Optional[np.ndarray] = None

    @classmethod
    def initial(cls, n: int) -> "STLState":
        return cls(trend=np.zeros(n), seasonal=np.zeros(n), remainder=np.zeros(n))


class STLDecomposition:
    def __init__(self, config: Config, smoother: Optional[Smoother] = None):
        config.check()
        # private copy; later edits to the caller's config are not seen
        self.config = replace(config)
        self.smoother = smoother if smoother is not None else LoessSmoother()

    def _loess(self, x, y, bandwidth, weights):
        return self.smoother.smooth(x, y, bandwidth, self.config.loess_robustness_iterations, weights)

    def inner_pass(self, times: np.ndarray, series: np.ndarray, state: STLState) -> STLState:
        """One pass of detrend, cycle-subseries smoothing, low-pass, deseasonalize, trend smoothing."""
        cfg = self.config
        p = cfg.number_of_observations
        n = series.size

        detrend = series - state.trend
        cycle = extract_cycle_subseries(times, series, state.robustness, detrend, p)

        smoothed = [
            self._loess(cycle.times[i], cycle.values[i], cfg.seasonal_component_bandwidth, cycle.robustness[i])
            for i in range(len(cycle))
        ]
        combined = combine_cycle_subseries(smoothed, p, n)

        filtered = low_pass_filter(
            combined,
            p,
            cfg.low_pass_filter_bandwidth,
            self.smoother,
            weights=state.robustness,
            robustness_iterations=cfg.loess_robustness_iterations,
        )
        seasonal = combined - filtered

        deseasonalized = series - seasonal
        trend = self._loess(
            np.arange(n, dtype=float), deseasonalized, cfg.trend_component_bandwidth, state.robustness
        )
        return replace(state, trend=trend, seasonal=seasonal)

    def outer_update(self, series: np.ndarray, state: STLState) -> STLState:
        """Remainder and the robustness weights for the next outer iteration."""
        remainder = series - state.trend - state.seasonal
        return replace(state, remainder=remainder, robustness=robustness_weights(remainder))

    def _validate(self, times, series) -> tuple[np.ndarray, np.ndarray]:
        t_raw = np.asarray(times)
        if t_raw.dtype.kind == "f":
            if not np.all(np.isfinite(t_raw)) or np.any(t_raw != np.floor(t_raw)):
                raise InvalidArgumentError("times must be integers")
        elif t_raw.dtype.kind not in "iu":
            raise InvalidArgumentError(f"times must be integers, got dtype {t_raw.dtype}")
        t = np.array(t_raw, dtype=np.int64)
        y = np.array(series, dtype=float)
        n = self.config.number_of_data_points
        if t.ndim != 1 or y.ndim != 1:
            raise InvalidArgumentError("times and series must be 1-D")
        if t.size != n or y.size != n:
            raise InvalidArgumentError(
                f"expected {n} points (number_of_data_points), got times={t.size}, series={y.size}"
            )
        if not np.all(np.isfinite(y)):
            raise InvalidArgumentError("series must not contain NaN or inf")
        return t, y

    def decompose(self, times, series) -> STLResult:
        t, y = self._validate(times, series)
        cfg = self.config

        state = STLState.initial(y.size)
        for outer in range(cfg.number_of_robustness_iterations):
            for inner in range(cfg.number_of_inner_loop_passes):
                state = self.inner_pass(t, y, state)
                logger.debug("STL outer %d inner %d done", outer, inner)
            state = self.outer_update(y, state)
            logger.debug(
                "STL outer %d: min robustness weight %.4f", outer, float(np.min(state.robustness))
            )

        # TODO: periodic=True could replace seasonal by its per-cycle-position mean (R's stl does)

        logger.info(
            "STL decomposed %d points (period=%d, inner=%d, outer=%d)",
            y.size,
            cfg.number_of_observations,
            cfg.number_of_inner_loop_passes,
            cfg.number_of_robustness_iterations,
        )
        return STLResult(
            times=t,
            series=y,
            trend=state.trend,
            seasonal=state.seasonal,
            remainder=state.remainder,
        )
