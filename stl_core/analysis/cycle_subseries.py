from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from stl_core.analysis.errors import InvalidArgumentError

# Weights this small destabilise the weighted loess fit; lift them to a floor.
MIN_ROBUSTNESS_WEIGHT = 0.001
FLOORED_ROBUSTNESS_WEIGHT = 0.01


@dataclass(frozen=True)
class CycleSubSeries:
    """
    One entry per position in the cycle. `indices[i]` holds the global
    positions i, i+p, i+2p, ... and the other lists are views gathered
    through it.
    """
    indices: List[np.ndarray]
    values: List[np.ndarray]
    times: List[np.ndarray]
    robustness: List[Optional[np.ndarray]]

    def __len__(self) -> int:
        return len(self.indices)


def cycle_indices(n: int, p: int) -> List[np.ndarray]:
    """Index map for each cycle position; lengths are ceil((n - i) / p)."""
    if int(p) < 1:
        raise InvalidArgumentError(f"cycle length must be >= 1, got {p}")
    return [np.arange(i, int(n), int(p)) for i in range(int(p))]


def extract_cycle_subseries(
    times: np.ndarray,
    series: np.ndarray,
    robustness: Optional[np.ndarray],
    detrend: np.ndarray,
    p: int,
) -> CycleSubSeries:
    """Split `detrend` (and matching times / weights) into p interleaved subseries."""
    n = len(series)
    if len(times) != n or len(detrend) != n or (robustness is not None and len(robustness) != n):
        raise InvalidArgumentError("times, detrend and robustness must match the series length")

    t = np.asarray(times, dtype=float)
    d = np.asarray(detrend, dtype=float)
    r = None if robustness is None else np.asarray(robustness, dtype=float)

    idx = cycle_indices(n, p)
    weights: List[Optional[np.ndarray]] = []
    for ix in idx:
        if r is None:
            weights.append(None)
            continue
        w = r[ix].copy()
        w[w < MIN_ROBUSTNESS_WEIGHT] = FLOORED_ROBUSTNESS_WEIGHT
        weights.append(w)

    return CycleSubSeries(
        indices=idx,
        values=[d[ix] for ix in idx],
        times=[t[ix] for ix in idx],
        robustness=weights,
    )


def combine_cycle_subseries(subseries: List[np.ndarray], p: int, n: int) -> np.ndarray:
    """Scatter subseries[i][k] back to global index i + k*p."""
    if len(subseries) != int(p):
        raise InvalidArgumentError(f"expected {p} subseries, got {len(subseries)}")
    out = np.empty(int(n), dtype=float)
    for ix, values in zip(cycle_indices(n, p), subseries):
        if len(values) != ix.size:
            raise InvalidArgumentError(
                f"subseries has {len(values)} values, cycle position needs {ix.size}"
            )
        out[ix] = values
    return out
