import numpy as np

from stl_core.analysis.low_pass import low_pass_filter
from stl_core.analysis.smoothing import LoessSmoother, moving_average


class RecordingSmoother:
    def __init__(self):
        self.calls = []

    def smooth(self, x, y, bandwidth, robustness_iterations=4, weights=None):
        self.calls.append((np.array(x), np.array(y), bandwidth, robustness_iterations, weights))
        return np.array(y)


def test_low_pass_cascades_moving_averages_then_loess():
    rng = np.random.default_rng(1)
    s = rng.normal(0, 1, 40)
    w = np.linspace(0.1, 1.0, 40)
    sm = RecordingSmoother()

    out = low_pass_filter(s, 6, 0.25, sm, weights=w, robustness_iterations=2)

    expected = moving_average(moving_average(moving_average(s, 6), 6), 3)
    assert len(sm.calls) == 1
    x, y, bw, iters, weights = sm.calls[0]
    assert np.array_equal(x, np.arange(40, dtype=float))
    assert np.allclose(y, expected)
    assert bw == 0.25
    assert iters == 2
    assert weights is w
    assert np.allclose(out, expected)


def test_low_pass_removes_a_pure_cycle_after_warmup():
    p = 12
    i = np.arange(120)
    s = 10.0 * np.sin(2 * np.pi * i / p)

    out = low_pass_filter(s, p, 0.25, LoessSmoother())
    assert len(out) == len(s)
    # far from the warm-up region the filtered cycle is close to zero
    assert np.max(np.abs(out[60:])) < 0.5
