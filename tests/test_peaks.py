"""
Tests for constellation/peaks.py: constellation map extraction.
"""

import numpy as np
import pytest

from constellation import Peak, PeakParams, extract_peaks

FIXED = PeakParams(neighborhood=5, threshold=0.4, min_distance=3, strategy="fixed")


def blank(n_frames: int = 100, n_bins: int = 400) -> np.ndarray:
    return np.zeros((n_frames, n_bins))


def assert_min_distance(peaks, min_distance):
    for i, a in enumerate(peaks):
        for b in peaks[i + 1:]:
            assert not (abs(a.time - b.time) < min_distance and abs(a.freq - b.freq) < min_distance)


# ---------------------------------------------------------------------------
# Empty and degenerate input
# ---------------------------------------------------------------------------


class TestEmptyInput:
    @pytest.mark.parametrize("strategy", ["fixed", "adaptive"])
    def test_zero_rows_returns_empty_list(self, strategy):
        """A spectrogram of a signal shorter than one frame has no peaks."""
        assert extract_peaks(np.zeros((0, 1024)), PeakParams(strategy=strategy)) == []

    def test_empty_list(self):
        assert extract_peaks([]) == []

    def test_silence_has_no_adaptive_peaks(self):
        assert extract_peaks(blank()) == []

    def test_rejects_one_dimensional_input(self):
        with pytest.raises(ValueError, match="2-D"):
            extract_peaks(np.zeros(10))


# ---------------------------------------------------------------------------
# Fixed-threshold strategy
# ---------------------------------------------------------------------------


class TestFixedStrategy:
    def test_single_peak(self):
        m = blank()
        m[50, 40] = 0.9
        assert extract_peaks(m, FIXED) == [Peak(50, 40, 0.9)]

    def test_plateau_is_not_a_peak(self):
        """Equal neighbors mean neither cell is strictly greater than the other."""
        m = blank()
        m[50, 40] = m[50, 41] = 0.9
        assert extract_peaks(m, FIXED) == []

    def test_below_threshold_rejected(self):
        m = blank()
        m[50, 40] = 0.3
        assert extract_peaks(m, FIXED) == []

    def test_threshold_is_inclusive(self):
        m = blank()
        m[50, 40] = 0.4
        assert extract_peaks(m, FIXED) == [Peak(50, 40, 0.4)]

    def test_only_lower_quarter_scanned(self):
        m = blank()
        m[50, 200] = 0.9
        assert extract_peaks(m, FIXED) == []

    def test_border_excluded(self):
        m = blank()
        m[2, 40] = 0.9
        m[50, 98] = 0.9
        assert extract_peaks(m, FIXED) == []

    def test_greedy_scan_order_keeps_earlier_peak(self):
        """The earlier candidate wins even when a later one is stronger."""
        m = blank()
        m[20, 20] = 0.9
        m[22, 30] = 0.95
        params = PeakParams(neighborhood=3, threshold=0.4, min_distance=15, strategy="fixed")
        assert extract_peaks(m, params) == [Peak(20, 20, 0.9)]

    def test_exclusion_needs_both_axes(self):
        """Close in time but far in frequency is allowed."""
        m = blank()
        m[20, 20] = 0.9
        m[22, 60] = 0.95
        params = PeakParams(neighborhood=3, threshold=0.4, min_distance=15, strategy="fixed")
        assert extract_peaks(m, params) == [Peak(20, 20, 0.9), Peak(22, 60, 0.95)]

    def test_accepts_nested_lists(self):
        m = blank()
        m[50, 40] = 0.9
        assert extract_peaks(m.tolist(), FIXED) == [Peak(50, 40, 0.9)]


# ---------------------------------------------------------------------------
# Adaptive strategy
# ---------------------------------------------------------------------------


class TestAdaptiveStrategy:
    def test_is_default(self):
        assert PeakParams().strategy == "adaptive"

    def test_finds_peak_in_energetic_region(self):
        m = blank(120, 400)
        m[59:62, 49:52] = 0.8
        m[60, 50] = 1.0
        assert extract_peaks(m) == [Peak(60, 50, 1.0)]

    def test_rejects_bump_below_region_mean(self):
        """A slight bump over a loud floor passes a fixed threshold but not the region gate."""
        m = np.full((120, 400), 0.5)
        m[60, 50] = 0.52
        fixed = PeakParams(strategy="fixed")
        assert extract_peaks(m, fixed) == [Peak(60, 50, 0.52)]
        assert extract_peaks(m, PeakParams(strategy="adaptive")) == []


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------


class TestInvariants:
    @pytest.mark.parametrize("strategy", ["fixed", "adaptive"])
    def test_min_distance_holds(self, strategy, rng):
        m = rng.random((200, 400))
        params = PeakParams(neighborhood=2, threshold=0.5, min_distance=4, strategy=strategy)
        peaks = extract_peaks(m, params)
        assert peaks
        assert_min_distance(peaks, 4)

    @pytest.mark.parametrize("strategy", ["fixed", "adaptive"])
    def test_idempotent(self, strategy, rng):
        m = rng.random((150, 400))
        params = PeakParams(neighborhood=3, threshold=0.3, min_distance=5, strategy=strategy)
        assert extract_peaks(m, params) == extract_peaks(m, params)

    def test_ordered_by_time_then_frequency(self, rng):
        m = rng.random((150, 400))
        peaks = extract_peaks(m, PeakParams(neighborhood=2, threshold=0.5, min_distance=3, strategy="fixed"))
        assert peaks == sorted(peaks, key=lambda p: (p.time, p.freq))

    def test_peaks_are_strict_local_maxima(self, rng):
        m = rng.random((150, 400))
        nb = 2
        for p in extract_peaks(m, PeakParams(neighborhood=nb, threshold=0.5, min_distance=3, strategy="fixed")):
            window = m[p.time - nb:p.time + nb + 1, p.freq - nb:p.freq + nb + 1]
            assert np.count_nonzero(window >= p.magnitude) == 1

    def test_input_not_modified(self, rng):
        m = rng.random((100, 400))
        before = m.copy()
        extract_peaks(m, FIXED)
        np.testing.assert_array_equal(m, before)


class TestPeak:
    def test_to_dict(self):
        assert Peak(1, 2, 0.5).to_dict() == {"time": 1, "freq": 2, "magnitude": 0.5}
