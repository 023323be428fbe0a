"""
Shared fixtures for the test suite.

Signals are synthesized in memory so no test depends on audio files
shipped with the repository.
"""

import numpy as np
import pytest

from constellation import Signal

# ---------------------------------------------------------------------------
# Signal factories
# ---------------------------------------------------------------------------


def sine(freq: float, sample_rate: int, n_samples: int, amplitude: float = 1.0) -> np.ndarray:
    """Pure sinusoid of `n_samples` samples."""
    t = np.arange(n_samples) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def tone_bursts(freqs, sample_rate: int = 22050, burst_sec: float = 0.3, gap_sec: float = 0.1,
                lead_sec: float = 0.5, amplitude: float = 1e-4) -> np.ndarray:
    """
    Hann-shaped tone bursts, one per frequency, separated by silence.

    The amplitude keeps the loudest bin below the decibel ceiling so the
    spectrogram has a unique maximum per burst instead of a clipped plateau.
    """
    burst_len = int(burst_sec * sample_rate)
    envelope = np.hanning(burst_len)
    parts = [np.zeros(int(lead_sec * sample_rate))]
    for freq in freqs:
        parts.append(envelope * sine(freq, sample_rate, burst_len, amplitude))
        parts.append(np.zeros(int(gap_sec * sample_rate)))
    parts.append(np.zeros(int(lead_sec * sample_rate)))
    return np.concatenate(parts)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def burst_signal() -> Signal:
    return Signal.from_array(tone_bursts([1000.0, 1200.0, 1400.0]), 22050)


@pytest.fixture
def silent_signal() -> Signal:
    return Signal.from_array(np.zeros(22050), 22050)
