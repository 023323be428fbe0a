"""
Slicing a signal into overlapping, Hann-windowed analysis frames.
"""

from functools import lru_cache
from typing import Iterator, Optional

import numpy as np
import scipy.signal
from numpy.lib.stride_tricks import sliding_window_view

from .config import FFT_SIZE, default_hop, is_valid_fft_size
from .errors import InvalidFFTSize


@lru_cache(maxsize=8)
def hann_window(n: int) -> np.ndarray:
    """
    Symmetric Hann window, w[n] = 0.5 * (1 - cos(2*pi*n / (N - 1))).

    The returned array is shared between callers and is read-only.
    """
    window = scipy.signal.windows.hann(n, sym=True).astype(np.float64)
    window.setflags(write=False)
    return window


def frame_count(n_samples: int, fft_size: int, hop: int) -> int:
    """Number of complete frames: floor((L - N) / H), never negative."""
    return max(0, (n_samples - fft_size) // hop)


class Framer:
    """
    Restartable sequence of windowed frames over a signal.

    Frame i covers samples [i*hop, i*hop + fft_size). Frames that would run
    past the end of the signal are not produced; there is no zero padding.
    Each frame is a fresh array, so consumers may modify it freely.
    """

    def __init__(self, signal, fft_size: int = FFT_SIZE, hop: Optional[int] = None):
        samples = np.asarray(getattr(signal, "samples", signal), dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Signal must be mono (1-D), got shape {samples.shape}")
        if not is_valid_fft_size(fft_size):
            raise InvalidFFTSize(fft_size)
        hop = default_hop(fft_size) if hop is None else hop
        if hop <= 0:
            raise ValueError(f"hop must be positive, got {hop}")

        self.samples = samples
        self.fft_size = fft_size
        self.hop = hop

    @property
    def window(self) -> np.ndarray:
        return hann_window(self.fft_size)

    def __len__(self) -> int:
        return frame_count(len(self.samples), self.fft_size, self.hop)

    def __iter__(self) -> Iterator[np.ndarray]:
        window = self.window
        for i in range(len(self)):
            start = i * self.hop
            frame = self.samples[start:start + self.fft_size].copy()
            frame *= window
            yield frame

    def matrix(self, start: int = 0, stop: Optional[int] = None) -> np.ndarray:
        """Windowed frames [start, stop) stacked into a (n, fft_size) array."""
        count = len(self)
        stop = count if stop is None else min(stop, count)
        if start >= stop:
            return np.empty((0, self.fft_size), dtype=np.float64)
        views = sliding_window_view(self.samples, self.fft_size)[::self.hop]
        return views[start:stop] * self.window
