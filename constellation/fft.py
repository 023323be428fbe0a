"""
Fixed-size radix-2 FFT with precomputed trigonometric tables.

The transform is the iterative Cooley-Tukey algorithm: inputs are placed in
bit-reversed order, then log2(N) butterfly stages combine them in place.
Each stage is evaluated for all of its butterflies at once with numpy, so a
whole stack of frames can be transformed in a single pass.
"""

from functools import lru_cache

import numpy as np

from .config import is_valid_fft_size
from .errors import InvalidFFTSize, InvalidFrameSize


def _bit_reversal_permutation(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.intp)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


class FFT:
    """
    Forward FFT of a fixed power-of-two size.

    Tables are built once per instance and only read afterwards, so one
    instance can be shared freely between callers and threads.
    """

    def __init__(self, size: int):
        if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
            raise InvalidFFTSize(size)
        size = int(size)
        if not is_valid_fft_size(size):
            raise InvalidFFTSize(size)
        self.size = size

        angles = 2.0 * np.pi * np.arange(size) / size
        self.cos_table = np.cos(angles)
        self.sin_table = np.sin(angles)
        self._bit_reversed = _bit_reversal_permutation(size)
        for table in (self.cos_table, self.sin_table, self._bit_reversed):
            table.setflags(write=False)

    @property
    def frequency_bin_count(self) -> int:
        return self.size // 2

    def _transform(self, x: np.ndarray) -> np.ndarray:
        n = self.size
        lead = x.shape[:-1]
        # fancy indexing copies, so the caller's array is never touched
        out = x[..., self._bit_reversed].astype(np.complex128)

        step = 1
        while step < n:
            jump = step << 1
            stride = n // jump
            # twiddle for butterfly `pair` is table[pair * N / jump]
            cos = self.cos_table[::stride][:step]
            sin = self.sin_table[::stride][:step]
            twiddle = cos - 1j * sin

            blocks = out.reshape(lead + (n // jump, 2, step))
            t = blocks[..., 1, :] * twiddle
            lower = blocks[..., 0, :] - t
            blocks[..., 0, :] += t
            blocks[..., 1, :] = lower
            step = jump

        return out

    def forward(self, frame) -> np.ndarray:
        """
        Transform one real frame of exactly `size` samples.

        Returns a new complex128 array of `size` coefficients; only bins
        [0, size/2] carry non-redundant content for real input.
        """
        x = np.asarray(frame, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.size:
            raise InvalidFrameSize(self.size, x.shape)
        return self._transform(x)

    def forward_batch(self, frames) -> np.ndarray:
        """Transform every row of an (n_frames, size) matrix."""
        x = np.asarray(frames, dtype=np.float64)
        if x.ndim != 2 or x.shape[1] != self.size:
            raise InvalidFrameSize(self.size, x.shape)
        return self._transform(x)

    def magnitudes(self, spectrum: np.ndarray) -> np.ndarray:
        """|X[k]| for the first size/2 bins (last axis)."""
        spectrum = np.asarray(spectrum)
        return np.abs(spectrum[..., :self.frequency_bin_count])


@lru_cache(maxsize=8)
def get_fft(size: int) -> FFT:
    """Shared engine per size; tables are read-only so reuse is safe."""
    return FFT(size)
