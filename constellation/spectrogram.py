"""
Normalized magnitude spectrogram.

Frames are transformed chunk by chunk into clamped decibel rows. The global
decibel range is then folded from the per-chunk extremes (first pass) and
every cell is rescaled into [0, 1] against it (second pass). Chunks are
independent, so they can be computed in parallel and re-assembled in order.
"""

import logging
from typing import List, Optional, Tuple

import librosa
import numpy as np
from joblib import Parallel, delayed

from .config import EPSILON, SpectrogramParams
from .fft import FFT, get_fft
from .framing import Framer

logger = logging.getLogger(__name__)

CHUNK_FRAMES = 256


def _chunk_bounds(n_frames: int, chunk: int = CHUNK_FRAMES) -> List[Tuple[int, int]]:
    return [(start, min(start + chunk, n_frames)) for start in range(0, n_frames, chunk)]


class SpectrogramBuilder:
    """
    Builds a (n_frames, fft_size / 2) matrix of normalized magnitudes.

    The returned matrix is read-only; rebuilding with another signal
    produces a new matrix rather than updating an old one.
    """

    def __init__(self, params: Optional[SpectrogramParams] = None):
        self.params = params or SpectrogramParams()

    @property
    def fft(self) -> FFT:
        # looked up on first transform, so an empty signal never builds tables
        return get_fft(self.params.fft_size)

    @property
    def n_bins(self) -> int:
        return self.params.fft_size // 2

    def _decibels(self, frames: np.ndarray) -> np.ndarray:
        fft = self.fft
        magnitudes = fft.magnitudes(fft.forward_batch(frames))
        decibels = 20.0 * np.log10(magnitudes + EPSILON)
        return np.clip(decibels, self.params.min_db, self.params.max_db)

    def _empty(self) -> np.ndarray:
        empty = np.zeros((0, self.n_bins), dtype=np.float64)
        empty.setflags(write=False)
        return empty

    def build(self, signal) -> np.ndarray:
        params = self.params
        framer = Framer(signal, params.fft_size, params.hop_size)
        n_frames = len(framer)
        if n_frames == 0:
            logger.debug("Signal of %d samples is shorter than one frame", len(framer.samples))
            return self._empty()

        bounds = _chunk_bounds(n_frames)
        if params.n_jobs == 1 or len(bounds) == 1:
            chunks = [self._decibels(framer.matrix(a, b)) for a, b in bounds]
        else:
            chunks = Parallel(n_jobs=params.n_jobs, prefer="threads")(
                delayed(self._decibels)(framer.matrix(a, b)) for a, b in bounds
            )

        # first pass: fold the chunk extremes into the global range
        global_min = min(float(c.min()) for c in chunks)
        global_max = max(float(c.max()) for c in chunks)
        decibels = np.concatenate(chunks, axis=0)

        # second pass: rescale against the global range
        span = global_max - global_min
        if span == 0:
            # silence (or any flat input) has no range to normalize against
            normalized = np.zeros_like(decibels)
        else:
            normalized = np.clip((decibels - global_min) / span, 0.0, 1.0)
        if params.exponent is not None:
            normalized = np.power(normalized, params.exponent)

        logger.debug(
            "Spectrogram: %d frames x %d bins, dB range [%.1f, %.1f]",
            n_frames, self.n_bins, global_min, global_max,
        )
        normalized.setflags(write=False)
        return normalized


def bin_frequencies(sample_rate: int, fft_size: int) -> np.ndarray:
    """Center frequency in Hz of every spectrogram column."""
    return librosa.fft_frequencies(sr=sample_rate, n_fft=fft_size)[:fft_size // 2]


def frame_times(n_frames: int, sample_rate: int, hop: int) -> np.ndarray:
    """Start time in seconds of every spectrogram row."""
    return librosa.frames_to_time(np.arange(n_frames), sr=sample_rate, hop_length=hop)
