"""
The operations offered to presentation layers, plus a one-call analysis.

Every function here is a pure function of its inputs: nothing is cached
between calls except the read-only FFT tables.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .audio import Signal, waveform_envelope
from .config import FFT_SIZE, MAX_DB, MIN_DB, PeakParams, PipelineConfig, SpectrogramParams, TargetZone
from .errors import InvalidFrameSize
from .fft import get_fft
from .hashing import Fingerprint, build_hashes
from .log import Timer
from .pairing import Pair, pair_to_physical
from .pairing import generate_pairs as _generate_pairs
from .peaks import Peak
from .peaks import extract_peaks as _extract_peaks
from .spectrogram import SpectrogramBuilder, bin_frequencies, frame_times

logger = logging.getLogger(__name__)


def compute_spectrum(frame, fft_size: Optional[int] = None) -> np.ndarray:
    """
    FFT of a single frame. The FFT size defaults to the frame length,
    which must then be a power of two.
    """
    x = np.asarray(frame, dtype=np.float64)
    if x.ndim != 1:
        raise InvalidFrameSize(fft_size if fft_size is not None else x.size, x.shape)
    if fft_size is None:
        fft_size = x.shape[0]
    elif x.shape[0] != fft_size:
        # rejected before any tables are built
        raise InvalidFrameSize(fft_size, x.shape)
    return get_fft(fft_size).forward(x)


def build_spectrogram(signal, sample_rate: Optional[int] = None, fft_size: int = FFT_SIZE,
                      hop: Optional[int] = None, min_db: float = MIN_DB, max_db: float = MAX_DB,
                      exponent: Optional[float] = None, n_jobs: int = 1) -> np.ndarray:
    """
    Normalized (n_frames, fft_size / 2) magnitude spectrogram of `signal`.

    `signal` is either a Signal or a plain sample array; `sample_rate` is
    only checked, the matrix itself is in frame/bin units.
    """
    if sample_rate is not None and sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    params = SpectrogramParams(
        fft_size=fft_size, hop=hop, min_db=min_db, max_db=max_db, exponent=exponent, n_jobs=n_jobs,
    )
    return SpectrogramBuilder(params).build(signal)


def extract_peaks(spectrogram, params: Optional[PeakParams] = None) -> List[Peak]:
    return _extract_peaks(spectrogram, params)


def generate_pairs(peaks, target_zone: Optional[TargetZone] = None) -> List[Pair]:
    return _generate_pairs(peaks, target_zone)


@dataclass
class Analysis:
    signal: Signal
    config: PipelineConfig
    spectrogram: np.ndarray
    peaks: List[Peak]
    pairs: List[Pair]
    fingerprints: List[Fingerprint]
    timings: Dict[str, float] = field(default_factory=dict)

    def summary(self) -> Dict[str, object]:
        n_frames, n_bins = self.spectrogram.shape
        return {
            "duration_s": self.signal.duration,
            "sample_rate": self.signal.sample_rate,
            "n_frames": n_frames,
            "n_bins": n_bins,
            "num_peaks": len(self.peaks),
            "num_pairs": len(self.pairs),
            "num_hashes": len(self.fingerprints),
            "timings": dict(self.timings),
        }

    def envelope(self, buckets: int = 1000) -> np.ndarray:
        return waveform_envelope(self.signal, buckets)

    def physical_peaks(self) -> List[Dict[str, float]]:
        """Peaks in seconds and Hz, read off the spectrogram axes."""
        params = self.config.spectrogram
        times = frame_times(self.spectrogram.shape[0], self.signal.sample_rate, params.hop_size)
        freqs = bin_frequencies(self.signal.sample_rate, params.fft_size)
        return [
            {"time_s": float(times[p.time]), "freq_hz": float(freqs[p.freq]), "magnitude": float(p.magnitude)}
            for p in self.peaks
        ]

    def physical_pairs(self) -> List[Dict[str, float]]:
        params = self.config.spectrogram
        return [
            pair_to_physical(pair, self.signal.sample_rate, params.fft_size, params.hop_size)
            for pair in self.pairs
        ]


def analyze(signal: Signal, config: Optional[PipelineConfig] = None) -> Analysis:
    """Run signal -> spectrogram -> peaks -> pairs -> hashes once."""
    config = config or PipelineConfig()
    timer = Timer(logger)

    with timer.measure("Build spectrogram"):
        spectrogram = SpectrogramBuilder(config.spectrogram).build(signal)

    with timer.measure("Find peaks"):
        peaks = _extract_peaks(spectrogram, config.peaks)

    with timer.measure("Generate pairs"):
        pairs = _generate_pairs(peaks, config.target_zone)

    with timer.measure("Build hashes"):
        fingerprints = build_hashes(pairs, fan_out=config.fan_out)

    logger.info(
        "Analyzed %.2fs of audio: %d frames, %d peaks, %d pairs, %d hashes in %.3fs",
        signal.duration, spectrogram.shape[0], len(peaks), len(pairs), len(fingerprints), timer.total,
    )
    return Analysis(
        signal=signal,
        config=config,
        spectrogram=spectrogram,
        peaks=peaks,
        pairs=pairs,
        fingerprints=fingerprints,
        timings=timer.timings,
    )
