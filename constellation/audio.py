from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np
import soundfile as sf


@dataclass(frozen=True)
class Signal:
    """Mono waveform plus its sample rate. Samples are read-only."""

    samples: np.ndarray
    sample_rate: int

    @classmethod
    def from_array(cls, samples, sample_rate: int) -> "Signal":
        samples = np.array(samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Signal must be mono (1-D), got shape {samples.shape}")
        if not np.all(np.isfinite(samples)):
            raise ValueError("Signal contains NaN or infinite samples")
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        samples.setflags(write=False)
        return cls(samples=samples, sample_rate=int(sample_rate))

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate


def load_signal(path: Union[str, Path], target_sr: Optional[int] = None) -> Signal:
    signal, sr = sf.read(path)
    signal = np.asarray(signal, dtype=np.float64)
    if signal.ndim > 1:
        # signal is (num_samples, num_channels); transpose to (channels, samples)
        signal = librosa.to_mono(signal.T)
    if target_sr is not None and target_sr != sr:
        signal = librosa.resample(signal, orig_sr=sr, target_sr=target_sr)
        sr = target_sr
    return Signal.from_array(signal, sr)


def waveform_envelope(signal: Signal, buckets: int = 1000) -> np.ndarray:
    """
    Peak absolute amplitude per equal-width bucket of samples.

    This is the overview a waveform display draws. When the signal has
    fewer samples than `buckets`, every sample is its own bucket.
    """
    if buckets <= 0:
        raise ValueError(f"buckets must be positive, got {buckets}")
    magnitude = np.abs(signal.samples)
    if len(magnitude) == 0:
        return np.zeros(0)
    if len(magnitude) <= buckets:
        return magnitude.copy()
    bucket_size = len(magnitude) // buckets
    # trailing samples that do not fill a bucket are dropped
    trimmed = magnitude[:bucket_size * buckets]
    return trimmed.reshape(buckets, bucket_size).max(axis=1)


def cut_signal(signal: Signal, clip_length_sec: float, seed: int = 42) -> Signal:
    rng = np.random.default_rng(seed)
    total_samples = len(signal)
    clip_samples = int(clip_length_sec * signal.sample_rate)
    if clip_samples <= 0:
        raise ValueError(f"clip_length_sec must be positive, got {clip_length_sec}")
    if clip_samples >= total_samples:
        return signal
    start = int(rng.integers(0, total_samples - clip_samples))
    return Signal.from_array(signal.samples[start:start + clip_samples], signal.sample_rate)


def inject_noise(signal: Signal, snr_db: float, seed: Optional[int] = None) -> Signal:
    """
    Add white Gaussian noise to `signal` to get the desired SNR in dB.
    """
    samples = signal.samples

    # signal power (mean square)
    signal_power = float(np.mean(samples ** 2)) if len(samples) else 0.0
    if signal_power == 0:
        # nothing to measure the noise against
        return signal

    noise_power = signal_power / (10 ** (snr_db / 10))
    rng = np.random.default_rng(seed)
    noise = rng.normal(0.0, np.sqrt(noise_power), size=samples.shape)
    return Signal.from_array(samples + noise, signal.sample_rate)
