"""
Pipeline configuration: reference constants and the parameter objects built from them.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import InvalidFFTSize

# ---------- CONFIG ---------- #

FFT_SIZE = 2048
MAX_FFT_SIZE = 1 << 16  # twiddle tables and frame stacks grow with N
HOP_DIVISOR = 4  # default hop is fft_size / 4, i.e. 75% overlap
MIN_DB = -90.0
MAX_DB = -20.0
EPSILON = 1e-6  # keeps log10 finite on silence

# Peaks are only searched in the lower quarter of the frequency bins
SCAN_FRACTION = 4
PEAK_NEIGHBORHOOD = 15
PEAK_THRESHOLD = 0.4
MIN_DISTANCE = 20

# Adaptive thresholding
REGION_BASE = 8
MIN_REGIONS = 20
MAX_REGIONS = 40
DYNAMIC_MIN_FACTOR = 1.2
REGION_ENERGY_FACTOR = 0.3
REGION_PEAK_FACTOR = 1.1

# Target zone, in frames / bins
MIN_DT = 5
MAX_DT = 100
MAX_DF = 50

FUZ_FACTOR = 2  # absorb small variations in frequency / time: 43 → 42, 21 → 20, etc.

STRATEGIES = ("fixed", "adaptive")


def is_valid_fft_size(n: int) -> bool:
    """Power of two in [2, MAX_FFT_SIZE]."""
    return 2 <= n <= MAX_FFT_SIZE and (n & (n - 1)) == 0


def default_hop(fft_size: int) -> int:
    return fft_size // HOP_DIVISOR


@dataclass(frozen=True)
class SpectrogramParams:
    """
    Framing and normalization parameters for the spectrogram builder.

    Attributes:
        fft_size: FFT length N, a power of two.
        hop: Samples between consecutive frames. Defaults to N/4.
        min_db: Floor applied to every decibel value.
        max_db: Ceiling applied to every decibel value.
        exponent: Optional contrast exponent applied after normalization.
        n_jobs: Worker count for the chunked build (1 = sequential).
    """

    fft_size: int = FFT_SIZE
    hop: Optional[int] = None
    min_db: float = MIN_DB
    max_db: float = MAX_DB
    exponent: Optional[float] = None
    n_jobs: int = 1

    def __post_init__(self) -> None:
        if not is_valid_fft_size(self.fft_size):
            raise InvalidFFTSize(self.fft_size)
        if self.hop is not None and self.hop <= 0:
            raise ValueError(f"hop must be positive, got {self.hop}")
        if self.min_db >= self.max_db:
            raise ValueError(f"min_db ({self.min_db}) must be below max_db ({self.max_db})")
        if self.exponent is not None and self.exponent <= 0:
            raise ValueError(f"exponent must be positive, got {self.exponent}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")

    @property
    def hop_size(self) -> int:
        return self.hop if self.hop is not None else default_hop(self.fft_size)


@dataclass(frozen=True)
class PeakParams:
    """Constellation extraction parameters (bin/frame units)."""

    neighborhood: int = PEAK_NEIGHBORHOOD
    threshold: float = PEAK_THRESHOLD
    min_distance: int = MIN_DISTANCE
    strategy: str = "adaptive"

    def __post_init__(self) -> None:
        if self.neighborhood < 1:
            raise ValueError(f"neighborhood must be at least 1, got {self.neighborhood}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must lie in [0, 1], got {self.threshold}")
        if self.min_distance < 0:
            raise ValueError(f"min_distance must be non-negative, got {self.min_distance}")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy: {self.strategy}. Choose from {list(STRATEGIES)}")


@dataclass(frozen=True)
class TargetZone:
    """Window, relative to an anchor, in which a target peak may lie."""

    min_dt: int = MIN_DT
    max_dt: int = MAX_DT
    max_df: int = MAX_DF

    def __post_init__(self) -> None:
        if self.min_dt < 0:
            raise ValueError(f"min_dt must be non-negative, got {self.min_dt}")
        if self.max_dt < self.min_dt:
            raise ValueError(f"max_dt ({self.max_dt}) must be >= min_dt ({self.min_dt})")
        if self.max_df < 0:
            raise ValueError(f"max_df must be non-negative, got {self.max_df}")

    def contains(self, dt: int, df: int) -> bool:
        # the target must come strictly after the anchor, even when min_dt is 0
        return max(self.min_dt, 1) <= dt <= self.max_dt and abs(df) <= self.max_df


@dataclass(frozen=True)
class PipelineConfig:
    spectrogram: SpectrogramParams = field(default_factory=SpectrogramParams)
    peaks: PeakParams = field(default_factory=PeakParams)
    target_zone: TargetZone = field(default_factory=TargetZone)
    fan_out: Optional[int] = None

    def __post_init__(self) -> None:
        if self.fan_out is not None and self.fan_out < 1:
            raise ValueError(f"fan_out must be at least 1, got {self.fan_out}")


def _section(cls, values: Optional[Dict[str, Any]], name: str):
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise ValueError(f"Section '{name}' must be a mapping")
    allowed = {f.name for f in fields(cls)}
    unknown = set(values) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {sorted(unknown)}")
    return cls(**values)


def config_from_dict(raw: Optional[Dict[str, Any]]) -> PipelineConfig:
    """Build a PipelineConfig from a plain mapping (e.g. parsed YAML)."""
    raw = raw or {}
    unknown = set(raw) - {"spectrogram", "peaks", "target_zone", "fan_out"}
    if unknown:
        raise ValueError(f"Unknown config sections: {sorted(unknown)}")
    return PipelineConfig(
        spectrogram=_section(SpectrogramParams, raw.get("spectrogram"), "spectrogram"),
        peaks=_section(PeakParams, raw.get("peaks"), "peaks"),
        target_zone=_section(TargetZone, raw.get("target_zone"), "target_zone"),
        fan_out=raw.get("fan_out"),
    )


def load_config(config_path: Union[str, Path]) -> PipelineConfig:
    with open(config_path, 'r') as f:
        return config_from_dict(yaml.safe_load(f))
