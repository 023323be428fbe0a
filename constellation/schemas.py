"""
Pydantic schemas for the HTTP service.

Requests carry decoded samples or intermediate structures as JSON arrays;
responses mirror the pipeline's numeric output.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .config import (
    FFT_SIZE,
    MAX_DB,
    MAX_DF,
    MAX_DT,
    MIN_DB,
    MIN_DISTANCE,
    MIN_DT,
    PEAK_NEIGHBORHOOD,
    PEAK_THRESHOLD,
    PeakParams,
    PipelineConfig,
    SpectrogramParams,
    TargetZone,
)
from .peaks import Peak


class PeakModel(BaseModel):
    time: int = Field(..., ge=0, description="Frame index.")
    freq: int = Field(..., ge=0, description="Frequency bin index.")
    magnitude: float = Field(..., description="Normalized magnitude.")

    def to_peak(self) -> Peak:
        return Peak(self.time, self.freq, self.magnitude)


class PairModel(BaseModel):
    anchor: PeakModel
    target: PeakModel


class PeakParamsModel(BaseModel):
    neighborhood: int = Field(default=PEAK_NEIGHBORHOOD, ge=1)
    threshold: float = Field(default=PEAK_THRESHOLD, ge=0.0, le=1.0)
    min_distance: int = Field(default=MIN_DISTANCE, ge=0)
    strategy: Literal["fixed", "adaptive"] = "adaptive"

    def to_params(self) -> PeakParams:
        return PeakParams(**self.model_dump())


class TargetZoneModel(BaseModel):
    min_dt: int = Field(default=MIN_DT, ge=0)
    max_dt: int = Field(default=MAX_DT, ge=0)
    max_df: int = Field(default=MAX_DF, ge=0)

    def to_zone(self) -> TargetZone:
        return TargetZone(**self.model_dump())


class SpectrumRequest(BaseModel):
    """Request body for ``POST /spectrum``."""

    frame: list[float] = Field(..., min_length=2, description="Exactly fft_size samples.")
    fft_size: Optional[int] = Field(default=None, description="Defaults to the frame length.")


class SpectrumResponse(BaseModel):
    real: list[float]
    imag: list[float]


class SpectrogramRequest(BaseModel):
    """Request body for ``POST /spectrogram``."""

    samples: list[float] = Field(..., description="Mono samples.")
    sample_rate: int = Field(..., gt=0)
    fft_size: int = Field(default=FFT_SIZE, description="Power of two, at most 65536.")
    hop: Optional[int] = Field(default=None, description="Defaults to fft_size / 4.")
    min_db: float = Field(default=MIN_DB, description="Decibel floor.")
    max_db: float = Field(
        default=MAX_DB,
        description="Decibel ceiling. Magnitudes are not scaled, so full-scale audio needs about 60.",
    )
    exponent: Optional[float] = Field(default=None, gt=0.0)


class SpectrogramResponse(BaseModel):
    rows: list[list[float]]
    n_frames: int
    n_bins: int


class PeaksRequest(BaseModel):
    """Request body for ``POST /peaks``."""

    spectrogram: list[list[float]]
    params: PeakParamsModel = Field(default_factory=PeakParamsModel)


class PeaksResponse(BaseModel):
    peaks: list[PeakModel]


class PairsRequest(BaseModel):
    """Request body for ``POST /pairs``. With ``anchor`` set only that anchor is paired."""

    peaks: list[PeakModel]
    target_zone: TargetZoneModel = Field(default_factory=TargetZoneModel)
    anchor: Optional[PeakModel] = None


class PairsResponse(BaseModel):
    pairs: list[PairModel]


class AnalyzeRequest(SpectrogramRequest):
    """Request body for ``POST /analyze``."""

    peaks: PeakParamsModel = Field(default_factory=PeakParamsModel)
    target_zone: TargetZoneModel = Field(default_factory=TargetZoneModel)
    fan_out: Optional[int] = Field(default=None, ge=1)
    envelope_buckets: int = Field(default=1000, ge=1, le=100_000, description="Waveform overview resolution.")

    def to_config(self) -> PipelineConfig:
        return PipelineConfig(
            spectrogram=SpectrogramParams(
                fft_size=self.fft_size,
                hop=self.hop,
                min_db=self.min_db,
                max_db=self.max_db,
                exponent=self.exponent,
            ),
            peaks=self.peaks.to_params(),
            target_zone=self.target_zone.to_zone(),
            fan_out=self.fan_out,
        )


class PhysicalPeakModel(BaseModel):
    time_s: float
    freq_hz: float
    magnitude: float


class PhysicalPairModel(BaseModel):
    anchor_time_s: float
    anchor_freq_hz: float
    target_time_s: float
    target_freq_hz: float
    dt_s: float
    df_hz: float


class AnalyzeResponse(BaseModel):
    n_frames: int
    n_bins: int
    duration_s: float
    peaks: list[PeakModel]
    pairs: list[PairModel]
    physical_peaks: list[PhysicalPeakModel]
    physical_pairs: list[PhysicalPairModel]
    envelope: list[float]
    hashes: list[int]
    timings: dict[str, float]
