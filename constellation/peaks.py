"""
Constellation map: noise-robust local maxima of a normalized spectrogram.

Both strategies scan the lower quarter of the frequency bins, keep cells
that are strictly greater than every other cell of a square neighborhood,
and prune candidates greedily in scan order (time, then frequency) so that
no two accepted peaks are closer than `min_distance` on both axes at once.
The adaptive strategy additionally gates candidates with a threshold
derived from the mean magnitude of the region they fall in.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

import numpy as np
import scipy.ndimage

from .config import (
    DYNAMIC_MIN_FACTOR,
    MAX_REGIONS,
    MIN_REGIONS,
    REGION_BASE,
    REGION_ENERGY_FACTOR,
    REGION_PEAK_FACTOR,
    SCAN_FRACTION,
    PeakParams,
)

logger = logging.getLogger(__name__)


class Peak(NamedTuple):
    time: int        # frame index
    freq: int        # frequency bin index
    magnitude: float  # normalized, in [0, 1]

    def to_dict(self) -> Dict[str, float]:
        return {"time": self.time, "freq": self.freq, "magnitude": self.magnitude}


def _scan_band(matrix) -> np.ndarray:
    band = np.asarray(matrix, dtype=np.float64)
    if band.size == 0:
        return np.zeros((0, 0))
    if band.ndim != 2:
        raise ValueError(f"Spectrogram must be 2-D (time x frequency), got shape {band.shape}")
    return band[:, :band.shape[1] // SCAN_FRACTION]


def _local_maxima(band: np.ndarray, neighborhood: int, allowed: np.ndarray) -> np.ndarray:
    """
    Mask of interior cells strictly greater than all others in their square.

    Only cells already set in `allowed` are considered.
    """
    n_frames, n_bins = band.shape
    mask = np.zeros(band.shape, dtype=bool)
    if n_frames <= 2 * neighborhood or n_bins <= 2 * neighborhood:
        return mask

    size = 2 * neighborhood + 1
    window_max = scipy.ndimage.maximum_filter(band, size=size, mode='nearest')
    inner = (slice(neighborhood, n_frames - neighborhood), slice(neighborhood, n_bins - neighborhood))
    mask[inner] = (band[inner] >= window_max[inner]) & allowed[inner]

    # a cell that only ties the maximum of its square is not a peak
    for t, f in zip(*np.nonzero(mask)):
        window = band[t - neighborhood:t + neighborhood + 1, f - neighborhood:f + neighborhood + 1]
        if np.count_nonzero(window == band[t, f]) > 1:
            mask[t, f] = False
    return mask


def _region_gate(band: np.ndarray, threshold: float) -> Optional[np.ndarray]:
    """
    Per-cell acceptance mask from region-adaptive thresholds.

    Returns None when the band carries no energy at all.
    """
    peak_energy = float(band.max())
    if peak_energy <= 0:
        return None
    avg_energy = float(band.mean())
    dynamic_min = max(threshold, avg_energy * DYNAMIC_MIN_FACTOR)

    # quieter material (low average/peak ratio) gets a finer grid
    energy_level = avg_energy / peak_energy
    if energy_level > 0:
        n_regions = int(np.clip(np.floor(REGION_BASE / energy_level), MIN_REGIONS, MAX_REGIONS))
    else:
        n_regions = MAX_REGIONS

    n_frames, n_bins = band.shape
    t_edges = np.linspace(0, n_frames, n_regions + 1).astype(int)
    f_edges = np.linspace(0, n_bins, n_regions + 1).astype(int)

    means = np.full((n_regions, n_regions), np.nan)
    for i in range(n_regions):
        for j in range(n_regions):
            region = band[t_edges[i]:t_edges[i + 1], f_edges[j]:f_edges[j + 1]]
            if region.size:
                means[i, j] = region.mean()

    # map every row / column back to the region that contains it
    t_region = np.clip(np.searchsorted(t_edges, np.arange(n_frames), side='right') - 1, 0, n_regions - 1)
    f_region = np.clip(np.searchsorted(f_edges, np.arange(n_bins), side='right') - 1, 0, n_regions - 1)
    cell_mean = means[np.ix_(t_region, f_region)]

    logger.debug(
        "Adaptive grid: %dx%d regions, avg=%.3f, dynamic_min=%.3f",
        n_regions, n_regions, avg_energy, dynamic_min,
    )
    energetic = cell_mean > dynamic_min * REGION_ENERGY_FACTOR
    loud_enough = band > np.maximum(threshold, cell_mean * REGION_PEAK_FACTOR)
    return energetic & loud_enough


def _prune(band: np.ndarray, candidates: np.ndarray, min_distance: int) -> List[Peak]:
    peaks: List[Peak] = []
    # np.nonzero walks the mask row-major: time first, then frequency
    for t, f in zip(*np.nonzero(candidates)):
        too_close = False
        for peak in reversed(peaks):
            # accepted peaks are in time order, so older ones are even further away
            if t - peak.time >= min_distance:
                break
            if abs(f - peak.freq) < min_distance:
                too_close = True
                break
        if not too_close:
            peaks.append(Peak(int(t), int(f), float(band[t, f])))
    return peaks


def extract_peaks_fixed(matrix, params: PeakParams) -> List[Peak]:
    band = _scan_band(matrix)
    if band.size == 0:
        return []
    candidates = _local_maxima(band, params.neighborhood, band >= params.threshold)
    return _prune(band, candidates, params.min_distance)


def extract_peaks_adaptive(matrix, params: PeakParams) -> List[Peak]:
    band = _scan_band(matrix)
    if band.size == 0:
        return []
    gate = _region_gate(band, params.threshold)
    if gate is None:
        return []
    candidates = _local_maxima(band, params.neighborhood, gate)
    return _prune(band, candidates, params.min_distance)


def extract_peaks(matrix, params: Optional[PeakParams] = None) -> List[Peak]:
    """
    Extract the constellation map from a normalized spectrogram.

    Args:
        matrix: (n_frames, n_bins) array-like of magnitudes in [0, 1]
        params: neighborhood, threshold, min_distance and strategy

    Returns:
        Peaks ordered by time then frequency; empty for an empty matrix
    """
    params = params or PeakParams()
    if params.strategy == "fixed":
        peaks = extract_peaks_fixed(matrix, params)
    else:
        peaks = extract_peaks_adaptive(matrix, params)
    logger.debug("Found %d peaks (%s)", len(peaks), params.strategy)
    return peaks
