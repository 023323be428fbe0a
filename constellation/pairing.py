import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

from .config import TargetZone
from .peaks import Peak

logger = logging.getLogger(__name__)


class Pair(NamedTuple):
    anchor: Peak
    target: Peak

    @property
    def dt(self) -> int:
        return self.target.time - self.anchor.time

    @property
    def df(self) -> int:
        return self.target.freq - self.anchor.freq

    def to_dict(self) -> Dict[str, dict]:
        return {"anchor": self.anchor.to_dict(), "target": self.target.to_dict()}


def pair_with_anchor(anchor: Peak, peaks: Iterable[Peak], zone: Optional[TargetZone] = None) -> List[Pair]:
    """
    Pair a single anchor with every peak of `peaks` inside its target zone.

    Targets keep the order they have in `peaks`.
    """
    zone = zone or TargetZone()
    return [
        Pair(anchor, target)
        for target in peaks
        if zone.contains(target.time - anchor.time, target.freq - anchor.freq)
    ]


def generate_pairs(peaks: Iterable[Peak], zone: Optional[TargetZone] = None) -> List[Pair]:
    """
    Use every peak as an anchor against all later peaks in its target zone.

    Peaks are (stably) sorted by time first so the scan for each anchor can
    stop as soon as the time gap exceeds the zone.
    """
    zone = zone or TargetZone()
    ordered = sorted(peaks, key=lambda p: p.time)
    n_peaks = len(ordered)
    pairs: List[Pair] = []

    for i in range(n_peaks):
        anchor = ordered[i]
        j = i + 1
        while j < n_peaks:
            target = ordered[j]
            dt = target.time - anchor.time
            if dt > zone.max_dt:
                break
            if zone.contains(dt, target.freq - anchor.freq):
                pairs.append(Pair(anchor, target))
            j += 1

    logger.debug("Created %d pairs from %d peaks", len(pairs), n_peaks)
    return pairs


def pair_to_physical(pair: Pair, sample_rate: int, fft_size: int, hop: int) -> Dict[str, float]:
    """Express a pair in seconds and Hz instead of frames and bins."""
    seconds_per_frame = hop / sample_rate
    hz_per_bin = sample_rate / fft_size
    return {
        "anchor_time_s": pair.anchor.time * seconds_per_frame,
        "anchor_freq_hz": pair.anchor.freq * hz_per_bin,
        "target_time_s": pair.target.time * seconds_per_frame,
        "target_freq_hz": pair.target.freq * hz_per_bin,
        "dt_s": pair.dt * seconds_per_frame,
        "df_hz": pair.df * hz_per_bin,
    }
