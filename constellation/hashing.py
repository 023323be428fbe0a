import heapq
from itertools import groupby
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .config import FUZ_FACTOR
from .pairing import Pair

Fingerprint = Tuple[np.uint32, int]  # (hash32, anchor_time)

FREQ_BITS = 10
DT_BITS = 12
MAX_FREQ = (1 << FREQ_BITS) - 1
MAX_DT = (1 << DT_BITS) - 1


def _quantize(x: int, fuzz: int = FUZ_FACTOR) -> int:
    """Round down to nearest multiple of fuzz."""
    return x - (x % fuzz)


def hash_triplet(f_anchor: int, f_target: int, dt: int, fuzz: int = FUZ_FACTOR) -> np.uint32:
    """
    Pack (f_anchor, f_target, dt) into a 32-bit integer.

    Layout (MSB → LSB):
        [10 bits f_anchor][10 bits f_target][12 bits dt]
    """
    # fuzzy quantization (error-correction)
    fa = _quantize(f_anchor, fuzz)
    fb = _quantize(f_target, fuzz)
    dt = _quantize(dt, fuzz)
    # clamp to bit ranges
    fa = max(0, min(fa, MAX_FREQ))
    fb = max(0, min(fb, MAX_FREQ))
    dt = max(0, min(dt, MAX_DT))
    return np.uint32((fa << (FREQ_BITS + DT_BITS)) | (fb << DT_BITS) | dt)


def unpack_hash(h) -> Tuple[int, int, int]:
    """Inverse of hash_triplet, up to quantization and clamping."""
    h = int(h)
    return (h >> (FREQ_BITS + DT_BITS)) & MAX_FREQ, (h >> DT_BITS) & MAX_FREQ, h & MAX_DT


def hash_pair(pair: Pair, fuzz: int = FUZ_FACTOR) -> np.uint32:
    return hash_triplet(pair.anchor.freq, pair.target.freq, pair.dt, fuzz)


def build_hashes(pairs: Iterable[Pair], fan_out: Optional[int] = None,
                 fuzz: int = FUZ_FACTOR) -> List[Fingerprint]:
    """
    pairs:      anchor/target pairs, grouped by anchor (as generate_pairs returns them)
    fan_out:    max number of targets kept per anchor, strongest first; None keeps all
    returns:    list of (hash32, anchor_time), anchors in input order
    """
    fingerprints: List[Fingerprint] = []
    append = fingerprints.append

    for anchor, group in groupby(pairs, key=lambda p: p.anchor):
        group = list(group)
        if fan_out is not None and len(group) > fan_out:
            # nlargest is stable, so equal magnitudes keep their input order
            group = heapq.nlargest(fan_out, group, key=lambda p: p.target.magnitude)
        for pair in group:
            append((hash_pair(pair, fuzz), anchor.time))

    return fingerprints
