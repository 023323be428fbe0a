"""
Tests for constellation/hashing.py: 32-bit fingerprint packing.
"""

import numpy as np

from constellation import Pair, Peak
from constellation.hashing import MAX_DT, MAX_FREQ, build_hashes, hash_pair, hash_triplet, unpack_hash


class TestHashTriplet:
    def test_bit_layout(self):
        """[10 bits f_anchor][10 bits f_target][12 bits dt]"""
        h = hash_triplet(30, 60, 30)
        assert isinstance(h, np.uint32)
        assert int(h) == (30 << 22) | (60 << 12) | 30

    def test_fuzzy_quantization(self):
        """Off-by-one jitter lands on the same hash."""
        assert hash_triplet(31, 61, 31) == hash_triplet(30, 60, 30)
        assert hash_triplet(32, 60, 30) != hash_triplet(30, 60, 30)

    def test_clamped_to_field_width(self):
        assert unpack_hash(hash_triplet(5000, 0, 10000)) == (MAX_FREQ, 0, MAX_DT)

    def test_unpack(self):
        assert unpack_hash(hash_triplet(100, 200, 42)) == (100, 200, 42)

    def test_hash_pair_uses_bins_and_dt(self):
        pair = Pair(Peak(10, 30, 0.5), Peak(40, 60, 0.5))
        assert hash_pair(pair) == hash_triplet(30, 60, 30)


class TestBuildHashes:
    def test_one_hash_per_pair(self):
        a, b = Peak(0, 10, 0.9), Peak(20, 30, 0.9)
        pairs = [Pair(a, Peak(10, 12, 0.5)), Pair(a, Peak(12, 14, 0.5)), Pair(b, Peak(30, 40, 0.5))]
        fingerprints = build_hashes(pairs)
        assert [t for _, t in fingerprints] == [0, 0, 20]
        assert [h for h, _ in fingerprints] == [hash_pair(p) for p in pairs]

    def test_fan_out_keeps_strongest_targets(self):
        anchor = Peak(0, 10, 0.9)
        weak, strong, medium = Peak(10, 12, 0.2), Peak(12, 14, 0.9), Peak(14, 16, 0.5)
        pairs = [Pair(anchor, weak), Pair(anchor, strong), Pair(anchor, medium)]
        fingerprints = build_hashes(pairs, fan_out=2)
        assert [h for h, _ in fingerprints] == [
            hash_pair(Pair(anchor, strong)),
            hash_pair(Pair(anchor, medium)),
        ]

    def test_fan_out_ties_keep_input_order(self):
        anchor = Peak(0, 10, 0.9)
        first, second = Peak(10, 20, 0.5), Peak(12, 30, 0.5)
        fingerprints = build_hashes([Pair(anchor, first), Pair(anchor, second)], fan_out=1)
        assert fingerprints == [(hash_pair(Pair(anchor, first)), 0)]

    def test_empty(self):
        assert build_hashes([]) == []
