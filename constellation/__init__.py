"""
Constellation - Shazam-style audio fingerprinting pipeline.

1. Slice the signal into overlapping Hann-windowed frames
2. Transform every frame with a radix-2 FFT into a normalized spectrogram
3. Pick noise-robust local maxima (the constellation map)
4. Pair anchor peaks with targets in a bounded zone and pack them into hashes
"""

from .audio import Signal, load_signal
from .config import PeakParams, PipelineConfig, SpectrogramParams, TargetZone, load_config
from .errors import ConstellationError, InvalidFFTSize, InvalidFrameSize
from .fft import FFT
from .pairing import Pair, pair_with_anchor
from .peaks import Peak
from .pipeline import Analysis, analyze, build_spectrogram, compute_spectrum, extract_peaks, generate_pairs

__all__ = [
    'compute_spectrum', 'build_spectrogram', 'extract_peaks', 'generate_pairs', 'analyze',
    'pair_with_anchor', 'Analysis', 'Signal', 'load_signal', 'FFT', 'Peak', 'Pair',
    'PeakParams', 'PipelineConfig', 'SpectrogramParams', 'TargetZone', 'load_config',
    'ConstellationError', 'InvalidFFTSize', 'InvalidFrameSize',
]
