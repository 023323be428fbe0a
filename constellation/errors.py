"""
Exceptions raised for contract violations in the pipeline.

Expected empty outcomes (signal shorter than a frame, no peaks, no pairs)
are returned as empty collections and never raised.
"""


class ConstellationError(Exception):
    """Base class for pipeline errors."""


class InvalidFFTSize(ConstellationError, ValueError):
    """FFT size is not a power of two, or is beyond the supported range."""

    def __init__(self, size, limit: int = 1 << 16):
        super().__init__(f"FFT size must be a power of two between 2 and {limit}, got {size}")
        self.size = size


class InvalidFrameSize(ConstellationError, ValueError):
    """Frame handed to the FFT does not have exactly N samples."""

    def __init__(self, expected: int, got):
        super().__init__(f"Frame must be a 1-D array of {expected} samples, got shape {got}")
        self.expected = expected
        self.got = got
