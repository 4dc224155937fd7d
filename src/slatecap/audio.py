"""Audio conversion utilities.

All functions work with mono audio, either as PCM16 little-endian bytes or as
float32 numpy arrays normalized to [-1, 1].
"""

import math

import numpy as np

from slatecap.constants import BYTES_PER_SAMPLE


def encode_pcm16(audio: np.ndarray) -> np.ndarray:
    """Convert float samples in [-1, 1] to int16 samples.

    Negative samples scale by 32768 and non-negative samples by 32767, so
    -1.0 maps to -32768 and 1.0 to 32767. Out-of-range values are clamped and
    NaN maps to 0.

    Args:
        audio: Float numpy array (any float dtype).

    Returns:
        Int16 numpy array of the same length.
    """
    samples = np.nan_to_num(np.asarray(audio, dtype=np.float64), nan=0.0)
    clipped = np.clip(samples, -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    return scaled.astype(np.int16)


def float32_to_pcm16(audio: np.ndarray) -> bytes:
    """Convert float32 array [-1, 1] to PCM16 bytes.

    Args:
        audio: Float32 numpy array with values in [-1, 1].

    Returns:
        Raw PCM16 little-endian audio bytes.
    """
    return encode_pcm16(audio).astype("<i2").tobytes()


def pcm16_to_float32(data: bytes) -> np.ndarray:
    """Convert PCM16 bytes to float32 array normalized to [-1, 1].

    Args:
        data: Raw PCM16 little-endian audio bytes.

    Returns:
        Float32 numpy array with values in [-1, 1].
    """
    audio = np.frombuffer(data, dtype="<i2").astype(np.float32)
    audio /= 32768.0
    return audio


def bytes_to_samples(num_bytes: int) -> int:
    """Convert byte count to sample count for PCM16."""
    return num_bytes // BYTES_PER_SAMPLE


def duration_samples(sample_rate: int, duration_ms: int) -> int:
    """Calculate number of samples for a given duration in milliseconds.

    Halves round up.
    """
    return math.floor(sample_rate * duration_ms / 1000 + 0.5)
