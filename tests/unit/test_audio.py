"""Unit tests for audio conversion utilities."""

import numpy as np

from slatecap.audio import (
    bytes_to_samples,
    duration_samples,
    encode_pcm16,
    float32_to_pcm16,
    pcm16_to_float32,
)
from slatecap.constants import MAX_PACKET_MS, MIN_PACKET_MS


class TestPCM16Encoding:
    """Tests for float -> PCM16 encoding."""

    def test_full_scale_is_asymmetric(self):
        """-1.0 maps to -32768 and 1.0 to 32767."""
        result = encode_pcm16(np.array([-1.0, 0.0, 1.0], dtype=np.float32))
        assert result.dtype == np.int16
        assert result.tolist() == [-32768, 0, 32767]

    def test_scaling_truncates_toward_zero(self):
        """Half scale uses the side's own multiplier."""
        result = encode_pcm16(np.array([0.5, -0.5], dtype=np.float32))
        assert result.tolist() == [16383, -16384]

    def test_clipping(self):
        """Values outside [-1, 1] should be clamped."""
        result = encode_pcm16(np.array([2.0, -2.0, 100.0, -1e9]))
        assert result.tolist() == [32767, -32768, 32767, -32768]

    def test_nan_does_not_raise(self):
        """NaN input is encoded as silence."""
        result = encode_pcm16(np.array([np.nan, 0.25], dtype=np.float32))
        assert result[0] == 0
        assert len(result) == 2

    def test_output_in_range_for_arbitrary_floats(self):
        """Every encoded value stays within int16."""
        rng = np.random.default_rng(7)
        samples = rng.normal(scale=3.0, size=1000)
        result = encode_pcm16(samples).astype(np.int32)
        assert result.min() >= -32768
        assert result.max() <= 32767

    def test_empty_input(self):
        """Empty input produces empty output."""
        assert encode_pcm16(np.array([], dtype=np.float32)).size == 0
        assert float32_to_pcm16(np.array([], dtype=np.float32)) == b""

    def test_bytes_are_little_endian(self):
        """PCM16 bytes are little-endian."""
        data = float32_to_pcm16(np.array([1.0, -1.0], dtype=np.float32))
        assert data == b"\xff\x7f\x00\x80"

    def test_float32_to_pcm16_roundtrip(self):
        """Conversion should be reversible within precision limits."""
        original = np.array([0.0, 0.5, -0.5, 0.99, -0.99], dtype=np.float32)
        recovered = pcm16_to_float32(float32_to_pcm16(original))
        np.testing.assert_allclose(recovered, original, atol=0.0001)


class TestHelperFunctions:
    """Tests for conversion helper functions."""

    def test_bytes_to_samples(self):
        assert bytes_to_samples(2) == 1
        assert bytes_to_samples(201) == 100

    def test_duration_samples(self):
        """Packet bounds at common capture rates."""
        assert duration_samples(48000, MIN_PACKET_MS) == 2400
        assert duration_samples(48000, MAX_PACKET_MS) == 9600
        assert duration_samples(16000, MIN_PACKET_MS) == 800
        assert duration_samples(44100, MIN_PACKET_MS) == 2205

    def test_duration_samples_rounds(self):
        """Fractional sample counts round to nearest."""
        assert duration_samples(22050, MIN_PACKET_MS) == 1103  # 1102.5
        assert duration_samples(11025, 50) == 551  # 551.25
