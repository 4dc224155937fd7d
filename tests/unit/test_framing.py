"""Unit tests for the frame accumulator and framing pipeline."""

import numpy as np
import pytest

from slatecap.audio import bytes_to_samples, pcm16_to_float32
from slatecap.capture.fake import FakeSource
from slatecap.framing import AudioFramingPipeline, FlushPolicy, FrameAccumulator


def ramp(n: int) -> np.ndarray:
    """Distinct, encodable samples so order and duplication are visible."""
    return (np.arange(n, dtype=np.float32) % 20000) / 32768.0


def decode(packets: list[bytes]) -> np.ndarray:
    if not packets:
        return np.array([], dtype=np.float32)
    return np.concatenate([pcm16_to_float32(p) for p in packets])


class TestFrameAccumulator:
    """Tests for FrameAccumulator buffering."""

    def test_bounds_from_sample_rate(self):
        """Packet bounds are 50ms and 200ms at the given rate."""
        acc = FrameAccumulator(48000)
        assert acc.min_samples == 2400
        assert acc.max_samples == 9600

    def test_invalid_sample_rate(self):
        """Non-positive sample rate is rejected."""
        with pytest.raises(ValueError):
            FrameAccumulator(0)

    def test_below_minimum_is_buffered(self):
        """Chunks totalling less than 50ms produce nothing."""
        acc = FrameAccumulator(16000)  # min 800
        assert acc.push(np.zeros(128, dtype=np.float32)) == []
        assert acc.push(np.zeros(500, dtype=np.float32)) == []
        assert acc.buffered_samples == 628

    def test_releases_at_minimum(self):
        """Reaching the minimum releases everything buffered."""
        acc = FrameAccumulator(16000)
        packets = []
        for _ in range(7):
            packets += acc.push(np.zeros(128, dtype=np.float32))
        assert len(packets) == 1
        assert bytes_to_samples(len(packets[0])) == 896
        assert acc.buffered_samples == 0

    def test_zero_length_chunk_is_noop(self):
        """Empty chunks change nothing."""
        acc = FrameAccumulator(16000)
        acc.push(np.zeros(100, dtype=np.float32))
        assert acc.push(np.array([], dtype=np.float32)) == []
        assert acc.buffered_samples == 100

    def test_large_chunk_is_capped(self):
        """A chunk larger than 200ms is split into capped packets."""
        acc = FrameAccumulator(16000)  # min 800, max 3200
        packets = acc.push(np.zeros(7000, dtype=np.float32))
        lengths = [bytes_to_samples(len(p)) for p in packets]
        assert lengths == [3200, 3200]
        assert acc.buffered_samples == 600

    def test_split_chunk_remainder_stays_queued(self):
        """The oldest chunk is split and its remainder kept in order."""
        acc = FrameAccumulator(16000)
        first = ramp(3500)
        packets = acc.push(first)
        assert [bytes_to_samples(len(p)) for p in packets] == [3200]
        assert acc.buffered_samples == 300

        second = ramp(600) + 0.5
        packets += acc.push(second)
        assert [bytes_to_samples(len(p)) for p in packets] == [3200, 900]
        np.testing.assert_allclose(
            decode(packets), np.concatenate([first, second]), atol=1e-4
        )

    def test_no_sample_loss_or_duplication(self):
        """Emitted plus residual equals pushed, in the original order."""
        rate = 44100
        acc = FrameAccumulator(rate)
        rng = np.random.default_rng(3)
        signal = ramp(50000)
        packets = []
        offset = 0
        while offset < len(signal):
            size = int(rng.integers(0, 900))
            packets += acc.push(signal[offset : offset + size])
            offset += size

        emitted = decode(packets)
        assert len(emitted) + acc.buffered_samples == len(signal)
        np.testing.assert_allclose(emitted, signal[: len(emitted)], atol=1e-4)

        for packet in packets:
            assert acc.min_samples <= bytes_to_samples(len(packet)) <= acc.max_samples

    def test_flush_discard(self):
        """Default teardown discards the residual."""
        acc = FrameAccumulator(16000)
        acc.push(np.zeros(300, dtype=np.float32))
        assert acc.flush() is None
        assert acc.buffered_samples == 0

    def test_flush_emits_short_packet(self):
        """FLUSH policy returns the residual as a short final packet."""
        acc = FrameAccumulator(16000)
        acc.push(ramp(300))
        packet = acc.flush(FlushPolicy.FLUSH)
        assert bytes_to_samples(len(packet)) == 300
        np.testing.assert_allclose(pcm16_to_float32(packet), ramp(300), atol=1e-4)
        assert acc.buffered_samples == 0

    def test_flush_empty_buffer(self):
        """Flushing nothing returns None under either policy."""
        acc = FrameAccumulator(16000)
        assert acc.flush(FlushPolicy.FLUSH) is None

    def test_reset(self):
        acc = FrameAccumulator(16000)
        acc.push(np.zeros(500, dtype=np.float32))
        acc.reset()
        assert acc.buffered_samples == 0
        assert acc.push(np.zeros(500, dtype=np.float32)) == []


class TestAudioFramingPipeline:
    """Tests for the source -> accumulator -> sender pipeline."""

    @pytest.mark.asyncio
    async def test_run_sends_all_packets(self):
        """Every ready packet reaches the sender in order."""
        signal = ramp(16000)
        source = FakeSource(signal, chunk_sizes=(128, 64, 0, 300), sample_rate=16000)
        sent = []

        async def send(packet: bytes) -> None:
            sent.append(packet)

        pipeline = AudioFramingPipeline(source, send)
        await pipeline.run()

        emitted = decode(sent)
        assert pipeline.sent_packets == len(sent)
        assert len(emitted) + pipeline.accumulator.buffered_samples == len(signal)
        np.testing.assert_allclose(emitted, signal[: len(emitted)], atol=1e-4)

    @pytest.mark.asyncio
    async def test_send_failure_drops_packet(self):
        """A failing send drops only that packet and keeps the buffer intact."""
        source = FakeSource(ramp(4000), chunk_sizes=(800,), sample_rate=16000)
        sent = []
        calls = 0

        async def flaky_send(packet: bytes) -> None:
            nonlocal calls
            calls += 1
            if calls == 2:
                raise ConnectionError("socket closed")
            sent.append(packet)

        pipeline = AudioFramingPipeline(source, flaky_send)
        await pipeline.run()

        assert calls == 5
        assert pipeline.dropped_packets == 1
        assert pipeline.sent_packets == 4
        assert pipeline.accumulator.buffered_samples == 0

    @pytest.mark.asyncio
    async def test_close_with_flush(self):
        """Closing with FLUSH sends the residual."""
        source = FakeSource(np.zeros(1000, dtype=np.float32), chunk_sizes=(1000,), sample_rate=16000)
        sent = []

        async def send(packet: bytes) -> None:
            sent.append(packet)

        pipeline = AudioFramingPipeline(source, send)
        pipeline.accumulator.push(np.zeros(100, dtype=np.float32))
        await pipeline.close(FlushPolicy.FLUSH)
        assert [bytes_to_samples(len(p)) for p in sent] == [100]

    @pytest.mark.asyncio
    async def test_close_discards_by_default(self):
        """Closing without a policy sends nothing."""
        source = FakeSource(np.zeros(10, dtype=np.float32), sample_rate=16000)
        sent = []

        async def send(packet: bytes) -> None:
            sent.append(packet)

        pipeline = AudioFramingPipeline(source, send)
        pipeline.accumulator.push(np.zeros(100, dtype=np.float32))
        await pipeline.close()
        assert sent == []
        assert pipeline.accumulator.buffered_samples == 0
