"""Audio framing: variable-sized capture chunks in, bounded PCM16 packets out.

The transcription service rejects audio shorter than 50ms and large packets
add latency, so incoming chunks (often ~128 samples) are accumulated and
released as contiguous packets between the two bounds.
"""

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum

import numpy as np

from slatecap.audio import duration_samples, float32_to_pcm16
from slatecap.capture.protocol import SampleSource
from slatecap.constants import MAX_PACKET_MS, MIN_PACKET_MS
from slatecap.errors import TransportFailure

logger = logging.getLogger(__name__)

PacketSender = Callable[[bytes], Awaitable[None]]


class FlushPolicy(str, Enum):
    """What happens to buffered audio shorter than a packet at teardown."""

    DISCARD = "discard"
    FLUSH = "flush"


class FrameAccumulator:
    """Buffers sample chunks and releases packets of bounded duration."""

    def __init__(
        self,
        sample_rate: int,
        min_ms: int = MIN_PACKET_MS,
        max_ms: int = MAX_PACKET_MS,
    ):
        """Initialize the accumulator.

        Args:
            sample_rate: Capture sample rate in Hz.
            min_ms: Shortest packet the service accepts.
            max_ms: Longest packet to send at once.
        """
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.sample_rate = sample_rate
        self.min_samples = max(1, duration_samples(sample_rate, min_ms))
        self.max_samples = max(self.min_samples, duration_samples(sample_rate, max_ms))
        self._chunks: deque[np.ndarray] = deque()
        self._total = 0

    @property
    def buffered_samples(self) -> int:
        """Samples waiting for the next packet."""
        return self._total

    def push(self, chunk: np.ndarray) -> list[bytes]:
        """Append a chunk and return every packet that became ready.

        Args:
            chunk: Float samples normalized to [-1, 1].

        Returns:
            PCM16 packets in capture order, possibly empty.
        """
        samples = np.asarray(chunk, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return []

        self._chunks.append(samples)
        self._total += samples.size

        packets = []
        while self._total >= self.min_samples:
            take = min(self._total, self.max_samples)
            packets.append(float32_to_pcm16(self._take(take)))
        return packets

    def flush(self, policy: FlushPolicy = FlushPolicy.DISCARD) -> bytes | None:
        """Empty the buffer at teardown.

        Returns:
            The residual as a short final packet under ``FlushPolicy.FLUSH``
            when anything was buffered, otherwise None.
        """
        if policy is FlushPolicy.FLUSH and self._total > 0:
            return float32_to_pcm16(self._take(self._total))
        self.reset()
        return None

    def reset(self) -> None:
        """Discard all buffered samples."""
        self._chunks.clear()
        self._total = 0

    def _take(self, count: int) -> np.ndarray:
        """Remove exactly ``count`` samples from the front of the queue."""
        merged = np.empty(count, dtype=np.float32)
        offset = 0
        while offset < count:
            current = self._chunks[0]
            copy_count = min(current.size, count - offset)
            merged[offset : offset + copy_count] = current[:copy_count]
            offset += copy_count
            if copy_count == current.size:
                self._chunks.popleft()
            else:
                # Remainder of the oldest chunk stays queued
                self._chunks[0] = current[copy_count:]
        self._total -= count
        return merged


class AudioFramingPipeline:
    """Pumps a sample source through the accumulator into a packet sender.

    Sends are fire-and-forget: a failed send drops that packet and the
    pipeline keeps going.
    """

    def __init__(
        self,
        source: SampleSource,
        send: PacketSender,
        accumulator: FrameAccumulator | None = None,
    ):
        self._source = source
        self._send = send
        self.accumulator = accumulator or FrameAccumulator(source.sample_rate)
        self.sent_packets = 0
        self.dropped_packets = 0

    async def run(self) -> None:
        """Consume the source until it is exhausted or the task is cancelled."""
        async for chunk in self._source.chunks():
            for packet in self.accumulator.push(chunk):
                await self._deliver(packet)

    async def close(self, policy: FlushPolicy = FlushPolicy.DISCARD) -> None:
        """Apply the teardown policy to whatever is still buffered."""
        packet = self.accumulator.flush(policy)
        if packet is not None:
            await self._deliver(packet)

    async def _deliver(self, packet: bytes) -> None:
        try:
            await self._send(packet)
        except Exception as e:
            self.dropped_packets += 1
            failure = TransportFailure(f"send of {len(packet)} bytes failed: {e}")
            logger.warning(f"Dropping audio packet: {failure}")
            return
        self.sent_packets += 1
