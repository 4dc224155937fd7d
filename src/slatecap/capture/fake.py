"""Fake sample source for testing.

Replays a fixed signal in caller-chosen chunk sizes, allowing reliable unit
tests without audio hardware.
"""

import asyncio
from collections.abc import AsyncIterator, Sequence

import numpy as np

from slatecap.constants import DEFAULT_SAMPLE_RATE


class FakeSource:
    """Deterministic sample source.

    Splits ``audio`` into chunks following ``chunk_sizes`` (cycled), which
    mimics the irregular callback sizes of real capture backends.
    """

    def __init__(
        self,
        audio: np.ndarray,
        chunk_sizes: Sequence[int] = (128,),
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        fail_on_open: Exception | None = None,
        interval_s: float = 0.0,
    ):
        """Initialize the fake source.

        Args:
            audio: Float32 signal to replay.
            chunk_sizes: Chunk lengths to cycle through.
            sample_rate: Reported sample rate.
            fail_on_open: Exception raised from ``open`` when set.
            interval_s: Delay between chunks, to simulate real-time capture.
        """
        if not any(size > 0 for size in chunk_sizes):
            raise ValueError("chunk_sizes needs at least one positive size")
        self._audio = np.asarray(audio, dtype=np.float32)
        self._chunk_sizes = list(chunk_sizes)
        self._sample_rate = sample_rate
        self._fail_on_open = fail_on_open
        self._interval_s = interval_s
        self.opened = False
        self.closed = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    async def open(self) -> None:
        if self._fail_on_open is not None:
            raise self._fail_on_open
        self.opened = True

    async def chunks(self) -> AsyncIterator[np.ndarray]:
        offset = 0
        index = 0
        while offset < len(self._audio) and not self.closed:
            size = self._chunk_sizes[index % len(self._chunk_sizes)]
            index += 1
            yield self._audio[offset : offset + size]
            offset += size
            await asyncio.sleep(self._interval_s)

    def close(self) -> None:
        self.closed = True
