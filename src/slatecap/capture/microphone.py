"""Microphone sample source backed by sounddevice.

PortAudio invokes the stream callback on its own thread; chunks are handed to
the asyncio loop with ``call_soon_threadsafe`` so all session state is only
touched from the loop.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)


def list_input_devices() -> list[tuple[int, str, bool]]:
    """Return ``(index, name, is_default)`` for every input-capable device."""
    devices = sd.query_devices()
    default_input = sd.default.device[0]
    return [
        (i, device["name"], i == default_input)
        for i, device in enumerate(devices)
        if device["max_input_channels"] > 0
    ]


class MicrophoneSource:
    """Capture mono float32 audio from an input device."""

    def __init__(
        self,
        device: int | None = None,
        sample_rate: int | None = None,
        blocksize: int = 0,
    ):
        """Initialize the microphone source.

        Args:
            device: PortAudio device index, or None for the default input.
            sample_rate: Capture rate in Hz, or None for the device default.
            blocksize: Frames per callback; 0 lets PortAudio choose.
        """
        self.device = device
        self._requested_rate = sample_rate
        self._sample_rate = sample_rate or 0
        self._blocksize = blocksize
        self._stream: sd.InputStream | None = None
        self._queue: asyncio.Queue[np.ndarray | None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    async def open(self) -> None:
        """Open and start the input stream."""
        self._loop = asyncio.get_running_loop()
        self._queue = queue = asyncio.Queue()
        if self._requested_rate is None:
            info = sd.query_devices(self.device, "input")
            self._sample_rate = int(info["default_samplerate"])

        def audio_callback(indata, frames, time_info, status):
            if status:
                logger.warning(f"Audio status: {status}")
            audio = indata[:, 0] if indata.ndim > 1 else indata.flatten()
            self._loop.call_soon_threadsafe(
                queue.put_nowait, audio.astype(np.float32).copy()
            )

        self._stream = sd.InputStream(
            device=self.device,
            samplerate=self._sample_rate,
            channels=1,
            dtype=np.float32,
            blocksize=self._blocksize,
            callback=audio_callback,
        )
        self._stream.start()
        logger.info(
            f"Audio capture started (device: {self.device if self.device is not None else 'default'}, "
            f"{self._sample_rate} Hz)"
        )

    async def chunks(self) -> AsyncIterator[np.ndarray]:
        queue = self._queue
        if queue is None:
            return
        while True:
            chunk = await queue.get()
            if chunk is None:
                return
            yield chunk

    def close(self) -> None:
        """Stop the stream and release the device."""
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        stream.stop()
        stream.close()
        self._queue.put_nowait(None)
        logger.info("Audio capture stopped")
