"""Captioning session: capture, framing, transcription channel and routing.

A session owns every piece of per-recording state (pending slate, take state,
audio buffer) and runs on a single asyncio loop. Audio and transcript
handlers never interleave mid-update because they only mutate state between
awaits.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol

import websockets
from websockets.exceptions import ConnectionClosed

from slatecap.capture.protocol import SampleSource
from slatecap.config import SessionConfig
from slatecap.errors import SessionSetupFailure, TransportFailure
from slatecap.framing import AudioFramingPipeline, FrameAccumulator
from slatecap.lifecycle import Annotation
from slatecap.provider import build_stream_url, decode_message, mask_token, terminate_message
from slatecap.router import TranscriptRouter
from slatecap.tokens import fetch_token

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Duplex channel to the transcription provider."""

    async def send(self, message: bytes | str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


async def connect_websocket(url: str) -> Channel:
    """Open the provider WebSocket."""
    return await websockets.connect(
        url,
        ping_interval=20,
        ping_timeout=30,
        close_timeout=10,
        open_timeout=30,
    )


class CaptionSession:
    """One recording session from start to stop."""

    def __init__(
        self,
        source: SampleSource,
        config: SessionConfig | None = None,
        on_annotation: Callable[[Annotation], None] | None = None,
        token_fetcher: Callable[[], Awaitable[str]] | None = None,
        connect: Callable[[str], Awaitable[Channel]] = connect_websocket,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the session.

        Args:
            source: Capture backend producing float32 chunks.
            config: Session settings.
            on_annotation: Receives each annotation for display.
            token_fetcher: Returns a temporary provider token.
            connect: Opens the provider channel for a URL.
            clock: Time source for transcript timestamps.
        """
        self.config = config or SessionConfig()
        self._source = source
        self._token_fetcher = token_fetcher or self._fetch_token
        self._connect = connect
        self._clock = clock
        self.router = TranscriptRouter(
            correlation_window=self.config.correlation_window,
            clock=clock,
            on_annotation=on_annotation,
        )
        self.pipeline: AudioFramingPipeline | None = None
        self._channel: Channel | None = None
        self._setup_task: asyncio.Task | None = None
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self._stop_requested = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Fetch a token, open capture, connect, and start streaming.

        Raises:
            SessionSetupFailure: Any setup step failed or ``stop`` was called
                meanwhile. Everything acquired so far has been released.
        """
        if self._running:
            return
        self._stop_requested = False
        self.router.reset()

        self._setup_task = asyncio.create_task(self._setup(), name="session_setup")
        try:
            await self._setup_task
        except asyncio.CancelledError:
            await self._release()
            if self._stop_requested:
                raise SessionSetupFailure("session start cancelled by stop") from None
            raise
        except SessionSetupFailure:
            await self._release()
            raise
        except Exception as e:
            await self._release()
            raise SessionSetupFailure(f"session start failed: {e}") from e
        finally:
            self._setup_task = None

        if self._stop_requested:
            await self._release()
            raise SessionSetupFailure("session start cancelled by stop")

        self._running = True
        self._tasks = [
            asyncio.create_task(self.pipeline.run(), name="audio_pump"),
            asyncio.create_task(self._receive_loop(), name="recv_loop"),
        ]
        logger.info("Session started")

    async def stop(self) -> None:
        """Stop streaming and release every resource. Safe to call twice."""
        self._stop_requested = True
        if self._setup_task is not None and not self._setup_task.done():
            self._setup_task.cancel()

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if self.pipeline is not None and self._channel is not None:
            await self.pipeline.close(self.config.flush_policy)
            try:
                await self._channel.send(terminate_message())
            except Exception as e:
                logger.debug(f"Terminate message not sent: {e}")

        was_running = self._running
        self._running = False
        await self._release()
        self.router.reset()
        if was_running:
            logger.info("Session stopped")

    async def start_unless(self, stop_event: asyncio.Event) -> bool:
        """Start, abandoning setup if ``stop_event`` is set first.

        Returns:
            True if the session is streaming, False if it was stopped during
            setup.

        Raises:
            SessionSetupFailure: Setup failed without a stop request.
        """
        starter = asyncio.create_task(self.start(), name="session_start")
        stopper = asyncio.create_task(stop_event.wait(), name="stop_wait")
        try:
            await asyncio.wait({starter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopper.cancel()

        if not starter.done():
            await self.stop()
        try:
            await starter
        except SessionSetupFailure:
            if self._stop_requested:
                return False
            raise
        return True

    async def wait(self) -> None:
        """Wait until the streaming tasks finish on their own."""
        await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _setup(self) -> None:
        token = await self._token_fetcher()

        try:
            await self._source.open()
        except Exception as e:
            raise SessionSetupFailure(f"capture device unavailable: {e}") from e

        sample_rate = self._source.sample_rate
        logger.info(f"Capture sample rate: {sample_rate} Hz")
        url = build_stream_url(self.config.streaming_url, sample_rate, token)
        logger.info(f"Connecting to: {mask_token(url)}")
        try:
            self._channel = await self._connect(url)
        except Exception as e:
            raise SessionSetupFailure(f"failed to connect: {e}") from e

        accumulator = FrameAccumulator(
            sample_rate,
            min_ms=self.config.min_packet_ms,
            max_ms=self.config.max_packet_ms,
        )
        self.pipeline = AudioFramingPipeline(self._source, self._send_packet, accumulator)

    async def _fetch_token(self) -> str:
        return await fetch_token(self.config.token_url, timeout=self.config.timeout)

    async def _send_packet(self, packet: bytes) -> None:
        if self._channel is None:
            raise TransportFailure("channel is closed")
        await self._channel.send(packet)

    async def _receive_loop(self) -> None:
        """Route provider transcripts until the channel closes."""
        try:
            async for message in self._channel:
                event = decode_message(message, self._clock)
                if event is not None:
                    self.router.route(event)
        except ConnectionClosed as e:
            logger.warning(f"Transcription channel closed: {e}")

        if not self._stop_requested:
            await self._end_after_disconnect()

    async def _end_after_disconnect(self) -> None:
        """Stop capture once the provider has closed the channel."""
        logger.warning("Provider closed the session, stopping capture")
        self._running = False
        current = asyncio.current_task()
        others = [task for task in self._tasks if task is not current]
        for task in others:
            task.cancel()
        await asyncio.gather(*others, return_exceptions=True)
        await self._release()
        self.router.reset()

    async def _release(self) -> None:
        """Close capture and channel, discard buffered audio."""
        try:
            self._source.close()
        except Exception as e:
            logger.warning(f"Error closing capture source: {e}")

        channel, self._channel = self._channel, None
        if channel is not None:
            try:
                await channel.close()
            except Exception as e:
                logger.warning(f"Error closing channel: {e}")

        if self.pipeline is not None:
            self.pipeline.accumulator.reset()
