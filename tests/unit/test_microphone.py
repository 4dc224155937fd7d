"""Unit tests for the sounddevice microphone source, with the stream faked."""

import asyncio

import numpy as np
import pytest

try:
    from slatecap.capture import microphone
except OSError:
    pytest.skip("PortAudio library not available", allow_module_level=True)


class FakeInputStream:
    """Stands in for sounddevice.InputStream; the test drives the callback."""

    instances: list["FakeInputStream"] = []

    def __init__(self, callback, **kwargs):
        self.callback = callback
        self.kwargs = kwargs
        self.started = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True

    def deliver(self, samples: np.ndarray) -> None:
        self.callback(samples.reshape(-1, 1), len(samples), None, None)


@pytest.fixture
def fake_stream(monkeypatch):
    FakeInputStream.instances = []
    monkeypatch.setattr(microphone.sd, "InputStream", FakeInputStream)
    monkeypatch.setattr(
        microphone.sd, "query_devices", lambda device, kind: {"default_samplerate": 44100.0}
    )
    return FakeInputStream


async def next_chunk(source) -> np.ndarray:
    chunks = source.chunks()
    try:
        return await asyncio.wait_for(chunks.__anext__(), timeout=1.0)
    finally:
        await chunks.aclose()


class TestMicrophoneSource:
    """Tests for MicrophoneSource open/close."""

    @pytest.mark.asyncio
    async def test_uses_device_default_rate(self, fake_stream):
        source = microphone.MicrophoneSource()
        await source.open()
        try:
            assert source.sample_rate == 44100
            assert fake_stream.instances[0].kwargs["samplerate"] == 44100
        finally:
            source.close()

    @pytest.mark.asyncio
    async def test_close_ends_chunks(self, fake_stream):
        source = microphone.MicrophoneSource(sample_rate=16000)
        await source.open()
        source.close()
        assert fake_stream.instances[0].closed
        assert [chunk async for chunk in source.chunks()] == []

    @pytest.mark.asyncio
    async def test_reopen_after_close_delivers_audio(self, fake_stream):
        source = microphone.MicrophoneSource(sample_rate=16000)
        await source.open()
        source.close()

        await source.open()
        try:
            fake_stream.instances[-1].deliver(np.full(128, 0.25, dtype=np.float32))
            chunk = await next_chunk(source)
            assert len(chunk) == 128
            assert chunk.dtype == np.float32
        finally:
            source.close()
