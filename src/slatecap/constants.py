"""Core constants for the slatecap captioning front end.

The streaming transcription service accepts 16-bit mono PCM packets between
50ms and 200ms long. Sample rate comes from the capture device.
"""

# Audio format
DEFAULT_SAMPLE_RATE: int = 48000  # Hz - typical capture device rate
BYTES_PER_SAMPLE: int = 2  # 16-bit PCM

# Packet duration bounds accepted by the transcription service
MIN_PACKET_MS: int = 50
MAX_PACKET_MS: int = 200

# Maximum age of a spoken slate when the ACTION call arrives
CORRELATION_WINDOW_SECONDS: float = 10.0

# Temporary streaming token lifetime
TOKEN_EXPIRES_IN_SECONDS: int = 600

# Provider endpoints
PROVIDER_TOKEN_URL: str = "https://streaming.assemblyai.com/v3/token"
PROVIDER_STREAMING_URL: str = "wss://streaming.assemblyai.com/v3/ws"
