"""Sample sources feeding the audio framing pipeline."""
