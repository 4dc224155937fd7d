"""Sample source protocol defining the interface for audio capture backends.

This is the boundary that isolates device-dependent code from the framing
pipeline, the session and the tests.
"""

from collections.abc import AsyncIterator
from typing import Protocol

import numpy as np


class SampleSource(Protocol):
    """Protocol for audio capture backends.

    Implementations yield mono float32 chunks of arbitrary length. This allows
    swapping between a real microphone and a fake source for testing.
    """

    @property
    def sample_rate(self) -> int:
        """Sample rate of the produced chunks in Hz."""
        ...

    async def open(self) -> None:
        """Acquire the capture device.

        Raises on permission or device errors.
        """
        ...

    def chunks(self) -> AsyncIterator[np.ndarray]:
        """Yield float32 chunks normalized to [-1, 1] until closed."""
        ...

    def close(self) -> None:
        """Release the capture device. Safe to call more than once."""
        ...
