"""Error types raised by the captioning session."""


class SlatecapError(Exception):
    """Base class for slatecap errors."""


class TransportFailure(SlatecapError):
    """Sending an audio packet over the channel failed.

    The packet is dropped and the session continues.
    """


class SessionSetupFailure(SlatecapError):
    """Starting a session failed (token, device or channel connect)."""


class TokenError(SessionSetupFailure):
    """The token endpoint did not return a usable token."""
