# nvr_bridge/exceptions.py
"""
Error taxonomy for the bridge.

TransportError and DecodeError are recovered from (retry / drop) and only logged.
ConfigurationError is the one failure that stops the service from starting.
"""


class NvrBridgeError(Exception):
    """Base class for every error raised by the bridge."""


class TransportError(NvrBridgeError):
    """Connection refused, TLS failure, timeout or unexpected HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(NvrBridgeError):
    """A fragment or response body could not be decoded."""

    def __init__(self, message: str, fragment: str | None = None):
        super().__init__(message)
        self.fragment = fragment


class ChannelNotFoundError(NvrBridgeError, LookupError):
    """An event referenced a channel the directory does not know (or is offline)."""

    def __init__(self, channel_id: str):
        super().__init__(f"Unknown channel: {channel_id}")
        self.channel_id = channel_id


class CapabilityFetchError(NvrBridgeError):
    """Capability lookup failed for one channel during discovery."""

    def __init__(self, channel_id: str, cause: Exception):
        super().__init__(f"Capabilities unavailable for channel {channel_id}: {cause}")
        self.channel_id = channel_id
        self.cause = cause


class ConfigurationError(NvrBridgeError):
    """Missing or invalid configuration. Fatal at startup."""
