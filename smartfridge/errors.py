"""Exception types shared across the fridge server."""

from __future__ import annotations


class SmartFridgeError(Exception):
    """Base class for errors raised by smartfridge."""


class OcrFailure(SmartFridgeError):
    """The text recognition engine failed or could not read the image."""


class OcrTimeout(OcrFailure):
    """Text recognition did not finish within the configured bound."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"OCR timed out after {timeout:g}s")
        self.timeout = timeout


class NoImageProvided(SmartFridgeError):
    """A request that needs an image arrived without one."""


class StorageFailure(SmartFridgeError):
    """The inventory store rejected a write."""
