"""Smart fridge inventory server with receipt OCR."""

from .config import (
    DatabaseConfig,
    FridgeConfig,
    OCRConfig,
    SchedulerConfig,
    ServerConfig,
    load_config,
)
from .errors import (
    NoImageProvided,
    OcrFailure,
    OcrTimeout,
    SmartFridgeError,
    StorageFailure,
)
from .receipt import ParsedProduct, ReceiptParser, ReceiptSummary

__all__ = [
    "ReceiptParser",
    "ParsedProduct",
    "ReceiptSummary",
    "FridgeConfig",
    "ServerConfig",
    "DatabaseConfig",
    "OCRConfig",
    "SchedulerConfig",
    "load_config",
    "SmartFridgeError",
    "OcrFailure",
    "OcrTimeout",
    "NoImageProvided",
    "StorageFailure",
]
