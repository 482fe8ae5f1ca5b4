"""OCR backend base class, timeout wrapper, and factory."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..errors import OcrFailure, OcrTimeout

if TYPE_CHECKING:
    from ..config import FridgeConfig

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = "ita+eng"


class OCRBackend(ABC):
    """Abstract base for turning an image into raw text."""

    @abstractmethod
    async def recognize(
        self, image_bytes: bytes, languages: str = DEFAULT_LANGUAGES
    ) -> str:
        """Return the text found in the image.

        No guarantee is made about line breaks or character accuracy.

        Raises:
            OcrFailure: If the engine cannot process the image.
        """
        ...


async def recognize_text(
    backend: OCRBackend,
    image_bytes: bytes,
    languages: str = DEFAULT_LANGUAGES,
    timeout: float | None = None,
) -> str:
    """Run ``backend`` once, bounded by ``timeout`` seconds.

    Raises:
        OcrTimeout: If recognition takes longer than ``timeout``.
        OcrFailure: For any other engine error.
    """
    try:
        return await asyncio.wait_for(
            backend.recognize(image_bytes, languages), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning("OCR exceeded %ss, giving up", timeout)
        raise OcrTimeout(timeout or 0.0) from None
    except OcrFailure:
        raise
    except Exception as e:
        raise OcrFailure(f"OCR failed: {e}") from e


def create_backend(config: FridgeConfig) -> OCRBackend:
    """Create an OCR backend based on configuration."""
    backend_name = config.ocr.backend

    match backend_name:
        case "tesseract":
            from .tesseract import TesseractOCRBackend

            return TesseractOCRBackend(
                tesseract_cmd=config.ocr.tesseract_cmd,
                timeout=config.ocr.timeout,
            )
        case "claude":
            from .claude import ClaudeOCRBackend

            return ClaudeOCRBackend(
                api_key=config.ocr.claude.api_key,
                model=config.ocr.claude.model,
            )
        case _:
            raise ValueError(
                f"Unknown OCR backend: {backend_name!r} "
                f"(choose tesseract or claude)"
            )


__all__ = [
    "DEFAULT_LANGUAGES",
    "OCRBackend",
    "create_backend",
    "recognize_text",
]
