"""Tesseract OCR backend with OpenCV preprocessing."""

from __future__ import annotations

import asyncio

from ..errors import OcrFailure
from . import DEFAULT_LANGUAGES, OCRBackend

# OEM 3 = default engine, PSM 4 = single column of variable-size text
_TESSERACT_CONFIG = r"--oem 3 --psm 4"


class TesseractOCRBackend(OCRBackend):
    """Recognise receipt text with a local tesseract install."""

    def __init__(self, tesseract_cmd: str = "", timeout: float = 0) -> None:
        self._tesseract_cmd = tesseract_cmd
        self._timeout = timeout

    async def recognize(
        self, image_bytes: bytes, languages: str = DEFAULT_LANGUAGES
    ) -> str:
        return await asyncio.to_thread(self._recognize_sync, image_bytes, languages)

    def _recognize_sync(self, image_bytes: bytes, languages: str) -> str:
        try:
            import pytesseract
        except ImportError:
            raise ImportError(
                "pytesseract is required: pip install pytesseract"
            ) from None

        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd

        image = preprocess_image(image_bytes)
        try:
            # tesseract kills its own subprocess once the timeout passes
            return pytesseract.image_to_string(
                image,
                lang=languages,
                config=_TESSERACT_CONFIG,
                timeout=self._timeout,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OcrFailure("tesseract is not installed or not in PATH") from e
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise OcrFailure(f"tesseract failed: {e}") from e


def preprocess_image(image_bytes: bytes):
    """Decode image bytes into a binarised grayscale array.

    Raises:
        OcrFailure: If the bytes are not a readable image.
    """
    try:
        import cv2
        import numpy as np
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python-headless"
        ) from None

    buf = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if image is None:
        raise OcrFailure("Image could not be decoded")

    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary
