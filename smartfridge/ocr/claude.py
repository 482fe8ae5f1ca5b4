"""Claude API backend that transcribes receipt photos."""

from __future__ import annotations

import base64

from ..errors import OcrFailure
from . import DEFAULT_LANGUAGES, OCRBackend

_PROMPT = """\
This image is a photo of a printed shop receipt (language codes: {languages}).
Transcribe every line of text exactly as printed, one receipt line per output
line, keeping numbers, prices, weights and dates unchanged.
Return only the transcription, with no commentary.
"""


class ClaudeOCRBackend(OCRBackend):
    """Recognise receipt text using Claude's vision capability."""

    def __init__(self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929") -> None:
        self._api_key = api_key
        self._model = model

    async def recognize(
        self, image_bytes: bytes, languages: str = DEFAULT_LANGUAGES
    ) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": _guess_media_type(image_bytes),
                    "data": base64.standard_b64encode(image_bytes).decode(),
                },
            },
            {"type": "text", "text": _PROMPT.format(languages=languages)},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=4096,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            raise OcrFailure(f"Claude transcription failed: {e}") from e

        return response.content[0].text


def _guess_media_type(data: bytes) -> str:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
