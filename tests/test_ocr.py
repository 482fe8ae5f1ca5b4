"""Tests for OCR backends (mocked engines)."""

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import numpy  # noqa: F401  -- load before patch.dict(sys.modules) fixtures, which would evict it
import pytest

from smartfridge.config import load_config
from smartfridge.errors import OcrFailure, OcrTimeout
from smartfridge.ocr import OCRBackend, create_backend, recognize_text
from smartfridge.ocr.claude import ClaudeOCRBackend
from smartfridge.ocr.tesseract import TesseractOCRBackend, preprocess_image


class _TesseractError(Exception):
    pass


class _TesseractNotFoundError(Exception):
    pass


@pytest.fixture
def mock_cv2():
    """Inject a mock cv2 module into sys.modules."""
    mock = MagicMock()
    mock.imdecode.return_value = "decoded"
    mock.cvtColor.return_value = "gray"
    mock.threshold.return_value = (127.0, "binary")
    with patch.dict(sys.modules, {"cv2": mock}):
        yield mock


@pytest.fixture
def mock_pytesseract():
    mock = MagicMock()
    mock.TesseractError = _TesseractError
    mock.TesseractNotFoundError = _TesseractNotFoundError
    mock.image_to_string.return_value = "PROSCIUTTO 0,100 kg"
    with patch.dict(sys.modules, {"pytesseract": mock}):
        yield mock


class TestCreateBackend:
    def test_default_is_tesseract(self):
        backend = create_backend(load_config())
        assert isinstance(backend, TesseractOCRBackend)

    def test_claude_backend(self):
        config = load_config()
        config.ocr.backend = "claude"
        assert isinstance(create_backend(config), ClaudeOCRBackend)

    def test_unknown_backend(self):
        config = load_config()
        config.ocr.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown OCR backend"):
            create_backend(config)


class TestRecognizeText:
    @pytest.mark.asyncio
    async def test_returns_text(self):
        backend = MagicMock(spec=OCRBackend)
        backend.recognize = AsyncMock(return_value="hello")
        assert await recognize_text(backend, b"img", "ita", timeout=1) == "hello"
        backend.recognize.assert_awaited_once_with(b"img", "ita")

    @pytest.mark.asyncio
    async def test_timeout_is_distinct(self):
        async def slow(image_bytes, languages):
            await asyncio.sleep(1)
            return ""

        backend = MagicMock(spec=OCRBackend)
        backend.recognize = slow
        with pytest.raises(OcrTimeout) as excinfo:
            await recognize_text(backend, b"img", timeout=0.01)
        assert isinstance(excinfo.value, OcrFailure)
        assert excinfo.value.timeout == 0.01


class TestPreprocessImage:
    def test_binarises(self, mock_cv2):
        assert preprocess_image(b"\xff\xd8fake") == "binary"
        mock_cv2.cvtColor.assert_called_once()
        mock_cv2.threshold.assert_called_once()

    def test_undecodable(self, mock_cv2):
        mock_cv2.imdecode.return_value = None
        with pytest.raises(OcrFailure, match="decoded"):
            preprocess_image(b"not an image")

    def test_empty_bytes(self, mock_cv2):
        with pytest.raises(OcrFailure):
            preprocess_image(b"")
        mock_cv2.imdecode.assert_not_called()


class TestTesseractOCRBackend:
    @pytest.mark.asyncio
    async def test_recognize(self, mock_cv2, mock_pytesseract):
        backend = TesseractOCRBackend(tesseract_cmd="/opt/tesseract", timeout=5)
        text = await backend.recognize(b"\xff\xd8fake", "ita+eng")

        assert text == "PROSCIUTTO 0,100 kg"
        _, kwargs = mock_pytesseract.image_to_string.call_args
        assert kwargs["lang"] == "ita+eng"
        assert kwargs["timeout"] == 5
        assert mock_pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract"

    @pytest.mark.asyncio
    async def test_engine_error(self, mock_cv2, mock_pytesseract):
        mock_pytesseract.image_to_string.side_effect = _TesseractError("bad")
        with pytest.raises(OcrFailure, match="tesseract failed"):
            await TesseractOCRBackend().recognize(b"\xff\xd8fake")

    @pytest.mark.asyncio
    async def test_not_installed(self, mock_cv2, mock_pytesseract):
        mock_pytesseract.image_to_string.side_effect = _TesseractNotFoundError()
        with pytest.raises(OcrFailure, match="not installed"):
            await TesseractOCRBackend().recognize(b"\xff\xd8fake")


class TestClaudeOCRBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = ClaudeOCRBackend(api_key="")
        with pytest.raises(ValueError, match="API key"):
            await backend.recognize(b"img")

    @pytest.mark.asyncio
    async def test_recognize_mocked(self):
        mock_response = MagicMock()
        mock_response.content = [MagicMock(text="MORTADELLA 0,200 kg 2,80")]

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeOCRBackend(api_key="test-key")
            text = await backend.recognize(b"\x89PNGfake")

        assert text == "MORTADELLA 0,200 kg 2,80"
        _, kwargs = mock_client.messages.create.call_args
        image_part = kwargs["messages"][0]["content"][0]
        assert image_part["source"]["media_type"] == "image/png"

    @pytest.mark.asyncio
    async def test_api_error(self):
        class APIError(Exception):
            pass

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(side_effect=APIError("overloaded"))
        mock_anthropic = MagicMock()
        mock_anthropic.APIError = APIError
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            with pytest.raises(OcrFailure, match="overloaded"):
                await ClaudeOCRBackend(api_key="test-key").recognize(b"img")
