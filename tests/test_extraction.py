"""
Tests for the Gemini extraction service (Gemini client is mocked)
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from khata.services.extraction import GeminiKhataExtractor, KhataExtractionService
from khata.utils.exceptions import LLMConnectionError, OCRDecodeError, OCRExtractionError
from khata.utils.image_payload import ImagePayload


IMAGE = ImagePayload(data=b"\x89PNG fake", mime_type="image/png")


def make_extractor(response_text=None, error=None):
    with patch("khata.services.extraction.genai.Client") as client_cls:
        extractor = GeminiKhataExtractor(api_key="test-key")
    generate = client_cls.return_value.models.generate_content
    if error is not None:
        generate.side_effect = error
    else:
        generate.return_value = MagicMock(text=response_text)
    return extractor, generate


class TestGeminiKhataExtractor:

    def test_missing_key(self):
        with patch("khata.services.extraction.settings.google_api_key", None):
            with pytest.raises(LLMConnectionError):
                GeminiKhataExtractor()

    def test_parses_rows(self):
        extractor, generate = make_extractor('```json\n[{"rollNumber": "01", "name": "করিম", "totalMarks": 85}]\n```')
        rows = asyncio.run(extractor.extract(IMAGE))

        assert rows == [{"rollNumber": "01", "name": "করিম", "totalMarks": 85}]
        assert generate.call_count == 1

    def test_sdk_failure(self):
        extractor, _ = make_extractor(error=RuntimeError("deadline exceeded"))
        with pytest.raises(OCRExtractionError) as exc:
            asyncio.run(extractor.extract(IMAGE))
        assert "deadline exceeded" in exc.value.message

    def test_empty_response(self):
        extractor, _ = make_extractor("")
        with pytest.raises(OCRExtractionError):
            asyncio.run(extractor.extract(IMAGE))

    def test_unparseable_response(self):
        extractor, _ = make_extractor("I could not read the page")
        with pytest.raises(OCRDecodeError):
            asyncio.run(extractor.extract(IMAGE))


class TestKhataExtractionService:

    def test_uninitialized_without_key(self):
        service = KhataExtractionService()
        with patch("khata.services.extraction.settings.google_api_key", None):
            with pytest.raises(LLMConnectionError):
                asyncio.run(service.extract_khata_page(IMAGE))

    def test_reinitializes_on_new_key(self):
        service = KhataExtractionService()
        with patch("khata.services.extraction.genai.Client"):
            asyncio.run(service.initialize("key-one"))
            first = service.extractor
            asyncio.run(service.initialize("key-one"))
            assert service.extractor is first
            asyncio.run(service.initialize("key-two"))
            assert service.extractor is not first

    def test_page_without_key_reverts_to_system_key(self):
        service = KhataExtractionService()
        rows = [{"rollNumber": "1", "name": "Rahim", "totalMarks": 50}]
        with patch("khata.services.extraction.genai.Client"), \
                patch("khata.services.extraction.settings.google_api_key", "system-key"), \
                patch.object(GeminiKhataExtractor, "extract", new=AsyncMock(return_value=rows)):
            asyncio.run(service.extract_khata_page(IMAGE, user_api_key="caller-key"))
            assert service.extractor.api_key == "caller-key"

            asyncio.run(service.extract_khata_page(IMAGE))
            assert service.extractor.api_key == "system-key"
