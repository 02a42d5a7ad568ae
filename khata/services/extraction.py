import time
import asyncio
from typing import Any, Optional, Tuple
from abc import ABC, abstractmethod

from loguru import logger
from google import genai
from google.genai import types

from khata.core.config import settings
from khata.services.decoder import parse_json_response
from khata.services.prompts import KHATA_SYSTEM_PROMPT, KHATA_EXTRACTION_PROMPT
from khata.utils.exceptions import KhataError, LLMConnectionError, OCRExtractionError
from khata.utils.image_payload import ImagePayload


class BaseKhataExtractor(ABC):
    """Abstract base class for register page extractors"""

    @abstractmethod
    async def extract(self, image: ImagePayload) -> Any:
        """Read one register photo, returning the raw parsed rows"""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if LLM connection is healthy"""
        pass


class GeminiKhataExtractor(BaseKhataExtractor):

    def __init__(self, api_key: Optional[str] = None):

        self.api_key = api_key or settings.google_api_key

        if not self.api_key:
            raise LLMConnectionError(
                "Google API key not configured. Provide via request or set GOOGLE_API_KEY in environment."
            )

        self.client = genai.Client(api_key=self.api_key)
        self.model_name = settings.gemini_model

        key_source = "user-provided" if api_key else "system"
        logger.info(f"Initialized Gemini extractor with model: {self.model_name} (using {key_source} API key)")

    async def health_check(self) -> bool:
        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model_name,
                contents="Say OK",
            )
            return bool(response.text and "ok" in response.text.lower())
        except Exception as e:
            logger.error(f"Gemini health check failed: {e}")
            return False

    async def extract(self, image: ImagePayload) -> Any:
        """
        Send one register photo to Gemini Vision and parse the JSON array it returns.

        Raises OCRExtractionError when the call fails and OCRDecodeError when
        the reply is not parseable JSON. Shape checks happen in the decoder.
        """
        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model_name,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part(text=KHATA_EXTRACTION_PROMPT),
                            types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    system_instruction=KHATA_SYSTEM_PROMPT,
                    temperature=0.1,  # Low = deterministic output
                    max_output_tokens=8192,
                    response_mime_type="application/json",
                ),
            )
        except Exception as e:
            logger.error(f"Gemini extraction failed: {e}")
            raise OCRExtractionError(f"Extraction Error: {str(e)}")

        if not response.text:
            raise OCRExtractionError("Empty response from Gemini")

        logger.debug(f"Gemini response: {response.text[:500]}")
        return parse_json_response(response.text)


class KhataExtractionService:
    def __init__(self):
        """Initialize service (extractor created lazily on first use)."""
        self.extractor: Optional[BaseKhataExtractor] = None
        self.provider: str = "gemini"
        self._initialized = False
        self._current_api_key: Optional[str] = None  # Track current key for re-init

    async def initialize(self, user_api_key: Optional[str] = None):

        if self._initialized and user_api_key == self._current_api_key:
            return

        if self._initialized and user_api_key != self._current_api_key:
            self._initialized = False
            self.extractor = None

        try:
            self.extractor = GeminiKhataExtractor(api_key=user_api_key)
            self._initialized = True
            self._current_api_key = user_api_key
            key_info = "user-provided" if user_api_key else "system"
            logger.info(f"Khata extraction service initialized with provider: {self.provider} ({key_info} API key)")

        except LLMConnectionError as e:
            logger.error(f"Failed to initialize extraction service: {e}")
            raise

    async def health_check(self) -> Tuple[bool, str]:
        if not self._initialized:
            await self.initialize()

        if self.extractor:
            is_healthy = await self.extractor.health_check()
            return is_healthy, self.provider

        return False, "none"

    async def extract_khata_page(self, image: ImagePayload, user_api_key: Optional[str] = None) -> Any:
        # a request without a key goes back to the system key
        if not self._initialized or user_api_key != self._current_api_key:
            await self.initialize(user_api_key)

        if not self.extractor:
            raise OCRExtractionError("Extractor not initialized")

        start_time = time.time()
        try:
            rows = await self.extractor.extract(image)
        except KhataError:
            raise
        except Exception as e:
            raise OCRExtractionError(f"Failed to read register page: {str(e)}")

        logger.info(
            f"Register page ({image.mime_type}, {image.size_bytes} bytes) read in "
            f"{time.time() - start_time:.2f}s"
        )
        return rows


llm_service = KhataExtractionService()
