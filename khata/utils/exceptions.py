# coustom exception creation

from typing import Optional, Dict, Any

#  main class, raised whenever the khata pipeline has to report an error

class KhataError(Exception):

    def __init__(
        self,
        message: str,
        error_code: str = "KHATA_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

# the OCR service could not read one register photo
class OCRExtractionError(KhataError):

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="OCR_EXTRACTION_ERROR",
            details=details
        )

# OCR answered but the answer is not a list of candidate rows

class OCRDecodeError(KhataError):

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="OCR_DECODE_ERROR",
            details=details
        )

# if llm does not connec we will call this exception

class LLMConnectionError(KhataError):

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="LLM_CONNECTION_ERROR"
        )

#   if api key invalid then this exception occurs

class InvalidAPIKeyError(KhataError):

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__(
            message=message,
            error_code="INVALID_API_KEY"
        )

# image in the request body is not decodable

class ImagePayloadError(KhataError):

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="INVALID_IMAGE",
            details={"image_index": index} if index is not None else None
        )

# more photos than one request may carry

class TooManyImagesError(KhataError):

    def __init__(self, count: int, limit: int):
        super().__init__(
            message=f"At most {limit} images can be uploaded at once (got {count})",
            error_code="TOO_MANY_IMAGES",
            details={"count": count, "limit": limit}
        )

# this one helps  for only validation error purpuses

class ValidationError(KhataError):

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details
        )
