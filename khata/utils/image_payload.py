import io
import re
import base64
import binascii
from dataclasses import dataclass
from typing import List, Optional, Sequence
from PIL import Image, UnidentifiedImageError

from loguru import logger

from khata.core.config import settings
from khata.utils.exceptions import ImagePayloadError, TooManyImagesError


DATA_URL_PATTERN = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)
DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ImagePayloadDecoder:

    # PIL format name -> mime type, for bare base64 without a data: prefix
    FORMAT_MIME_TYPES = {
        "JPEG": "image/jpeg",
        "PNG": "image/png",
        "WEBP": "image/webp",
        "GIF": "image/gif",
        "BMP": "image/bmp",
        "TIFF": "image/tiff",
        "HEIF": "image/heif",
    }

    def __init__(self, max_images: Optional[int] = None):
        self.max_images = max_images

    def decode(self, payload: str, index: Optional[int] = None) -> ImagePayload:
        if not payload or not payload.strip():
            raise ImagePayloadError(self._label(index, "image is empty"), index)

        payload = payload.strip()
        prefix = DATA_URL_PATTERN.match(payload)
        mime_type = prefix.group(1).lower() if prefix else None
        encoded = payload[prefix.end():] if prefix else payload

        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImagePayloadError(self._label(index, f"invalid base64 data: {e}"), index)

        if not data:
            raise ImagePayloadError(self._label(index, "image is empty"), index)

        if mime_type is None:
            mime_type = self._sniff_mime_type(data, index)

        return ImagePayload(data=data, mime_type=mime_type)

    def decode_all(self, payloads: Sequence[str]) -> List[ImagePayload]:
        if not payloads:
            raise ImagePayloadError("Upload at least one image")

        if self.max_images is not None and len(payloads) > self.max_images:
            raise TooManyImagesError(len(payloads), self.max_images)

        images = [self.decode(payload, index) for index, payload in enumerate(payloads)]
        logger.info(f"Decoded {len(images)} image(s), {sum(i.size_bytes for i in images)} bytes total")
        return images

    def _sniff_mime_type(self, data: bytes, index: Optional[int]) -> str:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image_format = image.format
        except (UnidentifiedImageError, OSError) as e:
            raise ImagePayloadError(self._label(index, f"not a readable image: {e}"), index)

        return self.FORMAT_MIME_TYPES.get(image_format or "", DEFAULT_MIME_TYPE)

    @staticmethod
    def _label(index: Optional[int], message: str) -> str:
        return f"Image {index + 1}: {message}" if index is not None else message


image_decoder = ImagePayloadDecoder(max_images=settings.max_images_per_request)
