from typing import Optional
from fastapi import Security
from fastapi.security import APIKeyHeader, APIKeyQuery

from khata.core.config import settings
from khata.utils.exceptions import InvalidAPIKeyError


api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
api_key_query = APIKeyQuery(name="api_key", auto_error=False)


async def get_api_key(
    api_key_header: Optional[str] = Security(api_key_header),
    api_key_query: Optional[str] = Security(api_key_query)
) -> Optional[str]:
    """Guard for the khata routes; a no-op unless API_KEY_ENABLED is set."""
    if not settings.api_key_enabled:
        return None

    provided_key = api_key_header or api_key_query

    if not provided_key:
        raise InvalidAPIKeyError(
            "API key is required. Provide it via X-API-Key header or api_key query parameter."
        )

    if provided_key != settings.api_key:
        raise InvalidAPIKeyError()

    return provided_key
