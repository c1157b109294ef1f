# orgstruct/core/security.py
import hmac
from typing import Optional
from fastapi import Depends, Security
from fastapi.security.api_key import APIKeyHeader
from orgstruct.core.config import get_settings, Settings
from orgstruct.errors import UnauthorizedError

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_operator_key(
    api_key: Optional[str] = Security(api_key_header),
    settings: Settings = Depends(get_settings),
) -> None:
    """Guards operator endpoints; the departments API itself is open."""
    if not api_key or not hmac.compare_digest(api_key.encode(), settings.API_KEY.encode()):
        raise UnauthorizedError(op="http.require_operator_key")
