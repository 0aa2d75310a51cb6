"""
API-Key header check for the external verification endpoints
"""
import hmac
from typing import Optional

from fastapi import Header, HTTPException

from verifier.config import settings

API_KEY_HEADER = "API-Key"


def require_api_key(api_key: Optional[str] = Header(default=None, alias=API_KEY_HEADER)) -> None:
    """Reject the request unless ``API-Key`` equals ``settings.API_KEY``"""
    if api_key is None or not hmac.compare_digest(api_key.encode(), settings.API_KEY.encode()):
        raise HTTPException(status_code=401, detail="Invalid or missing API-Key")
