"""
Pydantic schemas for API request/response validation.
"""

from authsvc.schemas.auth import Credentials, AccountResponse, TokenResponse
from authsvc.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    # Auth
    "Credentials",
    "AccountResponse",
    "TokenResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
]
