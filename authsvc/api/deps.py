"""
FastAPI dependencies for the auth service and the authenticated account.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authsvc.config import Settings
from authsvc.kernel.identity.interfaces import Account, Authenticator


# Security scheme; a missing or non-Bearer header yields None instead of raising
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_auth_service(request: Request) -> Authenticator:
    """The auth service wired at startup."""
    return request.app.state.auth_service


AppSettings = Annotated[Settings, Depends(get_app_settings)]
AuthServiceDep = Annotated[Authenticator, Depends(get_auth_service)]


async def get_current_account(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    auth: AuthServiceDep,
) -> Account:
    """
    Resolve the bearer token to an Account or raise 401.

    An invalid token raises InvalidTokenError, rendered as 401 by the app's
    AuthError handler.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth.verify_token(credentials.credentials)


CurrentAccount = Annotated[Account, Depends(get_current_account)]
