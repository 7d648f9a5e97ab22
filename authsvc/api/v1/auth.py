"""
Authentication endpoints.
"""

from fastapi import APIRouter, status

from authsvc.api.deps import AppSettings, AuthServiceDep, CurrentAccount
from authsvc.config import Settings
from authsvc.kernel.identity.interfaces import Account
from authsvc.schemas.auth import AccountResponse, Credentials, TokenResponse
from authsvc.schemas.common import ErrorResponse

router = APIRouter()


def _token_response(account: Account, token: str, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=token,
        expires_in=settings.token_ttl_minutes * 60,
        account=AccountResponse.model_validate(account),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
)
async def register(data: Credentials, auth: AuthServiceDep, settings: AppSettings):
    """
    Register a new account.

    Returns a token for the new account on success.
    """
    account, token = await auth.register(data.username, data.password)
    return _token_response(account, token, settings)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
)
async def login(data: Credentials, auth: AuthServiceDep, settings: AppSettings):
    """Authenticate with username and password and return a fresh token."""
    account, token = await auth.login(data.username, data.password)
    return _token_response(account, token, settings)


@router.get(
    "/me",
    response_model=AccountResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
)
async def get_current_account_profile(account: CurrentAccount):
    """Get the account the bearer token was issued for."""
    return AccountResponse.model_validate(account)
