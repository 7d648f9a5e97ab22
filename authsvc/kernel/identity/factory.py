"""
Composition root for the identity core.

Settings are read once here and handed to each component as plain values;
nothing below this point consults configuration on its own.
"""

from datetime import timedelta

from authsvc.config import Settings
from authsvc.kernel.identity.identity_service import AuthService
from authsvc.kernel.identity.interfaces import AccountStore
from authsvc.kernel.identity.password import PasswordHasher
from authsvc.kernel.identity.tokens import TokenCodec
from authsvc.logging_config import get_logger

logger = get_logger(__name__)


def build_auth_service(settings: Settings, store: AccountStore) -> AuthService:
    """
    Build the auth service for a given account store.

    Args:
        settings: Loaded service settings
        store: AccountStore implementation (SQL in production, in-memory in tests)

    Returns:
        A fully wired AuthService
    """
    codec = TokenCodec(
        secret=settings.jwt_secret.get_secret_value(),
        ttl=settings.token_ttl,
        algorithm=settings.jwt_algorithm,
        leeway=timedelta(seconds=settings.token_leeway_seconds),
    )
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    if settings.token_leeway_seconds:
        logger.warning(
            "Token expiry leeway enabled: tokens stay valid %ss past expiry",
            settings.token_leeway_seconds,
        )
    logger.info(
        "Auth service ready",
        extra={
            "algorithm": codec.algorithm,
            "token_ttl_s": int(codec.ttl.total_seconds()),
            "bcrypt_rounds": hasher.rounds,
        },
    )

    return AuthService(
        store=store,
        codec=codec,
        hasher=hasher,
        store_timeout=settings.store_timeout_seconds,
    )
