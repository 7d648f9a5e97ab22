"""
Signed, time-bounded identity tokens (JWS/JWT, HMAC).
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

from jose import JWTError, jwt
from jose.constants import ALGORITHMS
from jose.exceptions import JWSError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from authsvc.kernel.identity.errors import InvalidTokenError, SigningError
from authsvc.logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IdentityClaims(BaseModel):
    """Identity assertion carried inside a token."""

    model_config = ConfigDict(frozen=True)

    account_id: uuid.UUID
    username: str
    issued_at: datetime
    expires_at: datetime
    token_id: str = Field(..., min_length=1)


class TokenCodec:
    """
    Issues and verifies identity tokens.

    The secret, TTL and algorithm are fixed at construction. Verification
    accepts exactly one algorithm; a token declaring any other one is rejected
    before its signature is looked at.

    Expiry is checked without clock-skew allowance unless ``leeway`` is set,
    which deliberately widens the validity window by that amount.
    """

    def __init__(
        self,
        secret: Union[str, bytes],
        ttl: timedelta,
        algorithm: str = ALGORITHMS.HS256,
        leeway: timedelta = timedelta(0),
        clock: Clock = utc_now,
    ):
        if not secret:
            raise ValueError("signing secret must not be empty")
        if algorithm not in ALGORITHMS.HMAC:
            raise ValueError(f"unsupported signing algorithm {algorithm!r}")
        if leeway < timedelta(0):
            raise ValueError("leeway must not be negative")
        self._secret = secret
        self.ttl = ttl
        self.algorithm = algorithm
        self.leeway = leeway
        self._clock = clock

    def generate(
        self,
        account_id: uuid.UUID,
        username: str,
        ttl: Optional[timedelta] = None,
    ) -> str:
        """
        Create a signed token for an account.

        Args:
            account_id: Account's unique identifier
            username: Account's username
            ttl: Optional override of the configured lifetime

        Returns:
            The encoded token

        Raises:
            SigningError: If the token cannot be signed
        """
        # NumericDate claims are whole seconds
        issued_at = int(self._clock().timestamp())
        lifetime = self.ttl if ttl is None else ttl
        expires_at = issued_at + int(lifetime.total_seconds())

        payload = {
            "uid": str(account_id),
            "username": username,
            "sub": str(account_id),
            "iat": issued_at,
            "exp": expires_at,
            "jti": uuid.uuid4().hex,
        }

        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (JWTError, JWSError, TypeError, ValueError) as exc:
            logger.error("Token signing failed", exc_info=True)
            raise SigningError() from exc

    def verify(self, token: str) -> IdentityClaims:
        """
        Verify a token and return its claims.

        Raises:
            InvalidTokenError: For any malformed, wrong-algorithm, badly signed,
                undecodable or expired token. The specific cause is only logged.
        """
        try:
            header = jwt.get_unverified_header(token)
        except (JWTError, AttributeError, TypeError) as exc:
            raise self._reject("malformed") from exc

        declared = header.get("alg")
        if declared != self.algorithm:
            raise self._reject("algorithm_mismatch", declared_alg=str(declared))

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                # Expiry is checked below against the injected clock
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise self._reject("bad_signature") from exc

        claims = self._parse_claims(payload)

        now = self._clock()
        if not now < claims.expires_at + self.leeway:
            raise self._reject("expired", account_id=str(claims.account_id))

        return claims

    def _parse_claims(self, payload: dict[str, Any]) -> IdentityClaims:
        if payload.get("sub") != payload.get("uid"):
            raise self._reject("bad_claims")
        try:
            return IdentityClaims(
                account_id=payload.get("uid"),
                username=payload.get("username"),
                issued_at=payload.get("iat"),
                expires_at=payload.get("exp"),
                token_id=payload.get("jti"),
            )
        except ValidationError as exc:
            raise self._reject("bad_claims") from exc

    @staticmethod
    def _reject(reason: str, **extra: str) -> InvalidTokenError:
        if reason == "expired":
            logger.info("Token rejected: %s", reason, extra={"reason": reason, **extra})
        else:
            logger.warning("Token rejected: %s", reason, extra={"reason": reason, **extra})
        return InvalidTokenError()
