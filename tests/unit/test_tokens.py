"""Unit tests for token issuance and verification."""

import base64
import json
import uuid
from datetime import timedelta

import pytest
from jose import jwt
from jose.exceptions import JWSError

from authsvc.kernel.identity import tokens as tokens_module
from authsvc.kernel.identity.errors import AuthErrorKind, InvalidTokenError, SigningError
from authsvc.kernel.identity.tokens import IdentityClaims, TokenCodec


def _b64url_decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _segment(obj: dict) -> str:
    return _b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


@pytest.fixture
def account_id() -> uuid.UUID:
    return uuid.UUID("6f1c1d0e-8d2a-4c1e-9a59-3f1c2b7d9e11")


class TestTokenRoundTrip:
    """Tokens verify back to the identity they were issued for."""

    def test_generate_and_verify(self, codec: TokenCodec, account_id: uuid.UUID):
        token = codec.generate(account_id, "alice")
        claims = codec.verify(token)

        assert isinstance(claims, IdentityClaims)
        assert claims.account_id == account_id
        assert claims.username == "alice"
        assert claims.expires_at - claims.issued_at == timedelta(minutes=60)

    def test_wire_format(self, codec: TokenCodec, account_id: uuid.UUID):
        """Header pins HS256; payload carries uid, username, sub, iat, exp and jti."""
        token = codec.generate(account_id, "alice")

        assert token.count(".") == 2
        assert jwt.get_unverified_header(token)["alg"] == "HS256"
        payload = jwt.get_unverified_claims(token)
        assert payload["uid"] == str(account_id)
        assert payload["sub"] == str(account_id)
        assert payload["username"] == "alice"
        assert payload["exp"] - payload["iat"] == 3600
        assert payload["jti"]

    def test_tokens_for_same_account_differ(self, codec: TokenCodec, account_id: uuid.UUID):
        """Two tokens issued in the same second are still distinct strings."""
        assert codec.generate(account_id, "alice") != codec.generate(account_id, "alice")

    def test_valid_until_just_before_expiry(self, codec: TokenCodec, clock, account_id):
        token = codec.generate(account_id, "alice")

        clock.advance(minutes=59, seconds=59)

        assert codec.verify(token).username == "alice"

    def test_ttl_override(self, codec: TokenCodec, clock, account_id):
        token = codec.generate(account_id, "alice", ttl=timedelta(seconds=30))

        clock.advance(seconds=29)
        assert codec.verify(token).account_id == account_id

        clock.advance(seconds=1)
        with pytest.raises(InvalidTokenError):
            codec.verify(token)


class TestTokenExpiry:
    """Expired tokens are rejected."""

    def test_zero_ttl_is_never_valid(self, codec: TokenCodec, account_id):
        token = codec.generate(account_id, "alice", ttl=timedelta(0))

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.verify(token)

        assert exc_info.value.kind is AuthErrorKind.INVALID_TOKEN

    def test_zero_ttl_with_real_clock(self, token_secret, account_id):
        codec = TokenCodec(secret=token_secret, ttl=timedelta(0))

        with pytest.raises(InvalidTokenError):
            codec.verify(codec.generate(account_id, "alice"))

    def test_rejected_once_ttl_elapses(self, codec: TokenCodec, clock, account_id):
        token = codec.generate(account_id, "alice")

        clock.advance(minutes=60)

        with pytest.raises(InvalidTokenError):
            codec.verify(token)

    def test_leeway_extends_validity(self, token_secret, clock, account_id):
        """A non-zero leeway deliberately accepts slightly expired tokens."""
        codec = TokenCodec(
            secret=token_secret,
            ttl=timedelta(minutes=1),
            leeway=timedelta(seconds=30),
            clock=clock,
        )
        token = codec.generate(account_id, "alice")

        clock.advance(minutes=1, seconds=10)
        assert codec.verify(token).username == "alice"

        clock.advance(seconds=20)
        with pytest.raises(InvalidTokenError):
            codec.verify(token)


class TestTokenTampering:
    """Altered tokens are rejected."""

    def test_flipping_any_signature_byte_fails(self, codec: TokenCodec, account_id):
        token = codec.generate(account_id, "alice")
        header, payload, signature = token.split(".")
        raw = _b64url_decode(signature)

        for i in range(len(raw)):
            flipped = bytearray(raw)
            flipped[i] ^= 0x01
            forged = f"{header}.{payload}.{_b64url_encode(bytes(flipped))}"
            with pytest.raises(InvalidTokenError):
                codec.verify(forged)

    def test_modified_payload_fails(self, codec: TokenCodec, account_id):
        token = codec.generate(account_id, "alice")
        header, payload, signature = token.split(".")
        claims = json.loads(_b64url_decode(payload))
        claims["username"] = "mallory"

        with pytest.raises(InvalidTokenError):
            codec.verify(f"{header}.{_segment(claims)}.{signature}")

    def test_wrong_secret_fails(self, token_secret, clock, account_id):
        other = TokenCodec(secret="some-other-secret", ttl=timedelta(minutes=5), clock=clock)
        codec = TokenCodec(secret=token_secret, ttl=timedelta(minutes=5), clock=clock)

        with pytest.raises(InvalidTokenError):
            codec.verify(other.generate(account_id, "alice"))

    @pytest.mark.parametrize(
        "token",
        ["", "abc", "a.b.c", "...", "not.a.jwt.at.all", "eyJhbGciOiJIUzI1NiJ9..", "Bearer x.y.z"],
    )
    def test_malformed_tokens_fail(self, codec: TokenCodec, token: str):
        with pytest.raises(InvalidTokenError):
            codec.verify(token)


class TestAlgorithmPinning:
    """Only the pinned algorithm is ever accepted."""

    def _claims(self, codec: TokenCodec, account_id: uuid.UUID) -> dict:
        return jwt.get_unverified_claims(codec.generate(account_id, "alice"))

    @pytest.mark.parametrize("algorithm", ["HS384", "HS512"])
    def test_other_hmac_algorithm_with_same_secret_fails(
        self, codec, token_secret, account_id, algorithm
    ):
        """Self-consistent token, validly signed, but declaring another algorithm."""
        forged = jwt.encode(self._claims(codec, account_id), token_secret, algorithm=algorithm)

        with pytest.raises(InvalidTokenError):
            codec.verify(forged)

    def test_unsigned_none_algorithm_fails(self, codec, account_id):
        claims = self._claims(codec, account_id)
        forged = f"{_segment({'alg': 'none', 'typ': 'JWT'})}.{_segment(claims)}."

        with pytest.raises(InvalidTokenError):
            codec.verify(forged)

    def test_header_alg_swapped_on_valid_token_fails(self, codec, account_id):
        """Rewriting only the header's alg invalidates the token."""
        token = codec.generate(account_id, "alice")
        _, payload, signature = token.split(".")
        forged = f"{_segment({'alg': 'HS512', 'typ': 'JWT'})}.{payload}.{signature}"

        with pytest.raises(InvalidTokenError):
            codec.verify(forged)

    def test_missing_alg_fails(self, codec, account_id):
        token = codec.generate(account_id, "alice")
        _, payload, signature = token.split(".")

        with pytest.raises(InvalidTokenError):
            codec.verify(f"{_segment({'typ': 'JWT'})}.{payload}.{signature}")

    @pytest.mark.parametrize("algorithm", ["RS256", "ES256", "none", "HS1"])
    def test_codec_refuses_non_hmac_algorithms(self, token_secret, algorithm):
        with pytest.raises(ValueError):
            TokenCodec(secret=token_secret, ttl=timedelta(minutes=5), algorithm=algorithm)


class TestClaimValidation:
    """Correctly signed tokens with bad claims are rejected."""

    @pytest.fixture
    def sign(self, token_secret):
        def _sign(claims: dict) -> str:
            return jwt.encode(claims, token_secret, algorithm="HS256")
        return _sign

    def _base_claims(self, clock, account_id) -> dict:
        iat = int(clock().timestamp())
        return {
            "uid": str(account_id),
            "username": "alice",
            "sub": str(account_id),
            "iat": iat,
            "exp": iat + 600,
            "jti": "abc123",
        }

    @pytest.mark.parametrize("missing", ["uid", "username", "exp", "iat", "jti"])
    def test_missing_claim_fails(self, codec, clock, account_id, sign, missing):
        claims = self._base_claims(clock, account_id)
        claims.pop(missing)
        if missing == "uid":
            claims.pop("sub")

        with pytest.raises(InvalidTokenError):
            codec.verify(sign(claims))

    def test_subject_mismatch_fails(self, codec, clock, account_id, sign):
        claims = self._base_claims(clock, account_id)
        claims["sub"] = str(uuid.uuid4())

        with pytest.raises(InvalidTokenError):
            codec.verify(sign(claims))

    def test_non_uuid_account_id_fails(self, codec, clock, account_id, sign):
        claims = self._base_claims(clock, account_id)
        claims["uid"] = claims["sub"] = "42"

        with pytest.raises(InvalidTokenError):
            codec.verify(sign(claims))

    def test_hand_signed_valid_claims_pass(self, codec, clock, account_id, sign):
        claims = codec.verify(sign(self._base_claims(clock, account_id)))
        assert claims.token_id == "abc123"


class TestCodecConstruction:
    """Constructor guards and signing failures."""

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenCodec(secret="", ttl=timedelta(minutes=5))

    def test_negative_leeway_rejected(self, token_secret):
        with pytest.raises(ValueError):
            TokenCodec(secret=token_secret, ttl=timedelta(minutes=5), leeway=timedelta(seconds=-1))

    def test_bytes_secret(self, clock, account_id):
        codec = TokenCodec(secret=b"\x00\x01binary-secret", ttl=timedelta(minutes=5), clock=clock)
        assert codec.verify(codec.generate(account_id, "alice")).account_id == account_id

    def test_signing_failure_is_typed(self, codec, account_id, monkeypatch):
        def boom(*args, **kwargs):
            raise JWSError("key rejected")

        monkeypatch.setattr(tokens_module.jwt, "encode", boom)

        with pytest.raises(SigningError) as exc_info:
            codec.generate(account_id, "alice")

        assert exc_info.value.kind is AuthErrorKind.SIGNING_FAILURE
