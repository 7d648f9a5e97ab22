"""
Password hashing utilities using bcrypt.
"""

import hmac
import re

import bcrypt

from authsvc.kernel.identity.errors import HashingError

# Default cost factor; roughly tens of milliseconds per hash on commodity hardware
DEFAULT_ROUNDS = 12

# bcrypt only consumes the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72

# $2b$12$ + 22 chars of salt + 31 chars of digest
_BCRYPT_HASH = re.compile(r"\$2[aby]\$(0[4-9]|[12]\d|3[01])\$[./A-Za-z0-9]{53}")


class PasswordHasher:
    """
    Password hashing service.

    Hashes are salted per call, so hashing the same password twice never
    yields the same string. The salt and cost factor are embedded in the hash.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        # surrogatepass keeps lone surrogates hashable instead of raising
        return password.encode("utf-8", "surrogatepass")

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string

        Raises:
            HashingError: If the password cannot be hashed, including passwords
                longer than 72 bytes, which bcrypt would silently truncate
        """
        pwd_bytes = self._encode(password)
        if len(pwd_bytes) > MAX_PASSWORD_BYTES:
            raise HashingError("password exceeds 72 bytes")
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            hashed = bcrypt.hashpw(pwd_bytes, salt)
        except (ValueError, TypeError) as exc:
            raise HashingError() from exc
        return hashed.decode("ascii")

    def verify(self, hashed_password: str, candidate: str) -> bool:
        """
        Verify a candidate password against a stored hash.

        The comparison runs in constant time. A mismatch is False, not an error.

        Args:
            hashed_password: Stored bcrypt hash
            candidate: Plain text password to check

        Returns:
            True if the candidate matches, False otherwise

        Raises:
            HashingError: If the stored hash is malformed
        """
        if not _BCRYPT_HASH.fullmatch(hashed_password):
            raise HashingError("stored hash is malformed")
        hash_bytes = hashed_password.encode("ascii")

        pwd_bytes = self._encode(candidate)
        # hash() refuses anything longer, so nothing stored can match it;
        # the truncated input still goes through bcrypt to keep timing uniform
        oversized = len(pwd_bytes) > MAX_PASSWORD_BYTES

        try:
            recomputed = bcrypt.hashpw(pwd_bytes[:MAX_PASSWORD_BYTES], hash_bytes)
        except ValueError as exc:
            # Candidate is within 72 bytes here, so bcrypt rejected the hash
            raise HashingError("stored hash is malformed") from exc

        matched = hmac.compare_digest(recomputed, hash_bytes)
        return matched and not oversized

    def needs_rehash(self, hashed_password: str) -> bool:
        """Check if a stored hash was produced with a different cost factor."""
        match = _BCRYPT_HASH.fullmatch(hashed_password)
        if not match:
            return True
        return int(match.group(1)) != self.rounds
