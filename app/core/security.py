"""Password hashing and JWT issuance/verification for authentication."""

import binascii
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt
from jwt.utils import base64url_decode, base64url_encode

if TYPE_CHECKING:
    from app.core.config import Settings

# Min/max lengths for account input validation.
NAME_MIN_LEN = 2
NAME_MAX_LEN = 50
EMAIL_MAX_LEN = 100
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

DEFAULT_BCRYPT_ROUNDS = 12


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or DEFAULT_BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash checked when the login email is unknown, so that response time does
    not reveal whether an account exists.
    """
    return hash_password("blogify-timing-equalizer", rounds=rounds)


class TokenError(Exception):
    """Base class for bearer token verification failures."""

    reason = "invalid"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenError):
    """Token signature is valid but its exp claim is in the past."""

    reason = "expired"


class TokenInvalidError(TokenError):
    """Token was tampered with or cannot be parsed."""


class TokenSignatureError(TokenInvalidError):
    """Signature does not match header+payload under the server secret."""


class TokenMalformedError(TokenInvalidError):
    """Token is not header.payload.signature or lacks required claims."""


class TokenConfigError(Exception):
    """Signing key or algorithm misconfiguration; fatal, not a per-request error."""


@dataclass(frozen=True)
class TokenConfig:
    """Signing secret, algorithm and time-to-live for bearer tokens."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(days=7)

    def __post_init__(self) -> None:
        if not self.secret or not self.secret.strip():
            raise TokenConfigError("Token signing secret must be non-empty.")
        if not self.algorithm.upper().startswith("HS"):
            raise TokenConfigError(f"Unsupported token algorithm: {self.algorithm}")
        if self.ttl <= timedelta(0):
            raise TokenConfigError("Token ttl must be positive.")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenConfig":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        )


@dataclass(frozen=True)
class TokenClaims:
    """Identity claim carried by a verified token."""

    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _is_canonical_segment(segment: str) -> bool:
    """True if segment is exactly what base64url-encoding its decoded bytes produces."""
    try:
        raw = base64url_decode(segment)
    except (binascii.Error, ValueError):
        return False
    return base64url_encode(raw).decode("ascii") == segment


class TokenService:
    """
    Issue and verify signed, time-limited bearer tokens.

    Stateless: a pure function of (payload, secret, clock). Any instance that
    holds the same secret verifies any token; nothing is recorded on issue,
    so a token cannot be revoked before it expires.
    """

    def __init__(self, config: TokenConfig, clock: Callable[[], datetime] = _utcnow) -> None:
        self._config = config
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._config.ttl

    def issue(self, user_id: int, email: str) -> str:
        """Create a JWT with userId, email, iat and exp (iat + ttl)."""
        issued_at = int(self._clock().timestamp())
        payload: dict[str, Any] = {
            "userId": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + int(self._config.ttl.total_seconds()),
        }
        try:
            return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)
        except (NotImplementedError, jwt.InvalidKeyError) as e:
            raise TokenConfigError(f"Cannot sign token: {e}") from e

    def verify(self, token: str) -> TokenClaims:
        """
        Check the signature, then the expiry, and return the embedded claim.

        Raises TokenMalformedError, TokenSignatureError or TokenExpiredError.
        Expiry is evaluated against the injected clock after the signature
        verifies, so an expired token is never reported as tampered.
        """
        if not token or token.count(".") != 2:
            raise TokenMalformedError("Token must have header, payload and signature.")
        try:
            jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise TokenMalformedError(f"Token header could not be decoded: {e}") from e
        # Past the header, any altered byte of payload or signature is tampering.
        _, payload_segment, signature_segment = token.split(".")
        if not (_is_canonical_segment(payload_segment) and _is_canonical_segment(signature_segment)):
            raise TokenSignatureError("Token signature mismatch.")
        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["userId", "email", "iat", "exp"],
                },
            )
        except jwt.InvalidSignatureError as e:
            raise TokenSignatureError("Token signature mismatch.") from e
        except jwt.InvalidAlgorithmError as e:
            raise TokenSignatureError("Token algorithm not accepted.") from e
        except jwt.DecodeError as e:
            raise TokenSignatureError(f"Token payload or signature altered: {e}") from e
        except jwt.PyJWTError as e:
            raise TokenMalformedError(f"Token could not be decoded: {e}") from e

        user_id = payload["userId"]
        email = payload["email"]
        iat = payload["iat"]
        exp = payload["exp"]
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise TokenMalformedError("Token userId claim must be an integer.")
        if not isinstance(email, str):
            raise TokenMalformedError("Token email claim must be a string.")
        if not isinstance(iat, int) or not isinstance(exp, int):
            raise TokenMalformedError("Token iat/exp claims must be integers.")

        now = self._clock().timestamp()
        if now > exp:
            raise TokenExpiredError("Token has expired.")
        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(iat, UTC),
            expires_at=datetime.fromtimestamp(exp, UTC),
        )
