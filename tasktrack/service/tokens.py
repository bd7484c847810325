"""Stateless session tokens.

A token is ``header.claims.signature``: each segment is base64url without
padding, the header and claims are compact JSON and the signature is
HMAC-SHA256 over ``header.claims`` keyed with the server secret. Nothing is
stored server-side; a token stops working only when its ``exp`` passes.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from tasktrack.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
_HEADER = {"alg": "HS256", "typ": "JWT"}


class TokenError(Exception):
    """Base class for token verification failures."""


class MalformedToken(TokenError):
    """Token does not have the expected shape or a segment cannot be decoded."""


class InvalidSignature(TokenError):
    """Recomputed signature does not match the presented one."""


class TokenExpired(TokenError):
    """Current time is past the embedded expiry."""


@dataclass(frozen=True)
class TokenClaims:
    sub: str
    email: str
    role: str
    exp: int


def _encode_segment(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("utf-8").rstrip("=")


def _decode_segment(segment: str) -> bytes:
    padding = "=" * ((4 - len(segment) % 4) % 4)
    return base64.urlsafe_b64decode(segment + padding)


class TokenService:
    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret.encode("utf-8")
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _sign(self, signing_input: str) -> str:
        digest = hmac.new(self._secret, signing_input.encode("utf-8"), hashlib.sha256)
        return _encode_segment(digest.digest())

    def issue(self, subject_id: str, email: str, role: str) -> str:
        claims = TokenClaims(
            sub=subject_id,
            email=email,
            role=str(getattr(role, "value", role)),
            exp=int(self._clock()) + self.ttl_seconds,
        )
        header_enc = _encode_segment(json.dumps(_HEADER, separators=(",", ":")).encode())
        claims_enc = _encode_segment(
            json.dumps(asdict(claims), separators=(",", ":")).encode()
        )
        signing_input = f"{header_enc}.{claims_enc}"
        return f"{signing_input}.{self._sign(signing_input)}"

    def verify(self, token: str) -> TokenClaims:
        parts = token.split(".") if isinstance(token, str) else []
        if len(parts) != 3:
            raise MalformedToken("token must have three segments")
        header_b64, claims_b64, sig_b64 = parts

        expected_sig = self._sign(f"{header_b64}.{claims_b64}")
        if not hmac.compare_digest(expected_sig.encode(), sig_b64.encode("utf-8")):
            raise InvalidSignature("token signature mismatch")

        header = self._load_segment(header_b64)
        if header.get("alg") != _HEADER["alg"]:
            logger.warning("token_invalid_algorithm", alg=header.get("alg"))
            raise InvalidSignature("unsupported token algorithm")
        payload = self._load_segment(claims_b64)
        try:
            claims = TokenClaims(
                sub=str(payload["sub"]),
                email=str(payload["email"]),
                role=str(payload["role"]),
                exp=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedToken("token claims incomplete") from exc

        if self._clock() > claims.exp:
            raise TokenExpired("token expired")
        return claims

    @staticmethod
    def _load_segment(segment: str) -> dict[str, Any]:
        try:
            decoded = json.loads(_decode_segment(segment))
        except (binascii.Error, ValueError, UnicodeDecodeError) as exc:
            raise MalformedToken("token segment is not valid base64 JSON") from exc
        if not isinstance(decoded, dict):
            raise MalformedToken("token segment is not a JSON object")
        return decoded


def extract_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header, else ``None``."""
    if not header:
        return None
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None
