"""Authorization decisions over verified token claims."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tasktrack.logging import bind_actor, get_logger, log_access_denied
from tasktrack.service.errors import AuthenticationError, ForbiddenError
from tasktrack.service.tokens import TokenClaims, TokenError, TokenService, extract_bearer
from tasktrack.storage.models import Role

logger = get_logger(__name__)

NO_TOKEN_MESSAGE = "No token provided"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class AccessRule(str, Enum):
    SELF_OR_ADMIN = "self_or_admin"
    ADMIN_ONLY = "admin_only"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None


_ALLOWED = AccessDecision(True)
_DENIAL_MESSAGES = {
    "admin_required": "Access denied. Admin role required.",
    "not_owner": "Access denied",
}


def is_admin(claims: TokenClaims) -> bool:
    return claims.role == Role.ADMIN.value


def authorize(
    claims: TokenClaims, rule: AccessRule, owner_id: Optional[str] = None
) -> AccessDecision:
    if is_admin(claims):
        return _ALLOWED
    if rule is AccessRule.ADMIN_ONLY:
        return AccessDecision(False, "admin_required")
    if owner_id is not None and owner_id == claims.sub:
        return _ALLOWED
    return AccessDecision(False, "not_owner")


def enforce(decision: AccessDecision) -> None:
    if decision.allowed:
        return
    raise ForbiddenError(
        _DENIAL_MESSAGES.get(decision.reason or "", "Access denied"),
        detail={"reason": decision.reason},
    )


def require(
    claims: TokenClaims,
    rule: AccessRule,
    *,
    owner_id: Optional[str] = None,
    resource_id: Optional[str] = None,
) -> None:
    """Authorize and raise ``ForbiddenError`` on denial, logging who was refused."""
    decision = authorize(claims, rule, owner_id)
    if not decision.allowed:
        log_access_denied(
            logger,
            rule=rule.value,
            reason=decision.reason,
            actor_id=claims.sub,
            resource_id=resource_id,
        )
    enforce(decision)


def authenticate(tokens: TokenService, authorization: Optional[str]) -> TokenClaims:
    """Resolve a raw ``Authorization`` header to verified claims.

    Malformed, forged and expired tokens all produce the same message; the
    specific cause only goes to the log.
    """
    token = extract_bearer(authorization)
    if not token:
        raise AuthenticationError(NO_TOKEN_MESSAGE)
    try:
        claims = tokens.verify(token)
    except TokenError as exc:
        logger.info("token_rejected", reason=type(exc).__name__)
        raise AuthenticationError(INVALID_TOKEN_MESSAGE) from exc
    bind_actor(claims.sub, claims.role)
    return claims
