# Auth gate + entitlement check, exposed as FastAPI dependencies.
# Every failure mode of the gate is the same 401; entitlement fails closed (403).
# Both run before the request body is read, so rejected calls never reach the model.


from fastapi import Depends, Request

from gateway.dependencies import get_entitlement_store, get_identity_store
from gateway.exceptions import (
    ProviderNotConfiguredError,
    SubscriptionRequiredError,
    UnauthorizedError,
)
from gateway.providers.protocol import EntitlementStore, IdentityStore
from gateway.schemas import AuthContext


def extract_bearer_token(header: str | None) -> str:
    """Token from ``Authorization: Bearer <token>``. Missing is never anonymous."""
    if not header:
        raise UnauthorizedError("missing_authorization_header")
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("malformed_authorization_header")
    return token


async def authenticate(header: str | None, identity: IdentityStore) -> AuthContext:
    """Resolve the caller, or raise UnauthorizedError."""
    token = extract_bearer_token(header)
    try:
        user_id = await identity.get_user_id(token)
    except ProviderNotConfiguredError:
        raise
    except Exception as e:
        raise UnauthorizedError(f"identity_lookup_failed: {type(e).__name__}") from e
    if not user_id:
        raise UnauthorizedError("unknown_or_expired_token")
    return AuthContext(user_id=user_id, token=token)


async def check_entitlement(auth: AuthContext, entitlements: EntitlementStore) -> AuthContext:
    """Upgrade the context to pro, or raise SubscriptionRequiredError.

    A failed lookup is treated exactly like "not entitled".
    """
    try:
        entitled = await entitlements.is_pro(auth.user_id, auth.token)
    except Exception as e:
        raise SubscriptionRequiredError(f"entitlement_lookup_failed: {type(e).__name__}") from e
    if not entitled:
        raise SubscriptionRequiredError("not_pro")
    return auth.as_pro()


async def require_user(
    request: Request,
    identity: IdentityStore = Depends(get_identity_store),
) -> AuthContext:
    """Dependency: authenticated caller of any tier."""
    return await authenticate(request.headers.get("authorization"), identity)


async def require_pro(
    auth: AuthContext = Depends(require_user),
    entitlements: EntitlementStore = Depends(get_entitlement_store),
) -> AuthContext:
    """Dependency: authenticated caller with an active pro subscription."""
    return await check_entitlement(auth, entitlements)
