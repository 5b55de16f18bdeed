"""
Access status endpoints.

Read paths for status, login gate and trial banner, plus the enforcement
check that ends a session and carries the reason across the redirect in a
cookie named after the handoff key.
"""

import base64
import binascii
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from tenant_access.api.dependencies import (
    ContainerDep,
    EnforcementGuardDep,
    LifecycleManagerDep,
    StatusResolverDep,
    map_domain_exception_to_http,
)
from tenant_access.api.schemas.access_schemas import (
    AccessCheckRequest,
    AccessDecisionResponse,
    LoginCheckResponse,
    ResolvedStatusResponse,
    SubscriptionErrorResponse,
    TrialRemainingResponse,
)
from tenant_access.application.enforcement_guard import (
    SubscriptionErrorReason,
    read_and_clear_reason,
)
from tenant_access.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/access", tags=["access"])


def encode_reason_cookie(reason: SubscriptionErrorReason) -> str:
    # Unpadded so the value needs no cookie quoting
    encoded = base64.urlsafe_b64encode(reason.to_json().encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_reason_cookie(value: str) -> Optional[SubscriptionErrorReason]:
    try:
        padded = value + "=" * (-len(value) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None
    return SubscriptionErrorReason.from_json(raw)


@router.get("/status/{tenant_id}", response_model=ResolvedStatusResponse)
async def get_access_status(tenant_id: str, resolver: StatusResolverDep) -> ResolvedStatusResponse:
    """Resolve a tenant's access status now."""
    try:
        resolved = await resolver.resolve(tenant_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return ResolvedStatusResponse.from_domain(resolved)


@router.get("/login-check/{tenant_id}", response_model=LoginCheckResponse)
async def login_check(tenant_id: str, resolver: StatusResolverDep) -> LoginCheckResponse:
    """Whether the tenant's users may sign in."""
    return LoginCheckResponse.from_domain(await resolver.can_user_login(tenant_id))


@router.get("/trial-remaining/{tenant_id}", response_model=TrialRemainingResponse)
async def trial_remaining(tenant_id: str, lifecycle: LifecycleManagerDep) -> TrialRemainingResponse:
    """Days, hours and minutes left in the tenant's trial."""
    try:
        remaining = await lifecycle.get_remaining_trial_time(tenant_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if remaining is None:
        raise HTTPException(status_code=404, detail="Tenant is not in a trial period")
    return TrialRemainingResponse.from_domain(remaining)


@router.post("/check", response_model=AccessDecisionResponse)
async def check_access(
    guard: EnforcementGuardDep,
    request: Optional[AccessCheckRequest] = None,
) -> Response:
    """Run the guard for the current session.

    A denied session gets a 303 redirect carrying the reason cookie.
    """
    checkpoint = (request or AccessCheckRequest()).checkpoint
    decision = await guard.check_access(checkpoint)
    if decision.allowed:
        return JSONResponse(AccessDecisionResponse.from_domain(decision).model_dump(mode="json"))

    response = RedirectResponse(
        url=decision.redirect_url or "/", status_code=status.HTTP_303_SEE_OTHER
    )
    if decision.reason is not None:
        response.set_cookie(
            key=guard.error_key,
            value=encode_reason_cookie(decision.reason),
            httponly=True,
            samesite="lax",
        )
    return response


@router.get("/subscription-error", response_model=Optional[SubscriptionErrorResponse])
async def subscription_error(
    request: Request,
    response: Response,
    container: ContainerDep,
) -> Optional[SubscriptionErrorResponse]:
    """Read the denial reason once; it is cleared on read."""
    key = container.guard.error_key
    cookie_value = request.cookies.get(key)

    # The handoff store copy is consumed too so the reason is shown only once.
    stored = await read_and_clear_reason(container.handoff, key)
    reason = decode_reason_cookie(cookie_value) if cookie_value else None
    if cookie_value:
        response.delete_cookie(key)
    reason = reason or stored
    if reason is None:
        return None
    return SubscriptionErrorResponse.from_domain(reason)
