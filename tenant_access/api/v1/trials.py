"""Operational trial endpoints: the expiry sweep, reapplication and cancellation."""

import structlog
from fastapi import APIRouter, HTTPException

from tenant_access.api.dependencies import LifecycleManagerDep, map_domain_exception_to_http
from tenant_access.api.schemas.access_schemas import (
    OperationResult,
    ReapplyRequest,
    ReapplyResponse,
    SweepReportResponse,
)
from tenant_access.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["trials"])


@router.post("/trials/sweep", response_model=SweepReportResponse)
async def sweep_trials(lifecycle: LifecycleManagerDep) -> SweepReportResponse:
    try:
        report = await lifecycle.sweep_expiring_trials()
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return SweepReportResponse.from_domain(report)


@router.post("/trials/reapply", response_model=ReapplyResponse)
async def reapply_trials(request: ReapplyRequest, lifecycle: LifecycleManagerDep) -> ReapplyResponse:
    """Recompute end dates of all trialing tenants from the applicable definition."""
    try:
        updated = await lifecycle.reapply_active_period_to_trials(request.scope_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return ReapplyResponse(updated=updated)


@router.post("/subscriptions/{subscription_id}/cancel", response_model=OperationResult)
async def cancel_subscription(subscription_id: str, lifecycle: LifecycleManagerDep) -> OperationResult:
    try:
        cancelled = await lifecycle.cancel_subscription(subscription_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if not cancelled:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return OperationResult(success=True)
