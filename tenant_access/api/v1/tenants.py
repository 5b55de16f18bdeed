"""Tenant trial lifecycle endpoints."""

import structlog
from fastapi import APIRouter, HTTPException, status

from tenant_access.api.dependencies import LifecycleManagerDep, map_domain_exception_to_http
from tenant_access.api.schemas.access_schemas import (
    ConvertTrialRequest,
    OperationResult,
    TenantCreateRequest,
    TenantCreatedResponse,
    TrialApplyRequest,
    TrialExtendRequest,
)
from tenant_access.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post("", response_model=TenantCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    request: TenantCreateRequest, lifecycle: LifecycleManagerDep
) -> TenantCreatedResponse:
    """Create a tenant whose trial starts immediately."""
    try:
        tenant_id = await lifecycle.create_tenant_with_trial(request.to_draft(), request.scope_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return TenantCreatedResponse(tenant_id=tenant_id)


@router.post("/{tenant_id}/trial/extend", response_model=OperationResult)
async def extend_trial(
    tenant_id: str, request: TrialExtendRequest, lifecycle: LifecycleManagerDep
) -> OperationResult:
    try:
        extended = await lifecycle.extend_trial_period(
            tenant_id, request.additional_days, request.additional_minutes
        )
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if not extended:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return OperationResult(success=True)


@router.post("/{tenant_id}/trial/apply", response_model=OperationResult)
async def apply_trial(
    tenant_id: str, request: TrialApplyRequest, lifecycle: LifecycleManagerDep
) -> OperationResult:
    """Restart the tenant's trial from a named or the applicable definition."""
    try:
        applied = await lifecycle.apply_trial_period(tenant_id, request.period_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if not applied:
        raise HTTPException(status_code=404, detail="Tenant or trial period not found")
    return OperationResult(success=True)


@router.post("/{tenant_id}/convert", response_model=OperationResult)
async def convert_trial(
    tenant_id: str, request: ConvertTrialRequest, lifecycle: LifecycleManagerDep
) -> OperationResult:
    try:
        converted = await lifecycle.convert_trial_to_subscription(tenant_id, request.plan_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if not converted:
        raise HTTPException(status_code=404, detail="Tenant or plan not found")
    return OperationResult(success=True)
