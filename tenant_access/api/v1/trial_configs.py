"""Trial period configuration endpoints."""

import structlog
from fastapi import APIRouter, HTTPException

from tenant_access.api.dependencies import ConfigResolverDep, map_domain_exception_to_http
from tenant_access.api.schemas.access_schemas import (
    TrialConfigSchema,
    TrialPeriodDefinitionSchema,
)
from tenant_access.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/trial-configs", tags=["trial-configs"])


@router.get("/{scope_id}", response_model=TrialConfigSchema)
async def get_trial_config(scope_id: str, resolver: ConfigResolverDep) -> TrialConfigSchema:
    """Effective configuration of a scope (its own, or the global fallback)."""
    try:
        config = await resolver.get_config(scope_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if config is None:
        raise HTTPException(status_code=404, detail="No trial configuration")
    return TrialConfigSchema.from_domain(config)


@router.put("/{scope_id}", response_model=TrialConfigSchema)
async def save_trial_config(
    scope_id: str, request: TrialConfigSchema, resolver: ConfigResolverDep
) -> TrialConfigSchema:
    try:
        stored = await resolver.save_config(request.to_domain(scope_id))
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    logger.info("Trial configuration updated via API", scope_id=scope_id)
    return TrialConfigSchema.from_domain(stored)


@router.get("/{scope_id}/active", response_model=TrialPeriodDefinitionSchema)
async def get_active_definition(
    scope_id: str, resolver: ConfigResolverDep
) -> TrialPeriodDefinitionSchema:
    try:
        definition = await resolver.resolve_active_definition(scope_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    if definition is None:
        raise HTTPException(status_code=404, detail="No trial period applies")
    return TrialPeriodDefinitionSchema.from_domain(definition)
