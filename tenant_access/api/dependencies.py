"""
API dependencies bridging FastAPI routes and the engine container.

The container lives on ``app.state``; nothing here holds global state.
"""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request

from tenant_access.application.config_resolver import ConfigResolver
from tenant_access.application.enforcement_guard import EnforcementGuard
from tenant_access.application.status_resolver import StatusResolver
from tenant_access.application.trial_lifecycle_service import TrialLifecycleManager
from tenant_access.core.container import AccessEngineContainer
from tenant_access.domain.exceptions import (
    ConfigurationError,
    DomainException,
    IdentityProviderError,
    RecordStoreError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def get_container(request: Request) -> AccessEngineContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        logger.error("Access engine container not initialised")
        raise HTTPException(status_code=503, detail="Service not ready")
    return container


ContainerDep = Annotated[AccessEngineContainer, Depends(get_container)]


def get_status_resolver(container: ContainerDep) -> StatusResolver:
    return container.status_resolver


def get_lifecycle_manager(container: ContainerDep) -> TrialLifecycleManager:
    return container.lifecycle


def get_config_resolver(container: ContainerDep) -> ConfigResolver:
    return container.config_resolver


def get_enforcement_guard(container: ContainerDep) -> EnforcementGuard:
    return container.guard


StatusResolverDep = Annotated[StatusResolver, Depends(get_status_resolver)]
LifecycleManagerDep = Annotated[TrialLifecycleManager, Depends(get_lifecycle_manager)]
ConfigResolverDep = Annotated[ConfigResolver, Depends(get_config_resolver)]
EnforcementGuardDep = Annotated[EnforcementGuard, Depends(get_enforcement_guard)]


def map_domain_exception_to_http(exception: Exception) -> HTTPException:
    """Translate domain exceptions into HTTP errors."""
    if isinstance(exception, ValidationError):
        return HTTPException(status_code=400, detail=str(exception))

    if isinstance(exception, (RecordStoreError, IdentityProviderError)):
        logger.error("Backing service failure", error=str(exception))
        return HTTPException(status_code=503, detail="Backing service unavailable")

    if isinstance(exception, ConfigurationError):
        logger.error("Configuration error", error=str(exception))
        return HTTPException(status_code=500, detail="Service configuration error")

    if isinstance(exception, DomainException):
        logger.error("Unhandled domain exception", error=str(exception))
        return HTTPException(status_code=500, detail="Domain operation failed")

    logger.error("Unexpected error", error=str(exception), error_type=type(exception).__name__)
    return HTTPException(status_code=500, detail="Internal server error")


__all__ = [
    "ConfigResolverDep",
    "ContainerDep",
    "EnforcementGuardDep",
    "LifecycleManagerDep",
    "StatusResolverDep",
    "get_container",
    "map_domain_exception_to_http",
]
