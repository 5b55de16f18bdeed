"""Version 1 API routers."""

from fastapi import APIRouter

from . import access, health, tenants, trial_configs, trials

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(access.router)
api_router.include_router(tenants.router)
api_router.include_router(trials.router)
api_router.include_router(trial_configs.router)
api_router.include_router(health.router)

__all__ = ["api_router"]
