"""Health check endpoint."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from tenant_access.api.dependencies import ContainerDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(container: ContainerDep) -> JSONResponse:
    report = await container.check_health()
    status_code = 200 if report["status"] == "healthy" else 503
    return JSONResponse(report, status_code=status_code)
