from fastapi import APIRouter

from qa_service.api.v1.endpoints import catalog, runners, test_runs
from qa_service.core.config import settings

api_router = APIRouter(prefix=settings.API_V1_PREFIX)
api_router.include_router(runners.router, tags=["runs"])
api_router.include_router(test_runs.router, tags=["test-runs"])
api_router.include_router(catalog.router, tags=["catalog"])
