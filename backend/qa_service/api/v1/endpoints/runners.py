"""
The three run endpoints. Each returns the orchestrator's report with the
status code it chose (200, 400 for an invalid request, 500 for a failed run).
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import structlog

from qa_service.api.deps import get_orchestrator, read_json_payload
from qa_service.middleware.request_id import get_request_id
from qa_service.services.orchestrator import Orchestrator, RunMode

logger = structlog.get_logger()

router = APIRouter()


async def _run(mode: RunMode, request: Request, orchestrator: Orchestrator) -> JSONResponse:
    payload = await read_json_payload(request)
    logger.info("Run requested", mode=mode.value, request_id=get_request_id(request))
    status_code, report = await orchestrator.handle(mode, payload)
    if status_code != 200:
        logger.warning("Run did not complete", mode=mode.value, status_code=status_code, error=report.get("error"))
    return JSONResponse(status_code=status_code, content=report)


@router.post("/ai-test-runner")
async def run_feature_tests(request: Request, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Plan, probe and analyze a feature (``all`` runs calculators, security and database)."""
    return await _run(RunMode.TESTS, request, orchestrator)


@router.post("/ai-ux-tester")
async def run_ux_journeys(request: Request, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Simulate the selected personas through the selected journeys."""
    return await _run(RunMode.UX, request, orchestrator)


@router.post("/engineering-ai-validator")
async def run_compliance_validation(request: Request, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Validate calculators against benchmark fixtures and ACI 318-19 checks."""
    return await _run(RunMode.COMPLIANCE, request, orchestrator)
