import json
from typing import Any

from fastapi import Request

from qa_service.services.catalog import JourneyCatalog
from qa_service.services.orchestrator import Orchestrator
from qa_service.services.run_recorder import RunRecorder


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def get_run_recorder(request: Request) -> RunRecorder:
    return request.app.state.orchestrator.recorder


def get_catalog(request: Request) -> JourneyCatalog:
    return request.app.state.orchestrator.catalog


async def read_json_payload(request: Request) -> Any:
    """Request body as JSON; an empty or unparseable body reads as ``{}``."""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        return {}
