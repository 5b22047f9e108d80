from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from qa_service.api.deps import get_catalog
from qa_service.services.catalog import JourneyCatalog

router = APIRouter()


@router.get("/catalog/personas")
async def list_personas(catalog: JourneyCatalog = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return [persona.to_json_dict() for persona in catalog.personas]


@router.get("/catalog/journeys")
async def list_journeys(catalog: JourneyCatalog = Depends(get_catalog)) -> List[Dict[str, Any]]:
    return [journey.to_json_dict() for journey in catalog.journeys]
