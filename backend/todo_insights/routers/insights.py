from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ..schemas import (
    AiStatusResponse, InsightResponse, PersonaResponse, ProviderInfoResponse, RegenerateRequest,
)
from ..services.insight_service import InsightService
from ..services.personas import PersonaCode, UnknownPersonaError, get_persona
from ..services.providers.base import ProviderChoice

router = APIRouter()


def get_insight_service(request: Request) -> InsightService:
    return request.app.state.insight_service


def get_owner_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    # Authentication happens upstream; the gateway forwards the resolved user id.
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def _parse_choice(persona: str, provider: Optional[str]) -> tuple[PersonaCode, ProviderChoice]:
    try:
        return get_persona(persona).code, ProviderChoice.parse(provider)
    except (UnknownPersonaError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("", response_model=InsightResponse)
async def get_insight(
    persona: str,
    provider: Optional[str] = None,
    owner_id: str = Depends(get_owner_id),
    service: InsightService = Depends(get_insight_service),
):
    persona_code, choice = _parse_choice(persona, provider)
    view = await service.get_insight(owner_id, persona_code, choice)
    return InsightResponse.from_view(view)


@router.post("/regenerate", response_model=InsightResponse)
async def regenerate_insight(
    request: RegenerateRequest,
    owner_id: str = Depends(get_owner_id),
    service: InsightService = Depends(get_insight_service),
):
    persona_code, choice = _parse_choice(request.persona, request.provider)
    view = await service.generate_new_insight(owner_id, persona_code, choice)
    return InsightResponse.from_view(view)


@router.delete("")
async def invalidate_insight(
    owner_id: str = Depends(get_owner_id),
    service: InsightService = Depends(get_insight_service),
):
    await service.invalidate_insight_cache(owner_id)
    return {"status": "invalidated"}


@router.get("/cached", response_model=InsightResponse)
async def get_cached_insight(
    owner_id: str = Depends(get_owner_id),
    service: InsightService = Depends(get_insight_service),
):
    view = await service.get_cached_insight(owner_id)
    if view is None:
        raise HTTPException(status_code=404, detail="No stored insight")
    return InsightResponse.from_view(view)


@router.get("/personas", response_model=List[PersonaResponse])
async def list_personas(service: InsightService = Depends(get_insight_service)):
    return [PersonaResponse.from_persona(p) for p in service.get_available_personas()]


@router.get("/status", response_model=AiStatusResponse)
async def ai_status(service: InsightService = Depends(get_insight_service)):
    return AiStatusResponse(
        ai_available=service.is_ai_available(),
        providers=[ProviderInfoResponse.from_info(i) for i in service.get_provider_info()],
    )
