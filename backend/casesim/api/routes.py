import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from casesim.config import settings
from casesim.models.schemas import (
    CaseOverview,
    CharacterRole,
    ComplaintRequest,
    HealthResponse,
    InterrogationRequest,
    InterrogationResponse,
    InvestigationResponse,
    Message,
    PrecedentRequest,
    RoleInfo,
    SummaryRequest,
    TextResponse,
)
from casesim.services import case_orchestrator
from casesim.services.gemini_gateway import GeminiGateway
from casesim.services.investigation import (
    Investigation,
    create_investigation,
    get_investigation,
    remove_investigation,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_gateway(
    x_goog_api_key: Optional[str] = Header(default=None, alias=settings.api_key_header),
) -> GeminiGateway:
    """Gateway for this request; a key in the header wins over GOOGLE_API_KEY."""
    return GeminiGateway(api_key=x_goog_api_key)


def require_investigation(investigation_id: str) -> Investigation:
    investigation = get_investigation(investigation_id)
    if investigation is None:
        raise HTTPException(status_code=404, detail=f"Investigation {investigation_id} not found")
    return investigation


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        environment=settings.environment,
        model=settings.gemini_model,
        api_key_configured=bool(settings.google_api_key),
    )


@router.get("/roles", response_model=List[RoleInfo])
async def list_roles():
    """Characters available for interrogation."""
    return [RoleInfo(role=role, label=role.label, display_name=role.display_name) for role in CharacterRole]


@router.post("/investigations", response_model=InvestigationResponse, status_code=status.HTTP_201_CREATED)
async def start_investigation():
    return create_investigation().to_response()


@router.get("/investigations/{investigation_id}", response_model=InvestigationResponse)
async def read_investigation(investigation: Investigation = Depends(require_investigation)):
    return investigation.to_response()


@router.delete("/investigations/{investigation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_investigation(investigation_id: str):
    if not remove_investigation(investigation_id):
        raise HTTPException(status_code=404, detail=f"Investigation {investigation_id} not found")


@router.post("/investigations/{investigation_id}/case", response_model=CaseOverview)
async def generate_case(
    body: PrecedentRequest,
    investigation: Investigation = Depends(require_investigation),
    gateway: GeminiGateway = Depends(get_gateway),
):
    """Build the case overview from a precedent. Resets every interrogation."""
    return await investigation.load_precedent(gateway, body.precedent)


@router.post("/investigations/{investigation_id}/complaint", response_model=TextResponse)
async def generate_complaint(
    body: Optional[ComplaintRequest] = None,
    investigation: Investigation = Depends(require_investigation),
    gateway: GeminiGateway = Depends(get_gateway),
):
    override = body.case_overview if body else None
    return TextResponse(text=await investigation.draft_complaint(gateway, override))


@router.post("/investigations/{investigation_id}/interrogations/{role}", response_model=InterrogationResponse)
async def interrogate(
    role: CharacterRole,
    body: InterrogationRequest,
    investigation: Investigation = Depends(require_investigation),
    gateway: GeminiGateway = Depends(get_gateway),
):
    reply = await investigation.interrogate(gateway, role, body.message)
    return InterrogationResponse(role=role, reply=reply, history=investigation.history(role))


@router.get("/investigations/{investigation_id}/interrogations/{role}", response_model=List[Message])
async def interrogation_history(
    role: CharacterRole,
    investigation: Investigation = Depends(require_investigation),
):
    return investigation.history(role)


@router.post("/investigations/{investigation_id}/interrogations/{role}/summary", response_model=TextResponse)
async def summarize_interrogation(
    role: CharacterRole,
    investigation: Investigation = Depends(require_investigation),
    gateway: GeminiGateway = Depends(get_gateway),
):
    return TextResponse(text=await investigation.summarize_role(gateway, role))


@router.post("/summaries", response_model=TextResponse)
async def summarize_transcript(
    body: SummaryRequest,
    gateway: GeminiGateway = Depends(get_gateway),
):
    """Summarize an arbitrary raw chat log pasted by the user."""
    return TextResponse(text=await case_orchestrator.summarize_chat_log(gateway, body.transcript))
