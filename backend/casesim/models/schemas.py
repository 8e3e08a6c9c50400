from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CharacterRole(str, Enum):
    """Simulated interrogation subjects. Values double as URL path segments."""
    COMPLAINANT = "complainant"
    WITNESS = "witness"
    SUSPECT = "suspect"
    CO_SUSPECT = "co_suspect"

    @property
    def label(self) -> str:
        """Name shown on the UI call buttons, e.g. "고소인 (Complainant)"."""
        return _ROLE_LABELS[self]

    @property
    def display_name(self) -> str:
        """Korean name used in transcripts and chat bubbles."""
        return self.label.split(" (", 1)[0]


_ROLE_LABELS = {
    CharacterRole.COMPLAINANT: "고소인 (Complainant)",
    CharacterRole.WITNESS: "참고인 (Witness)",
    CharacterRole.SUSPECT: "피의자 (Suspect)",
    CharacterRole.CO_SUSPECT: "공범 피의자 (Co-Suspect)",
}


class Sender(str, Enum):
    USER = "user"
    CHARACTER = "character"


class TaskKind(str, Enum):
    CASE_OVERVIEW = "case_overview"
    COMPLAINT = "complaint"
    INTERROGATION = "interrogation"
    LOG_SUMMARY = "log_summary"


class ResponseFormat(str, Enum):
    PLAIN_TEXT = "text/plain"
    JSON = "application/json"


class Message(BaseModel):
    """One chat bubble in an interrogation."""
    model_config = ConfigDict(frozen=True)

    sender: Sender
    text: str
    timestamp: datetime = Field(default_factory=_utcnow)


class CaseOverview(BaseModel):
    """Overview of a case as seen at the start of the investigation."""
    model_config = ConfigDict(frozen=True)

    overview: str = Field(min_length=1)
    issues: List[str] = Field(min_length=1)
    plan: List[str] = Field(min_length=1)

    @field_validator("overview")
    @classmethod
    def overview_not_blank(cls, v):
        if not v.strip():
            raise ValueError("overview must not be blank")
        return v


class GenerationRequest(BaseModel):
    """Everything needed for one call to the model, minus the safety policy."""
    model_config = ConfigDict(frozen=True)

    task: TaskKind
    prompt: str = ""
    temperature: float = Field(ge=0.0, le=1.0)
    response_format: ResponseFormat = ResponseFormat.PLAIN_TEXT
    system_instruction: Optional[str] = None


# ── API bodies ─────────────────────────────────────────────

class PrecedentRequest(BaseModel):
    precedent: str = Field(min_length=1, description="Full text of the precedent")


class ComplaintRequest(BaseModel):
    """Optional override; the investigation's own overview is used when omitted."""
    case_overview: Optional[str] = None


class InterrogationRequest(BaseModel):
    message: str = Field(min_length=1)


class InterrogationResponse(BaseModel):
    role: CharacterRole
    reply: str
    history: List[Message]


class SummaryRequest(BaseModel):
    transcript: str = Field(min_length=1)


class TextResponse(BaseModel):
    text: str


class RoleInfo(BaseModel):
    role: CharacterRole
    label: str
    display_name: str


class InvestigationResponse(BaseModel):
    id: str
    created_at: datetime
    case_overview: Optional[CaseOverview] = None
    complaint: Optional[str] = None
    histories: Dict[str, List[Message]] = Field(default_factory=dict)
    active_roles: List[CharacterRole] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    environment: str
    model: str
    api_key_configured: bool

