"""In-memory state of one mock investigation.

Holds the case overview, the complaint draft and the committed chat history
per character role. A user turn is committed together with the character's
reply only after the provider call succeeds.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

from casesim.agents.interrogation_agent import ConversationSessionManager
from casesim.config import settings
from casesim.models.schemas import (
    CaseOverview,
    CharacterRole,
    InvestigationResponse,
    Message,
    Sender,
)
from casesim.services import case_orchestrator
from casesim.services.errors import InvalidInput
from casesim.services.gemini_gateway import GeminiGateway

logger = logging.getLogger(__name__)

INVESTIGATOR_LABEL = "수사관"


class CaseNotReady(Exception):
    """An operation needs a case overview that has not been generated yet."""


class TurnInProgress(Exception):
    """A conflicting call is already outstanding.

    Raised for a second turn to the same role, for any turn while a new
    precedent is loading, and for a precedent load while any turn is pending.
    """


class Investigation:
    """State bundle for one case, shared by every role's interrogation."""

    def __init__(self, investigation_id: Optional[str] = None):
        self.id = investigation_id or str(uuid.uuid4())
        self.created_at = datetime.now(timezone.utc)
        self.last_active = self.created_at
        self.case_overview: Optional[CaseOverview] = None
        self.complaint: Optional[str] = None
        self.histories: Dict[CharacterRole, List[Message]] = {}
        self.sessions = ConversationSessionManager(self.id)
        self._in_flight: Set[CharacterRole] = set()
        self._loading = False

    def touch(self) -> None:
        self.last_active = datetime.now(timezone.utc)

    @property
    def busy(self) -> bool:
        return self._loading or bool(self._in_flight)

    def is_idle(self, now: datetime, max_idle: timedelta) -> bool:
        return not self.busy and now - self.last_active > max_idle

    def _require_overview(self) -> CaseOverview:
        if self.case_overview is None:
            raise CaseNotReady("사건 개요가 아직 생성되지 않았습니다. 먼저 판례를 입력해주세요.")
        return self.case_overview

    def history(self, role: CharacterRole) -> List[Message]:
        """Copy of the committed history for ``role``."""
        return list(self.histories.get(CharacterRole(role), []))

    async def load_precedent(self, gateway: GeminiGateway, precedent: str) -> CaseOverview:
        """Generate a new overview. On success every role starts over.

        Rejected with TurnInProgress while any interrogation turn is pending,
        and turns are rejected while this runs, so a reply built on the old
        overview can never land in the new case.
        """
        if self.busy:
            raise TurnInProgress("다른 요청을 처리하는 중입니다. 잠시 후 다시 시도해주세요.")
        self.touch()
        self._loading = True
        try:
            overview = await case_orchestrator.generate_case_overview(gateway, precedent)
        finally:
            self._loading = False
        self.case_overview = overview
        self.complaint = None
        self.histories = {}
        self.sessions.reset()
        logger.info(f"Investigation {self.id}: new case overview loaded")
        return overview

    async def draft_complaint(self, gateway: GeminiGateway, case_overview: Optional[str] = None) -> str:
        source = case_overview if case_overview and case_overview.strip() else self._require_overview()
        self.touch()
        complaint = await case_orchestrator.generate_complaint(gateway, source)
        self.complaint = complaint
        return complaint

    async def interrogate(self, gateway: GeminiGateway, role: CharacterRole, message: str) -> str:
        """Send ``message`` to ``role`` and commit both sides on success."""
        role = CharacterRole(role)
        overview = self._require_overview()
        if not message or not message.strip():
            raise InvalidInput("Interrogation message must not be empty")
        if self._loading:
            raise TurnInProgress("새 사건 개요를 생성하는 중입니다. 잠시 후 다시 시도해주세요.")
        if role in self._in_flight:
            raise TurnInProgress(f"{role.display_name} 응답 생성 중입니다. 잠시 후 다시 시도해주세요.")

        self.touch()
        self._in_flight.add(role)
        try:
            user_message = Message(sender=Sender.USER, text=message)
            reply, _session = await self.sessions.turn(
                gateway,
                role,
                message,
                overview,
                prior_history=self.history(role),
            )
        finally:
            self._in_flight.discard(role)

        self.histories.setdefault(role, []).extend(
            [user_message, Message(sender=Sender.CHARACTER, text=reply)]
        )
        return reply

    def build_transcript(self, role: CharacterRole) -> str:
        role = CharacterRole(role)
        lines = []
        for msg in self.histories.get(role, []):
            speaker = INVESTIGATOR_LABEL if msg.sender == Sender.USER else role.display_name
            lines.append(f"[{msg.timestamp.strftime('%H:%M:%S')}] {speaker}: {msg.text}")
        return "\n".join(lines)

    async def summarize_role(self, gateway: GeminiGateway, role: CharacterRole) -> str:
        transcript = self.build_transcript(role)
        if not transcript:
            raise InvalidInput(f"No interrogation recorded for {CharacterRole(role).label}")
        self.touch()
        return await case_orchestrator.summarize_chat_log(gateway, transcript)

    def to_response(self) -> InvestigationResponse:
        return InvestigationResponse(
            id=self.id,
            created_at=self.created_at,
            case_overview=self.case_overview,
            complaint=self.complaint,
            histories={role.value: list(msgs) for role, msgs in self.histories.items()},
            active_roles=self.sessions.active_roles,
        )


_investigations: Dict[str, Investigation] = {}


def prune_idle_investigations(now: Optional[datetime] = None) -> int:
    """Drop investigations untouched for ``settings.investigation_idle_minutes``.

    Investigations with a call outstanding are kept. Returns how many were
    removed; their provider chats go with them.
    """
    now = now or datetime.now(timezone.utc)
    max_idle = timedelta(minutes=settings.investigation_idle_minutes)
    expired = [inv_id for inv_id, inv in _investigations.items() if inv.is_idle(now, max_idle)]
    for inv_id in expired:
        del _investigations[inv_id]
    if expired:
        logger.info(f"Pruned {len(expired)} idle investigation(s)")
    return len(expired)


def create_investigation() -> Investigation:
    prune_idle_investigations()
    investigation = Investigation()
    _investigations[investigation.id] = investigation
    logger.info(f"Investigation {investigation.id} created")
    return investigation


def get_investigation(investigation_id: str) -> Optional[Investigation]:
    return _investigations.get(investigation_id)


def remove_investigation(investigation_id: str) -> bool:
    """Remove an investigation and with it every provider chat it held."""
    if investigation_id in _investigations:
        del _investigations[investigation_id]
        logger.info(f"Investigation {investigation_id} removed")
        return True
    return False
