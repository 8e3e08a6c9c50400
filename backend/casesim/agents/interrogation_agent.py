import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from casesim.agents import prompt_builder
from casesim.models.schemas import CaseOverview, CharacterRole, Message, TaskKind
from casesim.services.errors import InvalidInput, classify_error
from casesim.services.gemini_gateway import GeminiGateway
from casesim.services.response_normalizer import require_non_empty_text

logger = logging.getLogger(__name__)


@dataclass
class ConversationSession:
    """Dialogue context for one character role.

    ``chat`` is the provider's chat object. Its history is provider-owned and
    is never copied or inspected here. ``gateway`` is the one that opened the
    chat; its client owns the chat's transport and must outlive it, so every
    later turn is sent through it.
    """
    role: CharacterRole
    system_instruction: str
    chat: Any
    gateway: GeminiGateway


class ConversationSessionManager:
    """
    Keeps one provider chat per character role for an investigation.

    Sessions are opened lazily on a role's first turn and stored only after
    that turn succeeds, so a failed call never leaves a half-initialized
    session behind. Callers must not send two turns for the same role
    concurrently.
    """

    def __init__(self, investigation_id: str = "default"):
        self.investigation_id = investigation_id
        self._sessions: Dict[CharacterRole, ConversationSession] = {}

    def _log_structured(self, event: str, **kwargs):
        """Emit structured log entry."""
        entry = {"event": event, "investigation_id": self.investigation_id, **kwargs}
        logger.info(json.dumps(entry, ensure_ascii=False))

    def has_session(self, role: CharacterRole) -> bool:
        return role in self._sessions

    def session_for(self, role: CharacterRole) -> Optional[ConversationSession]:
        return self._sessions.get(role)

    @property
    def active_roles(self):
        return list(self._sessions)

    def reset(self) -> None:
        """Drop every session, e.g. when a new case overview replaces the old one."""
        self._log_structured("sessions_reset", roles=[r.value for r in self._sessions])
        self._sessions.clear()

    def _open_session(
        self,
        gateway: GeminiGateway,
        role: CharacterRole,
        case_overview: Union[CaseOverview, str],
        prior_history: Sequence[Message],
    ) -> ConversationSession:
        request = prompt_builder.build(TaskKind.INTERROGATION, role=role, case_overview=case_overview)
        chat = gateway.open_chat(request, prior_history)
        self._log_structured(
            "chat_initialized",
            role=role.value,
            model=gateway.model,
            seeded_turns=len(prior_history),
        )
        return ConversationSession(
            role=role,
            system_instruction=request.system_instruction,
            chat=chat,
            gateway=gateway,
        )

    async def turn(
        self,
        gateway: GeminiGateway,
        role: CharacterRole,
        user_text: str,
        case_overview: Union[CaseOverview, str],
        prior_history: Sequence[Message] = (),
    ) -> Tuple[str, ConversationSession]:
        """
        Send one investigator message to ``role`` and return the reply.

        Args:
            gateway: Provider gateway used to open the chat when ``role`` has
                no session yet. An existing session keeps its own gateway.
            role: Character being interrogated.
            user_text: The new message. Must not be blank.
            case_overview: Embedded into the system instruction of a new session.
            prior_history: Committed turns for this role, excluding ``user_text``.
                Only used when a session has to be opened.

        Returns:
            Tuple of (reply_text, session).

        Raises:
            InvalidInput: ``user_text`` is blank.
            InvestigationError: classified provider or response failure.
        """
        role = CharacterRole(role)
        if not user_text or not user_text.strip():
            raise InvalidInput("Interrogation message must not be empty")

        session = self._sessions.get(role)
        is_new = session is None
        try:
            if is_new:
                session = self._open_session(gateway, role, case_overview, prior_history)
            response = await session.gateway.send(session.chat, user_text)
            reply = require_non_empty_text(response, task=TaskKind.INTERROGATION, role=role)
        except Exception as e:
            self._log_structured("turn_failed", role=role.value, new_session=is_new, error=str(e)[:200])
            raise classify_error(e, TaskKind.INTERROGATION, role) from e

        if is_new:
            self._sessions[role] = session
        self._log_structured(
            "turn_completed",
            role=role.value,
            new_session=is_new,
            reply_chars=len(reply),
        )
        return reply, session
