"""Prompt construction and per-character interrogation sessions."""

from casesim.agents.interrogation_agent import ConversationSession, ConversationSessionManager
from casesim.agents.prompt_builder import build, build_system_instruction
from casesim.agents.prompts import PERSONA_PROMPTS

__all__ = [
    "ConversationSession",
    "ConversationSessionManager",
    "build",
    "build_system_instruction",
    "PERSONA_PROMPTS",
]
