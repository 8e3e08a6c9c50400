"""Turns a task kind plus its context into a GenerationRequest.

Pure data transformation: no I/O, no randomness. A bad task kind or a missing
context field is a programming error and raises immediately.
"""

from typing import Union

from casesim.agents.prompts import (
    CASE_CONTEXT_HEADER,
    CASE_OVERVIEW_PROMPT,
    COMPLAINT_PROMPT,
    LOG_SUMMARY_PROMPT,
    PERSONA_PROMPTS,
)
from casesim.models.schemas import (
    CaseOverview,
    CharacterRole,
    GenerationRequest,
    ResponseFormat,
    TaskKind,
)

CASE_OVERVIEW_TEMPERATURE = 0.5
COMPLAINT_TEMPERATURE = 0.8
INTERROGATION_TEMPERATURE = 0.75
LOG_SUMMARY_TEMPERATURE = 0.3


def overview_text(case_overview: Union[CaseOverview, str]) -> str:
    if isinstance(case_overview, CaseOverview):
        return case_overview.overview
    return case_overview


def build_system_instruction(role: CharacterRole, case_overview: Union[CaseOverview, str]) -> str:
    return f"{PERSONA_PROMPTS[role]}\n\n{CASE_CONTEXT_HEADER}\n{overview_text(case_overview)}"


def _case_overview(precedent: str) -> GenerationRequest:
    return GenerationRequest(
        task=TaskKind.CASE_OVERVIEW,
        prompt=CASE_OVERVIEW_PROMPT.format(precedent=precedent),
        temperature=CASE_OVERVIEW_TEMPERATURE,
        response_format=ResponseFormat.JSON,
    )


def _complaint(case_overview: Union[CaseOverview, str]) -> GenerationRequest:
    return GenerationRequest(
        task=TaskKind.COMPLAINT,
        prompt=COMPLAINT_PROMPT.format(case_overview=overview_text(case_overview)),
        temperature=COMPLAINT_TEMPERATURE,
        response_format=ResponseFormat.PLAIN_TEXT,
    )


def _interrogation(role: CharacterRole, case_overview: Union[CaseOverview, str]) -> GenerationRequest:
    # The per-turn message goes through the chat; only the system side is fixed here.
    return GenerationRequest(
        task=TaskKind.INTERROGATION,
        temperature=INTERROGATION_TEMPERATURE,
        response_format=ResponseFormat.PLAIN_TEXT,
        system_instruction=build_system_instruction(CharacterRole(role), case_overview),
    )


def _log_summary(transcript: str) -> GenerationRequest:
    return GenerationRequest(
        task=TaskKind.LOG_SUMMARY,
        prompt=LOG_SUMMARY_PROMPT.format(transcript=transcript),
        temperature=LOG_SUMMARY_TEMPERATURE,
    )


_BUILDERS = {
    TaskKind.CASE_OVERVIEW: _case_overview,
    TaskKind.COMPLAINT: _complaint,
    TaskKind.INTERROGATION: _interrogation,
    TaskKind.LOG_SUMMARY: _log_summary,
}


def build(task: Union[TaskKind, str], **context) -> GenerationRequest:
    """Build the request for ``task``.

    Context fields per task:
        case_overview: precedent
        complaint:     case_overview
        interrogation: role, case_overview
        log_summary:   transcript

    Raises:
        ValueError: unknown task kind.
        TypeError: missing or unexpected context field.
    """
    builder = _BUILDERS[TaskKind(task)]
    return builder(**context)
