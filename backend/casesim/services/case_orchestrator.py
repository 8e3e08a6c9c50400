"""One-shot generation pipelines: case overview, complaint draft, log summary.

Each call is build -> generate -> normalize -> validate with a single provider
attempt and no local state.
"""

import logging
from typing import Union

from casesim.agents import prompt_builder
from casesim.models.schemas import CaseOverview, TaskKind
from casesim.services.errors import InvalidInput, classify_error
from casesim.services.gemini_gateway import GeminiGateway
from casesim.services.response_normalizer import (
    extract_json,
    require_non_empty_text,
    validate_case_overview,
)

logger = logging.getLogger(__name__)


def _require_input(value: str, name: str) -> None:
    if not value or not value.strip():
        raise InvalidInput(f"{name} must not be empty")


async def generate_case_overview(gateway: GeminiGateway, precedent: str) -> CaseOverview:
    """Derive an early-investigation overview, key issues and a plan from a precedent."""
    _require_input(precedent, "precedent")
    request = prompt_builder.build(TaskKind.CASE_OVERVIEW, precedent=precedent)
    try:
        response = await gateway.generate(request)
        raw = require_non_empty_text(response, task=request.task)
        details = validate_case_overview(extract_json(raw, task=request.task))
    except Exception as e:
        raise classify_error(e, request.task) from e
    logger.info(f"Case overview generated: issues={len(details.issues)} plan={len(details.plan)}")
    return details


async def generate_complaint(gateway: GeminiGateway, case_overview: Union[CaseOverview, str]) -> str:
    """Draft a mock complaint in the complainant's own emotional voice."""
    _require_input(prompt_builder.overview_text(case_overview), "case_overview")
    request = prompt_builder.build(TaskKind.COMPLAINT, case_overview=case_overview)
    try:
        response = await gateway.generate(request)
        complaint = require_non_empty_text(response, task=request.task)
    except Exception as e:
        raise classify_error(e, request.task) from e
    logger.info(f"Complaint generated ({len(complaint)} chars)")
    return complaint


async def summarize_chat_log(gateway: GeminiGateway, transcript: str) -> str:
    _require_input(transcript, "transcript")
    request = prompt_builder.build(TaskKind.LOG_SUMMARY, transcript=transcript)
    try:
        response = await gateway.generate(request)
        summary = require_non_empty_text(response, task=request.task)
    except Exception as e:
        raise classify_error(e, request.task) from e
    logger.info(f"Chat log summarized ({len(transcript)} -> {len(summary)} chars)")
    return summary
