"""Normalization of raw model output.

Models often wrap JSON in a markdown fence even when asked for bare JSON, so
``extract_json`` unwraps a fence that spans the whole reply before parsing.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from casesim.models.schemas import CaseOverview, CharacterRole, TaskKind
from casesim.services.errors import (
    EXCERPT_CHARS,
    EmptyResponse,
    MalformedResponse,
    SchemaViolation,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def strip_code_fence(text: str) -> str:
    """Return the inner content of a fence spanning all of ``text``, else ``text`` trimmed."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match and match.group(2):
        return match.group(2).strip()
    return stripped


def extract_json(raw_text: str, task: Optional[TaskKind] = None) -> Any:
    candidate = strip_code_fence(raw_text or "")
    try:
        return json.loads(candidate, parse_constant=_reject_constant)
    except (ValueError, TypeError) as e:
        excerpt = (raw_text or "")[:EXCERPT_CHARS]
        logger.error(f"Failed to parse JSON response: {e} | excerpt: {excerpt!r}")
        raise MalformedResponse(
            f"Invalid JSON response from AI. Could not parse: {excerpt}...",
            excerpt=excerpt,
            task=task,
        ) from e


def require_non_empty_text(
    response: Any,
    task: Optional[TaskKind] = None,
    role: Optional[CharacterRole] = None,
) -> str:
    """Return ``response.text`` or raise EmptyResponse.

    Accepts a provider response object, or a plain string for callers that
    already pulled the text out.
    """
    label = role.label if role else (task.value if task else "response")
    if response is None:
        logger.error(f"AI response object for {label} is undefined.")
        raise EmptyResponse(f"AI 응답 객체가 정의되지 않았습니다 ({label}).", task=task, role=role)

    text = response if isinstance(response, str) else getattr(response, "text", None)
    if not isinstance(text, str) or not text.strip():
        logger.error(f"AI response .text for {label} is not a valid string or is empty.")
        raise EmptyResponse(
            f"AI 응답에 유효한 텍스트가 없거나 비어 있습니다 ({label}).",
            task=task,
            role=role,
        )
    return text


def validate_case_overview(payload: Any) -> CaseOverview:
    if not isinstance(payload, dict):
        raise SchemaViolation(
            "AI response for case details is not a JSON object.",
            task=TaskKind.CASE_OVERVIEW,
        )
    try:
        return CaseOverview.model_validate(payload, strict=True)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        logger.error(f"Parsed case details failed validation on fields: {fields}")
        raise SchemaViolation(
            "AI response for case details is missing required fields "
            f"(overview, issues, plan) after parsing: {', '.join(fields) or 'unknown'}",
            task=TaskKind.CASE_OVERVIEW,
        ) from e
