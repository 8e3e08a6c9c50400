"""Error taxonomy for model-backed operations and the classifier that maps
provider failures onto it.

Every public operation either returns a validated result or raises one of the
``InvestigationError`` subclasses below. Nothing is retried here.
"""

import logging
from typing import Optional

from casesim.models.schemas import CharacterRole, TaskKind

logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = "API 키가 유효하지 않습니다. 확인 후 다시 시도해주세요."
EXCERPT_CHARS = 100

_CREDENTIAL_MARKERS = ("api key not valid", "api_key_invalid", "api key is not provided")

_TASK_PREFIXES = {
    TaskKind.CASE_OVERVIEW: "Gemini로부터 사건 상세 정보를 생성하는 데 실패했습니다.",
    TaskKind.COMPLAINT: "Gemini로부터 고소장을 생성하는 데 실패했습니다.",
    TaskKind.LOG_SUMMARY: "대화 요약 실패:",
}


class InvalidInput(ValueError):
    """Blank or missing user input, rejected before any provider call."""


class InvestigationError(Exception):
    """Base class for every classified failure."""

    def __init__(
        self,
        message: str,
        task: Optional[TaskKind] = None,
        role: Optional[CharacterRole] = None,
    ):
        super().__init__(message)
        self.message = message
        self.task = task
        self.role = role

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error_type": self.__class__.__name__,
            "task": self.task.value if self.task else None,
            "role": self.role.value if self.role else None,
        }


class InvalidCredential(InvestigationError):
    """The provider rejected the API key, or none was supplied."""


class EmptyResponse(InvestigationError):
    """The provider returned no usable text."""


class MalformedResponse(InvestigationError):
    """Text came back but could not be parsed as JSON."""

    def __init__(self, message: str, excerpt: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.excerpt = excerpt


class SchemaViolation(InvestigationError):
    """Parsed JSON is missing required fields or has the wrong shapes."""


class UpstreamFailure(InvestigationError):
    """Any other transport or provider error."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cause = cause


def is_credential_error(error: BaseException) -> bool:
    error_str = str(error).lower()
    return any(marker in error_str for marker in _CREDENTIAL_MARKERS)


def task_prefix(task: TaskKind, role: Optional[CharacterRole] = None) -> str:
    if task == TaskKind.INTERROGATION:
        return f"{role.label if role else '조사 대상자'}에게 메시지 전송 실패:"
    return _TASK_PREFIXES[task]


def classify_error(
    error: BaseException,
    task: TaskKind,
    role: Optional[CharacterRole] = None,
) -> InvestigationError:
    """Map an arbitrary failure to one of the taxonomy classes.

    Already-classified errors pass through; only their missing context is
    filled in.
    """
    if isinstance(error, InvestigationError):
        if error.task is None:
            error.task = task
        if error.role is None:
            error.role = role
        return error

    if is_credential_error(error):
        logger.warning(f"Credential rejected during {task.value}: {str(error)[:200]}")
        return InvalidCredential(INVALID_KEY_MESSAGE, task=task, role=role)

    logger.error(f"Upstream failure during {task.value} (role={role.value if role else None}): {error}")
    return UpstreamFailure(f"{task_prefix(task, role)} {error}", cause=error, task=task, role=role)
