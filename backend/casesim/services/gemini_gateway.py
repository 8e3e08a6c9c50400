"""Boundary with the Gemini API.

The sync google-genai client is driven through ``asyncio.to_thread`` so the
FastAPI event loop is never blocked. This module does no validation and no
classification: it returns the raw provider response or lets the provider
exception propagate.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional

from google import genai
from google.genai import types

from casesim.config import settings
from casesim.models.schemas import GenerationRequest, Message, Sender
from casesim.services.errors import INVALID_KEY_MESSAGE, InvalidCredential

logger = logging.getLogger(__name__)

SAFETY_SETTINGS = [
    types.SafetySetting(
        category=category,
        threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    )
    for category in (
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    )
]


def build_config(request: GenerationRequest) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        temperature=request.temperature,
        response_mime_type=request.response_format.value,
        safety_settings=SAFETY_SETTINGS,
        system_instruction=request.system_instruction,
    )


def to_contents(history: Iterable[Message]) -> List[types.Content]:
    """Convert committed chat messages to provider history entries."""
    return [
        types.Content(
            role="user" if msg.sender == Sender.USER else "model",
            parts=[types.Part(text=msg.text)],
        )
        for msg in history
    ]


class GeminiGateway:
    """Thin async wrapper over one ``genai.Client``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Any = None,
    ):
        self.model = model or settings.gemini_model
        if client is not None:
            self.client = client
            return
        key = api_key or settings.google_api_key
        if not key:
            logger.warning("No Gemini API key supplied with the request or in GOOGLE_API_KEY")
            raise InvalidCredential(INVALID_KEY_MESSAGE)
        self.client = genai.Client(api_key=key)

    async def generate(self, request: GenerationRequest) -> Any:
        """Single, non-conversational call."""
        logger.debug(f"generate_content task={request.task.value} model={self.model}")
        return await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=request.prompt,
            config=build_config(request),
        )

    def open_chat(self, request: GenerationRequest, history: Iterable[Message] = ()) -> Any:
        """Create a provider chat seeded with prior turns. No network call happens here."""
        return self.client.chats.create(
            model=self.model,
            config=build_config(request),
            history=to_contents(history),
        )

    async def send(self, chat: Any, text: str) -> Any:
        return await asyncio.to_thread(chat.send_message, text)
