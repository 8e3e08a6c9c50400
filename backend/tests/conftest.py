"""Shared fixtures: an in-memory stand-in for the google-genai client."""

import json
from types import SimpleNamespace

import pytest

from casesim.models.schemas import CaseOverview
from casesim.services import investigation as investigation_module
from casesim.services.gemini_gateway import GeminiGateway


def reply(text):
    """Provider response carrying ``text``."""
    return SimpleNamespace(text=text)


class FakeChat:
    """Mimics a provider chat: history only grows when a send succeeds."""

    def __init__(self, model, config, history, outcomes):
        self.model = model
        self.config = config
        self.seed_history = list(history or [])
        self.history = list(self.seed_history)
        self.sent = []
        self._outcomes = outcomes

    def send_message(self, message):
        self.sent.append(message)
        outcome = self._outcomes.pop(0) if self._outcomes else reply(f"답변: {message}")
        if isinstance(outcome, Exception):
            raise outcome
        text = getattr(outcome, "text", None)
        if isinstance(text, str) and text.strip():
            self.history.extend([("user", message), ("model", text)])
        return outcome


class FakeChats:
    def __init__(self, outcomes):
        self.created = []
        self._outcomes = outcomes

    def create(self, model, config=None, history=None):
        chat = FakeChat(model, config, history, self._outcomes)
        self.created.append(chat)
        return chat


class FakeModels:
    def __init__(self, outcomes):
        self.calls = []
        self._outcomes = outcomes

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self._outcomes.pop(0) if self._outcomes else reply("생성된 텍스트")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClient:
    """Queue outcomes (responses or exceptions) on ``generate_outcomes`` / ``chat_outcomes``."""

    def __init__(self):
        self.generate_outcomes = []
        self.chat_outcomes = []
        self.models = FakeModels(self.generate_outcomes)
        self.chats = FakeChats(self.chat_outcomes)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def gateway(fake_client):
    return GeminiGateway(client=fake_client, model="gemini-test")


@pytest.fixture
def overview_payload():
    return {
        "overview": "피해자가 지하철에서 지갑을 잃어버렸다고 신고하여 수사가 시작되었다.",
        "issues": ["절취 행위의 존재 여부", "불법영득의사 인정 여부"],
        "plan": ["CCTV 확보", "피해자 및 목격자 조사"],
    }


@pytest.fixture
def fenced_overview(overview_payload):
    return "```json\n" + json.dumps(overview_payload, ensure_ascii=False) + "\n```"


@pytest.fixture
def case_overview(overview_payload):
    return CaseOverview(**overview_payload)


@pytest.fixture(autouse=True)
def clear_investigations():
    investigation_module._investigations.clear()
    yield
    investigation_module._investigations.clear()
