"""
Unit tests for per-role conversation sessions.
"""

import gc
import weakref

import pytest
from google.genai import types

from casesim.agents.interrogation_agent import ConversationSessionManager
from casesim.models.schemas import CharacterRole, Message, Sender
from casesim.services.errors import EmptyResponse, InvalidCredential, InvalidInput, UpstreamFailure
from casesim.services.gemini_gateway import GeminiGateway
from tests.conftest import FakeClient, reply


@pytest.fixture
def manager():
    return ConversationSessionManager("test-investigation")


class TestSessionLifecycle:

    async def test_first_turn_creates_session(self, manager, gateway, fake_client, case_overview):
        fake_client.chat_outcomes.append(reply("저는 아무것도 몰라요."))

        text, session = await manager.turn(gateway, CharacterRole.SUSPECT, "어제 어디 있었습니까?", case_overview)

        assert text == "저는 아무것도 몰라요."
        assert session.role == CharacterRole.SUSPECT
        assert manager.session_for(CharacterRole.SUSPECT) is session
        assert len(fake_client.chats.created) == 1
        chat = fake_client.chats.created[0]
        assert chat.sent == ["어제 어디 있었습니까?"]
        assert case_overview.overview in session.system_instruction
        assert chat.config.temperature == 0.75
        assert len(chat.config.safety_settings) == 4

    async def test_second_turn_reuses_session(self, manager, gateway, fake_client, case_overview):
        _, first = await manager.turn(gateway, CharacterRole.WITNESS, "무엇을 보셨나요?", case_overview)
        _, second = await manager.turn(gateway, CharacterRole.WITNESS, "그 사람 인상착의는요?", case_overview)

        assert second is first
        assert second.chat is first.chat
        assert len(fake_client.chats.created) == 1
        assert first.chat.sent == ["무엇을 보셨나요?", "그 사람 인상착의는요?"]

    async def test_roles_have_independent_sessions(self, manager, gateway, fake_client, case_overview):
        _, suspect = await manager.turn(gateway, CharacterRole.SUSPECT, "범행을 인정합니까?", case_overview)
        _, witness = await manager.turn(gateway, CharacterRole.WITNESS, "피의자를 아십니까?", case_overview)

        assert witness is not suspect
        assert witness.chat is not suspect.chat
        assert witness.chat.history == [
            ("user", "피의자를 아십니까?"),
            ("model", "답변: 피의자를 아십니까?"),
        ]
        assert "범행을 인정합니까?" not in witness.chat.sent
        assert witness.system_instruction != suspect.system_instruction

    async def test_new_session_is_seeded_with_prior_history(self, manager, gateway, fake_client, case_overview):
        prior = [
            Message(sender=Sender.USER, text="이름이 뭡니까?"),
            Message(sender=Sender.CHARACTER, text="김철수입니다."),
        ]

        await manager.turn(gateway, CharacterRole.COMPLAINANT, "피해 내용을 말해주세요.", case_overview, prior)

        seeded = fake_client.chats.created[0].seed_history
        assert [c.role for c in seeded] == ["user", "model"]
        assert all(isinstance(c, types.Content) for c in seeded)
        assert seeded[1].parts[0].text == "김철수입니다."
        assert "피해 내용을 말해주세요." not in [c.parts[0].text for c in seeded]

    async def test_existing_session_ignores_prior_history(self, manager, gateway, fake_client, case_overview):
        await manager.turn(gateway, CharacterRole.SUSPECT, "첫 질문", case_overview)
        prior = [Message(sender=Sender.USER, text="첫 질문"), Message(sender=Sender.CHARACTER, text="첫 답")]

        await manager.turn(gateway, CharacterRole.SUSPECT, "두번째 질문", case_overview, prior)

        assert len(fake_client.chats.created) == 1

    async def test_later_turns_use_the_gateway_that_opened_the_chat(
        self, manager, gateway, case_overview, monkeypatch
    ):
        _, session = await manager.turn(gateway, CharacterRole.WITNESS, "첫 질문", case_overview)
        other = GeminiGateway(client=FakeClient(), model="gemini-test")
        sent_through_other = []

        async def recording_send(chat, text):
            sent_through_other.append(text)
            return reply("다른 답변")

        monkeypatch.setattr(other, "send", recording_send)

        text, again = await manager.turn(other, CharacterRole.WITNESS, "두번째 질문", case_overview)

        assert again is session
        assert again.gateway is gateway
        assert sent_through_other == []
        assert session.chat.sent == ["첫 질문", "두번째 질문"]
        assert text == "답변: 두번째 질문"

    async def test_session_keeps_real_client_alive(self, manager, case_overview, monkeypatch):
        async def local_send(self, chat, text):
            return reply("네.")

        monkeypatch.setattr(GeminiGateway, "send", local_send)
        opener = GeminiGateway(api_key="dummy-key", model="gemini-test")
        client_ref = weakref.ref(opener.client)

        _, session = await manager.turn(opener, CharacterRole.SUSPECT, "질문", case_overview)
        del opener
        gc.collect()

        assert client_ref() is not None
        assert session.gateway.client is client_ref()

        later = GeminiGateway(api_key="dummy-key", model="gemini-test")
        text, again = await manager.turn(later, CharacterRole.SUSPECT, "다음 질문", case_overview)
        assert text == "네."
        assert again.gateway is session.gateway

    async def test_reset_drops_sessions(self, manager, gateway, case_overview):
        await manager.turn(gateway, CharacterRole.SUSPECT, "질문", case_overview)
        manager.reset()
        assert not manager.has_session(CharacterRole.SUSPECT)
        assert manager.active_roles == []


class TestTurnFailures:

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_blank_message_rejected_before_call(self, manager, gateway, fake_client, case_overview, text):
        with pytest.raises(InvalidInput):
            await manager.turn(gateway, CharacterRole.SUSPECT, text, case_overview)
        assert fake_client.chats.created == []

    async def test_failed_first_turn_stores_no_session(self, manager, gateway, fake_client, case_overview):
        fake_client.chat_outcomes.append(ConnectionError("network down"))

        with pytest.raises(UpstreamFailure) as exc_info:
            await manager.turn(gateway, CharacterRole.SUSPECT, "질문", case_overview)

        assert exc_info.value.role == CharacterRole.SUSPECT
        assert not manager.has_session(CharacterRole.SUSPECT)

    async def test_failed_turn_keeps_existing_session(self, manager, gateway, fake_client, case_overview):
        _, session = await manager.turn(gateway, CharacterRole.WITNESS, "첫 질문", case_overview)
        fake_client.chat_outcomes.append(reply("   "))

        with pytest.raises(EmptyResponse):
            await manager.turn(gateway, CharacterRole.WITNESS, "두번째 질문", case_overview)

        assert manager.session_for(CharacterRole.WITNESS) is session
        assert len(session.chat.history) == 2

    async def test_invalid_key_is_classified(self, manager, gateway, fake_client, case_overview):
        fake_client.chat_outcomes.append(RuntimeError("API key not valid. Please pass a valid API key."))

        with pytest.raises(InvalidCredential):
            await manager.turn(gateway, CharacterRole.COMPLAINANT, "질문", case_overview)
