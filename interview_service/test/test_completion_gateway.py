"""
Test Completion Gateway

Tests the three completion modes against a scripted chat-completions client:
request parameters, completion-marker handling and error translation.
"""

import pytest

from interview_service.core.ai_client_manager import AIClientManager, ProviderSettings, get_ai_client_manager
from interview_service.errors.exceptions import ConfigurationError, ProviderError, ValidationError
from interview_service.schemas.interview import InterviewConfig, Message, RoleType
from interview_service.services.completion_gateway.completion_gateway import (
    CompletionGateway,
    strip_completion_marker,
)
from interview_service.test.fakes import FakeChatClient, make_completion

CONFIG = InterviewConfig(roleType=RoleType.SOFTWARE_ENGINEER, jobDescription="Build APIs in Python.")


def _history():
    return [
        Message.interviewer("Tell me about a project you are proud of."),
        Message.candidate("I rebuilt our billing service."),
    ]


class TestStripCompletionMarker:

    def test_marker_is_removed_and_reported(self):
        assert strip_completion_marker("Thank you for your time! [INTERVIEW_COMPLETE]") == ("Thank you for your time!", True)

    def test_every_occurrence_is_removed(self):
        text, is_complete = strip_completion_marker("[INTERVIEW_COMPLETE] Thanks [INTERVIEW_COMPLETE]")
        assert text == "Thanks"
        assert is_complete

    def test_text_without_marker_is_only_trimmed(self):
        assert strip_completion_marker("  What motivates you?\n") == ("What motivates you?", False)
        assert strip_completion_marker("Line one.\n\n  Line two?") == ("Line one.\n\n  Line two?", False)

    def test_empty_text(self):
        assert strip_completion_marker("") == ("", False)


class TestInterviewerTurn:

    @pytest.mark.asyncio
    async def test_request_parameters(self):
        client = FakeChatClient(["Welcome! Let's begin."])
        gateway = CompletionGateway(client=client, model="interview-model")

        turn = await gateway.interviewer_turn(CONFIG, _history())

        assert turn.text == "Welcome! Let's begin."
        assert not turn.is_complete
        call = client.calls[0]
        assert call["model"] == "interview-model"
        assert call["max_completion_tokens"] == 1000
        assert call["temperature"] == 0.7
        assert call["messages"][0]["role"] == "system"
        assert "Build APIs in Python." in call["messages"][0]["content"]
        assert "[INTERVIEW_COMPLETE]" in call["messages"][0]["content"]
        assert [m["role"] for m in call["messages"][1:]] == ["assistant", "user"]
        assert call["messages"][-1]["content"] == "I rebuilt our billing service."

    @pytest.mark.asyncio
    async def test_completion_marker(self):
        gateway = CompletionGateway(client=FakeChatClient(["Thanks for your time. [INTERVIEW_COMPLETE]"]))
        turn = await gateway.interviewer_turn(CONFIG, _history())
        assert turn.text == "Thanks for your time."
        assert turn.is_complete

    @pytest.mark.asyncio
    async def test_transport_failure_raises_provider_error(self):
        gateway = CompletionGateway(client=FakeChatClient([ConnectionError("connection reset")]))
        with pytest.raises(ProviderError) as exc_info:
            await gateway.interviewer_turn(CONFIG, [])
        assert exc_info.value.status_code == 500
        assert exc_info.value.mode == "interviewer"

    @pytest.mark.asyncio
    async def test_response_without_choices_raises_provider_error(self):
        empty = make_completion("unused")
        empty.choices = []
        gateway = CompletionGateway(client=FakeChatClient([empty]))
        with pytest.raises(ProviderError):
            await gateway.interviewer_turn(CONFIG, [])

    @pytest.mark.asyncio
    async def test_missing_configuration(self, monkeypatch):
        for name in ("AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_DEPLOYMENT_NAME"):
            monkeypatch.delenv(name, raising=False)
        gateway = CompletionGateway(client_manager=AIClientManager())

        with pytest.raises(ConfigurationError) as exc_info:
            await gateway.interviewer_turn(CONFIG, [])
        assert "AZURE_OPENAI_API_KEY" in exc_info.value.detail

    def test_client_manager_reuses_clients_per_mode(self):
        manager = AIClientManager(ProviderSettings(
            endpoint="https://example.openai.azure.com",
            api_key="test-key",
            deployment_name="gpt-test",
        ))
        interviewer = manager.get_client("interviewer")
        assert manager.get_client("interviewer") is interviewer
        assert manager.get_client("feedback") is not interviewer
        assert manager.deployment_name == "gpt-test"
        with pytest.raises(ValueError):
            manager.get_client("transcription")

    def test_reset_instance_rereads_settings(self, monkeypatch):
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://first.openai.azure.com")
        monkeypatch.setenv("AZURE_OPENAI_API_KEY", "test-key")
        monkeypatch.setenv("AZURE_OPENAI_DEPLOYMENT_NAME", "gpt-first")
        AIClientManager.reset_instance()
        try:
            first = get_ai_client_manager()
            assert get_ai_client_manager() is first
            assert first.deployment_name == "gpt-first"

            monkeypatch.setenv("AZURE_OPENAI_DEPLOYMENT_NAME", "gpt-second")
            assert get_ai_client_manager().deployment_name == "gpt-first"
            AIClientManager.reset_instance()

            assert get_ai_client_manager() is not first
            assert get_ai_client_manager().deployment_name == "gpt-second"
        finally:
            AIClientManager.reset_instance()


class TestCandidateTurn:

    @pytest.mark.asyncio
    async def test_requires_an_interviewer_question(self):
        client = FakeChatClient()
        gateway = CompletionGateway(client=client)
        with pytest.raises(ValidationError):
            await gateway.candidate_turn(CONFIG, [Message.candidate("Hello")])
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_candidate_prompt(self):
        client = FakeChatClient(["  I led the migration to Kubernetes.  "])
        gateway = CompletionGateway(client=client)

        turn = await gateway.candidate_turn(CONFIG, _history())

        assert turn.text == "I led the migration to Kubernetes."
        call = client.calls[0]
        assert call["max_completion_tokens"] == 500
        assert call["temperature"] == 0.8
        assert len(call["messages"]) == 2
        assert "Interviewer: Tell me about a project you are proud of." in call["messages"][1]["content"]
        assert "Candidate: I rebuilt our billing service." in call["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_empty_candidate_text_is_a_provider_error(self):
        gateway = CompletionGateway(client=FakeChatClient(["   "]))
        with pytest.raises(ProviderError):
            await gateway.candidate_turn(CONFIG, _history())


class TestFeedbackCompletion:

    @pytest.mark.asyncio
    async def test_requires_history(self):
        gateway = CompletionGateway(client=FakeChatClient())
        with pytest.raises(ValidationError):
            await gateway.feedback(CONFIG, [])

    @pytest.mark.asyncio
    async def test_returns_raw_text_and_diagnostics(self):
        client = FakeChatClient([make_completion(None, refusal="I can't help with that.", finish_reason="content_filter")])
        gateway = CompletionGateway(client=client)

        completion = await gateway.feedback(CONFIG, _history())

        assert completion.text == ""
        assert completion.refusal == "I can't help with that."
        assert completion.finish_reason == "content_filter"
        call = client.calls[0]
        assert call["max_completion_tokens"] == 4000
        assert call["temperature"] == 0.5
        assert "Software Engineer" in call["messages"][1]["content"]
