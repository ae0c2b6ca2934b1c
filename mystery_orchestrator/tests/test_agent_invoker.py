"""
Unit tests for the agent invocation layer.

Tests cover:
- JSON extraction from fenced and bare responses
- Profile resolution (generation vs validation, overrides, default model)
- Progress checkpoints of a single attempt
- Retry with exponential backoff and non-retryable configuration errors
"""

import pytest

from mystery_orchestrator.agents import (
    AgentInvoker,
    AgentParseError,
    ConfigurationError,
    create_llm_client,
    extract_json,
)
from mystery_orchestrator.config import (
    AgentConfig,
    AgentType,
    ClaudeConfig,
    LLMConfiguration,
    LLMProvider,
)
from mystery_orchestrator.config.llm_providers import DEFAULT_MODELS
from mystery_orchestrator.models import StoryFoundation

from conftest import FakeLLMClient, happy_responses, story_payload


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestExtractJson:
    """Tests for extract_json."""

    def test_fenced_block_wins(self):
        text = 'Here you go:\n```json\n{"title": "X"}\n```\nThanks'
        assert extract_json(text) == {"title": "X"}

    def test_bare_json(self):
        assert extract_json('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_unparseable_raises_parse_error(self):
        with pytest.raises(AgentParseError) as exc_info:
            extract_json("I could not do that.")
        assert "Could not parse JSON from agent response" in str(exc_info.value)

    def test_empty_response_raises_parse_error(self):
        with pytest.raises(AgentParseError):
            extract_json("")


class TestResolveConfig:
    """Tests for AgentInvoker.resolve_config."""

    def test_generation_profile(self, llm_config):
        invoker = AgentInvoker(llm_config, llm_client=FakeLLMClient({}))
        resolved = invoker.resolve_config(AgentType.STORY_ARCHITECT)

        assert resolved.max_tokens == 8192
        assert resolved.temperature == 0.7
        assert resolved.model == DEFAULT_MODELS[LLMProvider.CLAUDE]

    def test_validation_profile(self, llm_config):
        invoker = AgentInvoker(llm_config, llm_client=FakeLLMClient({}))
        resolved = invoker.resolve_config(AgentType.TWIST_FAIRNESS)

        assert resolved.max_tokens == 4096
        assert resolved.temperature == 0.3

    def test_override_is_applied(self, llm_config):
        invoker = AgentInvoker(llm_config, llm_client=FakeLLMClient({}))
        resolved = invoker.resolve_config(
            AgentType.CHARACTER_DESIGNER,
            AgentConfig(max_tokens=12000, model="claude-custom"),
        )

        assert resolved.max_tokens == 12000
        assert resolved.temperature == 0.7
        assert resolved.model == "claude-custom"


class TestInvoke:
    """Tests for a single attempt."""

    @pytest.mark.asyncio
    async def test_success_reports_checkpoints(self, llm_config):
        client = FakeLLMClient(happy_responses())
        invoker = AgentInvoker(llm_config, llm_client=client)
        updates = []

        result = await invoker.invoke(
            AgentType.STORY_ARCHITECT,
            "{}",
            on_progress=updates.append,
            response_model=StoryFoundation,
        )

        assert result.success is True
        assert isinstance(result.data, StoryFoundation)
        assert result.data.title == "The Last Pour"
        assert result.tokens_used.input == 100
        assert result.tokens_used.output == 50
        assert [(u.stage, u.progress) for u in updates] == [
            ("starting", 0),
            ("processing", 30),
            ("parsing", 80),
            ("complete", 100),
        ]

    @pytest.mark.asyncio
    async def test_async_progress_callback_is_awaited(self, llm_config):
        invoker = AgentInvoker(llm_config, llm_client=FakeLLMClient(happy_responses()))
        stages = []

        async def on_progress(update):
            stages.append(update.stage)

        await invoker.invoke(AgentType.STORY_ARCHITECT, "{}", on_progress=on_progress)

        assert stages[-1] == "complete"

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_retryable_failure(self, llm_config):
        client = FakeLLMClient({AgentType.STORY_ARCHITECT: {"tagline": "no title"}})
        invoker = AgentInvoker(llm_config, llm_client=client)
        updates = []

        result = await invoker.invoke(
            AgentType.STORY_ARCHITECT,
            "{}",
            on_progress=updates.append,
            response_model=StoryFoundation,
        )

        assert result.success is False
        assert result.retryable is True
        assert "StoryFoundation" in result.error
        assert updates[-1].stage == "error"
        assert updates[-1].progress == 0

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_result(self, llm_config):
        client = FakeLLMClient({AgentType.STORY_ARCHITECT: RuntimeError("overloaded")})
        invoker = AgentInvoker(llm_config, llm_client=client)

        result = await invoker.invoke(AgentType.STORY_ARCHITECT, "{}")

        assert result.success is False
        assert result.error == "overloaded"

    @pytest.mark.asyncio
    async def test_missing_system_prompt_is_configuration_error(self, llm_config):
        invoker = AgentInvoker(llm_config, llm_client=FakeLLMClient({}), system_prompts={})

        result = await invoker.invoke(AgentType.STORY_ARCHITECT, "{}")

        assert result.success is False
        assert result.retryable is False
        assert "No system prompt" in result.error


class TestInvokeWithRetry:
    """Tests for retry with exponential backoff."""

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self, llm_config):
        client = FakeLLMClient({
            AgentType.STORY_ARCHITECT: [
                RuntimeError("overloaded"),
                "not json at all",
                story_payload(),
            ],
        })
        sleep = SleepRecorder()
        invoker = AgentInvoker(llm_config, llm_client=client, sleep=sleep)
        updates = []

        result = await invoker.invoke_with_retry(
            AgentType.STORY_ARCHITECT,
            "{}",
            on_progress=updates.append,
            response_model=StoryFoundation,
        )

        assert result.success is True
        assert result.attempts == 3
        assert sleep.delays == [2.0, 4.0]
        assert len(client.calls) == 3

        retries = [u for u in updates if u.stage == "starting" and u.message.startswith("Retrying")]
        assert [u.attempt for u in retries] == [2, 3]

    @pytest.mark.asyncio
    async def test_exhaustion_message(self, llm_config):
        client = FakeLLMClient({AgentType.STORY_ARCHITECT: RuntimeError("overloaded")})
        sleep = SleepRecorder()
        invoker = AgentInvoker(llm_config, llm_client=client, sleep=sleep)

        result = await invoker.invoke_with_retry(AgentType.STORY_ARCHITECT, "{}")

        assert result.success is False
        assert result.error == "Failed after 3 attempts: overloaded"
        assert result.attempts == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_max_attempts_override(self, llm_config):
        client = FakeLLMClient({AgentType.STORY_ARCHITECT: RuntimeError("overloaded")})
        invoker = AgentInvoker(llm_config, llm_client=client, sleep=SleepRecorder())

        result = await invoker.invoke_with_retry(AgentType.STORY_ARCHITECT, "{}", max_attempts=1)

        assert result.error == "Failed after 1 attempts: overloaded"
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_missing_credentials_are_not_retried(self):
        config = LLMConfiguration(provider=LLMProvider.CLAUDE)
        sleep = SleepRecorder()
        invoker = AgentInvoker(config, sleep=sleep)

        result = await invoker.invoke_with_retry(AgentType.STORY_ARCHITECT, "{}")

        assert result.success is False
        assert result.retryable is False
        assert "configuration not provided" in result.error
        assert sleep.delays == []


class TestCreateLLMClient:
    """Tests for the client factory."""

    def test_missing_provider_config(self):
        with pytest.raises(ConfigurationError):
            create_llm_client(LLMConfiguration(provider=LLMProvider.OPENAI))

    def test_claude_client(self, llm_config):
        client = create_llm_client(llm_config)
        assert client.provider == LLMProvider.CLAUDE

    def test_disabled_provider(self):
        from pydantic import SecretStr

        config = LLMConfiguration(
            provider=LLMProvider.CLAUDE,
            claude=ClaudeConfig(api_key=SecretStr("k"), enabled=False),
        )
        with pytest.raises(ConfigurationError):
            create_llm_client(config)
