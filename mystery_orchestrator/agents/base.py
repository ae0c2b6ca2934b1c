"""
Agent invocation layer for the mystery orchestrator.
Wraps the raw LLM call with system-prompt lookup, profile resolution,
JSON extraction, schema validation, progress reporting and retry.
"""

import asyncio
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from ..config import AgentConfig, AgentType, LLMConfiguration, LLMProvider
from ..config.llm_providers import DEFAULT_MODELS
from ..models import TokenUsage
from ..prompts import SYSTEM_PROMPTS

logger = logging.getLogger("orchestrator.agents")

JSON_BLOCK_PATTERN = re.compile(r"```json\n?([\s\S]*?)\n?```")


# ============================================================================
# Errors
# ============================================================================

class AgentError(Exception):
    """Base class for agent invocation failures."""
    retryable = True


class ConfigurationError(AgentError):
    """Missing credentials or system prompt. Retrying cannot help."""
    retryable = False


class AgentParseError(AgentError):
    """The model answered, but not with a usable JSON document."""
    retryable = True


# ============================================================================
# LLM Clients
# ============================================================================

@dataclass
class ModelResponse:
    """Unified response from any LLM provider."""
    content: str
    model: str
    provider: LLMProvider
    usage: TokenUsage
    finish_reason: str = ""


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    provider: LLMProvider

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ModelResponse:
        """Send one system + user message pair and return the raw completion."""
        pass


class ClaudeClient(LLMClient):
    """Anthropic Claude API client implementation."""

    provider = LLMProvider.CLAUDE

    def __init__(self, api_key: str, base_url: Optional[str] = None):
        self.api_key = api_key
        self.base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ModelResponse:
        client = self._get_client()
        response = await client.messages.create(
            model=model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=temperature,
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return ModelResponse(
            content=text,
            model=response.model,
            provider=self.provider,
            usage=TokenUsage(
                input=response.usage.input_tokens if response.usage else 0,
                output=response.usage.output_tokens if response.usage else 0,
            ),
            finish_reason=response.stop_reason or "",
        )


class OpenAIClient(LLMClient):
    """OpenAI API client implementation."""

    provider = LLMProvider.OPENAI

    def __init__(self, api_key: str, base_url: str = "https://api.openai.com/v1"):
        self.api_key = api_key
        self.base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ModelResponse:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
        choice = response.choices[0]
        return ModelResponse(
            content=choice.message.content or "",
            model=response.model,
            provider=self.provider,
            usage=TokenUsage(
                input=response.usage.prompt_tokens if response.usage else 0,
                output=response.usage.completion_tokens if response.usage else 0,
            ),
            finish_reason=choice.finish_reason or "",
        )


def create_llm_client(config: LLMConfiguration, provider: Optional[LLMProvider] = None) -> LLMClient:
    """Factory function to create the LLM client for the active (or given) provider."""
    provider = provider or config.provider
    provider_config = config.get_provider_config(provider)

    if not provider_config or not provider_config.enabled:
        raise ConfigurationError(f"{provider.value} configuration not provided")

    api_key = provider_config.api_key.get_secret_value()
    if not api_key:
        raise ConfigurationError(f"{provider.value} API key is empty")

    if provider == LLMProvider.CLAUDE:
        return ClaudeClient(api_key=api_key, base_url=provider_config.base_url)
    elif provider == LLMProvider.OPENAI:
        return OpenAIClient(api_key=api_key, base_url=provider_config.base_url)
    else:
        raise ConfigurationError(f"Unsupported provider: {provider}")


# ============================================================================
# JSON extraction
# ============================================================================

def extract_json(text: str) -> Any:
    """
    Parse the JSON document out of an agent response.

    A fenced ```json block wins when present; otherwise the whole response
    must be JSON.
    """
    match = JSON_BLOCK_PATTERN.search(text or "")
    candidate = match.group(1) if match else (text or "")
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        preview = candidate[:200] + "..." if len(candidate) > 200 else candidate
        logger.debug(f"[extract_json] Parse failed: {e}; preview: {preview}")
        raise AgentParseError("Could not parse JSON from agent response") from e


# ============================================================================
# Invoker
# ============================================================================

@dataclass
class AgentProgress:
    """Progress report for a single agent invocation."""
    agent: AgentType
    stage: str  # starting | processing | parsing | complete | error
    progress: int
    message: str
    attempt: int = 1


ProgressCallback = Callable[[AgentProgress], Optional[Awaitable[None]]]


@dataclass
class AgentResult:
    """Outcome of an agent invocation. Failures are values, not exceptions."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    tokens_used: TokenUsage = field(default_factory=TokenUsage)
    duration_ms: int = 0
    retryable: bool = True
    attempts: int = 1


class AgentInvoker:
    """
    Runs one named agent against the configured LLM.

    `invoke` never raises past its boundary except for cancellation;
    `invoke_with_retry` repeats failed attempts with exponential backoff.
    """

    def __init__(
        self,
        config: LLMConfiguration,
        llm_client: Optional[LLMClient] = None,
        system_prompts: Optional[Mapping[AgentType, str]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self._llm_client = llm_client
        self.system_prompts = system_prompts if system_prompts is not None else SYSTEM_PROMPTS
        self._sleep = sleep

    def _get_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = create_llm_client(self.config)
        return self._llm_client

    def resolve_config(self, agent_type: AgentType, override: Optional[AgentConfig] = None) -> AgentConfig:
        """Base profile for the agent with the override applied and a model filled in."""
        resolved = self.config.profile_for(agent_type).merged_with(override)
        if not resolved.model:
            provider_config = self.config.get_provider_config()
            model = provider_config.default_model if provider_config else DEFAULT_MODELS[self.config.provider]
            resolved = resolved.model_copy(update={"model": model})
        return resolved

    def _system_prompt(self, agent_type: AgentType) -> str:
        prompt = self.system_prompts.get(agent_type)
        if not prompt:
            raise ConfigurationError(f"No system prompt registered for agent {agent_type.value}")
        return prompt

    @staticmethod
    async def _report(on_progress: Optional[ProgressCallback], update: AgentProgress) -> None:
        if on_progress is None:
            return
        maybe_awaitable = on_progress(update)
        if asyncio.iscoroutine(maybe_awaitable):
            await maybe_awaitable

    async def invoke(
        self,
        agent_type: AgentType,
        prompt: str,
        config: Optional[AgentConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        response_model: Optional[Type[BaseModel]] = None,
        attempt: int = 1,
    ) -> AgentResult:
        """Run a single attempt of `agent_type` on `prompt`."""
        start_time = time.monotonic()
        name = agent_type.value

        await self._report(on_progress, AgentProgress(agent_type, "starting", 0, f"Starting {name}", attempt))
        try:
            system_prompt = self._system_prompt(agent_type)
            client = self._get_client()
            resolved = self.resolve_config(agent_type, config)

            logger.info(
                f"[invoke] Agent: {name}, Model: '{resolved.model}', "
                f"max_tokens: {resolved.max_tokens}, temperature: {resolved.temperature}"
            )
            await self._report(on_progress, AgentProgress(agent_type, "processing", 30, f"{name} is thinking", attempt))

            response = await client.complete(
                system_prompt=system_prompt,
                user_prompt=prompt,
                model=resolved.model,
                max_tokens=resolved.max_tokens,
                temperature=resolved.temperature,
            )
            if response.finish_reason in ("length", "max_tokens"):
                logger.warning(f"[invoke] Agent {name} response was TRUNCATED (finish_reason={response.finish_reason})")

            await self._report(on_progress, AgentProgress(agent_type, "parsing", 80, f"Parsing {name} response", attempt))
            data = extract_json(response.content)
            if response_model is not None:
                try:
                    data = response_model.model_validate(data)
                except ValidationError as e:
                    raise AgentParseError(
                        f"{name} response does not match {response_model.__name__}: {e.error_count()} error(s)"
                    ) from e

            duration_ms = int((time.monotonic() - start_time) * 1000)
            logger.info(f"[invoke] Agent: {name} done in {duration_ms}ms, usage: {response.usage.model_dump()}")
            await self._report(on_progress, AgentProgress(agent_type, "complete", 100, f"{name} complete", attempt))

            return AgentResult(
                success=True,
                data=data,
                tokens_used=response.usage,
                duration_ms=duration_ms,
                attempts=attempt,
            )
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            retryable = getattr(e, "retryable", True)
            logger.warning(f"[invoke] Agent {name} attempt {attempt} failed: {e}")
            await self._report(on_progress, AgentProgress(agent_type, "error", 0, str(e), attempt))
            return AgentResult(
                success=False,
                error=str(e),
                duration_ms=duration_ms,
                retryable=retryable,
                attempts=attempt,
            )

    async def invoke_with_retry(
        self,
        agent_type: AgentType,
        prompt: str,
        config: Optional[AgentConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        response_model: Optional[Type[BaseModel]] = None,
        max_attempts: Optional[int] = None,
    ) -> AgentResult:
        """
        Invoke with exponential backoff between attempts.

        Waits base_delay * 2**attempt seconds before attempt index >= 1
        (2s, 4s, ... with the default 1s base). Non-retryable failures
        are returned immediately.
        """
        max_attempts = max_attempts or self.config.max_retries
        name = agent_type.value
        last_error = None
        duration_ms = 0

        for attempt in range(max_attempts):
            if attempt > 0:
                delay = self.config.retry_base_delay * 2 ** attempt
                logger.info(f"[invoke_with_retry] Retry attempt {attempt + 1}/{max_attempts} for {name} after {delay:.1f}s delay")
                await self._report(on_progress, AgentProgress(
                    agent_type,
                    "starting",
                    0,
                    f"Retrying {name} (attempt {attempt + 1}/{max_attempts})",
                    attempt + 1,
                ))
                await self._sleep(delay)

            result = await self.invoke(
                agent_type,
                prompt,
                config=config,
                on_progress=on_progress,
                response_model=response_model,
                attempt=attempt + 1,
            )
            duration_ms += result.duration_ms
            if result.success:
                return result

            last_error = result.error
            if not result.retryable:
                logger.error(f"[invoke_with_retry] Non-retryable error for {name}: {last_error}")
                return result

        logger.error(f"[invoke_with_retry] All {max_attempts} attempts exhausted for {name}")
        return AgentResult(
            success=False,
            error=f"Failed after {max_attempts} attempts: {last_error}",
            duration_ms=duration_ms,
            retryable=False,
            attempts=max_attempts,
        )
