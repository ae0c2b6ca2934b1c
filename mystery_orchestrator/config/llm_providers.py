"""
LLM Provider Configuration
Supports Anthropic Claude (default) and OpenAI, plus the per-agent token/temperature profiles.
"""

import os
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    CLAUDE = "claude"
    OPENAI = "openai"


class AgentType(str, Enum):
    """Named agents of the mystery pipeline."""
    STORY_ARCHITECT = "story-architect"
    CHARACTER_DESIGNER = "character-designer"
    EVIDENCE_CRAFTER = "evidence-crafter"
    TIMELINE_AUDITOR = "timeline-auditor"
    EVIDENCE_VALIDATOR = "evidence-validator"
    MOTIVE_ANALYZER = "motive-analyzer"
    TWIST_FAIRNESS = "twist-fairness"


GENERATION_AGENTS = (
    AgentType.STORY_ARCHITECT,
    AgentType.CHARACTER_DESIGNER,
    AgentType.EVIDENCE_CRAFTER,
)

VALIDATION_AGENTS = (
    AgentType.TIMELINE_AUDITOR,
    AgentType.EVIDENCE_VALIDATOR,
    AgentType.MOTIVE_ANALYZER,
    AgentType.TWIST_FAIRNESS,
)


# ============================================================================
# Model Definitions by Provider
# ============================================================================

CLAUDE_MODELS: Dict[str, Dict[str, Any]] = {
    "claude-sonnet-4-20250514": {
        "name": "Claude Sonnet 4",
        "description": "Default model for both generation and validation agents",
        "context_window": 200000,
        "max_output": 64000,
        "recommended_for": ["story-architect", "character-designer", "evidence-crafter", "validation"]
    },
    "claude-opus-4-20250514": {
        "name": "Claude Opus 4",
        "description": "Stronger reasoning for dense casts and evidence chains",
        "context_window": 200000,
        "max_output": 32000,
        "recommended_for": ["character-designer", "evidence-crafter"]
    },
    "claude-3-5-haiku-20241022": {
        "name": "Claude 3.5 Haiku",
        "description": "Fast and cost-effective, fine for validation checks",
        "context_window": 200000,
        "max_output": 8192,
        "recommended_for": ["validation"]
    },
}

OPENAI_MODELS: Dict[str, Dict[str, Any]] = {
    "gpt-4o": {
        "name": "GPT-4o",
        "description": "Most capable GPT-4 model",
        "context_window": 128000,
        "max_output": 16384,
        "recommended_for": ["story-architect", "character-designer", "evidence-crafter"]
    },
    "gpt-4o-mini": {
        "name": "GPT-4o Mini",
        "description": "Smaller, faster, cheaper GPT-4o variant",
        "context_window": 128000,
        "max_output": 16384,
        "recommended_for": ["validation"]
    },
}

DEFAULT_MODELS: Dict[LLMProvider, str] = {
    LLMProvider.CLAUDE: "claude-sonnet-4-20250514",
    LLMProvider.OPENAI: "gpt-4o",
}


# ============================================================================
# Provider Configuration Models
# ============================================================================

class ProviderConfig(BaseModel):
    """Base configuration for an LLM provider."""
    provider: LLMProvider
    api_key: SecretStr
    base_url: Optional[str] = None
    default_model: str
    enabled: bool = True


class ClaudeConfig(ProviderConfig):
    """Anthropic Claude-specific configuration."""
    provider: LLMProvider = LLMProvider.CLAUDE
    base_url: Optional[str] = None
    default_model: str = DEFAULT_MODELS[LLMProvider.CLAUDE]


class OpenAIConfig(ProviderConfig):
    """OpenAI-specific configuration."""
    provider: LLMProvider = LLMProvider.OPENAI
    base_url: str = "https://api.openai.com/v1"
    default_model: str = DEFAULT_MODELS[LLMProvider.OPENAI]


# ============================================================================
# Agent Profiles
# ============================================================================

class AgentConfig(BaseModel):
    """
    Token/temperature profile for one agent invocation.
    Fields left as None fall through to the selected base profile.
    """
    model: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)

    def merged_with(self, override: Optional["AgentConfig"]) -> "AgentConfig":
        """Return a copy with every non-None field of `override` applied."""
        if override is None:
            return self.model_copy()
        return self.model_copy(update=override.model_dump(exclude_none=True))


GENERATION_PROFILE = AgentConfig(max_tokens=8192, temperature=0.7)
VALIDATION_PROFILE = AgentConfig(max_tokens=4096, temperature=0.3)

# Cast and evidence stages produce the largest JSON documents
CONTENT_HEAVY_MAX_TOKENS = 12000


# ============================================================================
# Master Configuration
# ============================================================================

class LLMConfiguration(BaseModel):
    """Master LLM configuration."""

    provider: LLMProvider = LLMProvider.CLAUDE
    claude: Optional[ClaudeConfig] = None
    openai: Optional[OpenAIConfig] = None

    generation_profile: AgentConfig = Field(default_factory=lambda: GENERATION_PROFILE.model_copy())
    validation_profile: AgentConfig = Field(default_factory=lambda: VALIDATION_PROFILE.model_copy())

    max_retries: int = Field(default=3, ge=1, le=10)
    retry_base_delay: float = Field(default=1.0, ge=0.0)

    def get_provider_config(self, provider: Optional[LLMProvider] = None) -> Optional[ProviderConfig]:
        """Get configuration for a specific provider (the active one by default)."""
        provider_map = {
            LLMProvider.CLAUDE: self.claude,
            LLMProvider.OPENAI: self.openai,
        }
        return provider_map.get(provider or self.provider)

    def get_enabled_providers(self) -> List[LLMProvider]:
        """Get list of enabled providers."""
        enabled = []
        if self.claude and self.claude.enabled:
            enabled.append(LLMProvider.CLAUDE)
        if self.openai and self.openai.enabled:
            enabled.append(LLMProvider.OPENAI)
        return enabled

    def has_credentials(self) -> bool:
        """Whether the active provider has an API key configured."""
        provider_config = self.get_provider_config()
        return bool(
            provider_config
            and provider_config.enabled
            and provider_config.api_key.get_secret_value()
        )

    def profile_for(self, agent_type: AgentType) -> AgentConfig:
        """Base profile for an agent: validation agents get the stricter one."""
        if agent_type in VALIDATION_AGENTS:
            return self.validation_profile
        return self.generation_profile


# ============================================================================
# Helper Functions
# ============================================================================

def get_all_models() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Get all available models grouped by provider."""
    return {
        "claude": CLAUDE_MODELS,
        "openai": OPENAI_MODELS,
    }


def create_default_config_from_env() -> LLMConfiguration:
    """Create configuration from environment variables."""
    config = LLMConfiguration(
        provider=LLMProvider(os.getenv("LLM_PROVIDER", LLMProvider.CLAUDE.value)),
        max_retries=int(os.getenv("AGENT_MAX_RETRIES", "3")),
    )

    if os.getenv("ANTHROPIC_API_KEY"):
        config.claude = ClaudeConfig(
            api_key=SecretStr(os.getenv("ANTHROPIC_API_KEY")),
        )

    if os.getenv("OPENAI_API_KEY"):
        config.openai = OpenAIConfig(
            api_key=SecretStr(os.getenv("OPENAI_API_KEY")),
        )

    default_model = os.getenv("DEFAULT_MODEL")
    if default_model:
        config.generation_profile = config.generation_profile.merged_with(AgentConfig(model=default_model))

    validation_model = os.getenv("VALIDATION_MODEL")
    if validation_model:
        config.validation_profile = config.validation_profile.merged_with(AgentConfig(model=validation_model))

    return config
