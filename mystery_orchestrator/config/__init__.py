"""
Mystery Orchestrator Configuration Module
LLM provider configuration, agent profiles and service settings.
"""

from .llm_providers import (
    CLAUDE_MODELS,
    CONTENT_HEAVY_MAX_TOKENS,
    GENERATION_AGENTS,
    GENERATION_PROFILE,
    OPENAI_MODELS,
    VALIDATION_AGENTS,
    VALIDATION_PROFILE,
    # Configuration Models
    AgentConfig,
    # Enums
    AgentType,
    ClaudeConfig,
    LLMConfiguration,
    LLMProvider,
    OpenAIConfig,
    ProviderConfig,
    # Helper Functions
    create_default_config_from_env,
    get_all_models,
)
from .settings import AppSettings, configure_logging, load_app_settings

__all__ = [
    "LLMProvider",
    "AgentType",
    "GENERATION_AGENTS",
    "VALIDATION_AGENTS",
    "CLAUDE_MODELS",
    "OPENAI_MODELS",
    "GENERATION_PROFILE",
    "VALIDATION_PROFILE",
    "CONTENT_HEAVY_MAX_TOKENS",
    "ProviderConfig",
    "ClaudeConfig",
    "OpenAIConfig",
    "AgentConfig",
    "LLMConfiguration",
    "get_all_models",
    "create_default_config_from_env",
    "AppSettings",
    "load_app_settings",
    "configure_logging",
]
