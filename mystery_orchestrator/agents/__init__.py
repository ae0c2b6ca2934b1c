"""
Mystery Orchestrator Agents Module
Agent invocation, generation stages and validation checks.
"""

from .base import (
    AgentError,
    AgentInvoker,
    AgentParseError,
    AgentProgress,
    AgentResult,
    ClaudeClient,
    ConfigurationError,
    LLMClient,
    ModelResponse,
    OpenAIClient,
    create_llm_client,
    extract_json,
)
from .stages import (
    format_character_input,
    format_evidence_input,
    format_story_input,
    run_character_designer,
    run_evidence_crafter,
    run_story_architect,
)
from .validators import (
    CHECK_ORDER,
    ValidationInput,
    ValidationReport,
    aggregate_validation,
    run_all_validators,
    run_check,
    to_validation_result,
)

__all__ = [
    "AgentError",
    "ConfigurationError",
    "AgentParseError",
    "LLMClient",
    "ClaudeClient",
    "OpenAIClient",
    "ModelResponse",
    "create_llm_client",
    "extract_json",
    "AgentProgress",
    "AgentResult",
    "AgentInvoker",
    "format_story_input",
    "format_character_input",
    "format_evidence_input",
    "run_story_architect",
    "run_character_designer",
    "run_evidence_crafter",
    "CHECK_ORDER",
    "ValidationInput",
    "ValidationReport",
    "run_check",
    "run_all_validators",
    "to_validation_result",
    "aggregate_validation",
]
