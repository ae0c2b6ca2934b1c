"""
Pytest configuration and fixtures for orchestrator tests.

This module provides:
- Network blocking fixture to prevent accidental API calls in CI
- A scripted fake LLM client keyed by agent
- Minimal valid stage payloads for the "Noir" scenario
"""

import json
import socket
from typing import Any, Dict, List, Optional

import pytest
from pydantic import SecretStr
from unittest.mock import patch

from mystery_orchestrator.agents import AgentInvoker, LLMClient, ModelResponse
from mystery_orchestrator.config import AgentType, ClaudeConfig, LLMConfiguration, LLMProvider
from mystery_orchestrator.core import MysteryOrchestrator
from mystery_orchestrator.models import GenerationSettings, TokenUsage
from mystery_orchestrator.prompts import SYSTEM_PROMPTS


class NetworkBlockedError(Exception):
    """Raised when a test attempts to make a network connection."""
    pass


def _block_socket_connect(*args, **kwargs):
    """Block all socket connections to prevent accidental API calls."""
    raise NetworkBlockedError(
        "Network access is blocked in unit tests. "
        "If you need to test network functionality, use mocks. "
        "This prevents accidental OpenAI/Anthropic API calls that cost money."
    )


@pytest.fixture(autouse=True)
def block_network():
    """
    Automatically block all network connections in tests.

    Every agent call in these tests goes through FakeLLMClient; a real
    Anthropic or OpenAI request would fail here instead of costing money.
    """
    with patch.object(socket.socket, 'connect', _block_socket_connect):
        with patch.object(socket, 'create_connection', _block_socket_connect):
            yield


# ============================================================================
# Fake LLM client
# ============================================================================

AGENT_BY_PROMPT = {prompt: agent for agent, prompt in SYSTEM_PROMPTS.items()}


class FakeLLMClient(LLMClient):
    """
    Scripted LLM client.

    `responses` maps an agent to a payload, or to a list of payloads consumed
    one per call (the last one repeats). A payload is a dict (sent as JSON),
    a raw string, or an exception to raise.
    """

    provider = LLMProvider.CLAUDE

    def __init__(self, responses: Dict[AgentType, Any], usage: Optional[TokenUsage] = None):
        self.responses = {
            agent: list(value) if isinstance(value, list) else [value]
            for agent, value in responses.items()
        }
        self.usage = usage or TokenUsage(input=100, output=50)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system_prompt, user_prompt, model, max_tokens, temperature):
        agent = AGENT_BY_PROMPT[system_prompt]
        self.calls.append({
            "agent": agent,
            "prompt": user_prompt,
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })

        queue = self.responses[agent]
        payload = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(payload, Exception):
            raise payload

        content = payload if isinstance(payload, str) else json.dumps(payload)
        return ModelResponse(
            content=content,
            model=model,
            provider=self.provider,
            usage=self.usage,
            finish_reason="end_turn",
        )

    def calls_for(self, agent: AgentType) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["agent"] == agent]


async def no_sleep(delay: float) -> None:
    return None


# ============================================================================
# Stage payloads ("Noir" scenario)
# ============================================================================

def story_payload() -> Dict[str, Any]:
    return {
        "title": "The Last Pour",
        "tagline": "One bottle. One swap. One body.",
        "victim": {
            "name": "Victor Hale",
            "age": 61,
            "occupation": "wine magnate",
            "net_worth": "$40M",
            "secrets": ["Rewrote his will last week"],
        },
        "setting": {
            "location": "Hale Manor",
            "location_type": "Estate",
            "era": "1947",
            "occasion": "the vintage release party",
            "atmosphere": "Smoky and tense",
            "guest_count": 18,
        },
        "murder_method": {
            "primary_cause": "poison",
            "stages": [
                {"stage": 1, "description": "Cyanide added to the decanter", "time": "21:40"},
            ],
            "cause_of_death": "Cyanide poisoning",
            "key_mystery": "Everyone drank from the same vintage",
            "central_mechanic": "bottle swap",
        },
        "solution": {
            "mastermind": {"name": "Iris Hale", "relationship": "Daughter", "motive": "Inheritance"},
            "executor": {"name": "Iris Hale", "relationship": "Daughter", "role": "Poured the drink"},
            "how_it_was_done": "Iris swapped the poisoned bottle for the tasting bottle",
            "how_to_solve": ["Match the cork to the cellar log"],
        },
        "themes": ["greed", "family"],
    }


def characters_payload() -> Dict[str, Any]:
    return {
        "suspects": [
            {
                "id": "suspect-001",
                "tier": 1,
                "name": "Iris Hale",
                "role": "Daughter",
                "age": 34,
                "personality": ["cold", "precise"],
                "motive": {"summary": "Inheritance", "strength": "extreme"},
                "alibi": {"claimed": "In the library", "actual": "In the cellar"},
                "is_killer": True,
                "killer_role": "mastermind",
            },
            {
                "id": "suspect-002",
                "tier": 1,
                "name": "Marco Bell",
                "role": "Sommelier",
                "is_red_herring": True,
                "relationships": [{"target_id": "suspect-001", "type": "rival"}],
            },
            {
                "id": "suspect-003",
                "tier": 2,
                "name": "Nora Quinn",
                "role": "Housekeeper",
            },
        ],
        "relationships": [{"target_id": "suspect-002", "type": "rival", "description": "Old feud"}],
        "red_herring_strategy": {"primary_red_herring": "suspect-002", "reason": "Handled every bottle"},
    }


def evidence_payload() -> Dict[str, Any]:
    return {
        "evidence": [
            {
                "id": "EV-001",
                "name": "Mismatched cork",
                "type": "physical",
                "revealed_in_phase": 1,
                "assigned_to_detective": 1,
                "is_clue": True,
                "points_to": "suspect-001",
                "location": "Cellar",
                "forensic_details": {"analysis": "Residue test", "results": "Cyanide traces"},
            },
            {
                "id": "EV-002",
                "name": "Sommelier's statement",
                "type": "testimonial",
                "revealed_in_phase": 2,
                "assigned_to_detective": 2,
                "is_clue": False,
                "points_to": "suspect-002",
            },
            {
                "id": "EV-003",
                "name": "Cellar door log",
                "type": "digital",
                "revealed_in_phase": 3,
                "assigned_to_detective": 3,
                "is_clue": True,
                "points_to": "suspect-999",
            },
        ],
        "phases": [
            {
                "phase": 1,
                "title": "The Body",
                "description": "Victor collapses at the toast.",
                "duration": 20,
                "detective_packets": [
                    {"detective": 1, "name": "Detective Ash", "assigned_evidence": ["EV-001"]},
                    {"detective": 2, "name": "Detective Birch", "assigned_evidence": ["EV-002"]},
                ],
            },
            {"phase": 2, "title": "The Cellar", "duration": 30},
            {"phase": 3, "title": "The Swap", "duration": 15},
        ],
        "red_herrings": [
            {"id": "RH-001", "type": "suspicious_behavior", "target_suspect": "suspect-002"},
        ],
        "true_clues": [
            {"evidence_id": "EV-001", "points_to": "suspect-001", "killer_role": "mastermind"},
            {"evidence_id": "EV-404", "points_to": "suspect-001", "killer_role": "mastermind"},
        ],
        "central_mechanic": {"name": "bottle swap", "phase1_evidence": ["EV-001"]},
        "solution_path": {"minimum_clues_needed": 5, "optimal_path": ["EV-001", "EV-003"]},
    }


def check_payload(status: str = "pass", issues: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "status": status,
        "score": 90 if status == "pass" else 55,
        "summary": f"Check reported {status}",
        "issues": issues or [],
    }


def issue(message: str, severity: str = "error") -> Dict[str, Any]:
    return {"severity": severity, "category": "ALIBI_CONSISTENCY", "message": message}


def happy_responses(**overrides: Any) -> Dict[AgentType, Any]:
    responses = {
        AgentType.STORY_ARCHITECT: story_payload(),
        AgentType.CHARACTER_DESIGNER: characters_payload(),
        AgentType.EVIDENCE_CRAFTER: evidence_payload(),
        AgentType.TIMELINE_AUDITOR: check_payload(),
        AgentType.EVIDENCE_VALIDATOR: check_payload(),
        AgentType.MOTIVE_ANALYZER: check_payload(),
        AgentType.TWIST_FAIRNESS: check_payload(),
    }
    for key, value in overrides.items():
        responses[AgentType(key.replace("_", "-"))] = value
    return responses


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def llm_config():
    """Claude configuration with a dummy key (never sent anywhere)."""
    return LLMConfiguration(
        provider=LLMProvider.CLAUDE,
        claude=ClaudeConfig(api_key=SecretStr("test-key")),
    )


@pytest.fixture
def noir_settings():
    return GenerationSettings.model_validate({
        "theme": "Noir",
        "player_count": 5,
        "murder_method": {"cause": "poison", "stages": 1, "central_mechanic": "bottle swap"},
    })


@pytest.fixture
def make_orchestrator(llm_config):
    """Factory: orchestrator + fake client from a response script."""
    def _make(responses: Optional[Dict[AgentType, Any]] = None):
        client = FakeLLMClient(responses or happy_responses())
        invoker = AgentInvoker(llm_config, llm_client=client, sleep=no_sleep)
        return MysteryOrchestrator(invoker), client
    return _make
