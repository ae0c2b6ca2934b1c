"""
Generation stages: Story Architect -> Character Designer -> Evidence Crafter.

Each stage is a pure input formatter plus a coroutine that runs the agent
through the retrying invoker and validates the answer against its schema.
"""

import json
from typing import Any, Dict, Optional

from ..config import CONTENT_HEAVY_MAX_TOKENS, AgentConfig, AgentType
from ..models import (
    CharacterSet,
    EvidenceSet,
    GenerationSettings,
    StoryFoundation,
    SuspectCount,
    dump_for_prompt,
)
from .base import AgentInvoker, AgentResult, ProgressCallback

PHASE_STRUCTURE = [
    {"phase": 1, "duration": 20, "purpose": "Establish facts, plant early clues"},
    {"phase": 2, "duration": 30, "purpose": "Deepen investigation, create contradictions"},
    {"phase": 3, "duration": 15, "purpose": "Twist revelation, key connections"},
]

MAX_DETECTIVES = 5


def format_agent_input(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, default=str)


# ============================================================================
# Story Architect
# ============================================================================

def format_story_input(settings: GenerationSettings) -> Dict[str, Any]:
    method = settings.murder_method
    return {
        "instructions": "Create the foundational narrative for a murder mystery game based on these settings.",
        "settings": dump_for_prompt(settings, exclude={"suspect_count"}),
        "requirements": [
            f"Create a mystery for {settings.player_count} players lasting {settings.duration} minutes",
            f"Difficulty level: {settings.difficulty.value}",
            f"Murder method: {method.cause} with {method.stages} stage(s)",
            f"Central mechanic: {method.central_mechanic}",
            f"Number of killers: {settings.killer_count}",
            f"Red herring strength: {settings.red_herring_strength.value}",
        ],
    }


async def run_story_architect(
    invoker: AgentInvoker,
    settings: GenerationSettings,
    on_progress: Optional[ProgressCallback] = None,
) -> AgentResult:
    """Produce the StoryFoundation for a run."""
    return await invoker.invoke_with_retry(
        AgentType.STORY_ARCHITECT,
        format_agent_input(format_story_input(settings)),
        on_progress=on_progress,
        response_model=StoryFoundation,
    )


# ============================================================================
# Character Designer
# ============================================================================

def format_character_input(story: StoryFoundation, suspect_count: SuspectCount) -> Dict[str, Any]:
    foundation = dump_for_prompt(story, include={"title", "victim", "setting", "murder_method", "solution", "themes"})
    return {
        "instructions": "Create the full cast of suspects for this murder mystery based on the story foundation.",
        "story_foundation": foundation,
        "requirements": {
            "suspect_count": suspect_count.model_dump(),
            "total_suspects": suspect_count.total,
            "tier1_description": "Core suspects with full profiles, strong motives, detailed evidence connections",
            "tier2_description": "Secondary suspects with medium profiles, moderate involvement",
            "tier3_description": "Background characters for alibis and atmosphere",
        },
        "killer_identities": {
            "mastermind": story.solution.mastermind.name,
            "executor": story.solution.executor.name,
        },
        "guidelines": [
            "Include the identified killers in Tier 1",
            "Create 2-3 strong red herrings in Tier 1",
            "Ensure complex relationship web between suspects",
            "Each Tier 1 suspect needs: full backstory, strong motive, alibi with holes, secrets",
            "Red herring should appear MORE guilty than actual killers",
            "All suspects need unique IDs in format: suspect-001, suspect-002, etc.",
        ],
    }


async def run_character_designer(
    invoker: AgentInvoker,
    story: StoryFoundation,
    suspect_count: SuspectCount,
    on_progress: Optional[ProgressCallback] = None,
) -> AgentResult:
    """Produce the CharacterSet from a story foundation."""
    return await invoker.invoke_with_retry(
        AgentType.CHARACTER_DESIGNER,
        format_agent_input(format_character_input(story, suspect_count)),
        config=AgentConfig(max_tokens=CONTENT_HEAVY_MAX_TOKENS),
        on_progress=on_progress,
        response_model=CharacterSet,
    )


# ============================================================================
# Evidence Crafter
# ============================================================================

def format_evidence_input(
    story: StoryFoundation,
    characters: CharacterSet,
    settings: GenerationSettings,
) -> Dict[str, Any]:
    foundation = dump_for_prompt(story, include={"title", "victim", "murder_method", "solution"})
    foundation["central_mechanic"] = story.murder_method.central_mechanic

    suspects = [
        dump_for_prompt(s, include={"id", "name", "tier", "is_killer", "killer_role", "is_red_herring", "motive", "alibi"})
        for s in characters.suspects
    ]

    return {
        "instructions": (
            "Create the complete evidence chain for this murder mystery, "
            "distributed across phases and detectives."
        ),
        "story_foundation": foundation,
        "suspects": suspects,
        "relationships": [dump_for_prompt(r) for r in characters.relationships],
        "red_herring_strategy": dump_for_prompt(characters.red_herring_strategy),
        "game_parameters": {
            "player_count": settings.player_count,
            "detective_count": min(settings.player_count, MAX_DETECTIVES),
            "duration": settings.duration,
            "difficulty": settings.difficulty.value,
        },
        "requirements": {
            "evidence_count": "15-25 items",
            "phase_structure": PHASE_STRUCTURE,
            "true_clues_minimum": 5,
            "red_herrings_minimum": 12,
        },
        "guidelines": [
            "Each detective gets 3-5 unique evidence items per phase",
            "No single detective can solve the mystery alone",
            "True clues require cross-detective collaboration",
            "Red herrings must be eliminable through investigation",
            "Central mechanic evidence must be distributed across phases",
            "Evidence IDs in format: EV-001, EV-002, etc.",
        ],
    }


async def run_evidence_crafter(
    invoker: AgentInvoker,
    story: StoryFoundation,
    characters: CharacterSet,
    settings: GenerationSettings,
    on_progress: Optional[ProgressCallback] = None,
) -> AgentResult:
    """Produce the EvidenceSet from the foundation and cast."""
    return await invoker.invoke_with_retry(
        AgentType.EVIDENCE_CRAFTER,
        format_agent_input(format_evidence_input(story, characters, settings)),
        config=AgentConfig(max_tokens=CONTENT_HEAVY_MAX_TOKENS),
        on_progress=on_progress,
        response_model=EvidenceSet,
    )
