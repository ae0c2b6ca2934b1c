"""
Mystery Orchestrator Prompts Module
System prompts for every generation and validation agent.
"""

from typing import Dict

from ..config import AgentType
from .character_designer import CHARACTER_DESIGNER_SYSTEM_PROMPT
from .evidence_crafter import EVIDENCE_CRAFTER_SYSTEM_PROMPT
from .story_architect import STORY_ARCHITECT_SYSTEM_PROMPT
from .validators import (
    EVIDENCE_VALIDATOR_SYSTEM_PROMPT,
    MOTIVE_ANALYZER_SYSTEM_PROMPT,
    TIMELINE_AUDITOR_SYSTEM_PROMPT,
    TWIST_FAIRNESS_SYSTEM_PROMPT,
)

SYSTEM_PROMPTS: Dict[AgentType, str] = {
    AgentType.STORY_ARCHITECT: STORY_ARCHITECT_SYSTEM_PROMPT,
    AgentType.CHARACTER_DESIGNER: CHARACTER_DESIGNER_SYSTEM_PROMPT,
    AgentType.EVIDENCE_CRAFTER: EVIDENCE_CRAFTER_SYSTEM_PROMPT,
    AgentType.TIMELINE_AUDITOR: TIMELINE_AUDITOR_SYSTEM_PROMPT,
    AgentType.EVIDENCE_VALIDATOR: EVIDENCE_VALIDATOR_SYSTEM_PROMPT,
    AgentType.MOTIVE_ANALYZER: MOTIVE_ANALYZER_SYSTEM_PROMPT,
    AgentType.TWIST_FAIRNESS: TWIST_FAIRNESS_SYSTEM_PROMPT,
}

__all__ = [
    "SYSTEM_PROMPTS",
    "STORY_ARCHITECT_SYSTEM_PROMPT",
    "CHARACTER_DESIGNER_SYSTEM_PROMPT",
    "EVIDENCE_CRAFTER_SYSTEM_PROMPT",
    "TIMELINE_AUDITOR_SYSTEM_PROMPT",
    "EVIDENCE_VALIDATOR_SYSTEM_PROMPT",
    "MOTIVE_ANALYZER_SYSTEM_PROMPT",
    "TWIST_FAIRNESS_SYSTEM_PROMPT",
]
