"""
Validation checks and their aggregation.

Four independent auditors (timeline, evidence, motive, twist fairness) run
concurrently over the same ValidationInput; their verdicts are merged into a
single ValidationState.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type

from ..config import AgentType
from ..models import (
    CharacterSet,
    CheckOutput,
    CheckStatus,
    EvidenceSet,
    EvidenceValidatorOutput,
    MotiveAnalyzerOutput,
    OverallStatus,
    ResultStatus,
    StoryFoundation,
    TimelineAuditorOutput,
    TokenUsage,
    TwistFairnessOutput,
    ValidationAgentResult,
    ValidationAgentType,
    ValidationState,
    dump_for_prompt,
)
from .base import AgentInvoker, AgentResult, ProgressCallback
from .stages import MAX_DETECTIVES, format_agent_input

logger = logging.getLogger("orchestrator.validators")

TIMELINE_EVIDENCE_TYPES = {"timeline", "digital", "testimonial"}

CHECKLISTS: Dict[ValidationAgentType, list] = {
    ValidationAgentType.TIMELINE_AUDITOR: [
        "CHRONOLOGICAL_ORDER: All events in correct sequence",
        "ALIBI_CONSISTENCY: No suspect in two places at once",
        "MURDER_WINDOW: Killers have opportunity during window",
        "WITNESS_VERIFICATION: Statements align with timeline",
        "DEPARTURE_SEQUENCE: Guest departures don't conflict",
    ],
    ValidationAgentType.EVIDENCE_VALIDATOR: [
        "ID_UNIQUENESS: All evidence IDs unique and formatted correctly",
        "FORENSIC_CONSISTENCY: Lab results consistent across reports",
        "CENTRAL_MECHANIC: Phase evidence properly sets up revelation",
        "PHASE_ASSIGNMENT: Evidence appears in correct phases",
        "CHAIN_OF_CUSTODY: All evidence has location and discovery method",
    ],
    ValidationAgentType.MOTIVE_ANALYZER: [
        "KILLER_ACCESS: Killers can reach murder location",
        "MOTIVE_STRENGTH: Killer motives are compelling",
        "OPPORTUNITY_WINDOW: Killers have alibi gaps during murder",
        "RED_HERRING_STRENGTH: Red herrings appear more guilty",
        "ALIBI_STRUCTURE: Killers have weak alibis, innocents have strong ones",
    ],
    ValidationAgentType.TWIST_FAIRNESS: [
        "CLUE_PLANTING: All solution clues present before Phase 3",
        "RED_HERRING_BALANCE: Red herrings mislead but don't block",
        "DETECTIVE_DISTRIBUTION: No single detective can solve alone",
        "SOLVABILITY: Mystery solvable with available clues",
        "AHA_MOMENT: Central mechanic creates fair reveal",
    ],
}

# Merge order of the aggregated verdict
CHECK_ORDER = (
    ValidationAgentType.TIMELINE_AUDITOR,
    ValidationAgentType.EVIDENCE_VALIDATOR,
    ValidationAgentType.MOTIVE_ANALYZER,
    ValidationAgentType.TWIST_FAIRNESS,
)

CHECK_AGENTS: Dict[ValidationAgentType, AgentType] = {
    ValidationAgentType.TIMELINE_AUDITOR: AgentType.TIMELINE_AUDITOR,
    ValidationAgentType.EVIDENCE_VALIDATOR: AgentType.EVIDENCE_VALIDATOR,
    ValidationAgentType.MOTIVE_ANALYZER: AgentType.MOTIVE_ANALYZER,
    ValidationAgentType.TWIST_FAIRNESS: AgentType.TWIST_FAIRNESS,
}

CHECK_OUTPUT_MODELS: Dict[ValidationAgentType, Type[CheckOutput]] = {
    ValidationAgentType.TIMELINE_AUDITOR: TimelineAuditorOutput,
    ValidationAgentType.EVIDENCE_VALIDATOR: EvidenceValidatorOutput,
    ValidationAgentType.MOTIVE_ANALYZER: MotiveAnalyzerOutput,
    ValidationAgentType.TWIST_FAIRNESS: TwistFairnessOutput,
}


@dataclass
class ValidationInput:
    """Everything the auditors look at: the three generation artifacts."""
    story: StoryFoundation
    characters: CharacterSet
    evidence: EvidenceSet


@dataclass
class ValidationReport:
    state: ValidationState
    tokens_used: TokenUsage = field(default_factory=TokenUsage)
    issue_count: int = 0


# ============================================================================
# Input formatters
# ============================================================================

def format_timeline_input(data: ValidationInput) -> Dict[str, Any]:
    return {
        "instructions": (
            "Analyze the timeline for chronological consistency, alibi conflicts, "
            "and murder window validity."
        ),
        "murder_method": dump_for_prompt(data.story.murder_method),
        "solution": dump_for_prompt(data.story.solution),
        "suspects": [
            {
                **dump_for_prompt(s, include={"id", "name", "is_killer", "killer_role", "alibi"}),
                "at_party": True,
            }
            for s in data.characters.suspects
        ],
        "evidence": [
            dump_for_prompt(e) for e in data.evidence.evidence
            if e.type.value in TIMELINE_EVIDENCE_TYPES
        ],
        "phases": [dump_for_prompt(p) for p in data.evidence.phases],
        "check_list": CHECKLISTS[ValidationAgentType.TIMELINE_AUDITOR],
    }


def format_evidence_check_input(data: ValidationInput) -> Dict[str, Any]:
    evidence = data.evidence
    return {
        "instructions": (
            "Validate evidence chain integrity, ID uniqueness, forensic consistency, "
            "and central mechanic validity."
        ),
        "evidence": [dump_for_prompt(e) for e in evidence.evidence],
        "phases": [dump_for_prompt(p) for p in evidence.phases],
        "central_mechanic": dump_for_prompt(evidence.central_mechanic),
        "true_clues": [dump_for_prompt(c) for c in evidence.true_clues],
        "red_herrings": [dump_for_prompt(r) for r in evidence.red_herrings],
        "check_list": CHECKLISTS[ValidationAgentType.EVIDENCE_VALIDATOR],
    }


def format_motive_input(data: ValidationInput) -> Dict[str, Any]:
    return {
        "instructions": (
            "Validate that killers have valid motives and opportunity, while red herrings "
            "appear guilty but can be proven innocent."
        ),
        "solution": dump_for_prompt(data.story.solution),
        "murder_method": dump_for_prompt(data.story.murder_method),
        "suspects": [dump_for_prompt(s) for s in data.characters.suspects],
        "red_herring_strategy": dump_for_prompt(data.characters.red_herring_strategy),
        "evidence": [
            dump_for_prompt(e) for e in data.evidence.evidence
            if e.is_clue or e.type.value == "testimonial"
        ],
        "check_list": CHECKLISTS[ValidationAgentType.MOTIVE_ANALYZER],
    }


def detective_count(evidence: EvidenceSet) -> int:
    if evidence.phases and evidence.phases[0].detective_packets:
        return len(evidence.phases[0].detective_packets)
    return MAX_DETECTIVES


def format_twist_input(data: ValidationInput) -> Dict[str, Any]:
    evidence = data.evidence
    return {
        "instructions": (
            "Ensure the mystery is solvable through logical deduction without hindsight, "
            "luck, or unfair leaps."
        ),
        "solution": dump_for_prompt(data.story.solution),
        "phases": [dump_for_prompt(p) for p in evidence.phases],
        "true_clues": [dump_for_prompt(c) for c in evidence.true_clues],
        "red_herrings": [dump_for_prompt(r) for r in evidence.red_herrings],
        "central_mechanic": dump_for_prompt(evidence.central_mechanic),
        "solution_path": dump_for_prompt(evidence.solution_path),
        "detective_count": detective_count(evidence),
        "check_list": CHECKLISTS[ValidationAgentType.TWIST_FAIRNESS],
    }


CHECK_FORMATTERS = {
    ValidationAgentType.TIMELINE_AUDITOR: format_timeline_input,
    ValidationAgentType.EVIDENCE_VALIDATOR: format_evidence_check_input,
    ValidationAgentType.MOTIVE_ANALYZER: format_motive_input,
    ValidationAgentType.TWIST_FAIRNESS: format_twist_input,
}


# ============================================================================
# Checks
# ============================================================================

async def run_check(
    invoker: AgentInvoker,
    check: ValidationAgentType,
    data: ValidationInput,
    on_progress: Optional[ProgressCallback] = None,
) -> AgentResult:
    """Run one auditor over the input."""
    return await invoker.invoke_with_retry(
        CHECK_AGENTS[check],
        format_agent_input(CHECK_FORMATTERS[check](data)),
        on_progress=on_progress,
        response_model=CHECK_OUTPUT_MODELS[check],
    )


async def run_all_validators(
    invoker: AgentInvoker,
    data: ValidationInput,
    on_progress: Optional[ProgressCallback] = None,
) -> Dict[ValidationAgentType, AgentResult]:
    """
    Fan out the four checks and wait for all of them to settle.

    The invoker turns failures into results, so one failed check never
    cancels its siblings.
    """
    results = await asyncio.gather(*(
        run_check(invoker, check, data, on_progress) for check in CHECK_ORDER
    ))
    return dict(zip(CHECK_ORDER, results))


# ============================================================================
# Aggregation
# ============================================================================

def to_validation_result(agent: ValidationAgentType, output: CheckOutput) -> ValidationAgentResult:
    status = {
        CheckStatus.PASS: ResultStatus.PASS,
        CheckStatus.WARNING: ResultStatus.WARN,
    }.get(output.status, ResultStatus.FAIL)
    return ValidationAgentResult(
        agent=agent,
        status=status,
        score=output.score,
        summary=output.summary,
        issues=list(output.issues),
    )


def overall_status(agents: list) -> OverallStatus:
    statuses = {a.status for a in agents}
    if ResultStatus.FAIL in statuses:
        return OverallStatus.ERRORS
    if ResultStatus.WARN in statuses:
        return OverallStatus.WARNINGS
    return OverallStatus.VALID


def aggregate_validation(results: Dict[ValidationAgentType, AgentResult]) -> ValidationReport:
    """Merge check results in fixed order; failed checks are omitted."""
    agents = []
    tokens = TokenUsage()

    for check in CHECK_ORDER:
        result = results.get(check)
        if result is None:
            continue
        if not result.success or result.data is None:
            logger.warning(f"[aggregate_validation] {check.value} omitted: {result.error}")
            continue
        agents.append(to_validation_result(check, result.data))
        tokens = tokens + result.tokens_used

    state = ValidationState(overall_status=overall_status(agents), agents=agents)
    logger.info(
        f"[aggregate_validation] overall={state.overall_status.value}, "
        f"checks={len(agents)}/{len(CHECK_ORDER)}, issues={state.issue_count}"
    )
    return ValidationReport(state=state, tokens_used=tokens, issue_count=state.issue_count)

