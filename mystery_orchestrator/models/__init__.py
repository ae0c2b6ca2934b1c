"""
Mystery Orchestrator Data Models
Pydantic schemas for settings, stage artifacts, validation and events.
"""

from .events import (
    TERMINAL_EVENTS,
    GenerationEvent,
    GenerationEventType,
    TokenUsage,
)
from .schemas import (
    Alibi,
    CentralMechanic,
    CharacterSet,
    CoreNarrative,
    DetectivePacket,
    # Enums
    Difficulty,
    Evidence,
    EvidenceSet,
    EvidenceType,
    Executor,
    # Input Models
    GenerationSettings,
    HerringStrength,
    KillerIdentity,
    KillerRole,
    Mastermind,
    MotiveStrength,
    MurderMethod,
    MurderMethodSettings,
    MurderStage,
    NarrativeMurderMethod,
    NarrativeSetting,
    PhaseData,
    # Project Models
    Project,
    ProjectListItem,
    ProjectStatus,
    RedHerring,
    RedHerringStrategy,
    RedHerringType,
    Relationship,
    RelationshipType,
    SolutionNarrative,
    SolutionPath,
    StageArtifacts,
    # Stage Artifacts
    StoryFoundation,
    StorySetting,
    StorySolution,
    Suspect,
    SuspectCount,
    SuspectMotive,
    TimelineEvent,
    TrueClue,
    Victim,
    VictimProfile,
    dump_for_prompt,
)
from .validation import (
    CheckOutput,
    CheckStatus,
    EvidenceValidatorOutput,
    IssueSeverity,
    IssueTarget,
    FixSuggestion,
    MotiveAnalyzerOutput,
    OverallStatus,
    ResultStatus,
    TimelineAuditorOutput,
    TwistFairnessOutput,
    ValidationAgentResult,
    ValidationAgentType,
    ValidationIssue,
    ValidationState,
    utc_now,
)

__all__ = [
    "Difficulty",
    "HerringStrength",
    "MotiveStrength",
    "KillerRole",
    "RelationshipType",
    "EvidenceType",
    "RedHerringType",
    "ProjectStatus",
    "MurderMethodSettings",
    "VictimProfile",
    "SuspectCount",
    "GenerationSettings",
    "Victim",
    "StorySetting",
    "MurderStage",
    "MurderMethod",
    "Mastermind",
    "Executor",
    "StorySolution",
    "StoryFoundation",
    "SuspectMotive",
    "Alibi",
    "Relationship",
    "Suspect",
    "RedHerringStrategy",
    "CharacterSet",
    "Evidence",
    "DetectivePacket",
    "PhaseData",
    "RedHerring",
    "TrueClue",
    "CentralMechanic",
    "SolutionPath",
    "EvidenceSet",
    "NarrativeSetting",
    "NarrativeMurderMethod",
    "CoreNarrative",
    "KillerIdentity",
    "SolutionNarrative",
    "TimelineEvent",
    "StageArtifacts",
    "Project",
    "ProjectListItem",
    "dump_for_prompt",
    "CheckStatus",
    "ResultStatus",
    "OverallStatus",
    "ValidationAgentType",
    "IssueSeverity",
    "IssueTarget",
    "FixSuggestion",
    "ValidationIssue",
    "CheckOutput",
    "TimelineAuditorOutput",
    "EvidenceValidatorOutput",
    "MotiveAnalyzerOutput",
    "TwistFairnessOutput",
    "ValidationAgentResult",
    "ValidationState",
    "utc_now",
    "TokenUsage",
    "GenerationEventType",
    "GenerationEvent",
    "TERMINAL_EVENTS",
]
