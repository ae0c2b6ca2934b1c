"""
Pydantic data models for the mystery generator.
Every agent artifact is validated against these schemas before the next stage consumes it.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .validation import ValidationState, utc_now


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class HerringStrength(str, Enum):
    SUBTLE = "subtle"
    MODERATE = "moderate"
    STRONG = "strong"


class MotiveStrength(str, Enum):
    EXTREME = "extreme"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class KillerRole(str, Enum):
    MASTERMIND = "mastermind"
    EXECUTOR = "executor"


class RelationshipType(str, Enum):
    """Types of suspect relationships."""
    FAMILY = "family"
    ROMANTIC = "romantic"
    PROFESSIONAL = "professional"
    FRIEND = "friend"
    RIVAL = "rival"
    SECRET = "secret"


class EvidenceType(str, Enum):
    PHYSICAL = "physical"
    DOCUMENT = "document"
    DIGITAL = "digital"
    FORENSIC = "forensic"
    TESTIMONIAL = "testimonial"


class RedHerringType(str, Enum):
    FALSE_ALIBI = "false_alibi"
    MISLEADING_EVIDENCE = "misleading_evidence"
    SUSPICIOUS_BEHAVIOR = "suspicious_behavior"
    FALSE_MOTIVE = "false_motive"
    PLANTED_CLUE = "planted_clue"


class ProjectStatus(str, Enum):
    """Project lifecycle status."""
    DRAFT = "draft"
    GENERATING = "generating"
    VALIDATING = "validating"
    COMPLETE = "complete"
    ERROR = "error"


# ============================================================================
# Input Models
# ============================================================================

class MurderMethodSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    cause: str = Field(..., min_length=1, description="Cause of death, e.g. 'poison'")
    stages: int = Field(default=1, ge=1, le=2, description="Number of murder stages")
    central_mechanic: str = Field(
        default="",
        description="The narrative device the reveal hinges on (e.g. a bottle swap)"
    )


class VictimProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    role: str = ""
    personality: str = ""


class SuspectCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier1: int = Field(default=6, ge=0)
    tier2: int = Field(default=4, ge=0)
    tier3: int = Field(default=4, ge=0)

    @property
    def total(self) -> int:
        return self.tier1 + self.tier2 + self.tier3


class GenerationSettings(BaseModel):
    """
    User-supplied configuration for one generation run.
    Frozen: the pipeline never mutates it after submission.
    """
    model_config = ConfigDict(frozen=True)

    # Theme & Setting
    theme: str = Field(..., min_length=1)
    location: str = "Manor house"
    era: str = "Present day"
    occasion: str = "Dinner party"

    # Scale
    player_count: int = Field(..., ge=1, description="Number of human investigators")
    duration: int = Field(default=90, ge=1, description="Game length in minutes")
    difficulty: Difficulty = Difficulty.MEDIUM

    murder_method: MurderMethodSettings

    # Characters
    victim_profile: VictimProfile = Field(default_factory=VictimProfile)
    killer_count: int = Field(default=1, ge=1, le=2)
    red_herring_strength: HerringStrength = HerringStrength.MODERATE
    suspect_count: SuspectCount = Field(default_factory=SuspectCount)


# ============================================================================
# Story Foundation (Story Architect output)
# ============================================================================

class Victim(BaseModel):
    name: str
    age: Optional[int] = None
    occupation: str = ""
    net_worth: str = ""
    description: str = ""
    background: str = ""
    relationships: List[str] = Field(default_factory=list)
    secrets: List[str] = Field(default_factory=list)


class StorySetting(BaseModel):
    location: str = ""
    location_type: str = ""
    country: str = ""
    city: str = ""
    era: str = ""
    occasion: str = ""
    atmosphere: str = ""
    guest_count: Optional[int] = None


class MurderStage(BaseModel):
    stage: int
    description: str
    time: str = ""
    location: str = ""
    method: str = ""
    perpetrator: str = ""


class MurderMethod(BaseModel):
    primary_cause: str = ""
    stages: List[MurderStage] = Field(default_factory=list)
    cause_of_death: str = ""
    key_mystery: str = ""
    central_mechanic: str = ""


class Mastermind(BaseModel):
    name: str
    relationship: str = ""
    motive: str = ""


class Executor(BaseModel):
    name: str
    relationship: str = ""
    role: str = ""


class StorySolution(BaseModel):
    mastermind: Mastermind
    executor: Executor
    how_it_was_done: str = ""
    how_to_solve: List[str] = Field(default_factory=list)


class StoryFoundation(BaseModel):
    """Narrative foundation consumed read-only by every later stage."""
    title: str = Field(..., min_length=1)
    tagline: str = ""
    victim: Victim
    setting: StorySetting = Field(default_factory=StorySetting)
    murder_method: MurderMethod = Field(default_factory=MurderMethod)
    solution: StorySolution
    themes: List[str] = Field(default_factory=list)


# ============================================================================
# Character Set (Character Designer output)
# ============================================================================

class SuspectMotive(BaseModel):
    summary: str = ""
    strength: MotiveStrength = MotiveStrength.MODERATE
    details: str = ""


class Alibi(BaseModel):
    claimed: str = ""
    actual: str = ""
    verified: bool = False
    witnesses: List[str] = Field(default_factory=list)


class Relationship(BaseModel):
    """Undirected edge in the suspect relationship graph."""
    target_id: str
    target_name: str = ""
    type: RelationshipType = RelationshipType.PROFESSIONAL
    description: str = ""
    is_public: bool = True


class Suspect(BaseModel):
    id: str = Field(..., min_length=1, description="Format: suspect-001")
    tier: int = Field(..., ge=1, le=3)
    name: str
    role: str = ""
    age: Optional[int] = None
    description: str = ""
    personality: List[str] = Field(default_factory=list)
    background: str = ""

    motive: SuspectMotive = Field(default_factory=SuspectMotive)
    alibi: Alibi = Field(default_factory=Alibi)

    secrets: List[str] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    is_killer: bool = False
    killer_role: Optional[KillerRole] = None
    is_red_herring: bool = False

    physical_description: Optional[str] = None
    quirks: List[str] = Field(default_factory=list)


class RedHerringStrategy(BaseModel):
    primary_red_herring: str = ""
    reason: str = ""
    innocence_proof: str = ""


class CharacterSet(BaseModel):
    """Ordered cast of suspects plus their relationship graph."""
    suspects: List[Suspect] = Field(..., min_length=1)
    relationships: List[Relationship] = Field(default_factory=list)
    red_herring_strategy: RedHerringStrategy = Field(default_factory=RedHerringStrategy)

    def suspect_ids(self) -> set:
        return {s.id for s in self.suspects}

    def find_by_name(self, name: str) -> Optional[Suspect]:
        return next((s for s in self.suspects if s.name == name), None)


# ============================================================================
# Evidence Set (Evidence Crafter output)
# ============================================================================

class ForensicDetails(BaseModel):
    analysis: str = ""
    results: str = ""
    significance: str = ""


class DigitalMetadata(BaseModel):
    device: str = ""
    timestamp: str = ""
    data: str = ""


class Evidence(BaseModel):
    id: str = Field(..., min_length=1, description="Format: EV-001")
    name: str
    type: EvidenceType
    description: str = ""

    revealed_in_phase: int = Field(..., ge=1, le=3)
    assigned_to_detective: int = Field(default=1, ge=1, le=5)

    is_clue: bool = Field(default=False, description="True clue vs red herring")
    points_to: Optional[str] = Field(default=None, description="Suspect id this item implicates")

    location: str = ""
    discovery_method: str = ""

    forensic_details: Optional[ForensicDetails] = None
    document_content: Optional[str] = None
    digital_metadata: Optional[DigitalMetadata] = None


class DetectivePacket(BaseModel):
    detective: int = Field(..., ge=1, le=5)
    name: str = ""
    assigned_suspects: List[str] = Field(default_factory=list)
    assigned_evidence: List[str] = Field(default_factory=list)
    special_instructions: str = ""


class PhaseData(BaseModel):
    phase: int = Field(..., ge=1, le=3)
    title: str = ""
    description: str = ""
    duration: int = Field(default=0, ge=0, description="Minutes")
    detective_packets: List[DetectivePacket] = Field(default_factory=list)
    group_clues: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    revelations: List[str] = Field(default_factory=list)


class RedHerring(BaseModel):
    id: str
    type: RedHerringType = RedHerringType.MISLEADING_EVIDENCE
    description: str = ""
    target_suspect: str = ""
    actual_explanation: str = ""
    revealed_in_phase: int = Field(default=1, ge=1, le=3)
    resolution_phase: int = Field(default=3, ge=1, le=3)
    strength: HerringStrength = HerringStrength.MODERATE


class TrueClue(BaseModel):
    evidence_id: str
    points_to: str = ""
    killer_role: KillerRole = KillerRole.MASTERMIND
    how_it_reveals: str = ""
    required_collaboration: List[str] = Field(default_factory=list)
    difficulty_to_spot: str = "medium"


class CentralMechanic(BaseModel):
    name: str = ""
    phase1_evidence: List[str] = Field(default_factory=list)
    phase1_observation: str = ""
    phase2_evidence: List[str] = Field(default_factory=list)
    phase2_observation: str = ""
    phase3_revelation: str = ""
    aha_connection: str = ""


class SolutionPath(BaseModel):
    minimum_clues_needed: int = 5
    optimal_path: List[str] = Field(default_factory=list)
    collaboration_required: str = ""


class EvidenceSet(BaseModel):
    """Evidence chain distributed across three phases and up to five detectives."""
    evidence: List[Evidence] = Field(..., min_length=1)
    phases: List[PhaseData] = Field(default_factory=list)
    red_herrings: List[RedHerring] = Field(default_factory=list)
    true_clues: List[TrueClue] = Field(default_factory=list)
    central_mechanic: CentralMechanic = Field(default_factory=CentralMechanic)
    solution_path: SolutionPath = Field(default_factory=SolutionPath)

    def evidence_ids(self) -> set:
        return {e.id for e in self.evidence}


# ============================================================================
# Project (final artifact)
# ============================================================================

class NarrativeSetting(BaseModel):
    location: str = ""
    time: str = ""
    atmosphere: str = ""


class NarrativeMurderMethod(BaseModel):
    description: str = ""
    stages: List[MurderStage] = Field(default_factory=list)
    central_mechanic: str = ""


class CoreNarrative(BaseModel):
    title: str
    tagline: str = ""
    setting: NarrativeSetting = Field(default_factory=NarrativeSetting)
    premise: str = ""
    murder_method: NarrativeMurderMethod = Field(default_factory=NarrativeMurderMethod)
    themes: List[str] = Field(default_factory=list)


class KillerIdentity(BaseModel):
    suspect_id: Optional[str] = Field(
        default=None,
        description="Id of the matching suspect; None when the cast has no such name"
    )
    name: str
    role: str = Field(..., description="mastermind | executor | sole")


class SolutionNarrative(BaseModel):
    summary: str = ""
    killer_identity: List[KillerIdentity] = Field(default_factory=list)
    motive: str = ""
    opportunity: str = ""
    method: str = ""
    key_evidence: List[str] = Field(default_factory=list)
    timeline: str = ""


class TimelineEvent(BaseModel):
    id: str
    timestamp: str = ""
    time: str = ""
    date: str = ""
    title: str = ""
    description: str = ""
    location: str = ""
    participants: List[str] = Field(default_factory=list)
    type: str = "background"
    importance: str = "minor"
    related_evidence: List[str] = Field(default_factory=list)


class StageArtifacts(BaseModel):
    """Raw stage outputs kept with the project so re-validation can be exact."""
    story: StoryFoundation
    characters: CharacterSet
    evidence: EvidenceSet


class Project(BaseModel):
    """Final assembled mystery, created once when the pipeline completes."""
    id: str
    name: str
    status: ProjectStatus = ProjectStatus.DRAFT
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1, ge=1, description="Bumped on every stored update")
    settings: GenerationSettings
    narrative: Optional[CoreNarrative] = None
    suspects: List[Suspect] = Field(default_factory=list)
    evidence: List[Evidence] = Field(default_factory=list)
    timeline: List[TimelineEvent] = Field(default_factory=list)
    phases: List[PhaseData] = Field(default_factory=list)
    red_herrings: List[RedHerring] = Field(default_factory=list)
    solution: Optional[SolutionNarrative] = None
    validation: Optional[ValidationState] = None
    artifacts: Optional[StageArtifacts] = None


class ProjectListItem(BaseModel):
    id: str
    name: str
    status: ProjectStatus
    suspect_count: int
    evidence_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_project(cls, project: Project) -> "ProjectListItem":
        return cls(
            id=project.id,
            name=project.name,
            status=project.status,
            suspect_count=len(project.suspects),
            evidence_count=len(project.evidence),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


def dump_for_prompt(model: BaseModel, **kwargs: Any) -> Dict[str, Any]:
    """JSON-safe dict of a model, without None fields, for agent prompts."""
    return model.model_dump(mode="json", exclude_none=True, **kwargs)
