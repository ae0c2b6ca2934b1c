"""
Validation models: the per-check outputs returned by the four validation agents
and the aggregated verdict stored on a project.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CheckStatus(str, Enum):
    """Status reported by a validation agent."""
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class ResultStatus(str, Enum):
    """Status recorded on a project for one check."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class OverallStatus(str, Enum):
    VALID = "valid"
    WARNINGS = "warnings"
    ERRORS = "errors"
    NOT_VALIDATED = "not_validated"


class ValidationAgentType(str, Enum):
    TIMELINE_AUDITOR = "timeline_auditor"
    EVIDENCE_VALIDATOR = "evidence_validator"
    MOTIVE_ANALYZER = "motive_analyzer"
    TWIST_FAIRNESS = "twist_fairness"


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueTarget(BaseModel):
    type: str = Field(..., description="suspect | evidence | timeline | phase")
    id: str
    field: Optional[str] = None


class FixSuggestion(BaseModel):
    description: str
    action: str = Field(default="update", description="update | delete | add")
    target: Optional[IssueTarget] = None
    suggested_value: Optional[Any] = None
    auto_applicable: bool = False


class ValidationIssue(BaseModel):
    id: str = ""
    severity: IssueSeverity
    category: str = "general"
    message: str
    details: str = ""
    location: Optional[IssueTarget] = None
    suggestion: Optional[FixSuggestion] = None


class CheckOutput(BaseModel):
    """Fields shared by every validation agent response."""
    status: CheckStatus
    score: float = Field(default=0, ge=0, le=100)
    summary: str = ""
    issues: List[ValidationIssue] = Field(default_factory=list)


# ============================================================================
# Timeline Auditor
# ============================================================================

class KillerOpportunity(BaseModel):
    name: str = ""
    has_opportunity: bool = False
    explanation: str = ""


class MurderWindow(BaseModel):
    start: str = ""
    end: str = ""
    is_valid: bool = True
    killer_opportunity: dict = Field(
        default_factory=dict,
        description="mastermind/executor -> KillerOpportunity"
    )


class AlibiGap(BaseModel):
    start: str = ""
    end: str = ""
    explanation: str = ""


class AlibiAnalysis(BaseModel):
    suspect_id: str
    suspect_name: str = ""
    claimed_alibi: str = ""
    verified: bool = False
    gaps: List[AlibiGap] = Field(default_factory=list)
    in_murder_window: bool = False
    could_be_killer: bool = False


class TimelineAuditorOutput(CheckOutput):
    murder_window: MurderWindow = Field(default_factory=MurderWindow)
    alibi_analysis: List[AlibiAnalysis] = Field(default_factory=list)


# ============================================================================
# Evidence Validator
# ============================================================================

class IdValidation(BaseModel):
    all_unique: bool = True
    format_consistent: bool = True
    duplicates: List[str] = Field(default_factory=list)
    malformed_ids: List[str] = Field(default_factory=list)


class ForensicConsistency(BaseModel):
    toxicology_match: bool = True
    fingerprint_logic: bool = True
    dna_consistency: bool = True
    issues: List[str] = Field(default_factory=list)


class MechanicCheck(BaseModel):
    name: str = ""
    is_valid: bool = True
    phase1_setup: str = ""
    phase2_contradiction: str = ""
    phase3_resolution: str = ""
    issues: List[str] = Field(default_factory=list)


class EvidenceValidatorOutput(CheckOutput):
    id_validation: IdValidation = Field(default_factory=IdValidation)
    forensic_consistency: ForensicConsistency = Field(default_factory=ForensicConsistency)
    central_mechanic: MechanicCheck = Field(default_factory=MechanicCheck)


# ============================================================================
# Motive Analyzer
# ============================================================================

class FactorAnalysis(BaseModel):
    is_valid: bool = True
    issues: List[str] = Field(default_factory=list)


class KillerAnalysis(BaseModel):
    suspect_id: str
    name: str = ""
    role: str = "mastermind"
    motive_analysis: FactorAnalysis = Field(default_factory=FactorAnalysis)
    opportunity_analysis: FactorAnalysis = Field(default_factory=FactorAnalysis)
    means_analysis: FactorAnalysis = Field(default_factory=FactorAnalysis)
    overall_validity: bool = True


class RedHerringAnalysis(BaseModel):
    suspect_id: str
    name: str = ""
    guilt_appearance_score: float = 0
    why_they_look_guilty: str = ""
    innocence_provable: bool = True
    proof: str = ""


class MotiveAnalyzerOutput(CheckOutput):
    killer_analysis: List[KillerAnalysis] = Field(default_factory=list)
    red_herring_analysis: List[RedHerringAnalysis] = Field(default_factory=list)


# ============================================================================
# Twist Fairness
# ============================================================================

class SolvabilityAnalysis(BaseModel):
    is_solvable: bool = True
    clues_available_before_reveal: int = 0
    clues_needed_to_solve: int = 0
    solvability_path: List[str] = Field(default_factory=list)


class CluePlanting(BaseModel):
    all_clues_planted: bool = True
    planted_before_phase3: int = 0
    issues: List[str] = Field(default_factory=list)


class RedHerringBalance(BaseModel):
    total_red_herrings: int = 0
    blocking_solution: int = 0
    misleading_but_fair: int = 0


class DetectiveDistribution(BaseModel):
    is_balanced: bool = True
    collaboration_required: bool = True
    collaboration_points: List[str] = Field(default_factory=list)


class AhaMoment(BaseModel):
    central_mechanic: str = ""
    is_discoverable: bool = True
    feels_fair: bool = True


class TwistFairnessOutput(CheckOutput):
    solvability_analysis: SolvabilityAnalysis = Field(default_factory=SolvabilityAnalysis)
    clue_planting: CluePlanting = Field(default_factory=CluePlanting)
    red_herring_balance: RedHerringBalance = Field(default_factory=RedHerringBalance)
    detective_distribution: DetectiveDistribution = Field(default_factory=DetectiveDistribution)
    aha_moment: AhaMoment = Field(default_factory=AhaMoment)


# ============================================================================
# Aggregated verdict
# ============================================================================

class ValidationAgentResult(BaseModel):
    agent: ValidationAgentType
    status: ResultStatus
    score: float = 0
    summary: str = ""
    issues: List[ValidationIssue] = Field(default_factory=list)
    run_at: datetime = Field(default_factory=utc_now)


class ValidationState(BaseModel):
    last_validated: datetime = Field(default_factory=utc_now)
    overall_status: OverallStatus = OverallStatus.NOT_VALIDATED
    agents: List[ValidationAgentResult] = Field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return sum(len(a.issues) for a in self.agents)
