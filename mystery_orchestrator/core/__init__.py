"""
Mystery Orchestrator Core Module
Pipeline orchestration, project assembly and re-validation input rebuilding.
"""

from .pipeline import (
    MysteryOrchestrator,
    PipelineState,
    PipelineStatus,
    ProgressBand,
    StageOutcome,
    assemble_project,
    prune_validation_references,
)
from .reconstruction import (
    ReconstructionError,
    reconstruct_validation_input,
    validation_input_for,
)

__all__ = [
    "MysteryOrchestrator",
    "PipelineState",
    "PipelineStatus",
    "ProgressBand",
    "StageOutcome",
    "assemble_project",
    "prune_validation_references",
    "ReconstructionError",
    "reconstruct_validation_input",
    "validation_input_for",
]
