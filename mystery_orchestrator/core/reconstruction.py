"""
Rebuild a validation input from a stored project.

Projects saved with their stage artifacts are validated exactly. Older records
only carry the assembled fields, so the foundation, cast and evidence set are
approximated from them with fixed placeholders where nothing was kept.
"""

import logging

from ..agents import ValidationInput
from ..models import (
    CentralMechanic,
    CharacterSet,
    EvidenceSet,
    Executor,
    KillerRole,
    Mastermind,
    MurderMethod,
    Project,
    RedHerringStrategy,
    SolutionPath,
    StoryFoundation,
    StorySetting,
    StorySolution,
    TrueClue,
    Victim,
)

logger = logging.getLogger("orchestrator.reconstruction")


class ReconstructionError(ValueError):
    """The stored project lacks the data needed for validation."""


def validation_input_for(project: Project) -> ValidationInput:
    """Exact input from stored artifacts, or the lossy rebuild."""
    if project.artifacts is not None:
        artifacts = project.artifacts
        return ValidationInput(
            story=artifacts.story,
            characters=artifacts.characters,
            evidence=artifacts.evidence,
        )
    logger.info(f"[validation_input_for] Project {project.id} has no stage artifacts, reconstructing")
    return reconstruct_validation_input(project)


def reconstruct_validation_input(project: Project) -> ValidationInput:
    if not project.suspects or not project.evidence:
        raise ReconstructionError("Project has no suspects or evidence to validate")

    narrative = project.narrative
    solution = project.solution
    method_settings = project.settings.murder_method
    killers = solution.killer_identity if solution else []

    mastermind_name = killers[0].name if killers else ""
    executor_name = killers[1].name if len(killers) > 1 else mastermind_name

    story = StoryFoundation(
        title=narrative.title if narrative else project.name,
        tagline=narrative.tagline if narrative else "",
        victim=Victim(name="Victim", age=50, occupation="Unknown", net_worth="Unknown"),
        setting=StorySetting(
            location=narrative.setting.location if narrative else "",
            location_type="Estate",
            country="Unknown",
            city="Unknown",
            era=narrative.setting.time if narrative else "",
            atmosphere=narrative.setting.atmosphere if narrative else "",
            guest_count=20,
        ),
        murder_method=MurderMethod(
            primary_cause=method_settings.cause,
            stages=list(narrative.murder_method.stages) if narrative else [],
            cause_of_death=narrative.murder_method.description if narrative else "",
            central_mechanic=method_settings.central_mechanic,
        ),
        solution=StorySolution(
            mastermind=Mastermind(name=mastermind_name, motive=solution.motive if solution else ""),
            executor=Executor(name=executor_name, role="executor"),
            how_it_was_done=solution.summary if solution else "",
        ),
        themes=list(narrative.themes) if narrative else [],
    )

    red_herring = next((s for s in project.suspects if s.is_red_herring), None)
    characters = CharacterSet(
        suspects=project.suspects,
        relationships=[r for s in project.suspects for r in s.relationships],
        red_herring_strategy=RedHerringStrategy(
            primary_red_herring=red_herring.id if red_herring else "",
        ),
    )

    evidence = EvidenceSet(
        evidence=project.evidence,
        phases=project.phases,
        red_herrings=project.red_herrings,
        true_clues=[
            TrueClue(evidence_id=e.id, points_to=e.points_to or "", killer_role=KillerRole.MASTERMIND)
            for e in project.evidence if e.is_clue
        ],
        central_mechanic=CentralMechanic(name=method_settings.central_mechanic),
        solution_path=SolutionPath(minimum_clues_needed=5),
    )

    return ValidationInput(story=story, characters=characters, evidence=evidence)
