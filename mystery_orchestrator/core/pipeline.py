"""
Mystery generation pipeline.

Sequences Story -> Character -> Evidence, fans out the four validation checks,
assembles the final Project and reports every step as an ordered stream of
GenerationEvents.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from ..agents import (
    AgentInvoker,
    AgentProgress,
    AgentResult,
    ValidationInput,
    ValidationReport,
    aggregate_validation,
    run_all_validators,
    run_character_designer,
    run_evidence_crafter,
    run_story_architect,
)
from ..config import AgentType
from ..models import (
    CharacterSet,
    CoreNarrative,
    EvidenceSet,
    GenerationEvent,
    GenerationEventType,
    GenerationSettings,
    IssueTarget,
    KillerIdentity,
    KillerRole,
    NarrativeMurderMethod,
    NarrativeSetting,
    OverallStatus,
    Project,
    ProjectStatus,
    SolutionNarrative,
    StageArtifacts,
    StoryFoundation,
    TokenUsage,
    ValidationState,
    utc_now,
)

logger = logging.getLogger("orchestrator.pipeline")

OPPORTUNITY_TEXT = "During the murder window when alibis had gaps"


class PipelineStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    VALIDATING = "validating"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressBand:
    """Slice of overall progress owned by one stage."""
    start: float
    end: float

    def scale(self, agent_progress: float) -> float:
        return self.start + (self.end - self.start) * max(0.0, min(agent_progress, 100.0)) / 100.0


STORY_BAND = ProgressBand(5, 25)
CHARACTER_BAND = ProgressBand(30, 50)
EVIDENCE_BAND = ProgressBand(55, 75)
VALIDATION_BAND = ProgressBand(78, 95)


@dataclass
class PipelineState:
    """Mutable state of one run. Owned by a single generate() call."""
    project_id: str
    settings: GenerationSettings
    status: PipelineStatus = PipelineStatus.IDLE
    current_agent: Optional[AgentType] = None
    progress: float = 0
    tokens_used: TokenUsage = field(default_factory=TokenUsage)
    story: Optional[StoryFoundation] = None
    characters: Optional[CharacterSet] = None
    evidence: Optional[EvidenceSet] = None
    validation: Optional[ValidationReport] = None
    error: Optional[str] = None
    inflight: Optional[asyncio.Future] = None

    def advance(self, progress: float) -> float:
        """Move progress forward; it never goes back."""
        self.progress = max(self.progress, progress)
        return self.progress


@dataclass
class StageOutcome:
    """Tagged result of one stage step, used to short-circuit the chain."""
    ok: bool
    value: Any = None
    error: Optional[str] = None
    tokens_used: TokenUsage = field(default_factory=TokenUsage)

    @classmethod
    def from_result(cls, result: AgentResult) -> "StageOutcome":
        if result.success:
            return cls(ok=True, value=result.data, tokens_used=result.tokens_used)
        return cls(ok=False, error=result.error or "Unknown error")


Reporter = Callable[[AgentProgress], None]


@dataclass
class StageStep:
    """One generation stage: how to run it and how to fold its output into the state."""
    agent: AgentType
    band: ProgressBand
    start_message: str
    run: Callable[[PipelineState, Reporter], Awaitable[AgentResult]]
    accept: Callable[[PipelineState, Any], Dict[str, Any]]
    complete_message: Callable[[Any], str]


class MysteryOrchestrator:
    """Drives one or more mystery generation runs through a shared AgentInvoker."""

    def __init__(self, invoker: AgentInvoker):
        self.invoker = invoker

    # ------------------------------------------------------------------
    # Stage definitions
    # ------------------------------------------------------------------

    def _steps(self) -> List[StageStep]:
        return [
            StageStep(
                agent=AgentType.STORY_ARCHITECT,
                band=STORY_BAND,
                start_message="Creating story foundation...",
                run=lambda state, report: run_story_architect(self.invoker, state.settings, report),
                accept=self._accept_story,
                complete_message=lambda story: f'Story foundation complete: "{story.title}"',
            ),
            StageStep(
                agent=AgentType.CHARACTER_DESIGNER,
                band=CHARACTER_BAND,
                start_message="Designing suspects and relationships...",
                run=lambda state, report: run_character_designer(
                    self.invoker, state.story, state.settings.suspect_count, report
                ),
                accept=self._accept_characters,
                complete_message=lambda cast: f"Created {len(cast.suspects)} suspects",
            ),
            StageStep(
                agent=AgentType.EVIDENCE_CRAFTER,
                band=EVIDENCE_BAND,
                start_message="Crafting evidence and clues...",
                run=lambda state, report: run_evidence_crafter(
                    self.invoker, state.story, state.characters, state.settings, report
                ),
                accept=self._accept_evidence,
                complete_message=lambda ev: (
                    f"Created {len(ev.evidence)} evidence items across {len(ev.phases)} phases"
                ),
            ),
        ]

    @staticmethod
    def _accept_story(state: PipelineState, story: StoryFoundation) -> Dict[str, Any]:
        state.story = story
        return {"title": story.title, "tagline": story.tagline, "victim": story.victim.name}

    @staticmethod
    def _accept_characters(state: PipelineState, cast: CharacterSet) -> Dict[str, Any]:
        state.characters = cast
        return {
            "suspect_count": len(cast.suspects),
            "tier1": sum(1 for s in cast.suspects if s.tier == 1),
            "tier2": sum(1 for s in cast.suspects if s.tier == 2),
            "tier3": sum(1 for s in cast.suspects if s.tier == 3),
            "relationship_count": len(cast.relationships),
        }

    @staticmethod
    def _accept_evidence(state: PipelineState, evidence: EvidenceSet) -> Dict[str, Any]:
        state.evidence = evidence
        return {
            "evidence_count": len(evidence.evidence),
            "phase_count": len(evidence.phases),
            "true_clue_count": len(evidence.true_clues),
            "red_herring_count": len(evidence.red_herrings),
        }

    # ------------------------------------------------------------------
    # Progress side-channel
    # ------------------------------------------------------------------

    @staticmethod
    def _progress_event(
        state: PipelineState,
        band: ProgressBand,
        update: AgentProgress,
    ) -> Optional[GenerationEvent]:
        if update.stage == "error":
            return GenerationEvent(
                type=GenerationEventType.AGENT_ERROR,
                agent=update.agent.value,
                message=f"{update.agent.value} attempt {update.attempt} failed",
                progress=state.advance(band.start),
                error=update.message,
            )
        # Stage boundaries are reported by agent_start / agent_complete
        if update.stage == "complete" or (update.stage == "starting" and update.attempt == 1):
            return None
        return GenerationEvent(
            type=GenerationEventType.AGENT_PROGRESS,
            agent=update.agent.value,
            message=update.message,
            progress=state.advance(band.scale(update.progress)),
        )

    async def _drain(
        self,
        state: PipelineState,
        band: ProgressBand,
        queue: asyncio.Queue,
        task: asyncio.Future,
    ) -> AsyncIterator[GenerationEvent]:
        """Yield progress events from `queue` until `task` finishes."""
        while not task.done():
            getter = asyncio.ensure_future(queue.get())
            try:
                done, _ = await asyncio.wait({task, getter}, return_when=asyncio.FIRST_COMPLETED)
            except asyncio.CancelledError:
                getter.cancel()
                raise
            if getter in done:
                event = self._progress_event(state, band, getter.result())
                if event is not None:
                    yield event
            else:
                getter.cancel()

        while not queue.empty():
            event = self._progress_event(state, band, queue.get_nowait())
            if event is not None:
                yield event

    def _start_inflight(self, state: PipelineState, coro: Awaitable[Any]) -> asyncio.Future:
        task = asyncio.ensure_future(coro)
        state.inflight = task
        return task

    @staticmethod
    async def _cancel_inflight(state: PipelineState) -> None:
        task = state.inflight
        state.inflight = None
        if task is not None and not task.done():
            logger.info(f"[generate] Cancelling in-flight stage for project {state.project_id}")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self,
        settings: GenerationSettings,
        project_id: Optional[str] = None,
    ) -> AsyncIterator[GenerationEvent]:
        """
        Run the full pipeline for `settings`, yielding events as it goes.

        Exactly one terminal event (complete or error) ends the stream.
        Closing the generator cancels the stage that is running.
        """
        state = PipelineState(project_id=project_id or str(uuid.uuid4()), settings=settings)
        logger.info(f"[generate] Starting project {state.project_id} (theme={settings.theme!r})")

        yield GenerationEvent(
            type=GenerationEventType.START,
            message="Starting mystery generation...",
            progress=state.advance(0),
            data={"project_id": state.project_id},
        )

        try:
            state.status = PipelineStatus.GENERATING

            for step in self._steps():
                state.current_agent = step.agent
                yield GenerationEvent(
                    type=GenerationEventType.AGENT_START,
                    agent=step.agent.value,
                    message=step.start_message,
                    progress=state.advance(step.band.start),
                )

                queue: asyncio.Queue = asyncio.Queue()
                task = self._start_inflight(state, step.run(state, queue.put_nowait))
                async for event in self._drain(state, step.band, queue, task):
                    yield event
                state.inflight = None

                outcome = StageOutcome.from_result(task.result())
                if not outcome.ok:
                    yield self._fail(state, outcome.error)
                    return

                state.tokens_used = state.tokens_used + outcome.tokens_used
                data = step.accept(state, outcome.value)
                yield GenerationEvent(
                    type=GenerationEventType.AGENT_COMPLETE,
                    agent=step.agent.value,
                    message=step.complete_message(outcome.value),
                    progress=state.advance(step.band.end),
                    data=data,
                    tokens_used=outcome.tokens_used,
                )

            # Validation fan-out
            state.status = PipelineStatus.VALIDATING
            state.current_agent = None
            yield GenerationEvent(
                type=GenerationEventType.VALIDATION_START,
                message="Running validation agents...",
                progress=state.advance(VALIDATION_BAND.start),
            )

            queue = asyncio.Queue()
            validation_input = ValidationInput(
                story=state.story, characters=state.characters, evidence=state.evidence
            )
            task = self._start_inflight(
                state, run_all_validators(self.invoker, validation_input, queue.put_nowait)
            )
            async for event in self._drain(state, VALIDATION_BAND, queue, task):
                yield event
            state.inflight = None

            report = aggregate_validation(task.result())
            state.validation = report
            state.tokens_used = state.tokens_used + report.tokens_used

            yield GenerationEvent(
                type=GenerationEventType.VALIDATION_COMPLETE,
                message=f"Validation complete: {report.state.overall_status.value}",
                progress=state.advance(VALIDATION_BAND.end),
                data={
                    "status": report.state.overall_status.value,
                    "agent_count": len(report.state.agents),
                    "issue_count": report.issue_count,
                },
                tokens_used=report.tokens_used,
            )

            project = assemble_project(
                state.project_id,
                settings,
                state.story,
                state.characters,
                state.evidence,
                report.state,
            )
            state.status = PipelineStatus.COMPLETE
            logger.info(
                f"[generate] Project {state.project_id} complete: status={project.status.value}, "
                f"tokens={state.tokens_used.model_dump()}"
            )

            yield GenerationEvent(
                type=GenerationEventType.COMPLETE,
                message="Mystery generation complete!",
                progress=state.advance(100),
                data={
                    "project": project.model_dump(mode="json"),
                    "tokens_used": state.tokens_used.model_dump(),
                },
            )
        except Exception as e:
            logger.exception(f"[generate] Unexpected failure for project {state.project_id}")
            yield self._fail(state, str(e) or e.__class__.__name__)
        finally:
            await self._cancel_inflight(state)

    @staticmethod
    def _fail(state: PipelineState, message: str) -> GenerationEvent:
        state.status = PipelineStatus.ERROR
        state.error = message
        logger.error(f"[generate] Project {state.project_id} failed at {state.progress}%: {message}")
        return GenerationEvent(
            type=GenerationEventType.ERROR,
            agent=state.current_agent.value if state.current_agent else None,
            message=f"Generation failed: {message}",
            progress=state.progress,
            error=message,
        )

    async def revalidate(self, data: ValidationInput) -> AsyncIterator[GenerationEvent]:
        """Re-run the four checks over existing artifacts."""
        yield GenerationEvent(
            type=GenerationEventType.VALIDATION_START,
            message="Re-validating mystery...",
            progress=0,
        )

        report = await self.validate(data)

        yield GenerationEvent(
            type=GenerationEventType.VALIDATION_COMPLETE,
            message=f"Validation complete: {report.state.overall_status.value}",
            progress=100,
            data={
                "validation": report.state.model_dump(mode="json"),
                "status": report.state.overall_status.value,
                "agent_count": len(report.state.agents),
                "issue_count": report.issue_count,
            },
            tokens_used=report.tokens_used,
        )

    async def validate(self, data: ValidationInput) -> ValidationReport:
        """Run all checks and return the aggregated report."""
        results = await run_all_validators(self.invoker, data)
        report = aggregate_validation(results)
        report.state = prune_validation_references(
            report.state, data.characters.suspect_ids(), data.evidence.evidence_ids()
        )
        return report


# ============================================================================
# Assembly
# ============================================================================

def assemble_project(
    project_id: str,
    settings: GenerationSettings,
    story: StoryFoundation,
    characters: CharacterSet,
    evidence: EvidenceSet,
    validation: ValidationState,
) -> Project:
    """
    Build the final Project from the three stage artifacts and the verdict.

    References that do not resolve (evidence or true clues pointing at an
    unknown suspect, key evidence with an unknown id, killers missing from
    the cast, issue locations and fix targets in the validation records)
    are dropped and logged.
    """
    now = utc_now()
    suspect_ids = characters.suspect_ids()
    evidence_ids = evidence.evidence_ids()

    items = []
    for item in evidence.evidence:
        if item.points_to and item.points_to not in suspect_ids:
            logger.warning(
                f"[assemble_project] Evidence {item.id} points to unknown suspect {item.points_to}; cleared"
            )
            item = item.model_copy(update={"points_to": None})
        items.append(item)

    solution = story.solution
    killers = [_killer_identity(characters, solution.mastermind.name, KillerRole.MASTERMIND)]
    if solution.executor.name != solution.mastermind.name:
        killers.append(_killer_identity(characters, solution.executor.name, KillerRole.EXECUTOR))

    key_evidence = []
    true_clues = []
    for clue in evidence.true_clues:
        if clue.evidence_id in evidence_ids:
            key_evidence.append(clue.evidence_id)
        else:
            logger.warning(f"[assemble_project] True clue references unknown evidence {clue.evidence_id}; dropped")
        if clue.points_to and clue.points_to not in suspect_ids:
            logger.warning(
                f"[assemble_project] True clue {clue.evidence_id} points to unknown suspect {clue.points_to}; cleared"
            )
            clue = clue.model_copy(update={"points_to": ""})
        true_clues.append(clue)
    evidence = evidence.model_copy(update={"true_clues": true_clues})

    validation = prune_validation_references(validation, suspect_ids, evidence_ids)

    stages = story.murder_method.stages

    return Project(
        id=project_id,
        name=story.title,
        status=ProjectStatus.ERROR if validation.overall_status == OverallStatus.ERRORS else ProjectStatus.COMPLETE,
        created_at=now,
        updated_at=now,
        settings=settings,
        narrative=CoreNarrative(
            title=story.title,
            tagline=story.tagline,
            setting=NarrativeSetting(
                location=story.setting.location,
                time=story.setting.era,
                atmosphere=story.setting.atmosphere,
            ),
            premise=f"{story.victim.name}, {story.victim.occupation}, has been murdered at {story.setting.occasion}.",
            murder_method=NarrativeMurderMethod(
                description=story.murder_method.cause_of_death,
                stages=list(stages),
                central_mechanic=story.murder_method.central_mechanic,
            ),
            themes=list(story.themes),
        ),
        suspects=list(characters.suspects),
        evidence=items,
        timeline=[],
        phases=list(evidence.phases),
        red_herrings=list(evidence.red_herrings),
        solution=SolutionNarrative(
            summary=solution.how_it_was_done,
            killer_identity=killers,
            motive=solution.mastermind.motive,
            opportunity=OPPORTUNITY_TEXT,
            method=story.murder_method.cause_of_death,
            key_evidence=key_evidence,
            timeline=" → ".join(s.description for s in stages),
        ),
        validation=validation,
        artifacts=StageArtifacts(story=story, characters=characters, evidence=evidence),
    )


def _resolves(target: Optional[IssueTarget], suspect_ids: set, evidence_ids: set) -> bool:
    if target is None:
        return True
    if target.type == "suspect":
        return target.id in suspect_ids
    if target.type == "evidence":
        return target.id in evidence_ids
    return True


def prune_validation_references(
    validation: ValidationState,
    suspect_ids: set,
    evidence_ids: set,
) -> ValidationState:
    """Clear issue locations and fix targets naming unknown suspects or evidence."""
    agents = []
    for agent in validation.agents:
        issues = []
        for item in agent.issues:
            if not _resolves(item.location, suspect_ids, evidence_ids):
                logger.warning(
                    f"[prune_validation_references] {agent.agent.value} issue location "
                    f"{item.location.type} {item.location.id} is unknown; cleared"
                )
                item = item.model_copy(update={"location": None})
            suggestion = item.suggestion
            if suggestion is not None and not _resolves(suggestion.target, suspect_ids, evidence_ids):
                logger.warning(
                    f"[prune_validation_references] {agent.agent.value} fix target "
                    f"{suggestion.target.type} {suggestion.target.id} is unknown; cleared"
                )
                item = item.model_copy(update={"suggestion": suggestion.model_copy(update={"target": None})})
            issues.append(item)
        agents.append(agent.model_copy(update={"issues": issues}))
    return validation.model_copy(update={"agents": agents})


def _killer_identity(characters: CharacterSet, name: str, role: KillerRole) -> KillerIdentity:
    suspect = characters.find_by_name(name)
    if suspect is None:
        logger.warning(f"[assemble_project] {role.value} {name!r} not found among suspects")
    return KillerIdentity(suspect_id=suspect.id if suspect else None, name=name, role=role.value)
