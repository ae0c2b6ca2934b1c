"""
Markdown handouts rendered next to project.json: the host's blueprint,
the players' case brief, one evidence sheet per phase, host scoring
materials and the persons-of-interest appendix.
"""

from typing import Dict, List

from ..models import OverallStatus, Project, Suspect

PHASE_TITLES = {
    1: "INITIAL INVESTIGATION",
    2: "DEEP INVESTIGATION",
    3: "THE REVELATION",
}

PHASE_FILES = {
    1: "02_PHASE_1_EVIDENCE.md",
    2: "03_PHASE_2_EVIDENCE.md",
    3: "04_PHASE_3_TWIST.md",
}

SECTION_BREAK = "\n---\n\n"


def _bullets(items: List[str], empty: str = "Not specified") -> str:
    return "\n".join(f"- {item}" for item in items) if items else empty


def render_blueprint(project: Project) -> str:
    narrative = project.narrative
    solution = project.solution
    killers = [s for s in project.suspects if s.is_killer]
    mastermind = next((k for k in killers if k.killer_role and k.killer_role.value == "mastermind"), None)
    executor = next((k for k in killers if k.killer_role and k.killer_role.value == "executor"), None)

    lines = [
        "# GAME MASTER BLUEPRINT",
        f"## {narrative.title if narrative else project.name}",
        "",
        "**FOR HOST EYES ONLY**",
        "",
        "---",
        "",
        "## The Solution",
        "",
        "### The Killers",
    ]
    if mastermind:
        lines.append(f"- **Mastermind**: {mastermind.name} ({mastermind.role})")
    if executor and (mastermind is None or executor.id != mastermind.id):
        lines.append(f"- **Executor**: {executor.name} ({executor.role})")

    lines += [
        "",
        "### Motive",
        (solution.motive if solution else "") or "Not specified",
        "",
        "### How It Was Done",
        (solution.summary if solution else "") or "Not specified",
        "",
        "### Key Evidence",
        _bullets(solution.key_evidence if solution else []),
        "",
        "---",
        "",
        "## Timeline of the Murder",
        "",
        (solution.timeline if solution else "") or "See timeline events for details",
        "",
        "---",
        "",
        "## Suspect Quick Reference",
        "",
        "| Name | Role | Killer? | Red Herring? |",
        "|------|------|---------|--------------|",
    ]
    for s in project.suspects:
        if s.tier == 1:
            lines.append(
                f"| {s.name} | {s.role} | {'YES' if s.is_killer else 'No'} | {'YES' if s.is_red_herring else 'No'} |"
            )

    lines += [
        "",
        "---",
        "",
        "## Themes",
        _bullets(narrative.themes if narrative else []),
        "",
    ]
    return "\n".join(lines)


def render_case_brief(project: Project) -> str:
    narrative = project.narrative
    setting = narrative.setting if narrative else None
    title = narrative.title if narrative else project.name

    return f"""# {title}

*{(narrative.tagline if narrative else "") or "A Murder Mystery"}*

---

## The Setting

**Location**: {(setting.location if setting else "") or "Unknown"}
**Time**: {(setting.time if setting else "") or "Unknown"}
**Atmosphere**: {(setting.atmosphere if setting else "") or "Mysterious"}

---

## The Premise

{(narrative.premise if narrative else "") or "A murder has occurred. Your mission: find the killer."}

---

## Your Mission

You are a detective assigned to solve this case. Work with your fellow investigators to:

1. Examine the evidence
2. Interview suspects
3. Uncover secrets and lies
4. Identify the murderer(s)

**Remember**: No single detective has all the pieces. Collaboration is key.

---

## Investigation Phases

The investigation will proceed in three phases:
- **Phase 1** (20 min): Initial investigation and evidence gathering
- **Phase 2** (30 min): Deep investigation and cross-referencing
- **Phase 3** (15 min): Final revelations and accusation

Good luck, detectives.
"""


def render_phase(project: Project, phase: int) -> str:
    phase_data = next((p for p in project.phases if p.phase == phase), None)
    items = [e for e in project.evidence if e.revealed_in_phase == phase]

    blocks = []
    for e in items:
        block = [
            f"### {e.id}: {e.name}",
            "",
            f"**Type**: {e.type.value}",
            f"**Location**: {e.location}",
            "",
            e.description,
        ]
        if e.forensic_details:
            block += [
                "",
                f"**Forensic Analysis**: {e.forensic_details.analysis}",
                f"**Results**: {e.forensic_details.results}",
            ]
        blocks.append("\n".join(block) + "\n")

    packets = []
    if phase_data:
        for packet in phase_data.detective_packets:
            packets.append(
                f"### Detective {packet.detective}: {packet.name}\n"
                f"**Focus**: {packet.special_instructions}\n"
                f"**Assigned Evidence**: {', '.join(packet.assigned_evidence)}\n"
                f"**Assigned Suspects**: {', '.join(packet.assigned_suspects)}\n"
            )

    return (
        f"# Phase {phase}: {PHASE_TITLES[phase]}\n\n"
        f"{phase_data.description if phase_data else ''}\n\n"
        "---\n\n"
        "## Evidence Available This Phase\n\n"
        f"{SECTION_BREAK.join(blocks)}\n"
        "---\n\n"
        "## Detective Assignments\n\n"
        f"{chr(10).join(packets) if packets else 'See host materials for assignments'}\n"
    )


def render_host_materials(project: Project) -> str:
    solution = project.solution
    validation = project.validation
    killers = solution.killer_identity if solution else []
    mastermind = next((k.name for k in killers if k.role == "mastermind"), "Unknown")
    executor = next((k.name for k in killers if k.role == "executor"), "Same as mastermind")

    if validation is None or validation.overall_status == OverallStatus.NOT_VALIDATED:
        status_line = "Mystery has not been validated"
    elif validation.overall_status == OverallStatus.VALID:
        status_line = "✅ Mystery validated successfully"
    elif validation.overall_status == OverallStatus.WARNINGS:
        status_line = "⚠️ Mystery has warnings"
    else:
        status_line = "❌ Mystery has errors"

    agent_lines = "\n".join(
        f"- {a.agent.value}: {a.status.value} ({len(a.issues)} issues)"
        for a in (validation.agents if validation else [])
    )

    return f"""# HOST MATERIALS

## Scoring Guide

### Full Points (10 each)
- Correctly identify the mastermind
- Correctly identify the executor (if different)
- Correctly explain the motive
- Correctly explain the method

### Partial Points (5 each)
- Identify one killer but not both
- Partial motive explanation
- Partial method explanation

### Bonus Points (5 each)
- Correctly identify the central mechanic
- Clear the primary red herring with evidence

---

## Answer Key

**Mastermind**: {mastermind}
**Executor**: {executor}
**Motive**: {(solution.motive if solution else "") or "Unknown"}
**Method**: {(solution.method if solution else "") or "Unknown"}
**Key Evidence**: {", ".join(solution.key_evidence) if solution and solution.key_evidence else "Unknown"}

---

## Validation Status

{status_line}

{agent_lines}
"""


def _render_person(s: Suspect) -> str:
    age = s.age if s.age is not None else "Unknown"
    return (
        f"### {s.name}\n"
        f"**Age**: {age} | **Role**: {s.role}\n\n"
        f"{s.description}\n\n"
        f"**Background**: {s.background}\n\n"
        f"**Personality**: {', '.join(s.personality)}\n"
    )


def render_persons_appendix(project: Project) -> str:
    sections = []
    for tier, heading in ((1, "Core Suspects"), (2, "Secondary Suspects"), (3, "Background Characters")):
        people = [_render_person(s) for s in project.suspects if s.tier == tier]
        sections.append(f"## Tier {tier}: {heading}\n\n{SECTION_BREAK.join(people)}")

    return "# APPENDIX: PERSONS OF INTEREST\n\n" + "\n---\n\n".join(sections) + "\n"


def render_handouts(project: Project) -> Dict[str, str]:
    """All handout files for `project`, keyed by file name."""
    files = {
        "00_GAME_MASTER_BLUEPRINT.md": render_blueprint(project),
        "01_CASE_BRIEF.md": render_case_brief(project),
    }
    for phase, filename in PHASE_FILES.items():
        files[filename] = render_phase(project, phase)
    files["05_HOST_MATERIALS.md"] = render_host_materials(project)
    files["06_APPENDIX_PERSONS.md"] = render_persons_appendix(project)
    return files
