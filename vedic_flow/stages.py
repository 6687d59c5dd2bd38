"""Registry describing each post-intake stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List

from .prompts import ANALYSIS_INSTRUCTION, DAILY_INSTRUCTION, REMEDIES_INSTRUCTION, roadmap_instruction
from .schemas import RoadmapPeriod, Stage, StageDefinition

InstructionFn = Callable[[object], str]


@dataclass(frozen=True)
class StageInfo:
    """Runtime definition used by the sequencer."""

    slug: Stage
    label: str
    description: str
    instruction: InstructionFn
    failure_message: str


def _fixed(text: str) -> InstructionFn:
    return lambda _param: text


def _roadmap(param: object) -> str:
    return roadmap_instruction(RoadmapPeriod(param))


STAGE_REGISTRY: Dict[Stage, StageInfo] = {
    Stage.ANALYSIS: StageInfo(
        slug=Stage.ANALYSIS,
        label="Astro Profile Analysis",
        description="Personality and life-pattern reading built from the intake profile.",
        instruction=_fixed(ANALYSIS_INSTRUCTION),
        failure_message="Cosmic interference detected (provider error). Please try again.",
    ),
    Stage.DAILY: StageInfo(
        slug=Stage.DAILY,
        label="Daily Action Plan",
        description="One-day guidance with do's, don'ts and a reflection question.",
        instruction=_fixed(DAILY_INSTRUCTION),
        failure_message="Daily plan generation failed. Please try again.",
    ),
    Stage.ROADMAP: StageInfo(
        slug=Stage.ROADMAP,
        label="Long-Term Roadmap",
        description="Practical roadmap for the next week, month or year.",
        instruction=_roadmap,
        failure_message="Plan generation failed. Please try again.",
    ),
    Stage.REMEDIES: StageInfo(
        slug=Stage.REMEDIES,
        label="Vedic Remedies",
        description="Safe mind, behaviour and ritual remedies for the stated problems.",
        instruction=_fixed(REMEDIES_INSTRUCTION),
        failure_message="Remedy generation failed. Cosmic signals interrupted.",
    ),
}


def list_stage_definitions() -> List[StageDefinition]:
    """Return UI-friendly descriptors for all stages."""

    return [
        StageDefinition(id=info.slug, label=info.label, description=info.description)
        for info in sorted(STAGE_REGISTRY.values(), key=lambda item: item.slug.order)
    ]
