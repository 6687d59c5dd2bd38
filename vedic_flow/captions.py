"""Progress captions shown while a stage is pending.

Purely cosmetic: nothing in the executor or sequencer reads these.
"""

from __future__ import annotations

from typing import Dict, Tuple

from .schemas import Stage

CAPTIONS: Dict[Stage, Tuple[str, ...]] = {
    Stage.ANALYSIS: (
        "Aligning planetary coordinates...",
        "Calculating lunar mansions (Nakshatras)...",
        "Analyzing numerological vibrations...",
        "Synthesizing life patterns...",
        "Generating practical insights...",
    ),
    Stage.DAILY: (
        "Scanning daily transits...",
        "Aligning lunar energies...",
        "Calculating practical rituals...",
        "Optimizing schedule for success...",
        "Synthesizing daily guidance...",
    ),
    Stage.ROADMAP: (
        "Mapping the period ahead...",
        "Weighing planetary periods...",
        "Drafting practical milestones...",
    ),
    Stage.REMEDIES: (
        "Scanning planetary afflictions...",
        "Finding karmic balancers...",
        "Selecting safe mantras...",
        "Identifying healing rituals...",
        "Synthesizing remedies...",
    ),
}

CAPTION_INTERVALS: Dict[Stage, float] = {
    Stage.ANALYSIS: 1.5,
    Stage.DAILY: 1.2,
    Stage.ROADMAP: 1.2,
    Stage.REMEDIES: 1.2,
}


def caption_for(stage: Stage, elapsed_seconds: float) -> str:
    """Return the caption to show after *elapsed_seconds* of waiting."""

    captions = CAPTIONS[stage]
    interval = CAPTION_INTERVALS[stage]
    index = int(max(0.0, elapsed_seconds) // interval) % len(captions)
    return captions[index]
