"""Session orchestration: intake handoff into the stage pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from .config import Settings, get_settings
from .errors import InvalidTransition
from .intake import IntakeStateMachine
from .llm import TextProvider, get_provider
from .pipeline import PipelineSequencer
from .schemas import IntakeReply, Profile, RoadmapPeriod, SessionSnapshot, Stage, StageResult
from .stages import STAGE_REGISTRY

logger = logging.getLogger(__name__)


class JourneySession:
    """One user's walk from intake through the four generation stages."""

    def __init__(
        self,
        session_id: str,
        *,
        provider: Optional[TextProvider] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.session_id = session_id
        self._settings = settings or get_settings()
        self._provider = provider or get_provider(self._settings)
        self.pipeline: Optional[PipelineSequencer] = None
        self.intake = IntakeStateMachine(
            on_complete=self._on_intake_complete,
            handoff_delay=self._settings.handoff_delay,
        )

    @property
    def profile(self) -> Optional[Profile]:
        return self.intake.profile

    def submit(self, text: str | None) -> IntakeReply:
        return self.intake.submit(text)

    def advance(self) -> Optional[Stage]:
        return self._require_pipeline("advance").advance()

    def retry(self) -> bool:
        return self._require_pipeline("retry").retry()

    def select_period(self, period: RoadmapPeriod) -> bool:
        return self._require_pipeline("select period").select_period(period)

    async def wait(self) -> Optional[StageResult]:
        if self.pipeline is None:
            return None
        return await self.pipeline.wait()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            intake_complete=self.intake.is_complete,
            prompt=self.intake.prompt,
            summary=self.intake.summary() if self.intake.is_complete else None,
            turns=self.intake.turns if self.pipeline is None else [],
            profile=self.intake.profile,
            stage=self.pipeline.snapshot() if self.pipeline else None,
        )

    def export_markdown(self) -> str:
        """Concatenate every successful artifact in stage order for export."""

        if self.pipeline is None:
            return ""
        sections = []
        for stage, period, text in self.pipeline.artifacts():
            title = STAGE_REGISTRY[stage].label
            if period is not None:
                title = f"{title} (Next {period.label})"
            sections.append(f"## {title}\n\n{text.strip()}")
        return "\n\n---\n\n".join(sections)

    def _on_intake_complete(self, profile: Profile) -> None:
        if self.pipeline is not None:
            return
        logger.info("Session %s: intake handed off, starting pipeline", self.session_id)
        self.pipeline = PipelineSequencer(
            profile,
            self._provider,
            temperature=self._settings.temperature,
            strict=self._settings.strict_transitions,
        )
        self.pipeline.start()

    def _require_pipeline(self, action: str) -> PipelineSequencer:
        if self.pipeline is None:
            raise InvalidTransition(f"Cannot {action}: intake is not complete")
        return self.pipeline
