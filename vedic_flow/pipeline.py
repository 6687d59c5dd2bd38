"""Sequencer that walks the profile through analysis → daily → roadmap → remedies."""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import Dict, Hashable, List, Optional, Tuple

from .cache import RoadmapCache
from .captions import caption_for
from .errors import InvalidTransition
from .executor import StageExecutor
from .llm import TextProvider
from .schemas import (
    DEFAULT_PERIOD,
    Profile,
    RoadmapPeriod,
    Stage,
    StageResult,
    StageSnapshot,
    StageStatus,
)
from .stages import STAGE_REGISTRY

logger = logging.getLogger(__name__)

ArtifactKey = Tuple[Stage, Optional[RoadmapPeriod]]


class PipelineSequencer:
    """Drive exactly one active stage at a time.

    ``advance`` is only accepted once the active stage has succeeded. The
    roadmap stage keeps a per-period cache so switching horizons back and
    forth does not call the provider again.
    """

    def __init__(
        self,
        profile: Profile,
        provider: TextProvider,
        *,
        cache: Optional[RoadmapCache] = None,
        temperature: float = 0.7,
        strict: bool = False,
        period: RoadmapPeriod = DEFAULT_PERIOD,
    ) -> None:
        self._profile = profile
        self._provider = provider
        self._temperature = temperature
        self._strict = strict
        self._period = RoadmapPeriod(period)
        self.cache = cache if cache is not None else RoadmapCache()
        self._stage: Optional[Stage] = None
        self._executor: Optional[StageExecutor] = None
        self._artifacts: Dict[ArtifactKey, str] = {}

    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def stage(self) -> Optional[Stage]:
        return self._stage

    @property
    def executor(self) -> Optional[StageExecutor]:
        return self._executor

    @property
    def period(self) -> RoadmapPeriod:
        return self._period

    @property
    def result(self) -> Optional[StageResult]:
        return self._executor.result if self._executor else None

    def start(self) -> Stage:
        """Enter the first stage."""

        if self._stage is not None:
            self._reject("start", f"pipeline already at {self._stage.value}")
            return self._stage
        self._enter(Stage.ANALYSIS)
        return Stage.ANALYSIS

    def advance(self) -> Optional[Stage]:
        """Move to the next stage once the active one has succeeded."""

        if self._stage is None or self._executor is None:
            return self._reject("advance", "pipeline has not started")
        if self._executor.status is not StageStatus.SUCCESS:
            return self._reject("advance", f"{self._stage.value} is {self._executor.status.value}")
        next_stage = self._stage.next
        if next_stage is None:
            return self._reject("advance", f"{self._stage.value} is the final stage")
        self._enter(next_stage)
        return next_stage

    def retry(self) -> bool:
        if self._executor is None:
            self._reject("retry", "pipeline has not started")
            return False
        return self._executor.retry()

    def select_period(self, period: RoadmapPeriod) -> bool:
        """Switch the roadmap horizon, reusing a cached result when there is one."""

        period = RoadmapPeriod(period)
        if self._stage is not Stage.ROADMAP or self._executor is None:
            stage = self._stage.value if self._stage else "not started"
            self._reject("select period", f"active stage is {stage}")
            return False
        if period == self._period and self._executor.param == period:
            return True
        self._period = period
        self._launch_roadmap()
        return True

    async def wait(self) -> Optional[StageResult]:
        """Wait for the active stage's outstanding request, if any."""

        if self._executor is None:
            return None
        return await self._executor.wait()

    def artifacts(self) -> List[Tuple[Stage, Optional[RoadmapPeriod], str]]:
        """Successful artifacts in stage order, roadmap periods in horizon order."""

        period_order = list(RoadmapPeriod)

        def sort_key(key: ArtifactKey) -> Tuple[int, int]:
            stage, period = key
            return stage.order, period_order.index(period) if period else -1

        return [(stage, period, self._artifacts[(stage, period)]) for stage, period in sorted(self._artifacts, key=sort_key)]

    def snapshot(self, now: Optional[float] = None) -> Optional[StageSnapshot]:
        """Describe the active stage for rendering."""

        if self._stage is None or self._executor is None:
            return None
        info = STAGE_REGISTRY[self._stage]
        result = self._executor.result
        caption = None
        if result.status is StageStatus.PENDING:
            started = self._executor.started_at
            elapsed = (now if now is not None else time.monotonic()) - started if started else 0.0
            caption = caption_for(self._stage, elapsed)
        return StageSnapshot(
            stage=self._stage,
            stage_label=info.label,
            status=result.status,
            text=result.text,
            message=info.failure_message if result.status is StageStatus.FAILURE else None,
            caption=caption,
            period=self._period if self._stage is Stage.ROADMAP else None,
            can_advance=result.status is StageStatus.SUCCESS and not self._stage.is_terminal,
            can_retry=result.status is StageStatus.FAILURE,
        )

    def _enter(self, stage: Stage) -> None:
        info = STAGE_REGISTRY[stage]
        self._stage = stage
        self._executor = StageExecutor(
            stage,
            self._provider,
            info.instruction,
            temperature=self._temperature,
            on_success=partial(self._record, stage),
            strict=self._strict,
        )
        logger.info("Entering %s stage", stage.value)
        if stage is Stage.ROADMAP:
            self._launch_roadmap()
        else:
            self._executor.run(self._profile)

    def _launch_roadmap(self) -> None:
        cached = self.cache.get(self._period)
        if cached is not None:
            self._executor.seed(self._profile, self._period, cached)
            return
        self._executor.run(self._profile, self._period)

    def _record(self, stage: Stage, param: Hashable, text: str) -> None:
        period = RoadmapPeriod(param) if stage is Stage.ROADMAP else None
        if period is not None:
            self.cache.put(period, text)
        self._artifacts[(stage, period)] = text

    def _reject(self, action: str, detail: str) -> None:
        message = f"Cannot {action}: {detail}"
        if self._strict:
            raise InvalidTransition(message)
        logger.warning("%s; ignoring", message)
        return None
