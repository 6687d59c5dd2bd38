"""Pydantic models and enums for the Vedic Flow journey."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileField(str, Enum):
    """Enumerate the intake fields in the order they are asked."""

    NAME = "name"
    BIRTH_DETAILS = "birth_details"
    LOCATION_FOCUS = "location_focus"
    PROBLEMS = "problems"
    COMFORT_LEVEL = "comfort_level"


class Profile(BaseModel):
    """Finalized intake record shared read-only with every stage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    birth_details: str = Field(..., min_length=1, alias="birthDetails")
    location_focus: str = Field(..., min_length=1, alias="locationFocus")
    problems: str = Field(..., min_length=1)
    comfort_level: str = Field(..., min_length=1, alias="comfortLevel")

    def as_context(self) -> str:
        """Serialize the profile as the provider's user payload."""

        return self.model_dump_json(by_alias=True)


class Speaker(str, Enum):
    SYSTEM = "system"
    USER = "user"


class Turn(BaseModel):
    """One exchange in the intake transcript."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Stage(str, Enum):
    """Enumerate the post-intake generation stages."""

    ANALYSIS = "analysis"
    DAILY = "daily"
    ROADMAP = "roadmap"
    REMEDIES = "remedies"

    @property
    def order(self) -> int:
        """Return a human-friendly order index for the stage."""
        stage_order = {
            Stage.ANALYSIS: 1,
            Stage.DAILY: 2,
            Stage.ROADMAP: 3,
            Stage.REMEDIES: 4,
        }
        return stage_order[self]

    @property
    def next(self) -> Optional["Stage"]:
        ordered = sorted(Stage, key=lambda stage: stage.order)
        index = ordered.index(self)
        return ordered[index + 1] if index + 1 < len(ordered) else None

    @property
    def is_terminal(self) -> bool:
        return self.next is None


class RoadmapPeriod(str, Enum):
    """Closed set of roadmap horizons."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def label(self) -> str:
        return self.value.title()


DEFAULT_PERIOD = RoadmapPeriod.MONTH


class StageStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class StageResult(BaseModel):
    """Tagged result of a stage executor: pending, success(text) or failure(reason)."""

    model_config = ConfigDict(frozen=True)

    status: StageStatus
    text: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "StageResult":
        return cls(status=StageStatus.PENDING)

    @classmethod
    def success(cls, text: str) -> "StageResult":
        return cls(status=StageStatus.SUCCESS, text=text)

    @classmethod
    def failure(cls, reason: str) -> "StageResult":
        return cls(status=StageStatus.FAILURE, reason=reason)


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class IntakeReply(BaseModel):
    """Outcome of a single intake submission."""

    next_prompt: str
    profile: Dict[str, str] = Field(
        default_factory=dict,
        description="Fields collected so far, keyed by field name.",
    )
    is_complete: bool = False
    summary: Optional[str] = Field(
        default=None,
        description="Markdown summary of every collected field, set once the intake is complete.",
    )


class TurnRequest(BaseModel):
    """Payload carrying one raw user turn."""

    text: str = Field(default="", description="Raw user text for the current intake step.")


class PeriodRequest(BaseModel):
    period: RoadmapPeriod


class StageDefinition(BaseModel):
    """Expose metadata that describes a stage to the UI."""

    id: Stage
    label: str
    description: str


class StageSnapshot(BaseModel):
    """Observable state of the active stage."""

    stage: Stage
    stage_label: str
    status: StageStatus
    text: Optional[str] = None
    message: Optional[str] = None
    caption: Optional[str] = None
    period: Optional[RoadmapPeriod] = None
    can_advance: bool = False
    can_retry: bool = False


class SessionSnapshot(BaseModel):
    """Aggregate view of a journey session."""

    session_id: str
    intake_complete: bool
    prompt: Optional[str] = None
    summary: Optional[str] = None
    turns: List[Turn] = Field(default_factory=list)
    profile: Optional[Profile] = None
    stage: Optional[StageSnapshot] = None


class ExportResponse(BaseModel):
    session_id: str
    combined_markdown: str
