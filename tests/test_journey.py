from __future__ import annotations

import asyncio

import pytest

from vedic_flow.config import Settings
from vedic_flow.errors import InvalidTransition
from vedic_flow.journey import JourneySession
from vedic_flow.schemas import Profile, RoadmapPeriod, Stage, StageResult, StageStatus


@pytest.mark.asyncio
async def test_intake_completion_starts_analysis(provider, settings: Settings, intake_answers: list[str]) -> None:
    session = JourneySession("s1", provider=provider, settings=settings)

    for answer in intake_answers:
        session.submit(answer)

    assert session.profile == Profile(
        name="Asha",
        birth_details="12/05/1990, 14:30, Mumbai",
        location_focus="Pune; Career",
        problems="Job stress",
        comfort_level="Mix",
    )
    assert session.pipeline is not None
    assert session.pipeline.stage is Stage.ANALYSIS
    assert session.pipeline.result.status is StageStatus.PENDING


@pytest.mark.asyncio
async def test_actions_before_handoff_are_rejected(provider, settings: Settings) -> None:
    session = JourneySession("s1", provider=provider, settings=settings)

    with pytest.raises(InvalidTransition):
        session.advance()
    with pytest.raises(InvalidTransition):
        session.retry()
    assert await session.wait() is None
    assert session.export_markdown() == ""


@pytest.mark.asyncio
async def test_handoff_respects_settling_delay(provider, intake_answers: list[str]) -> None:
    session = JourneySession("s1", provider=provider, settings=Settings(handoff_delay=0.05))

    for answer in intake_answers:
        session.submit(answer)

    assert session.intake.is_complete
    assert session.pipeline is None
    await asyncio.sleep(0.1)
    assert session.pipeline is not None
    assert session.pipeline.stage is Stage.ANALYSIS


@pytest.mark.asyncio
async def test_snapshot_hides_transcript_after_handoff(provider, settings: Settings, intake_answers: list[str]) -> None:
    session = JourneySession("s1", provider=provider, settings=settings)
    session.submit(intake_answers[0])

    during = session.snapshot()
    assert during.intake_complete is False
    assert len(during.turns) == 3
    assert during.stage is None

    for answer in intake_answers[1:]:
        session.submit(answer)
    after = session.snapshot()

    assert after.intake_complete is True
    assert after.turns == []
    assert after.stage.stage is Stage.ANALYSIS


@pytest.mark.asyncio
async def test_export_lists_artifacts_in_stage_order(provider, settings: Settings, intake_answers: list[str]) -> None:
    provider.queue("Analysis body", "Daily body", "Month body", "Year body")
    session = JourneySession("s1", provider=provider, settings=settings)
    for answer in intake_answers:
        session.submit(answer)

    await session.wait()
    session.advance()
    await session.wait()
    session.advance()
    await session.wait()
    session.select_period(RoadmapPeriod.YEAR)
    await session.wait()

    exported = session.export_markdown()

    sections = exported.split("\n\n---\n\n")
    assert [section.splitlines()[0] for section in sections] == [
        "## Astro Profile Analysis",
        "## Daily Action Plan",
        "## Long-Term Roadmap (Next Month)",
        "## Long-Term Roadmap (Next Year)",
    ]
    assert "Year body" in sections[-1]


def test_intake_without_event_loop_leaves_a_retryable_stage(provider, settings: Settings, intake_answers: list[str]) -> None:
    session = JourneySession("s1", provider=provider, settings=settings)

    replies = [session.submit(answer) for answer in intake_answers]

    assert replies[-1].is_complete is True
    assert session.pipeline.stage is Stage.ANALYSIS
    assert session.pipeline.result.status is StageStatus.FAILURE
    assert session.snapshot().stage.can_retry is True
    assert provider.calls == []

    async def recover() -> StageResult:
        session.retry()
        return await session.wait()

    result = asyncio.run(recover())

    assert result.status is StageStatus.SUCCESS
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_terminal_reply_carries_the_summary(provider, settings: Settings, intake_answers: list[str]) -> None:
    session = JourneySession("s1", provider=provider, settings=settings)

    replies = [session.submit(answer) for answer in intake_answers]

    assert all(reply.summary is None for reply in replies[:-1])
    assert "- **Name:** Asha" in replies[-1].summary
    assert "- **Preferences:** Mix" in replies[-1].summary
    assert session.snapshot().summary == replies[-1].summary
