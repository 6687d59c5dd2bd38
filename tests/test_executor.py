from __future__ import annotations

import asyncio

import pytest

from vedic_flow.errors import InvalidTransition, ProviderFailure
from vedic_flow.executor import StageExecutor
from vedic_flow.schemas import Profile, RoadmapPeriod, Stage, StageStatus
from vedic_flow.stages import STAGE_REGISTRY


def _executor(provider, stage: Stage = Stage.ANALYSIS, **kwargs) -> StageExecutor:
    return StageExecutor(stage, provider, STAGE_REGISTRY[stage].instruction, **kwargs)


@pytest.mark.asyncio
async def test_run_issues_one_request_and_succeeds(provider, profile: Profile) -> None:
    provider.queue("Your analysis")
    executor = _executor(provider)

    assert executor.run(profile) is True
    assert executor.status is StageStatus.PENDING

    result = await executor.wait()

    assert result.status is StageStatus.SUCCESS
    assert result.text == "Your analysis"
    assert len(provider.calls) == 1
    request = provider.calls[0]
    assert "Astro Profile Analyzer" in request.system_instruction
    assert request.profile_context == profile.as_context()
    assert request.temperature == pytest.approx(0.7)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome",
    ["", "   ", ProviderFailure("rate limited"), RuntimeError("socket closed")],
)
async def test_every_failure_shape_becomes_failure(provider, profile: Profile, outcome) -> None:
    provider.queue(outcome)
    executor = _executor(provider)

    executor.run(profile)
    result = await executor.wait()

    assert result.status is StageStatus.FAILURE
    assert result.reason
    assert result.text is None


@pytest.mark.asyncio
async def test_retry_after_failure_issues_exactly_one_request(provider, profile: Profile) -> None:
    provider.queue(ProviderFailure("down"), "Recovered text")
    executor = _executor(provider)
    executor.run(profile)
    await executor.wait()

    assert executor.retry() is True
    assert executor.status is StageStatus.PENDING
    result = await executor.wait()

    assert result.text == "Recovered text"
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_no_automatic_retry(provider, profile: Profile) -> None:
    provider.queue(ProviderFailure("down"))
    executor = _executor(provider)
    executor.run(profile)
    await executor.wait()
    await asyncio.sleep(0.01)

    assert executor.status is StageStatus.FAILURE
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_retry_is_rejected_outside_failure(manual_provider, profile: Profile) -> None:
    executor = _executor(manual_provider, strict=True)
    executor.run(profile)
    await asyncio.sleep(0.01)

    with pytest.raises(InvalidTransition):
        executor.retry()

    manual_provider.resolve(0, "done")
    await executor.wait()

    with pytest.raises(InvalidTransition):
        executor.retry()
    assert len(manual_provider.calls) == 1


@pytest.mark.asyncio
async def test_lenient_mode_ignores_invalid_retry(provider, profile: Profile, caplog) -> None:
    executor = _executor(provider)
    executor.run(profile)
    await executor.wait()

    assert executor.retry() is False
    assert executor.status is StageStatus.SUCCESS
    assert len(provider.calls) == 1
    assert "Cannot retry analysis stage" in caplog.text


@pytest.mark.asyncio
async def test_rerun_with_same_input_is_a_no_op(provider, profile: Profile) -> None:
    executor = _executor(provider)
    executor.run(profile)
    await executor.wait()

    assert executor.run(profile) is False
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_superseded_success_is_kept_but_not_applied(manual_provider, profile: Profile) -> None:
    written: list[tuple] = []
    executor = _executor(manual_provider, Stage.ROADMAP, on_success=lambda param, text: written.append((param, text)))

    executor.run(profile, RoadmapPeriod.MONTH)
    await asyncio.sleep(0.01)
    executor.run(profile, RoadmapPeriod.YEAR)
    await asyncio.sleep(0.01)

    manual_provider.resolve(1, "Year roadmap")
    await asyncio.sleep(0.01)
    manual_provider.resolve(0, "Month roadmap")
    await executor.wait()
    await asyncio.sleep(0.01)

    assert executor.param is RoadmapPeriod.YEAR
    assert executor.result.text == "Year roadmap"
    assert written == [(RoadmapPeriod.YEAR, "Year roadmap"), (RoadmapPeriod.MONTH, "Month roadmap")]
    assert "Next Month" in manual_provider.calls[0].system_instruction
    assert "Next Year" in manual_provider.calls[1].system_instruction


@pytest.mark.asyncio
async def test_switching_back_reattaches_to_outstanding_request(manual_provider, profile: Profile) -> None:
    executor = _executor(manual_provider, Stage.ROADMAP)

    executor.run(profile, RoadmapPeriod.MONTH)
    await asyncio.sleep(0.01)
    executor.run(profile, RoadmapPeriod.YEAR)
    await asyncio.sleep(0.01)
    executor.run(profile, RoadmapPeriod.MONTH)
    await asyncio.sleep(0.01)

    assert len(manual_provider.calls) == 2
    assert executor.status is StageStatus.PENDING

    manual_provider.resolve(0, "Month roadmap")
    result = await executor.wait()

    assert result.text == "Month roadmap"
    assert executor.requests_issued == 2


def test_run_without_event_loop_fails_cleanly(provider, profile: Profile) -> None:
    executor = _executor(provider)

    assert executor.run(profile) is True

    assert executor.status is StageStatus.FAILURE
    assert executor.result.reason
    assert executor.requests_issued == 0
    assert provider.calls == []


@pytest.mark.asyncio
async def test_superseded_failure_is_discarded(manual_provider, profile: Profile) -> None:
    executor = _executor(manual_provider, Stage.ROADMAP)

    executor.run(profile, RoadmapPeriod.WEEK)
    await asyncio.sleep(0.01)
    executor.seed(profile, RoadmapPeriod.MONTH, "Cached month")
    manual_provider.fail(0)
    await asyncio.sleep(0.01)
    await asyncio.sleep(0.01)

    assert executor.status is StageStatus.SUCCESS
    assert executor.result.text == "Cached month"


def test_seed_enters_success_without_a_request(provider, profile: Profile) -> None:
    executor = _executor(provider, Stage.ROADMAP)

    executor.seed(profile, RoadmapPeriod.MONTH, "From cache")

    assert executor.status is StageStatus.SUCCESS
    assert executor.result.text == "From cache"
    assert provider.calls == []
    assert executor.requests_issued == 0
