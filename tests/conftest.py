from __future__ import annotations

import asyncio
from typing import Callable, List, Union

import pytest

from vedic_flow.config import Settings, get_settings
from vedic_flow.errors import ProviderFailure
from vedic_flow.llm import GenerationRequest
from vedic_flow.schemas import Profile

Outcome = Union[str, BaseException]


class FakeProvider:
    """Scripted provider that records every request it receives.

    With ``manual=True`` each call parks on a future that the test resolves
    through ``resolve``/``fail``.
    """

    def __init__(self, responder: Callable[[GenerationRequest], Outcome] | None = None, *, manual: bool = False) -> None:
        self.calls: List[GenerationRequest] = []
        self.pending: List[asyncio.Future] = []
        self._responder = responder or (lambda request: f"Generated for: {request.system_instruction}")
        self._manual = manual
        self._queued: List[Outcome] = []

    def queue(self, *outcomes: Outcome) -> None:
        self._queued.extend(outcomes)

    def resolve(self, index: int, text: str) -> None:
        self.pending[index].set_result(text)

    def fail(self, index: int, error: BaseException | None = None) -> None:
        self.pending[index].set_exception(error or ProviderFailure("scripted failure"))

    async def generate(self, request: GenerationRequest) -> str:
        self.calls.append(request)
        if self._manual:
            future = asyncio.get_running_loop().create_future()
            self.pending.append(future)
            return await future
        outcome = self._queued.pop(0) if self._queued else self._responder(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure cached settings do not leak between tests."""

    get_settings.cache_clear()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings() -> Settings:
    return Settings(model="test-model")


@pytest.fixture
def profile() -> Profile:
    return Profile(
        name="Asha",
        birth_details="12/05/1990, 14:30, Mumbai",
        location_focus="Pune; Career",
        problems="Job stress",
        comfort_level="Mix",
    )


@pytest.fixture
def manual_provider() -> FakeProvider:
    return FakeProvider(manual=True)


@pytest.fixture
def intake_answers() -> List[str]:
    return ["Asha", "12/05/1990, 14:30, Mumbai", "Pune; Career", "Job stress", "Mix"]
