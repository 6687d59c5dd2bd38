"""Generic stage executor driving one provider request through pending → success/failure."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Set

from .errors import InvalidTransition, ProviderFailure
from .llm import GenerationRequest, TextProvider
from .schemas import Profile, Stage, StageResult, StageStatus

logger = logging.getLogger(__name__)

InstructionFn = Callable[[Any], str]
SuccessHook = Callable[[Any, str], None]


class StageExecutor:
    """Run one stage's generation request and expose its result.

    Only the outcome matching the current ``(profile, param)`` pair is ever
    applied to ``result``. A superseded request that still succeeds is handed
    to ``on_success`` so its text is not lost; a superseded failure is dropped.
    The provider is untrusted, so any exception it raises counts as a failure.
    """

    def __init__(
        self,
        stage: Stage,
        provider: TextProvider,
        instruction: InstructionFn,
        *,
        temperature: float = 0.7,
        on_success: Optional[SuccessHook] = None,
        strict: bool = False,
    ) -> None:
        self.stage = stage
        self._provider = provider
        self._instruction = instruction
        self._temperature = temperature
        self._on_success = on_success
        self._strict = strict

        self._profile: Optional[Profile] = None
        self._param: Hashable = None
        self._result = StageResult.pending()
        self._generation = 0
        self._active = 0
        self._outstanding: Dict[Hashable, _Outstanding] = {}
        self._current: Optional[asyncio.Task[None]] = None
        self._in_flight: Set[asyncio.Task[None]] = set()
        self.requests_issued = 0
        self.started_at: Optional[float] = None

    @property
    def result(self) -> StageResult:
        return self._result

    @property
    def status(self) -> StageStatus:
        return self._result.status

    @property
    def param(self) -> Hashable:
        return self._param

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    def run(self, profile: Profile, param: Hashable = None) -> bool:
        """Issue a request for ``(profile, param)``.

        Returns ``False`` without doing anything when the pair is unchanged and
        a request is outstanding or has already succeeded.
        """

        unchanged = self._profile is not None and profile == self._profile and param == self._param
        if unchanged and self.status is not StageStatus.FAILURE:
            logger.debug("%s: run for unchanged input ignored (%s)", self.stage.value, self.status.value)
            return False
        if unchanged:
            return self._reject("run", "a failed stage must be retried explicitly")

        self._profile = profile
        self._param = param
        if not self._reattach(param):
            self._start()
        return True

    def retry(self) -> bool:
        """Re-issue the request after a failure."""

        if self._profile is None or self.status is not StageStatus.FAILURE:
            return self._reject("retry", f"stage is {self.status.value}")
        logger.info("%s: retrying (param=%s)", self.stage.value, self._param)
        self._start()
        return True

    def seed(self, profile: Profile, param: Hashable, text: str) -> None:
        """Enter ``Success(text)`` for ``(profile, param)`` without a provider call."""

        self._generation += 1
        self._active = self._generation
        self._current = None
        self._profile = profile
        self._param = param
        self._result = StageResult.success(text)
        logger.debug("%s: seeded from cache (param=%s)", self.stage.value, param)

    async def wait(self) -> StageResult:
        """Wait until the current request, if any, settles."""

        while self._current is not None and not self._current.done():
            await asyncio.wait({self._current})
        return self._result

    def _start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._generation += 1
            self._active = self._generation
            self._current = None
            self._result = StageResult.failure("No running event loop to issue the request")
            logger.warning("%s: cannot issue a request outside an event loop", self.stage.value)
            return

        self._generation += 1
        token = self._generation
        self._active = token
        self._result = StageResult.pending()
        request = GenerationRequest(
            system_instruction=self._instruction(self._param),
            profile_context=self._profile.as_context(),
            temperature=self._temperature,
        )
        self.requests_issued += 1
        self.started_at = time.monotonic()
        task = loop.create_task(self._execute(token, self._profile, self._param, request))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        self._outstanding[self._param] = _Outstanding(token, self._profile, task, self.started_at)
        self._current = task

    def _reattach(self, param: Hashable) -> bool:
        outstanding = self._outstanding.get(param)
        if outstanding is None or outstanding.profile != self._profile or outstanding.task.done():
            return False
        self._active = outstanding.token
        self._current = outstanding.task
        self._result = StageResult.pending()
        self.started_at = outstanding.started_at
        logger.debug("%s: re-attached to outstanding request (param=%s)", self.stage.value, param)
        return True

    async def _execute(self, token: int, profile: Profile, param: Hashable, request: GenerationRequest) -> None:
        try:
            text = await self._provider.generate(request)
            if not isinstance(text, str) or not text.strip():
                raise ProviderFailure("No response generated")
            outcome = StageResult.success(text)
        except ProviderFailure as exc:
            outcome = StageResult.failure(str(exc) or "Provider failure")
        except Exception as exc:
            outcome = StageResult.failure(f"Unexpected provider error: {exc.__class__.__name__}")

        outstanding = self._outstanding.get(param)
        if outstanding is not None and outstanding.token == token:
            del self._outstanding[param]

        if token != self._active:
            if outcome.status is StageStatus.SUCCESS and self._on_success is not None:
                logger.debug("%s: keeping superseded response (param=%s)", self.stage.value, param)
                self._on_success(param, outcome.text)
            else:
                logger.debug("%s: discarding superseded failure (param=%s)", self.stage.value, param)
            return

        self._result = outcome
        if outcome.status is StageStatus.FAILURE:
            logger.warning("%s generation failed (param=%s): %s", self.stage.value, param, outcome.reason)
            return

        logger.info("%s generation succeeded (param=%s, %d chars)", self.stage.value, param, len(outcome.text))
        if self._on_success is not None:
            self._on_success(param, outcome.text)

    def _reject(self, action: str, detail: str) -> bool:
        message = f"Cannot {action} {self.stage.value} stage: {detail}"
        if self._strict:
            raise InvalidTransition(message)
        logger.warning("%s; ignoring", message)
        return False


@dataclass(frozen=True)
class _Outstanding:
    token: int
    profile: Profile
    task: "asyncio.Task[None]"
    started_at: float
