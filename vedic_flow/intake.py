"""Conversational intake that collects a Profile one field per turn."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .schemas import IntakeReply, Profile, ProfileField, Speaker, Turn

logger = logging.getLogger(__name__)

CompletionHook = Callable[[Profile], None]


@dataclass(frozen=True)
class IntakeStep:
    """A field to collect and the prompt that asks for it."""

    field: ProfileField
    prompt: str
    summary_label: str


INTAKE_STEPS: Tuple[IntakeStep, ...] = (
    IntakeStep(
        field=ProfileField.NAME,
        prompt=(
            "Namaste! Welcome to your Vedic Action Guidance System.\n\n"
            "I am your onboarding assistant. Before we start I need to understand you better "
            "so we can build a practical plan together.\n\n"
            "First, what is your full name?"
        ),
        summary_label="Name",
    ),
    IntakeStep(
        field=ProfileField.BIRTH_DETAILS,
        prompt=(
            "Nice to meet you, {name}!\n\n"
            "Now I need your **birth details** so the charts come out right:\n"
            "- Date of birth (DD/MM/YYYY)\n"
            "- Time of birth (exact or approximate)\n"
            "- Place of birth (city, country)"
        ),
        summary_label="Birth",
    ),
    IntakeStep(
        field=ProfileField.LOCATION_FOCUS,
        prompt=(
            "Got it, details noted.\n\n"
            "Where do you **live now** (current city)?\n\n"
            "And what is your **main focus area**? "
            "(e.g. Career, Money, Business, Love/Marriage, Health, Spirituality)"
        ),
        summary_label="Focus",
    ),
    IntakeStep(
        field=ProfileField.PROBLEMS,
        prompt=(
            "Understood. Everyone faces a few challenges.\n\n"
            "What are your **top 2-3 problems** or worries you want solutions for? Share openly."
        ),
        summary_label="Issues",
    ),
    IntakeStep(
        field=ProfileField.COMFORT_LEVEL,
        prompt=(
            "We will work on this together.\n\n"
            "One last question: for remedies, are you comfortable with **mantras/rituals**, "
            "would you prefer **practical habits** only, or a mix of both?"
        ),
        summary_label="Preferences",
    ),
)

CLOSING_MESSAGE = (
    "Thank you! Your details are noted.\n\n"
    "**Please note:** this system does not give medical, legal or guaranteed financial advice. "
    "The guidance follows Vedic astrology principles to help you align your actions.\n\n"
    "I will now use these details to generate your **Astro-Action Plan**. Stand by..."
)


class IntakeStateMachine:
    """Ask the fixed intake questions in order and build a frozen ``Profile``.

    Empty or whitespace-only input is ignored. Once the last field is
    accepted the machine is terminal: it publishes the profile to
    ``on_complete`` exactly once and ignores any further input.
    """

    def __init__(
        self,
        on_complete: Optional[CompletionHook] = None,
        *,
        handoff_delay: float = 0.0,
        steps: Tuple[IntakeStep, ...] = INTAKE_STEPS,
    ) -> None:
        self._steps = steps
        self._on_complete = on_complete
        self._handoff_delay = max(0.0, handoff_delay)
        self._cursor = 0
        self._collected: Dict[ProfileField, str] = {}
        self._turns: List[Turn] = []
        self._profile: Optional[Profile] = None
        self._handed_off = False
        self._prompt = self._render_prompt(0)
        self._say(self._prompt)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def is_complete(self) -> bool:
        return self._profile is not None

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def prompt(self) -> str:
        """The most recent system prompt shown to the user."""
        return self._prompt

    @property
    def turns(self) -> List[Turn]:
        return list(self._turns)

    def collected(self) -> Dict[str, str]:
        return {field.value: value for field, value in self._collected.items()}

    def submit(self, raw_text: str | None) -> IntakeReply:
        """Accept one user turn for the current field."""

        if self.is_complete:
            logger.warning("Intake already complete; ignoring late submission")
            return self._reply()

        text = (raw_text or "").strip()
        if not text:
            return self._reply()

        step = self._steps[self._cursor]
        self._collected[step.field] = text
        self._turns.append(Turn(speaker=Speaker.USER, text=text))
        self._cursor += 1
        logger.debug("Intake accepted %s (%d/%d)", step.field.value, self._cursor, len(self._steps))

        if self._cursor == len(self._steps):
            self._finalize()
        else:
            self._prompt = self._render_prompt(self._cursor)
            self._say(self._prompt)
        return self._reply()

    def summary(self) -> str:
        """Render the collected fields as a short markdown list."""

        return "\n".join(
            f"- **{step.summary_label}:** {self._collected[step.field]}"
            for step in self._steps
            if step.field in self._collected
        )

    def _finalize(self) -> None:
        self._profile = Profile(**{field.value: value for field, value in self._collected.items()})
        self._say(self.summary())
        self._prompt = CLOSING_MESSAGE
        self._say(CLOSING_MESSAGE)
        logger.info("Intake complete for %s", self._profile.name)
        self._schedule_handoff()

    def _schedule_handoff(self) -> None:
        if self._on_complete is None:
            return
        if self._handoff_delay <= 0:
            self._hand_off()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._hand_off()
            return
        loop.call_later(self._handoff_delay, self._hand_off)

    def _hand_off(self) -> None:
        if self._handed_off or self._profile is None:
            return
        self._handed_off = True
        self._on_complete(self._profile)

    def _render_prompt(self, index: int) -> str:
        values = {field.value: value for field, value in self._collected.items()}
        return self._steps[index].prompt.format_map(_Missing(values))

    def _say(self, text: str) -> None:
        self._turns.append(Turn(speaker=Speaker.SYSTEM, text=text))

    def _reply(self) -> IntakeReply:
        return IntakeReply(
            next_prompt=self._prompt,
            profile=self.collected(),
            is_complete=self.is_complete,
            summary=self.summary() if self.is_complete else None,
        )


class _Missing(dict):
    """format_map helper that leaves unknown placeholders untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"
