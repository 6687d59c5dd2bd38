"""Exception types raised by the journey core."""

from __future__ import annotations


class VedicFlowError(Exception):
    """Base class for journey errors."""


class ProviderFailure(VedicFlowError):
    """The text-generation provider did not return usable text.

    Network errors, provider-reported errors, timeouts and empty responses
    all collapse into this one kind.
    """


class InvalidTransition(VedicFlowError):
    """An action was requested that the current state does not allow."""
