"""
Fishing errors

Every failure path of the game core raises its own exception type so callers
(and tests) can tell which one happened.
"""


class FishingError(Exception):
    """Base class for game data/configuration errors (fatal to one request)."""


class EmptyPopulation(FishingError):
    """No fish can be selected (empty bundle or all populations at zero)."""

    def __init__(self, reason: str = "fish population is empty"):
        super().__init__(reason)
        self.reason = reason


class InvalidFishDefinition(FishingError):
    """A fish definition breaks the weight range / population invariants."""


class NoMessagesAvailable(FishingError):
    """The message catalog has no entry for the requested category."""

    def __init__(self, category: str):
        super().__init__(f"no {category} messages found in database")
        self.category = category


class NoActiveSeason(FishingError):
    """No season covers the current date."""


class FishNotFound(FishingError):
    """A catch or query references a fish that does not exist."""
