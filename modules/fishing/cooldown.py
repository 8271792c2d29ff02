"""
⏳ Cooldown gate

Decides whether a user may fish again and picks the deflection message shown
while they are on cooldown.

The message is picked with an RNG seeded from the integer timestamp of the
user's last catch: every blocked attempt within the same cooldown period
gets the same message. The seed is low-entropy, never use it for
anything security related.
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence, Union

from modules.fishing.errors import NoMessagesAvailable

LOGGER = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(hours=4)
COOLDOWN_CATEGORY = "cooldown"
COOLDOWN_PLACEHOLDER = "{cooldown}"


@dataclass(frozen=True)
class Allowed:
    """The user may fish now."""


@dataclass(frozen=True)
class Blocked:
    """The user is on cooldown for `remaining`."""
    remaining: timedelta


CooldownDecision = Union[Allowed, Blocked]


def check_cooldown(
    last_action: Optional[datetime],
    now: datetime,
    window: timedelta = DEFAULT_COOLDOWN,
) -> CooldownDecision:
    """Allowed iff now >= last_action + window (or the user never fished)."""
    if last_action is None:
        return Allowed()

    cooled_off = last_action + window
    if now >= cooled_off:
        return Allowed()
    return Blocked(remaining=cooled_off - now)


def format_duration(duration: timedelta) -> str:
    """
    Human readable duration, whole seconds only.

    >>> format_duration(timedelta(hours=3, minutes=59, seconds=59))
    '3h 59m 59s'
    """
    total = max(int(duration.total_seconds()), 0)
    if total == 0:
        return "0s"

    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = []
    if days:
        parts.append(f"{days}day" if days == 1 else f"{days}days")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def pick_cooldown_message(
    messages: Sequence[str],
    last_action: datetime,
    remaining: timedelta,
) -> str:
    """
    Pick the deflection message for a blocked user.

    Raises:
        NoMessagesAvailable: empty catalog
    """
    if not messages:
        raise NoMessagesAvailable(COOLDOWN_CATEGORY)

    seeded = random.Random(int(last_action.timestamp()))
    template = seeded.choice(list(messages))
    return template.replace(COOLDOWN_PLACEHOLDER, format_duration(remaining))
