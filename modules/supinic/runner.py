"""
🤖 Supinic auto-fisher

Plays supibot's $fish game on our behalf: sends `$fish`, reads the reply,
sells whatever was caught and sleeps until the cooldown is over.

Inputs come from the MessageBus:
- chat.inbound: supibot lines addressed to us
- system.event: transport ready / closed
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from core.message_bus import MessageBus
from core.message_types import (
    EVENT_CLOSED,
    EVENT_READY,
    TOPIC_INBOUND,
    TOPIC_OUTBOUND,
    TOPIC_SYSTEM,
    ChatMessage,
    OutboundMessage,
    SystemEvent,
)
from modules.supinic.fish_response import (
    FishResponse,
    FishResponseError,
    Failure,
    Success,
    parse_fish_response,
)

LOGGER = logging.getLogger(__name__)

MIN_SLEEP = timedelta(seconds=5)
MAX_SLEEP = timedelta(hours=24)
SLEEP_MARGIN = timedelta(seconds=0.3)


class RunnerError(Exception):
    """The runner cannot continue."""


class ChannelClosed(RunnerError):
    def __init__(self):
        super().__init__("channel closed")


class ReceiveTimeout(RunnerError):
    def __init__(self, command: str, tries: int):
        super().__init__(f"timed out waiting for a response to {command!r} after {tries} tries")
        self.command = command
        self.tries = tries


@dataclass
class RunnerConfig:
    """Supinic runner configuration."""
    channel: str
    username: str                       # Our login, supibot addresses us by it
    bot_login: str = "supibot"
    command: str = "$fish skipStory:true"
    response_timeout: float = 3.0       # seconds per try
    retries: int = 3
    backoff_min: float = 5.2            # seconds
    backoff_max: float = 30.0           # seconds
    sell_delay: float = 5.2             # supibot's own command cooldown
    parse_error_delay: float = 5.2

    @classmethod
    def from_yaml(cls, yaml_config: Dict[str, Any]) -> "RunnerConfig":
        """Load configuration from YAML config dict."""
        supinic_cfg = yaml_config.get("supinic", {})
        twitch_cfg = yaml_config.get("twitch", {})
        bot_cfg = yaml_config.get("bot", {})

        channels = twitch_cfg.get("channels") or []
        return cls(
            channel=supinic_cfg.get("channel") or (channels[0] if channels else ""),
            username=bot_cfg.get("name", "").lower(),
            bot_login=supinic_cfg.get("bot_login", "supibot").lower(),
            command=supinic_cfg.get("command", "$fish skipStory:true"),
            response_timeout=supinic_cfg.get("response_timeout", 3.0),
            retries=supinic_cfg.get("retries", 3),
            backoff_min=supinic_cfg.get("backoff_min", 5.2),
            backoff_max=supinic_cfg.get("backoff_max", 30.0),
            sell_delay=supinic_cfg.get("sell_delay", 5.2),
            parse_error_delay=supinic_cfg.get("parse_error_delay", 5.2),
        )


def clamp_cooldown(cooldown: timedelta) -> timedelta:
    """Time to sleep after a response: cooldown clamped to [5s, 24h] plus a small margin."""
    return min(max(cooldown, MIN_SLEEP), MAX_SLEEP) + SLEEP_MARGIN


class SupinicFishRunner:
    """
    Auto-fisher loop.

    Usage:
        runner = SupinicFishRunner(bus, RunnerConfig.from_yaml(config))
        await runner.run()
    """

    def __init__(
        self,
        bus: MessageBus,
        config: RunnerConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.bus = bus
        self.config = config
        self._sleep = sleep
        self._rng = rng or random.Random()

        # None is the "channel closed" sentinel
        self._responses: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._ready = asyncio.Event()
        self._closed = False

        self.bus.subscribe(TOPIC_INBOUND, self._on_chat_message)
        self.bus.subscribe(TOPIC_SYSTEM, self._on_system_event)

        LOGGER.info(f"SupinicFishRunner init: {config.username} in #{config.channel} (bot={config.bot_login})")

    # ==================== INPUTS ====================

    async def _on_chat_message(self, msg: ChatMessage) -> None:
        if msg.user_login.lower() != self.config.bot_login:
            return
        if not msg.text.startswith(self.config.username):
            return

        LOGGER.debug(f"📥 {self.config.bot_login}: {msg.text}")
        await self._responses.put(msg.text)

    async def _on_system_event(self, event: SystemEvent) -> None:
        if event.kind == EVENT_READY:
            LOGGER.info("📡 Chat ready")
            self._ready.set()
        elif event.kind == EVENT_CLOSED:
            self._closed = True
            self._ready.set()
            await self._responses.put(None)

    # ==================== COMMANDS ====================

    def _drain(self) -> None:
        """Drop replies that arrived late for a previous command."""
        while not self._responses.empty():
            text = self._responses.get_nowait()
            if text is None:
                raise ChannelClosed()
            LOGGER.debug(f"🗑️ Dropping stale response: {text}")

    async def _receive(self, timeout: float) -> Optional[str]:
        """Next supibot reply, or None after `timeout` seconds."""
        try:
            text = await asyncio.wait_for(self._responses.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if text is None:
            raise ChannelClosed()
        return text

    def _backoff(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at backoff_max."""
        delay = min(self.config.backoff_min * (2 ** attempt), self.config.backoff_max)
        return delay * self._rng.uniform(0.7, 1.0)

    async def send_command(self, command: str) -> str:
        """
        Send a command and wait for supibot's reply.

        Raises:
            ReceiveTimeout: no reply after all tries
            ChannelClosed: the transport went away
        """
        for attempt in range(self.config.retries):
            self._drain()

            LOGGER.debug(f"📤 Sending command: {command}")
            await self.bus.publish(TOPIC_OUTBOUND, OutboundMessage(channel=self.config.channel, text=command))

            text = await self._receive(self.config.response_timeout)
            if text is not None:
                return text

            if attempt + 1 < self.config.retries:
                delay = self._backoff(attempt)
                LOGGER.warning(f"⏱️ No response to {command!r}, retrying in {delay:.1f}s "
                               f"(attempt {attempt + 1}/{self.config.retries})")
                await self._sleep(delay)

        raise ReceiveTimeout(command, self.config.retries)

    async def sell(self, item: str) -> None:
        response = await self.send_command(f"$fish sell {item}")
        LOGGER.info(f"💰 Sold {item}: {response}")

    # ==================== LOOP ====================

    async def fish_once(self) -> Optional[FishResponse]:
        """
        One round: fish, sell the catch, return the parsed response.

        Returns:
            The response, or None if it could not be parsed
        """
        text = await self.send_command(self.config.command)

        try:
            response = parse_fish_response(text)
        except FishResponseError as e:
            LOGGER.error(f"❌ Failed to parse fish response from {text!r}: {e}")
            await self._sleep(self.config.parse_error_delay)
            return None

        LOGGER.debug(f"🐟 Fish response: {response}")

        kind = response.kind
        if isinstance(kind, Success):
            LOGGER.info(f"🎣 Caught {kind.catch} @ {kind.length} cm"
                        f"{' (new record!)' if kind.is_record else ''}")
            await self._sleep(self.config.sell_delay)
            await self.sell(kind.catch)
        elif isinstance(kind, Failure) and kind.junk is not None:
            LOGGER.info(f"🗑️ Caught junk: {kind.junk}")
            await self._sleep(self.config.sell_delay)
            await self.sell(kind.junk)
        elif isinstance(kind, Failure):
            LOGGER.info(f"🎣 Missed by {kind.distance} cm")
        else:
            LOGGER.info("⏳ $fish is on cooldown")

        return response

    async def run(self) -> None:
        """
        Fish forever.

        Raises:
            ChannelClosed / ReceiveTimeout: the loop cannot continue
        """
        LOGGER.info("🚀 Starting fish bot")

        LOGGER.debug("Waiting for chat to be ready")
        await self._ready.wait()
        if self._closed:
            raise ChannelClosed()

        while True:
            response = await self.fish_once()
            if response is None:
                continue

            cooldown = clamp_cooldown(response.cooldown)
            LOGGER.info(f"💤 Sleeping for {cooldown}")
            await self._sleep(cooldown.total_seconds())
