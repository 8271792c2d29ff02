#!/usr/bin/env python3
"""
Message Handler
Route les commandes Fishinge du chat et publie les réponses sur MessageBus
"""
import logging
import random
import re
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from core.message_bus import MessageBus
from core.message_types import TOPIC_INBOUND, ChatMessage
from database.manager import DatabaseManager
from modules.classic_commands.user_commands import fishing
from modules.fishing import DEFAULT_COOLDOWN, FishingError

LOGGER = logging.getLogger(__name__)

COMMAND_REGEX = re.compile(r"^((?P<emote>\S+)\s+)?Fishinge( (?P<args>.*))?$")

CommandHandler = Callable[["MessageHandler", ChatMessage, str], Awaitable[None]]

# Emote devant "Fishinge" -> handler (None = pas d'emote)
EMOTE_COMMANDS: Dict[Optional[str], CommandHandler] = {
    None: fishing.handle_fish,
    "🐱": fishing.handle_catfishing,
    "🔍": fishing.handle_fishes_link,
    "🔎": fishing.handle_fishes_link,
    "🏆": fishing.handle_leaderboard_link,
    "🤖": fishing.handle_designate_bot,
    "❓": fishing.handle_help_link,
    "💎": fishing.handle_top_catch,
    "💰": fishing.handle_score,
}

# Variation selector added by some emoji keyboards ("❓️")
_VARIATION_SELECTOR = "\ufe0f"


def sanitize_text(text: str) -> str:
    """
    Supprime les caractères invisibles que certains clients ajoutent aux
    messages (Unicode Tag Characters U+E0000-U+E007F, zero-width, BOM).
    """
    return "".join(
        char for char in text
        if not (0xE0000 <= ord(char) <= 0xE007F
                or 0x200B <= ord(char) <= 0x200D
                or ord(char) == 0xFEFF)
    ).strip()


class MessageHandler:
    """
    Handler pour les commandes chat

    Traite:
    - !bot: Présentation
    - [emote] Fishinge [args]: voir EMOTE_COMMANDS
    """

    def __init__(self, bus: MessageBus, db: DatabaseManager, config: Optional[Dict[str, Any]] = None,
                 rng: Optional[random.Random] = None):
        """
        Args:
            bus: MessageBus pour subscribe/publish
            db: Persistance du jeu
            config: Configuration du bot (sections bot, fishing)
            rng: Source d'aléa des prises (tests)
        """
        self.bus = bus
        self.db = db
        self.config = config or {}
        self.rng = rng
        self.start_time = time.time()
        self.command_count = 0

        bot_config = self.config.get("bot", {})
        self.bot_login = bot_config.get("name", "").lower()
        self.owner = bot_config.get("owner", "").lower()
        self.web_url = bot_config.get("web_url", "").rstrip("/")

        cooldown_hours = self.config.get("fishing", {}).get("cooldown_hours")
        self.cooldown = timedelta(hours=cooldown_hours) if cooldown_hours else DEFAULT_COOLDOWN

        self.bus.subscribe(TOPIC_INBOUND, self._handle_chat_message)

        LOGGER.info(f"MessageHandler initialisé (cooldown={self.cooldown}, owner={self.owner or '-'})")

    def resolve(self, text: str) -> Optional[tuple]:
        """
        Trouve le handler d'un message.

        Returns:
            (handler, args) ou None si le message n'est pas une commande
        """
        if text.startswith("!bot"):
            return fishing.handle_bot_info, ""

        match = COMMAND_REGEX.match(text)
        if not match:
            return None

        emote = match.group("emote")
        if emote is not None:
            emote = emote.replace(_VARIATION_SELECTOR, "")

        command = EMOTE_COMMANDS.get(emote)
        if command is None:
            LOGGER.debug(f"Unknown Fishinge emote: {emote}")
            return None

        return command, match.group("args") or ""

    async def _handle_chat_message(self, msg: ChatMessage) -> None:
        """
        Traite un message chat entrant.

        Les erreurs de données du jeu (pas de saison, pas de poisson, pas de
        message de cooldown) et les erreurs de persistance sont loggées ;
        aucune réponse n'est envoyée.
        """
        if self.bot_login and msg.user_login.lower() == self.bot_login:
            return

        text = sanitize_text(msg.text or "")
        if not text:
            return

        resolved = self.resolve(text)
        if resolved is None:
            return

        command, args = resolved
        self.command_count += 1
        LOGGER.info(f"🤖 Command: {command.__name__} from {msg.user_login} in #{msg.channel}")

        try:
            await command(self, msg, args)
        except FishingError as e:
            LOGGER.error(f"❌ {command.__name__} for {msg.user_login}: {e}")
        except Exception as e:
            LOGGER.error(f"❌ {command.__name__} failed for {msg.user_login}: {e}", exc_info=True)
