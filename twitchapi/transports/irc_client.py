#!/usr/bin/env python3
"""
IRC Client - (avec timeout handling)
Client IRC Twitch:
- Écoute chat IRC → Publie sur chat.inbound
- Écoute chat.outbound → Envoie via IRC (reply threadé si reply_to)
- Ready / arrêt → Publie sur system.event
"""

import asyncio
import logging
from typing import List, Optional

from twitchAPI.chat import Chat, ChatMessage as TwitchChatMessage, EventData
from twitchAPI.twitch import Twitch
from twitchAPI.type import ChatEvent

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

LOGGER = logging.getLogger(__name__)


def to_chat_message(msg: TwitchChatMessage) -> ChatMessage:
    """twitchAPI ChatMessage -> DTO du MessageBus"""
    return ChatMessage(
        channel=msg.room.name,
        channel_id=msg.room.room_id or "",
        user_login=msg.user.name.lower(),
        user_id=msg.user.id or "",
        text=msg.text,
        message_id=msg.id,
        display_name=msg.user.display_name or msg.user.name,
        is_mod=bool(msg.user.mod),
        is_broadcaster=(msg.room.room_id == msg.user.id),
        transport="irc",
    )


class IRCClient:
    """
    Client IRC Twitch (Bidirectionnel)
    - Rejoint les channels
    - Écoute les messages → chat.inbound
    - Envoie les messages ← chat.outbound
    """

    def __init__(
        self,
        twitch: Twitch,
        bus: MessageBus,
        bot_login: str,
        channels: List[str],
        irc_send_timeout: float = 5.0
    ):
        """
        Args:
            twitch: Instance Twitch avec user token
            bus: MessageBus pour publier
            bot_login: Login du bot (pour ignorer ses propres messages)
            channels: Liste des channels à rejoindre
            irc_send_timeout: Timeout envoi IRC en secondes
        """
        self.twitch = twitch
        self.bus = bus
        self.bot_login = bot_login.lower()
        self.channels = [channel.lower().lstrip("#") for channel in channels]
        self.irc_send_timeout = irc_send_timeout

        self.chat: Optional[Chat] = None
        self._running = False

        self.bus.subscribe(TOPIC_OUTBOUND, self._handle_outbound_message)

        LOGGER.info(f"IRCClient init pour {bot_login} sur {len(channels)} channels (timeout={irc_send_timeout}s)")

    async def start(self) -> None:
        """Démarre le client IRC"""
        if self._running:
            LOGGER.warning("IRC Client déjà en cours")
            return

        LOGGER.info("🚀 Démarrage IRC Client...")

        try:
            # initial_channel: twitchAPI rejoint les channels après chaque reconnexion
            self.chat = await Chat(self.twitch, initial_channel=self.channels)

            self.chat.register_event(ChatEvent.READY, self._on_ready)
            self.chat.register_event(ChatEvent.MESSAGE, self._on_message)
            self.chat.register_event(ChatEvent.JOIN, self._on_join)

            self.chat.start()
            self._running = True

            LOGGER.info("✅ IRC Client démarré")

        except Exception as e:
            LOGGER.error(f"❌ Erreur démarrage IRC: {e}", exc_info=True)
            raise

    async def stop(self) -> None:
        """Arrête le client IRC proprement"""
        if not self._running:
            return

        LOGGER.info("🛑 Arrêt IRC Client...")

        if self.chat:
            self.chat.stop()
            self.chat = None

        self._running = False
        await self.bus.publish(TOPIC_SYSTEM, SystemEvent(kind=EVENT_CLOSED))
        LOGGER.info("✅ IRC Client arrêté")

    async def _on_ready(self, ready_event: EventData) -> None:
        """Callback quand IRC est ready (premier démarrage uniquement)"""
        LOGGER.info(f"📡 IRC Ready - channels: {', '.join(self.channels)}")
        await self.bus.publish(TOPIC_SYSTEM, SystemEvent(
            kind=EVENT_READY,
            payload={"channels": list(self.channels)},
        ))

    async def _on_join(self, join_event: EventData) -> None:
        if join_event.user_name.lower() == self.bot_login:
            LOGGER.info(f"📥 Joined #{join_event.room.name}")

    async def _on_message(self, msg: TwitchChatMessage) -> None:
        """
        Callback quand un message IRC arrive
        → Publie sur MessageBus (topic: chat.inbound)
        """
        if msg.user.name.lower() == self.bot_login:
            return

        LOGGER.debug(f"📥 IRC | {msg.user.name} dans #{msg.room.name}: {msg.text[:100]!r}")

        try:
            await self.bus.publish(TOPIC_INBOUND, to_chat_message(msg))
        except Exception as e:
            LOGGER.error(f"❌ Erreur publish chat.inbound: {e}")

    async def _handle_outbound_message(self, msg: OutboundMessage) -> None:
        """
        Envoie un message via IRC avec timeout

        Args:
            msg: Message à envoyer
        """
        if not self.chat or not self._running:
            LOGGER.warning(f"⚠️ IRC non prêt, message ignoré: {msg.text[:50]}")
            return

        if msg.reply_to:
            # Même format que twitchAPI ChatMessage.reply()
            send = self.chat.send_raw_irc_message(
                f"@reply-parent-msg-id={msg.reply_to} PRIVMSG #{msg.channel} :{msg.text}"
            )
        else:
            send = self.chat.send_message(msg.channel, msg.text)

        try:
            await asyncio.wait_for(send, timeout=self.irc_send_timeout)
            LOGGER.info(f"✅ Sent to #{msg.channel}: {msg.text[:50]}")

        except asyncio.TimeoutError:
            LOGGER.error(f"⏱️ Timeout envoi IRC à #{msg.channel} après {self.irc_send_timeout}s: {msg.text[:50]}")
        except Exception as e:
            LOGGER.error(f"❌ Erreur envoi IRC à #{msg.channel}: {e}", exc_info=True)

    def is_running(self) -> bool:
        """Retourne True si le client tourne"""
        return self._running
