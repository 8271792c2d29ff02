"""
📦 Message Types - DTOs pour le système de messaging

Contrats de données entre le transport chat et la logique du jeu.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ChatMessage:
    """Message entrant (chat IRC)"""
    channel: str                        # Nom du channel (sans #)
    user_login: str                     # Login de l'utilisateur (minuscules)
    text: str                           # Contenu du message
    channel_id: str = ""                # ID Twitch du broadcaster
    user_id: str = ""                   # ID Twitch de l'utilisateur
    message_id: Optional[str] = None    # ID du message (pour y répondre)
    display_name: str = ""              # Nom affiché
    is_mod: bool = False
    is_broadcaster: bool = False
    transport: str = "irc"


@dataclass
class OutboundMessage:
    """Message sortant (à envoyer dans le chat)"""
    channel: str                        # Nom du channel (sans #)
    text: str                           # Contenu du message
    reply_to: Optional[str] = None      # ID du message parent (pour reply)


@dataclass
class SystemEvent:
    """Événement du transport (ready, reconnect, ...)"""
    kind: str                           # "chat.ready", "chat.closed"
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


# Topics du MessageBus
TOPIC_INBOUND = "chat.inbound"
TOPIC_OUTBOUND = "chat.outbound"
TOPIC_SYSTEM = "system.event"

EVENT_READY = "chat.ready"
EVENT_CLOSED = "chat.closed"
