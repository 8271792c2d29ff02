"""
Core - Messaging et routage des commandes
"""

from core.message_bus import MessageBus
from core.message_types import ChatMessage, OutboundMessage, SystemEvent

__all__ = ["ChatMessage", "MessageBus", "OutboundMessage", "SystemEvent"]
