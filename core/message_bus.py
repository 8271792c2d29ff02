"""
🚌 MessageBus - Système de pub/sub interne

Découple le transport chat de la logique du jeu.
Fire-and-forget : un handler qui échoue est loggé, jamais propagé.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Set

LOGGER = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None]]


class MessageBus:
    """Bus de messages asynchrone simple (pub/sub)"""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(self, topic: str, handler: Handler):
        """
        Abonne un handler à un topic.

        Args:
            topic: Nom du topic ("chat.inbound", "chat.outbound", "system.event")
            handler: Fonction async qui traite les messages
        """
        self._subscribers.setdefault(topic, []).append(handler)
        LOGGER.info(f"📌 Subscriber ajouté: {topic} -> {getattr(handler, '__name__', handler)}")

    async def publish(self, topic: str, data: Any):
        """
        Publie un message sur un topic (fire-and-forget).

        Args:
            topic: Nom du topic
            data: ChatMessage, OutboundMessage, SystemEvent...
        """
        handlers = self._subscribers.get(topic, [])

        if not handlers:
            LOGGER.debug(f"⚠️ MessageBus: Aucun subscriber pour topic: {topic}")
            return

        LOGGER.debug(f"📤 MessageBus: Publish [{topic}] vers {len(handlers)} handlers")

        for handler in handlers:
            task = asyncio.create_task(self._safe_handle(handler, data, topic))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _safe_handle(self, handler: Handler, data: Any, topic: str):
        """Wrapper sécurisé pour exécuter les handlers"""
        try:
            await handler(data)
        except Exception as e:
            name = getattr(handler, '__name__', handler)
            LOGGER.error(f"❌ Erreur handler {name} sur topic {topic}: {e}", exc_info=True)

    async def wait_all(self):
        """Attend que toutes les tasks en cours se terminent"""
        if self._tasks:
            LOGGER.info(f"⏳ Attente de {len(self._tasks)} tasks...")
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def get_stats(self) -> Dict[str, int]:
        """Retourne les stats du bus"""
        return {
            "topics": len(self._subscribers),
            "subscribers": sum(len(h) for h in self._subscribers.values()),
            "active_tasks": len(self._tasks),
        }
