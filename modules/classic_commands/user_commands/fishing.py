"""
🎣 User Commands - Fishinge
Le jeu de pêche, déclenché par "Fishinge" dans le chat.

Commands:
- Fishinge : Pêcher (cooldown 4h)
- 🐱 Fishinge : No catfishing!
- 🔍 / 🔎 Fishinge : Liste des poissons (dashboard)
- 🏆 Fishinge : Leaderboard (dashboard)
- ❓ Fishinge : Aide (dashboard)
- 💎 Fishinge : Meilleure prise
- 💰 Fishinge : Score total
- !bot : Présentation du bot

Pattern: handler(MessageHandler, ChatMessage, args: str) -> None
"""
import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import TYPE_CHECKING

from core.message_types import TOPIC_OUTBOUND, OutboundMessage
from modules.fishing import (
    Blocked,
    FishPopulation,
    generate_catch,
    pick_cooldown_message,
)

if TYPE_CHECKING:
    from core.message_handler import MessageHandler
    from core.message_types import ChatMessage

LOGGER = logging.getLogger(__name__)

NO_CATCH_YET = "you did not catch any fish yet"


async def reply(handler: "MessageHandler", msg: "ChatMessage", text: str) -> None:
    """Répond au message (thread Twitch si l'ID est connu, sinon @mention)."""
    if msg.message_id is None:
        text = f"@{msg.user_login} {text}"

    await handler.bus.publish(TOPIC_OUTBOUND, OutboundMessage(
        channel=msg.channel,
        text=text,
        reply_to=msg.message_id,
    ))


async def handle_bot_info(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    """!bot - Présentation"""
    await reply(handler, msg, "this micro bot allows you to fish. Type `❓ Fishinge` for help.")


async def handle_catfishing(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    await reply(handler, msg, "No catfishing!")


async def handle_fishes_link(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    await reply(handler, msg, f"fishes are here {handler.web_url}/fishes")


async def handle_leaderboard_link(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    await reply(handler, msg, f"check out the leaderboard at {handler.web_url}/leaderboard")


async def handle_help_link(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    await reply(handler, msg, f"the list of commands is here {handler.web_url}")


async def handle_top_catch(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    """💎 Fishinge - Prise la plus précieuse de l'utilisateur"""
    catch = handler.db.get_top_catch(msg.user_login)
    if catch is None:
        await reply(handler, msg, NO_CATCH_YET)
        return

    await reply(handler, msg, f"your most valuable catch is {catch}")


async def handle_score(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    """💰 Fishinge - Score total"""
    score = handler.db.get_score(msg.user_login)
    if score is None:
        await reply(handler, msg, NO_CATCH_YET)
        return

    await reply(handler, msg, f"your current score is ${score:.2f}")


async def handle_fish(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    """
    Fishinge - Une tentative de pêche

    Pipeline : cooldown (réservation atomique) → saison active → poissons
    de la saison → tirage → enregistrement → réponse.

    Raises:
        NoMessagesAvailable / NoActiveSeason / EmptyPopulation: données
        manquantes, gérées par MessageHandler (log, pas de réponse)
    """
    now = datetime.now(timezone.utc)
    user = msg.user_login.lower()

    # BEGIN IMMEDIATE may wait on another writer: keep it off the event loop
    loop = asyncio.get_running_loop()
    decision, last_action = await loop.run_in_executor(
        None, partial(handler.db.claim_fishing_slot, user, now, handler.cooldown)
    )

    if isinstance(decision, Blocked):
        messages = handler.db.list_messages()
        text = pick_cooldown_message(messages, last_action, decision.remaining)
        LOGGER.info(f"⏳ [fish] {user} on cooldown ({decision.remaining})")
        await reply(handler, msg, text)
        return

    season = handler.db.get_active_season(now)
    population = FishPopulation(handler.db.list_active_fishes(season["id"]))

    catch = generate_catch(population, rng=handler.rng, now=now)
    LOGGER.info(f"🎣 [fish] {user} caught {catch} ({season['name']})")

    handler.db.record_catch(user, catch, season["id"])

    await reply(handler, msg, f"caught a {catch}!")


async def handle_designate_bot(handler: "MessageHandler", msg: "ChatMessage", args: str = "") -> None:
    """
    🤖 Fishinge @name - Marque un compte comme bot (owner uniquement)

    Les bots restent dans le leaderboard mais sont masqués par défaut.
    """
    if msg.user_login.lower() != handler.owner:
        LOGGER.debug(f"🤖 [designate] ignored, {msg.user_login} is not the owner")
        return

    parts = args.split()
    if not parts:
        return

    target = parts[0].lstrip("@").lower()
    handler.db.designate_bot(target)
    await reply(handler, msg, f"designated {target} as bot")
