"""
Tests du routage des commandes Fishinge (core/message_handler.py)
et des handlers du jeu (modules/classic_commands/user_commands/fishing.py)
"""
import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from core.message_handler import MessageHandler, sanitize_text
from core.message_types import TOPIC_INBOUND, TOPIC_OUTBOUND, ChatMessage
from database.init_db import DEFAULT_COOLDOWN_MESSAGES
from modules.classic_commands.user_commands import fishing
from modules.fishing import Catch


def chat(text, user="alice", message_id="msg-1"):
    return ChatMessage(channel="test_channel", user_login=user, text=text, message_id=message_id)


@pytest.fixture
def handler(fake_bus, seeded_db, mock_config):
    return MessageHandler(fake_bus, seeded_db, mock_config, rng=random.Random(42))


@pytest.mark.unit
class TestResolve:
    """Emote devant Fishinge -> handler"""

    @pytest.mark.parametrize("text, expected", [
        ("Fishinge", fishing.handle_fish),
        ("🐱 Fishinge", fishing.handle_catfishing),
        ("🔍 Fishinge", fishing.handle_fishes_link),
        ("🔎 Fishinge", fishing.handle_fishes_link),
        ("🏆 Fishinge", fishing.handle_leaderboard_link),
        ("❓ Fishinge", fishing.handle_help_link),
        ("❓\ufe0f Fishinge", fishing.handle_help_link),
        ("💎 Fishinge", fishing.handle_top_catch),
        ("💰 Fishinge", fishing.handle_score),
        ("🤖 Fishinge @supibot", fishing.handle_designate_bot),
        ("!bot", fishing.handle_bot_info),
    ])
    def test_known_commands(self, handler, text, expected):
        command, _ = handler.resolve(text)
        assert command is expected

    def test_args(self, handler):
        assert handler.resolve("🤖 Fishinge @supibot please")[1] == "@supibot please"

    @pytest.mark.parametrize("text", ["🦆 Fishinge", "hello", "Fishinge!", "I like Fishinge a lot"])
    def test_not_a_command(self, handler, text):
        assert handler.resolve(text) is None

    def test_sanitize_invisible_characters(self):
        assert sanitize_text("Fishinge \U000e0000") == "Fishinge"
        assert sanitize_text("\u200bFishinge\ufeff") == "Fishinge"

    def test_subscribes_to_inbound(self, handler, fake_bus):
        assert handler._handle_chat_message in fake_bus.subscribers[TOPIC_INBOUND]

    def test_cooldown_from_config(self, fake_bus, seeded_db):
        custom = MessageHandler(fake_bus, seeded_db, {"fishing": {"cooldown_hours": 1}})
        assert custom.cooldown == timedelta(hours=1)


@pytest.mark.integration
class TestSimpleCommands:

    @pytest.mark.asyncio
    async def test_bot_info(self, handler, fake_bus):
        await handler._handle_chat_message(chat("!bot"))
        assert fake_bus.texts() == ["this micro bot allows you to fish. Type `❓ Fishinge` for help."]

    @pytest.mark.asyncio
    async def test_reply_is_threaded(self, handler, fake_bus):
        await handler._handle_chat_message(chat("🐱 Fishinge", message_id="abc"))

        topic, outbound = fake_bus.published[0]
        assert topic == TOPIC_OUTBOUND
        assert outbound.channel == "test_channel"
        assert outbound.reply_to == "abc"
        assert outbound.text == "No catfishing!"

    @pytest.mark.asyncio
    async def test_mention_without_message_id(self, handler, fake_bus):
        await handler._handle_chat_message(chat("🐱 Fishinge", message_id=None))
        assert fake_bus.texts() == ["@alice No catfishing!"]

    @pytest.mark.asyncio
    async def test_links(self, handler, fake_bus):
        for text in ("🔍 Fishinge", "🏆 Fishinge", "❓ Fishinge"):
            await handler._handle_chat_message(chat(text))

        assert fake_bus.texts() == [
            "fishes are here https://fishinge.test/fishes",
            "check out the leaderboard at https://fishinge.test/leaderboard",
            "the list of commands is here https://fishinge.test",
        ]

    @pytest.mark.asyncio
    async def test_own_messages_are_ignored(self, handler, fake_bus):
        await handler._handle_chat_message(chat("!bot", user="test_bot"))
        assert fake_bus.published == []
        assert handler.command_count == 0

    @pytest.mark.asyncio
    async def test_unknown_emote_is_ignored(self, handler, fake_bus):
        await handler._handle_chat_message(chat("🦆 Fishinge"))
        assert fake_bus.published == []


@pytest.mark.integration
class TestFishCommand:

    @pytest.mark.asyncio
    async def test_catch_then_cooldown(self, handler, fake_bus, seeded_db):
        await handler._handle_chat_message(chat("Fishinge"))
        await handler._handle_chat_message(chat("Fishinge"))

        first, second = fake_bus.texts()
        assert first.startswith("caught a ")
        assert first.endswith("!")
        assert seeded_db.get_score("alice") is not None

        prefixes = [template.split("{cooldown}")[0] for template in DEFAULT_COOLDOWN_MESSAGES]
        assert any(second.startswith(prefix) for prefix in prefixes)
        assert "{cooldown}" not in second

    @pytest.mark.asyncio
    async def test_cooldown_message_is_stable(self, handler, fake_bus):
        await handler._handle_chat_message(chat("Fishinge"))
        await handler._handle_chat_message(chat("Fishinge"))
        await handler._handle_chat_message(chat("Fishinge"))

        _, second, third = fake_bus.texts()
        prefixes = [template.split("{cooldown}")[0] for template in DEFAULT_COOLDOWN_MESSAGES]
        assert [p for p in prefixes if second.startswith(p)] == [p for p in prefixes if third.startswith(p)]

    @pytest.mark.asyncio
    async def test_users_have_separate_cooldowns(self, handler, fake_bus):
        await handler._handle_chat_message(chat("Fishinge", user="alice"))
        await handler._handle_chat_message(chat("Fishinge", user="bob"))

        assert all(text.startswith("caught a ") for text in fake_bus.texts())

    @pytest.mark.asyncio
    async def test_concurrent_attempts_catch_once(self, handler, fake_bus, seeded_db):
        """Deux Fishinge simultanés du même utilisateur : une seule prise"""
        await asyncio.gather(
            handler._handle_chat_message(chat("Fishinge", message_id="msg-1")),
            handler._handle_chat_message(chat("Fishinge", message_id="msg-2")),
        )

        with seeded_db._get_connection() as conn:
            catches = conn.execute("SELECT COUNT(*) FROM catches").fetchone()[0]
        assert catches == 1

        texts = fake_bus.texts()
        assert len(texts) == 2
        assert sum(text.startswith("caught a ") for text in texts) == 1

    @pytest.mark.asyncio
    async def test_no_season_no_reply(self, fake_bus, db, mock_config):
        handler = MessageHandler(fake_bus, db, mock_config)
        await handler._handle_chat_message(chat("Fishinge"))
        assert fake_bus.published == []

    @pytest.mark.asyncio
    async def test_no_cooldown_messages_no_reply(self, fake_bus, seeded_db, mock_config):
        with seeded_db._get_connection() as conn:
            conn.execute("DELETE FROM messages")

        handler = MessageHandler(fake_bus, seeded_db, mock_config)
        await handler._handle_chat_message(chat("Fishinge"))
        await handler._handle_chat_message(chat("Fishinge"))

        assert len(fake_bus.texts()) == 1

    @pytest.mark.asyncio
    async def test_empty_bundle_no_reply(self, fake_bus, db, mock_config):
        bundle_id = db.create_bundle("empty")
        now = datetime.now(timezone.utc)
        db.create_season("Empty", now - timedelta(days=1), now + timedelta(days=1), bundle_id)

        handler = MessageHandler(fake_bus, db, mock_config)
        await handler._handle_chat_message(chat("Fishinge"))

        assert fake_bus.published == []


@pytest.mark.integration
class TestScoreCommands:

    @pytest.mark.asyncio
    async def test_no_catch_yet(self, handler, fake_bus):
        await handler._handle_chat_message(chat("💎 Fishinge"))
        await handler._handle_chat_message(chat("💰 Fishinge"))
        assert fake_bus.texts() == ["you did not catch any fish yet"] * 2

    @pytest.mark.asyncio
    async def test_top_catch_and_score(self, handler, fake_bus, seeded_db):
        season = seeded_db.get_active_season()
        fish = seeded_db.list_active_fishes(season["id"])[0]
        seeded_db.set_last_action("alice", datetime.now(timezone.utc))
        seeded_db.record_catch("alice", Catch(fish.id, fish.name, 1.25, 123.456), season["id"])

        await handler._handle_chat_message(chat("💎 Fishinge"))
        await handler._handle_chat_message(chat("💰 Fishinge"))

        assert fake_bus.texts() == [
            f"your most valuable catch is {fish.name} (1.2kg) worth $123.46",
            "your current score is $123.46",
        ]


@pytest.mark.integration
class TestDesignateBot:

    @pytest.mark.asyncio
    async def test_owner_designates(self, handler, fake_bus, seeded_db):
        await handler._handle_chat_message(chat("🤖 Fishinge @SupiBot", user="test_owner"))

        assert fake_bus.texts() == ["designated supibot as bot"]
        assert seeded_db.get_user("supibot")["is_bot"] is True

    @pytest.mark.asyncio
    async def test_other_users_are_ignored(self, handler, fake_bus, seeded_db):
        await handler._handle_chat_message(chat("🤖 Fishinge @supibot", user="alice"))

        assert fake_bus.published == []
        assert seeded_db.get_user("supibot") is None

    @pytest.mark.asyncio
    async def test_missing_target(self, handler, fake_bus):
        await handler._handle_chat_message(chat("🤖 Fishinge", user="test_owner"))
        assert fake_bus.published == []
