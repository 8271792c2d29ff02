#!/usr/bin/env python3
"""
Fishinge - Twitch fishing bot

Deux modes:
- fishinge: le jeu de pêche du chat ([emote] Fishinge)
- supinic: auto-pêcheur pour le $fish de supibot
"""

import argparse
import asyncio
import logging
import os
import pathlib
import signal
import sys

import yaml
from twitchAPI.twitch import Twitch

from core.message_bus import MessageBus
from core.message_handler import MessageHandler
from database.manager import DatabaseManager
from modules.supinic.runner import RunnerConfig, RunnerError, SupinicFishRunner
from twitchapi.auth_manager import Account, AccountMismatch, AccountNotFound
from twitchapi.transports.irc_client import IRCClient

# Logger will be configured in setup_logging()
LOGGER = logging.getLogger(__name__)


def parse_args():
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(description="Fishinge - Twitch fishing bot")
    parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to config file (default: config/config.yaml)'
    )
    parser.add_argument(
        '--db',
        type=str,
        default=None,
        help='Path to database file (default: database.path or fishinge.db)'
    )
    parser.add_argument(
        '--mode',
        type=str,
        choices=['fishinge', 'supinic'],
        default=None,
        help='fishinge: chat fishing game, supinic: play supibot $fish (default: bot.mode)'
    )
    return parser.parse_args()


def setup_logging(log_file="logs/fishinge.log"):
    """Logs vers fichier + console"""
    log_path = pathlib.Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler()
        ],
        force=True  # Override any existing config
    )
    return log_path


def load_config(config_path='config/config.yaml'):
    """Charge config.yaml (client_id / client_secret surchargeables par l'env)"""
    config_file = pathlib.Path(config_path)
    if not config_file.exists():
        LOGGER.error(f"Config file {config_path} not found")
        sys.exit(1)
    with open(config_file, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    twitch_config = config.setdefault("twitch", {})
    if os.getenv("TWITCH_CLIENT_ID"):
        twitch_config["client_id"] = os.environ["TWITCH_CLIENT_ID"]
    if os.getenv("TWITCH_CLIENT_SECRET"):
        twitch_config["client_secret"] = os.environ["TWITCH_CLIENT_SECRET"]
    return config


async def main():
    """Main entry point: auth, IRC client, puis jeu ou auto-pêcheur"""
    args = parse_args()
    log_file = setup_logging()

    config = load_config(args.config)
    twitch_config = config.get("twitch", {})
    bot_config = config.get("bot", {})
    timeouts = config.get("timeouts", {})
    db_config = config.get("database", {})

    mode = args.mode or bot_config.get("mode", "fishinge")
    db_path = args.db or db_config.get("path", "fishinge.db")

    app_id = twitch_config.get("client_id")
    app_secret = twitch_config.get("client_secret")
    bot_name = bot_config.get("name", "")
    channels = twitch_config.get("channels", [])

    if not app_id or not app_secret:
        LOGGER.error("client_id ou client_secret manquant")
        sys.exit(1)
    if not bot_name or not channels:
        LOGGER.error("bot.name ou twitch.channels manquant")
        sys.exit(1)

    print("=" * 70)
    print(f"Fishinge - mode {mode}")
    print(f"Database: {db_path} | Logs: {log_file}")
    print("=" * 70)

    try:
        db = DatabaseManager(db_path=db_path, key_file=db_config.get("key_file", ".fishinge.key"))
        LOGGER.info(f"📦 Connected to database: {db_path}")
    except FileNotFoundError as e:
        LOGGER.error(f"❌ {e}")
        sys.exit(1)

    twitch = await Twitch(app_id, app_secret)

    try:
        await Account(db, bot_name).authenticate(twitch)
    except (AccountNotFound, AccountMismatch) as e:
        LOGGER.error(f"❌ {e}")
        await twitch.close()
        sys.exit(1)

    bus = MessageBus()
    irc_client = IRCClient(
        twitch=twitch,
        bus=bus,
        bot_login=bot_name,
        channels=channels,
        irc_send_timeout=timeouts.get("irc_send", 5.0),
    )

    runner_task = None
    if mode == "fishinge":
        MessageHandler(bus, db, config)
    else:
        runner = SupinicFishRunner(bus, RunnerConfig.from_yaml(config))
        runner_task = asyncio.create_task(runner.run())

    stop_event = asyncio.Event()

    def handle_shutdown(sig, frame):
        LOGGER.info(f"🛑 Received signal {sig}, shutting down...")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    await irc_client.start()
    print(f'📺 Channels: {", ".join(f"#{c}" for c in channels)}')
    print('   Press CTRL+C to shutdown...\n')

    try:
        if runner_task is None:
            await stop_event.wait()
        else:
            stop_task = asyncio.create_task(stop_event.wait())
            await asyncio.wait({runner_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            stop_task.cancel()
            if runner_task.done():
                try:
                    runner_task.result()
                except RunnerError as e:
                    LOGGER.error(f"❌ Fish bot stopped: {e}")
    finally:
        LOGGER.info("Arret...")

        if runner_task and not runner_task.done():
            runner_task.cancel()

        await irc_client.stop()
        await bus.wait_all()
        await twitch.close()

        LOGGER.info("Termine")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nAu revoir !")
