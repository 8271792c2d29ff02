#!/usr/bin/env python3
"""
Fishinge Control CLI - Outil d'administration.

Commands:
    fishinge_ctl.py status         - Saison active, prochaine saison, messages
    fishinge_ctl.py next-season    - Crée la saison suivante (même bundle)
    fishinge_ctl.py designate-bot  - Marque un compte comme bot
    fishinge_ctl.py add-message    - Ajoute un message de cooldown
    fishinge_ctl.py login          - OAuth du compte bot, tokens stockés chiffrés

Usage:
    python scripts/fishinge_ctl.py status --db fishinge.db
    python scripts/fishinge_ctl.py next-season --db fishinge.db
    python scripts/fishinge_ctl.py designate-bot supibot --db fishinge.db
    python scripts/fishinge_ctl.py login --config config/config.yaml
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import yaml
from twitchAPI.oauth import UserAuthenticator
from twitchAPI.twitch import Twitch

from database.manager import DatabaseManager
from modules.fishing import COOLDOWN_PLACEHOLDER, NoActiveSeason
from twitchapi.auth_manager import CHAT_SCOPES, Account


# ============================================================================
# Commands
# ============================================================================

def cmd_status(args):
    """Affiche la saison active et l'état du catalogue."""
    db = DatabaseManager(args.db, key_file=args.key_file)

    try:
        season = db.get_active_season()
        print(f"🗓️  Active season: {season['name']} ({season['start']} → {season['end'] or '∞'})")
        print(f"🐟 Fishes in bundle: {len(db.list_active_fishes(season['id']))}")
    except NoActiveSeason:
        print("⚠️  No active season")

    print(f"⏭️  Next season created: {'yes' if db.has_next_season() else 'no'}")
    print(f"💬 Cooldown messages: {len(db.list_messages())}")
    print(f"📚 Seasons: {', '.join(s['name'] for s in db.list_seasons()) or '-'}")
    return 0


def cmd_next_season(args):
    """Crée la saison suivante, sauf si elle existe déjà (--force pour forcer)."""
    db = DatabaseManager(args.db, key_file=args.key_file)

    if db.has_next_season() and not args.force:
        print("ℹ️  Next season already exists (use --force to create another one)")
        return 0

    try:
        season = db.create_next_season()
    except NoActiveSeason:
        print("❌ No season in database, run database/init_db.py --seed first")
        return 1

    print(f"✅ Season created: {season['name']} ({season['start']} → {season['end']})")
    return 0


def cmd_designate_bot(args):
    db = DatabaseManager(args.db, key_file=args.key_file)
    name = args.name.lstrip("@").lower()
    db.designate_bot(name)
    print(f"🤖 {name} designated as bot")
    return 0


def cmd_add_message(args):
    if COOLDOWN_PLACEHOLDER not in args.text:
        print(f"❌ Message must contain {COOLDOWN_PLACEHOLDER}")
        return 1

    db = DatabaseManager(args.db, key_file=args.key_file)
    message_id = db.add_message(args.text)
    print(f"✅ Message added (ID: {message_id})")
    return 0


async def _login(args):
    with open(args.config, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)

    app_id = config["twitch"]["client_id"]
    app_secret = config["twitch"]["client_secret"]
    username = args.username or config["bot"]["name"]

    print(f"⚠️  Un navigateur va s'ouvrir : connectez-vous avec le compte {username} !")

    twitch = await Twitch(app_id, app_secret)
    try:
        auth = UserAuthenticator(twitch, CHAT_SCOPES, force_verify=False, url=args.url)
        token, refresh_token = await auth.authenticate()

        db = DatabaseManager(args.db, key_file=args.key_file)
        account = Account(db, username)
        account.store_credential(token, refresh_token, scopes=[scope.value for scope in CHAT_SCOPES])

        # Vérifie que le token correspond bien au compte
        await account.validate(account.load_credential())
    finally:
        await twitch.close()

    print(f"✅ Tokens stored for {username}")
    return 0


def cmd_login(args):
    """OAuth flow (navigateur) puis stockage chiffré des tokens."""
    return asyncio.run(_login(args))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Fishinge Control CLI")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--db", type=str, default="fishinge.db", help="Database path")
    common.add_argument("--key-file", type=str, default=".fishinge.key", help="Encryption key path")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("status", parents=[common], help="Show seasons status")

    next_parser = subparsers.add_parser("next-season", parents=[common], help="Create the next season")
    next_parser.add_argument("--force", action="store_true", help="Create even if a future season exists")

    bot_parser = subparsers.add_parser("designate-bot", parents=[common], help="Mark an account as bot")
    bot_parser.add_argument("name", type=str, help="Twitch login")

    message_parser = subparsers.add_parser("add-message", parents=[common], help="Add a cooldown message")
    message_parser.add_argument("text", type=str, help=f"Message text, must contain {COOLDOWN_PLACEHOLDER}")

    login_parser = subparsers.add_parser("login", parents=[common], help="Authorize the bot account")
    login_parser.add_argument("--config", type=str, default="config/config.yaml", help="Config path")
    login_parser.add_argument("--username", type=str, help="Bot login (default: bot.name)")
    login_parser.add_argument("--url", type=str, default="http://localhost:17563", help="OAuth redirect base URL")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Route to command handlers
    commands = {
        "status": cmd_status,
        "next-season": cmd_next_season,
        "designate-bot": cmd_designate_bot,
        "add-message": cmd_add_message,
        "login": cmd_login,
    }

    sys.exit(commands[args.command](args))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        sys.exit(0)
