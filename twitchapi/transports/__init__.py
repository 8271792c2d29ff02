"""
twitchapi/transports/
=====================

Clients de transport pour l'API Twitch.

Modules:
- irc_client : Client IRC Twitch (chat, réponses threadées)
"""

from twitchapi.transports.irc_client import IRCClient

__all__ = ["IRCClient"]
