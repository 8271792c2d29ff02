"""
twitchapi/
==========

Module dédié à la partie Twitch.

Organisation:
- auth_manager.py : Credential du bot (stocké chiffré en base)
- transports/ : Clients API Twitch
  - irc_client.py : IRC Twitch (chat)
"""

from twitchapi.auth_manager import Account, TokenInfo

__all__ = ["Account", "TokenInfo"]
