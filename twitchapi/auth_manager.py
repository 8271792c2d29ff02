#!/usr/bin/env python3
"""
Account
Credential du compte Twitch du bot, stocké chiffré en base (table accounts)

twitchAPI gère le refresh OAuth lui-même ; ce module charge le token au
démarrage et persiste chaque token rafraîchi via user_auth_refresh_callback.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import aiohttp
from twitchAPI.twitch import Twitch
from twitchAPI.type import AuthScope

from database.manager import DatabaseManager

LOGGER = logging.getLogger(__name__)

VALIDATE_URL = "https://id.twitch.tv/oauth2/validate"

# Scopes du bot de chat
CHAT_SCOPES = [AuthScope.CHAT_READ, AuthScope.CHAT_EDIT]


class AccountNotFound(LookupError):
    """Aucun compte stocké pour ce login."""


class AccountMismatch(RuntimeError):
    """Le token stocké appartient à un autre compte Twitch."""


@dataclass
class TokenInfo:
    """Info sur un token utilisateur"""
    user_login: str                     # Nom du compte
    access_token: str                   # Token d'accès
    refresh_token: str                  # Token de refresh
    expires_at: Optional[datetime] = None
    scopes: List[str] = field(default_factory=list)
    user_id: str = ""                   # ID Twitch (rempli par validate)


class Account:
    """
    Capability credential : load_credential / store_credential.

    Usage:
        account = Account(db, "fishinge_bot")
        await account.authenticate(twitch)
    """

    def __init__(self, db: DatabaseManager, username: str):
        self.db = db
        self.username = username.lower()

    def load_credential(self) -> TokenInfo:
        """
        Raises:
            AccountNotFound: pas de compte en base
        """
        data = self.db.get_account(self.username)
        if data is None:
            raise AccountNotFound(f"account `{self.username}` not found in database")

        return TokenInfo(
            user_login=self.username,
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=data["expires_at"],
            scopes=data["scopes"],
        )

    def store_credential(self, access_token: str, refresh_token: str,
                         scopes: Optional[List[str]] = None,
                         expires_in: Optional[int] = None) -> None:
        self.db.store_account_tokens(
            self.username, access_token, refresh_token,
            scopes=scopes, expires_in=expires_in,
        )

    async def refresh_callback(self, token: str, refresh_token: str) -> None:
        """Branché sur Twitch.user_auth_refresh_callback."""
        LOGGER.info(f"🔄 Token refreshed by twitchAPI for {self.username}, persisting")
        self.store_credential(token, refresh_token)

    async def validate(self, token_info: TokenInfo) -> TokenInfo:
        """
        Valide le token via /oauth2/validate et complète login, ID, scopes
        et expiration.

        Raises:
            AccountMismatch: le token appartient à un autre login
            aiohttp.ClientResponseError: token refusé par Twitch
        """
        async with aiohttp.ClientSession() as session:
            async with session.get(
                VALIDATE_URL,
                headers={"Authorization": f"OAuth {token_info.access_token}"}
            ) as resp:
                resp.raise_for_status()
                data = await resp.json()

        login = data.get("login", "")
        if login and login.lower() != self.username:
            raise AccountMismatch(f"stored token belongs to {login}, expected {self.username}")

        token_info.user_id = str(data.get("user_id", ""))
        token_info.scopes = data.get("scopes", token_info.scopes)
        expires_in = data.get("expires_in")
        if expires_in:
            token_info.expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)

        LOGGER.info(f"✅ Token validé: {self.username} (ID: {token_info.user_id})")
        LOGGER.debug(f"   Scopes: {token_info.scopes}")
        return token_info

    async def authenticate(self, twitch: Twitch, scopes: Optional[List[AuthScope]] = None) -> TokenInfo:
        """Charge le credential, l'injecte dans twitchAPI et branche la persistance des refresh."""
        token_info = self.load_credential()
        scopes = scopes or CHAT_SCOPES

        twitch.user_auth_refresh_callback = self.refresh_callback
        await twitch.set_user_authentication(
            token_info.access_token,
            scopes,
            token_info.refresh_token,
        )
        LOGGER.info(f"🔑 User authentication set for {self.username}")

        # twitchAPI may have refreshed the token while validating it
        token_info.access_token = twitch.get_user_auth_token() or token_info.access_token
        return await self.validate(token_info)
