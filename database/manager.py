#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Fishinge - Database Manager

Persistance SQLite du jeu : utilisateurs, bundles de poissons, saisons,
prises, messages de cooldown, comptes Twitch (tokens chiffrés).

Toutes les dates sont stockées en texte ISO-8601 UTC (largeur fixe,
microsecondes incluses) pour que les comparaisons SQL restent correctes.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from database.crypto import TokenEncryptor
from modules.fishing.cooldown import (
    COOLDOWN_CATEGORY,
    DEFAULT_COOLDOWN,
    Allowed,
    CooldownDecision,
    check_cooldown,
)
from modules.fishing.errors import NoActiveSeason
from modules.fishing.models import FLOAT32_EPSILON, Catch, FishDefinition
from modules.fishing.seasons import YearAndQuarter

logger = logging.getLogger(__name__)


def to_db_time(value: datetime) -> str:
    """datetime -> texte ISO UTC (les datetimes naïfs sont supposés UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DatabaseManager:
    """
    Gestionnaire principal de la base de données.

    Gère :
    - Utilisateurs (cooldown, statut bot)
    - Bundles, poissons et saisons
    - Prises et agrégats du dashboard
    - Messages de cooldown
    - Comptes Twitch (tokens OAuth chiffrés)
    """

    def __init__(self, db_path: str = "fishinge.db", key_file: str = ".fishinge.key"):
        """
        Initialise le gestionnaire de base de données.

        Args:
            db_path: Chemin vers le fichier SQLite
            key_file: Chemin vers la clé de chiffrement des tokens
        """
        self.db_path = db_path
        self.key_file = key_file
        self._encryptor: Optional[TokenEncryptor] = None

        # Vérifier que la DB existe
        if not Path(db_path).exists():
            raise FileNotFoundError(
                f"Database file not found: {db_path}\n"
                f"Run: python database/init_db.py --db {db_path}"
            )

        # Configurer SQLite
        self._setup_connection()
        logger.info(f"DatabaseManager initialized: {db_path}")

    @property
    def encryptor(self) -> TokenEncryptor:
        """Chargé à la demande : seuls les comptes ont besoin de la clé."""
        if self._encryptor is None:
            self._encryptor = TokenEncryptor(key_file=self.key_file)
        return self._encryptor

    def _setup_connection(self):
        """Configure les paramètres SQLite persistants."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

    @contextmanager
    def _get_connection(self):
        """
        Context manager pour les connexions SQLite.

        Usage:
            with manager._get_connection() as conn:
                cursor = conn.execute(...)
        """
        conn = sqlite3.connect(self.db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row  # Permet d'accéder aux colonnes par nom
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA busy_timeout = 5000")
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}", exc_info=True)
            raise
        finally:
            conn.close()

    # ==================== USERS ====================

    def get_user(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Récupère un utilisateur par son login Twitch.

        Returns:
            Dict avec id, name, is_bot, last_fished (datetime) ou None
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE name = ?",
                (name.lower(),)
            ).fetchone()
            if not row:
                return None
            user = dict(row)
            user["is_bot"] = bool(user["is_bot"])
            user["last_fished"] = from_db_time(user["last_fished"])
            return user

    def get_last_action(self, name: str) -> Optional[datetime]:
        """Dernière pêche de l'utilisateur (None = jamais)."""
        user = self.get_user(name)
        return user["last_fished"] if user else None

    def set_last_action(self, name: str, when: datetime) -> None:
        """Enregistre la dernière pêche (crée l'utilisateur si besoin)."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO users (name, last_fished) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET last_fished = excluded.last_fished
                """,
                (name.lower(), to_db_time(when))
            )

    def claim_fishing_slot(
        self,
        name: str,
        now: Optional[datetime] = None,
        window: timedelta = DEFAULT_COOLDOWN,
    ) -> Tuple[CooldownDecision, Optional[datetime]]:
        """
        Vérifie le cooldown et réserve la pêche en une seule transaction.

        La transaction est ouverte en BEGIN IMMEDIATE : deux demandes
        concurrentes du même utilisateur sont sérialisées, une seule obtient
        Allowed.

        Args:
            name: Login Twitch
            now: Instant de la demande (UTC)
            window: Durée du cooldown

        Returns:
            (décision, last_fished avant la demande)
        """
        now = now or _utcnow()
        name = name.lower()

        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT last_fished FROM users WHERE name = ?",
                (name,)
            ).fetchone()
            last_action = from_db_time(row["last_fished"]) if row else None

            decision = check_cooldown(last_action, now, window)
            if isinstance(decision, Allowed):
                conn.execute(
                    """
                    INSERT INTO users (name, last_fished) VALUES (?, ?)
                    ON CONFLICT(name) DO UPDATE SET last_fished = excluded.last_fished
                    """,
                    (name, to_db_time(now))
                )

            return decision, last_action

    def designate_bot(self, name: str) -> None:
        """Marque un compte comme bot (crée l'utilisateur si besoin)."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO users (name, is_bot) VALUES (?, 1)
                ON CONFLICT(name) DO UPDATE SET is_bot = 1
                """,
                (name.lower(),)
            )
            logger.info(f"🤖 User designated as bot: {name.lower()}")

    # ==================== BUNDLES & FISHES ====================

    def create_bundle(self, name: str) -> int:
        """Crée un bundle (ensemble nommé de poissons). Retourne son ID."""
        with self._get_connection() as conn:
            cursor = conn.execute("INSERT INTO bundles (name) VALUES (?)", (name,))
            logger.info(f"Bundle created: {name} (ID: {cursor.lastrowid})")
            return cursor.lastrowid

    def add_fish(self, bundle_id: int, name: str, html_name: str, count: int,
                 base_value: int, min_weight: float = 0.0, max_weight: float = 0.0,
                 is_trash: bool = False) -> int:
        """
        Ajoute un poisson à un bundle.

        Args:
            bundle_id: Bundle cible
            name: Emoji affiché dans le chat
            html_name: Nom affiché sur le dashboard
            count: Population (poids du tirage)
            base_value: Valeur de base (négative pour les déchets)
            min_weight / max_weight: 0 = pas de variation de poids
            is_trash: Déchet

        Returns:
            L'ID du poisson créé
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO fishes (name, html_name, count, base_value, min_weight, max_weight, is_trash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (name, html_name, count, base_value, min_weight, max_weight, is_trash)
            )
            fish_id = cursor.lastrowid
            conn.execute(
                "INSERT INTO bundle_fishes (bundle_id, fish_id) VALUES (?, ?)",
                (bundle_id, fish_id)
            )
            return fish_id

    def list_active_fishes(self, season_id: int) -> List[FishDefinition]:
        """
        Poissons du bundle de la saison (relu à chaque tentative, pas de cache).

        Raises:
            InvalidFishDefinition: ligne incohérente en base
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT f.*
                FROM fishes f
                JOIN bundle_fishes bf ON bf.fish_id = f.id
                JOIN seasons s ON s.bundle_id = bf.bundle_id
                WHERE s.id = ?
                ORDER BY f.id
                """,
                (season_id,)
            )
            return [FishDefinition.from_row(row) for row in cursor.fetchall()]

    # ==================== SEASONS ====================

    def _season_from_row(self, row: sqlite3.Row) -> Dict[str, Any]:
        season = dict(row)
        season["start"] = from_db_time(season["start"])
        season["end"] = from_db_time(season["end"])
        return season

    def create_season(self, name: str, start: datetime, end: Optional[datetime],
                      bundle_id: int) -> int:
        """Crée une saison. `end=None` = saison sans fin (legacy)."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO seasons (name, start, end, bundle_id) VALUES (?, ?, ?, ?)",
                (name, to_db_time(start), to_db_time(end) if end else None, bundle_id)
            )
            logger.info(f"🗓️ Season created: {name} ({start} - {end})")
            return cursor.lastrowid

    def get_active_season(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Saison en cours : start < now et (end > now ou end absent).

        Raises:
            NoActiveSeason: aucune saison ne couvre `now`
        """
        now_text = to_db_time(now or _utcnow())
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM seasons
                WHERE start < ? AND (end > ? OR end IS NULL)
                ORDER BY start DESC
                LIMIT 1
                """,
                (now_text, now_text)
            ).fetchone()
            if not row:
                raise NoActiveSeason(f"no active season at {now_text}")
            return self._season_from_row(row)

    def has_next_season(self, now: Optional[datetime] = None) -> bool:
        """True si une saison commence après `now`."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM seasons WHERE start > ? LIMIT 1",
                (to_db_time(now or _utcnow()),)
            ).fetchone()
            return row is not None

    def get_latest_season(self) -> Optional[Dict[str, Any]]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM seasons ORDER BY start DESC LIMIT 1"
            ).fetchone()
            return self._season_from_row(row) if row else None

    def list_seasons(self) -> List[Dict[str, Any]]:
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM seasons ORDER BY start ASC")
            return [self._season_from_row(row) for row in cursor.fetchall()]

    def create_next_season(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Crée la saison qui suit la dernière saison, avec le même bundle.

        Une saison legacy (sans fin) est remplacée à partir du trimestre
        de `now`.

        Raises:
            NoActiveSeason: aucune saison en base
        """
        latest = self.get_latest_season()
        if latest is None:
            raise NoActiveSeason("no season found")

        logger.debug(f"Latest season: {latest['name']}")

        start = (now or _utcnow()) if latest["end"] is None else latest["start"]
        quarter = YearAndQuarter.from_start(start).next()

        season_id = self.create_season(
            name=str(quarter),
            start=quarter.start(),
            end=quarter.end(),
            bundle_id=latest["bundle_id"],
        )
        return {
            "id": season_id,
            "name": str(quarter),
            "start": quarter.start(),
            "end": quarter.end(),
            "bundle_id": latest["bundle_id"],
        }

    # ==================== CATCHES ====================

    def record_catch(self, user_name: str, catch: Catch, season_id: Optional[int]) -> int:
        """
        Enregistre une prise.

        Returns:
            L'ID de la prise

        Raises:
            LookupError: utilisateur inconnu (la pêche doit être réservée avant)
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id FROM users WHERE name = ?",
                (user_name.lower(),)
            ).fetchone()
            if not row:
                raise LookupError(f"user {user_name} not found")

            cursor = conn.execute(
                """
                INSERT INTO catches (user_id, fish_id, season_id, weight, value, caught_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (row["id"], catch.fish_id, season_id, catch.weight, catch.value,
                 to_db_time(catch.caught_at))
            )
            return cursor.lastrowid

    def get_top_catch(self, user_name: str) -> Optional[Catch]:
        """Prise la plus précieuse de l'utilisateur."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT c.fish_id, f.name AS fish_name, c.weight, c.value, c.caught_at
                FROM catches c
                JOIN users u ON u.id = c.user_id
                JOIN fishes f ON f.id = c.fish_id
                WHERE u.name = ?
                ORDER BY c.value DESC
                LIMIT 1
                """,
                (user_name.lower(),)
            ).fetchone()
            if not row:
                return None
            return Catch(
                fish_id=row["fish_id"],
                fish_name=row["fish_name"],
                weight=row["weight"],
                value=row["value"],
                caught_at=from_db_time(row["caught_at"]),
            )

    def get_score(self, user_name: str) -> Optional[float]:
        """Somme des valeurs des prises (None si aucune prise)."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT SUM(c.value) AS score
                FROM catches c
                JOIN users u ON u.id = c.user_id
                WHERE u.name = ?
                """,
                (user_name.lower(),)
            ).fetchone()
            return row["score"]

    # ==================== MESSAGES ====================

    def add_message(self, text: str, category: str = COOLDOWN_CATEGORY) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO messages (text, type) VALUES (?, ?)",
                (text, category)
            )
            return cursor.lastrowid

    def list_messages(self, category: str = COOLDOWN_CATEGORY) -> List[str]:
        """Textes du catalogue de messages pour une catégorie."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT text FROM messages WHERE type = ? ORDER BY id",
                (category,)
            )
            return [row["text"] for row in cursor.fetchall()]

    # ==================== DASHBOARD ====================

    def get_leaderboard(self, include_bots: bool = False) -> List[Dict[str, Any]]:
        """
        Score total par utilisateur, trié par score décroissant.
        Les utilisateurs à score nul sont exclus.
        """
        query = """
            SELECT u.name, u.is_bot, SUM(c.value) AS score
            FROM catches c
            JOIN users u ON u.id = c.user_id
        """
        if not include_bots:
            query += " WHERE u.is_bot = 0"
        query += " GROUP BY u.id ORDER BY score DESC"

        with self._get_connection() as conn:
            rows = conn.execute(query).fetchall()

        return [
            {"name": row["name"], "is_bot": bool(row["is_bot"]), "score": row["score"]}
            for row in rows
            if abs(row["score"]) > FLOAT32_EPSILON
        ]

    def get_fish_table(self) -> List[Dict[str, Any]]:
        """Tous les poissons avec leur chance de tirage, triés par chance décroissante."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM fishes").fetchall()

        population = sum(row["count"] for row in rows)
        table = [
            {
                "html_name": row["html_name"],
                "chance": row["count"] / population if population else 0.0,
                "base_value": row["base_value"],
                "min_weight": row["min_weight"],
                "max_weight": row["max_weight"],
                "is_trash": bool(row["is_trash"]),
            }
            for row in rows
        ]
        table.sort(key=lambda entry: entry["chance"], reverse=True)
        return table

    @staticmethod
    def _cumulative(rows: List[sqlite3.Row]) -> List[Dict[str, Any]]:
        """Série cumulée des valeurs (timestamps en millisecondes)."""
        series = []
        total = 0.0
        for row in rows:
            total += row["value"]
            caught_at = from_db_time(row["caught_at"])
            series.append({
                "caught_at": int(caught_at.timestamp() * 1000),
                "value": total,
            })
        return series

    def get_user_stats(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Statistiques d'un utilisateur pour le dashboard.

        Returns:
            Dict (top_catch, total_score, total_catches, avg_catch_value,
            catches cumulées) ou None si utilisateur inconnu ou sans prise
        """
        name = name.lower()
        with self._get_connection() as conn:
            user = conn.execute("SELECT id, name FROM users WHERE name = ?", (name,)).fetchone()
            if not user:
                return None

            top = conn.execute(
                """
                SELECT f.name, c.weight, c.value
                FROM catches c JOIN fishes f ON f.id = c.fish_id
                WHERE c.user_id = ?
                ORDER BY c.value DESC
                LIMIT 1
                """,
                (user["id"],)
            ).fetchone()
            if not top:
                return None

            rows = conn.execute(
                "SELECT value, caught_at FROM catches WHERE user_id = ? ORDER BY caught_at ASC",
                (user["id"],)
            ).fetchall()

        total_score = sum(row["value"] for row in rows)
        return {
            "user_name": user["name"],
            "total_score": total_score,
            "total_catches": len(rows),
            "avg_catch_value": total_score / len(rows),
            "top_catch": {"name": top["name"], "weight": top["weight"], "value": top["value"]},
            "catches": self._cumulative(rows),
        }

    def get_global_stats(self) -> Optional[Dict[str, Any]]:
        """
        Statistiques globales : meilleure prise, totaux, performance de
        chaque poisson (chance réelle / chance idéale), séries par utilisateur.

        Returns:
            Dict ou None si aucune prise
        """
        with self._get_connection() as conn:
            top = conn.execute(
                """
                SELECT f.name AS fish_name, u.name AS user_name, c.weight, c.value
                FROM catches c
                JOIN fishes f ON f.id = c.fish_id
                JOIN users u ON u.id = c.user_id
                ORDER BY c.value DESC
                LIMIT 1
                """
            ).fetchone()
            if not top:
                logger.warning("No top catch found")
                return None

            totals = conn.execute(
                """
                SELECT COUNT(c.id) AS total_catches,
                       SUM(c.value) AS total_score,
                       SUM(CASE WHEN f.is_trash THEN 1 ELSE 0 END) AS total_trash
                FROM catches c JOIN fishes f ON f.id = c.fish_id
                """
            ).fetchone()

            fish_rows = conn.execute(
                """
                SELECT f.html_name, f.count, f.base_value, COUNT(c.id) AS catches
                FROM fishes f
                LEFT JOIN catches c ON c.fish_id = f.id
                GROUP BY f.id
                """
            ).fetchall()

            catch_rows = conn.execute(
                """
                SELECT u.name, c.value, c.caught_at
                FROM catches c JOIN users u ON u.id = c.user_id
                ORDER BY u.name ASC, c.caught_at ASC
                """
            ).fetchall()

        total_catches = totals["total_catches"]
        population = sum(row["count"] for row in fish_rows)

        fishes = []
        for row in fish_rows:
            ideal_chance = row["count"] / population if population else 0.0
            real_chance = row["catches"] / total_catches
            fishes.append({
                "html_name": row["html_name"],
                "count": row["count"],
                "base_value": row["base_value"],
                "catches": row["catches"],
                "ideal_chance": ideal_chance,
                "real_chance": real_chance,
                "performance": real_chance / ideal_chance if ideal_chance else 0.0,
            })
        fishes.sort(key=lambda entry: entry["catches"], reverse=True)

        per_user: Dict[str, List[sqlite3.Row]] = {}
        for row in catch_rows:
            per_user.setdefault(row["name"], []).append(row)

        return {
            "total_catches": total_catches,
            "total_trash": totals["total_trash"],
            "total_score": totals["total_score"],
            "top_catch": dict(top),
            "fishes": fishes,
            "users": [
                {"name": name, "catches": self._cumulative(rows)}
                for name, rows in per_user.items()
            ],
        }

    # ==================== ACCOUNTS ====================

    def get_account(self, username: str) -> Optional[Dict[str, Any]]:
        """
        Récupère et déchiffre les tokens OAuth d'un compte.

        Returns:
            Dict avec access_token, refresh_token, scopes, created_at,
            expires_at ou None si le compte n'existe pas
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE username = ?",
                (username.lower(),)
            ).fetchone()
            if not row:
                return None

            data = dict(row)

        data["access_token"] = self.encryptor.decrypt(data.pop("access_token_encrypted"))
        data["refresh_token"] = self.encryptor.decrypt(data.pop("refresh_token_encrypted"))
        data["scopes"] = json.loads(data["scopes"]) if data["scopes"] else []
        data["created_at"] = from_db_time(data["created_at"])
        data["expires_at"] = from_db_time(data["expires_at"])
        return data

    def store_account_tokens(self, username: str, access_token: str, refresh_token: str,
                             scopes: Optional[List[str]] = None,
                             expires_in: Optional[int] = None) -> None:
        """
        Stocke ou met à jour les tokens OAuth d'un compte.

        Args:
            username: Login Twitch du compte
            access_token: Token d'accès OAuth
            refresh_token: Token de rafraîchissement
            scopes: Scopes OAuth (conservés si None lors d'une mise à jour)
            expires_in: Durée de validité en secondes (optionnelle)
        """
        now = _utcnow()
        expires_at = to_db_time(now + timedelta(seconds=expires_in)) if expires_in else None
        scopes_json = json.dumps(scopes) if scopes is not None else None

        access_encrypted = self.encryptor.encrypt(access_token)
        refresh_encrypted = self.encryptor.encrypt(refresh_token)

        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO accounts
                (username, access_token_encrypted, refresh_token_encrypted, scopes, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(username) DO UPDATE SET
                    access_token_encrypted = excluded.access_token_encrypted,
                    refresh_token_encrypted = excluded.refresh_token_encrypted,
                    scopes = COALESCE(excluded.scopes, scopes),
                    created_at = excluded.created_at,
                    expires_at = excluded.expires_at
                """,
                (username.lower(), access_encrypted, refresh_encrypted, scopes_json,
                 to_db_time(now), expires_at)
            )
            logger.info(f"🔑 Tokens stored for account {username.lower()}")
