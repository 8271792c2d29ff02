"""
Fishinge Database Module
SQLite persistence (game data + encrypted account tokens)
"""

from .crypto import TokenEncryptor
from .manager import DatabaseManager

__all__ = ['DatabaseManager', 'TokenEncryptor']
