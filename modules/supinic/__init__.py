"""
Supinic Module - auto-fisher pour le jeu $fish de supibot

Contient:
- parse_fish_response: classification des réponses de supibot
- SupinicFishRunner: boucle pêche / vente / cooldown
"""

from .fish_response import (
    Cooldown,
    Failure,
    FishResponse,
    FishResponseError,
    GrammarInvariantError,
    Junk,
    MalformedResponse,
    Miss,
    ResponseGrammar,
    Success,
    UnknownResponse,
    parse_fish_response,
)
from .runner import ChannelClosed, ReceiveTimeout, RunnerConfig, SupinicFishRunner

__all__ = [
    "ChannelClosed",
    "Cooldown",
    "Failure",
    "FishResponse",
    "FishResponseError",
    "GrammarInvariantError",
    "Junk",
    "MalformedResponse",
    "Miss",
    "ReceiveTimeout",
    "ResponseGrammar",
    "RunnerConfig",
    "Success",
    "UnknownResponse",
    "SupinicFishRunner",
    "parse_fish_response",
]
