"""
Persistence - Aggregate stats, achievements, preferences and stage unlocks.

Games themselves are never persisted; only this small blob survives.
"""

from .stats import GameData, PlayerStats, Preferences, StatsStore, record_game

__all__ = [
    "GameData",
    "PlayerStats",
    "Preferences",
    "StatsStore",
    "record_game",
]
