"""
Game State - Cards, players and the per-game session aggregate.

Design principles:
- Cards are immutable once the deck is dealt
- Players and the session are mutated only by the MatchEngine
- A session lives for exactly one board and is discarded afterwards
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .memory import AIMemory


class GamePhase(Enum):
    """High-level game phases."""
    PREVIEW = "preview"
    PLAYING = "playing"
    COMPLETE = "complete"


class Difficulty(Enum):
    """AI tiers and board sizes."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: str | Difficulty | None) -> Difficulty:
        """Parse a difficulty name, falling back to medium."""
        if isinstance(value, Difficulty):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.MEDIUM


class GameMode(Enum):
    """Ways a game can be set up."""
    AI = "ai"
    MULTIPLAYER = "multiplayer"
    TIME_ATTACK = "time-attack"
    LIMITED_MOVES = "limited-moves"
    STAGE = "stage"
    ENDLESS = "endless"


class PowerUpKind(Enum):
    """Limited-use actions that alter the board without counting as a move."""
    HINT = "hint"
    SHUFFLE = "shuffle"
    EXTRA_TIME = "extra_time"


@dataclass(frozen=True)
class Card:
    """
    A dealt card.

    Both cards of a pair carry the same card_id and pair_id.
    """
    card_id: int
    pair_id: int
    theme: str


@dataclass
class Player:
    """A seat at the table, human or AI."""
    player_id: str
    name: str
    score: int = 0
    matches: int = 0
    combo: int = 0
    best_combo: int = 0
    is_ai: bool = False
    difficulty: Difficulty | None = None

    def snapshot(self) -> Player:
        """Copy for summaries, detached from further engine mutation."""
        return Player(
            player_id=self.player_id,
            name=self.name,
            score=self.score,
            matches=self.matches,
            combo=self.combo,
            best_combo=self.best_combo,
            is_ai=self.is_ai,
            difficulty=self.difficulty,
        )


@dataclass
class PowerUps:
    """Remaining power-up units. Counters only ever go down during a game."""
    hint: int = 3
    shuffle: int = 2
    extra_time: int = 2

    def remaining(self, kind: PowerUpKind) -> int:
        return getattr(self, kind.value)

    def consume(self, kind: PowerUpKind) -> bool:
        """Use one unit. Returns False when none are left."""
        left = self.remaining(kind)
        if left <= 0:
            return False
        setattr(self, kind.value, left - 1)
        return True

    def as_dict(self) -> dict[str, int]:
        return {"hint": self.hint, "shuffle": self.shuffle, "extra_time": self.extra_time}


@dataclass
class GameSummary:
    """Everything the results screen and the achievement rules need."""
    players: list[Player]
    total_score: int
    game_time: float
    stars: int
    new_achievements: list[Any] = field(default_factory=list)  # AchievementRecord

    mode: GameMode = GameMode.AI
    level: int = 1
    ai_difficulty: Difficulty | None = None
    perfect_game: bool = True
    total_moves: int = 0
    best_streak: int = 0
    won: bool = True
    winner_ids: list[str] = field(default_factory=list)


@dataclass
class GameSession:
    """
    Transient aggregate for one board.

    Invariants:
    - flipped holds at most two indices, never a matched one
    - matched has even cardinality and only valid deck indices
    - power-up counters are never replenished mid-game
    """
    game_id: str
    deck: list[Card]
    players: list[Player]
    mode: GameMode = GameMode.AI
    level: int = 1
    preview_time: int = 3

    phase: GamePhase = GamePhase.PREVIEW
    flipped: list[int] = field(default_factory=list)
    matched: set[int] = field(default_factory=set)
    revealed: set[int] = field(default_factory=set)  # hint cards, shown but not flipped
    current_player_idx: int = 0
    can_flip: bool = True

    streak: int = 0
    best_streak: int = 0
    total_moves: int = 0
    perfect: bool = True
    preview_remaining: int = 0
    power_ups: PowerUps = field(default_factory=PowerUps)
    memory: AIMemory = field(default_factory=AIMemory)

    started_at: float | None = None
    playing_since: float | None = None
    completed_at: float | None = None
    won: bool | None = None
    summary: GameSummary | None = None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_idx]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def pair_count(self) -> int:
        return len(self.deck) // 2

    @property
    def is_complete(self) -> bool:
        return self.phase == GamePhase.COMPLETE

    @property
    def ai_difficulty(self) -> Difficulty | None:
        """Difficulty of the first AI seat, if any."""
        for player in self.players:
            if player.is_ai:
                return player.difficulty
        return None

    def has_ai(self) -> bool:
        return any(p.is_ai for p in self.players)

    def available_indices(self) -> list[int]:
        """Indices that are neither matched nor currently flipped."""
        return [
            i for i in range(len(self.deck))
            if i not in self.matched and i not in self.flipped
        ]

    def is_face_up(self, index: int) -> bool:
        if self.phase == GamePhase.PREVIEW:
            return True
        return index in self.flipped or index in self.matched or index in self.revealed

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None
