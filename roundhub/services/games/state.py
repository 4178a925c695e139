from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .rules import RulesConfig


class MatchPhase(str, Enum):
    LOBBY = 'LOBBY'
    PLAY = 'PLAY'
    COMPLETE = 'COMPLETE'


class RoundPhase(str, Enum):
    STARTING = 'STARTING'
    PRE_PLAY = 'PRE_PLAY'
    PLAY = 'PLAY'
    POST_PLAY = 'POST_PLAY'
    ENDING = 'ENDING'


@dataclass(frozen=True)
class PlayerState:
    id: str
    round_score: int = 0
    rounds_won: int = 0
    is_ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'round_score': self.round_score,
            'rounds_won': self.rounds_won,
            'is_ready': self.is_ready,
        }


# Top-level snapshot fields, in wire order.
SNAPSHOT_FIELDS = (
    'room_id',
    'rules',
    'match_phase',
    'round_phase',
    'players',
    'current_timer_duration',
    'round_winner',
)


class GameStateStore:
    """Authoritative snapshot of one match plus the last snapshot sent to clients.

    Players are immutable and held in a tuple that is rebuilt on every change, so
    comparing the ``players`` field against the previous broadcast catches edits to
    any single player.
    """

    def __init__(self, room_id: str, rules: RulesConfig):
        self.room_id = room_id
        self.rules = rules
        self.match_phase = MatchPhase.LOBBY
        self.round_phase = RoundPhase.STARTING
        self.players: Tuple[PlayerState, ...] = ()
        self.current_timer_duration = 0
        self.round_winner: Optional[PlayerState] = None
        self._last_sent: Optional[Dict[str, Any]] = None

    # ---- players ----

    def find_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def append_player(self, player: PlayerState) -> None:
        self.players = self.players + (player,)

    def drop_player(self, player_id: str) -> bool:
        remaining = tuple(p for p in self.players if p.id != player_id)
        if len(remaining) == len(self.players):
            return False
        self.players = remaining
        return True

    def update_player(self, player_id: str, **changes) -> Optional[PlayerState]:
        updated = None
        players = []
        for player in self.players:
            if player.id == player_id:
                player = updated = replace(player, **changes)
            players.append(player)
        self.players = tuple(players)
        return updated

    def reset_round_scores(self) -> None:
        self.players = tuple(replace(p, round_score=0) for p in self.players)

    # ---- timer ----

    def set_timer(self, seconds: int) -> None:
        self.current_timer_duration = seconds

    def decrement_timer(self) -> int:
        self.current_timer_duration -= 1
        return self.current_timer_duration

    # ---- synchronization ----

    def fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in SNAPSHOT_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        return {name: _serialize(value) for name, value in self.fields().items()}

    def full_sync(self) -> Dict[str, Any]:
        """Serialize the whole snapshot and make it the new baseline."""
        self._last_sent = self.fields()
        return self.to_dict()

    def compute_delta(self) -> Optional[Dict[str, Any]]:
        """Return the fields that changed since the last sync, or None.

        The first call returns the full snapshot. The baseline moves to the live
        snapshot whether or not anything changed.
        """
        current = self.fields()
        previous = self._last_sent
        self._last_sent = current
        if previous is None:
            return {name: _serialize(value) for name, value in current.items()}
        delta = {
            name: _serialize(value)
            for name, value in current.items()
            if previous.get(name) != value
        }
        return delta or None


def _serialize(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_serialize(v) for v in value]
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value
