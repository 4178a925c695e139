import logging
from typing import Optional

from .machine import MatchStateMachine
from .rules import RulesConfig
from .state import MatchPhase, PlayerState


logger = logging.getLogger(__name__)

UPDATE_GAME_STATE = 'UPDATE_GAME_STATE'
PLAYER_READY = 'PLAYER_READY'
PLAYER_SCORED = 'PLAYER_SCORED'


def room_id_for(session_id: str) -> str:
    return f"gameSession-{session_id}"


class Session:
    """One match bound to one room.

    ``room`` needs ``join(connection_id)`` and ``emit(event, payload)``.
    """

    def __init__(self, session_id: str, rules: RulesConfig, registry, room, timer):
        self.id = session_id
        self.room_id = room_id_for(session_id)
        self.room = room
        self.registry = registry
        self.closed = False
        self.machine = MatchStateMachine(
            self.room_id,
            rules,
            timer,
            broadcast=self.broadcast,
            on_empty=self.end_session,
        )

    @property
    def lock(self):
        return self.machine.lock

    def broadcast(self, payload: dict) -> None:
        self.room.emit(UPDATE_GAME_STATE, payload)

    def on_connect(self, connection_id: str) -> Optional[PlayerState]:
        """Join the connection to the room and register it as a player.

        Returns the new player, or None when the roster was already full.
        """
        with self.lock:
            logger.info(f"[connect] session={self.id} connection={connection_id}")
            self.room.join(connection_id)
            player = PlayerState(connection_id)
            added = self.machine.add_player(player)
            self.machine.multicast_full_state()
            return player if added else None

    def on_disconnect(self, connection_id: str) -> None:
        with self.lock:
            logger.info(f"[disconnect] session={self.id} connection={connection_id}")
            player = self.machine.state.find_player(connection_id)
            if player is None:
                return
            self.machine.remove_player(player)
            if self.closed:
                return
            self.machine.set_match_phase(MatchPhase.LOBBY)
            self.machine.multicast_game_state()

    def on_player_ready(self, player_id: str) -> None:
        with self.lock:
            self.machine.on_player_ready(player_id)

    def on_player_scored(self, player_id: str) -> None:
        with self.lock:
            self.machine.on_player_scored(player_id)

    def snapshot(self) -> dict:
        return self.machine.snapshot()

    def end_session(self) -> None:
        self.registry.end_session(self.id)

    def close(self) -> None:
        """Stop timers; called by the registry once the session is removed."""
        self.closed = True
        self.machine.shutdown()
        logger.info(f"[session-closed] session={self.id}")
