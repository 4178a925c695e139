import logging
import random
import threading
from typing import Callable, Optional

from .rules import RulesConfig
from .scheduler import CountdownScheduler
from .state import GameStateStore, MatchPhase, PlayerState, RoundPhase


logger = logging.getLogger(__name__)

# Countdown used to step from STARTING into PRE_PLAY.
STARTING_COUNTDOWN_SEC = 1
# Bounds for the randomized PLAY countdown, inclusive.
PLAY_COUNTDOWN_RANGE = (1, 10)


class MatchStateMachine:
    """Drives one match through its match and round phases.

    ``broadcast`` receives each outbound payload (full snapshot or delta) and
    ``on_empty`` is called once the roster becomes empty. Callers hold ``lock``
    while invoking any operation; timer callbacks take it themselves.
    """

    def __init__(
        self,
        room_id: str,
        rules: RulesConfig,
        timer,
        broadcast: Callable[[dict], None],
        on_empty: Optional[Callable[[], None]] = None,
    ):
        self.lock = threading.RLock()
        self.state = GameStateStore(room_id, rules)
        self.scheduler = CountdownScheduler(self.state, timer, self.multicast_game_state, self.lock)
        self._broadcast = broadcast
        self._on_empty = on_empty

    @property
    def rules(self) -> RulesConfig:
        return self.state.rules

    # ---- players ----

    def add_player(self, player: PlayerState) -> bool:
        if len(self.state.players) >= self.rules.max_players:
            logger.info(f"[roster-full] room={self.state.room_id} rejected player={player.id}")
            return False
        self.state.append_player(player)
        logger.info(f"[roster-add] room={self.state.room_id} player={player.id} count={len(self.state.players)}")
        return True

    def remove_player(self, player: PlayerState) -> None:
        if not self.state.drop_player(player.id):
            logger.info(f"[roster-miss] room={self.state.room_id} player={player.id} not found")
        else:
            logger.info(f"[roster-remove] room={self.state.room_id} player={player.id} count={len(self.state.players)}")
        if not self.state.players and self._on_empty is not None:
            self._on_empty()

    # ---- event handlers ----

    def on_player_ready(self, player_id: str) -> None:
        if self.state.update_player(player_id, is_ready=True) is None:
            logger.info(f"[ready-miss] room={self.state.room_id} player={player_id} not found")
            return
        self.multicast_game_state()
        self.check_all_players_ready()

    def on_player_scored(self, player_id: str) -> None:
        player = self.state.find_player(player_id)
        if player is None:
            logger.info(f"[score-miss] room={self.state.room_id} player={player_id} not found")
            return
        self.state.update_player(player_id, round_score=player.round_score + 1)

        winner = self.check_round_win_conditions()
        if winner is not None:
            winner = self.state.update_player(winner.id, rounds_won=winner.rounds_won + 1)
            self.state.round_winner = winner
            logger.info(f"[round-won] room={self.state.room_id} player={winner.id} rounds_won={winner.rounds_won}")
            self.set_round_phase(RoundPhase.POST_PLAY)
        self.multicast_game_state()

    # ---- state transitions ----

    def check_all_players_ready(self) -> bool:
        players = self.state.players
        has_enough_players = len(players) == self.rules.min_players
        if not (has_enough_players and all(p.is_ready for p in players)):
            return False
        logger.info(f"[all-ready] room={self.state.room_id} starting lobby countdown")
        self.scheduler.start_countdown(
            lambda: self.set_match_phase(MatchPhase.PLAY),
            self.rules.timer_durations.lobby,
        )
        return True

    def set_match_phase(self, phase: MatchPhase) -> None:
        current = self.state.match_phase
        if current == MatchPhase.COMPLETE and phase != MatchPhase.COMPLETE:
            logger.info(f"[phase-skip] room={self.state.room_id} match already complete, ignoring {phase.value}")
            return
        self.state.match_phase = phase
        logger.info(f"[phase] room={self.state.room_id} match {current.value} -> {phase.value}")
        if phase == MatchPhase.PLAY:
            # the round transition broadcasts
            self.set_round_phase(RoundPhase.STARTING)
            return
        # no countdown survives leaving play
        self.scheduler.cancel()
        self.multicast_game_state()

    def set_round_phase(self, phase: RoundPhase) -> None:
        self.state.round_phase = phase
        logger.info(f"[phase] room={self.state.room_id} round -> {phase.value}")
        timers = self.rules.timer_durations

        if phase == RoundPhase.STARTING:
            self.state.reset_round_scores()
            self.scheduler.start_countdown(
                lambda: self.set_round_phase(RoundPhase.PRE_PLAY),
                STARTING_COUNTDOWN_SEC,
            )
        elif phase == RoundPhase.PRE_PLAY:
            self.scheduler.start_countdown(
                lambda: self.set_round_phase(RoundPhase.PLAY),
                timers.round.pre_play,
            )
        elif phase == RoundPhase.PLAY:
            # Rounds end on a winning score; expiry of this window changes nothing.
            self.scheduler.start_countdown(lambda: None, random.randint(*PLAY_COUNTDOWN_RANGE))
        elif phase == RoundPhase.POST_PLAY:
            self.scheduler.start_countdown(
                lambda: self.set_round_phase(RoundPhase.ENDING),
                timers.round.post_play,
            )
        elif phase == RoundPhase.ENDING:
            if self.check_match_win_conditions():
                self.set_match_phase(MatchPhase.COMPLETE)
            else:
                self.set_round_phase(RoundPhase.STARTING)
        self.multicast_game_state()

    def check_round_win_conditions(self) -> Optional[PlayerState]:
        for player in self.state.players:
            if player.round_score >= self.rules.score_to_win_round:
                return player
        return None

    def check_match_win_conditions(self) -> bool:
        return any(p.rounds_won >= self.rules.rounds_to_win_match for p in self.state.players)

    # ---- sync ----

    def multicast_game_state(self) -> None:
        delta = self.state.compute_delta()
        if delta is None:
            return
        logger.debug(f"[sync] room={self.state.room_id} fields={sorted(delta)}")
        self._broadcast(delta)

    def multicast_full_state(self) -> None:
        self._broadcast(self.state.full_sync())

    def snapshot(self) -> dict:
        with self.lock:
            return self.state.to_dict()

    def shutdown(self) -> None:
        with self.lock:
            self.scheduler.cancel()
