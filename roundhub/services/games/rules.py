from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional


class RulesError(ValueError):
    """Raised when a rules table or an override is not usable."""


@dataclass(frozen=True)
class RoundTimerDurations:
    pre_play: int = 5
    play: int = 30
    post_play: int = 5


@dataclass(frozen=True)
class TimerDurations:
    # seconds to wait in the lobby once every player is ready
    lobby: int = 5
    round: RoundTimerDurations = field(default_factory=RoundTimerDurations)
    default: int = 3


@dataclass(frozen=True)
class RulesConfig:
    rounds_to_win_match: int = 3
    score_to_win_round: int = 1
    min_players: int = 2
    max_players: int = 2
    timer_durations: TimerDurations = field(default_factory=TimerDurations)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def merged(self, overrides: Optional[Dict[str, Any]]) -> 'RulesConfig':
        """Return a copy with ``overrides`` applied; nested timer keys may be partial."""
        if not overrides:
            return self
        if not isinstance(overrides, dict):
            raise RulesError('rules must be an object')
        base = self.to_dict()
        _deep_update(base, overrides)
        return RulesConfig.from_dict(base)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RulesConfig':
        data = dict(data or {})
        timers = dict(data.pop('timer_durations', None) or {})
        round_timers = dict(timers.pop('round', None) or {})
        try:
            rules = cls(
                timer_durations=TimerDurations(
                    round=RoundTimerDurations(**{k: int(v) for k, v in round_timers.items()}),
                    **{k: int(v) for k, v in timers.items()},
                ),
                **{k: int(v) for k, v in data.items()},
            )
        except (TypeError, ValueError) as exc:
            raise RulesError(f'invalid rules: {exc}') from exc
        rules.validate()
        return rules

    def validate(self) -> None:
        if self.min_players < 1:
            raise RulesError('min_players must be at least 1')
        if self.max_players < self.min_players:
            raise RulesError('max_players must be >= min_players')
        if self.score_to_win_round < 1 or self.rounds_to_win_match < 1:
            raise RulesError('win thresholds must be positive')
        timers = self.timer_durations
        for name, value in (
            ('default', timers.default),
            ('lobby', timers.lobby),
            ('round.pre_play', timers.round.pre_play),
            ('round.play', timers.round.play),
            ('round.post_play', timers.round.post_play),
        ):
            if value < 0:
                raise RulesError(f'timer_durations.{name} must not be negative')


DEFAULT_RULES = RulesConfig()


@dataclass(frozen=True)
class GameConfig:
    name: str
    game_path: str
    rules: RulesConfig = DEFAULT_RULES

    @property
    def namespace(self) -> str:
        return f'{self.game_path}/play'


def _deep_update(target: Dict[str, Any], updates: Dict[str, Any]) -> None:
    for key, value in updates.items():
        if key not in target:
            raise RulesError(f'unknown rules option: {key}')
        if isinstance(target[key], dict):
            if not isinstance(value, dict):
                raise RulesError(f'{key} must be an object')
            _deep_update(target[key], value)
        else:
            target[key] = value

