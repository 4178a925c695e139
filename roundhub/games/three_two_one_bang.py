from roundhub.services.games.rules import GameConfig, RoundTimerDurations, RulesConfig, TimerDurations


game_config = GameConfig(
    name='321bang',
    game_path='/games/321bang',
    rules=RulesConfig(
        rounds_to_win_match=3,
        score_to_win_round=1,
        max_players=2,
        min_players=2,
        timer_durations=TimerDurations(
            default=3,
            lobby=5,
            round=RoundTimerDurations(pre_play=5, play=30, post_play=5),
        ),
    ),
)
