"""Per-game rule tables.

Every module in this package exports a ``game_config``; ``discover_games``
collects them so the server can mount one registry and namespace per game.
"""

import importlib
import pkgutil
from typing import Dict

from roundhub.services.games.rules import GameConfig


def discover_games() -> Dict[str, GameConfig]:
    configs = {}
    for module_info in pkgutil.iter_modules(__path__):
        module = importlib.import_module(f'{__name__}.{module_info.name}')
        config = getattr(module, 'game_config', None)
        if isinstance(config, GameConfig):
            configs[config.name] = config
    return configs
