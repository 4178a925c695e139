from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One session registry per game, owned by this app
    from roundhub.games import discover_games
    from roundhub.services.games.registry import SessionRegistry
    from roundhub.socketio_events import SocketIORoom, register_socketio_handlers

    games = discover_games()
    timer = _build_timer(flask_app)
    registries = {}
    for game in games.values():
        registries[game.name] = SessionRegistry(
            timer,
            room_factory=lambda room_id, ns=game.namespace: SocketIORoom(socketio, room_id, ns),
        )
        register_socketio_handlers(game.namespace)
        flask_app.logger.info(f"[game] {game.name} mounted at {game.game_path} (socket namespace {game.namespace})")

    flask_app.extensions['roundhub'] = {
        'games': games,
        'registries': registries,
        'timer': timer,
    }

    # Import and register blueprints here
    from roundhub.main import main
    flask_app.register_blueprint(main)

    from roundhub.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/games')

    @click.command('sessions')
    def sessions_command():
        """Lists live sessions for every game."""
        for name, registry in registries.items():
            ids = registry.list_sessions()
            click.echo(f"{name}: {len(ids)} session(s)")
            for session_id in ids:
                click.echo(f"  {session_id}")

    flask_app.cli.add_command(sessions_command)

    return flask_app


def _build_timer(flask_app):
    from roundhub.services.games.scheduler import BackgroundTimer, ManualTimer

    mode = flask_app.config.get('TIMER_MODE', 'background')
    if mode == 'manual':
        return ManualTimer()
    if mode != 'background':
        raise ValueError(f"unknown TIMER_MODE: {mode}")
    return BackgroundTimer(socketio, tick_sec=float(flask_app.config.get('TIMER_TICK_SEC', 1.0)))
