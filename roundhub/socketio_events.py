from flask import current_app, request
from flask_socketio import emit, join_room

from roundhub.services.games.session import PLAYER_READY, PLAYER_SCORED


class SocketIORoom:
    """Broadcast target for one session: a Socket.IO room inside a game namespace."""

    def __init__(self, socketio, name: str, namespace: str):
        self.socketio = socketio
        self.name = name
        self.namespace = namespace

    def join(self, sid: str) -> None:
        join_room(self.name, sid=sid, namespace=self.namespace)

    def emit(self, event: str, payload: dict) -> None:
        # socketio.emit works from background timer tasks too
        self.socketio.emit(event, payload, to=self.name, namespace=self.namespace)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry():
    """Session registry of the game whose namespace this event arrived on."""
    ext = current_app.extensions['roundhub']
    for game in ext['games'].values():
        if game.namespace == request.namespace:
            return ext['registries'][game.name]
    return None


def _session_id(auth) -> str:
    session_id = request.args.get('sessionId') or request.args.get('session_id')
    if not session_id and isinstance(auth, dict):
        session_id = auth.get('sessionId') or auth.get('session_id')
    return session_id or ''


def _player_id(data) -> str:
    if isinstance(data, dict):
        return data.get('player_id') or data.get('playerId') or _get_sid()
    return data or _get_sid()


# sid -> session id, per namespace
_sid_to_session = {}


def _current_session():
    registry = _registry()
    session_id = _sid_to_session.get((request.namespace, _get_sid()))
    if registry is None or not session_id:
        return None
    return registry.get_session(session_id)


def handle_connect(auth=None):
    registry = _registry()
    session_id = _session_id(auth)
    if registry is None or not session_id:
        current_app.logger.info(f"[connect-refused] sid={_get_sid()} no session id")
        return False
    session = registry.get_session(session_id)
    if session is None:
        current_app.logger.info(f"[connect-refused] sid={_get_sid()} session={session_id} not found")
        return False
    _sid_to_session[(request.namespace, _get_sid())] = session_id
    session.on_connect(_get_sid())


def handle_disconnect(*args):
    session_id = _sid_to_session.pop((request.namespace, _get_sid()), None)
    registry = _registry()
    if not session_id or registry is None:
        return
    session = registry.get_session(session_id)
    if session is None:
        return
    session.on_disconnect(_get_sid())


def handle_player_ready(data=None):
    session = _current_session()
    if session is None:
        emit('error', {'message': 'not in a session'})
        return
    session.on_player_ready(_player_id(data))


def handle_player_scored(data=None):
    session = _current_session()
    if session is None:
        emit('error', {'message': 'not in a session'})
        return
    session.on_player_scored(_player_id(data))


def register_socketio_handlers(namespace: str) -> None:
    """Register the match event handlers on one game's namespace."""
    from roundhub import socketio

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event(PLAYER_READY, handle_player_ready, namespace=namespace)
    socketio.on_event(PLAYER_SCORED, handle_player_scored, namespace=namespace)
