from flask import Blueprint, current_app, jsonify, request

from roundhub.services.games.rules import RulesError

sessions = Blueprint('sessions', __name__)


def _lookup(game_name):
    ext = current_app.extensions['roundhub']
    game = ext['games'].get(game_name)
    if game is None:
        return None, None
    return game, ext['registries'][game.name]


@sessions.route('/<string:game_name>', methods=['GET'])
def get_game(game_name):
    game, _ = _lookup(game_name)
    if game is None:
        return jsonify({'error': f'Game {game_name} not found'}), 404
    return jsonify({
        'name': game.name,
        'game_path': game.game_path,
        'namespace': game.namespace,
        'rules': game.rules.to_dict(),
    })


@sessions.route('/<string:game_name>/sessions', methods=['POST'])
def create_session(game_name):
    """
    Creates a new session using the game's rules, optionally overridden by
    ``{"rules": {...}}`` in the request body.
    """
    game, registry = _lookup(game_name)
    if game is None:
        return jsonify({'error': f'Game {game_name} not found'}), 404

    data = request.get_json(silent=True) or {}
    try:
        rules = game.rules.merged(data.get('rules'))
    except RulesError as exc:
        return jsonify({'error': str(exc)}), 400

    session_id = registry.create_session(rules)
    current_app.logger.info(f"[http-create] game={game.name} session={session_id}")
    return jsonify({'session_id': session_id}), 201


@sessions.route('/<string:game_name>/sessions', methods=['GET'])
def list_sessions(game_name):
    game, registry = _lookup(game_name)
    if game is None:
        return jsonify({'error': f'Game {game_name} not found'}), 404
    return jsonify({'sessions': registry.list_sessions()})


@sessions.route('/<string:game_name>/sessions/<string:session_id>', methods=['GET'])
def get_session(game_name, session_id):
    """
    Returns the current snapshot of a session.
    """
    game, registry = _lookup(game_name)
    if game is None:
        return jsonify({'error': f'Game {game_name} not found'}), 404
    session = registry.get_session(session_id)
    if session is None:
        return jsonify({'error': f'Session {session_id} not found'}), 404
    return jsonify({'session': session.snapshot()})
