from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    games = current_app.extensions['roundhub']['games']
    return jsonify({
        'message': 'Welcome to the roundhub game server!',
        'games': sorted(games),
    })
