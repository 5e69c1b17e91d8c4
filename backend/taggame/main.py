from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    coordinator = current_app.extensions['tag_coordinator']
    return jsonify({'message': 'Welcome to the tag game server!', 'rooms': coordinator.room_count()})


@main.route('/api/rooms/<string:room_code>', methods=['GET'])
def get_room_state(room_code):
    snapshot = current_app.extensions['tag_coordinator'].room_snapshot(room_code.strip())
    if snapshot is None:
        return jsonify({'error': 'Room not found.'}), 404
    return jsonify(snapshot)
