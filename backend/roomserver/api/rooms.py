from flask import Blueprint, jsonify, request, current_app


rooms = Blueprint('rooms', __name__)


def _registry():
    return current_app.extensions['roomserver']['registry']


@rooms.route('/create-room', methods=['POST'])
def create_room():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    # Accepted for compatibility with older clients; the creator still joins over /ws
    name = str(data.get('name') or current_app.config.get('DEFAULT_PLAYER_NAME', 'Player'))
    name = name[:current_app.config.get('PLAYER_NAME_MAX_LENGTH', 48)]
    room = _registry().create_room()
    current_app.logger.info(f"[create-room] room={room.id} requested_by={name}")
    return jsonify({'roomId': room.id})


@rooms.route('/room/<string:room_id>', methods=['GET'])
def get_room(room_id):
    room = _registry().get_room(room_id)
    if room is None:
        return jsonify({'error': 'not found'}), 404
    with room.lock:
        payload = room.snapshot(include_connected=True)
    return jsonify(payload)
