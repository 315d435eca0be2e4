from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the XO room server!'})

@main.route('/health')
def health():
    engine = current_app.extensions['roomserver']
    return jsonify({
        'status': 'ok',
        'rooms': len(engine['registry']),
        'connections': len(engine['connections']),
    })
