from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _origins(value):
    if not value or value == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room engine; one registry per app so tests get isolated state
    from roomserver.services.rooms import Broadcaster, LivenessMonitor, RoomRegistry, SessionGateway
    cfg = flask_app.config
    registry = RoomRegistry(
        deletion_delay=cfg.get('ROOM_DELETE_GRACE_SEC', 60),
        id_length=cfg.get('ROOM_ID_LENGTH', 7),
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
        logger=flask_app.logger,
    )
    gateway = SessionGateway(
        registry,
        broadcaster=Broadcaster(flask_app.logger),
        player_id_length=cfg.get('PLAYER_ID_LENGTH', 9),
        name_max_length=cfg.get('PLAYER_NAME_MAX_LENGTH', 48),
        default_name=cfg.get('DEFAULT_PLAYER_NAME', 'Player'),
        logger=flask_app.logger,
    )
    monitor = LivenessMonitor(
        interval=cfg.get('HEARTBEAT_INTERVAL_SEC', 30),
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
        logger=flask_app.logger,
    )
    flask_app.extensions['roomserver'] = {
        'registry': registry,
        'gateway': gateway,
        'monitor': monitor,
        'connections': {},
    }

    # Import and register blueprints here
    from roomserver.main import main
    flask_app.register_blueprint(main)

    from roomserver.api.rooms import rooms
    flask_app.register_blueprint(rooms)

    from roomserver.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Timers stay off in tests; they drive the monitor by hand
    if not flask_app.config.get('TESTING'):
        monitor.start()

    return flask_app
