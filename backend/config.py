import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Empty rooms are dropped after this grace period (seconds)
    ROOM_DELETE_GRACE_SEC = int(os.environ.get('ROOM_DELETE_GRACE_SEC', '60'))
    # Liveness sweep interval (seconds). 0 disables the monitor.
    HEARTBEAT_INTERVAL_SEC = int(os.environ.get('HEARTBEAT_INTERVAL_SEC', '30'))
    ROOM_ID_LENGTH = int(os.environ.get('ROOM_ID_LENGTH', '7'))
    PLAYER_ID_LENGTH = int(os.environ.get('PLAYER_ID_LENGTH', '9'))
    PLAYER_NAME_MAX_LENGTH = int(os.environ.get('PLAYER_NAME_MAX_LENGTH', '48'))
    DEFAULT_PLAYER_NAME = os.environ.get('DEFAULT_PLAYER_NAME') or 'Player'
    # Comma separated list, '*' allows any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '7777'))
