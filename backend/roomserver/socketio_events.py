from flask import current_app, request
from flask_socketio import emit
from roomserver import socketio

NAMESPACE = '/ws'


class SocketConnection:
    """Transport handle for one Socket.IO client, as seen by the room engine."""

    def __init__(self, sid: str, namespace: str = NAMESPACE):
        self.id = sid
        self.namespace = namespace
        self.is_open = True

    def send(self, payload: str) -> None:
        socketio.send(payload, to=self.id, namespace=self.namespace)

    def ping(self, callback) -> None:
        socketio.emit('heartbeat', {}, to=self.id, namespace=self.namespace, callback=callback)

    def terminate(self) -> None:
        self.is_open = False
        socketio.server.disconnect(self.id, namespace=self.namespace)

    def __repr__(self):
        return f'<SocketConnection {self.id}>'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _engine():
    return current_app.extensions['roomserver']


def _current_connection() -> SocketConnection:
    sid = _get_sid()
    engine = _engine()
    conn = engine['connections'].get(sid)
    if conn is None:
        conn = engine['connections'][sid] = SocketConnection(sid, request.namespace or NAMESPACE)
        engine['monitor'].track(conn)
    return conn


def handle_connect(auth=None):
    _current_connection()


def handle_disconnect(*args):
    engine = _engine()
    conn = engine['connections'].pop(_get_sid(), None)
    if conn is None:
        return
    conn.is_open = False
    engine['monitor'].forget(conn)
    engine['gateway'].close(conn)


def handle_message(data):
    conn = _current_connection()
    engine = _engine()
    engine['monitor'].mark_alive(conn)
    engine['gateway'].handle_message(conn, data)


def handle_ping(data=None):
    _engine()['monitor'].mark_alive(_current_connection())
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('message', handle_message, namespace=ns)
        socketio.on_event('json', handle_message, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
