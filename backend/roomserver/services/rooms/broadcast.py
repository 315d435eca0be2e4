import json
import logging


class Broadcaster:
    """Fan-out of protocol frames to the live connections of a room."""

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def encode(message) -> str:
        return json.dumps(message)

    def _deliver(self, connection, payload: str) -> bool:
        try:
            connection.send(payload)
        except Exception as exc:
            self.logger.debug(f"[send-fail] conn={getattr(connection, 'id', connection)} error={exc}")
            return False
        return True

    def send(self, connection, message) -> bool:
        if connection is None or not connection.is_open:
            return False
        return self._deliver(connection, self.encode(message))

    def broadcast(self, room, message, exclude=None) -> int:
        """Deliver ``message`` to every open connection in ``room``.

        The frame is serialized once. A failing recipient is skipped and
        does not stop delivery to the rest. Returns the number of
        successful deliveries.
        """
        payload = self.encode(message)
        delivered = 0
        for player in list(room.players):
            conn = player.connection
            if conn is None or conn is exclude or not conn.is_open:
                continue
            if self._deliver(conn, payload):
                delivered += 1
        return delivered
