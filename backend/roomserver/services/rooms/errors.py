class RoomError(Exception):
    """Client mistake reported back to the offending connection only."""

    code = 'RoomError'
    message = 'request failed'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'type': 'error', 'code': self.code, 'message': self.message}


class InvalidRequest(RoomError):
    code = 'InvalidRequest'
    message = 'invalid request'


class NotJoined(RoomError):
    code = 'NotJoined'
    message = 'not joined'


class GameNotActive(RoomError):
    code = 'GameNotActive'
    message = 'game not active'


class OutOfTurn(RoomError):
    code = 'OutOfTurn'
    message = 'not your turn'


class CellOccupied(RoomError):
    code = 'CellOccupied'
    message = 'cell taken'
