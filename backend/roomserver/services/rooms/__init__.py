"""Room engine: board evaluation, room lifecycle, intents and fan-out.

Nothing in this package knows about Flask or Socket.IO. Connections are
any object exposing ``send(text)``, ``is_open``, ``ping(callback)`` and
``terminate()``; the socket handlers provide the real ones.
"""

from .board import Verdict, evaluate
from .broadcast import Broadcaster
from .errors import (
    CellOccupied,
    GameNotActive,
    InvalidRequest,
    NotJoined,
    OutOfTurn,
    RoomError,
)
from .gateway import SessionGateway
from .liveness import LivenessMonitor
from .registry import RoomRegistry

__all__ = [
    'Broadcaster',
    'CellOccupied',
    'GameNotActive',
    'InvalidRequest',
    'LivenessMonitor',
    'NotJoined',
    'OutOfTurn',
    'RoomError',
    'RoomRegistry',
    'SessionGateway',
    'Verdict',
    'evaluate',
]
