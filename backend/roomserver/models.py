import random
import string
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

X = 'X'
O = 'O'
SPECTATOR = 'spectator'
PLAYING_SYMBOLS = (X, O)

WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'

DRAW = 'draw'

ID_ALPHABET = string.ascii_letters + string.digits


def generate_id(length=7):
    return ''.join(random.choices(ID_ALPHABET, k=length))


def other_symbol(symbol: str) -> str:
    return O if symbol == X else X


def empty_board() -> List[Optional[str]]:
    return [None] * 9


@dataclass
class Player:
    id: str
    name: str
    symbol: str
    # Non-owning; the transport closes it and tells the gateway afterwards
    connection: Any = field(default=None, repr=False, compare=False)

    @property
    def is_active(self) -> bool:
        return self.symbol in PLAYING_SYMBOLS

    @property
    def connected(self) -> bool:
        return bool(self.connection is not None and getattr(self.connection, 'is_open', False))

    def to_dict(self, include_connected=False):
        data = {
            'id': self.id,
            'name': self.name,
            'symbol': self.symbol,
        }
        if include_connected:
            data['connected'] = self.connected
        return data


@dataclass
class Room:
    id: str
    board: List[Optional[str]] = field(default_factory=empty_board)
    turn: str = X
    status: str = WAITING
    players: List[Player] = field(default_factory=list)
    scores: Dict[str, int] = field(default_factory=lambda: {X: 0, O: 0, DRAW: 0})
    created_at: float = field(default_factory=time.time)
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    def active_players(self) -> List[Player]:
        return [p for p in self.players if p.is_active]

    def claimed_symbols(self):
        return {p.symbol for p in self.players}

    def find_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def remove_player(self, player_id: str) -> Optional[Player]:
        for idx, p in enumerate(self.players):
            if p.id == player_id:
                return self.players.pop(idx)
        return None

    def roster(self, include_connected=False):
        return [p.to_dict(include_connected=include_connected) for p in self.players]

    def snapshot(self, include_connected=False):
        return {
            'id': self.id,
            'board': list(self.board),
            'turn': self.turn,
            'status': self.status,
            'players': self.roster(include_connected=include_connected),
            'scores': dict(self.scores),
        }
