import json
import logging
import threading
from typing import Any, Dict, Optional, Tuple

from roomserver.models import (
    FINISHED,
    O,
    PLAYING,
    SPECTATOR,
    WAITING,
    X,
    Player,
    Room,
    empty_board,
    generate_id,
    other_symbol,
)
from .board import evaluate
from .broadcast import Broadcaster
from .errors import (
    CellOccupied,
    GameNotActive,
    InvalidRequest,
    NotJoined,
    OutOfTurn,
    RoomError,
)


def recompute_status(room: Room) -> str:
    """Derive waiting/playing/finished from the seated players and board."""
    if len(room.active_players()) != 2:
        return WAITING
    if evaluate(room.board).is_terminal:
        return FINISHED
    return PLAYING


def assign_symbol(room: Room) -> str:
    taken = room.claimed_symbols()
    if X not in taken:
        return X
    if O not in taken:
        return O
    return SPECTATOR


class SessionGateway:
    """Dispatches client intents from every connection onto the rooms.

    The gateway keeps a side table from connection to ``(room_id,
    player_id)`` so non-join intents find their room without scanning the
    registry. Each intent runs under the room's lock from validation to
    broadcast, which keeps per-room processing in arrival order.
    """

    def __init__(self, registry, broadcaster: Optional[Broadcaster] = None,
                 player_id_length=9, name_max_length=48, default_name='Player', logger=None):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        self.broadcaster = broadcaster or Broadcaster(self.logger)
        self.player_id_length = player_id_length
        self.name_max_length = name_max_length
        self.default_name = default_name
        self._sessions: Dict[Any, Tuple[str, str]] = {}
        self._lock = threading.Lock()
        self._handlers = {
            'join': self._on_join,
            'move': self._on_move,
            'reset': self._on_reset,
        }

    # ---- association side table ----

    def session_for(self, connection) -> Optional[Tuple[Room, Player]]:
        with self._lock:
            ctx = self._sessions.get(connection)
        if not ctx:
            return None
        room = self.registry.get_room(ctx[0])
        player = room.find_player(ctx[1]) if room else None
        if not player:
            return None
        return room, player

    def _require_session(self, connection) -> Tuple[Room, Player]:
        session = self.session_for(connection)
        if session is None:
            raise NotJoined()
        return session

    # ---- inbound frames ----

    def handle_message(self, connection, raw) -> None:
        """Parse one inbound frame and run the intent it names.

        Frames that are not a JSON object with a string type are
        dropped. Unknown types are ignored. Client mistakes come back as an ``error`` frame to this
        connection only.
        """
        msg = self.parse(raw)
        if msg is None or not isinstance(msg.get('type'), str):
            self.logger.debug(f"[drop] conn={getattr(connection, 'id', connection)} malformed frame")
            return
        handler = self._handlers.get(msg.get('type'))
        if handler is None:
            return
        try:
            handler(connection, msg)
        except RoomError as err:
            self.logger.info(f"[reject] conn={getattr(connection, 'id', connection)} code={err.code}")
            self.broadcaster.send(connection, err.to_dict())

    @staticmethod
    def parse(raw) -> Optional[dict]:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError:
                return None
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return None
        if not isinstance(raw, dict):
            return None
        return raw

    def _on_join(self, connection, msg):
        self.join(connection, msg.get('roomId'), msg.get('name'))

    def _on_move(self, connection, msg):
        self.move(connection, msg.get('index'))

    def _on_reset(self, connection, msg):
        self.reset(connection)

    # ---- intents ----

    def clean_name(self, name) -> str:
        if name is None:
            return self.default_name
        name = str(name).strip()[:self.name_max_length]
        return name or self.default_name

    def join(self, connection, room_id, name=None) -> Player:
        if not room_id or not isinstance(room_id, str):
            raise InvalidRequest('roomId required')
        if self.session_for(connection) is not None:
            # A connection sits in one room at a time
            self.close(connection)

        room = self.registry.get_or_create(room_id)
        with room.lock:
            player_id = generate_id(self.player_id_length)
            while room.find_player(player_id):
                player_id = generate_id(self.player_id_length)
            player = Player(id=player_id, name=self.clean_name(name),
                            symbol=assign_symbol(room), connection=connection)
            room.players.append(player)
            room.status = recompute_status(room)
            with self._lock:
                self._sessions[connection] = (room.id, player.id)

            self.logger.info(
                f"[join] room={room.id} player={player.id} symbol={player.symbol} status={room.status}"
            )
            self.broadcaster.send(connection, {
                'type': 'joined',
                'roomId': room.id,
                'playerId': player.id,
                'symbol': player.symbol,
                'board': list(room.board),
                'turn': room.turn,
                'status': room.status,
                'players': room.roster(),
                'scores': dict(room.scores),
            })
            self.broadcaster.broadcast(room, {
                'type': 'player-joined',
                'id': player.id,
                'name': player.name,
                'symbol': player.symbol,
                'players': room.roster(),
            }, exclude=connection)
        return player

    def move(self, connection, index) -> dict:
        room, player = self._require_session(connection)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 8:
            raise InvalidRequest('bad index')
        with room.lock:
            if room.status != PLAYING:
                raise GameNotActive()
            if room.turn != player.symbol:
                raise OutOfTurn()
            if room.board[index] is not None:
                raise CellOccupied()

            room.board[index] = player.symbol
            room.turn = other_symbol(player.symbol)
            verdict = evaluate(room.board)
            if verdict.is_terminal:
                room.status = FINISHED
                room.scores[verdict.winner] += 1
            self.logger.info(
                f"[move] room={room.id} player={player.id} symbol={player.symbol} "
                f"index={index} status={room.status} winner={verdict.winner}"
            )
            update = self._update_message(room, verdict.winner, verdict.line)
            self.broadcaster.broadcast(room, update)
        return update

    def reset(self, connection) -> dict:
        room, player = self._require_session(connection)
        with room.lock:
            room.board = empty_board()
            room.turn = X
            room.status = recompute_status(room)
            self.logger.info(f"[reset] room={room.id} player={player.id} status={room.status}")
            update = self._update_message(room, None, None)
            self.broadcaster.broadcast(room, update)
        return update

    def close(self, connection) -> Optional[Player]:
        """Forget ``connection`` and drop its player from the room."""
        with self._lock:
            ctx = self._sessions.pop(connection, None)
        if not ctx:
            return None
        room = self.registry.get_room(ctx[0])
        if room is None:
            return None
        with room.lock:
            left = room.remove_player(ctx[1])
            if left is None:
                return None
            room.status = recompute_status(room)
            empty = not room.players
            self.logger.info(
                f"[leave] room={room.id} player={left.id} symbol={left.symbol} "
                f"remaining={len(room.players)} status={room.status}"
            )
            self.broadcaster.broadcast(room, {
                'type': 'player-left',
                'id': left.id,
                'name': left.name,
                'symbol': left.symbol,
                'players': room.roster(),
            })
        if empty:
            self.registry.schedule_deletion(room.id)
        return left

    @staticmethod
    def _update_message(room: Room, winner, line) -> dict:
        return {
            'type': 'update',
            'board': list(room.board),
            'turn': room.turn,
            'status': room.status,
            'winner': winner,
            'winLine': list(line) if line else None,
            'scores': dict(room.scores),
        }
