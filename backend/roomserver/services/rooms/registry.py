import itertools
import logging
import threading
import time
from typing import Callable, Dict, Optional

from roomserver.models import Room, generate_id

MAX_ID_ATTEMPTS = 1000


def _thread_task(fn, *args):
    worker = threading.Thread(target=fn, args=args, daemon=True)
    worker.start()
    return worker


class RoomRegistry:
    """Process-wide map of room id to Room.

    Owns creation and deletion. Empty rooms are not dropped right away:
    ``schedule_deletion`` starts a grace timer and the room is only deleted
    if its roster is still empty when the timer fires.
    """

    def __init__(
        self,
        deletion_delay: float = 60,
        id_length: int = 7,
        start_task: Optional[Callable] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger=None,
    ):
        self.deletion_delay = deletion_delay
        self.id_length = id_length
        self._start_task = start_task or _thread_task
        self._sleep = sleep or time.sleep
        self.logger = logger or logging.getLogger(__name__)
        self._rooms: Dict[str, Room] = {}
        self._pending_deletions: Dict[str, int] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.RLock()

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms

    def _new_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            room_id = generate_id(self.id_length)
            if room_id not in self._rooms:
                return room_id
        raise RuntimeError('unable to allocate a unique room id')

    def create_room(self, room_id: Optional[str] = None) -> Room:
        with self._lock:
            if room_id is None:
                room_id = self._new_id()
            elif room_id in self._rooms:
                raise ValueError(f'room {room_id} already exists')
            room = Room(id=room_id)
            self._rooms[room_id] = room
        self.logger.info(f"[room-create] room={room_id} total={len(self._rooms)}")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        """Return the room for a join, creating it if unknown.

        Any pending deletion is cancelled in the same step, so an expiry
        timer cannot drop the room between lookup and the join landing.
        """
        with self._lock:
            self._pending_deletions.pop(room_id, None)
            room = self._rooms.get(room_id)
            if room is None:
                room = self.create_room(room_id)
            return room

    def delete_room(self, room_id: str) -> bool:
        with self._lock:
            self._pending_deletions.pop(room_id, None)
            removed = self._rooms.pop(room_id, None)
        if removed is not None:
            self.logger.info(f"[room-delete] room={room_id} total={len(self._rooms)}")
        return removed is not None

    def schedule_deletion(self, room_id: str) -> None:
        with self._lock:
            if room_id not in self._rooms:
                return
            token = next(self._tokens)
            self._pending_deletions[room_id] = token
        self.logger.info(f"[room-expire-set] room={room_id} delay={self.deletion_delay}s")
        self._start_task(self._expire, room_id, token)

    def _expire(self, room_id: str, token: int) -> None:
        if self.deletion_delay:
            self._sleep(self.deletion_delay)
        with self._lock:
            if self._pending_deletions.get(room_id) != token:
                self.logger.info(f"[room-expire-abort] room={room_id} superseded or cancelled")
                return
            room = self._rooms.get(room_id)
            if room is None:
                self._pending_deletions.pop(room_id, None)
                return
            with room.lock:
                if room.players:
                    self._pending_deletions.pop(room_id, None)
                    self.logger.info(f"[room-expire-abort] room={room_id} players={len(room.players)}")
                    return
                self.delete_room(room_id)
