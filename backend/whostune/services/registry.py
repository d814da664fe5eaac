import logging
import secrets
import threading
from typing import Dict, Optional

from whostune.errors import NotFound
from .notifier import Notifier
from .profiles import PlayerMusicProfile
from .quiz.scheduler import TaskScheduler
from .room import Room, RoomRules


logger = logging.getLogger(__name__)


def generate_room_code() -> str:
    """Four uppercase hex characters."""
    return secrets.token_hex(2).upper()


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


class RoomRegistry:
    """Live rooms of this process, by code, and the room of each connection.

    The registry lock guards the two maps only. Room state is guarded by each
    room's own lock; ``remove_room`` is the one place that takes the registry
    lock and then a room lock.
    """

    def __init__(self, notifier: Notifier = None, scheduler: TaskScheduler = None,
                 rules: RoomRules = None, rng=None):
        self.notifier = notifier or Notifier()
        self.scheduler = scheduler or TaskScheduler(run_inline=True)
        self.rules = rules or RoomRules()
        self.rng = rng
        self._rooms: Dict[str, Room] = {}
        self._connections: Dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._rooms

    def create_room(self, settings: Optional[dict] = None, forced_code: Optional[str] = None) -> str:
        room_settings = self.rules.default_settings().merged(settings or {})
        forced = normalize_code(forced_code)
        with self._lock:
            if forced and forced not in self._rooms:
                code = forced
            else:
                code = generate_room_code()
                while code in self._rooms:
                    code = generate_room_code()
            self._rooms[code] = Room(code, room_settings, self.rules, self.notifier, self.scheduler, self.rng)
        logger.info(f"[room-create] room={code} settings={room_settings.to_dict()}")
        return code

    def find(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def get(self, code) -> Room:
        room = self.find(code)
        if room is None:
            raise NotFound()
        return room

    def get_room_summary(self, code) -> dict:
        return self.get(code).to_dict()

    def room_for_connection(self, sid: str) -> Optional[Room]:
        with self._lock:
            code = self._connections.get(sid)
            return self._rooms.get(code) if code else None

    def join(self, code, sid: str, session_id: Optional[str], profile: PlayerMusicProfile):
        """Seat the connection in ``code``; it leaves any room it was in before."""
        room = self.get(code)
        player, previous = room.join(sid, session_id, profile)
        with self._lock:
            if previous and previous != sid:
                self._connections.pop(previous, None)
            old_code = self._connections.get(sid)
            self._connections[sid] = room.code
            old_room = self._rooms.get(old_code) if old_code and old_code != room.code else None
        if old_room is not None:
            old_room.leave(sid)
            logger.info(f"[room-switch] sid={sid} from={old_room.code} to={room.code}")
            if old_room.is_empty:
                self.remove_room(old_room.code)
        return room, player

    def disconnect(self, sid: str) -> Optional[Room]:
        """Drop the connection's player; destroys the room once it is empty."""
        with self._lock:
            code = self._connections.pop(sid, None)
            room = self._rooms.get(code) if code else None
        if room is None:
            return None
        room.leave(sid)
        if room.is_empty:
            self.remove_room(room.code)
        return room

    def remove_room(self, code) -> bool:
        code = normalize_code(code)
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False
            with room.lock:
                if room.players:
                    return False
                room.close()
            del self._rooms[code]
        logger.info(f"[room-destroy] room={code}")
        return True

    def replay(self, code, sid: str) -> str:
        """Open a fresh room with the same settings for a finished game."""
        room = self.get(code)
        room.ensure_replayable(sid)
        new_code = self.create_room(room.settings.to_dict())
        room.announce_replay(new_code)
        logger.info(f"[room-replay] from={room.code} to={new_code}")
        return new_code
