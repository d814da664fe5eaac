from .registry import RoomRegistry, generate_room_code, normalize_code
from .room import Room, RoomRules
from .profiles import PlayerMusicProfile, ProfileStore

__all__ = [
    'RoomRegistry',
    'generate_room_code',
    'normalize_code',
    'Room',
    'RoomRules',
    'PlayerMusicProfile',
    'ProfileStore',
]
