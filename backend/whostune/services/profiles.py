"""Player music profiles handed over by the music-provider integration.

The OAuth flows live outside this service. Once a player has linked an
account, the integration registers a profile (name, emoji, platform and a
track list) under a session id; joining a room with that session id picks
the profile up. Raw provider payloads are normalized here.
"""
import logging
import random
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from whostune.models import Track


logger = logging.getLogger(__name__)

EMOJIS = ['🎸', '🎹', '🥁', '🎷', '🎺', '🎻', '🎤', '🎧', '🪗', '🪘', '🎼', '🎵', '🎶', '🔊', '🪕', '🎙']
DEFAULT_NAME = 'Player'


def random_emoji() -> str:
    return random.choice(EMOJIS)


@dataclass
class PlayerMusicProfile:
    name: str
    emoji: str
    platform: Optional[str] = None
    tracks: List[Track] = field(default_factory=list)

    def to_dict(self):
        return {
            'name': self.name,
            'emoji': self.emoji,
            'platform': self.platform,
            'tracks': [t.to_dict() for t in self.tracks],
        }


def _spotify_track(item) -> Track:
    # Saved-track entries wrap the track object
    if 'track' in item and 'name' not in item:
        item = item['track']
    images = (item.get('album') or {}).get('images') or []
    art = images[1] if len(images) > 1 else (images[0] if images else None)
    return Track(
        id=str(item['id']),
        title=item.get('name') or '',
        artist=', '.join(a['name'] for a in item.get('artists') or []),
        preview_url=item.get('preview_url') or None,
        album_art=art.get('url') if art else None,
    )


def _deezer_track(item) -> Track:
    return Track(
        id=str(item['id']),
        title=item.get('title') or '',
        artist=(item.get('artist') or {}).get('name') or '',
        preview_url=item.get('preview') or None,
        album_art=(item.get('album') or {}).get('cover_medium') or None,
    )


PROVIDERS = {
    'spotify': _spotify_track,
    'deezer': _deezer_track,
}


def normalize_tracks(items: Iterable, platform: Optional[str] = None) -> List[Track]:
    """Convert provider items (or already normalized dicts) into tracks.

    Items are de-duplicated by id in first-seen order. Items that cannot be
    read are skipped and logged, so a bad payload yields fewer tracks rather
    than an error.
    """
    convert = PROVIDERS.get(platform or '', Track.from_dict)
    tracks: List[Track] = []
    seen = set()
    skipped = 0
    for item in items or []:
        try:
            track = convert(item)
        except (KeyError, TypeError, AttributeError, ValueError):
            skipped += 1
            continue
        if track.id in seen:
            continue
        seen.add(track.id)
        tracks.append(track)
    if skipped:
        logger.warning(f"[profile-normalize] platform={platform} skipped={skipped} malformed item(s)")
    return tracks


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


class ProfileStore:
    """In-memory session id -> profile mapping.

    Holds at most ``max_profiles`` entries; the least recently used profile
    is dropped first.
    """

    def __init__(self, max_profiles: int = 1000):
        self.max_profiles = max_profiles
        self._profiles: 'OrderedDict[str, PlayerMusicProfile]' = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._profiles)

    def register(self, data: dict, session_id: Optional[str] = None) -> str:
        data = data if isinstance(data, dict) else {}
        platform = _text(data.get('platform')) or None
        if data.get('items') is not None:
            tracks = normalize_tracks(data.get('items'), platform)
        else:
            tracks = normalize_tracks(data.get('tracks'))
        profile = PlayerMusicProfile(
            name=_text(data.get('name')) or DEFAULT_NAME,
            emoji=_text(data.get('emoji')) or random_emoji(),
            platform=platform,
            tracks=tracks,
        )
        session_id = session_id or uuid.uuid4().hex
        with self._lock:
            self._profiles[session_id] = profile
            self._profiles.move_to_end(session_id)
            while len(self._profiles) > self.max_profiles:
                evicted, _ = self._profiles.popitem(last=False)
                logger.info(f"[profile-evict] session={evicted}")
        logger.info(f"[profile-register] session={session_id} platform={platform} tracks={len(tracks)}")
        return session_id

    def get(self, session_id) -> Optional[PlayerMusicProfile]:
        if not session_id or not isinstance(session_id, str):
            return None
        with self._lock:
            profile = self._profiles.get(session_id)
            if profile is not None:
                self._profiles.move_to_end(session_id)
            return profile

    def resolve(self, session_id, player_name=None, player_emoji=None) -> PlayerMusicProfile:
        """Profile to join with; players without a linked account get a bare one."""
        profile = self.get(session_id)
        if profile is not None:
            return profile
        return PlayerMusicProfile(
            name=_text(player_name) or DEFAULT_NAME,
            emoji=_text(player_emoji) or random_emoji(),
        )
