from dataclasses import dataclass, field
from typing import List, Optional, Tuple

LOBBY = 'lobby'
PLAYING = 'playing'
FINISHED = 'finished'


@dataclass(frozen=True)
class Track:
    id: str
    title: str
    artist: str = ''
    preview_url: Optional[str] = None
    album_art: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            artist=data.get('artist') or '',
            preview_url=data.get('previewUrl'),
            album_art=data.get('albumArt'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'previewUrl': self.preview_url,
            'albumArt': self.album_art,
        }


@dataclass
class Settings:
    question_count: int = 10
    timer_seconds: int = 20

    def merged(self, data) -> 'Settings':
        """Return a copy with the provided wire fields applied.

        Unknown keys and values that are not positive integers are ignored,
        so a partial update only touches the fields it names.
        """
        merged = Settings(self.question_count, self.timer_seconds)
        if not isinstance(data, dict):
            return merged
        count = _positive_int(data.get('questions', data.get('questionCount')))
        timer = _positive_int(data.get('timer', data.get('timerSeconds')))
        if count is not None:
            merged.question_count = count
        if timer is not None:
            merged.timer_seconds = timer
        return merged

    def to_dict(self):
        return {'questions': self.question_count, 'timer': self.timer_seconds}


def _positive_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass
class Player:
    id: str
    connection_id: str
    session_id: Optional[str]
    name: str
    emoji: str
    platform: Optional[str] = None
    tracks: List[Track] = field(default_factory=list)
    is_host: bool = False

    @property
    def is_active(self) -> bool:
        return bool(self.platform) and len(self.tracks) > 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'emoji': self.emoji,
            'platform': self.platform,
            'isHost': self.is_host,
        }


@dataclass(frozen=True)
class Option:
    id: str
    name: str
    emoji: str
    platform: Optional[str]

    @classmethod
    def for_player(cls, player: Player) -> 'Option':
        return cls(player.id, player.name, player.emoji, player.platform)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'emoji': self.emoji, 'platform': self.platform}


@dataclass(frozen=True)
class Question:
    track_id: str
    title: str
    artist: str
    preview_url: Optional[str]
    album_art: Optional[str]
    owner_id: str
    owner_name: str
    owner_emoji: str
    options: Tuple[Option, ...]

    def to_public_dict(self):
        # Owner identity stays server side until reveal
        return {
            'title': self.title,
            'artist': self.artist,
            'previewUrl': self.preview_url,
            'albumArt': self.album_art,
            'options': [o.to_dict() for o in self.options],
        }


@dataclass(frozen=True)
class Answer:
    answered_player_id: Optional[str]
    correct: bool
    points: int

    def to_dict(self):
        return {'answeredPlayerId': self.answered_player_id, 'correct': self.correct, 'pts': self.points}
