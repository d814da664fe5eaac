import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from whostune.errors import (
    Forbidden, GameError, GameInProgress, InsufficientPlayers, NoQuestionsAvailable,
    NotFound, RoomFull,
)
from whostune.models import FINISHED, LOBBY, PLAYING, Player, Settings
from .notifier import Notifier
from .profiles import PlayerMusicProfile
from .quiz.questions import build_questions
from .quiz.runtime import ANSWERING, ARMED, QuizRuntime
from .quiz.scheduler import TaskScheduler
from .quiz.scoring import rank_players


logger = logging.getLogger(__name__)


@dataclass
class RoomRules:
    max_players: int = 8
    min_active_players: int = 2
    default_question_count: int = 10
    default_timer_seconds: int = 20
    first_question_delay: float = 0.8
    next_question_delay: float = 0.5
    tracks_per_player: int = 30
    max_decoys: int = 3
    base_points: int = 500
    max_time_bonus: int = 500

    @classmethod
    def from_config(cls, config) -> 'RoomRules':
        return cls(
            max_players=int(config.get('MAX_PLAYERS', 8)),
            min_active_players=int(config.get('MIN_ACTIVE_PLAYERS', 2)),
            default_question_count=int(config.get('DEFAULT_QUESTION_COUNT', 10)),
            default_timer_seconds=int(config.get('DEFAULT_TIMER_SEC', 20)),
            first_question_delay=float(config.get('FIRST_QUESTION_DELAY_SEC', 0.8)),
            next_question_delay=float(config.get('NEXT_QUESTION_DELAY_SEC', 0.5)),
            tracks_per_player=int(config.get('TRACKS_PER_PLAYER', 30)),
            max_decoys=int(config.get('MAX_DECOYS', 3)),
            base_points=int(config.get('BASE_POINTS', 500)),
            max_time_bonus=int(config.get('MAX_TIME_BONUS', 500)),
        )

    def default_settings(self) -> Settings:
        return Settings(self.default_question_count, self.default_timer_seconds)


class Room:
    """A game room: membership, host, settings and the lobby/playing/finished
    lifecycle, plus the quiz runtime while a game runs.

    Every public method takes the room lock. Methods raise ``GameError``
    subclasses for requests that must be refused and report everything else
    through the notifier.
    """

    def __init__(self, code: str, settings: Settings, rules: RoomRules = None,
                 notifier: Notifier = None, scheduler: TaskScheduler = None, rng=None):
        self.code = code
        self.settings = settings
        self.rules = rules or RoomRules()
        self.notifier = notifier or Notifier()
        self.scheduler = scheduler or TaskScheduler(run_inline=True)
        self.rng = rng
        self.players: List[Player] = []
        self.host_id: Optional[str] = None
        self.state = LOBBY
        self.quiz: Optional[QuizRuntime] = None
        self.closed = False
        self.lock = threading.RLock()

    # ---- lookups and views ----

    def player_by_connection(self, sid: str) -> Optional[Player]:
        return next((p for p in self.players if p.connection_id == sid), None)

    def player_by_session(self, session_id: Optional[str]) -> Optional[Player]:
        if not session_id:
            return None
        return next((p for p in self.players if p.session_id == session_id), None)

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if p.is_active]

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    def to_dict(self):
        with self.lock:
            return {
                'code': self.code,
                'state': self.state,
                'settings': self.settings.to_dict(),
                'players': [p.to_dict() for p in self.players],
            }

    def _require_host(self, sid: str) -> None:
        if sid is None or self.host_id != sid:
            raise Forbidden()

    def _broadcast(self, event: str, data: dict, skip_sid: str = None) -> None:
        self.notifier.to_room(self.code, event, data, skip_sid=skip_sid)

    # ---- membership ----

    def join(self, sid: str, session_id: Optional[str],
             profile: PlayerMusicProfile) -> Tuple[Player, Optional[str]]:
        """Add a player, or reattach a known one to a new connection.

        Returns the player and the connection id it was attached to before,
        which is None for a new player.
        """
        with self.lock:
            if self.closed:
                raise NotFound()
            existing = self.player_by_session(session_id) or self.player_by_connection(sid)
            if existing is not None:
                previous = existing.connection_id
                existing.connection_id = sid
                if existing.is_host:
                    self.host_id = sid
                if previous != sid:
                    self.notifier.unsubscribe(previous, self.code)
                self.notifier.subscribe(sid, self.code)
                self.notifier.to_connection(sid, 'joined', self._joined_payload(existing))
                logger.info(f"[room-rejoin] room={self.code} player={existing.id} sid={sid}")
                return existing, previous

            if self.state != LOBBY:
                raise GameInProgress()
            if len(self.players) >= self.rules.max_players:
                raise RoomFull(f'Room is full ({self.rules.max_players} players max)')

            player = Player(
                id=sid,
                connection_id=sid,
                session_id=session_id,
                name=profile.name,
                emoji=profile.emoji,
                platform=profile.platform,
                tracks=list(profile.tracks),
                is_host=not self.players,
            )
            if player.is_host:
                self.host_id = sid
            self.players.append(player)
            self.notifier.subscribe(sid, self.code)
            self.notifier.to_connection(sid, 'joined', self._joined_payload(player))
            self._broadcast('player-joined', {'player': player.to_dict(), 'room': self.to_dict()}, skip_sid=sid)
            logger.info(f"[room-join] room={self.code} player={player.name} players={len(self.players)}")
            return player, None

    def _joined_payload(self, player: Player) -> dict:
        return {'playerId': player.id, 'isHost': player.is_host, 'room': self.to_dict()}

    def leave(self, sid: str) -> Optional[Player]:
        """Remove the player on this connection, promoting a new host if needed."""
        with self.lock:
            player = self.player_by_connection(sid)
            if player is None:
                return None
            self.players.remove(player)
            self.notifier.unsubscribe(sid, self.code)
            self._broadcast('player-left', {'playerId': player.id, 'room': self.to_dict()})
            logger.info(f"[room-leave] room={self.code} player={player.name} players={len(self.players)}")

            if not self.players:
                self.host_id = None
                return player
            if player.is_host:
                new_host = self.players[0]
                new_host.is_host = True
                self.host_id = new_host.connection_id
                self._broadcast('new-host', {'playerId': new_host.id})
                logger.info(f"[room-host] room={self.code} host={new_host.id}")
            if self.state == PLAYING and self.quiz is not None and self.quiz.phase == ANSWERING:
                self._broadcast_answer_count()
                self._close_if_everyone_answered()
            return player

    @property
    def is_empty(self) -> bool:
        return not self.players

    def close(self) -> None:
        """Stop every timer; the room is about to be dropped."""
        with self.lock:
            self.closed = True
            if self.quiz is not None:
                self.quiz.cancel_countdown()

    # ---- host actions ----

    def update_settings(self, sid: str, data: dict) -> Settings:
        with self.lock:
            self._require_host(sid)
            self.settings = self.settings.merged(data)
            self._broadcast('settings-updated', self.settings.to_dict())
            return self.settings

    def start_game(self, sid: str) -> bool:
        with self.lock:
            self._require_host(sid)
            if self.state != LOBBY:
                logger.info(f"[game-start-skip] room={self.code} state={self.state}")
                return False

            active = self.active_players
            if len(active) < self.rules.min_active_players:
                raise InsufficientPlayers(
                    f'At least {self.rules.min_active_players} players with a connected music account are required'
                )
            questions = build_questions(
                active,
                self.settings.question_count,
                tracks_per_player=self.rules.tracks_per_player,
                max_decoys=self.rules.max_decoys,
                rng=self.rng,
            )
            if not questions:
                raise NoQuestionsAvailable()

            self.state = PLAYING
            self.quiz = QuizRuntime(
                questions,
                [p.id for p in active],
                base_points=self.rules.base_points,
                max_time_bonus=self.rules.max_time_bonus,
            )
            self._broadcast('game-started', {
                'totalQuestions': len(questions),
                'timer': self.settings.timer_seconds,
                'players': [p.to_dict() for p in active],
            })
            logger.info(f"[game-start] room={self.code} questions={len(questions)} players={len(active)}")
            self.scheduler.call_later(self.rules.first_question_delay, self.send_question, self.quiz, 0)
            return True

    def advance_question(self, sid: str) -> None:
        with self.lock:
            self._require_host(sid)
            quiz = self.quiz
            if self.state != PLAYING or quiz is None:
                return
            if quiz.advance():
                self.scheduler.call_later(self.rules.next_question_delay, self.send_question, quiz, quiz.current)
            else:
                self._end_game()

    def ensure_replayable(self, sid: str) -> None:
        with self.lock:
            self._require_host(sid)
            if self.state != FINISHED:
                raise GameError('The game is not over yet')

    def announce_replay(self, new_code: str) -> None:
        self._broadcast('replay-started', {'from': self.code, 'to': new_code})

    # ---- quiz flow ----

    def send_question(self, quiz: QuizRuntime, index: int) -> bool:
        """Open question ``index`` of ``quiz`` if it is still the one due."""
        with self.lock:
            if self.closed or self.state != PLAYING or self.quiz is not quiz:
                return False
            if quiz.current != index or quiz.phase != ARMED:
                return False
            question = quiz.begin_question(self.settings.timer_seconds)
            payload = question.to_public_dict()
            payload.update({
                'index': index,
                'total': len(quiz.questions),
                'timer': quiz.timer_seconds,
            })
            self._broadcast('question', payload)
            label = f"room={self.code} question={index} duration={quiz.timer_seconds}s"
            quiz.set_countdown(self.scheduler.countdown(self.lock, self.tick, label))
            return True

    def tick(self) -> bool:
        """One second of the countdown; False once it has stopped."""
        with self.lock:
            quiz = self.quiz
            if self.closed or quiz is None or quiz.phase != ANSWERING:
                return False
            remaining = quiz.tick()
            self._broadcast('tick', {'t': remaining})
            if remaining > 0:
                return True
            logger.info(f"[timer-fire] room={self.code} question={quiz.current}")
            self._reveal()
            return False

    def submit_answer(self, sid: str, answered_player_id):
        with self.lock:
            quiz = self.quiz
            if self.state != PLAYING or quiz is None:
                return None
            player = self.player_by_connection(sid)
            if player is None:
                return None
            answer = quiz.record_answer(player.id, answered_player_id)
            if answer is None:
                return None
            self.notifier.to_connection(sid, 'answer-ack', {
                'correct': answer.correct,
                'pts': answer.points,
                'correctPlayerId': quiz.question.owner_id,
            })
            self._broadcast_answer_count()
            self._close_if_everyone_answered()
            return answer

    def _participant_ids(self) -> List[str]:
        return [p.id for p in self.players if p.id in self.quiz.scores]

    def _broadcast_answer_count(self) -> None:
        present = self._participant_ids()
        self._broadcast('answer-count', {
            'answered': self.quiz.answered_count(present),
            'total': len(present),
        })

    def _close_if_everyone_answered(self) -> None:
        present = self._participant_ids()
        if present and self.quiz.answered_count(present) >= len(present):
            logger.info(f"[timer-skip] room={self.code} question={self.quiz.current} everyone answered")
            self._reveal()

    def _reveal(self) -> None:
        quiz = self.quiz
        if not quiz.close_question():
            return
        question = quiz.question
        self._broadcast('reveal', {
            'ownerId': question.owner_id,
            'ownerName': question.owner_name,
            'ownerEmoji': question.owner_emoji,
            'title': question.title,
            'artist': question.artist,
            'answers': {pid: a.to_dict() for pid, a in quiz.answers.items()},
            'scores': dict(quiz.scores),
            'isLast': quiz.is_last,
        })

    def end_game(self) -> None:
        with self.lock:
            if self.quiz is not None and self.state == PLAYING:
                self._end_game()

    def _end_game(self) -> None:
        self.quiz.cancel_countdown()
        self.state = FINISHED
        rankings = rank_players(self.players, self.quiz.scores)
        self._broadcast('game-over', {'rankings': rankings})
        logger.info(f"[game-over] room={self.code} winner={rankings[0]['id'] if rankings else None}")
