from typing import Dict, Iterable, List, Optional

from whostune.models import Answer, Question
from .scheduler import Countdown
from .scoring import answer_points

ARMED = 'armed'
ANSWERING = 'answering'
REVEALED = 'revealed'


class QuizRuntime:
    """Quiz state for one game in a room.

    Holds the fixed question sequence, the running scores and the answers of
    the current question. The room drives it and serializes access with its
    lock; the runtime itself never emits anything.
    """

    def __init__(self, questions: List[Question], player_ids: Iterable[str],
                 base_points: int = 500, max_time_bonus: int = 500):
        self.questions = list(questions)
        self.current = 0
        self.scores: Dict[str, int] = {pid: 0 for pid in player_ids}
        self.answers: Dict[str, Answer] = {}
        self.time_left = 0
        self.timer_seconds = 0
        self.phase = ARMED
        self.countdown: Optional[Countdown] = None
        self.base_points = base_points
        self.max_time_bonus = max_time_bonus

    @property
    def question(self) -> Optional[Question]:
        if 0 <= self.current < len(self.questions):
            return self.questions[self.current]
        return None

    @property
    def is_last(self) -> bool:
        return self.current >= len(self.questions) - 1

    def begin_question(self, timer_seconds: int) -> Question:
        self.answers = {}
        self.timer_seconds = timer_seconds
        self.time_left = timer_seconds
        self.phase = ANSWERING
        return self.question

    def set_countdown(self, countdown: Countdown) -> None:
        # At most one live countdown per runtime
        self.cancel_countdown()
        self.countdown = countdown

    def cancel_countdown(self) -> None:
        if self.countdown is not None:
            self.countdown.cancel()
            self.countdown = None

    def tick(self) -> int:
        self.time_left = max(0, self.time_left - 1)
        return self.time_left

    def record_answer(self, player_id: str, answered_player_id) -> Optional[Answer]:
        """Score ``player_id``'s answer; None when it must be ignored."""
        if self.phase != ANSWERING or player_id not in self.scores:
            return None
        if player_id in self.answers:
            return None
        question = self.question
        correct = answered_player_id == question.owner_id
        points = answer_points(correct, self.time_left, self.timer_seconds,
                               self.base_points, self.max_time_bonus)
        answer = Answer(answered_player_id, correct, points)
        self.answers[player_id] = answer
        if correct:
            self.scores[player_id] += points
        return answer

    def answered_count(self, present_ids: Iterable[str]) -> int:
        return sum(1 for pid in present_ids if pid in self.answers)

    def close_question(self) -> bool:
        """Leave the answering phase; False if it was already closed."""
        self.cancel_countdown()
        if self.phase != ANSWERING:
            return False
        self.phase = REVEALED
        return True

    def advance(self) -> bool:
        """Move to the next question; False when the quiz is over."""
        self.cancel_countdown()
        self.current += 1
        self.phase = ARMED
        return self.current < len(self.questions)
