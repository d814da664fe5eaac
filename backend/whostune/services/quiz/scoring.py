from typing import Dict, List, Sequence

from whostune.models import Player


def answer_points(correct: bool, time_left: int, timer_seconds: int,
                  base: int = 500, max_bonus: int = 500) -> int:
    """Points for one answer.

    A correct answer earns ``base`` plus a bonus proportional to the time
    still on the clock when it was submitted; a wrong answer earns nothing.
    """
    if not correct:
        return 0
    if timer_seconds <= 0:
        return base
    remaining = max(0, min(time_left, timer_seconds))
    return base + round(remaining / timer_seconds * max_bonus)


def rank_players(players: Sequence[Player], scores: Dict[str, int]) -> List[dict]:
    """Leaderboard for the players that hold a score.

    Sorted by descending score; ``sorted`` is stable so ties keep join order.
    """
    scored = [p for p in players if p.id in scores]
    ordered = sorted(scored, key=lambda p: -scores[p.id])
    return [
        {
            'rank': idx + 1,
            'id': p.id,
            'name': p.name,
            'emoji': p.emoji,
            'platform': p.platform,
            'score': scores[p.id],
        }
        for idx, p in enumerate(ordered)
    ]
