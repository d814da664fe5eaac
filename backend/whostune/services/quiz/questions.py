import random
from typing import List, Sequence

from whostune.models import Option, Player, Question


def build_questions(players: Sequence[Player], count: int, tracks_per_player: int = 30,
                    max_decoys: int = 3, rng=None) -> List[Question]:
    """Build the question sequence for a game.

    - Pools the first ``tracks_per_player`` tracks of every player, tagged
      with their owner, and shuffles the pool
    - Walks the pool in order keeping at most ``count`` tracks that have a
      title, a resolvable owner and a track id not already used
    - Each question offers the owner plus up to ``max_decoys`` other players,
      shuffled together

    Returns fewer questions when the pool runs dry; an empty list means no
    game can be played.
    """
    rng = rng or random
    by_id = {p.id: p for p in players}
    pool = [(track, p.id) for p in players for track in p.tracks[:tracks_per_player]]
    rng.shuffle(pool)

    questions: List[Question] = []
    used_track_ids = set()
    for track, owner_id in pool:
        if len(questions) >= count:
            break
        if not track.title or track.id in used_track_ids:
            continue
        owner = by_id.get(owner_id)
        if owner is None:
            continue
        others = [p for p in players if p.id != owner.id]
        decoys = rng.sample(others, min(max_decoys, len(others)))
        options = [owner] + decoys
        rng.shuffle(options)

        used_track_ids.add(track.id)
        questions.append(Question(
            track_id=track.id,
            title=track.title,
            artist=track.artist,
            preview_url=track.preview_url,
            album_art=track.album_art,
            owner_id=owner.id,
            owner_name=owner.name,
            owner_emoji=owner.emoji,
            options=tuple(Option.for_player(p) for p in options),
        ))
    return questions
