import random

from whostune.models import Player, Track
from whostune.services.quiz.questions import build_questions
from conftest import make_tracks


def _player(pid, tracks):
    return Player(id=pid, connection_id=pid, session_id=None, name=pid.title(), emoji='🎸',
                  platform='spotify', tracks=tracks)


def test_questions_capped_at_requested_count():
    players = [_player('a', make_tracks('a', 10)), _player('b', make_tracks('b', 10))]
    questions = build_questions(players, 5, rng=random.Random(1))
    assert len(questions) == 5


def test_short_pool_yields_fewer_questions():
    players = [_player('a', make_tracks('a', 2)), _player('b', make_tracks('b', 1))]
    questions = build_questions(players, 10, rng=random.Random(2))
    assert len(questions) == 3


def test_untitled_tracks_are_skipped():
    players = [_player('a', make_tracks('a', 4, titled=False)), _player('b', make_tracks('b', 4, titled=False))]
    assert build_questions(players, 5, rng=random.Random(3)) == []


def test_only_first_tracks_of_each_player_are_used():
    players = [_player('a', make_tracks('a', 50)), _player('b', make_tracks('b', 50))]
    questions = build_questions(players, 100, tracks_per_player=30, rng=random.Random(4))
    assert len(questions) == 60
    used = {q.track_id for q in questions}
    assert 'a-30' not in used
    assert 'b-49' not in used


def test_shared_track_is_asked_once():
    shared = Track(id='shared', title='Same song', artist='x')
    players = [_player('a', [shared]), _player('b', [shared])]
    questions = build_questions(players, 5, rng=random.Random(5))
    assert [q.track_id for q in questions] == ['shared']


def test_options_include_owner_and_at_most_three_decoys():
    players = [_player(pid, make_tracks(pid, 6)) for pid in 'abcdef']
    questions = build_questions(players, 20, rng=random.Random(6))
    for question in questions:
        option_ids = [o.id for o in question.options]
        assert question.owner_id in option_ids
        assert len(option_ids) == 4
        assert len(set(option_ids)) == 4
        assert question.track_id.startswith(question.owner_id)


def test_owner_position_varies():
    players = [_player(pid, make_tracks(pid, 10)) for pid in 'abcd']
    questions = build_questions(players, 40, rng=random.Random(8))
    positions = {[o.id for o in q.options].index(q.owner_id) for q in questions}
    assert len(positions) > 1


def test_two_players_get_two_options():
    players = [_player('a', make_tracks('a', 3)), _player('b', make_tracks('b', 3))]
    for question in build_questions(players, 6, rng=random.Random(9)):
        assert {o.id for o in question.options} == {'a', 'b'}


def test_public_payload_hides_owner():
    players = [_player('a', make_tracks('a', 3)), _player('b', make_tracks('b', 3))]
    question = build_questions(players, 1, rng=random.Random(10))[0]
    payload = question.to_public_dict()
    assert 'ownerId' not in payload
    assert 'ownerName' not in payload
    assert payload['title'] == question.title
