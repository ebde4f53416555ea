import random

from partyhub.domain.trivia.round import TriviaRound
from partyhub.store.models import Question


def _questions(n=2):
    return [Question(q=f"Q{i}", A="a", B="b", C="c", D="d", correct="A") for i in range(n)]


def _single(players=("p1", "p2")):
    return TriviaRound(game_id="party.quick-quiz", questions=_questions(), participants=list(players), timer_sec=12, couples=False)


def _couples():
    return TriviaRound(game_id="couples.how-good", questions=_questions(1), participants=["a", "b"], timer_sec=20, couples=True)


def test_first_answer_wins_and_late_answers_are_ignored():
    r = _single()
    r.next_question()
    assert r.submit("p1", "A", 0) is False  # not open yet

    r.open_phase(now=1000)
    assert r.ends_at == 13_000
    assert r.submit("p1", "A", 2000) is True
    assert r.submit("p1", "B", 2500) is False
    assert r.answers["p1"].choice == "A"

    r.begin_reveal()
    assert r.submit("p2", "A", 3000) is False


def test_non_participants_cannot_answer():
    r = _single()
    r.next_question()
    r.open_phase(now=0)
    assert r.submit("late-joiner", "A", 10) is False


def test_reveal_accumulates_scores_and_afk():
    r = _single()
    r.next_question()
    r.open_phase(now=0)
    r.submit("p1", "A", 7500)  # 4.5 s left
    r.begin_reveal()
    result = r.reveal()

    assert result.correct == "A"
    assert result.picks == {"p1": "A", "p2": None}
    assert result.score_changes == {"p1": 5}
    assert r.scores == {"p1": 5, "p2": 0}
    assert r.afk == {"p1": 0, "p2": 1}

    assert r.advance() is True
    r.next_question()
    assert r.answers == {}
    assert r.number == 2
    assert r.advance() is False
    assert r.finished


def test_early_reveal_counts_only_connected_players():
    r = _single()
    r.next_question()
    r.open_phase(now=0)
    r.submit("p1", "B", 100)
    assert r.all_answered(["p1", "p2"]) is False
    assert r.all_answered(["p1"]) is True


def test_couples_scores_only_after_guess_phase():
    r = _couples()
    r.next_question()
    assert r.phase_flag == "self"

    r.open_phase(now=0)
    r.submit("a", "B", 10)
    r.submit("b", "C", 10)
    r.begin_reveal()
    first = r.reveal()
    assert first.score_changes == {}
    assert first.phase_flag == "self"
    assert r.scores == {"a": 0, "b": 0}

    r.start_guess()
    assert r.phase_flag == "guess"
    r.open_phase(now=5000)
    r.submit("a", "C", 5100)  # right about b
    r.submit("b", "A", 5100)  # wrong about a
    r.begin_reveal()
    second = r.reveal()

    assert second.score_changes == {"a": 5}
    assert second.picks == {"a": {"self": "B", "guess": "C"}, "b": {"self": "C", "guess": "A"}}
    assert r.scores == {"a": 5, "b": 0}


def test_snapshot_hides_answer_key():
    r = _single()
    r.next_question()
    r.open_phase(now=0)
    r.submit("p1", "A", 10)

    snap = r.snapshot()
    assert snap["phase"] == "question"
    assert snap["idx"] == 1
    assert snap["total"] == 2
    assert snap["gameId"] == "party.quick-quiz"
    assert "correct" not in snap["currentQuestion"]
    assert "scores" not in snap

    tv = r.snapshot(for_display=True)
    assert tv["scores"] == {"p1": 0, "p2": 0}
    assert tv["answered"] == ["p1"]


def test_jinxed_player_is_forced_onto_a_wrong_option():
    r = TriviaRound(
        game_id="party.answer-roulette", questions=_questions(), participants=["p1", "p2", "p3"],
        timer_sec=12, couples=False, jinx=True, rng=random.Random(0),
    )
    r.next_question()
    jinxed = r.jinxed
    assert jinxed in r.participants

    r.open_phase(now=0)
    for pid in r.participants:
        assert r.submit(pid, "A", 1000) is True
    assert r.answers[jinxed].choice in ("B", "C", "D")

    r.begin_reveal()
    result = r.reveal()
    assert result.score_changes.get(jinxed, 0) == 0
    assert r.scores[jinxed] == 0
    assert all(r.scores[pid] > 0 for pid in r.participants if pid != jinxed)


def test_no_jinx_unless_enabled():
    r = _single()
    r.next_question()
    assert r.jinxed is None
    r.open_phase(now=0)
    r.submit("p1", "A", 1000)
    assert r.answers["p1"].choice == "A"
