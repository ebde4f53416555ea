import pytest

from partyhub.domain.trivia.availability import (
    AVAILABILITY,
    availability_table,
    check_player_count,
    is_couples,
    title_of,
)


@pytest.mark.parametrize(
    "game_id,n,ok",
    [
        ("party.quick-quiz", 1, False),
        ("party.quick-quiz", 2, True),
        ("party.quick-quiz", 10, True),
        ("party.quick-quiz", 11, False),
        ("party.answer-roulette", 2, False),
        ("party.answer-roulette", 3, True),
        ("couples.how-good", 1, False),
        ("couples.how-good", 2, True),
        ("couples.how-good", 3, False),
    ],
)
def test_check_player_count_bounds(game_id, n, ok):
    assert check_player_count(game_id, n)[0] is ok


def test_check_player_count_messages():
    assert check_player_count(None, 4) == (False, "Pick a game first")
    assert check_player_count("couples.survival", 3) == (False, "Party is 3. Exactly 2 players required.")
    assert check_player_count("party.buzzkill", 4) == (True, None)


def test_availability_table_covers_every_mode():
    table = availability_table()
    assert set(table) == set(AVAILABILITY)
    assert len(table) == 12
    assert table["party.answer-roulette"] == {"min": 3, "max": 10, "label": "3-10 players"}


def test_modes_and_titles():
    assert is_couples("couples.secret-sync")
    assert not is_couples("party.quick-quiz")
    assert not is_couples(None)
    assert title_of("party.fact-fiction") == "Fact or Fiction?"
    assert title_of("unknown") == "Trivia"
