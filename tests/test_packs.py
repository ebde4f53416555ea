import json
from pathlib import Path

from partyhub.store.packs import MEGA_FILE, PackLoader


def _row(q, correct="A", **extra):
    return {"q": q, "A": "a", "B": "b", "C": "c", "D": "d", "correct": correct, **extra}


def test_mega_file_category_wins(tmp_path):
    mega = [
        _row("quiz 1", category="party-quick-quiz"),
        _row("quiz 2", category="party-quick-quiz"),
        _row("love 1", category="couples-know-me"),
    ]
    (tmp_path / MEGA_FILE).write_text(json.dumps(mega), encoding="utf-8")
    (tmp_path / "party-quick-quiz.json").write_text(json.dumps([_row("standalone")]), encoding="utf-8")

    qs = PackLoader(tmp_path).load("party.quick-quiz")
    assert [q.q for q in qs] == ["quiz 1", "quiz 2"]

    qs = PackLoader(tmp_path).load("couples.how-good")
    assert [q.q for q in qs] == ["love 1"]


def test_falls_back_to_mode_file(tmp_path):
    (tmp_path / "party-buzzkill.json").write_text(json.dumps([_row("b1", "D")]), encoding="utf-8")

    qs = PackLoader(tmp_path).load("party.buzzkill")
    assert len(qs) == 1
    assert qs[0].correct == "D"
    assert "correct" not in qs[0].public()


def test_invalid_entries_are_skipped(tmp_path):
    rows = [_row("ok"), _row("bad label", "E"), {"q": "missing options"}, "not a dict"]
    (tmp_path / "party-lie-detector.json").write_text(json.dumps(rows), encoding="utf-8")

    qs = PackLoader(tmp_path).load("party.lie-detector")
    assert [q.q for q in qs] == ["ok"]


def test_missing_or_corrupt_pack_is_empty(tmp_path):
    assert PackLoader(tmp_path).load("party.fact-fiction") == []

    (tmp_path / "party-fact-or-fiction.json").write_text("[{", encoding="utf-8")
    assert PackLoader(tmp_path).load("party.fact-fiction") == []

    (tmp_path / "party-fact-or-fiction.json").write_text(json.dumps({"q": "not a list"}), encoding="utf-8")
    assert PackLoader(tmp_path).load("party.fact-fiction") == []

    assert PackLoader(tmp_path).load("party.unknown") == []


def test_bundled_packs_load():
    packs = Path(__file__).resolve().parent.parent / "data" / "packs"
    assert len(PackLoader(packs).load("party.quick-quiz")) >= 3
    assert len(PackLoader(packs).load("couples.how-good")) >= 1
