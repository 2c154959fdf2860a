"""
Tests for reading a field directory into a snapshot
"""
import asyncio

from frc_overlay.core.field_reader import FieldReader
from frc_overlay.core.file_cache import FileCache
from frc_overlay.models import FieldSnapshot


def read_field(directory):
    reader = FieldReader(FileCache())
    return asyncio.run(reader.read_field(str(directory)))


def test_scores_timer_and_state(tmp_path):
    """Score/timer/state files map onto the snapshot"""
    (tmp_path / "Score_R.txt").write_text("14")
    (tmp_path / "Score_B.txt").write_text("9\n")
    (tmp_path / "Timer.txt").write_text("2:35")
    (tmp_path / "GameState.txt").write_text("AUTO")

    snapshot = read_field(tmp_path)
    assert snapshot.red_score == 14
    assert snapshot.blue_score == 9
    assert snapshot.match_time == "2:35"
    assert snapshot.game_state == "AUTO"
    assert snapshot.red_opr == []
    assert snapshot.blue_opr == []


def test_opr_file_split(tmp_path):
    (tmp_path / "OPR.txt").write_text(
        "alice: 12.5\nbob: 9\ncarol:7.25\ndave: 11\neve: 8\nfrank: 6\n"
    )
    snapshot = read_field(tmp_path)
    assert [p.username for p in snapshot.red_opr] == ["alice", "bob", "carol"]
    assert [p.score for p in snapshot.blue_opr] == [11.0, 8.0, 6.0]


def test_missing_directory_is_all_defaults(tmp_path):
    """A directory that does not exist reads as an empty field"""
    snapshot = read_field(tmp_path / "not-mounted-yet")
    assert snapshot == FieldSnapshot()
    assert snapshot.match_time == "00:00"
    assert snapshot.game_state == ""


def test_empty_timer_uses_default(tmp_path):
    (tmp_path / "Timer.txt").write_text("   \n")
    assert read_field(tmp_path).match_time == "00:00"


def test_bad_score_does_not_blank_other_values(tmp_path):
    """One malformed file only defaults itself"""
    (tmp_path / "Score_R.txt").write_text("oops")
    (tmp_path / "Score_B.txt").write_text("21")
    (tmp_path / "OPR.txt").write_text("alice: x\nbob: 3\n")
    snapshot = read_field(tmp_path)
    assert snapshot.red_score == 0
    assert snapshot.blue_score == 21
    assert snapshot.red_opr[0].score == 0.0
    assert snapshot.blue_opr[0].score == 3.0


def test_read_roster(tmp_path):
    (tmp_path / "RedPlayers.txt").write_text("alice\n\nbob\n")
    (tmp_path / "BluePlayers.txt").write_text("carol")
    (tmp_path / "MatchNumber.txt").write_text(" Q12 \n")
    reader = FieldReader(FileCache())

    roster = asyncio.run(reader.read_roster(str(tmp_path)))
    assert roster.red_players == ["alice", "bob"]
    assert roster.blue_players == ["carol"]
    assert roster.match_number == "Q12"


def test_read_text_default(tmp_path):
    """Single-file reads fall back to "0" like the score routes"""
    reader = FieldReader(FileCache())
    assert asyncio.run(reader.read_text(str(tmp_path / "Auto_R.txt"))) == "0"
    assert asyncio.run(reader.read_text(None)) == "0"
