"""
Command line runner.
"""

import pytest

import db
from config import DEFAULT_PASSWORD
from run import main


@pytest.fixture
def db_file(tmp_path):
    original = db.db_path()
    path = str(tmp_path / "cli.db")
    yield path
    db.reset_connection(original)


def test_score_command(capsys):
    assert main(["score", "great", "but", "boring"]) == 0
    out = capsys.readouterr().out
    assert "score=50" in out
    assert "positive=1" in out
    assert "negative=1" in out


def test_score_command_empty(capsys):
    assert main(["score"]) == 0
    assert "score=50 • category=neutral" in capsys.readouterr().out


def test_init_db_and_submit(db_file, capsys):
    assert main(["--db", db_file, "init-db", "--seed"]) == 0
    assert main([
        "--db", db_file, "submit",
        "--username", "trainee", "--password", DEFAULT_PASSWORD,
        "--session-id", "1",
        "--overall", "5", "--knowledge", "5", "--communication", "4",
        "--materials", "4", "--engagement", "5",
        "--comments", "Great session, very clear",
        "--strength", "Engaging",
    ]) == 0
    out = capsys.readouterr().out
    assert "sentiment=100 (positive)" in out
    [fb] = db.get_all_feedback()
    assert fb.strengths == ["Engaging"]


def test_submit_with_wrong_password(db_file, capsys):
    main(["--db", db_file, "init-db", "--seed"])
    code = main([
        "--db", db_file, "submit",
        "--username", "trainee", "--password", "wrong",
        "--session-id", "1",
        "--overall", "5", "--knowledge", "5", "--communication", "4",
        "--materials", "4", "--engagement", "5",
    ])
    assert code == 1
    assert "401" in capsys.readouterr().err


def test_report(db_file, capsys):
    main(["--db", db_file, "init-db", "--seed"])
    assert main(["--db", db_file, "report"]) == 0
    out = capsys.readouterr().out
    assert "Sarah Johnson" in out
    assert main(["--db", db_file, "report", "--trainer-id", "1"]) == 0
    assert "sentiment=50" in capsys.readouterr().out
    assert main(["--db", db_file, "report", "--trainer-id", "99"]) == 1
