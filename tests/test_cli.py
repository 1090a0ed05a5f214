"""Tests for the command-line interface."""

import sqlite3

from athlete_sessions.cli import main


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "serve" in capsys.readouterr().out


def test_init_db_creates_tables(tmp_path, monkeypatch):
    database_path = tmp_path / "cli.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{database_path}")

    assert main(["init-db"]) == 0

    connection = sqlite3.connect(database_path)
    try:
        tables = {
            row[0]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    finally:
        connection.close()

    assert {"account", "session"} <= tables
