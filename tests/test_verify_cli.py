"""Tests for the command line verifier."""

import asyncio
import json

from faction_selector.services.credential_service import issue_token
from faction_selector.services.game_service import create_game, reveal
from faction_selector.services.game_store import GameLocks
from faction_selector.services.selection_service import select_faction
from faction_selector.verify_cli import main


def _reveal_file(tmp_path, store, catalog, settings):
    async def scenario():
        game = await create_game(store, catalog, ["Alice", "Bob"], 3, custom_game_id="g1", config=settings)
        for player in game.players:
            await select_faction(store, GameLocks(), "g1", player.name, player.assignment.factions[0].id,
                                 issue_token("g1", player.name, settings), settings)
        return await reveal(store, "g1")

    data = asyncio.run(scenario())
    path = tmp_path / "reveal.json"
    path.write_text(json.dumps(data))
    return path, data


def test_cli_accepts_honest_reveal(tmp_path, store, catalog, settings, capsys):
    """Test an honest reveal file exits 0."""
    path, _ = _reveal_file(tmp_path, store, catalog, settings)
    assert main(["--file", str(path)]) == 0
    out = capsys.readouterr().out
    assert "[OK  ] Alice" in out
    assert "All commitments verified." in out


def test_cli_flags_tampered_player(tmp_path, store, catalog, settings, capsys):
    """Test a tampered player is named and the exit code is 1."""
    path, data = _reveal_file(tmp_path, store, catalog, settings)
    data["players"][1]["selectionSalt"] = "ff" * 32
    path.write_text(json.dumps(data))

    assert main(["--file", str(path)]) == 1
    out = capsys.readouterr().out
    assert "[FAIL] Bob" in out
    assert "Verification failed for: Bob" in out


def test_cli_reports_unparseable_file(tmp_path, capsys):
    """Test a file that is not JSON exits 2 with a message."""
    path = tmp_path / "reveal.json"
    path.write_text("{not json")
    assert main(["--file", str(path)]) == 2
    assert "Could not read reveal file" in capsys.readouterr().err


def test_cli_reports_missing_file(tmp_path, capsys):
    """Test a missing file exits 2 with a message."""
    assert main(["--file", str(tmp_path / "absent.json")]) == 2
    assert "Could not read reveal file" in capsys.readouterr().err


def test_cli_fails_payload_without_players(tmp_path, capsys):
    """Test a JSON file with no player list fails verification."""
    path = tmp_path / "reveal.json"
    path.write_text(json.dumps(["not", "a", "reveal"]))
    assert main(["--file", str(path)]) == 1
    assert "no players revealed" in capsys.readouterr().out
