"""End-to-end tests of the HTTP API."""

from urllib.parse import quote

from faction_selector.main import create_app
from faction_selector.services.game_store import InMemoryGameStore
from faction_selector.services.verifier import verify_reveal

from fastapi.testclient import TestClient


def _create(client, names=("Alice", "Bob"), k=3, game_id=None):
    body = {"playerNames": list(names), "factionsPerPlayer": k}
    if game_id:
        body["customGameId"] = game_id
    return client.post("/api/game/create", json=body)


def _player_url(game_id, name, action):
    return f"/api/game/{game_id}/player/{quote(name, safe='')}/{action}"


def _auth(client, game_id, name, password):
    return client.post(_player_url(game_id, name, "auth"), json={"password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    def test_health(self, client):
        """Test health reports the catalog size."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["factions"] == 8

    def test_factions(self, client):
        """Test the catalog is listed in order."""
        factions = client.get("/api/factions").json()["factions"]
        assert len(factions) == 8
        assert factions[0] == {"id": "f0", "name": "Faction A", "expansion": "test"}

    def test_index_fallback(self, client):
        """Test the index page renders without a static client."""
        assert client.get("/").status_code == 200


class TestFullGame:
    """The Alice and Bob scenario from creation through verified reveal."""

    def test_two_player_game(self, client):
        """Test a full two-player game ends in a verifiable reveal."""
        created = _create(client, game_id="ti-night")
        assert created.status_code == 200
        assert created.json()["gameId"] == "ti-night"
        assert created.json()["playerLinks"] == [
            {"name": "Alice", "url": "/player.html?game=ti-night&player=Alice"},
            {"name": "Bob", "url": "/player.html?game=ti-night&player=Bob"},
        ]

        # Alice: first visit sets her password.
        auth = _auth(client, "ti-night", "Alice", "abcd")
        assert auth.status_code == 200
        assert auth.json()["action"] == "password_set"
        alice_token = auth.json()["token"]

        status = client.get("/api/game/ti-night/status").json()
        assert status["players"][0]["hasSetPassword"] is True
        assert status["players"][1]["hasSetPassword"] is False

        options = client.get("/api/game/ti-night/player/Alice/options", headers=_bearer(alice_token)).json()
        assert len(options["factions"]) == 3
        alice_hand = {f["id"] for f in options["factions"]}

        chosen = options["factions"][0]["id"]
        selected = client.post("/api/game/ti-night/player/Alice/select",
                               json={"factionId": chosen}, headers=_bearer(alice_token))
        assert selected.status_code == 200
        assert selected.json()["allSelected"] is False
        assert selected.json()["revealed"] is False

        assert client.get("/api/game/ti-night/reveal").status_code == 403

        # Bob logs in, sees a disjoint hand, and picks.
        bob_token = _auth(client, "ti-night", "Bob", "wxyz").json()["token"]
        bob_options = client.get("/api/game/ti-night/player/Bob/options", headers=_bearer(bob_token)).json()
        bob_hand = {f["id"] for f in bob_options["factions"]}
        assert not alice_hand & bob_hand

        final = client.post("/api/game/ti-night/player/Bob/select",
                            json={"factionId": bob_options["factions"][2]["id"]}, headers=_bearer(bob_token))
        assert final.json()["allSelected"] is True
        assert final.json()["revealed"] is True

        revealed = client.get("/api/game/ti-night/reveal")
        assert revealed.status_code == 200
        players = revealed.json()["players"]
        assert all(p["assignmentSalt"] and p["selectionSalt"] for p in players)
        assert verify_reveal(revealed.json()).all_valid

        verify = client.get("/api/game/ti-night/verify").json()
        assert verify["allValid"] is True

        status = client.get("/api/game/ti-night/status").json()
        assert status["allSelected"] is True and status["revealed"] is True
        assert [p["selectionCommitment"] for p in status["players"]] == [p["selectionCommitment"] for p in players]

    def test_returning_player_and_wrong_password(self, client):
        """Test a returning player logs in and a wrong password is refused."""
        _create(client, game_id="g1")
        _auth(client, "g1", "Alice", "abcd")

        again = _auth(client, "g1", "Alice", "abcd")
        assert again.status_code == 200
        assert again.json()["action"] == "authenticated"

        wrong = _auth(client, "g1", "Alice", "nope")
        assert wrong.status_code == 401
        assert wrong.json()["code"] == "wrong_password"

    def test_second_selection_conflicts(self, client):
        """Test a second pick is refused and the first one stands."""
        _create(client, game_id="g1")
        token = _auth(client, "g1", "Alice", "abcd").json()["token"]
        hand = client.get("/api/game/g1/player/Alice/options", headers=_bearer(token)).json()["factions"]

        first = client.post("/api/game/g1/player/Alice/select", json={"factionId": hand[0]["id"]},
                            headers=_bearer(token))
        second = client.post("/api/game/g1/player/Alice/select", json={"factionId": hand[1]["id"]},
                             headers=_bearer(token))
        assert second.status_code == 409
        assert second.json()["code"] == "already_selected"

        options = client.get("/api/game/g1/player/Alice/options", headers=_bearer(token)).json()
        assert options["selectedFaction"]["id"] == hand[0]["id"]
        assert options["selectionCommitment"] == first.json()["selectionCommitment"]

    def test_names_with_reserved_characters(self, client):
        """Test players named with "/" or "?" can log in, pick and reach the reveal."""
        names = ["A/B", "Who?"]
        created = _create(client, names=names, game_id="s")
        assert created.status_code == 200
        links = [link["url"] for link in created.json()["playerLinks"]]
        assert links == ["/player.html?game=s&player=A%2FB", "/player.html?game=s&player=Who%3F"]

        for name in names:
            auth = _auth(client, "s", name, "abcd")
            assert auth.status_code == 200
            token = auth.json()["token"]
            options = client.get(_player_url("s", name, "options"), headers=_bearer(token))
            assert options.status_code == 200
            assert options.json()["name"] == name
            picked = client.post(_player_url("s", name, "select"),
                                 json={"factionId": options.json()["factions"][0]["id"]},
                                 headers=_bearer(token))
            assert picked.status_code == 200

        revealed = client.get("/api/game/s/reveal")
        assert revealed.status_code == 200
        assert [p["name"] for p in revealed.json()["players"]] == names
        assert verify_reveal(revealed.json()).all_valid


class TestErrors:
    """Each failure maps to a distinct status and code."""

    def test_create_validation_errors(self, client):
        """Test bad create bodies get their own codes."""
        assert _create(client, names=["Alice"]).json()["code"] == "too_few_players"
        assert _create(client, k=2).json()["code"] == "invalid_factions_per_player"
        assert _create(client, game_id="bad id!").json()["code"] == "invalid_game_id"
        assert _create(client, names=["Alice", "Alice"]).status_code == 400

    def test_capacity_error(self, client):
        """Test a deal larger than the catalog is a 422."""
        response = _create(client, names=["A", "B", "C"], k=3)
        assert response.status_code == 422
        assert response.json()["code"] == "not_enough_factions"

    def test_malformed_body(self, client):
        """Test schema failures come back as 400 invalid_request."""
        response = client.post("/api/game/create", json={"playerNames": "Alice"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"

    def test_id_in_use(self, client):
        """Test a taken custom id is refused and the game is untouched."""
        assert _create(client, game_id="g1").status_code == 200
        response = _create(client, names=["Carol", "Dan"], game_id="g1")
        assert response.status_code == 409
        assert response.json()["code"] == "game_id_taken"
        status = client.get("/api/game/g1/status").json()
        assert [p["name"] for p in status["players"]] == ["Alice", "Bob"]

    def test_unknown_game_and_player(self, client):
        """Test unknown games and players are 404s."""
        _create(client, game_id="g1")
        assert client.get("/api/game/nope/status").status_code == 404
        response = _auth(client, "g1", "Zed", "abcd")
        assert response.status_code == 404
        assert response.json()["code"] == "player_not_found"

    def test_short_password(self, client):
        """Test a first password under four characters is refused."""
        _create(client, game_id="g1")
        response = _auth(client, "g1", "Alice", "abc")
        assert response.status_code == 400
        assert response.json()["code"] == "password_too_short"

    def test_long_password(self, client):
        """Test an 80 character password is a 400, not a server error."""
        _create(client, game_id="g1")
        response = _auth(client, "g1", "Alice", "x" * 80)
        assert response.status_code == 400
        assert response.json()["code"] == "password_too_long"
        assert client.get("/api/game/g1/status").json()["players"][0]["hasSetPassword"] is False

    def test_token_failures(self, client):
        """Test each token failure has its own status and code."""
        _create(client, game_id="g1")
        alice_token = _auth(client, "g1", "Alice", "abcd").json()["token"]

        missing = client.get("/api/game/g1/player/Alice/options")
        assert (missing.status_code, missing.json()["code"]) == (401, "token_missing")

        garbage = client.get("/api/game/g1/player/Alice/options", headers=_bearer("garbage"))
        assert (garbage.status_code, garbage.json()["code"]) == (401, "token_invalid")

        bad_header = client.get("/api/game/g1/player/Alice/options", headers={"Authorization": alice_token})
        assert bad_header.json()["code"] == "token_invalid"

        other = client.get("/api/game/g1/player/Bob/options", headers=_bearer(alice_token))
        assert (other.status_code, other.json()["code"]) == (403, "token_scope_mismatch")

    def test_invalid_faction(self, client):
        """Test picking from another player's hand is refused."""
        _create(client, game_id="g1")
        alice = _auth(client, "g1", "Alice", "abcd").json()["token"]
        bob = _auth(client, "g1", "Bob", "abcd").json()["token"]
        bob_hand = client.get("/api/game/g1/player/Bob/options", headers=_bearer(bob)).json()["factions"]

        response = client.post("/api/game/g1/player/Alice/select", json={"factionId": bob_hand[0]["id"]},
                               headers=_bearer(alice))
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_faction"


class TestCreatorGames:
    """Game limit and deletion by the creating address."""

    def test_limit_then_delete(self, settings, catalog):
        """Test the limit lists open games and deleting one frees a slot."""
        limited = settings.model_copy(update={"max_games_per_creator": 2})
        client = TestClient(create_app(limited, store=InMemoryGameStore(), catalog=catalog))

        assert _create(client, game_id="g1").status_code == 200
        assert _create(client, game_id="g2").status_code == 200

        refused = _create(client, game_id="g3")
        assert refused.status_code == 429
        assert refused.json()["code"] == "game_limit_reached"
        assert [g["gameId"] for g in refused.json()["games"]] == ["g1", "g2"]

        assert [g["gameId"] for g in client.get("/api/games/mine").json()["games"]] == ["g1", "g2"]

        deleted = client.delete("/api/game/g1")
        assert deleted.status_code == 200
        assert deleted.json() == {"ok": True, "gameId": "g1"}
        assert client.get("/api/game/g1/status").status_code == 404

        assert _create(client, game_id="g3").status_code == 200
        assert _create(client, game_id="g1").status_code == 409

    def test_forwarded_for_fingerprint(self, settings, catalog):
        """Test only the creating address may delete when proxies are trusted."""
        trusting = settings.model_copy(update={"trust_forwarded_for": True})
        client = TestClient(create_app(trusting, store=InMemoryGameStore(), catalog=catalog))

        _create(client, game_id="g1")
        other = client.delete("/api/game/g1", headers={"X-Forwarded-For": "203.0.113.9"})
        assert other.status_code == 403
        assert other.json()["code"] == "not_creator"
        assert client.delete("/api/game/g1").status_code == 200
