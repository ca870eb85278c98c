def _round(client, tid, **body):
    return client.post(f"/tournaments/{tid}/rounds", json=body or None)


def _finish(client, tid, match):
    return client.post(
        f"/tournaments/{tid}/matches/{match['id']}/results",
        json={"scores": [
            {"set_number": 1, "team1_score": 6, "team2_score": 3},
            {"set_number": 2, "team1_score": 6, "team2_score": 4},
            {"set_number": 3, "team1_score": "", "team2_score": ""},
        ]},
    )


def test_player_crud(client):
    resp = client.post("/players", json={"name": "Luca", "surname": "Rossi", "skill_level": "HIGH"})
    assert resp.status_code == 201
    player = resp.json()
    assert player["points"] == 0 and player["skill_level"] == "HIGH"

    resp = client.put(f"/players/{player['id']}", json={"nickname": "Lu", "skill_level": "MEDIUM_LOW"})
    assert resp.json()["nickname"] == "Lu"
    assert resp.json()["skill_level"] == "MEDIUM_LOW"

    assert client.delete(f"/players/{player['id']}").status_code == 204
    assert client.get(f"/players/{player['id']}").status_code == 404


def test_player_update_ignores_null_fields(client):
    pid = client.post("/players", json={"name": "Marta", "surname": "Bianchi", "skill_level": "HIGH"}).json()["id"]

    resp = client.put(f"/players/{pid}", json={"name": None, "surname": None, "skill_level": None, "nickname": "Ma"})
    assert resp.status_code == 200
    player = resp.json()
    assert (player["name"], player["surname"], player["skill_level"]) == ("Marta", "Bianchi", "HIGH")
    assert player["nickname"] == "Ma"


def test_player_listing_filters_and_sort(client, roster):
    resp = client.get("/players", params={"search": "high", "sort_by": "name", "order": "desc"})
    names = [p["name"] for p in resp.json()]
    assert names == ["high4", "high3", "high2", "high1"]

    resp = client.get("/players", params={"skill_level": "MEDIUM_LOW"})
    assert len(resp.json()) == 4

    assert len(client.get("/players", params={"tournament": "NONE"}).json()) == 8


def test_tournament_roster_validation(client, roster):
    resp = client.post("/tournaments", json={"name": "Bad", "player_ids": ["nope"]})
    assert resp.status_code == 400

    resp = client.post("/tournaments", json={"name": "Small", "max_players": 4, "player_ids": list(roster.values())})
    assert resp.status_code == 400


def test_new_tournament_becomes_current(client, tournament):
    settings = client.get("/settings").json()
    assert settings["current_tournament_id"] == tournament["id"]
    assert tournament["current_round"] == 1

    pid = tournament["player_ids"][0]
    assert client.get(f"/players/{pid}/tournament").json()["id"] == tournament["id"]


def test_round_generation_and_guard(client, tournament):
    tid = tournament["id"]
    resp = _round(client, tid)
    assert resp.status_code == 201
    body = resp.json()
    assert body["round"] == 1
    assert len(body["matches"]) == 2
    assert all(m["status"] == "PENDING" for m in body["matches"])

    resp = _round(client, tid)
    assert resp.status_code == 400
    assert resp.json()["code"] == "round_not_finished"

    for match in body["matches"]:
        assert _finish(client, tid, match).status_code == 200

    resp = _round(client, tid, pairing_strategy="HIGH_ONLY", match_format="GOLDEN_POINT")
    assert resp.status_code == 201
    assert resp.json()["round"] == 2
    assert all(m["match_format"] == "GOLDEN_POINT" for m in resp.json()["matches"])
    assert client.get(f"/tournaments/{tid}").json()["current_round"] == 3


def test_round_needs_assigned_players(client):
    ids = [
        client.post("/players", json={"name": f"p{i}"}).json()["id"]
        for i in range(6)
    ]
    tid = client.post("/tournaments", json={"name": "Unranked", "player_ids": ids}).json()["id"]
    resp = _round(client, tid)
    assert resp.status_code == 400
    assert resp.json()["code"] == "insufficient_players"


def test_results_update_player_counters(client, tournament):
    tid = tournament["id"]
    match = _round(client, tid).json()["matches"][0]

    resp = client.post(f"/tournaments/{tid}/matches/{match['id']}/results", json={"scores": [
        {"set_number": 1, "team1_score": 6, "team2_score": 4},
        {"set_number": 2, "team1_score": 4, "team2_score": 6},
    ]})
    assert resp.status_code == 400
    assert resp.json()["code"] == "incomplete_score"

    resp = _finish(client, tid, match)
    assert resp.status_code == 200
    done = resp.json()
    assert done["status"] == "COMPLETED"
    assert done["winner_team_id"] == match["team1"]["id"]
    assert len(done["scores"]) == 2

    winner_id = match["team1"]["player1"]["id"]
    loser_id = match["team2"]["player1"]["id"]
    winner = client.get(f"/players/{winner_id}").json()
    loser = client.get(f"/players/{loser_id}").json()
    assert (winner["points"], winner["matches_won"], winner["sets_won"], winner["games_won"]) == (3, 1, 2, 12)
    assert (loser["points"], loser["matches_played"], loser["sets_lost"]) == (0, 1, 2)


def test_golden_point_result(client, tournament):
    tid = tournament["id"]
    match = _round(client, tid, match_format="GOLDEN_POINT").json()["matches"][0]
    url = f"/tournaments/{tid}/matches/{match['id']}/results"

    assert client.post(url, json={"scores": []}).json()["code"] == "incomplete_score"

    resp = client.post(url, json={"winner_team_id": match["team2"]["id"]})
    assert resp.status_code == 200
    assert resp.json()["scores"] == [{"set_number": 1, "team1_score": None, "team2_score": "GP"}]


def test_draft_scores_and_delete_uncompleted(client, tournament):
    tid = tournament["id"]
    first, second = _round(client, tid).json()["matches"]

    resp = client.put(f"/tournaments/{tid}/matches/{first['id']}/scores", json={"scores": [
        {"set_number": 1, "team1_score": 6, "team2_score": 2},
        {"set_number": 2, "team1_score": "", "team2_score": ""},
    ]})
    assert resp.status_code == 200
    assert resp.json()["status"] == "IN_PROGRESS"
    assert len(resp.json()["scores"]) == 1

    assert _finish(client, tid, second).status_code == 200

    resp = client.delete(f"/tournaments/{tid}/matches")
    assert resp.json() == {"deleted": 1}
    remaining = client.get(f"/tournaments/{tid}/matches").json()
    assert [m["id"] for m in remaining] == [second["id"]]


def test_manual_match_and_team_edit(client, tournament, roster):
    tid = tournament["id"]
    body = {
        "team1_player_ids": [roster["high1"], roster["medium_low1"]],
        "team2_player_ids": [roster["high2"], roster["medium_low2"]],
        "court": "Centrale",
    }
    resp = client.post(f"/tournaments/{tid}/matches", json=body)
    assert resp.status_code == 201
    match = resp.json()
    assert match["court"] == "Centrale"
    assert match["round"] == 1

    bad = dict(body, team2_player_ids=[roster["high1"], roster["medium_low2"]])
    resp = client.post(f"/tournaments/{tid}/matches", json=bad)
    assert resp.json()["code"] == "invalid_composition"

    url = f"/tournaments/{tid}/matches/{match['id']}/teams"
    resp = client.put(url, json={
        "team1_player_ids": [roster["high3"], roster["medium_low1"]],
        "team2_player_ids": [roster["high2"], roster["medium_low2"]],
    })
    assert resp.status_code == 200
    assert resp.json()["team1"]["id"] == match["team1"]["id"]
    assert resp.json()["team1"]["player1"]["id"] == roster["high3"]

    # players in an open match cannot be deleted
    assert client.delete(f"/players/{roster['high3']}").status_code == 409


def test_standings_endpoints(client, tournament):
    tid = tournament["id"]
    for match in _round(client, tid).json()["matches"]:
        _finish(client, tid, match)

    resp = client.get(f"/rankings/tournaments/{tid}")
    assert resp.status_code == 200
    rows = resp.json()["standings"]
    assert len(rows) == 8
    assert [r["rank"] for r in rows] == list(range(1, 9))
    assert [r["points"] for r in rows] == [3, 3, 3, 3, 0, 0, 0, 0]
    assert rows[0]["set_ratio"] == "∞"
    assert rows[-1]["set_ratio"] == "0.00"

    current = client.get("/rankings/current").json()
    assert current["tournament_id"] == tid
    assert current["standings"] == rows

    overall = client.get("/rankings/overall", params={"skill_level": "HIGH"}).json()
    assert overall["scope"] == "overall"
    assert len(overall["standings"]) == 4


def test_current_standings_without_selection(client):
    resp = client.get("/rankings/current")
    assert resp.status_code == 400
    assert resp.json()["code"] == "no_scope"


def test_settings_points_change_recalculates(client, tournament):
    tid = tournament["id"]
    match = _round(client, tid).json()["matches"][0]
    _finish(client, tid, match)

    resp = client.patch("/settings", json={"points_win": 2, "pairing_strategy": "MIXED"})
    assert resp.status_code == 200
    assert resp.json()["pairing_strategy"] == "MIXED"

    winner_id = match["team1"]["player1"]["id"]
    assert client.get(f"/players/{winner_id}").json()["points"] == 2


def test_settings_null_fields_are_ignored(client, tournament):
    resp = client.patch("/settings", json={
        "points_win": None,
        "points_tie_break_loss": None,
        "points_loss": None,
        "pairing_strategy": None,
        "match_format": None,
    })
    assert resp.status_code == 200
    settings = resp.json()
    assert (settings["points_win"], settings["points_tie_break_loss"], settings["points_loss"]) == (3, 1, 0)
    assert settings["pairing_strategy"] == "BALANCED"
    assert settings["match_format"] == "BEST_OF_THREE"
    assert settings["current_tournament_id"] == tournament["id"]

    # null still clears the current tournament
    resp = client.patch("/settings", json={"current_tournament_id": None})
    assert resp.status_code == 200
    assert resp.json()["current_tournament_id"] is None


def test_delete_tournament_clears_selection(client, tournament):
    tid = tournament["id"]
    match = _round(client, tid).json()["matches"][0]
    _finish(client, tid, match)

    assert client.delete(f"/tournaments/{tid}").status_code == 204
    assert client.get("/settings").json()["current_tournament_id"] is None
    winner_id = match["team1"]["player1"]["id"]
    assert client.get(f"/players/{winner_id}").json()["points"] == 0
