import os
import tempfile
from pathlib import Path

import pytest

DB_PATH = Path(tempfile.gettempdir()) / f"padel_test_{os.getpid()}.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"

from fastapi.testclient import TestClient

from engine.models import Player, SkillLevel, Team
from main import app


def make_player(pid, skill=SkillLevel.HIGH, name=None, surname=""):
    return Player(id=pid, name=name or pid.upper(), surname=surname, skill_level=skill)


def make_team(tid, p1, p2):
    return Team(id=tid, player1=p1, player2=p2)


def keep_order(items):
    return list(items)


@pytest.fixture
def client():
    if DB_PATH.exists():
        DB_PATH.unlink()
    with TestClient(app) as client:
        yield client
    if DB_PATH.exists():
        DB_PATH.unlink()


@pytest.fixture
def roster(client):
    """Four high and four medium/low players stored through the API."""
    ids = {}
    for i in range(1, 5):
        for skill in (SkillLevel.HIGH, SkillLevel.MEDIUM_LOW):
            name = f"{skill.value.lower()}{i}"
            resp = client.post("/players", json={"name": name, "surname": "Rossi", "skill_level": skill.value})
            assert resp.status_code == 201
            ids[name] = resp.json()["id"]
    return ids


@pytest.fixture
def tournament(client, roster):
    resp = client.post("/tournaments", json={
        "name": "Autumn Cup",
        "status": "ACTIVE",
        "player_ids": list(roster.values()),
    })
    assert resp.status_code == 201
    return resp.json()
