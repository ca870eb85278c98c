"""Mapping between ORM rows and the engine dataclasses.

Teams are embedded in match rows as JSON, each carrying a snapshot of its
two players so a match stays readable after a player is edited.
"""
from typing import Optional

from database import MatchORM, PlayerORM, SettingsORM, TournamentORM
from engine.models import (
    AppSettings, Match, MatchFormat, MatchSetScore, MatchStatus, PairingStrategy,
    Player, Score, SkillLevel, Team, Tournament, TournamentStatus,
)

PLAYER_COUNTERS = (
    "matches_played", "matches_won", "sets_won", "sets_lost",
    "games_won", "games_lost", "points",
)


def orm_to_player(p: PlayerORM) -> Player:
    return Player(
        id=p.id, name=p.name, surname=p.surname or "",
        nickname=p.nickname, contact=p.contact,
        skill_level=SkillLevel(p.skill_level),
        **{counter: getattr(p, counter) or 0 for counter in PLAYER_COUNTERS},
    )


def player_snapshot(player: Player) -> dict:
    return {
        "id": player.id,
        "name": player.name,
        "surname": player.surname,
        "nickname": player.nickname,
        "skill_level": SkillLevel(player.skill_level).value,
    }


def snapshot_to_player(data: dict) -> Player:
    return Player(
        id=data["id"], name=data.get("name", ""), surname=data.get("surname") or "",
        nickname=data.get("nickname"),
        skill_level=SkillLevel(data.get("skill_level") or SkillLevel.UNASSIGNED.value),
    )


def team_to_json(team: Team) -> dict:
    return {
        "id": team.id,
        "player1": player_snapshot(team.player1),
        "player2": player_snapshot(team.player2),
    }


def json_to_team(data: dict) -> Team:
    return Team(
        id=data["id"],
        player1=snapshot_to_player(data["player1"]),
        player2=snapshot_to_player(data["player2"]),
    )


def scores_to_json(scores) -> list:
    return [
        {
            "set_number": s.set_number,
            "team1_score": s.team1_score.dump(),
            "team2_score": s.team2_score.dump(),
        }
        for s in scores
    ]


def json_to_scores(data: Optional[list]) -> list:
    return [
        MatchSetScore(
            set_number=int(s["set_number"]),
            team1_score=Score.parse(s.get("team1_score")),
            team2_score=Score.parse(s.get("team2_score")),
        )
        for s in (data or [])
    ]


def orm_to_match(m: MatchORM) -> Match:
    return Match(
        id=m.id, tournament_id=m.tournament_id, round=m.round,
        team1=json_to_team(m.team1), team2=json_to_team(m.team2),
        court=m.court, scores=json_to_scores(m.scores),
        winner_team_id=m.winner_team_id,
        status=MatchStatus(m.status),
        match_format=MatchFormat(m.match_format),
    )


def match_columns(match: Match) -> dict:
    return dict(
        tournament_id=match.tournament_id,
        round=match.round,
        team1=team_to_json(match.team1),
        team2=team_to_json(match.team2),
        court=match.court,
        scores=scores_to_json(match.scores),
        winner_team_id=match.winner_team_id,
        status=MatchStatus(match.status).value,
        match_format=MatchFormat(match.match_format).value,
    )


def match_to_orm(match: Match) -> MatchORM:
    return MatchORM(id=match.id, **match_columns(match))


def apply_match(m: MatchORM, match: Match):
    """Copy a (resolved or edited) match back onto its row."""
    for column, value in match_columns(match).items():
        setattr(m, column, value)


def orm_to_tournament(t: TournamentORM) -> Tournament:
    return Tournament(
        id=t.id, name=t.name,
        player_ids=list(t.player_ids or []),
        current_round=t.current_round,
        status=TournamentStatus(t.status),
    )


def orm_to_settings(s: Optional[SettingsORM]) -> AppSettings:
    if s is None:
        return AppSettings()
    return AppSettings(
        pairing_strategy=PairingStrategy(s.pairing_strategy),
        match_format=MatchFormat(s.match_format),
        points_win=s.points_win,
        points_tie_break_loss=s.points_tie_break_loss,
        points_loss=s.points_loss,
        current_tournament_id=s.current_tournament_id,
    )
