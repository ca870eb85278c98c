import itertools

import pytest

from conftest import keep_order, make_player, make_team
from engine.exceptions import (
    InsufficientPlayers, InvalidComposition, MatchLocked, NotEnoughTeams, RoundNotFinished,
)
from engine.models import MatchFormat, MatchStatus, PairingStrategy, SkillLevel
from engine.pairing import (
    create_manual_match, edit_match_teams, ensure_round_finished, form_teams,
    generate_round, partition_by_skill, random_order, schedule_round,
)

HIGH = SkillLevel.HIGH
LOW = SkillLevel.MEDIUM_LOW


def roster(high=4, low=4, unassigned=0):
    players = [make_player(f"h{i}", HIGH) for i in range(high)]
    players += [make_player(f"l{i}", LOW) for i in range(low)]
    players += [make_player(f"u{i}", SkillLevel.UNASSIGNED) for i in range(unassigned)]
    return players


def test_partition_splits_brackets_and_drops_unassigned():
    brackets = partition_by_skill(roster(3, 2, unassigned=5), shuffle=keep_order)
    assert [p.id for p in brackets.high] == ["h0", "h1", "h2"]
    assert [p.id for p in brackets.medium_low] == ["l0", "l1"]
    assert len(brackets) == 5


@pytest.mark.parametrize("high,low", [(0, 0), (3, 0), (1, 2), (2, 1)])
def test_partition_requires_four_assigned_players(high, low):
    with pytest.raises(InsufficientPlayers):
        partition_by_skill(roster(high, low, unassigned=10))


def test_partition_does_not_keep_sort_order():
    players = roster(8, 0)
    orders = {tuple(p.id for p in partition_by_skill(players).high) for _ in range(50)}
    assert len(orders) > 1


def test_random_order_returns_a_new_list():
    items = [1, 2, 3]
    shuffled = random_order(items)
    assert sorted(shuffled) == items
    assert shuffled is not items


def test_balanced_pairs_from_the_end_of_each_bracket():
    high = [make_player("h0"), make_player("h1")]
    low = [make_player("l0", LOW), make_player("l1", LOW), make_player("l2", LOW)]
    teams = form_teams(high, low, PairingStrategy.BALANCED, shuffle=keep_order)

    assert [(t.player1.id, t.player2.id) for t in teams] == [("h1", "l2"), ("h0", "l1")]
    # caller lists are left alone
    assert len(high) == 2 and len(low) == 3


def test_high_only_drops_odd_player():
    high = [make_player(f"h{i}") for i in range(5)]
    teams = form_teams(high, [], PairingStrategy.HIGH_ONLY, shuffle=keep_order)
    assert [(t.player1.id, t.player2.id) for t in teams] == [("h4", "h3"), ("h2", "h1")]


def test_medium_low_only_uses_only_that_bracket():
    high = [make_player(f"h{i}") for i in range(4)]
    low = [make_player(f"l{i}", LOW) for i in range(4)]
    teams = form_teams(high, low, PairingStrategy.MEDIUM_LOW_ONLY, shuffle=keep_order)
    assert all(p.skill_level == LOW for t in teams for p in (t.player1, t.player2))
    assert len(teams) == 2


def test_mixed_pools_both_brackets():
    high = [make_player("h0"), make_player("h1")]
    low = [make_player("l0", LOW), make_player("l1", LOW)]
    teams = form_teams(high, low, PairingStrategy.MIXED, shuffle=keep_order)
    assert [(t.player1.id, t.player2.id) for t in teams] == [("l1", "l0"), ("h1", "h0")]


def test_team_order_is_reshuffled():
    high = [make_player(f"h{i}") for i in range(3)]
    low = [make_player(f"l{i}", LOW) for i in range(3)]
    teams = form_teams(high, low, PairingStrategy.BALANCED, shuffle=lambda items: list(reversed(items)))
    # built as h2, h1, h0; balanced pairing only shuffles the finished team list
    assert [t.player1.id for t in teams] == ["h0", "h1", "h2"]


@pytest.mark.parametrize("strategy,high,low", [
    (PairingStrategy.BALANCED, 4, 1),
    (PairingStrategy.HIGH_ONLY, 3, 6),
    (PairingStrategy.MEDIUM_LOW_ONLY, 6, 3),
    (PairingStrategy.MIXED, 2, 1),
])
def test_not_enough_teams(strategy, high, low):
    with pytest.raises(NotEnoughTeams):
        form_teams(
            [make_player(f"h{i}") for i in range(high)],
            [make_player(f"l{i}", LOW) for i in range(low)],
            strategy,
        )


@pytest.mark.parametrize("strategy", list(PairingStrategy))
def test_no_team_has_the_same_player_twice(strategy):
    for _ in range(20):
        teams = form_teams(
            [make_player(f"h{i}") for i in range(7)],
            [make_player(f"l{i}", LOW) for i in range(7)],
            strategy,
        )
        for team in teams:
            assert team.player1.id != team.player2.id
        ids = [pid for t in teams for pid in t.player_ids]
        assert len(ids) == len(set(ids))


@pytest.mark.parametrize("n", range(0, 8))
def test_schedule_round_pairs_consecutive_teams(n):
    players = [make_player(f"p{i}") for i in range(2 * n)]
    teams = [make_team(f"t{i}", players[2 * i], players[2 * i + 1]) for i in range(n)]

    matches = schedule_round(teams, 3, MatchFormat.GOLDEN_POINT, tournament_id="tour")

    assert len(matches) == n // 2
    used = list(itertools.chain.from_iterable((m.team1.id, m.team2.id) for m in matches))
    assert used == [f"t{i}" for i in range(2 * (n // 2))]
    for m in matches:
        assert m.status == MatchStatus.PENDING
        assert m.scores == [] and m.winner_team_id is None
        assert m.round == 3 and m.match_format == MatchFormat.GOLDEN_POINT
        assert m.tournament_id == "tour"


def test_manual_match():
    a, b, c, d = (make_player(x) for x in "abcd")
    match = create_manual_match(make_team("t1", a, b), make_team("t2", c, d), MatchFormat.BEST_OF_THREE, court="2")
    assert match.status == MatchStatus.PENDING
    assert match.court == "2"
    assert match.player_ids == ["a", "b", "c", "d"]


@pytest.mark.parametrize("ids", [("a", "a", "c", "d"), ("a", "b", "b", "d"), ("a", "b", "c", "a")])
def test_manual_match_rejects_shared_players(ids):
    players = {x: make_player(x) for x in "abcd"}
    team1 = make_team("t1", players[ids[0]], players[ids[1]])
    team2 = make_team("t2", players[ids[2]], players[ids[3]])
    with pytest.raises(InvalidComposition):
        create_manual_match(team1, team2, MatchFormat.BEST_OF_THREE)


def test_edit_match_teams_keeps_team_ids():
    a, b, c, d, e = (make_player(x) for x in "abcde")
    match = create_manual_match(make_team("t1", a, b), make_team("t2", c, d), MatchFormat.BEST_OF_THREE)

    edited = edit_match_teams(match, [e, b], [c, d], court="5")

    assert edited.team1.id == "t1" and edited.team1.player_ids == ["e", "b"]
    assert edited.court == "5"
    assert match.team1.player_ids == ["a", "b"]

    with pytest.raises(InvalidComposition):
        edit_match_teams(match, [a, b], [b, d])
    with pytest.raises(InvalidComposition):
        edit_match_teams(match, [a], [c, d])

    with pytest.raises(MatchLocked):
        edit_match_teams(match.copy_with(status=MatchStatus.COMPLETED), [e, b], [c, d])


def test_round_guard():
    a, b, c, d = (make_player(x) for x in "abcd")
    match = create_manual_match(make_team("t1", a, b), make_team("t2", c, d), MatchFormat.BEST_OF_THREE)
    ensure_round_finished([])
    ensure_round_finished([match.copy_with(status=MatchStatus.COMPLETED)])
    for status in (MatchStatus.PENDING, MatchStatus.IN_PROGRESS):
        with pytest.raises(RoundNotFinished):
            ensure_round_finished([match.copy_with(status=status)])


def test_generate_round_pipeline():
    matches = generate_round(roster(4, 4), PairingStrategy.BALANCED, MatchFormat.BEST_OF_THREE, 2)
    assert len(matches) == 2
    ids = [pid for m in matches for pid in m.player_ids]
    assert sorted(ids) == sorted(p.id for p in roster(4, 4))
    for m in matches:
        for team in (m.team1, m.team2):
            assert {team.player1.skill_level, team.player2.skill_level} == {HIGH, LOW}


def test_generate_round_refuses_while_round_is_open():
    open_match = generate_round(roster(), PairingStrategy.MIXED, MatchFormat.BEST_OF_THREE, 1)[0]
    with pytest.raises(RoundNotFinished):
        generate_round(roster(), PairingStrategy.MIXED, MatchFormat.BEST_OF_THREE, 2, [open_match])
