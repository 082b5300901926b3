import pytest

from proppool import cache
from proppool.services import pool_service
from proppool.services.leaderboard_service import get_leaderboard, rank_players
from proppool.services.resolution_service import resolve_prop, void_prop
from proppool.utils.cache_utils import make_query_cache_key
from proppool.utils.exceptions import PoolNotFound


@pytest.fixture
def played_pool(app):
    pool = pool_service.create_pool("Finals", "Cap")
    winner = pool_service.add_prop(pool.id, "Winner?", ["Home", "Away"], 10)
    total = pool_service.add_prop(pool.id, "Total points?", ["Over", "Under"], 5)

    players = {
        name: pool_service.join_pool(pool.id, name) for name in ("Bea", "Abe", "Cal")
    }
    for name, winner_pick, total_pick in (
        ("Bea", 0, 0),
        ("Abe", 0, 1),
        ("Cal", 1, 1),
    ):
        pool_service.submit_pick(players[name].id, winner.id, winner_pick)
        pool_service.submit_pick(players[name].id, total.id, total_pick)

    pool_service.lock_pool(pool.id)
    return pool, winner, total, players


def _standings(board):
    return [(row["rank"], row["name"], row["total_points"]) for row in board["leaderboard"]]


def test_rank_players_orders_by_points_then_name(app):
    pool = pool_service.create_pool("Ranks", "Cap")
    pool_service.join_pool(pool.id, "Zed")
    pool_service.join_pool(pool.id, "Amy")

    rows = rank_players(pool.get_active_players(), pool)

    assert [(row["rank"], row["name"]) for row in rows] == [(1, "Amy"), (2, "Cap"), (3, "Zed")]
    assert [row["is_captain"] for row in rows] == [False, True, False]


def test_leaderboard_refreshes_after_resolution(played_pool):
    pool, winner, total, _ = played_pool

    before = get_leaderboard(pool.id)
    assert before["pool_status"] == "locked"
    assert not before["has_resolved_props"]
    assert [row[2] for row in _standings(before)] == [0, 0, 0, 0]

    resolve_prop(winner.id, 1)
    after = get_leaderboard(pool.id)
    assert after["has_resolved_props"]
    assert _standings(after)[0] == (1, "Cal", 10)

    resolve_prop(total.id, 1)
    assert _standings(get_leaderboard(pool.id))[:3] == [
        (1, "Cal", 15),
        (2, "Abe", 5),
        (3, "Bea", 0),
    ]


def test_leaderboard_is_cached_until_scores_change(played_pool):
    pool, winner, _, _ = played_pool
    key = make_query_cache_key("Pool", "get_leaderboard", pool.id)

    get_leaderboard(pool.id)
    assert cache.get(key) is not None

    void_prop(winner.id)
    assert cache.get(key) is None


def test_leaderboard_summary_reports_upset(played_pool):
    pool, winner, total, _ = played_pool

    resolve_prop(winner.id, 1)
    summary = get_leaderboard(pool.id)["summary"]

    assert summary["biggest_upset"] == {
        "question_text": "Winner?",
        "popular_option": "Home",
        "correct_option": "Away",
        "popular_percent": 67,
    }
    assert summary["most_agreed"]["question_text"] == "Winner?"
    assert summary["most_divisive"]["question_text"] == "Winner?"


def test_removed_players_leave_the_leaderboard(played_pool):
    pool, _, _, players = played_pool

    pool_service.remove_player(players["Cal"].id)

    names = [row["name"] for row in get_leaderboard(pool.id)["leaderboard"]]
    assert "Cal" not in names
    assert len(names) == 3


def test_unknown_pool(app):
    with pytest.raises(PoolNotFound):
        get_leaderboard("missing")


def test_pick_stats_refresh_while_pool_is_open(app):
    pool = pool_service.create_pool("Open Night", "Cap")
    prop = pool_service.add_prop(pool.id, "Coin toss?", ["Heads", "Tails"], 5)
    player = pool_service.join_pool(pool.id, "Alex")

    assert get_leaderboard(pool.id)["prop_stats"][prop.id]["total_picks"] == 0

    pool_service.submit_pick(player.id, prop.id, 1)
    board = get_leaderboard(pool.id)
    assert board["prop_stats"][prop.id]["total_picks"] == 1
    assert board["summary"]["most_agreed"] == {
        "question_text": "Coin toss?",
        "option_text": "Tails",
        "percent": 100,
    }

    pool_service.update_prop(prop.id, question_text="Opening toss?", options=["H", "T"])
    assert get_leaderboard(pool.id)["summary"]["most_agreed"]["option_text"] == "T"

    extra = pool_service.add_prop(pool.id, "Safety?", ["Yes", "No"], 3)
    assert extra.id in get_leaderboard(pool.id)["prop_stats"]

    pool_service.update_pool(pool.id, name="Renamed Night")
    assert get_leaderboard(pool.id)["pool_name"] == "Renamed Night"


def test_opening_a_draft_refreshes_status(app):
    pool = pool_service.create_pool("Draft Night", "Cap", status="draft")
    pool_service.add_prop(pool.id, "Overtime?", ["Yes", "No"], 3)
    assert get_leaderboard(pool.id)["pool_status"] == "draft"

    pool_service.open_pool(pool.id)

    assert get_leaderboard(pool.id)["pool_status"] == "open"
