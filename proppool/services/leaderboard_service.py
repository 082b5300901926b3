"""
Leaderboard and pick highlights for a pool

Read-only: ranks players by their cached totals and runs the pick
statistics engine over the pool's active props.
"""

from proppool import db
from proppool.models import Player, Prop
from proppool.services.pool_service import get_pool, get_pool_picks
from proppool.utils.cache_utils import cached_query
from proppool.utils.pick_stats import compute_per_prop_stats, compute_pool_summary


def rank_players(players, pool=None):
    """
    Order players by total_points desc, then name asc, and number them.

    Args:
        players: Player rows
        pool: Owning pool, used to flag the captain
    """
    ordered = sorted(players, key=lambda p: (-p.total_points, p.name))
    return [
        {
            "id": player.id,
            "name": player.name,
            "total_points": player.total_points,
            "rank": index + 1,
            "is_captain": pool is not None and pool.is_captain_secret(player.secret),
        }
        for index, player in enumerate(ordered)
    ]


def get_pick_stats(pool_id):
    """Per-prop stats and highlights over the pool's active props"""
    props = (
        Prop.query.filter_by(pool_id=pool_id, status="active")
        .order_by(Prop.order, Prop.created_at)
        .all()
    )
    picks = get_pool_picks(pool_id)

    stats_map = compute_per_prop_stats(picks, props)
    return stats_map, compute_pool_summary(stats_map, props)


@cached_query("Pool", timeout_config_key="LEADERBOARD_CACHE_TIMEOUT")
def get_leaderboard(pool_id):
    """
    Get the leaderboard for a pool.

    Cached per pool; every resolve, void, rescore and membership change
    invalidates the entry, so always pass pool_id positionally.

    Returns:
        dict with pool_id, pool_name, pool_status, has_resolved_props,
        leaderboard (ranked active players) and summary (pick highlights)
    """
    pool = get_pool(pool_id)

    players = (
        db.session.query(Player)
        .filter(Player.pool_id == pool_id, Player.status == "active")
        .all()
    )
    stats_map, summary = get_pick_stats(pool_id)

    return {
        "pool_id": pool.id,
        "pool_name": pool.name,
        "pool_status": pool.status,
        "has_resolved_props": pool.has_resolved_props(),
        "leaderboard": rank_players(players, pool),
        "prop_stats": stats_map,
        "summary": summary,
    }
