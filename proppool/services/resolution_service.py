"""
Prop resolution for locked pools

Moves a prop between unresolved, resolved (any number of times) and voided,
re-scoring every pick on the prop and recomputing each affected player's
total inside one transaction. Totals are always rebuilt from the player's
full pick set so re-resolutions and voids never leave residue.
"""

from proppool import db
from proppool.models import CaptainAction, Pick, Player, Pool, Prop
from proppool.utils.cache_utils import invalidate_leaderboard
from proppool.utils.exceptions import (
    AlreadyVoided,
    InvalidInput,
    InvalidOption,
    InvalidStateTransition,
    NotFound,
    PoolLocked,
    PoolNotFound,
    PoolNotLocked,
    PropNotFound,
    UnresolvedProps,
)
from proppool.utils.logging_config import ContextualLogger
from proppool.utils.performance import timer
from proppool.utils.scoring import recompute_player_total, score_pick
from proppool.utils.transaction import unit_of_work

logger = ContextualLogger(__name__)


def _load_prop_for_update(session, prop_id, pool_id=None):
    """Lock and freshly load a prop, optionally scoped to a pool"""
    prop = (
        session.query(Prop)
        .filter(Prop.id == prop_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if prop is None or (pool_id is not None and prop.pool_id != pool_id):
        raise PropNotFound(prop_id=prop_id)
    return prop


def _require_locked_pool(session, pool_id):
    """Resolution only happens while picks are frozen and the pool is not final"""
    pool = session.get(
        Pool, pool_id, populate_existing=True, with_for_update={"read": True}
    )
    if pool is None:
        raise PoolNotFound(pool_id=pool_id)

    if pool.status in ("draft", "open"):
        raise PoolNotLocked(pool_id=pool_id, status=pool.status)
    if pool.status == "completed":
        raise PoolLocked("Pool is already completed", pool_id=pool_id)

    return pool


def _rescore_prop_picks(session, prop):
    """Write points_earned for every pick on the prop, return the picks"""
    picks = (
        session.query(Pick)
        .filter(Pick.prop_id == prop.id)
        .order_by(Pick.created_at, Pick.id)
        .populate_existing()
        .all()
    )
    for pick in picks:
        pick.points_earned = score_pick(pick, prop)
    return picks


def recompute_totals(session, player_ids):
    """
    Rebuild total_points for each player from all of their picks.

    Pick updates are flushed before the read so the sums see this
    transaction's writes. Player rows are locked in id order.
    """
    if not player_ids:
        return {}

    session.flush()

    players = (
        session.query(Player)
        .filter(Player.id.in_(player_ids))
        .order_by(Player.id)
        .with_for_update()
        .populate_existing()
        .all()
    )
    all_picks = session.query(Pick).filter(Pick.player_id.in_(player_ids)).all()

    totals = {}
    for player in players:
        player.total_points = recompute_player_total(player.id, all_picks)
        totals[player.id] = player.total_points
    return totals


def _affected_player_ids(picks):
    # Preserves first-seen order
    return list(dict.fromkeys(pick.player_id for pick in picks))


@timer
def resolve_prop(prop_id, correct_option_index, pool_id=None):
    """
    Set the correct answer for a prop and score every pick against it.

    Calling again with a different index re-resolves: every pick is scored
    against the new answer and every affected total is rebuilt.

    Args:
        prop_id: Prop to resolve
        correct_option_index: Index into prop.options
        pool_id: When given, the prop must belong to this pool

    Returns:
        dict with prop, affected_player_ids and points_awarded

    Raises:
        PropNotFound, PoolNotFound, PoolNotLocked, PoolLocked,
        AlreadyVoided, InvalidOption, TransactionFailure
    """
    log = logger.bind(prop_id=prop_id)

    try:
        with unit_of_work("resolve_prop") as session:
            prop = _load_prop_for_update(session, prop_id, pool_id)
            log = log.bind(pool_id=prop.pool_id)
            _require_locked_pool(session, prop.pool_id)

            if prop.is_voided:
                raise AlreadyVoided("Cannot resolve a voided prop", prop_id=prop_id)

            if not prop.is_valid_option(correct_option_index):
                raise InvalidOption(
                    prop_id=prop_id, correct_option_index=correct_option_index
                )

            previous_index = prop.correct_option_index
            prop.correct_option_index = correct_option_index

            picks = _rescore_prop_picks(session, prop)
            affected_player_ids = _affected_player_ids(picks)
            totals = recompute_totals(session, affected_player_ids)

            points_awarded = [
                {"player_id": pick.player_id, "points_earned": pick.points_earned}
                for pick in picks
            ]

            action_type = "resolve_prop" if previous_index is None else "reresolve_prop"
            CaptainAction.log_action(
                pool_id=prop.pool_id,
                prop_id=prop.id,
                action_type=action_type,
                description=f"Correct answer set to '{prop.options[correct_option_index]}'",
                action_metadata={
                    "previous_index": previous_index,
                    "correct_option_index": correct_option_index,
                    "totals": totals,
                },
            )
            owning_pool_id = prop.pool_id
    except (NotFound, InvalidInput, InvalidStateTransition) as e:
        log.warning(f"Resolve rejected: {e}")
        raise

    invalidate_leaderboard(owning_pool_id)

    log.info(
        f"Prop resolved to option {correct_option_index} "
        f"({len(picks)} picks, {len(affected_player_ids)} players)"
    )

    return {
        "prop": prop,
        "affected_player_ids": affected_player_ids,
        "points_awarded": points_awarded,
    }


@timer
def void_prop(prop_id, pool_id=None):
    """
    Void a prop: clear its answer, zero every pick on it and rebuild totals.

    A voided prop cannot be resolved or voided again.

    Returns:
        dict with prop, affected_player_ids and points_awarded

    Raises:
        PropNotFound, PoolNotFound, PoolNotLocked, PoolLocked,
        AlreadyVoided, TransactionFailure
    """
    log = logger.bind(prop_id=prop_id)

    try:
        with unit_of_work("void_prop") as session:
            prop = _load_prop_for_update(session, prop_id, pool_id)
            log = log.bind(pool_id=prop.pool_id)
            _require_locked_pool(session, prop.pool_id)

            if prop.is_voided:
                raise AlreadyVoided(prop_id=prop_id)

            previous_index = prop.correct_option_index
            prop.status = "voided"
            prop.correct_option_index = None

            picks = _rescore_prop_picks(session, prop)
            affected_player_ids = _affected_player_ids(picks)
            totals = recompute_totals(session, affected_player_ids)

            points_awarded = [
                {"player_id": pick.player_id, "points_earned": pick.points_earned}
                for pick in picks
            ]

            CaptainAction.log_action(
                pool_id=prop.pool_id,
                prop_id=prop.id,
                action_type="void_prop",
                description=f"Prop voided: {prop.question_text}",
                action_metadata={"previous_index": previous_index, "totals": totals},
            )
            owning_pool_id = prop.pool_id
    except (NotFound, InvalidInput, InvalidStateTransition) as e:
        log.warning(f"Void rejected: {e}")
        raise

    invalidate_leaderboard(owning_pool_id)

    log.info(f"Prop voided ({len(picks)} picks zeroed, {len(affected_player_ids)} players)")

    return {
        "prop": prop,
        "affected_player_ids": affected_player_ids,
        "points_awarded": points_awarded,
    }


def complete_pool(pool_id):
    """
    Move a locked pool to completed once every active prop is resolved.

    After this, resolve and void fail with PoolLocked.
    """
    with unit_of_work("complete_pool") as session:
        pool = session.get(Pool, pool_id, populate_existing=True, with_for_update=True)
        if pool is None:
            raise PoolNotFound(pool_id=pool_id)

        if pool.status in ("draft", "open"):
            raise PoolNotLocked(pool_id=pool_id, status=pool.status)
        if pool.status == "completed":
            raise PoolLocked("Pool is already completed", pool_id=pool_id)

        unresolved = pool.count_unresolved_props()
        if unresolved:
            raise UnresolvedProps(
                f"{unresolved} prop(s) still need a correct answer",
                pool_id=pool_id,
                unresolved=unresolved,
            )

        pool.status = "completed"
        CaptainAction.log_action(
            pool_id=pool.id,
            action_type="complete_pool",
            description="Pool completed",
        )

    invalidate_leaderboard(pool_id)
    logger.info(f"Pool {pool_id} completed")
    return pool


def rescore_pool(pool_id):
    """
    Re-score every pick in a pool and rebuild every player's total.

    Repair tool for totals that drifted from their picks; safe to run in
    any pool status and idempotent.

    Returns:
        dict with picks_rescored and corrections (player id -> (old, new))
    """
    with unit_of_work("rescore_pool") as session:
        pool = session.get(Pool, pool_id, populate_existing=True)
        if pool is None:
            raise PoolNotFound(pool_id=pool_id)

        props = session.query(Prop).filter(Prop.pool_id == pool_id).populate_existing().all()
        picks_rescored = 0
        for prop in props:
            picks_rescored += len(_rescore_prop_picks(session, prop))

        player_ids = [
            player_id
            for (player_id,) in session.query(Player.id).filter(Player.pool_id == pool_id)
        ]
        previous = {
            player.id: player.total_points
            for player in session.query(Player).filter(Player.id.in_(player_ids))
        }
        totals = recompute_totals(session, player_ids)

        corrections = {
            player_id: (previous[player_id], total)
            for player_id, total in totals.items()
            if previous[player_id] != total
        }
        if corrections:
            CaptainAction.log_action(
                pool_id=pool_id,
                action_type="rescore_pool",
                description=f"Corrected {len(corrections)} player total(s)",
                action_metadata={
                    player_id: {"old": old, "new": new}
                    for player_id, (old, new) in corrections.items()
                },
            )

    invalidate_leaderboard(pool_id)
    logger.info(
        f"Pool {pool_id} rescored: {picks_rescored} picks, {len(corrections)} totals corrected"
    )
    return {"picks_rescored": picks_rescored, "corrections": corrections}


def find_total_mismatches(pool_id):
    """
    List players whose cached total differs from their picks (read-only).

    Returns:
        list of dicts with player_id, name, cached_total, recomputed_total
    """
    pool = db.session.get(Pool, pool_id)
    if pool is None:
        raise PoolNotFound(pool_id=pool_id)

    players = pool.players.order_by(Player.name).all()
    picks = Pick.query.join(Player).filter(Player.pool_id == pool_id).all()

    mismatches = []
    for player in players:
        recomputed = recompute_player_total(player.id, picks)
        if recomputed != player.total_points:
            mismatches.append(
                {
                    "player_id": player.id,
                    "name": player.name,
                    "cached_total": player.total_points,
                    "recomputed_total": recomputed,
                }
            )

    if mismatches:
        logger.warning(f"Pool {pool_id} has {len(mismatches)} player total mismatch(es)")
    return mismatches
