"""
Pool lifecycle, props and picks

Status only moves forward: draft -> open -> locked -> completed. Pool details
and props can be edited while the pool is draft or open; deleting and
reordering props and submitting picks happen only while it is open;
resolution (see resolution_service) only while it is locked.

Every change that alters what the leaderboard shows drops its cache entry
after commit.
"""

import logging

from flask import current_app
from sqlalchemy import func

from proppool import db
from proppool.models import CaptainAction, Pick, Player, Pool, Prop
from proppool.services.resolution_service import recompute_totals
from proppool.utils.cache_utils import invalidate_leaderboard
from proppool.utils.exceptions import (
    DuplicatePlayerName,
    InvalidInput,
    InvalidOption,
    InvalidStateTransition,
    InvalidTransition,
    PicksClosed,
    PlayerNotFound,
    PoolLocked,
    PoolNotFound,
    PropNotFound,
    PropVoided,
)
from proppool.utils.transaction import unit_of_work

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = ("draft", "open")


def _get_pool(session, pool_id, lock=False):
    pool = session.get(Pool, pool_id, populate_existing=True, with_for_update=lock)
    if pool is None:
        raise PoolNotFound(pool_id=pool_id)
    return pool


def _get_prop(session, prop_id):
    prop = session.get(Prop, prop_id, populate_existing=True)
    if prop is None:
        raise PropNotFound(prop_id=prop_id)
    return prop


def _require_editable(pool):
    if pool.status not in EDITABLE_STATUSES:
        raise PoolLocked("Cannot edit after the pool is locked", pool_id=pool.id)


def _require_open(pool, action):
    """Prop deletion and reordering are limited to open pools"""
    if pool.status in ("locked", "completed"):
        raise PoolLocked(f"Cannot {action} after the pool is locked", pool_id=pool.id)
    if pool.status != "open":
        raise InvalidStateTransition(
            f"Can only {action} while the pool is open", pool_id=pool.id
        )


def _clean_text(value, field, max_length):
    """Strip and length-check a required text field"""
    text = (value or "").strip()
    if not text:
        raise InvalidInput(f"{field} is required")
    if len(text) > max_length:
        raise InvalidInput(f"{field} must be {max_length} characters or less")
    return text


def _clean_optional(value, max_length):
    """Blank optional text is stored as NULL"""
    text = (value or "").strip()
    return text[:max_length] or None


def _validate_options(options):
    min_options = current_app.config.get("MIN_PROP_OPTIONS", 2)
    max_options = current_app.config.get("MAX_PROP_OPTIONS", 10)

    if not isinstance(options, (list, tuple)):
        raise InvalidInput("Options must be a list")
    if len(options) < min_options:
        raise InvalidInput(f"At least {min_options} options are required")
    if len(options) > max_options:
        raise InvalidInput(f"Maximum {max_options} options allowed")

    cleaned = [str(option).strip() for option in options]
    if any(not option for option in cleaned):
        raise InvalidInput("Option cannot be empty")
    return cleaned


def _validate_point_value(point_value):
    if isinstance(point_value, bool) or not isinstance(point_value, int):
        raise InvalidInput("Point value must be a whole number")
    if point_value <= 0:
        raise InvalidInput("Point value must be positive")
    return point_value


def create_pool(name, captain_name, description=None, status="open"):
    """
    Create a pool and join its captain as the first player.

    The captain's player row shares the pool's captain secret, which is how
    the leaderboard recognises the captain.
    """
    name = _clean_text(name, "Pool name", 100)
    captain_name = _clean_text(captain_name, "Captain name", 50)
    if status not in EDITABLE_STATUSES:
        raise InvalidInput("New pools start as draft or open")

    with unit_of_work("create_pool") as session:
        pool = Pool(
            name=name,
            captain_name=captain_name,
            description=_clean_optional(description, 1000),
            status=status,
        )
        session.add(pool)
        session.flush()

        session.add(Player(pool_id=pool.id, name=captain_name, secret=pool.captain_secret))

    logger.info(f"Pool {pool.id} ({pool.name}) created by {captain_name}")
    return pool


def update_pool(pool_id, name=None, description=None):
    """
    Edit a pool's name and/or description while it is draft or open.

    Arguments left as None are not changed; an empty description clears it.
    """
    if name is None and description is None:
        raise InvalidInput("Nothing to update")
    if name is not None:
        name = _clean_text(name, "Pool name", 100)

    with unit_of_work("update_pool") as session:
        pool = _get_pool(session, pool_id, lock=True)
        _require_editable(pool)

        if name is not None:
            pool.name = name
        if description is not None:
            pool.description = _clean_optional(description, 1000)

    invalidate_leaderboard(pool_id)
    logger.info(f"Pool {pool_id} details updated")
    return pool


def add_prop(pool_id, question_text, options, point_value, category=None):
    """Append a prop to a draft or open pool"""
    question_text = _clean_text(question_text, "Question", 500)
    options = _validate_options(options)
    point_value = _validate_point_value(point_value)

    with unit_of_work("add_prop") as session:
        pool = _get_pool(session, pool_id, lock=True)
        _require_editable(pool)

        max_order = (
            session.query(func.max(Prop.order)).filter(Prop.pool_id == pool_id).scalar()
        )
        prop = Prop(
            pool_id=pool_id,
            question_text=question_text,
            options=options,
            point_value=point_value,
            category=_clean_optional(category, 50),
            order=0 if max_order is None else max_order + 1,
        )
        session.add(prop)

    invalidate_leaderboard(pool_id)
    logger.info(f"Prop {prop.id} added to pool {pool_id}")
    return prop


def update_prop(prop_id, question_text=None, options=None, point_value=None, category=None):
    """
    Edit any of a prop's fields while the pool is draft or open.

    Arguments left as None are not changed; an empty category clears it.
    Replacing the options leaves existing picks as they are. A pick whose
    index now falls past the last option stays stored and simply never
    scores.
    """
    if all(value is None for value in (question_text, options, point_value, category)):
        raise InvalidInput("Nothing to update")
    if question_text is not None:
        question_text = _clean_text(question_text, "Question", 500)
    if options is not None:
        options = _validate_options(options)
    if point_value is not None:
        point_value = _validate_point_value(point_value)

    stranded = 0
    with unit_of_work("update_prop") as session:
        prop = _get_prop(session, prop_id)
        pool = _get_pool(session, prop.pool_id, lock=True)
        _require_editable(pool)

        if question_text is not None:
            prop.question_text = question_text
        if point_value is not None:
            prop.point_value = point_value
        if category is not None:
            prop.category = _clean_optional(category, 50)
        if options is not None:
            stranded = (
                session.query(Pick)
                .filter(Pick.prop_id == prop_id, Pick.selected_option_index >= len(options))
                .count()
            )
            prop.options = options

    invalidate_leaderboard(pool.id)
    if stranded:
        logger.warning(
            f"Prop {prop_id} options edited: {stranded} pick(s) now point past the last option"
        )
    return prop


def update_prop_options(prop_id, options):
    """Replace a prop's options; see update_prop"""
    return update_prop(prop_id, options=options)


def reorder_props(pool_id, prop_ids):
    """
    Set the display order of an open pool's props.

    prop_ids must list every prop in the pool exactly once; each prop's
    order becomes its position in the list.
    """
    if not isinstance(prop_ids, (list, tuple)) or not prop_ids:
        raise InvalidInput("Prop ids must be a non-empty list")
    if len(set(prop_ids)) != len(prop_ids):
        raise InvalidInput("Prop ids must not repeat")

    with unit_of_work("reorder_props") as session:
        pool = _get_pool(session, pool_id, lock=True)
        _require_open(pool, "reorder props")

        props = {
            prop.id: prop
            for prop in session.query(Prop).filter(Prop.pool_id == pool_id).populate_existing()
        }
        for prop_id in prop_ids:
            if prop_id not in props:
                raise PropNotFound(prop_id=prop_id)
        if len(prop_ids) != len(props):
            raise InvalidInput("Every prop in the pool must be listed")

        for position, prop_id in enumerate(prop_ids):
            props[prop_id].order = position

    invalidate_leaderboard(pool_id)
    logger.info(f"Pool {pool_id}: {len(prop_ids)} props reordered")


def delete_prop(prop_id):
    """
    Hard-delete a prop and its picks while the pool is open.

    Totals of players who picked it are rebuilt from their remaining picks.
    """
    with unit_of_work("delete_prop") as session:
        prop = _get_prop(session, prop_id)
        pool = _get_pool(session, prop.pool_id, lock=True)
        _require_open(pool, "delete props")

        player_ids = [
            player_id
            for (player_id,) in session.query(Pick.player_id).filter(Pick.prop_id == prop_id)
        ]

        question_text = prop.question_text
        session.query(Pick).filter(Pick.prop_id == prop_id).delete(synchronize_session="fetch")
        session.delete(prop)
        recompute_totals(session, player_ids)

        CaptainAction.log_action(
            pool_id=pool.id,
            prop_id=prop_id,
            action_type="delete_prop",
            description=f"Prop deleted: {question_text}",
            action_metadata={"picks_deleted": len(player_ids)},
        )

    invalidate_leaderboard(pool.id)
    logger.info(f"Prop {prop_id} deleted from pool {pool.id} ({len(player_ids)} picks)")


def join_pool(pool_id, name):
    """Add a player to an open pool; names are unique within a pool"""
    name = _clean_text(name, "Name", 50)

    with unit_of_work("join_pool") as session:
        pool = _get_pool(session, pool_id)
        if not pool.accepts_picks:
            raise PicksClosed("Pool is not accepting new players", pool_id=pool_id)

        if session.query(Player).filter_by(pool_id=pool_id, name=name).first():
            raise DuplicatePlayerName(pool_id=pool_id, name=name)

        player = Player(pool_id=pool_id, name=name)
        session.add(player)

    invalidate_leaderboard(pool_id)
    logger.info(f"Player {player.id} ({name}) joined pool {pool_id}")
    return player


def remove_player(player_id):
    """Mark a player removed; their picks stay but they leave the leaderboard"""
    with unit_of_work("remove_player") as session:
        player = session.get(Player, player_id, populate_existing=True)
        if player is None:
            raise PlayerNotFound(player_id=player_id)

        player.status = "removed"
        pool_id = player.pool_id
        CaptainAction.log_action(
            pool_id=pool_id,
            action_type="remove_player",
            description=f"Player removed: {player.name}",
            action_metadata={"player_id": player_id},
        )

    invalidate_leaderboard(pool_id)
    return player


def submit_pick(player_id, prop_id, selected_option_index):
    """
    Create or update a player's pick for a prop.

    Returns:
        (pick, created) where created is False when an existing pick was updated
    """
    with unit_of_work("submit_pick") as session:
        player = session.get(Player, player_id, populate_existing=True)
        if player is None or not player.is_active:
            raise PlayerNotFound(player_id=player_id)

        prop = _get_prop(session, prop_id)
        if prop.pool_id != player.pool_id:
            raise PropNotFound(prop_id=prop_id)

        pool = _get_pool(session, prop.pool_id)
        if not pool.accepts_picks:
            raise PicksClosed(pool_id=pool.id, status=pool.status)
        if prop.is_voided:
            raise PropVoided(prop_id=prop_id)
        if not prop.is_valid_option(selected_option_index):
            raise InvalidOption(prop_id=prop_id, selected_option_index=selected_option_index)

        pick = (
            session.query(Pick)
            .filter_by(player_id=player_id, prop_id=prop_id)
            .populate_existing()
            .first()
        )
        created = pick is None
        if created:
            pick = Pick(
                player_id=player_id,
                prop_id=prop_id,
                selected_option_index=selected_option_index,
                points_earned=None,
            )
            session.add(pick)
        else:
            pick.selected_option_index = selected_option_index

    invalidate_leaderboard(pool.id)
    logger.debug(
        f"Pick {'created' if created else 'updated'}: player={player_id} prop={prop_id} "
        f"option={selected_option_index}"
    )
    return pick, created


def open_pool(pool_id):
    """draft -> open; needs at least one active prop"""
    with unit_of_work("open_pool") as session:
        pool = _get_pool(session, pool_id, lock=True)
        if pool.status != "draft":
            raise InvalidTransition(
                f"Cannot open a pool that is {pool.status}", pool_id=pool_id
            )
        if not pool.get_active_props():
            raise InvalidInput("Add at least one prop before opening the pool")

        pool.status = "open"
        CaptainAction.log_action(pool_id=pool_id, action_type="open_pool", description="Pool opened")

    invalidate_leaderboard(pool_id)
    logger.info(f"Pool {pool_id} opened")
    return pool


def lock_pool(pool_id):
    """open -> locked; freezes picks so props can be resolved"""
    with unit_of_work("lock_pool") as session:
        pool = _get_pool(session, pool_id, lock=True)
        if pool.status == "draft":
            raise InvalidTransition("Cannot lock a draft pool. Open it first.", pool_id=pool_id)
        if pool.status != "open":
            raise PoolLocked(pool_id=pool_id)

        pool.status = "locked"
        CaptainAction.log_action(pool_id=pool_id, action_type="lock_pool", description="Pool locked")

    invalidate_leaderboard(pool_id)
    logger.info(f"Pool {pool_id} locked")
    return pool


def get_pool_picks(pool_id):
    """All picks for a pool's props, oldest first"""
    return (
        Pick.query.join(Prop)
        .filter(Prop.pool_id == pool_id)
        .order_by(Pick.created_at, Pick.id)
        .all()
    )


def get_pool(pool_id):
    pool = db.session.get(Pool, pool_id)
    if pool is None:
        raise PoolNotFound(pool_id=pool_id)
    return pool
