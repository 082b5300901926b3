"""
Score Ledger for the Prop Pool application

Pure scoring helpers: the points a single pick earns for its prop's current
resolution, and a player's total recomputed from their full pick set.
Persistence is handled by proppool/services/resolution_service.py.
"""


def score_pick(pick, prop):
    """
    Calculate points for a single pick.

    Returns:
        prop.point_value when the prop is resolved and the pick matches
        0 when the prop is resolved and the pick does not match, or is voided
        None when the prop is active and still unresolved

    Args:
        pick: Pick (or any row with selected_option_index)
        prop: Prop the pick belongs to
    """
    if prop.status == "voided":
        return 0

    if prop.correct_option_index is None:
        return None

    # Picks pointing past edited options can never match a valid index
    if pick.selected_option_index == prop.correct_option_index:
        return prop.point_value

    return 0


def recompute_player_total(player_id, picks):
    """
    Sum points_earned over a player's picks, treating unscored picks as 0.

    Always called with the authoritative pick rows read inside the same
    transaction that changed them; never patch a previous total.

    Args:
        player_id: Player whose total is computed
        picks: Iterable of picks; rows for other players are ignored
    """
    return sum(
        pick.points_earned or 0 for pick in picks if pick.player_id == player_id
    )
