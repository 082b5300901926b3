"""
Pick popularity statistics for the leaderboard

Pure functions over already-fetched rows: no database access, no caching.
Picks need prop_id and selected_option_index; props need id, question_text,
options and correct_option_index. Model instances work as they are.
"""


def _percent(count, total):
    """Whole percentage rounded half up, 0 when there is nothing to divide"""
    if total <= 0:
        return 0
    return (200 * count + total) // (2 * total)


def compute_per_prop_stats(picks, props):
    """
    Compute per-prop pick statistics.

    Args:
        picks: All picks for the pool
        props: Props to report on; result keys follow this order

    Returns:
        dict mapping prop id to a stats dict with keys total_picks,
        option_counts, most_popular_index, most_popular_percent, correct_count
    """
    picks_by_prop = {}
    for pick in picks:
        picks_by_prop.setdefault(pick.prop_id, []).append(pick)

    stats_map = {}

    for prop in props:
        prop_picks = picks_by_prop.get(prop.id, [])
        option_counts = [0] * len(prop.options)

        # Out-of-range selections still count toward total_picks
        for pick in prop_picks:
            if 0 <= pick.selected_option_index < len(option_counts):
                option_counts[pick.selected_option_index] += 1

        # Strictly greater keeps the lowest index on ties
        most_popular_index = 0
        max_count = 0
        for index, count in enumerate(option_counts):
            if count > max_count:
                max_count = count
                most_popular_index = index

        total_picks = len(prop_picks)

        if prop.correct_option_index is None:
            correct_count = None
        else:
            correct_count = sum(
                1
                for pick in prop_picks
                if pick.selected_option_index == prop.correct_option_index
            )

        stats_map[prop.id] = {
            "total_picks": total_picks,
            "option_counts": option_counts,
            "most_popular_index": most_popular_index,
            "most_popular_percent": _percent(max_count, total_picks),
            "correct_count": correct_count,
        }

    return stats_map


def compute_pool_summary(stats_map, props):
    """
    Compute pool-level highlights from per-prop stats.

    Only props with at least one pick are considered. On equal percentages
    the first prop in `props` wins.

    Returns:
        dict with most_agreed, most_divisive and biggest_upset, each None
        when no prop qualifies
    """
    props_with_picks = [
        prop
        for prop in props
        if prop.id in stats_map and stats_map[prop.id]["total_picks"] > 0
    ]

    most_agreed_prop = None
    highest_percent = -1
    most_divisive_prop = None
    lowest_percent = 101
    upset_prop = None
    upset_percent = -1

    for prop in props_with_picks:
        percent = stats_map[prop.id]["most_popular_percent"]

        if percent > highest_percent:
            highest_percent = percent
            most_agreed_prop = prop

        if percent < lowest_percent:
            lowest_percent = percent
            most_divisive_prop = prop

        # Upsets: resolved props where the crowd favourite was wrong
        if prop.correct_option_index is None:
            continue
        if (
            stats_map[prop.id]["most_popular_index"] != prop.correct_option_index
            and percent > upset_percent
        ):
            upset_percent = percent
            upset_prop = prop

    most_agreed = None
    if most_agreed_prop is not None:
        popular_index = stats_map[most_agreed_prop.id]["most_popular_index"]
        most_agreed = {
            "question_text": most_agreed_prop.question_text,
            "option_text": most_agreed_prop.options[popular_index],
            "percent": highest_percent,
        }

    most_divisive = None
    if most_divisive_prop is not None:
        most_divisive = {
            "question_text": most_divisive_prop.question_text,
            "percent": lowest_percent,
        }

    biggest_upset = None
    if upset_prop is not None:
        popular_index = stats_map[upset_prop.id]["most_popular_index"]
        biggest_upset = {
            "question_text": upset_prop.question_text,
            "popular_option": upset_prop.options[popular_index],
            "correct_option": upset_prop.options[upset_prop.correct_option_index],
            "popular_percent": upset_percent,
        }

    return {
        "most_agreed": most_agreed,
        "most_divisive": most_divisive,
        "biggest_upset": biggest_upset,
    }
