from types import SimpleNamespace

from proppool.utils.pick_stats import (
    _percent,
    compute_per_prop_stats,
    compute_pool_summary,
)


def _prop(prop_id, options, correct=None, question_text=None):
    return SimpleNamespace(
        id=prop_id,
        options=options,
        correct_option_index=correct,
        question_text=question_text or f"Question {prop_id}",
    )


def _picks(prop_id, indexes):
    return [
        SimpleNamespace(prop_id=prop_id, player_id=f"p{n}", selected_option_index=i)
        for n, i in enumerate(indexes)
    ]


def test_empty_input_gives_empty_map():
    assert compute_per_prop_stats([], []) == {}


def test_prop_without_picks():
    stats = compute_per_prop_stats([], [_prop("q1", ["Yes", "No"])])

    assert stats["q1"] == {
        "total_picks": 0,
        "option_counts": [0, 0],
        "most_popular_index": 0,
        "most_popular_percent": 0,
        "correct_count": None,
    }


def test_tie_goes_to_first_option():
    stats = compute_per_prop_stats(_picks("q1", [0, 1]), [_prop("q1", ["A", "B"])])

    assert stats["q1"]["most_popular_index"] == 0
    assert stats["q1"]["most_popular_percent"] == 50


def test_correct_count_for_resolved_prop():
    stats = compute_per_prop_stats(
        _picks("q1", [0, 1, 1, 2]), [_prop("q1", ["A", "B", "C"], correct=1)]
    )

    assert stats["q1"]["correct_count"] == 2
    assert stats["q1"]["option_counts"] == [1, 2, 1]


def test_out_of_range_picks_count_toward_total_only():
    stats = compute_per_prop_stats(_picks("q1", [0, 4, 4]), [_prop("q1", ["A", "B"])])

    assert stats["q1"]["total_picks"] == 3
    assert stats["q1"]["option_counts"] == [1, 0]
    assert stats["q1"]["most_popular_index"] == 0
    assert stats["q1"]["most_popular_percent"] == 33


def test_percent_rounds_half_up():
    assert _percent(1, 8) == 13
    assert _percent(1, 3) == 33
    assert _percent(2, 3) == 67
    assert _percent(0, 0) == 0


def test_upset_detection_skips_props_the_crowd_got_right():
    upset = _prop("q1", ["Wrong", "Right"], correct=1, question_text="Upset?")
    chalk = _prop("q2", ["Wrong", "Right"], correct=0, question_text="Chalk")
    props = [upset, chalk]
    picks = _picks("q1", [0, 0, 0, 1]) + _picks("q2", [0, 0, 0, 1])

    stats = compute_per_prop_stats(picks, props)
    summary = compute_pool_summary(stats, props)

    assert stats["q1"]["most_popular_index"] == 0
    assert stats["q1"]["most_popular_percent"] == 75
    assert summary["biggest_upset"] == {
        "question_text": "Upset?",
        "popular_option": "Wrong",
        "correct_option": "Right",
        "popular_percent": 75,
    }


def test_no_upset_when_crowd_was_right():
    chalk = _prop("q1", ["Wrong", "Right"], correct=0)
    stats = compute_per_prop_stats(_picks("q1", [0, 0, 1]), [chalk])

    assert compute_pool_summary(stats, [chalk])["biggest_upset"] is None


def test_agreed_and_divisive_first_prop_wins_ties():
    props = [
        _prop("q1", ["A", "B"], question_text="First"),
        _prop("q2", ["A", "B"], question_text="Second"),
        _prop("q3", ["X", "Y", "Z"], question_text="Split"),
        _prop("q4", ["A", "B"], question_text="Nobody"),
    ]
    picks = (
        _picks("q1", [1, 1])
        + _picks("q2", [0, 0])
        + _picks("q3", [0, 1, 2])
    )

    summary = compute_pool_summary(compute_per_prop_stats(picks, props), props)

    assert summary["most_agreed"] == {
        "question_text": "First",
        "option_text": "B",
        "percent": 100,
    }
    assert summary["most_divisive"] == {"question_text": "Split", "percent": 33}
    assert summary["biggest_upset"] is None


def test_summary_of_pool_without_picks():
    props = [_prop("q1", ["A", "B"])]

    assert compute_pool_summary(compute_per_prop_stats([], props), props) == {
        "most_agreed": None,
        "most_divisive": None,
        "biggest_upset": None,
    }
