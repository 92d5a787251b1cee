from kioku_engine.schema import Event
from kioku_engine.search import CRITERIA, WEIGHTS, criteria_row, matches, rank_events, search_events
from kioku_engine.store import flatten


def sample_store():
    return {
        "2024-03-15": [
            Event(id="a1", title="Mom's Birthday", type="Birthday", description="Buy flowers"),
            Event(id="o1", title="Dentist", type="Other", description="Cleaning at noon"),
        ],
        "2023-07-04": [Event(id="b2", title="Dad", type="Birthday", description="")],
        "2022-12-01": [Event(id="w1", title="Wedding", type="Anniversary", description="Mom and Dad")],
    }


def titles(results):
    return [item.event.title for item in results]


def test_empty_query_returns_nothing():
    assert search_events(sample_store(), "") == []
    assert search_events(sample_store(), "   ") == []
    assert rank_events(sample_store(), None) == []


def test_exact_title_outranks_type_only_matches():
    results = rank_events(sample_store(), "Dad")
    by_title = {r.item.event.title: r.score for r in results}
    assert titles([r.item for r in results])[0] == "Dad"
    assert by_title["Dad"] == 100
    assert by_title["Wedding"] == 20


def test_birthday_query_scores_type_and_title():
    results = rank_events(sample_store(), "birthday")
    assert titles([r.item for r in results]) == ["Mom's Birthday", "Dad"]
    assert [r.score for r in results] == [75.0, 25.0]


def test_ties_keep_flatten_order():
    store = {
        "2024-01-01": [Event(id="x", title="Alpha", type="Other"), Event(id="y", title="Beta", type="Other")],
        "2024-02-01": [Event(id="z", title="Gamma", type="Other")],
    }
    assert titles(search_events(store, "other")) == ["Alpha", "Beta", "Gamma"]


def test_multi_token_query_matches_across_fields():
    results = search_events(sample_store(), "mom flowers")
    assert titles(results) == ["Mom's Birthday"]


def test_month_names_and_abbreviations_match_event_month():
    assert titles(search_events(sample_store(), "july")) == ["Dad"]
    assert titles(search_events(sample_store(), "dec")) == ["Wedding"]
    assert titles(search_events(sample_store(), "march dentist")) == ["Dentist"]


def test_digit_queries_match_date_digits():
    assert titles(search_events(sample_store(), "0315")) == ["Mom's Birthday", "Dentist"]
    assert titles(search_events(sample_store(), "2023")) == ["Dad"]
    results = rank_events(sample_store(), "2024-03-15")
    assert [r.score for r in results] == [40.0, 40.0]


def test_unmatched_query():
    assert search_events(sample_store(), "zebra") == []


def test_criteria_row_shape_and_weights():
    item = flatten(sample_store())[0]
    row = criteria_row(item, "mom's birthday")
    assert len(row) == len(CRITERIA) == len(WEIGHTS)
    assert dict(zip(CRITERIA, row))["title_exact"] == 1.0
    assert matches(item, "mom's birthday")
    assert not matches(item, "")


def test_date_digits_score_with_or_without_dashes():
    dashed = rank_events(sample_store(), "2024-03-15")
    compact = rank_events(sample_store(), "20240315")
    assert [r.score for r in dashed] == [r.score for r in compact] == [40.0, 40.0]
