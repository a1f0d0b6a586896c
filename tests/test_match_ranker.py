import pytest

from app.models.items import MatchResult
from app.services.match_ranker import confidence_band, rank


def _result(item_id, confidence, reasoning="r"):
    return MatchResult(id=item_id, confidence=confidence, reasoning=reasoning)


def test_two_lost_items_ranked_and_banded(make_lost):
    universe = [make_lost("lost-1", "Jansport Backpack"), make_lost("lost-2", "Hydro-Flask Bottle")]
    ranked = rank([_result("lost-2", 40), _result("lost-1", 92)], universe)

    assert [(m.id, m.confidence) for m in ranked] == [("lost-1", 92.0), ("lost-2", 40.0)]
    assert ranked[0].band == "high"
    assert ranked[1].band == "low"
    # full report fields carried over
    assert ranked[0].item_name == "Jansport Backpack"
    assert ranked[0].profile.full_name == "Jane Doe"


def test_unknown_id_is_dropped(make_lost):
    universe = [make_lost("lost-1"), make_lost("lost-2")]
    assert rank([_result("lost-99", 95)], universe) == []


def test_output_is_subset_of_universe_and_results(make_lost):
    universe = [make_lost(f"lost-{i}") for i in range(5)]
    results = [_result("lost-3", 10), _result("ghost", 99), _result("lost-0", 60)]
    ranked = rank(results, universe)
    ids = {item.id for item in universe}
    assert len(ranked) <= len(results)
    assert all(m.id in ids for m in ranked)


def test_ties_keep_oracle_order(make_lost):
    universe = [make_lost(f"lost-{i}") for i in range(4)]
    results = [_result("lost-2", 70), _result("lost-0", 90), _result("lost-3", 70), _result("lost-1", 70)]
    assert [m.id for m in rank(results, universe)] == ["lost-0", "lost-2", "lost-3", "lost-1"]


def test_duplicate_ids_first_wins(make_lost):
    universe = [make_lost("lost-1")]
    ranked = rank([_result("lost-1", 30, "first"), _result("lost-1", 99, "second")], universe)
    assert len(ranked) == 1
    assert ranked[0].confidence == 30
    assert ranked[0].reasoning == "first"


def test_scored_match_serializes_camel_case(make_lost):
    ranked = rank([_result("lost-1", 85)], [make_lost("lost-1")])
    data = ranked[0].model_dump(by_alias=True)
    assert data["itemName"] == "Backpack"
    assert data["lastKnownLocation"] == "University Library"
    assert data["profile"]["fullName"] == "Jane Doe"
    assert data["band"] == "high"


@pytest.mark.parametrize("score,band", [
    (100, "high"), (80, "high"), (79.9, "medium"), (50, "medium"), (49.99, "low"), (0, "low"),
])
def test_confidence_band(score, band):
    assert confidence_band(score) == band
