import random
from schemas.catalog import ComicRecord
from services.reconcile import diff, dedupe_by_title


def recs(*titles, **fields):
    return [ComicRecord(title=t, **fields) for t in titles]


def test_scenario_snapshot_vs_remote():
    plan = diff({"A", "C"}, recs("A", "B"))
    assert plan.to_delete == {"C"}
    assert plan.upsert_titles == ["A", "B"]


def test_empty_inputs_give_empty_plan():
    plan = diff(set(), [])
    assert plan.is_empty


def test_empty_snapshot_deletes_everything():
    plan = diff({"A", "B"}, [])
    assert plan.to_delete == {"A", "B"}
    assert plan.to_upsert == ()


def test_duplicate_title_keeps_later_record():
    first = ComicRecord(title="X", genre="old")
    other = ComicRecord(title="Y")
    later = ComicRecord(title="X", genre="new")
    plan = diff(set(), [first, other, later])
    assert plan.upsert_titles == ["X", "Y"]
    assert plan.to_upsert[0].genre == "new"


def test_dedupe_is_stable():
    assert [r.title for r in dedupe_by_title(recs("B", "A", "B", "C"))] == ["B", "A", "C"]


def test_diff_properties_hold_for_random_inputs():
    rng = random.Random(7)
    pool = [f"T{i}" for i in range(12)]
    for _ in range(200):
        existing = set(rng.sample(pool, rng.randint(0, len(pool))))
        fresh = recs(*[rng.choice(pool) for _ in range(rng.randint(0, 15))])
        plan = diff(existing, fresh)
        fresh_titles = {r.title for r in fresh}
        assert plan.to_delete == existing - fresh_titles
        assert set(plan.upsert_titles) == fresh_titles
        assert len(plan.upsert_titles) == len(fresh_titles)


def test_diff_is_pure():
    existing = {"A"}
    fresh = recs("B")
    diff(existing, fresh)
    assert existing == {"A"}
    assert [r.title for r in fresh] == ["B"]
