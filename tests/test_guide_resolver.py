import asyncio

from app.services.guide_resolver import GuideResolver


def resolve(store, guide_id=None, guide_name=None, **kwargs):
    return asyncio.run(GuideResolver(store, **kwargs).resolve(guide_id, guide_name))


def test_lookup_by_id(store):
    store.guides["g1"] = {"name": "Joseph Ole", "email": "joseph@kob.test"}
    guide = resolve(store, "g1", "Joe")

    assert guide.exists
    assert (guide.id, guide.name, guide.email) == ("g1", "Joseph Ole", "joseph@kob.test")


def test_id_match_without_name_keeps_supplied_name(store):
    store.guides["g1"] = {"email": "joseph@kob.test"}
    assert resolve(store, "g1", "Joseph").name == "Joseph"


def test_unknown_id_falls_back_to_exact_name(store):
    store.guides["g2"] = {"fullName": "Amina Njeri", "email": "amina@kob.test"}
    guide = resolve(store, "stale-id", "Amina Njeri")

    assert guide.exists
    assert guide.id == "g2"


def test_case_insensitive_scan(store):
    store.guides["g3"] = {"displayName": "Peter Mwangi"}
    guide = resolve(store, None, "  peter MWANGI ")

    assert guide.exists
    assert guide.id == "g3"
    assert guide.name == "Peter Mwangi"


def test_scan_is_bounded(store):
    for i in range(5):
        store.guides[f"g{i:02d}"] = {"name": f"Guide {i}"}
    store.guides["g99"] = {"name": "Late Entry"}

    assert not resolve(store, None, "late entry", scan_limit=5).exists
    assert resolve(store, None, "late entry", scan_limit=10).exists


def test_first_match_wins_by_field_order(store):
    store.guides["a"] = {"username": "Kip"}
    store.guides["b"] = {"name": "Kip"}

    assert resolve(store, None, "Kip").id == "b"


def test_no_match_keeps_supplied_name(store):
    guide = resolve(store, "g404", "Joseph")

    assert not guide.exists
    assert guide.name == "Joseph"
    assert guide.email is None


def test_nothing_supplied(store):
    assert not resolve(store).exists
