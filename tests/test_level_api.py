import pytest

from descent.dungeon.config import DesignerConfig
from descent.dungeon.errors import LevelGenerationError
from descent.routes import level_api
from descent.routes.level_api import _coerce_seed, get_cached_level


def test_list_level_types(client):
    r = client.get("/api/levels/types")
    assert r.status_code == 200
    names = {row["name"] for row in r.get_json()}
    assert names == {"Caverns", "Chasms", "Ruins", "Jungle", "Mantle", "Labyrinth"}


def test_design_returns_snapshot(client):
    r = client.post("/api/levels/design", json={"seed": 42, "level_type": "caverns"})
    assert r.status_code == 200
    data = r.get_json()
    assert data["seed"] == 42
    assert data["level_type"] == "Caverns"
    assert data["entrance"] == [10, 10]
    assert data["entrance"] != data["exit"]
    assert len(data["tiles"]) == data["height"] == 21
    assert data["critical_path_length"] > 1
    assert "dig_attempts" in data["metrics"]
    # cached or not, the same request yields the same level
    again = client.post("/api/levels/design", json={"seed": 42, "level_type": "Caverns"}).get_json()
    assert again["tiles"] == data["tiles"]


def test_design_seed_defaults(client, test_app):
    data = client.post("/api/levels/design", json={}).get_json()
    assert data["seed"] == test_app.config["DESCENT_LEVEL_SEED"]
    data = client.post("/api/levels/design", json={"seed": None}).get_json()
    assert 1 <= data["seed"] <= 1_000_000


def test_design_custom_entrance(client):
    r = client.post("/api/levels/design", json={"seed": 5, "entrance": [3, 4]})
    assert r.status_code == 200
    assert r.get_json()["entrance"] == [3, 4]


@pytest.mark.parametrize(
    "payload,fragment",
    [
        ({"level_type": "Nope"}, "unknown level type"),
        ({"entrance": [1]}, "entrance"),
        ({"entrance": [50, 2]}, "outside"),
        ({"entrance": "10,10"}, "entrance"),
        ({"seed": [1, 2]}, "seed"),
    ],
)
def test_design_rejects_bad_input(client, payload, fragment):
    r = client.post("/api/levels/design", json=payload)
    assert r.status_code == 400
    assert fragment in r.get_json()["error"]


def test_unknown_level_type_message_is_unquoted(client):
    r = client.post("/api/levels/design", json={"level_type": "Nope"})
    assert r.get_json()["error"] == "unknown level type 'Nope'"


def test_coerce_seed():
    assert _coerce_seed(7) == 7
    assert _coerce_seed("  12 ") == 12
    assert _coerce_seed("hello") == _coerce_seed("hello")
    assert _coerce_seed("hello") != _coerce_seed("world")
    assert 1 <= _coerce_seed("") <= 1_000_000
    with pytest.raises(ValueError):
        _coerce_seed(1.5)


def test_descend_chains_entrances_to_exits(client):
    r = client.post("/api/levels/descend", json={"seed": 99, "depth": 2})
    assert r.status_code == 200
    data = r.get_json()
    assert data["depth"] == 2
    levels = data["levels"]
    assert len(levels) == 3
    for previous, current in zip(levels, levels[1:]):
        assert current["entrance"] == previous["exit"]


def test_descend_depth_zero(client):
    data = client.post("/api/levels/descend", json={"seed": 1, "depth": 0}).get_json()
    assert data["depth"] == 0
    assert len(data["levels"]) == 1


@pytest.mark.parametrize("depth", [-1, "2", 11, True])
def test_descend_rejects_bad_depth(client, depth):
    r = client.post("/api/levels/descend", json={"depth": depth})
    assert r.status_code == 400


def test_generation_failure_is_500(client, monkeypatch):
    def boom(*a, **k):
        raise LevelGenerationError("all 3 candidates failed for Caverns")

    monkeypatch.setattr(level_api, "design_level", boom)
    r = client.post("/api/levels/design", json={"seed": 3})
    assert r.status_code == 500
    data = r.get_json()
    assert data["error"] == "level generation failed"
    assert len(data["error_id"]) == 8


def test_level_cache_reuses_levels(test_app):
    config = DesignerConfig(designers_per_level=1)
    with test_app.app_context():
        level_api.clear_level_cache()
        a = get_cached_level(17, "Caverns", (10, 10), config)
        b = get_cached_level(17, "caverns", (10, 10), config)
        c = get_cached_level(18, "Caverns", (10, 10), config)
    assert a is b
    assert a is not c


def test_level_cache_can_be_disabled(test_app):
    config = DesignerConfig(designers_per_level=1)
    test_app.config["DESCENT_DISABLE_CACHE"] = True
    try:
        with test_app.app_context():
            a = get_cached_level(17, "Caverns", (10, 10), config)
            b = get_cached_level(17, "Caverns", (10, 10), config)
        assert a is not b
        assert a.to_ascii() == b.to_ascii()
    finally:
        test_app.config["DESCENT_DISABLE_CACHE"] = False
