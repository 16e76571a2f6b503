import pytest

from inkmix.core.recipe_finder import EngineConfig
from inkmix.data.config_manager import ConfigManager
from inkmix.errors import InputError


def test_config_manager_init_data():
    cfg = ConfigManager(data={"a": 1})
    assert cfg.get("a") == 1


def test_config_manager_get_nested():
    cfg = ConfigManager(data={"a": {"b": 2}})
    assert cfg.get("a.b") == 2
    assert cfg.get("a.c", 3) == 3
    assert cfg.get("a.b.c", 4) == 4


def test_config_manager_set_nested():
    cfg = ConfigManager(data={})
    cfg.set("x.y", 10)
    assert cfg.get("x.y") == 10


def test_config_manager_section_is_copy():
    cfg = ConfigManager(data={"search": {"sample_budget": 50}, "flag": 1})
    section = cfg.section("search")
    section["sample_budget"] = 10
    assert cfg.get("search.sample_budget") == 50
    assert cfg.section("missing") == {}
    assert cfg.section("flag") == {}


def test_config_manager_save_and_load(tmp_path):
    path = tmp_path / "engine.json"
    cfg = ConfigManager(path=path, data={"optimizer": {"max_iterations": 200}})
    cfg.save()
    assert ConfigManager(path=path).get("optimizer.max_iterations") == 200


def test_engine_config_from_config_manager():
    cfg = ConfigManager(
        data={
            "optimizer": {"max_iterations": 250, "tolerance": 0.3},
            "search": {"enumeration_ceiling": 100},
            "scoring": {"cost_weight": 0.1},
            "mixing": {"dot_gain": True},
            "cache_capacity": 16,
        }
    )
    engine = EngineConfig.from_config_manager(cfg)
    assert engine.optimizer.max_iterations == 250
    assert engine.search.enumeration_ceiling == 100
    assert engine.scoring.cost_weight == 0.1
    assert engine.mixing.method == "linear"
    assert engine.mixing.dot_gain
    assert engine.cache_capacity == 16


def test_engine_config_defaults_when_empty():
    engine = EngineConfig.from_config_manager(ConfigManager(data={}))
    assert engine == EngineConfig()


def test_engine_config_unknown_key():
    with pytest.raises(InputError):
        EngineConfig.from_config_manager(ConfigManager(data={"optimizer": {"iterations": 5}}))


def test_engine_config_invalid_mixing_method():
    with pytest.raises(InputError):
        EngineConfig.from_config_manager(ConfigManager(data={"mixing": {"method": "spectral"}}))
