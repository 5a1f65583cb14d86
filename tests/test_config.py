import asyncio

from learnpath.config import (
    DEFAULT_STREAK_BONUSES, SETTINGS_KEY, EngineConfig, apply_settings, load_config, save_setting,
)
from learnpath.storage import MemoryStore


def test_defaults():
    config = EngineConfig()
    assert config.gate_threshold == 50.0
    assert config.review_xp == 10
    assert config.xp_history_limit == 100
    assert config.streak_bonuses == DEFAULT_STREAK_BONUSES


def test_apply_settings_overrides_known_keys():
    config = apply_settings(EngineConfig(), {
        "gate_threshold": 0,
        "streak_bonuses": {"3": 20},
        "theme": "dark",
    })
    assert config.gate_threshold == 0.0
    assert config.streak_bonuses == {3: 20}
    assert config.review_xp == 10


def test_apply_empty_settings():
    config = EngineConfig(review_xp=7)
    assert apply_settings(config, None) is config


def test_load_config_from_store():
    store = MemoryStore({SETTINGS_KEY: {"review_xp": 15}})
    config = asyncio.run(load_config(store))
    assert config.review_xp == 15


def test_save_setting_merges():
    store = MemoryStore()
    asyncio.run(save_setting(store, "review_xp", 5))
    asyncio.run(save_setting(store, "gate_threshold", 75))
    assert asyncio.run(store.get(SETTINGS_KEY)) == {"review_xp": 5, "gate_threshold": 75}
    config = asyncio.run(load_config(store))
    assert config.review_xp == 5
    assert config.gate_threshold == 75.0
