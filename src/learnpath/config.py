"""Engine policy settings.

Defaults live here; a learner's overrides are stored as a plain dict under
the ``settings`` key of the progress store.
"""
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from learnpath.storage import Store

DEFAULT_DB_PATH = str(Path.home() / ".learnpath" / "progress.db")
SETTINGS_KEY = "settings"

DEFAULT_GATE_THRESHOLD = 50.0

# Streak length -> bonus XP paid the day the streak first reaches it
DEFAULT_STREAK_BONUSES = {7: 50, 14: 100, 30: 200, 60: 300, 90: 500}


@dataclass(frozen=True)
class EngineConfig:
    gate_threshold: float = DEFAULT_GATE_THRESHOLD
    review_xp: int = 10
    unit_completion_xp: int = 0
    xp_history_limit: int = 100
    streak_bonuses: dict[int, int] = field(default_factory=lambda: dict(DEFAULT_STREAK_BONUSES))


def apply_settings(config: EngineConfig, settings: dict | None) -> EngineConfig:
    """Overlay stored settings on a config. Unknown keys are ignored."""
    if not settings:
        return config
    known = {f.name for f in fields(EngineConfig)}
    overrides = {k: v for k, v in settings.items() if k in known}
    if "gate_threshold" in overrides:
        overrides["gate_threshold"] = float(overrides["gate_threshold"])
    if "streak_bonuses" in overrides:
        # JSON object keys come back as strings
        overrides["streak_bonuses"] = {int(k): int(v) for k, v in overrides["streak_bonuses"].items()}
    return replace(config, **overrides)


async def load_config(store: "Store", base: EngineConfig | None = None) -> EngineConfig:
    settings = await store.get(SETTINGS_KEY)
    return apply_settings(base or EngineConfig(), settings)


async def save_setting(store: "Store", key: str, value) -> None:
    settings = dict(await store.get(SETTINGS_KEY) or {})
    settings[key] = value
    await store.set(SETTINGS_KEY, settings)
