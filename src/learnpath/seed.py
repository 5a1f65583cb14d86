"""Seed a fresh progress snapshot with the badge, quest and curriculum catalogs."""
import json
from pathlib import Path

from learnpath.codec import badge_from_dict, item_from_dict, quest_from_dict, snapshot_to_dict, unit_from_dict
from learnpath.models import ProgressSnapshot
from learnpath.storage import Store

CONTENT_DIR = Path(__file__).parent / "content"
PROGRESS_KEY = "progress"


def _read(name: str) -> dict:
    return json.loads((CONTENT_DIR / name).read_text(encoding="utf-8"))


def load_badges() -> list:
    """Badge catalog from badges.json, all locked."""
    return [badge_from_dict(b) for b in _read("badges.json")["badges"]]


def load_quests() -> list:
    """Quest catalog from quests.json, with zeroed progress."""
    return [quest_from_dict(q) for q in _read("quests.json")["quests"]]


def load_curriculum() -> tuple[list, dict]:
    """Content units and learning items from curriculum.json."""
    data = _read("curriculum.json")
    units = sorted((unit_from_dict(u) for u in data["units"]), key=lambda u: u.sequence_number)
    items = {i["id"]: item_from_dict(i) for i in data["items"]}
    return units, items


def default_snapshot() -> ProgressSnapshot:
    units, items = load_curriculum()
    return ProgressSnapshot(
        items=items,
        badges=load_badges(),
        quests=load_quests(),
        units=units,
    )


async def is_seeded(store: Store) -> bool:
    """Check whether the store already holds a progress snapshot."""
    return await store.get(PROGRESS_KEY) is not None


async def seed_all(store: Store) -> None:
    """Write the default snapshot unless one already exists."""
    if await is_seeded(store):
        return
    await store.set(PROGRESS_KEY, snapshot_to_dict(default_snapshot()))
