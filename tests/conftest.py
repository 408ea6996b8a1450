import pytest

from counselor.domain.context.memory.memory_filesystem import MemoryFileSystem
from counselor.domain.context.memory.session_store import SessionStore
from counselor.domain.skill.skill_loader import SkillLoader
from counselor.infrastructure.config.settings import DEFAULT_SKILLS_DIR


MOOD_CARDS = {
    "prompt": "Pick the card that feels closest to you right now",
    "cards": [
        {"id": "calm", "name": "Calm", "english_name": "Calm", "symbol": "🌊",
         "color_theme": "ocean", "description": "Still water."},
        {"id": "hope", "name": "Hope", "english_name": "Hope", "symbol": "🌅",
         "color_theme": "sunrise", "description": "First light."},
        {"id": "heavy", "name": "Heavy", "english_name": "Heavy", "symbol": "⛰️",
         "color_theme": "mountain", "description": "A weight on the chest."},
        {"id": "tired", "name": "Tired", "english_name": "Tired", "symbol": "💤",
         "color_theme": "lavender", "description": "Everything is slow."},
    ],
}

MEDITATION = {
    "title": "Calming breath",
    "guidance": "Let your shoulders drop. Follow the circle.",
    "duration_minutes": 5,
    "breathing": {"inhale_seconds": 4, "hold_seconds": 7, "exhale_seconds": 8, "rest_seconds": 0},
}


@pytest.fixture()
def memory_fs(tmp_path):
    root = tmp_path / "memories"
    root.mkdir()
    return MemoryFileSystem(root)


@pytest.fixture()
def session_store():
    store = SessionStore()
    store.init()
    return store


@pytest.fixture()
def skill_loader():
    return SkillLoader(DEFAULT_SKILLS_DIR)


@pytest.fixture()
def mood_cards_payload():
    return {"prompt": MOOD_CARDS["prompt"], "cards": [dict(card) for card in MOOD_CARDS["cards"]]}


@pytest.fixture()
def meditation_payload():
    return {**MEDITATION, "breathing": dict(MEDITATION["breathing"])}
