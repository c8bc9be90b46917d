import pytest

from app.core.settings import MatchingConfig
from app.services.bundle import MatchingBundle
from tests.fakes import FakeListeningSource, MemoryDocumentStore

RADIOHEAD_FAN = (
    [("Radiohead", 50), ("Muse", 20)],
    [("Radiohead", "Reckoner", 12), ("Muse", "Starlight", 7)],
)
BRITPOP_FAN = (
    [("radiohead ", 30), ("Coldplay", 10)],
    [("Radiohead", "Reckoner", 4), ("Coldplay", "Yellow", 9)],
)
METAL_FAN = (
    [("Metallica", 80), ("Muse", 5)],
    [("Metallica", "One", 20)],
)


@pytest.fixture
def config() -> MatchingConfig:
    return MatchingConfig()


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def source() -> FakeListeningSource:
    return FakeListeningSource(
        histories={
            "thom_y": RADIOHEAD_FAN,
            "jonny_g": BRITPOP_FAN,
            "kirk_h": METAL_FAN,
        }
    )


@pytest.fixture
def bundle(store, source, config) -> MatchingBundle:
    return MatchingBundle(store, source, config)
