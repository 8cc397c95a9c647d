import random
import sys
from pathlib import Path
from typing import Iterable, Sequence

import pytest

# Ensure project root is on path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from hashlab.config import load_settings
from hashlab.primitives.sprng import EntropyPool


class SeededNoiseSource:
    """Reproducible noise source. Channels listed in `dead` always read 0."""

    def __init__(self, seed: int = 1337, channel_count: int = 4, dead: Iterable[int] = ()):
        self._rng = random.Random(seed)
        self._count = channel_count
        self._dead = set(dead)
        self.reads = 0

    def channels(self) -> Sequence[int]:
        return range(self._count)

    def read(self, channel: int) -> int:
        self.reads += 1
        if channel in self._dead:
            return 0
        return self._rng.getrandbits(8)


class FlakyNoiseSource(SeededNoiseSource):
    """Every channel is dead for the first `bad_polls` channel scans."""

    def __init__(self, bad_polls: int, seed: int = 1337, channel_count: int = 2):
        super().__init__(seed=seed, channel_count=channel_count)
        self._bad_polls = bad_polls
        self.polls = 0

    def channels(self) -> Sequence[int]:
        self.polls += 1
        self._dead = set(range(self._count)) if self.polls <= self._bad_polls else set()
        return super().channels()


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached Settings so monkeypatched env vars take effect."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def noise_source():
    return SeededNoiseSource()


@pytest.fixture
def pool(noise_source):
    p = EntropyPool(noise_source)
    p.init()
    return p
