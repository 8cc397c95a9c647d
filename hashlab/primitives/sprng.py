"""Secure pseudorandom number generator seeded from a hardware noise source.

Lifecycle::

    UNINITIALIZED --init()--> SEEDED --add_entropy()--> READY

init() polls every channel of the noise source and keeps the one whose
most entropic bit is closest to an even 50/50 split. From then on every
output is SHA-256 of the whole 119-byte pool XORed into fresh samples, so
no raw sample is ever returned. The pool itself has no accessor: callers
can only mix into it (add_entropy) or draw derived output (random).

Research / education only. Do NOT use in production.
"""
from __future__ import annotations

import logging
import os
import struct
import threading
from enum import Enum
from typing import Optional, Protocol, Sequence, Union

from ..config import load_settings
from ..errors import ContextStateError, EntropyError, PreconditionError
from .sha256 import Sha256, Sha256Scratch
from .util import erase

logger = logging.getLogger(__name__)

POOL_SIZE = 119
POLL_SAMPLES = 1024
POLL_TARGET = POLL_SAMPLES // 2
POLL_MAX_DEVIATION = POLL_SAMPLES // 4   # accept 256..768 set bits
ENTROPY_SAMPLES = 128


class NoiseSource(Protocol):
    """Byte-wide noise channels with per-bit read access."""

    def channels(self) -> Sequence[int]: ...

    def read(self, channel: int) -> int: ...


class OsNoiseSource:
    """Noise channels backed by the operating system entropy device."""

    def __init__(self, channel_count: Optional[int] = None):
        if channel_count is None:
            channel_count = load_settings().sprng_noise_channels
        if channel_count < 1:
            raise PreconditionError("channel_count must be positive")
        self._count = channel_count

    def channels(self) -> Sequence[int]:
        return range(self._count)

    def read(self, channel: int) -> int:
        return os.urandom(1)[0]


class PoolState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SEEDED = "seeded"
    READY = "ready"


def _poll_channel(source: NoiseSource, channel: int) -> int:
    """Deviation from 50/50 of the channel's best bit, over POLL_SAMPLES reads."""
    counts = [0] * 8
    for _ in range(POLL_SAMPLES):
        sample = source.read(channel)
        for bit in range(8):
            counts[bit] += (sample >> bit) & 1
    return min(abs(c - POLL_TARGET) for c in counts)


class EntropyPool:
    """Process-wide SPRNG handle.

    Create one per process and pass it explicitly to whatever needs
    randomness (OAEP salts, ANSI X9.23 filler, key generation). All mixing
    and output operations are serialised by an internal lock.
    """

    def __init__(self, source: Optional[NoiseSource] = None):
        self._source: NoiseSource = source if source is not None else OsNoiseSource()
        self._pool = bytearray(POOL_SIZE)
        self._channel: Optional[int] = None
        self._state = PoolState.UNINITIALIZED
        self._scratch = Sha256Scratch()
        self._lock = threading.Lock()

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def selected_channel(self) -> Optional[int]:
        return self._channel

    def init(self) -> int:
        """Select the most entropic channel and seed the pool.

        Returns:
            The selected channel identifier.

        Raises:
            EntropyError: no channel has a bit within 256..768 set reads out
                of 1024. Retrying may succeed.
        """
        best: Optional[int] = None
        best_dev = POLL_MAX_DEVIATION + 1
        for channel in self._source.channels():
            dev = _poll_channel(self._source, channel)
            logger.debug("Noise channel %s: best-bit deviation %d", channel, dev)
            if dev < best_dev:
                best, best_dev = channel, dev

        if best is None:
            logger.warning("No noise channel within +/-%d of an even split", POLL_MAX_DEVIATION)
            raise EntropyError("no noise channel of sufficient entropy found")

        with self._lock:
            self._channel = best
            self._state = PoolState.SEEDED
            self._add_entropy_locked()
            self._state = PoolState.READY
        logger.info("SPRNG ready on channel %s (deviation %d/%d)", best, best_dev, POLL_SAMPLES)
        return best

    def init_with_retry(self, attempts: Optional[int] = None) -> int:
        """Run init() up to `attempts` times (default: Settings.sprng_init_attempts)."""
        if attempts is None:
            attempts = load_settings().sprng_init_attempts
        if attempts < 1:
            raise PreconditionError("attempts must be positive")
        for attempt in range(1, attempts + 1):
            try:
                return self.init()
            except EntropyError:
                logger.warning("SPRNG init attempt %d/%d failed", attempt, attempts)
        raise EntropyError(f"no noise channel of sufficient entropy after {attempts} attempts")

    def _require_channel(self) -> int:
        if self._channel is None:
            raise ContextStateError("SPRNG is not initialized; call init() first")
        return self._channel

    def _add_entropy_locked(self) -> None:
        channel = self._require_channel()
        read = self._source.read
        samples = bytes(read(channel) & 0xFF for _ in range(ENTROPY_SAMPLES))
        pool = self._pool
        for i, b in enumerate(samples):
            pool[i % POOL_SIZE] ^= b

    def add_entropy(self) -> None:
        """XOR 128 fresh samples of the selected channel into the pool."""
        with self._lock:
            self._add_entropy_locked()

    def random(self) -> int:
        """32-bit value derived from the SHA-256 of the whole pool."""
        with self._lock:
            channel = self._require_channel()
            read = self._source.read
            rand = int.from_bytes(bytes(read(channel) & 0xFF for _ in range(4)), "little")
            self._add_entropy_locked()
            with Sha256(self._pool, scratch=self._scratch) as ctx:
                digest = bytearray(ctx.final())
            for lane in struct.unpack("<8I", digest):
                rand ^= lane
            erase(digest)
            return rand

    def random_bytes(self, size: int) -> bytes:
        """`size` random bytes built from successive random() calls."""
        if size is None or size <= 0:
            raise PreconditionError("size must be positive")
        out = bytearray(size)
        self.fill(out)
        return bytes(out)

    def fill(self, buffer: Union[bytearray, memoryview]) -> None:
        """Fill a caller-owned writable buffer with random bytes."""
        if buffer is None or len(buffer) == 0:
            raise PreconditionError("buffer must be non-empty")
        view = memoryview(buffer).cast("B")
        size = len(view)
        pos = 0
        while pos < size:
            chunk = self.random().to_bytes(4, "little")
            take = min(4, size - pos)
            view[pos:pos + take] = chunk[:take]
            pos += take

    def repair(self) -> None:
        """Zero the pool and re-seed it from the selected channel.

        Only needed after external code has clobbered the pool memory.
        """
        with self._lock:
            channel = self._require_channel()
            logger.warning("Repairing SPRNG state on channel %s", channel)
            erase(self._pool)
            self._add_entropy_locked()
