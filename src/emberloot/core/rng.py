from __future__ import annotations

import hashlib
import json
import logging
import math
import random
import re
import secrets
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Protocol, Sequence, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

T = TypeVar("T")

UINT32_MASK = 0xFFFFFFFF
GOLDEN_RATIO_32 = 0x9E3779B9
DEFAULT_LOG_CAPACITY = 200


def to_uint32(value: Any) -> int:
    """Coerce any numeric-ish value to an unsigned 32-bit integer.

    Non-finite or non-numeric values collapse to 0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) & UINT32_MASK


def hash32(x: int) -> int:
    """32-bit avalanche hash used by the local fallback stream."""
    x &= UINT32_MASK
    x ^= x >> 16
    x = (x * 0x7FEB352D) & UINT32_MASK
    x ^= x >> 15
    x = (x * 0x846CA68B) & UINT32_MASK
    x ^= x >> 16
    return x


def stream_key(tag: Optional[str]) -> str:
    """Map a draw tag to its coarse stream name.

    ``"loot.pickWeighted"`` -> ``"loot"``, ``"quest:reward"`` -> ``"quest"``.
    """
    text = str(tag or "")
    if not text:
        return "default"
    head = re.split(r"[.:]", text, maxsplit=1)[0]
    return head or "default"


# ---------------------------------------------------------------------------
# External stream service contract
# ---------------------------------------------------------------------------


@runtime_checkable
class RngStream(Protocol):
    def float(self) -> float: ...


@runtime_checkable
class RngStreamProvider(Protocol):
    """Optional named-stream RNG backend used in deterministic mode."""

    def set_seed(self, seed: int) -> None: ...

    def stream(self, name: str) -> RngStream: ...


def _to_stable_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class SeededStream:
    """A single named stream backed by its own ``random.Random``."""

    def __init__(self, name: str, seed: int) -> None:
        self.name = name
        self.seed = seed
        self._rng = random.Random(seed)

    def float(self) -> float:
        return self._rng.random()

    def int(self, lo: int, hi: int) -> int:
        if hi < lo:
            return lo
        return lo + int(self._rng.random() * (hi - lo + 1))

    def pick(self, seq: Sequence[T]) -> Optional[T]:
        if not seq:
            return None
        return seq[int(self._rng.random() * len(seq))]


class NamedStreamRng:
    """Seedable RNG service with independent named streams.

    Stream seeds are derived from the root seed and the stream name via BLAKE2b,
    so draws on one stream never shift another stream's sequence.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._streams: Dict[str, SeededStream] = {}
        self._root_seed = 0
        self.set_seed(seed)

    @property
    def root_seed(self) -> int:
        return self._root_seed

    def set_seed(self, seed: Optional[int]) -> None:
        if seed is None:
            seed = secrets.randbits(32)
            logger.info("No stream seed provided; generated random root seed: %d", seed)
        self._root_seed = to_uint32(seed)
        self._streams.clear()
        logger.debug("Named stream RNG reseeded to %d", self._root_seed)

    def derive_seed(self, name: str) -> int:
        payload = {
            "root": self._root_seed,
            "stream": name,
            "algo": "blake2b-64",
            "version": 1,
        }
        digest = hashlib.blake2b(_to_stable_json(payload).encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big", signed=False)

    def stream(self, name: str) -> SeededStream:
        key = str(name or "default")
        found = self._streams.get(key)
        if found is None:
            found = SeededStream(key, self.derive_seed(key))
            self._streams[key] = found
        return found

    def reset(self) -> None:
        self._streams.clear()


# ---------------------------------------------------------------------------
# Debug state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RngLogEntry:
    index: int
    tag: str
    value: float


@dataclass
class RngDebugState:
    """Session-wide RNG debug state (mode switch, seed, draw counter, draw log)."""

    use_deterministic_rng: bool = False
    seed: int = 0
    draw_index: int = 0
    capture_log: bool = False
    log_capacity: int = DEFAULT_LOG_CAPACITY
    log: Deque[RngLogEntry] = field(default_factory=deque)
    # Seed last pushed to the stream provider; None means never synced.
    provider_seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.log_capacity = max(1, int(self.log_capacity))
        self.log = deque(self.log, maxlen=self.log_capacity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "use_deterministic_rng": self.use_deterministic_rng,
            "seed": self.seed,
            "draw_index": self.draw_index,
            "capture_log": self.capture_log,
            "log_capacity": self.log_capacity,
            "log": [{"i": e.index, "tag": e.tag, "v": e.value} for e in self.log],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RngDebugState":
        capacity = data.get("log_capacity", DEFAULT_LOG_CAPACITY)
        if not isinstance(capacity, int) or capacity <= 0:
            capacity = DEFAULT_LOG_CAPACITY
        entries: List[RngLogEntry] = []
        for raw in data.get("log") or []:
            try:
                entries.append(RngLogEntry(index=int(raw["i"]), tag=str(raw.get("tag", "")), value=float(raw["v"])))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed RNG log entry: %r", raw)
        return cls(
            use_deterministic_rng=bool(data.get("use_deterministic_rng", False)),
            seed=to_uint32(data.get("seed", 0)),
            draw_index=to_uint32(data.get("draw_index", 0)),
            capture_log=bool(data.get("capture_log", False)),
            log_capacity=capacity,
            log=deque(entries),
        )


# ---------------------------------------------------------------------------
# Stream manager
# ---------------------------------------------------------------------------


class RngContext:
    """Owns the RNG debug state and serves every draw of a generation session.

    - Live mode draws from ``random.random()``.
    - Deterministic mode delegates to the injected :class:`RngStreamProvider`
      (stream chosen by the tag's first segment) and falls back to a local
      hash stream over ``(seed, draw_index)`` when no provider is present or
      the provider fails.

    The read-increment-write on ``draw_index`` is guarded by a lock so the
    context may be shared across threads without index races.
    """

    def __init__(
        self,
        state: Optional[RngDebugState] = None,
        provider: Optional[RngStreamProvider] = None,
    ) -> None:
        self._state = state
        self._provider = provider
        self._lock = threading.RLock()

    # -- state -----------------------------------------------------------

    @property
    def state(self) -> RngDebugState:
        with self._lock:
            if self._state is None:
                # Stable for one session, varied across sessions.
                self._state = RngDebugState(seed=to_uint32(time.time() * 1000))
                logger.debug("Initialized RNG debug state with seed=%d", self._state.seed)
            return self._state

    @property
    def provider(self) -> Optional[RngStreamProvider]:
        return self._provider

    @property
    def seed(self) -> int:
        return self.state.seed

    @property
    def draw_index(self) -> int:
        return self.state.draw_index

    @property
    def deterministic(self) -> bool:
        return self.state.use_deterministic_rng

    @property
    def log(self) -> List[RngLogEntry]:
        with self._lock:
            return list(self.state.log)

    # -- controls --------------------------------------------------------

    def set_seed(self, seed: Any) -> int:
        with self._lock:
            st = self.state
            st.seed = to_uint32(seed)
            st.draw_index = 0
            if st.use_deterministic_rng:
                self._sync_provider(st.seed)
            return st.seed

    def set_deterministic(self, enabled: bool) -> None:
        with self._lock:
            st = self.state
            st.use_deterministic_rng = bool(enabled)
            if st.use_deterministic_rng:
                self._sync_provider(st.seed)

    def set_logging(self, enabled: bool) -> None:
        with self._lock:
            st = self.state
            st.capture_log = bool(enabled)
            if not st.capture_log:
                st.log.clear()

    def _sync_provider(self, seed: int) -> bool:
        if self._provider is None:
            return False
        try:
            self._provider.set_seed(seed)
        except Exception:
            logger.debug("Stream provider rejected seed %d; using local stream", seed, exc_info=True)
            return False
        self.state.provider_seed = seed
        return True

    # -- draws -----------------------------------------------------------

    def float(self, tag: Optional[str] = None) -> float:
        """Return a uniform float in ``[0, 1)`` and advance the draw index."""
        with self._lock:
            st = self.state
            i = st.draw_index
            st.draw_index = (i + 1) & UINT32_MASK

            if st.use_deterministic_rng:
                value = self._provider_float(st, tag)
                if value is None:
                    value = hash32(st.seed ^ hash32(i + GOLDEN_RATIO_32)) / 4294967296.0
            else:
                value = random.random()

            if st.capture_log:
                st.log.append(RngLogEntry(index=i, tag=str(tag or ""), value=value))
            return value

    def _provider_float(self, st: RngDebugState, tag: Optional[str]) -> Optional[float]:
        if self._provider is None:
            return None
        try:
            if st.provider_seed != st.seed:
                self._provider.set_seed(st.seed)
                st.provider_seed = st.seed
            value = self._provider.stream(stream_key(tag)).float()
            value = float(value)
        except Exception:
            logger.debug("Stream provider failed for tag %r; falling back to hash stream", tag, exc_info=True)
            return None
        if not math.isfinite(value) or not 0.0 <= value < 1.0:
            return None
        return value

    def int(self, lo: Any, hi: Any, tag: Optional[str] = None) -> int:
        """Return an integer in ``[lo, hi]`` (bounds may be given in either order)."""
        try:
            a = math.floor(float(lo))
            b = math.floor(float(hi))
        except (TypeError, ValueError, OverflowError):
            return 0
        low, high = min(a, b), max(a, b)
        return math.floor(self.float(tag) * (high - low + 1)) + low

    def pick(self, seq: Sequence[T], tag: Optional[str] = None) -> Optional[T]:
        if not seq:
            return None
        return seq[self.int(0, len(seq) - 1, tag)]

    def __repr__(self) -> str:
        st = self.state
        return (
            f"RngContext(deterministic={st.use_deterministic_rng}, seed={st.seed}, "
            f"draw_index={st.draw_index}, provider={type(self._provider).__name__ if self._provider else None})"
        )


# ---------------------------------------------------------------------------
# Functional surface
# ---------------------------------------------------------------------------


def init_rng_state(ctx: Optional[RngContext] = None, provider: Optional[RngStreamProvider] = None) -> RngContext:
    """Return ``ctx`` with its debug state initialised, creating a context if needed."""
    if ctx is None:
        ctx = RngContext(provider=provider)
    _ = ctx.state
    return ctx


def set_rng_seed(ctx: RngContext, seed: Any) -> int:
    return ctx.set_seed(seed)


def set_deterministic_rng_enabled(ctx: RngContext, enabled: bool) -> None:
    ctx.set_deterministic(enabled)


def set_rng_logging_enabled(ctx: RngContext, enabled: bool) -> None:
    ctx.set_logging(enabled)


def rng_float(ctx: RngContext, tag: Optional[str] = None) -> float:
    return ctx.float(tag)


def rng_int(ctx: RngContext, lo: Any, hi: Any, tag: Optional[str] = None) -> int:
    return ctx.int(lo, hi, tag)


def rng_pick(ctx: RngContext, seq: Sequence[T], tag: Optional[str] = None) -> Optional[T]:
    return ctx.pick(seq, tag)


def deterministic_context(seed: int, provider: Optional[RngStreamProvider] = None) -> RngContext:
    """Convenience constructor for a seeded, deterministic context."""
    ctx = RngContext(RngDebugState(seed=to_uint32(seed)), provider=provider)
    ctx.set_deterministic(True)
    return ctx


__all__ = [
    "GOLDEN_RATIO_32",
    "NamedStreamRng",
    "RngContext",
    "RngDebugState",
    "RngLogEntry",
    "RngStream",
    "RngStreamProvider",
    "SeededStream",
    "deterministic_context",
    "hash32",
    "init_rng_state",
    "rng_float",
    "rng_int",
    "rng_pick",
    "set_deterministic_rng_enabled",
    "set_rng_logging_enabled",
    "set_rng_seed",
    "stream_key",
    "to_uint32",
]
