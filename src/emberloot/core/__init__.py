from .rng import (
    NamedStreamRng,
    RngContext,
    RngDebugState,
    RngLogEntry,
    RngStream,
    RngStreamProvider,
    deterministic_context,
    init_rng_state,
    rng_float,
    rng_int,
    rng_pick,
    set_deterministic_rng_enabled,
    set_rng_logging_enabled,
    set_rng_seed,
)
from .weighted import pick_uniform, pick_weighted

__all__ = [
    "NamedStreamRng",
    "RngContext",
    "RngDebugState",
    "RngLogEntry",
    "RngStream",
    "RngStreamProvider",
    "deterministic_context",
    "init_rng_state",
    "pick_uniform",
    "pick_weighted",
    "rng_float",
    "rng_int",
    "rng_pick",
    "set_deterministic_rng_enabled",
    "set_rng_logging_enabled",
    "set_rng_seed",
]
