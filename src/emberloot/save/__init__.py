from .rng_store import RngStateStore, default_data_dir

__all__ = ["RngStateStore", "default_data_dir"]
