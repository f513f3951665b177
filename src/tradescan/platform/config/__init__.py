from .engine_runtime import EngineRuntimeConfig, load_engine_runtime_config

__all__ = [
    "EngineRuntimeConfig",
    "load_engine_runtime_config",
]
