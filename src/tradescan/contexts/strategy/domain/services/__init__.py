from .setup_matcher import match_signal_chains

__all__ = [
    "match_signal_chains",
]
