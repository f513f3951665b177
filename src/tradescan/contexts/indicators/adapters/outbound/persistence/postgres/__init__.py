from .signal_repository import PostgresSignalRepository

__all__ = [
    "PostgresSignalRepository",
]
