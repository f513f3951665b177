from .gateway import PostgresGateway, PsycopgPostgresGateway

__all__ = [
    "PostgresGateway",
    "PsycopgPostgresGateway",
]
