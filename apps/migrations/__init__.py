"""Migrations application package."""

__all__: list[str] = []
