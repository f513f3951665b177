from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExchangeId:
    """
    ExchangeId — stable storage identifier of the exchange a symbol is traded on.

    Invariants:
    - integer, not bool
    - > 0
    """

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass, but True/False is never a valid identifier.
        if type(self.value) is bool:  # noqa: E721
            raise ValueError("ExchangeId must be an int, not a bool")
        try:
            if self.value <= 0:
                raise ValueError(f"ExchangeId must be > 0, got {self.value}")
        except TypeError as e:
            raise ValueError(f"ExchangeId must be an integer-like value, got {self.value!r}") from e

    def __str__(self) -> str:
        return str(self.value)
