from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ticker:
    """
    Ticker — instrument name inside one exchange (for example "BTCUSDT").

    Rules:
    - normalization: strip + upper
    - invariant: non-empty after normalization
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.strip().upper()
        object.__setattr__(self, "value", normalized)

        if not normalized:
            raise ValueError("Ticker must be non-empty after normalization")

    def __str__(self) -> str:
        return self.value
