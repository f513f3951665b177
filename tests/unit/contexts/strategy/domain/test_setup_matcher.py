from __future__ import annotations

from tradescan.contexts.indicators.domain.entities import Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.strategy.domain.entities import TradeSetupRule
from tradescan.contexts.strategy.domain.services import match_signal_chains

_HOUR = 3_600_000
_INDICATOR = Signature(signature_id=1, hash="1" * 64)
_DETECTOR = Signature(signature_id=2, hash="2" * 64)


def _signal(hours: int, side: SignalSide = SignalSide.BUY, name: str = "cross") -> Signal:
    return Signal(
        signal_id=hours + 1,
        symbol_id=1,
        indicator_signature=_INDICATOR,
        detector_signature=_DETECTOR,
        side=side,
        name=name,
        timestamp=hours * _HOUR,
        price=100.0 + hours,
        price_date=(hours + 1) * _HOUR,
    )


def test_match_signal_chains_links_same_side_signals_in_time_order() -> None:
    rule = TradeSetupRule(key="pair", indicators=("a", "b"))
    first = _signal(1)
    second = _signal(2)

    chains = match_signal_chains(rule=rule, signals_by_alias={"a": [first], "b": [second]})

    assert chains == [(first, second)]


def test_match_signal_chains_skips_opposite_sides_and_earlier_signals() -> None:
    rule = TradeSetupRule(key="pair", indicators=("a", "b"))

    opposite = match_signal_chains(
        rule=rule,
        signals_by_alias={"a": [_signal(1)], "b": [_signal(2, SignalSide.SELL)]},
    )
    earlier = match_signal_chains(
        rule=rule,
        signals_by_alias={"a": [_signal(2)], "b": [_signal(1)]},
    )

    assert opposite == []
    assert earlier == []


def test_match_signal_chains_starts_one_attempt_per_first_alias_signal() -> None:
    """
    Verify each first-alias signal starts one attempt and later slots may be reused.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        The first buy has no buy partner; both sells share one partner.
    Raises:
        AssertionError: If attempts skip signals or reuse is blocked.
    Side Effects:
        None.
    """
    rule = TradeSetupRule(key="pair", indicators=("a", "b"))
    lonely_buy = _signal(1)
    early_sell = _signal(2, SignalSide.SELL)
    late_sell = _signal(3, SignalSide.SELL)
    partner = _signal(4, SignalSide.SELL)

    chains = match_signal_chains(
        rule=rule,
        signals_by_alias={"a": [lonely_buy, early_sell, late_sell], "b": [partner]},
    )

    assert chains == [(early_sell, partner), (late_sell, partner)]


def test_match_signal_chains_applies_signal_name_filters() -> None:
    rule = TradeSetupRule(
        key="pair",
        indicators=("a", "b"),
        signal_names={"a": ("cross_up",)},
    )
    filtered = _signal(1, name="cross_down")
    accepted = _signal(2, name="cross_up")
    partner = _signal(3, name="anything")

    chains = match_signal_chains(
        rule=rule,
        signals_by_alias={"a": [filtered, accepted], "b": [partner]},
    )

    assert chains == [(accepted, partner)]


def test_match_signal_chains_accepts_equal_timestamps_across_three_slots() -> None:
    rule = TradeSetupRule(key="triple", indicators=("a", "b", "c"))
    signals = {alias: [_signal(5, SignalSide.SELL)] for alias in ("a", "b", "c")}

    chains = match_signal_chains(rule=rule, signals_by_alias=signals)

    assert len(chains) == 1
    assert [signal.timestamp for signal in chains[0]] == [5 * _HOUR] * 3


def test_match_signal_chains_returns_nothing_for_missing_aliases() -> None:
    rule = TradeSetupRule(key="pair", indicators=("a", "b"))

    assert match_signal_chains(rule=rule, signals_by_alias={"a": [_signal(1)]}) == []
    assert match_signal_chains(rule=rule, signals_by_alias={}) == []
