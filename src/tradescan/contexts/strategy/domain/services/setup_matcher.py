from __future__ import annotations

from typing import Mapping, Sequence

from tradescan.contexts.indicators.domain.entities import Signal
from tradescan.contexts.strategy.domain.entities import TradeSetupRule


def match_signal_chains(
    *,
    rule: TradeSetupRule,
    signals_by_alias: Mapping[str, Sequence[Signal]],
) -> list[tuple[Signal, ...]]:
    """
    Collect same-side, time-non-decreasing signal chains required by one rule.

    Args:
        rule: Rule listing indicator aliases in chain order.
        signals_by_alias: Saved signals of every scanned indicator, in timestamp order.
    Returns:
        list[tuple[Signal, ...]]: Complete chains in discovery order, one signal per alias.
    Assumptions:
        Every signal of the first alias starts at most one attempt; later slots may reuse
        any signal. Within a slot the first accepted signal wins.
    Raises:
        None.
    Side Effects:
        None.
    """
    aliases = rule.indicators
    first_alias = aliases[0]
    first_signals = signals_by_alias.get(first_alias, ())

    chains: list[tuple[Signal, ...]] = []
    index = 0
    while index < len(first_signals):
        chain: list[Signal] = []
        for alias in aliases:
            is_first = alias == first_alias
            for position, signal in enumerate(signals_by_alias.get(alias, ())):
                if is_first:
                    if position < index:
                        continue
                    index = position + 1

                if chain and not _continues_chain(chain[-1], signal):
                    continue
                if rule.accepts(alias, signal.name):
                    chain.append(signal)
                    break

        if len(chain) == rule.signal_count:
            chains.append(tuple(chain))

    return chains


def _continues_chain(last: Signal, signal: Signal) -> bool:
    if last.timestamp is None or signal.timestamp is None:
        return False
    return signal.timestamp >= last.timestamp and last.side == signal.side
