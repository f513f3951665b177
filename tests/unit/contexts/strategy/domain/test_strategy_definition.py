from __future__ import annotations

import pytest

from tradescan.contexts.indicators.application.services import IndicatorEngine, SignalDetector
from tradescan.contexts.indicators.domain.entities import IndicatorValue, Signal, SignalSide
from tradescan.contexts.signatures.domain.entities import Signature
from tradescan.contexts.strategy.domain.entities import (
    HelperIndicatorSetup,
    IndicatorSetup,
    StrategyConfig,
    StrategyDefinition,
    TradeSetup,
    TradeSetupRule,
)
from tradescan.platform.errors import ConfigurationError
from tradescan.shared_kernel.primitives import Ticker, Timeframe

_INDICATOR = Signature(signature_id=1, hash="1" * 64)
_DETECTOR = Signature(signature_id=2, hash="2" * 64)
_SETUP = Signature(signature_id=3, hash="3" * 64)


def _detect_nothing(
    signal: Signal,
    indicator: IndicatorEngine,
    value: IndicatorValue,
) -> Signal | None:
    return None


def _signal(timestamp: int, name: str, *, stamped: bool = True) -> Signal:
    return Signal(
        signal_id=timestamp,
        symbol_id=4,
        indicator_signature=_INDICATOR,
        detector_signature=_DETECTOR,
        side=SignalSide.SELL,
        name=name,
        timestamp=timestamp if stamped else None,
        price=50.0 + timestamp if stamped else None,
        price_date=timestamp + 10 if stamped else None,
    )


def test_trade_setup_rule_normalizes_aliases_and_filters() -> None:
    rule = TradeSetupRule(
        key=" momentum ",
        indicators=[" rsi", "macd "],  # type: ignore[arg-type]
        signal_names={"macd": ["cross_up"]},  # type: ignore[dict-item]
    )

    assert rule.key == "momentum"
    assert rule.indicators == ("rsi", "macd")
    assert rule.signal_count == 2
    assert dict(rule.signal_names) == {"macd": ("cross_up",)}
    assert rule.accepts("rsi", "anything")
    assert rule.accepts("macd", "cross_up")
    assert not rule.accepts("macd", "cross_down")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"key": " ", "indicators": ("rsi",)},
        {"key": "empty", "indicators": ()},
        {"key": "blank_alias", "indicators": ("rsi", " ")},
        {"key": "twice", "indicators": ("rsi", "rsi")},
        {"key": "filter", "indicators": ("rsi",), "signal_names": {"macd": ("x",)}},
        {"key": "transform", "indicators": ("rsi",), "transform": "not callable"},
    ],
)
def test_trade_setup_rule_rejects_invalid_definitions(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        TradeSetupRule(**kwargs)


def test_trade_setup_rule_from_mapping_round_trips_to_json() -> None:
    rule = TradeSetupRule.from_mapping(
        "momentum",
        {"signals": ["rsi", {"macd": ["cross_up", "cross_down"]}]},
    )

    assert rule.indicators == ("rsi", "macd")
    assert rule.signal_names["macd"] == ("cross_up", "cross_down")
    assert rule.to_json() == {
        "key": "momentum",
        "signals": ["rsi", {"macd": ["cross_up", "cross_down"]}],
        "signal_count": 2,
    }


@pytest.mark.parametrize(
    "payload",
    [
        {"signals": ["rsi"], "extra": 1},
        {"signals": "rsi"},
        {},
        {"signals": [{"macd": "cross_up"}]},
        {"signals": [{"macd": ["a"], "rsi": ["b"]}]},
        {"signals": [7]},
    ],
)
def test_trade_setup_rule_from_mapping_rejects_invalid_payloads(payload: dict) -> None:
    with pytest.raises(ConfigurationError):
        TradeSetupRule.from_mapping("broken", payload)


def test_indicator_setup_key_prefers_explicit_alias() -> None:
    detector = SignalDetector(name="quiet", detect=_detect_nothing, version="2")

    explicit = IndicatorSetup(" rsi ", {"window": 14}, detector=detector, alias="fast_rsi")
    from_config = IndicatorSetup("rsi", {"alias": "config_rsi"})
    plain = IndicatorSetup("rsi")

    assert explicit.indicator == "rsi"
    assert explicit.key == "fast_rsi"
    assert from_config.key == "config_rsi"
    assert plain.key == "rsi"
    assert explicit.engine_config() == {"window": 14, "alias": "fast_rsi"}
    assert explicit.to_json() == {
        "indicator": "rsi",
        "alias": "fast_rsi",
        "config": {"window": 14},
        "detector": "quiet@2",
    }
    assert plain.to_json()["detector"] is None


def test_indicator_setup_rejects_invalid_fields() -> None:
    with pytest.raises(ConfigurationError):
        IndicatorSetup(" ")
    with pytest.raises(ConfigurationError, match="conflicts"):
        IndicatorSetup("rsi", {"alias": "a"}, alias="b")
    with pytest.raises(ConfigurationError, match="SignalDetector"):
        IndicatorSetup("rsi", detector=_detect_nothing)  # type: ignore[arg-type]


def test_helper_indicator_setup_normalizes_ticker_and_timeframe() -> None:
    helper = HelperIndicatorSetup(
        "sma",
        {"window": 50},
        ticker="ETHUSDT",  # type: ignore[arg-type]
        timeframe="4h",  # type: ignore[arg-type]
    )

    assert helper.key == "sma"
    assert helper.ticker == Ticker("ETHUSDT")
    assert helper.timeframe == Timeframe("4h")
    assert helper.engine_config() == {"window": 50, "alias": "sma"}
    with pytest.raises(ConfigurationError):
        HelperIndicatorSetup("sma", timeframe="2m")  # type: ignore[arg-type]


def test_strategy_config_defaults_and_mapping() -> None:
    default = StrategyConfig()
    parsed = StrategyConfig.from_mapping(
        {"max_candles": 500, "opposite_only": True, "evaluation_interval": "15m"}
    )

    assert default.max_candles is None
    assert default.evaluation_interval == Timeframe("1m")
    assert parsed.evaluation_interval == Timeframe("15m")
    assert parsed.to_json() == {
        "max_candles": 500,
        "start_date": None,
        "end_date": None,
        "opposite_only": True,
        "evaluation_interval": "15m",
    }
    assert StrategyConfig.from_mapping(None) == default


@pytest.mark.parametrize(
    "payload",
    [
        {"max_candles": 0},
        {"max_candles": True},
        {"max_candles": "100"},
        {"start_date": 10, "end_date": 5},
        {"opposite_only": "yes"},
        {"evaluation_interval": "2m"},
        {"window": 3},
    ],
)
def test_strategy_config_rejects_invalid_settings(payload: dict) -> None:
    with pytest.raises(ConfigurationError):
        StrategyConfig.from_mapping(payload)


def test_strategy_definition_validates_aliases_and_rule_references() -> None:
    """
    Verify definition requires unique aliases and rules over declared indicators only.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Helpers cannot be referenced by rules.
    Raises:
        AssertionError: If invalid definitions are accepted.
    Side Effects:
        None.
    """
    rsi = IndicatorSetup("rsi")
    rule = TradeSetupRule(key="solo", indicators=("rsi",))

    definition = StrategyDefinition(
        name=" swing ",
        indicators=[rsi],  # type: ignore[arg-type]
        rules=[rule],  # type: ignore[arg-type]
        helpers=[HelperIndicatorSetup("sma")],  # type: ignore[arg-type]
    )

    assert definition.name == "swing"
    assert definition.indicator_setup("rsi") is rsi
    with pytest.raises(KeyError):
        definition.indicator_setup("sma")

    with pytest.raises(ConfigurationError, match="at least one indicator"):
        StrategyDefinition(name="x", indicators=(), rules=(rule,))
    with pytest.raises(ConfigurationError, match="at least one setup rule"):
        StrategyDefinition(name="x", indicators=(rsi,), rules=())
    with pytest.raises(ConfigurationError, match="twice"):
        StrategyDefinition(name="x", indicators=(rsi, IndicatorSetup("rsi")), rules=(rule,))
    with pytest.raises(ConfigurationError, match="twice"):
        StrategyDefinition(name="x", indicators=(rsi,), rules=(rule, rule))
    with pytest.raises(ConfigurationError, match="undeclared"):
        StrategyDefinition(
            name="x",
            indicators=(rsi,),
            rules=(TradeSetupRule(key="helper", indicators=("sma",)),),
            helpers=(HelperIndicatorSetup("sma"),),
        )


def test_strategy_definition_to_json_lists_every_part() -> None:
    definition = StrategyDefinition(
        name="swing",
        indicators=(IndicatorSetup("rsi", {"window": 7}),),
        rules=(TradeSetupRule(key="solo", indicators=("rsi",)),),
        helpers=(HelperIndicatorSetup("sma", alias="trend", timeframe=Timeframe("4h")),),
        config=StrategyConfig(max_candles=200),
    )

    payload = definition.to_json()

    assert payload["name"] == "swing"
    assert payload["indicators"] == [
        {"indicator": "rsi", "alias": "rsi", "config": {"window": 7}, "detector": None}
    ]
    assert payload["rules"] == [{"key": "solo", "signals": ["rsi"], "signal_count": 1}]
    assert payload["helpers"] == [
        {"indicator": "sma", "alias": "trend", "config": {}, "ticker": None, "timeframe": "4h"}
    ]
    assert payload["config"]["max_candles"] == 200


def test_strategy_definition_to_json_renders_timeframes_as_codes() -> None:
    definition = StrategyDefinition(
        name="swing",
        indicators=(IndicatorSetup("rsi", {"progressive_interval": Timeframe("15m")}),),
        rules=(TradeSetupRule(key="solo", indicators=("rsi",)),),
        helpers=(HelperIndicatorSetup("sma", {"progressive_interval": Timeframe("5m")}),),
    )

    payload = definition.to_json()

    assert payload["indicators"][0]["config"] == {"progressive_interval": "15m"}
    assert payload["helpers"][0]["config"] == {"progressive_interval": "5m"}


def test_trade_setup_from_signals_takes_last_signal_stamp() -> None:
    first = _signal(100, "cross_down")
    last = _signal(200, "overbought")

    setup = TradeSetup.from_signals(
        symbol_id=4,
        rule_key="pair",
        signature=_SETUP,
        signals=(first, last),
    )

    assert setup.side is SignalSide.SELL
    assert not setup.is_buy()
    assert setup.name == "cross_down|overbought"
    assert setup.signal_count == 2
    assert setup.timestamp == 200
    assert setup.price == 250.0
    assert setup.price_date == 210
    assert setup.setup_id is None
    assert setup.stored(setup_id=9).setup_id == 9
    assert setup.unique_key() == ("3" * 64, 4, 200)


def test_trade_setup_rejects_empty_or_unstamped_chains() -> None:
    with pytest.raises(ValueError):
        TradeSetup.from_signals(symbol_id=4, rule_key="pair", signature=_SETUP, signals=())
    with pytest.raises(ValueError, match="stamped"):
        TradeSetup.from_signals(
            symbol_id=4,
            rule_key="pair",
            signature=_SETUP,
            signals=(_signal(100, "x", stamped=False),),
        )
    with pytest.raises(ValueError):
        TradeSetup(
            symbol_id=4,
            rule_key=" ",
            side="buy",  # type: ignore[arg-type]
            name="x",
            signal_count=1,
            timestamp=0,
            price=1.0,
            price_date=None,
            signature=_SETUP,
            signals=(_signal(100, "x"),),
        )
