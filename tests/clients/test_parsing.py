"""Tests for JSON price extraction."""

from typing import Any

import pytest

from price_collector.clients._parsing import extract_price
from price_collector.clients.frankfurter.exceptions import FrankfurterError
from price_collector.core.exceptions import FetchError

_RATE = 5.25


class TestExtractPrice:
    """Tests for extract_price."""

    def test_nested_value(self) -> None:
        """Follow the path to a numeric leaf."""
        assert extract_price({"rates": {"BRL": _RATE}}, ("rates", "BRL")) == pytest.approx(_RATE)

    def test_integer_value_becomes_float(self) -> None:
        """Integer prices are returned as floats."""
        result = extract_price({"bitcoin": {"usd": 65000}}, ("bitcoin", "usd"))
        assert isinstance(result, float)

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"rates": {}},
            {"rates": None},
            {"rates": {"BRL": None}},
            {"rates": ["BRL"]},
            [],
        ],
    )
    def test_missing_field_raises(self, payload: Any) -> None:
        """A missing field is an error, not zero."""
        with pytest.raises(FetchError, match=r"missing field 'rates\.BRL'"):
            extract_price(payload, ("rates", "BRL"))

    @pytest.mark.parametrize("value", ["5.25", True, {"x": 1}])
    def test_non_numeric_raises(self, value: Any) -> None:
        """Strings, booleans and objects are rejected."""
        with pytest.raises(FetchError, match="not numeric"):
            extract_price({"rates": {"BRL": value}}, ("rates", "BRL"))

    @pytest.mark.parametrize("value", [0, -1.5, float("inf")])
    def test_non_positive_raises(self, value: float) -> None:
        """Zero, negative and infinite values are rejected."""
        with pytest.raises(FetchError, match="must be positive"):
            extract_price({"rates": {"BRL": value}}, ("rates", "BRL"))

    def test_custom_error_class(self) -> None:
        """The caller's FetchError subclass is raised."""
        with pytest.raises(FrankfurterError):
            extract_price({}, ("rates", "BRL"), FrankfurterError)
