from datetime import date
from decimal import Decimal

import pytest

from pos_engine.core.exceptions import InvalidRateError
from pos_engine.models.exchange_rate import ExchangeRateContext
from pos_engine.services.currency import round_sdg, round_usd, to_sdg, to_usd, validate_rate


class TestConversion:
    def test_usd_to_sdg(self):
        """Test USD amounts convert at the day rate."""
        assert to_sdg(Decimal("100"), Decimal("600")) == Decimal("60000.00")
        assert to_sdg("12.34", "601.5") == Decimal("7422.51")

    def test_sdg_to_usd(self):
        """Test SDG amounts convert back at the day rate."""
        assert to_usd(Decimal("60000"), Decimal("600")) == Decimal("100.00")
        assert to_usd(Decimal("1000"), Decimal("600")) == Decimal("1.67")

    def test_accepts_floats_and_strings(self):
        """Test non-Decimal inputs go through their string form."""
        assert to_sdg(0.1, 3) == Decimal("0.30")
        assert to_usd("300", "600") == Decimal("0.50")

    def test_round_half_up(self):
        """Test rounding is half-up at two decimals for both currencies."""
        assert round_usd("2.345") == Decimal("2.35")
        assert round_usd("2.344") == Decimal("2.34")
        assert round_sdg("0.005") == Decimal("0.01")

    def test_round_trip_within_one_unit(self):
        """Test USD to SDG and back stays within one rounding unit."""
        for amount in ("0.01", "1.99", "13.37", "250.00", "9999.99"):
            for rate in ("1", "600", "601.25", "0.85"):
                back = to_usd(to_sdg(amount, rate), rate)
                assert abs(back - Decimal(amount)) <= Decimal("0.01")

    def test_zero_amount(self):
        """Test zero converts to zero."""
        assert to_sdg(0, 600) == Decimal("0.00")
        assert to_usd(0, 600) == Decimal("0.00")


class TestRateValidation:
    @pytest.mark.parametrize("rate", [0, "0", -1, "-600", "NaN", "Infinity", "abc"])
    def test_invalid_rates_rejected(self, rate):
        """Test zero, negative, non-finite and non-numeric rates fail."""
        with pytest.raises(InvalidRateError):
            validate_rate(rate)

    def test_conversion_rejects_invalid_rate(self):
        """Test conversions refuse to run with an invalid rate."""
        with pytest.raises(InvalidRateError):
            to_sdg(10, 0)
        with pytest.raises(InvalidRateError):
            to_usd(10, -5)

    def test_valid_rate_returned_as_decimal(self):
        """Test a valid rate comes back as a Decimal."""
        assert validate_rate(600) == Decimal("600")
        assert isinstance(validate_rate(1.5), Decimal)


class TestExchangeRateContext:
    def test_context_converts(self):
        """Test the context converts with its own rate."""
        ctx = ExchangeRateContext(branch_id="b1", date=date(2026, 10, 18), rate_usd_to_sdg="600")
        assert ctx.rate_usd_to_sdg == Decimal("600")
        assert ctx.to_sdg("2.50") == Decimal("1500.00")
        assert ctx.to_usd("1500") == Decimal("2.50")

    def test_context_rejects_invalid_rate(self):
        """Test a context cannot be built around a non-positive rate."""
        with pytest.raises(InvalidRateError):
            ExchangeRateContext(branch_id="b1", date=date(2026, 10, 18), rate_usd_to_sdg=Decimal("0"))
