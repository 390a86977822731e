"""Tests for monetary helpers."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.shared.money import line_total, sum_money, to_money


class TestToMoney:
    def test_rounds_to_cents(self):
        assert to_money("10.005") == Decimal("10.01")

    def test_accepts_numbers(self):
        assert to_money(5.5) == Decimal("5.50")
        assert to_money(3) == Decimal("3.00")

    def test_negative_rejected(self):
        with pytest.raises(ValidationError) as exc:
            to_money("-1")
        assert "price" in exc.value.messages

    def test_garbage_rejected_under_given_field(self):
        with pytest.raises(ValidationError) as exc:
            to_money("ten", field="subtotal")
        assert "subtotal" in exc.value.messages


class TestTotals:
    def test_line_total(self):
        assert line_total(Decimal("10.00"), 2) == Decimal("20.00")

    def test_sum_of_nothing_is_zero(self):
        assert sum_money([]) == Decimal("0.00")

    def test_sum_keeps_two_places(self):
        assert sum_money([Decimal("20.00"), Decimal("5.50")]) == Decimal("25.50")
