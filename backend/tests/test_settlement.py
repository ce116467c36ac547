from decimal import Decimal

import pytest

from cubbyshop.services.settlement import (
    DEFAULT_COMMISSION_RATE,
    CartLine,
    commission_for,
    settle,
)
from cubbyshop.validation import ValidationError


def line(**overrides):
    values = dict(
        item_id=1,
        unit_price_cents=2000,
        quantity=10,
        cart_quantity=3,
        seller_id="S1",
        commission_rate=Decimal("0.15"),
    )
    values.update(overrides)
    return CartLine(**values)


class TestSettle:

    def test_single_consigned_line(self):
        result = settle([line()], "cash")

        settled = result.lines[0]
        assert settled.gross_cents == 6000
        assert settled.commission_cents == 900
        assert settled.net_cents == 5100
        assert settled.resulting_quantity == 7
        assert result.total_cents == 6000
        assert result.payment_method == "cash"

    def test_missing_rate_uses_default(self):
        result = settle([line(commission_rate=None)], "card")
        assert result.lines[0].commission_rate == DEFAULT_COMMISSION_RATE
        assert result.lines[0].commission_cents == 900

    def test_zero_rate_on_line_is_respected(self):
        result = settle([line(commission_rate=Decimal("0"))], "card")
        assert result.lines[0].commission_cents == 0
        assert result.lines[0].net_cents == 6000

    def test_total_is_sum_of_gross(self):
        lines = [
            line(item_id=1, unit_price_cents=1999, cart_quantity=2),
            line(item_id=2, unit_price_cents=550, cart_quantity=1, seller_id=None),
            line(item_id=3, unit_price_cents=0, cart_quantity=4),
        ]
        result = settle(lines, "other")
        assert result.total_cents == sum(l.gross_cents for l in result.lines) == 3998 + 550

    def test_split_is_exact_for_awkward_amounts(self):
        rates = [Decimal("0.15"), Decimal("0.25"), Decimal("0.333"), Decimal("0.07"), Decimal("1"), Decimal("0")]
        for price in (1, 7, 99, 333, 1005, 123457):
            for rate in rates:
                for qty in (1, 3):
                    settled = settle([line(unit_price_cents=price, cart_quantity=qty, quantity=3, commission_rate=rate)], "cash").lines[0]
                    assert settled.net_cents + settled.commission_cents == settled.gross_cents

    def test_lines_keep_input_order(self):
        lines = [line(item_id=i) for i in (5, 2, 9)]
        assert [l.item_id for l in settle(lines, "cash").lines] == [5, 2, 9]

    def test_earnings_lines_only_with_seller(self):
        result = settle([line(item_id=1), line(item_id=2, seller_id=None)], "cash")
        assert [l.item_id for l in result.earnings_lines()] == [1]

    def test_is_pure(self):
        lines = [line(), line(item_id=2, unit_price_cents=1050)]
        assert settle(lines, "cash") == settle(lines, "cash")

    def test_payment_method_normalized(self):
        assert settle([line()], " Card ").payment_method == "card"

    def test_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            settle([line()], "bitcoin")

    def test_empty_cart(self):
        with pytest.raises(ValidationError):
            settle([], "cash")

    def test_cart_quantity_above_stock(self):
        with pytest.raises(ValidationError) as exc_info:
            settle([line(), line(item_id=2, quantity=2, cart_quantity=3)], "cash")
        assert exc_info.value.details["item_id"] == 2

    def test_split_lines_for_one_item_share_its_stock(self):
        with pytest.raises(ValidationError) as exc_info:
            settle([line(quantity=3, cart_quantity=2), line(quantity=3, cart_quantity=2)], "cash")
        assert exc_info.value.details["cart_quantity"] == 4
        assert exc_info.value.details["quantity"] == 3

    def test_split_lines_within_stock(self):
        result = settle([line(quantity=5, cart_quantity=2), line(quantity=5, cart_quantity=3)], "cash")
        assert [l.resulting_quantity for l in result.lines] == [3, 0]
        assert result.total_cents == 10000

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            settle([line(unit_price_cents=-1)], "cash")

    def test_rate_out_of_range(self):
        with pytest.raises(ValidationError):
            settle([line(commission_rate=Decimal("1.5"))], "cash")

    def test_zero_cart_quantity(self):
        with pytest.raises(ValidationError):
            settle([line(cart_quantity=0)], "cash")


class TestCommissionRounding:

    @pytest.mark.parametrize("gross,rate,expected", [
        (6000, Decimal("0.15"), 900),
        (1050, Decimal("0.15"), 158),   # 157.5 rounds up
        (1030, Decimal("0.15"), 155),   # 154.5 rounds up
        (1010, Decimal("0.15"), 152),   # 151.5 rounds up
        (1, Decimal("0.5"), 1),
        (3, Decimal("0.15"), 0),        # 0.45 rounds down
        (999, Decimal("0.25"), 250),    # 249.75
    ])
    def test_half_up(self, gross, rate, expected):
        assert commission_for(gross, rate) == expected


class TestCartLinePayload:

    def test_parses_pos_shape(self):
        parsed = CartLine.from_payload({
            "id": 12,
            "price": 19.99,
            "quantity": 4,
            "cartQuantity": 2,
            "seller_id": 3,
            "commission_rate": 0.25,
        })
        assert parsed.unit_price_cents == 1999
        assert parsed.cart_quantity == 2
        assert parsed.commission_rate == Decimal("0.25")
        assert parsed.seller_id == 3

    def test_item_id_alias(self):
        parsed = CartLine.from_payload({"itemId": 7, "price": "5", "quantity": 1, "cartQuantity": 1})
        assert parsed.item_id == 7
        assert parsed.seller_id is None
        assert parsed.commission_rate is None

    def test_zero_rate_in_payload_means_default(self):
        parsed = CartLine.from_payload({"id": 1, "price": 1, "quantity": 1, "cartQuantity": 1, "commission_rate": 0})
        assert parsed.effective_commission_rate == DEFAULT_COMMISSION_RATE

    @pytest.mark.parametrize("payload", [
        {"price": 1, "quantity": 1, "cartQuantity": 1},
        {"id": 1, "quantity": 1, "cartQuantity": 1},
        {"id": 1, "price": -2, "quantity": 1, "cartQuantity": 1},
        {"id": 1, "price": 1.999, "quantity": 1, "cartQuantity": 1},
        {"id": 1, "price": 1, "quantity": 1, "cartQuantity": 1.5},
        {"id": 1, "price": 1, "quantity": 1, "cartQuantity": 1, "commission_rate": 2},
        "not a dict",
    ])
    def test_rejects_bad_lines(self, payload):
        with pytest.raises(ValidationError):
            CartLine.from_payload(payload)
