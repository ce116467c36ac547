import pytest
from sqlalchemy.exc import SQLAlchemyError

from cubbyshop.extensions import db
from cubbyshop.models import InventoryItem, Sale, SaleItem, SellerEarning
from cubbyshop.services import checkout_service
from cubbyshop.services.checkout_service import STEP_EARNINGS, STEP_STOCK, process_sale
from cubbyshop.validation import ValidationError


def cart_entry(item, cart_quantity, **overrides):
    entry = item.to_cart_payload(cart_quantity)
    entry.update(overrides)
    return entry


class TestProcessSale:

    def test_writes_sale_items_stock_and_earnings(self, db_session, seller, make_item):
        consigned = make_item(price_cents=2000, quantity=10, seller=seller, commission_rate=0.15)
        house = make_item(price_cents=500, quantity=2)

        result = process_sale(
            [cart_entry(consigned, 3), cart_entry(house, 1)],
            "cash",
            notes="Saturday market",
        )

        assert result.complete
        sale = db_session.get(Sale, result.sale.id)
        assert sale.total_cents == 6500
        assert sale.payment_method == "cash"
        assert sale.notes == "Saturday market"

        items = db_session.query(SaleItem).filter_by(sale_id=sale.id).order_by(SaleItem.id).all()
        assert [(i.inventory_item_id, i.quantity, i.price_sold_cents) for i in items] == [
            (consigned.id, 3, 2000),
            (house.id, 1, 500),
        ]

        db_session.expire_all()
        assert db_session.get(InventoryItem, consigned.id).quantity == 7
        assert db_session.get(InventoryItem, house.id).quantity == 1

        earnings = db_session.query(SellerEarning).all()
        assert len(earnings) == 1
        earning = earnings[0]
        assert earning.seller_id == seller.id
        assert earning.sale_item_id == items[0].id
        assert (earning.gross_cents, earning.commission_cents, earning.net_cents) == (6000, 900, 5100)

        assert result.settlement.sale_id == sale.id

    def test_missing_rate_defaults_to_fifteen_percent(self, db_session, seller, make_item):
        item = make_item(price_cents=1050, quantity=1, seller=seller)
        process_sale([cart_entry(item, 1)], "card")

        earning = db_session.query(SellerEarning).one()
        assert earning.commission_cents == 158
        assert earning.net_cents == 892

    def test_validation_error_writes_nothing(self, db_session, make_item):
        item = make_item(quantity=2)

        with pytest.raises(ValidationError):
            process_sale([cart_entry(item, 3)], "cash")

        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0

    def test_same_item_on_two_lines_cannot_exceed_stock(self, db_session, make_item):
        item = make_item(quantity=3)

        with pytest.raises(ValidationError):
            process_sale([cart_entry(item, 2), cart_entry(item, 2)], "cash")

        assert db_session.query(Sale).count() == 0
        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id).quantity == 3

    def test_empty_cart_rejected(self, db_session):
        with pytest.raises(ValidationError):
            process_sale([], "cash")
        assert db_session.query(Sale).count() == 0

    def test_cart_must_be_list(self, db_session):
        with pytest.raises(ValidationError):
            process_sale({"id": 1}, "cash")

    def test_stale_stock_is_reported_not_oversold(self, db_session, make_item):
        item = make_item(quantity=5)
        stale_entry = cart_entry(item, 4)

        # Another register sells most of the stock after the cart was built
        item.quantity = 1
        db_session.commit()

        result = process_sale([stale_entry], "cash")

        assert not result.complete
        assert result.failures == [{
            "step": STEP_STOCK,
            "item_id": item.id,
            "error": "item missing or insufficient stock",
        }]
        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id).quantity == 1
        # The sale itself stands
        assert db_session.query(Sale).count() == 1

    def test_earnings_failure_does_not_abort_sale(self, db_session, seller, other_seller, make_item, monkeypatch):
        first = make_item(price_cents=1000, quantity=3, seller=seller)
        second = make_item(price_cents=3000, quantity=3, seller=other_seller)

        real_earning = checkout_service.SellerEarning

        def flaky_earning(**kwargs):
            if kwargs["seller_id"] == seller.id:
                raise SQLAlchemyError("insert failed")
            return real_earning(**kwargs)

        monkeypatch.setattr(checkout_service, "SellerEarning", flaky_earning)

        result = process_sale([cart_entry(first, 1), cart_entry(second, 2)], "card")

        assert [f["step"] for f in result.failures] == [STEP_EARNINGS]
        assert result.failures[0]["item_id"] == first.id

        earnings = db_session.query(SellerEarning).all()
        assert [e.seller_id for e in earnings] == [other_seller.id]
        assert db_session.query(SaleItem).count() == 2

        db_session.expire_all()
        assert db_session.get(InventoryItem, first.id).quantity == 2
        assert db_session.get(InventoryItem, second.id).quantity == 1

    def test_sale_header_failure_raises_checkout_error(self, db_session, make_item, monkeypatch):
        item = make_item()

        def broken_commit():
            raise SQLAlchemyError("database unavailable")

        monkeypatch.setattr(db.session, "commit", broken_commit)

        with pytest.raises(checkout_service.CheckoutError) as exc_info:
            process_sale([cart_entry(item, 1)], "cash")
        assert exc_info.value.details["step"] == checkout_service.STEP_SALE
