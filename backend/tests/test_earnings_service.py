import pytest

from cubbyshop.models import SellerEarning
from cubbyshop.models.earnings import PAYOUT_APPROVED, PAYOUT_COMPLETED, PAYOUT_PENDING, PAYOUT_REJECTED
from cubbyshop.services import earnings_service
from cubbyshop.services.checkout_service import process_sale
from cubbyshop.services.earnings_service import PayoutError
from cubbyshop.validation import NotFoundError, ValidationError


@pytest.fixture
def sold(db_session, seller, other_seller, make_item):
    """Two sales for seller (15% and 25%) and one for other_seller."""
    cheap = make_item(price_cents=1000, quantity=5, seller=seller, commission_rate=0.15)
    dear = make_item(price_cents=4000, quantity=5, seller=seller, commission_rate=0.25)
    others = make_item(price_cents=500, quantity=5, seller=other_seller)

    process_sale([cheap.to_cart_payload(2), others.to_cart_payload(1)], "cash")
    process_sale([dear.to_cart_payload(1)], "card")


class TestEarningsSummary:

    def test_totals(self, sold, seller):
        summary = earnings_service.get_earnings_summary(seller.id)
        assert summary["sales_count"] == 2
        assert summary["gross_cents"] == 6000
        assert summary["commission_cents"] == 300 + 1000
        assert summary["net_cents"] == 1700 + 3000
        assert summary["unpaid_net_cents"] == 4700
        assert summary["paid_out_cents"] == 0

    def test_seller_without_sales(self, db_session, seller):
        summary = earnings_service.get_earnings_summary(seller.id)
        assert summary["sales_count"] == 0
        assert summary["net_cents"] == 0

    def test_unknown_seller(self, db_session):
        with pytest.raises(NotFoundError):
            earnings_service.get_earnings_summary(424242)


class TestPayouts:

    def test_request_bundles_unpaid_earnings(self, sold, seller):
        payout = earnings_service.request_payout(seller.id, notes="Friday run")

        assert payout.status == PAYOUT_PENDING
        assert payout.amount_cents == 4700
        assert earnings_service.get_seller_earnings(seller.id, unpaid_only=True) == []
        assert earnings_service.get_earnings_summary(seller.id)["unpaid_net_cents"] == 0

        with pytest.raises(PayoutError):
            earnings_service.request_payout(seller.id)

    def test_other_sellers_untouched(self, sold, seller, other_seller):
        earnings_service.request_payout(seller.id)
        unpaid = earnings_service.get_seller_earnings(other_seller.id, unpaid_only=True)
        assert [e.net_cents for e in unpaid] == [425]

    def test_full_lifecycle(self, sold, seller):
        payout = earnings_service.request_payout(seller.id)
        earnings_service.update_payout_status(payout.id, PAYOUT_APPROVED)
        completed = earnings_service.update_payout_status(payout.id, PAYOUT_COMPLETED)

        assert completed.payout_date is not None
        assert earnings_service.get_earnings_summary(seller.id)["paid_out_cents"] == 4700

        with pytest.raises(PayoutError):
            earnings_service.update_payout_status(payout.id, PAYOUT_REJECTED)

    def test_reject_releases_earnings(self, db_session, sold, seller):
        payout = earnings_service.request_payout(seller.id)
        earnings_service.update_payout_status(payout.id, PAYOUT_REJECTED, notes="bank details missing")

        released = db_session.query(SellerEarning).filter_by(seller_id=seller.id).all()
        assert all(e.payout_id is None for e in released)

        again = earnings_service.request_payout(seller.id)
        assert again.amount_cents == 4700

    def test_cannot_skip_approval(self, sold, seller):
        payout = earnings_service.request_payout(seller.id)
        with pytest.raises(PayoutError):
            earnings_service.update_payout_status(payout.id, PAYOUT_COMPLETED)

    def test_unknown_status(self, sold, seller):
        payout = earnings_service.request_payout(seller.id)
        with pytest.raises(ValidationError):
            earnings_service.update_payout_status(payout.id, "paid")

    def test_no_earnings(self, db_session, seller):
        with pytest.raises(PayoutError):
            earnings_service.request_payout(seller.id)
