"""
Sales lookups for receipts and the sales history screen.

Sales are written only by checkout_service.process_sale.
"""

from ..extensions import db
from ..models import Sale, SaleItem, SellerEarning
from ..validation import NotFoundError


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def get_sale_detail(sale_id: int) -> dict:
    """Sale header with its items and any seller earnings (receipt view)."""
    sale = get_sale(sale_id)
    items = db.session.query(SaleItem).filter_by(sale_id=sale_id).order_by(SaleItem.id.asc()).all()
    earnings = (
        db.session.query(SellerEarning)
        .filter(SellerEarning.sale_item_id.in_([item.id for item in items]))
        .order_by(SellerEarning.sale_item_id.asc())
        .all()
        if items else []
    )
    return {
        "sale": sale.to_dict(),
        "items": [item.to_dict() for item in items],
        "earnings": [earning.to_dict() for earning in earnings],
    }


def list_sales(limit: int = 50) -> list[Sale]:
    return (
        db.session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )
