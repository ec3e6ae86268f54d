"""
Stock valuation for the balance sheet and trading summary.
Value per product = current_stock x active purchase price.
"""
from decimal import Decimal

from ledger.services.books import paginate
from ledger.utils import ZERO, money


def stock_value_rows():
    """
    Returns [{"product_id", "product", "quantity", "purchase_price", "value"}, ...]
    for every product with stock on hand. Products without an active rate are valued at zero.
    """
    from inventory.models import Stock

    rows = []
    for stock in Stock.objects.select_related("product").exclude(current_stock=0).order_by("product__name"):
        rate = stock.product.active_rate()
        price = rate.purchase_price if rate else ZERO
        rows.append({
            "product_id": stock.product_id,
            "product": stock.product.name,
            "quantity": stock.current_stock,
            "purchase_price": price,
            "value": money(stock.current_stock * price),
        })
    return rows


def closing_stock_value(rows=None) -> Decimal:
    if rows is None:
        rows = stock_value_rows()
    return money(sum((r["value"] for r in rows), ZERO))


def stock_report(search="", is_fuel=None, page=1, per_page=None) -> dict:
    """Paginated stock on hand with unit and valuation; the total covers every matching product."""
    from inventory.models import Stock

    qs = Stock.objects.select_related("product", "product__unit")
    if search:
        qs = qs.filter(product__name__icontains=search.strip())
    if is_fuel is not None:
        qs = qs.filter(product__is_fuel=is_fuel)

    rows = []
    total = ZERO
    for stock in qs.order_by("product__name"):
        rate = stock.product.active_rate()
        price = rate.purchase_price if rate else ZERO
        value = money(stock.current_stock * price)
        total += value
        rows.append({
            "product_id": stock.product_id,
            "product": stock.product.name,
            "unit": stock.product.unit.symbol if stock.product.unit else "",
            "is_fuel": stock.product.is_fuel,
            "quantity": stock.current_stock,
            "purchase_price": price,
            "value": value,
            "updated_at": stock.updated_at,
        })

    page_rows, page_info = paginate(rows, page, per_page)
    return {"rows": page_rows, **page_info, "total_value": money(total)}
