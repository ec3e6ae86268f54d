"""
Read-only listings over closed shifts: the closed-shift register and the
monthly dispenser report.
"""
from __future__ import annotations

from django.db.models import Avg, Sum

from ledger.services.books import paginate
from ledger.utils import ZERO, check_date_range, money
from shifts.models import DailyReading, DispenserReading, OtherProductSale, ShiftClosed


def _closed_shifts(shift_id=None, start_date=None, end_date=None, search=""):
    check_date_range(start_date, end_date)
    qs = ShiftClosed.objects.select_related("shift", "daily_reading")
    if shift_id:
        qs = qs.filter(shift_id=shift_id)
    if start_date:
        qs = qs.filter(close_date__gte=start_date)
    if end_date:
        qs = qs.filter(close_date__lte=end_date)
    if search:
        qs = qs.filter(shift__name__icontains=search.strip())
    return qs.order_by("-close_date", "-shift_id")


def closed_shift_list(shift_id=None, start_date=None, end_date=None, search="", page=1, per_page=None) -> dict:
    """Closed shifts, newest first, each with its frozen figures."""
    closings, page_info = paginate(_closed_shifts(shift_id, start_date, end_date, search), page, per_page)
    rows = [
        {
            "id": closed.id,
            "close_date": closed.close_date,
            "shift_id": closed.shift_id,
            "shift": closed.shift.name,
            "closed_at": closed.closed_at,
            "closed_by": closed.closed_by,
            "figures": closed.daily_reading.figures(),
        }
        for closed in closings
    ]
    return {"start_date": start_date, "end_date": end_date, "rows": rows, **page_info}


def _product_sales(closed, product_id=None):
    readings = DispenserReading.objects.filter(shift_closed=closed, net_reading__gt=0)
    others = OtherProductSale.objects.filter(shift_closed=closed, sell_quantity__gt=0)
    if product_id:
        readings = readings.filter(product_id=product_id)
        others = others.filter(product_id=product_id)

    rows = []
    for qs, quantity, amount in ((readings, "net_reading", "total_sale"), (others, "sell_quantity", "total_sales")):
        grouped = (
            qs.values("product_id", "product__name")
            .annotate(quantity=Sum(quantity), price=Avg("item_rate"), amount=Sum(amount))
            .order_by("product__name")
        )
        for r in grouped:
            rows.append({
                "product_id": r["product_id"],
                "product": r["product__name"],
                "quantity": r["quantity"],
                "price": money(r["price"]),
                "amount": money(r["amount"]),
            })
    return rows


def monthly_dispenser_report(
    start_date=None, end_date=None, product_id=None, search="", page=1, per_page=None
) -> dict:
    """
    One row per closed shift: product sales (quantity, average rate, amount),
    cash received on vouchers, credit and bank sales, cash expenses and the
    shift's remaining cash balance (total_cash - expenses).
    Totals cover every closed shift in the window, not just the page.
    """
    qs = _closed_shifts(start_date=start_date, end_date=end_date, search=search)
    closings, page_info = paginate(qs, page, per_page)
    offset = (page_info["page"] - 1) * page_info["per_page"]

    rows = []
    for index, closed in enumerate(closings, start=1):
        reading = closed.daily_reading
        expenses = reading.cash_payment + reading.office_payment
        rows.append({
            "sl": offset + index,
            "id": closed.id,
            "date": closed.close_date,
            "shift": closed.shift.name,
            "product_sales": _product_sales(closed, product_id),
            "received_due_paid": reading.cash_receive,
            "amount": reading.total_cash,
            "credit_sale": reading.credit_sales,
            "bank_sale": reading.bank_sales,
            "expenses": expenses,
            "total_balance": reading.total_cash - expenses,
        })

    agg = DailyReading.objects.filter(shift_closed__in=qs.values("pk")).aggregate(
        total_cash=Sum("total_cash", default=ZERO),
        credit_sales=Sum("credit_sales", default=ZERO),
        bank_sales=Sum("bank_sales", default=ZERO),
        cash_payment=Sum("cash_payment", default=ZERO),
        office_payment=Sum("office_payment", default=ZERO),
    )
    expenses = agg["cash_payment"] + agg["office_payment"]
    return {
        "start_date": start_date,
        "end_date": end_date,
        "rows": rows,
        **page_info,
        "totals": {
            "amount": money(agg["total_cash"]),
            "credit_sale": money(agg["credit_sales"]),
            "bank_sale": money(agg["bank_sales"]),
            "expenses": money(expenses),
            "total_balance": money(agg["total_cash"] - expenses),
        },
    }
