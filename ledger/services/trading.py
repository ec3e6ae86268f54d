"""
Trading summary: purchases, sales and administrative expenses over a period.

  gross_profit = total_sales - total_purchases
  net_profit   = gross_profit - total_admin_expenses

Sales come from closed shifts only (dispenser readings and ancillary product
sales), so the figures match what the cash book reports.
"""
from collections import defaultdict
from datetime import date

from django.db.models import Sum

from ledger.models import Voucher, VoucherType
from ledger.services.stock_valuation import closing_stock_value, stock_value_rows
from ledger.utils import ZERO, check_date_range, money


def _purchase_rows(start_date, end_date):
    from billing.models import Purchase

    qs = Purchase.objects.filter(date__gte=start_date, date__lte=end_date)
    rows = []
    for r in qs.values("product_id", "product__name").annotate(
        quantity=Sum("quantity"), amount=Sum("amount")
    ).order_by("product__name"):
        rows.append({
            "product_id": r["product_id"],
            "product": r["product__name"],
            "quantity": r["quantity"] or ZERO,
            "amount": money(r["amount"]),
        })
    return rows


def _sales_rows(start_date, end_date):
    from shifts.models import DispenserReading, OtherProductSale

    by_product = defaultdict(lambda: {"quantity": ZERO, "amount": ZERO})
    names = {}
    readings = (
        DispenserReading.objects.filter(shift_closed__isnull=False, date__gte=start_date, date__lte=end_date)
        .values("product_id", "product__name")
        .annotate(quantity=Sum("net_reading"), amount=Sum("total_sale"))
    )
    others = (
        OtherProductSale.objects.filter(shift_closed__isnull=False, date__gte=start_date, date__lte=end_date)
        .values("product_id", "product__name")
        .annotate(quantity=Sum("sell_quantity"), amount=Sum("total_sales"))
    )
    for r in list(readings) + list(others):
        entry = by_product[r["product_id"]]
        entry["quantity"] += r["quantity"] or ZERO
        entry["amount"] += r["amount"] or ZERO
        names[r["product_id"]] = r["product__name"]

    return [
        {"product_id": pid, "product": names[pid], "quantity": v["quantity"], "amount": money(v["amount"])}
        for pid, v in sorted(by_product.items(), key=lambda kv: names[kv[0]])
    ]


def _sales_split(start_date, end_date):
    from shifts.models import DailyReading

    agg = DailyReading.objects.filter(
        shift_closed__isnull=False, date__gte=start_date, date__lte=end_date
    ).aggregate(
        cash=Sum("cash_sales", default=ZERO),
        credit=Sum("credit_sales", default=ZERO),
        bank=Sum("bank_sales", default=ZERO),
    )
    return {"cash_sales": money(agg["cash"]), "credit_sales": money(agg["credit"]), "bank_sales": money(agg["bank"])}


def _admin_expense_rows(start_date, end_date):
    qs = (
        Voucher.objects.filter(
            voucher_type=VoucherType.PAYMENT,
            date__gte=start_date,
            date__lte=end_date,
        )
        .exclude(expense_head="")
        .values("expense_head")
        .annotate(amount=Sum("amount"))
        .order_by("expense_head")
    )
    return [{"expense_head": r["expense_head"], "amount": money(r["amount"])} for r in qs]


def compute_trading_summary(start_date=None, end_date=None):
    """
    Defaults: end_date = today, start_date = 1 January of end_date's year.

    Returns:
    {
      "start_date", "end_date",
      "purchase_rows", "total_purchases",
      "sales_rows", "total_sales", "cash_sales", "credit_sales", "bank_sales",
      "stock_rows", "stock_value",
      "admin_expense_rows", "total_admin_expenses",
      "gross_profit", "net_profit",
    }
    """
    end_date = end_date or date.today()
    start_date = start_date or date(end_date.year, 1, 1)
    check_date_range(start_date, end_date)

    purchase_rows = _purchase_rows(start_date, end_date)
    sales_rows = _sales_rows(start_date, end_date)
    expense_rows = _admin_expense_rows(start_date, end_date)
    stock_rows = stock_value_rows()

    total_purchases = money(sum((r["amount"] for r in purchase_rows), ZERO))
    total_sales = money(sum((r["amount"] for r in sales_rows), ZERO))
    total_admin = money(sum((r["amount"] for r in expense_rows), ZERO))
    gross_profit = total_sales - total_purchases

    return {
        "start_date": start_date,
        "end_date": end_date,
        "purchase_rows": purchase_rows,
        "total_purchases": total_purchases,
        "sales_rows": sales_rows,
        "total_sales": total_sales,
        **_sales_split(start_date, end_date),
        "stock_rows": stock_rows,
        "stock_value": closing_stock_value(stock_rows),
        "admin_expense_rows": expense_rows,
        "total_admin_expenses": total_admin,
        "gross_profit": gross_profit,
        "net_profit": gross_profit - total_admin,
    }
