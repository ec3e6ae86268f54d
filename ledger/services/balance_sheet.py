"""
Balance Sheet: Liabilities and Assets bucketed by account group, with the
trading summary for the same period alongside.

Every account balance comes from replay(), so the sheet always agrees with
the statements. Balances follow the ledger sign: Cr adds, Dr subtracts.
"""
from collections import defaultdict
from datetime import date

from ledger.constants import ASSET_BUCKETS, LIABILITY_BUCKETS, NOMINAL_GROUPS
from ledger.models import Account, AccountGroup
from ledger.services.replay import replay
from ledger.services.stock_valuation import closing_stock_value, stock_value_rows
from ledger.services.trading import compute_trading_summary
from ledger.utils import ZERO, check_date_range, money

_ASSET_GROUPS = {
    AccountGroup.CASH_IN_HAND: "Cash in Hand",
    AccountGroup.BANK_ACCOUNT: "Bank Deposit",
    AccountGroup.MOBILE_BANK: "Bank Deposit",
    AccountGroup.ASSET: "Other Assets",
}
_LIABILITY_GROUPS = {
    AccountGroup.CUSTOMER_SECURITY: "Customer Security",
    AccountGroup.BANK_LOAN: "Bank Loan",
    AccountGroup.LIABILITY: "Other Liabilities",
}


def classify(group, balance):
    """
    Return (side, bucket, amount) for an account balance, or None for nominal accounts.
    side is "asset" or "liability"; amount is what the bucket shows.
    """
    if group in NOMINAL_GROUPS:
        return None
    if group in _ASSET_GROUPS:
        return "asset", _ASSET_GROUPS[group], balance
    if group in _LIABILITY_GROUPS:
        return "liability", _LIABILITY_GROUPS[group], -balance
    if group == AccountGroup.CUSTOMER:
        if balance >= 0:
            return "asset", "Customer Due", balance
        return "liability", "Customer Advance", -balance
    if group == AccountGroup.SUPPLIER:
        if balance > 0:
            return "asset", "Supplier Advance", balance
        return "liability", "Purchase Due", -balance
    return None


def _bucket_rows(order, accounts_by_bucket):
    rows = []
    for bucket in order:
        accounts = accounts_by_bucket.get(bucket)
        if not accounts:
            continue
        rows.append({
            "bucket": bucket,
            "accounts": accounts,
            "total": money(sum((a["amount"] for a in accounts), ZERO)),
        })
    return rows


def build_balance_sheet(as_of_date=None, start_date=None, end_date=None, include_stock=True):
    """
    Returns:
    {
      "as_of": date,
      "assets": [{"bucket", "accounts": [{"id", "name", "ac_number", "amount"}], "total"}, ...],
      "liabilities": [...],
      "total_assets": Decimal,
      "total_liabilities": Decimal,
      "net_worth": Decimal,            # total_assets - total_liabilities
      "trading_summary": dict,         # see compute_trading_summary
    }
    """
    check_date_range(start_date, end_date)
    as_of = as_of_date or end_date or date.today()

    assets = defaultdict(list)
    liabilities = defaultdict(list)
    for account in Account.objects.exclude(group__in=NOMINAL_GROUPS).order_by("group", "name", "id"):
        balance = replay(account, None, as_of)["closing_balance"]
        placed = classify(account.group, balance)
        if placed is None or balance == 0:
            continue
        side, bucket, amount = placed
        entry = {"id": account.id, "name": account.name, "ac_number": account.ac_number, "amount": money(amount)}
        (assets if side == "asset" else liabilities)[bucket].append(entry)

    stock_rows = stock_value_rows() if include_stock else []
    for row in stock_rows:
        if row["value"]:
            assets["In Stock Product"].append(
                {"id": row["product_id"], "name": row["product"], "ac_number": "", "amount": row["value"]}
            )

    asset_rows = _bucket_rows(ASSET_BUCKETS, assets)
    liability_rows = _bucket_rows(LIABILITY_BUCKETS, liabilities)
    total_assets = money(sum((r["total"] for r in asset_rows), ZERO))
    total_liabilities = money(sum((r["total"] for r in liability_rows), ZERO))

    trading = compute_trading_summary(start_date, end_date or as_of)

    return {
        "as_of": as_of,
        "assets": asset_rows,
        "liabilities": liability_rows,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "net_worth": total_assets - total_liabilities,
        "stock_value": closing_stock_value(stock_rows),
        "trading_summary": trading,
    }
