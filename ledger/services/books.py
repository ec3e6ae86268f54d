"""
Ledger views built on replay(): account statements, the bank / mobile-bank
book and the shift-based cash book.

Running balances are always computed over the whole requested window before
any pagination, so page N continues from where page N-1 stopped.
"""
from __future__ import annotations

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import Q

from ledger.constants import BANK_GROUPS, CASH_GROUPS
from ledger.exceptions import AccountNotFound
from ledger.models import Account, Voucher
from ledger.services.replay import get_account, net_effect_before, replay
from ledger.utils import ZERO, check_date_range, money
from shifts.models import ShiftClosed


def _per_page(per_page):
    conf = settings.BACKOFFICE
    if not per_page or per_page < 1:
        return conf["LEDGER_PER_PAGE"]
    return min(per_page, conf["LEDGER_MAX_PER_PAGE"])


def paginate(items, page=1, per_page=None):
    """Slice items for one page. Returns (object_list, page_info)."""
    paginator = Paginator(items, _per_page(per_page))
    page_obj = paginator.get_page(page)
    return list(page_obj.object_list), {
        "page": page_obj.number,
        "per_page": paginator.per_page,
        "num_pages": paginator.num_pages,
        "count": paginator.count,
    }


def account_header(account: Account) -> dict:
    return {
        "id": account.id,
        "name": account.name,
        "ac_number": account.ac_number,
        "group": account.group,
        "status": account.status,
    }


def get_ledger(
    account_id,
    start_date=None,
    end_date=None,
    page=1,
    per_page=None,
    opening_balance=None,
    carry_forward=False,
    groups=None,
) -> dict:
    """
    Paginated account statement. carry_forward=True opens the window with the
    net effect of everything before start_date (ignored when opening_balance is given).
    """
    check_date_range(start_date, end_date)
    account = get_account(account_id, groups=groups)
    if carry_forward and opening_balance is None:
        opening_balance = net_effect_before(account, start_date)

    result = replay(account, start_date, end_date, opening_balance)
    paginator = Paginator(result["rows"], _per_page(per_page))
    page_obj = paginator.get_page(page)

    # Balance carried onto this page from the previous one
    first = page_obj.start_index()
    if first > 1:
        brought_forward = result["rows"][first - 2]["balance"]
    else:
        brought_forward = result["opening_balance"]

    return {
        "account": account_header(account),
        "start_date": start_date,
        "end_date": end_date,
        "rows": list(page_obj.object_list),
        "page": page_obj.number,
        "per_page": paginator.per_page,
        "num_pages": paginator.num_pages,
        "count": paginator.count,
        "balance_brought_forward": brought_forward,
        "opening_balance": result["opening_balance"],
        "total_debit": result["total_debit"],
        "total_credit": result["total_credit"],
        "closing_balance": result["closing_balance"],
    }


def bank_book(start_date=None, end_date=None) -> dict:
    """One summary row per active bank / mobile-bank account plus overall totals."""
    check_date_range(start_date, end_date)
    rows = []
    total_debit = ZERO
    total_credit = ZERO
    total_balance = ZERO
    accounts = Account.objects.filter(group__in=BANK_GROUPS, status=True).order_by("group", "name", "id")
    for account in accounts:
        result = replay(account, start_date, end_date)
        rows.append({
            **account_header(account),
            "total_debit": result["total_debit"],
            "total_credit": result["total_credit"],
            "closing_balance": result["closing_balance"],
        })
        total_debit += result["total_debit"]
        total_credit += result["total_credit"]
        total_balance += result["closing_balance"]

    return {
        "start_date": start_date,
        "end_date": end_date,
        "rows": rows,
        "total_debit": money(total_debit),
        "total_credit": money(total_credit),
        "total_balance": money(total_balance),
        "net_balance": money(total_credit - total_debit),
    }


def bank_book_account(ac_number, start_date=None, end_date=None, page=1, per_page=None) -> dict:
    account = Account.objects.filter(ac_number=ac_number, group__in=BANK_GROUPS).first()
    if account is None:
        raise AccountNotFound(f"Bank account {ac_number} not found.", details={"ac_number": ac_number})
    return get_ledger(account, start_date, end_date, page=page, per_page=per_page, groups=BANK_GROUPS)


def cash_book(start_date=None, end_date=None, shift_id=None, opening_balance=None) -> dict:
    """
    One row per closed shift in the window, oldest first:
    cash in = total_cash, cash out = cash_payment + office_payment.
    """
    check_date_range(start_date, end_date)
    qs = ShiftClosed.objects.select_related("daily_reading", "shift")
    if start_date:
        qs = qs.filter(close_date__gte=start_date)
    if end_date:
        qs = qs.filter(close_date__lte=end_date)
    if shift_id:
        qs = qs.filter(shift_id=shift_id)

    opening = money(opening_balance)
    running = opening
    total_in = ZERO
    total_out = ZERO
    rows = []
    for closed in qs.order_by("close_date", "shift_id"):
        reading = closed.daily_reading
        cash_in = reading.total_cash
        cash_out = reading.cash_payment + reading.office_payment
        running += cash_in - cash_out
        total_in += cash_in
        total_out += cash_out
        rows.append({
            "shift_closed_id": closed.id,
            "close_date": closed.close_date,
            "shift_id": closed.shift_id,
            "shift": closed.shift.name,
            "cash_sales": reading.cash_sales,
            "cash_receive": reading.cash_receive,
            "cash_payment": reading.cash_payment,
            "office_payment": reading.office_payment,
            "cash_in": cash_in,
            "cash_out": cash_out,
            "final_due_amount": reading.final_due_amount,
            "balance": running,
        })

    return {
        "start_date": start_date,
        "end_date": end_date,
        "rows": rows,
        "opening_balance": opening,
        "total_cash_in": money(total_in),
        "total_cash_out": money(total_out),
        "closing_balance": money(running),
    }


def _voucher_row(voucher):
    return {
        "voucher_no": voucher.voucher_no,
        "from_account": voucher.from_account.name,
        "to_account": voucher.to_account.name,
        "amount": voucher.amount,
        "is_office_payment": voucher.is_office_payment,
        "description": voucher.description,
    }


def cash_book_shift(shift_closed_id) -> dict:
    """Figures of one closed shift with the cash receipts and payments behind them."""
    closed = ShiftClosed.objects.select_related("daily_reading", "shift").get(pk=shift_closed_id)
    vouchers = (
        Voucher.objects.filter(date=closed.close_date, shift=closed.shift)
        .filter(Q(from_account__group__in=CASH_GROUPS) | Q(to_account__group__in=CASH_GROUPS))
        .select_related("from_account", "to_account")
        .order_by("id")
    )
    # Direction decides the side: into cash is a receipt, out of cash a payment
    receipts = [_voucher_row(v) for v in vouchers if v.to_account.group in CASH_GROUPS]
    payments = [_voucher_row(v) for v in vouchers if v.from_account.group in CASH_GROUPS]
    return {
        "shift_closed_id": closed.id,
        "close_date": closed.close_date,
        "shift": closed.shift.name,
        "closed_by": closed.closed_by,
        "figures": closed.daily_reading.figures(),
        "receipts": receipts,
        "payments": payments,
    }
