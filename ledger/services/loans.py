"""
Loan summary over BANK_LOAN accounts.

A loan drawn moves money out of the lender account (Dr) and a repayment moves
it back in (Cr), so total_loan / total_payment are the replayed debit / credit
totals and outstanding = total_loan - total_payment.
"""
from django.db.models import Q

from ledger.constants import LOAN_GROUPS
from ledger.models import Account, Voucher
from ledger.services.replay import get_account, replay
from ledger.utils import ZERO, money

RECENT_LIMIT = 5


def _loan_figures(account):
    result = replay(account)
    return {
        "id": account.id,
        "lender_name": account.name,
        "account_number": account.ac_number,
        "status": "active" if account.status else "inactive",
        "total_loan": result["total_debit"],
        "total_payment": result["total_credit"],
        "outstanding": result["total_debit"] - result["total_credit"],
    }


def loan_summary(search="", status=None) -> dict:
    """status is "active", "inactive" or None for both."""
    qs = Account.objects.filter(group__in=LOAN_GROUPS)
    if search:
        search = search.strip()
        qs = qs.filter(Q(name__icontains=search) | Q(ac_number__icontains=search))
    if status:
        qs = qs.filter(status=(status == "active"))

    rows = [_loan_figures(account) for account in qs.order_by("name", "id")]
    return {
        "rows": rows,
        "total_loan": money(sum((r["total_loan"] for r in rows), ZERO)),
        "total_payment": money(sum((r["total_payment"] for r in rows), ZERO)),
        "total_outstanding": money(sum((r["outstanding"] for r in rows), ZERO)),
    }


def _voucher_rows(qs):
    return [
        {
            "id": v.id,
            "voucher_no": v.voucher_no,
            "date": v.date,
            "amount": v.amount,
            "description": v.description,
        }
        for v in qs.order_by("-date", "-id")[:RECENT_LIMIT]
    ]


def loan_detail(account_id) -> dict:
    """Figures of one lender account with its latest drawings and repayments."""
    account = get_account(account_id, groups=LOAN_GROUPS)
    vouchers = Voucher.objects.all()
    return {
        **_loan_figures(account),
        "recent_loans": _voucher_rows(vouchers.filter(from_account=account)),
        "recent_payments": _voucher_rows(vouchers.filter(to_account=account)),
    }
