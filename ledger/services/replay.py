"""
Ledger replay: the one place account balances are computed.

Transactions are folded in (timestamp, id) order into a running balance that
starts at the supplied opening balance. Cr adds to the balance, Dr subtracts.
Every book, statement and the balance sheet is built on top of replay().
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db.models import Q, Sum

from ledger.exceptions import AccountNotFound
from ledger.models import Account, Transaction, TransactionType
from ledger.utils import ZERO, check_date_range, day_start, money

logger = logging.getLogger(__name__)


def get_account(account_id, groups=None) -> Account:
    if isinstance(account_id, Account):
        account = account_id
    else:
        account = Account.objects.filter(pk=account_id).first()
    if account is None or (groups and account.group not in groups):
        raise AccountNotFound(f"Account {account_id} not found.", details={"account_id": str(account_id)})
    return account


def _window(account, start_date, end_date):
    qs = Transaction.objects.filter(account=account)
    if start_date:
        qs = qs.filter(timestamp__date__gte=start_date)
    if end_date:
        qs = qs.filter(timestamp__date__lte=end_date)
    return qs.order_by("timestamp", "id")


def replay(account_id, start_date=None, end_date=None, opening_balance=None) -> dict:
    """
    Replay one account over [start_date, end_date] (either bound optional).

    Returns:
    {
      "account": Account,
      "rows": [{"id", "timestamp", "transaction_type", "amount", "debit", "credit",
                "description", "voucher_no", "payment_type", "source_type",
                "source_id", "balance"}, ...],
      "opening_balance": Decimal,
      "total_debit": Decimal,
      "total_credit": Decimal,
      "closing_balance": Decimal,
    }
    """
    check_date_range(start_date, end_date)
    account = get_account(account_id)

    opening = money(opening_balance)
    running = opening
    total_debit = ZERO
    total_credit = ZERO
    rows = []

    fields = (
        "id", "timestamp", "transaction_type", "amount", "description",
        "voucher_no", "payment_type", "source_type", "source_id",
    )
    for txn in _window(account, start_date, end_date).values(*fields).iterator():
        amount = txn["amount"]
        if txn["transaction_type"] == TransactionType.DEBIT:
            running -= amount
            total_debit += amount
            debit, credit = amount, ZERO
        else:
            running += amount
            total_credit += amount
            debit, credit = ZERO, amount
        txn.update(debit=debit, credit=credit, balance=running)
        rows.append(txn)

    logger.debug(
        "Replayed account %s [%s..%s]: %d rows, closing %s",
        account.ac_number, start_date, end_date, len(rows), running,
    )
    return {
        "account": account,
        "rows": rows,
        "opening_balance": opening,
        "total_debit": money(total_debit),
        "total_credit": money(total_credit),
        "closing_balance": money(running),
    }


def net_effect_before(account_id, day) -> Decimal:
    """Net Cr - Dr of every transaction dated before `day`; zero when day is None."""
    account = get_account(account_id)
    if day is None:
        return ZERO
    agg = Transaction.objects.filter(account=account, timestamp__lt=day_start(day)).aggregate(
        cr=Sum("amount", filter=Q(transaction_type=TransactionType.CREDIT), default=ZERO),
        dr=Sum("amount", filter=Q(transaction_type=TransactionType.DEBIT), default=ZERO),
    )
    return money(agg["cr"] - agg["dr"])
