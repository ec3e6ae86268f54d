"""
Control accounts: the configured cash, sales and purchase accounts that take
the opposite leg of system-generated postings (shift close, credit/bank sales,
purchases).
"""
from django.conf import settings

from ledger.exceptions import IncompleteData
from ledger.models import Account, AccountGroup, PaymentType

CONTROL_ACCOUNTS = {
    "cash": ("CASH_ACCOUNT_NUMBER", AccountGroup.CASH_IN_HAND),
    "sales": ("SALES_ACCOUNT_NUMBER", AccountGroup.INCOME),
    "purchase": ("PURCHASE_ACCOUNT_NUMBER", AccountGroup.EXPENSE),
}


def control_account(kind: str) -> Account:
    """
    Resolve a control account by its configured ac_number, or the first active
    account of its natural group when none is configured.
    """
    setting_key, group = CONTROL_ACCOUNTS[kind]
    ac_number = settings.BACKOFFICE.get(setting_key)
    if ac_number:
        account = Account.objects.filter(ac_number=ac_number).first()
        if account is None:
            raise IncompleteData(
                f"Configured {kind} account {ac_number} does not exist.",
                details={"setting": setting_key},
            )
        return account
    account = Account.objects.filter(group=group, status=True).order_by("id").first()
    if account is None:
        raise IncompleteData(
            f"No {kind} account configured and no active {group} account found.",
            details={"setting": setting_key},
        )
    return account


def payment_type_for(account: Account) -> str:
    if account.group == AccountGroup.MOBILE_BANK:
        return PaymentType.MOBILE_BANK
    if account.group == AccountGroup.BANK_ACCOUNT:
        return PaymentType.BANK
    return PaymentType.CASH
