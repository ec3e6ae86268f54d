"""
Verify that every posted entry is one Dr row and one Cr row of the same amount
on two different accounts. Exits with an error when any entry is broken.
"""
from collections import defaultdict

from django.core.management.base import BaseCommand, CommandError

from ledger.models import Account, Transaction, TransactionType


def find_unbalanced_entries(account=None):
    """Return [(entry_no, reason), ...] for entries that are not a proper pair."""
    qs = Transaction.objects.all()
    if account is not None:
        entry_nos = Transaction.objects.filter(account=account).values_list("entry_no", flat=True)
        qs = qs.filter(entry_no__in=entry_nos)

    entries = defaultdict(list)
    for row in qs.values("entry_no", "account_id", "transaction_type", "amount").order_by("entry_no", "id"):
        entries[row["entry_no"]].append(row)

    problems = []
    for entry_no, rows in entries.items():
        if len(rows) != 2:
            problems.append((entry_no, f"{len(rows)} rows"))
            continue
        types = sorted(r["transaction_type"] for r in rows)
        if types != sorted([TransactionType.CREDIT, TransactionType.DEBIT]):
            problems.append((entry_no, f"types {types}"))
        elif rows[0]["amount"] != rows[1]["amount"]:
            problems.append((entry_no, f"amounts {rows[0]['amount']} != {rows[1]['amount']}"))
        elif rows[0]["account_id"] == rows[1]["account_id"]:
            problems.append((entry_no, "same account on both legs"))
    return problems


class Command(BaseCommand):
    help = "Check that every ledger entry is a balanced Dr/Cr pair on two distinct accounts."

    def add_arguments(self, parser):
        parser.add_argument("--account", default=None, help="Only check entries touching this ac_number.")

    def handle(self, *args, **options):
        account = None
        if options["account"]:
            account = Account.objects.filter(ac_number=options["account"]).first()
            if account is None:
                raise CommandError(f"Account {options['account']} not found.")

        problems = find_unbalanced_entries(account)
        if not problems:
            self.stdout.write(self.style.SUCCESS("All entries are balanced."))
            return
        for entry_no, reason in problems:
            self.stdout.write(self.style.WARNING(f"Entry {entry_no}: {reason}"))
        raise CommandError(f"{len(problems)} unbalanced entries found.")
