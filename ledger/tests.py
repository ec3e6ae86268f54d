"""
Tests for the ledger: posting, replay, statements, bank book and balance sheet.
"""
import random
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db.models import ProtectedError
from django.test import TestCase
from django.utils import timezone

from ledger.exceptions import AccountNotFound, InvalidDateRange
from ledger.models import Account, AccountGroup, SourceType, Transaction, TransactionType, Voucher, VoucherType
from ledger.services.balance_sheet import build_balance_sheet, classify
from ledger.services.books import bank_book, bank_book_account, get_ledger
from ledger.services.loans import loan_detail, loan_summary
from ledger.services.replay import net_effect_before, replay
from shifts.models import Shift


def _ts(day, hour=10, minute=0):
    return timezone.make_aware(datetime(day.year, day.month, day.day, hour, minute))


def _post(debit, credit, amount, when):
    return Transaction.post_pair(
        debit,
        credit,
        Decimal(amount),
        source_type=SourceType.RECEIPT_VOUCHER,
        source_id=1,
        timestamp=when,
    )


def _account(name, group, ac_number=None):
    return Account.objects.create(name=name, ac_number=ac_number or name.upper().replace(" ", "-"), group=group)


class ReplayTests(TestCase):
    def setUp(self):
        self.cash = _account("Cash", AccountGroup.CASH_IN_HAND)
        self.other = _account("Suspense", AccountGroup.OTHER)

    def test_cash_in_hand_running_balance(self):
        day = date(2025, 1, 15)
        _post(self.other, self.cash, "5000.00", _ts(day, 9))
        _post(self.cash, self.other, "1200.50", _ts(day, 11))
        _post(self.other, self.cash, "300.00", _ts(day, 15))

        result = replay(self.cash.id, day, day)

        self.assertEqual(
            [r["balance"] for r in result["rows"]],
            [Decimal("5000.00"), Decimal("3799.50"), Decimal("4099.50")],
        )
        self.assertEqual(result["total_debit"], Decimal("1200.50"))
        self.assertEqual(result["total_credit"], Decimal("5300.00"))
        self.assertEqual(result["closing_balance"], Decimal("4099.50"))
        self.assertEqual([r["transaction_type"] for r in result["rows"]], ["Cr", "Dr", "Cr"])

    def test_same_timestamp_is_ordered_by_id(self):
        when = _ts(date(2025, 1, 2))
        _post(self.cash, self.other, "10.00", when)
        _post(self.other, self.cash, "30.00", when)
        rows = replay(self.cash.id)["rows"]
        self.assertEqual([r["balance"] for r in rows], [Decimal("-10.00"), Decimal("20.00")])

    def test_unknown_account(self):
        with self.assertRaises(AccountNotFound):
            replay(999999)

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(InvalidDateRange):
            replay(self.cash.id, date(2025, 2, 1), date(2025, 1, 1))

    def test_empty_window(self):
        _post(self.other, self.cash, "50.00", _ts(date(2025, 1, 1)))
        result = replay(self.cash.id, date(2025, 3, 1), date(2025, 3, 31), opening_balance=Decimal("7.00"))
        self.assertEqual(result["rows"], [])
        self.assertEqual(result["total_debit"], Decimal("0.00"))
        self.assertEqual(result["total_credit"], Decimal("0.00"))
        self.assertEqual(result["closing_balance"], Decimal("7.00"))

    def test_incremental_replay_matches_full_replay(self):
        start = date(2025, 1, 1)
        for i in range(10):
            day = start + timedelta(days=i)
            _post(self.other, self.cash, f"{100 + i}.25", _ts(day, 9))
            _post(self.cash, self.other, f"{40 + i}.10", _ts(day, 17))

        s, e = date(2025, 1, 5), date(2025, 1, 10)
        full = replay(self.cash.id, None, e)["closing_balance"]
        before = net_effect_before(self.cash.id, s)
        window = replay(self.cash.id, s, e)

        self.assertEqual(window["closing_balance"], full - before)
        self.assertEqual(replay(self.cash.id, s, e, opening_balance=before)["closing_balance"], full)

    def test_exact_totals_over_ten_thousand_transactions(self):
        rng = random.Random(20250201)
        base = _ts(date(2024, 1, 1))
        rows = []
        expected_dr = Decimal("0.00")
        expected_cr = Decimal("0.00")
        for i in range(10_000):
            amount = Decimal(rng.randint(1, 99_999_99)) / 100
            if rng.random() < 0.5:
                kind = TransactionType.DEBIT
                expected_dr += amount
            else:
                kind = TransactionType.CREDIT
                expected_cr += amount
            rows.append(Transaction(
                account=self.cash,
                transaction_type=kind,
                amount=amount,
                timestamp=base + timedelta(minutes=i),
                entry_no=uuid.uuid4().hex,
                source_type=SourceType.SHIFT_CLOSE,
                source_id=i + 1,
            ))
        Transaction.objects.bulk_create(rows, batch_size=500)

        result = replay(self.cash.id)

        self.assertEqual(len(result["rows"]), 10_000)
        self.assertEqual(result["total_debit"], expected_dr)
        self.assertEqual(result["total_credit"], expected_cr)
        self.assertEqual(result["total_credit"] - result["total_debit"], result["closing_balance"])
        self.assertEqual(result["rows"][-1]["balance"], result["closing_balance"])


class TransactionTests(TestCase):
    def setUp(self):
        self.cash = _account("Cash", AccountGroup.CASH_IN_HAND)
        self.bank = _account("City Bank", AccountGroup.BANK_ACCOUNT)

    def test_pair_is_balanced(self):
        dr, cr = _post(self.cash, self.bank, "250.00", _ts(date(2025, 1, 1)))
        self.assertEqual(dr.entry_no, cr.entry_no)
        self.assertEqual((dr.transaction_type, cr.transaction_type), ("Dr", "Cr"))
        self.assertEqual(dr.amount, cr.amount)

    def test_rows_are_append_only(self):
        dr, _ = _post(self.cash, self.bank, "250.00", _ts(date(2025, 1, 1)))
        dr.amount = Decimal("1.00")
        with self.assertRaises(ValidationError):
            dr.save()
        with self.assertRaises(ValidationError):
            dr.delete()

    def test_referenced_account_cannot_be_deleted(self):
        _post(self.cash, self.bank, "250.00", _ts(date(2025, 1, 1)))
        with self.assertRaises(ProtectedError):
            self.cash.delete()
        self.cash.deactivate()
        self.cash.refresh_from_db()
        self.assertFalse(self.cash.status)

    def test_rejects_same_account_and_non_positive_amount(self):
        with self.assertRaises(ValidationError):
            _post(self.cash, self.cash, "10.00", _ts(date(2025, 1, 1)))
        with self.assertRaises(ValidationError):
            _post(self.cash, self.bank, "0.00", _ts(date(2025, 1, 1)))

    def test_voucher_posts_from_debit_to_credit(self):
        shift = Shift.objects.create(name="Morning")
        v = Voucher.objects.create(
            voucher_no="PV-1",
            voucher_type=VoucherType.PAYMENT,
            date=date(2025, 1, 3),
            shift=shift,
            from_account=self.cash,
            to_account=self.bank,
            amount=Decimal("75.00"),
        )
        v.refresh_from_db()
        self.assertTrue(v.is_posted)
        legs = Transaction.objects.filter(source_type=SourceType.PAYMENT_VOUCHER, source_id=v.id)
        self.assertEqual(legs.get(account=self.cash).transaction_type, "Dr")
        self.assertEqual(legs.get(account=self.bank).transaction_type, "Cr")

    def test_check_double_entry_command(self):
        _post(self.cash, self.bank, "250.00", _ts(date(2025, 1, 1)))
        call_command("check_double_entry")

        Transaction.objects.bulk_create([Transaction(
            account=self.cash,
            transaction_type=TransactionType.DEBIT,
            amount=Decimal("5.00"),
            timestamp=_ts(date(2025, 1, 2)),
            entry_no="orphan",
            source_type=SourceType.SHIFT_CLOSE,
            source_id=1,
        )])
        with self.assertRaises(CommandError):
            call_command("check_double_entry", account=self.cash.ac_number)


class StatementTests(TestCase):
    def setUp(self):
        self.bank = _account("City Bank", AccountGroup.BANK_ACCOUNT, "CB-001")
        self.wallet = _account("bKash", AccountGroup.MOBILE_BANK, "BK-001")
        self.other = _account("Suspense", AccountGroup.OTHER)
        for i in range(25):
            when = _ts(date(2025, 1, 1) + timedelta(days=i))
            if i % 3 == 2:
                _post(self.bank, self.other, "40.00", when)
            else:
                _post(self.other, self.bank, "100.00", when)
        _post(self.other, self.wallet, "60.00", _ts(date(2025, 1, 5)))

    def test_pagination_keeps_running_balance(self):
        full = replay(self.bank.id, date(2025, 1, 1), date(2025, 1, 31))
        page1 = get_ledger(self.bank.id, date(2025, 1, 1), date(2025, 1, 31), page=1, per_page=10)
        page2 = get_ledger(self.bank.id, date(2025, 1, 1), date(2025, 1, 31), page=2, per_page=10)
        page3 = get_ledger(self.bank.id, date(2025, 1, 1), date(2025, 1, 31), page=3, per_page=10)

        self.assertEqual(page1["num_pages"], 3)
        self.assertEqual(len(page3["rows"]), 5)
        self.assertEqual(page2["balance_brought_forward"], page1["rows"][-1]["balance"])
        self.assertEqual(page3["balance_brought_forward"], page2["rows"][-1]["balance"])
        self.assertEqual(
            [r["balance"] for r in page1["rows"] + page2["rows"] + page3["rows"]],
            [r["balance"] for r in full["rows"]],
        )
        self.assertEqual(page2["closing_balance"], full["closing_balance"])
        self.assertEqual(page2["total_debit"], full["total_debit"])

    def test_carry_forward_opening(self):
        statement = get_ledger(self.bank.id, date(2025, 1, 10), date(2025, 1, 31), carry_forward=True)
        self.assertEqual(statement["opening_balance"], net_effect_before(self.bank.id, date(2025, 1, 10)))
        self.assertEqual(statement["closing_balance"], replay(self.bank.id)["closing_balance"])

    def test_bank_book_matches_replay(self):
        book = bank_book(date(2025, 1, 1), date(2025, 1, 31))
        by_number = {r["ac_number"]: r for r in book["rows"]}

        self.assertEqual(set(by_number), {"CB-001", "BK-001"})
        self.assertEqual(by_number["CB-001"]["closing_balance"], replay(self.bank.id)["closing_balance"])
        self.assertEqual(by_number["BK-001"]["closing_balance"], Decimal("60.00"))
        self.assertEqual(book["net_balance"], book["total_credit"] - book["total_debit"])

    def test_bank_book_account_only_for_bank_groups(self):
        detail = bank_book_account("CB-001", per_page=10)
        self.assertEqual(detail["account"]["ac_number"], "CB-001")
        self.assertEqual(detail["per_page"], 10)
        with self.assertRaises(AccountNotFound):
            bank_book_account(self.other.ac_number)


class BalanceSheetTests(TestCase):
    def setUp(self):
        self.cash = _account("Cash", AccountGroup.CASH_IN_HAND)
        self.bank = _account("City Bank", AccountGroup.BANK_ACCOUNT)
        self.customer = _account("Rahim Transport", AccountGroup.CUSTOMER)
        self.advance_customer = _account("Karim Bus", AccountGroup.CUSTOMER)
        self.supplier = _account("Meghna Petroleum", AccountGroup.SUPPLIER)
        self.loan = _account("Term Loan", AccountGroup.BANK_LOAN)
        self.security = _account("Security Deposits", AccountGroup.CUSTOMER_SECURITY)
        self.sales = _account("Sales", AccountGroup.INCOME)
        day = date(2025, 1, 10)
        _post(self.loan, self.bank, "50000.00", _ts(day, 9))            # loan received
        _post(self.sales, self.customer, "3000.00", _ts(day, 10))       # credit sale
        _post(self.advance_customer, self.cash, "800.00", _ts(day, 11))  # advance paid in
        _post(self.supplier, self.sales, "12000.00", _ts(day, 12))      # purchase on account
        _post(self.security, self.cash, "1000.00", _ts(day, 13))        # security deposit
        _post(self.sales, self.cash, "2500.00", _ts(day, 14))           # cash sales
        _post(self.cash, self.supplier, "2000.00", _ts(date(2025, 2, 1)))  # after the as-of date

    def test_identity_and_buckets(self):
        sheet = build_balance_sheet(as_of_date=date(2025, 1, 31))
        assets = {r["bucket"]: r["total"] for r in sheet["assets"]}
        liabilities = {r["bucket"]: r["total"] for r in sheet["liabilities"]}

        self.assertEqual(assets["Cash in Hand"], Decimal("4300.00"))
        self.assertEqual(assets["Bank Deposit"], Decimal("50000.00"))
        self.assertEqual(assets["Customer Due"], Decimal("3000.00"))
        self.assertEqual(liabilities["Customer Advance"], Decimal("800.00"))
        self.assertEqual(liabilities["Purchase Due"], Decimal("12000.00"))
        self.assertEqual(liabilities["Bank Loan"], Decimal("50000.00"))
        self.assertEqual(liabilities["Customer Security"], Decimal("1000.00"))
        self.assertEqual(sheet["net_worth"], sheet["total_assets"] - sheet["total_liabilities"])
        self.assertEqual(sheet["net_worth"], Decimal("-6500.00"))

    def test_later_postings_move_the_sheet(self):
        sheet = build_balance_sheet(as_of_date=date(2025, 2, 28))
        liabilities = {r["bucket"]: r["total"] for r in sheet["liabilities"]}
        self.assertEqual(liabilities["Purchase Due"], Decimal("10000.00"))
        self.assertEqual(sheet["net_worth"], sheet["total_assets"] - sheet["total_liabilities"])

    def test_invalid_range(self):
        with self.assertRaises(InvalidDateRange):
            build_balance_sheet(start_date=date(2025, 2, 1), end_date=date(2025, 1, 1))

    def test_classify_signs(self):
        self.assertEqual(classify(AccountGroup.SUPPLIER, Decimal("-5.00")), ("liability", "Purchase Due", Decimal("5.00")))
        self.assertEqual(classify(AccountGroup.SUPPLIER, Decimal("5.00")), ("asset", "Supplier Advance", Decimal("5.00")))
        self.assertIsNone(classify(AccountGroup.INCOME, Decimal("5.00")))


class LoanSummaryTests(TestCase):
    def setUp(self):
        self.bank = _account("City Bank", AccountGroup.BANK_ACCOUNT)
        self.cash = _account("Cash", AccountGroup.CASH_IN_HAND)
        self.loan = _account("Term Loan", AccountGroup.BANK_LOAN, "LN-1")
        self.overdraft = _account("Overdraft", AccountGroup.BANK_LOAN, "OD-1")
        shift = Shift.objects.create(name="Morning")

        def voucher(no, vtype, day, src, dst, amount):
            Voucher.objects.create(
                voucher_no=no, voucher_type=vtype, date=day, shift=shift,
                from_account=src, to_account=dst, amount=Decimal(amount),
            )

        voucher("LV-1", VoucherType.RECEIPT, date(2025, 1, 1), self.loan, self.bank, "50000.00")
        voucher("LP-2", VoucherType.PAYMENT, date(2025, 1, 3), self.bank, self.loan, "12000.00")
        voucher("LV-3", VoucherType.RECEIPT, date(2025, 1, 5), self.loan, self.cash, "5000.00")
        _post(self.overdraft, self.bank, "1000.00", _ts(date(2025, 1, 2)))
        self.overdraft.deactivate()

    def test_summary_figures(self):
        summary = loan_summary()
        rows = {r["account_number"]: r for r in summary["rows"]}

        self.assertEqual(rows["LN-1"]["total_loan"], Decimal("55000.00"))
        self.assertEqual(rows["LN-1"]["total_payment"], Decimal("12000.00"))
        self.assertEqual(rows["LN-1"]["outstanding"], Decimal("43000.00"))
        self.assertEqual(rows["OD-1"]["status"], "inactive")
        self.assertEqual(summary["total_outstanding"], Decimal("44000.00"))

        sheet = build_balance_sheet(as_of_date=date(2025, 1, 31))
        liabilities = {r["bucket"]: r["total"] for r in sheet["liabilities"]}
        self.assertEqual(liabilities["Bank Loan"], summary["total_outstanding"])

    def test_filters(self):
        self.assertEqual([r["account_number"] for r in loan_summary(status="active")["rows"]], ["LN-1"])
        self.assertEqual([r["account_number"] for r in loan_summary(search="over")["rows"]], ["OD-1"])
        self.assertEqual([r["account_number"] for r in loan_summary(search="ln-")["rows"]], ["LN-1"])

    def test_detail(self):
        detail = loan_detail(self.loan.id)
        self.assertEqual([v["voucher_no"] for v in detail["recent_loans"]], ["LV-3", "LV-1"])
        self.assertEqual([v["voucher_no"] for v in detail["recent_payments"]], ["LP-2"])
        self.assertEqual(detail["outstanding"], Decimal("43000.00"))
        with self.assertRaises(AccountNotFound):
            loan_detail(self.bank.id)
