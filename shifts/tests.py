"""
Tests for shift closing: figures, locking, stock movement and the cash book.
"""
from datetime import date, timedelta
from decimal import Decimal

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from billing.models import BankSale, CreditSale, Purchase
from inventory.models import Product, ProductRate, Stock, Unit
from ledger.exceptions import AlreadyClosed, IncompleteData
from ledger.models import Account, AccountGroup, SourceType, Transaction, Voucher, VoucherType
from ledger.services.balance_sheet import build_balance_sheet
from ledger.services.books import cash_book, cash_book_shift
from ledger.services.replay import replay
from shifts.models import DailyReading, Dispenser, DispenserReading, Shift, ShiftClosed
from shifts.services.closing import (
    available_shifts,
    close_shift,
    closed_shift_ids,
    record_other_product_sale,
    submit_dispenser_reading,
)
from shifts.services.listing import closed_shift_list, monthly_dispenser_report

CLOSE_DATE = date(2025, 2, 1)


def make_station():
    """
    One fuel dispenser, one lubricant, the control accounts and a customer,
    supplier, bank and office account. Returns a dict of the objects.
    """
    s = {}
    s["cash"] = Account.objects.create(name="Cash in Hand", ac_number="CASH-1", group=AccountGroup.CASH_IN_HAND)
    s["sales"] = Account.objects.create(name="Sales", ac_number="SALES-1", group=AccountGroup.INCOME)
    s["purchase"] = Account.objects.create(name="Purchase", ac_number="PUR-1", group=AccountGroup.EXPENSE)
    s["bank"] = Account.objects.create(name="City Bank", ac_number="CB-1", group=AccountGroup.BANK_ACCOUNT)
    s["customer"] = Account.objects.create(name="Rahim Transport", ac_number="CUS-1", group=AccountGroup.CUSTOMER)
    s["supplier"] = Account.objects.create(name="Meghna Petroleum", ac_number="SUP-1", group=AccountGroup.SUPPLIER)
    s["office"] = Account.objects.create(name="Office Cash", ac_number="OFF-1", group=AccountGroup.ASSET)
    s["utilities"] = Account.objects.create(name="Utilities", ac_number="UTL-1", group=AccountGroup.OTHER)

    litre = Unit.objects.create(symbol="Ltr")
    pcs = Unit.objects.create(symbol="Pcs")
    s["diesel"] = Product.objects.create(name="Diesel", unit=litre, is_fuel=True)
    s["lube"] = Product.objects.create(name="Engine Oil 1L", unit=pcs)
    ProductRate.objects.create(
        product=s["diesel"], applicable_from=date(2025, 1, 1),
        purchase_price=Decimal("90.00"), sales_price=Decimal("100.00"),
    )
    ProductRate.objects.create(
        product=s["lube"], applicable_from=date(2025, 1, 1),
        purchase_price=Decimal("400.00"), sales_price=Decimal("500.00"),
    )

    s["morning"] = Shift.objects.create(name="Morning")
    s["evening"] = Shift.objects.create(name="Evening")
    s["d1"] = Dispenser.objects.create(name="D1", product=s["diesel"], opening_reading=Decimal("1000.00"))
    return s


def make_voucher(no, vtype, src, dst, amount, shift, on_date=CLOSE_DATE, **extra):
    return Voucher.objects.create(
        voucher_no=no, voucher_type=vtype, date=on_date, shift=shift,
        from_account=src, to_account=dst, amount=Decimal(amount), **extra,
    )


def book_shift_activity(s, on_date=CLOSE_DATE, shift=None):
    """Purchases, sales and vouchers for one shift (see ShiftCloseTests for the expected figures)."""
    shift = shift or s["evening"]
    Purchase.objects.create(
        date=on_date, supplier=s["supplier"], product=s["diesel"],
        quantity=Decimal("100"), unit_price=Decimal("90.00"), amount=Decimal("9000.00"),
    )
    Purchase.objects.create(
        date=on_date, supplier=s["supplier"], product=s["lube"],
        quantity=Decimal("10"), unit_price=Decimal("400.00"), amount=Decimal("4000.00"),
    )
    CreditSale.objects.create(
        date=on_date, shift=shift, customer=s["customer"], product=s["diesel"],
        quantity=Decimal("10"), unit_price=Decimal("100.00"), amount=Decimal("1000.00"),
    )
    BankSale.objects.create(date=on_date, shift=shift, account=s["bank"], product=s["lube"], amount=Decimal("300.00"))

    def voucher(no, vtype, src, dst, amount, **extra):
        return Voucher.objects.create(
            voucher_no=no, voucher_type=vtype, date=on_date, shift=shift,
            from_account=src, to_account=dst, amount=Decimal(amount), **extra,
        )

    voucher("RV-1", VoucherType.RECEIPT, s["customer"], s["cash"], "400.00")
    voucher("PV-1", VoucherType.PAYMENT, s["cash"], s["supplier"], "2000.00")
    voucher("PV-2", VoucherType.PAYMENT, s["cash"], s["utilities"], "100.00", expense_head="Electricity")
    voucher("PV-3", VoucherType.PAYMENT, s["cash"], s["office"], "500.00", is_office_payment=True)


class ShiftCloseTests(TestCase):
    def setUp(self):
        self.s = make_station()
        book_shift_activity(self.s)
        self.shift = self.s["evening"]

    def _close(self):
        return close_shift(
            CLOSE_DATE,
            self.shift.id,
            readings=[{"dispenser_id": self.s["d1"].id, "end_reading": "1050.00", "meter_test": "2.00"}],
            other_sales=[{"product_id": self.s["lube"].id, "sell_quantity": "2"}],
            closed_by="manager",
        )

    def test_figures(self):
        closed = self._close()
        r = closed.daily_reading

        self.assertEqual(r.credit_sales, Decimal("1000.00"))
        self.assertEqual(r.bank_sales, Decimal("300.00"))
        self.assertEqual(r.cash_sales, Decimal("4500.00"))
        self.assertEqual(r.credit_sales_other, Decimal("0.00"))
        self.assertEqual(r.bank_sales_other, Decimal("300.00"))
        self.assertEqual(r.cash_sales_other, Decimal("700.00"))
        self.assertEqual(r.cash_receive, Decimal("400.00"))
        self.assertEqual(r.total_cash, Decimal("4900.00"))
        self.assertEqual(r.cash_payment, Decimal("2100.00"))
        self.assertEqual(r.office_payment, Decimal("500.00"))
        self.assertEqual(r.final_due_amount, Decimal("2300.00"))

    def test_dispenser_reading_is_frozen(self):
        closed = self._close()
        reading = DispenserReading.objects.get(shift_closed=closed)
        self.assertEqual(reading.start_reading, Decimal("1000.00"))
        self.assertEqual(reading.net_reading, Decimal("48.00"))
        self.assertEqual(reading.item_rate, Decimal("100.00"))
        self.assertEqual(reading.total_sale, Decimal("4800.00"))

    def test_cash_sales_identity(self):
        closed = self._close()
        fuel = sum(r.total_sale for r in closed.dispenser_readings.all())
        other = sum(o.total_sales for o in closed.other_product_sales.all())
        r = closed.daily_reading
        self.assertEqual(fuel + other - r.credit_sales - r.bank_sales, r.cash_sales)

    def test_close_twice(self):
        self._close()
        with self.assertRaises(AlreadyClosed):
            close_shift(CLOSE_DATE, self.shift.id)
        self.assertEqual(DailyReading.objects.filter(date=CLOSE_DATE, shift=self.shift).count(), 1)
        self.assertEqual(ShiftClosed.objects.count(), 1)

    def test_unique_constraint_backs_the_precheck(self):
        # A concurrent close that already wrote its DailyReading
        DailyReading.objects.create(date=CLOSE_DATE, shift=self.shift)
        with self.assertRaises(AlreadyClosed):
            self._close()
        self.assertFalse(ShiftClosed.objects.exists())
        self.assertFalse(DispenserReading.objects.exists())

    def test_closed_pair_is_locked(self):
        self._close()
        self.assertEqual(closed_shift_ids(CLOSE_DATE), [self.shift.id])
        self.assertNotIn(self.shift, list(available_shifts(CLOSE_DATE)))
        self.assertIn(self.shift, list(available_shifts(CLOSE_DATE + timedelta(days=1))))

        with self.assertRaises(AlreadyClosed):
            CreditSale.objects.create(
                date=CLOSE_DATE, shift=self.shift, customer=self.s["customer"],
                product=self.s["diesel"], amount=Decimal("10.00"),
            )
        with self.assertRaises(AlreadyClosed):
            Voucher.objects.create(
                voucher_no="RV-9", voucher_type=VoucherType.RECEIPT, date=CLOSE_DATE, shift=self.shift,
                from_account=self.s["customer"], to_account=self.s["cash"], amount=Decimal("1.00"),
            )
        with self.assertRaises(AlreadyClosed):
            submit_dispenser_reading(CLOSE_DATE, self.shift.id, self.s["d1"].id, Decimal("1100.00"))

    def test_posts_cash_sales_and_moves_stock(self):
        closed = self._close()
        legs = Transaction.objects.filter(source_type=SourceType.SHIFT_CLOSE, source_id=closed.id)
        self.assertEqual(legs.get(account=self.s["cash"]).transaction_type, "Cr")
        self.assertEqual(legs.get(account=self.s["sales"]).amount, Decimal("4500.00"))

        self.assertEqual(Stock.objects.get(product=self.s["diesel"]).current_stock, Decimal("52.000"))
        self.assertEqual(Stock.objects.get(product=self.s["lube"]).current_stock, Decimal("8.000"))

    def test_next_cycle_starts_from_last_closed_reading(self):
        self._close()
        reading = submit_dispenser_reading(
            CLOSE_DATE + timedelta(days=1), self.s["morning"].id, self.s["d1"].id, Decimal("1080.00")
        )
        self.assertEqual(reading.start_reading, Decimal("1050.00"))
        self.assertEqual(reading.net_reading, Decimal("30.00"))

    def test_cash_book_matches_cash_account_replay(self):
        self._close()
        book = cash_book(CLOSE_DATE, CLOSE_DATE)
        self.assertEqual(len(book["rows"]), 1)
        self.assertEqual(book["closing_balance"], Decimal("2300.00"))
        self.assertEqual(book["closing_balance"], replay(self.s["cash"].id, CLOSE_DATE, CLOSE_DATE)["closing_balance"])

    def test_cash_book_shift_detail(self):
        closed = self._close()
        detail = cash_book_shift(closed.id)
        self.assertEqual([v["voucher_no"] for v in detail["receipts"]], ["RV-1"])
        self.assertEqual([v["voucher_no"] for v in detail["payments"]], ["PV-1", "PV-2", "PV-3"])
        self.assertEqual(detail["figures"]["final_due_amount"], Decimal("2300.00"))

    def test_balance_sheet_after_close(self):
        self._close()
        sheet = build_balance_sheet(as_of_date=CLOSE_DATE)
        assets = {r["bucket"]: r["total"] for r in sheet["assets"]}
        liabilities = {r["bucket"]: r["total"] for r in sheet["liabilities"]}

        self.assertEqual(assets["Cash in Hand"], Decimal("2300.00"))
        self.assertEqual(assets["Bank Deposit"], Decimal("300.00"))
        self.assertEqual(assets["Customer Due"], Decimal("600.00"))
        self.assertEqual(assets["Other Assets"], Decimal("500.00"))
        self.assertEqual(assets["In Stock Product"], Decimal("7880.00"))
        self.assertEqual(liabilities["Purchase Due"], Decimal("11000.00"))
        self.assertEqual(sheet["net_worth"], Decimal("580.00"))
        self.assertEqual(sheet["net_worth"], sheet["total_assets"] - sheet["total_liabilities"])

        trading = sheet["trading_summary"]
        self.assertEqual(trading["total_sales"], Decimal("5800.00"))
        self.assertEqual(trading["total_purchases"], Decimal("13000.00"))
        self.assertEqual(trading["total_admin_expenses"], Decimal("100.00"))
        self.assertEqual(trading["gross_profit"], Decimal("-7200.00"))
        self.assertEqual(trading["net_profit"], Decimal("-7300.00"))
        self.assertEqual(
            trading["cash_sales"] + trading["credit_sales"] + trading["bank_sales"], trading["total_sales"]
        )


class IncompleteDataTests(TestCase):
    def setUp(self):
        self.s = make_station()

    def test_missing_dispenser_reading(self):
        Dispenser.objects.create(name="D2", product=self.s["diesel"], opening_reading=Decimal("0.00"))
        submit_dispenser_reading(CLOSE_DATE, self.s["morning"].id, self.s["d1"].id, Decimal("1010.00"))

        with self.assertRaises(IncompleteData) as ctx:
            close_shift(CLOSE_DATE, self.s["morning"].id)
        self.assertEqual(ctx.exception.details["missing_dispensers"], ["D2"])
        self.assertFalse(DailyReading.objects.exists())

    def test_failed_close_rolls_back_submitted_readings(self):
        Dispenser.objects.create(name="D2", product=self.s["diesel"])
        with self.assertRaises(IncompleteData):
            close_shift(
                CLOSE_DATE,
                self.s["morning"].id,
                readings=[{"dispenser_id": self.s["d1"].id, "end_reading": "1010.00"}],
            )
        self.assertFalse(DispenserReading.objects.exists())

    def test_end_reading_below_start(self):
        with self.assertRaises(IncompleteData):
            submit_dispenser_reading(CLOSE_DATE, self.s["morning"].id, self.s["d1"].id, Decimal("999.00"))

    def test_missing_sales_price(self):
        kerosene = Product.objects.create(name="Kerosene", is_fuel=True)
        Dispenser.objects.create(name="K1", product=kerosene)
        with self.assertRaises(IncompleteData):
            submit_dispenser_reading(CLOSE_DATE, self.s["morning"].id, Dispenser.objects.get(name="K1").id, "10")

    def test_fuel_is_not_an_other_product(self):
        with self.assertRaises(IncompleteData):
            record_other_product_sale(CLOSE_DATE, self.s["morning"].id, self.s["diesel"].id, "1")

    def test_unknown_shift(self):
        with self.assertRaises(IncompleteData):
            close_shift(CLOSE_DATE, 999999)


class CloseShiftCommandTests(TestCase):
    def setUp(self):
        self.s = make_station()

    def test_closes_with_submitted_readings(self):
        submit_dispenser_reading(CLOSE_DATE, self.s["morning"].id, self.s["d1"].id, Decimal("1010.00"))
        call_command("close_shift", date="2025-02-01", shift=self.s["morning"].id, closed_by="ops")
        closed = ShiftClosed.objects.get()
        self.assertEqual(closed.closed_by, "ops")
        self.assertEqual(closed.daily_reading.cash_sales, Decimal("1000.00"))

    def test_reports_domain_errors(self):
        with self.assertRaises(CommandError):
            call_command("close_shift", date="2025-02-01", shift=self.s["morning"].id)


class CashBookReconciliationTests(TestCase):
    def setUp(self):
        self.s = make_station()

    def _close(self, on_date, shift, end_reading):
        return close_shift(on_date, shift.id, readings=[{"dispenser_id": self.s["d1"].id, "end_reading": end_reading}])

    def _contra_vouchers(self):
        s = self.s
        # Withdrawal booked as a payment and deposit booked as a receipt
        make_voucher("PV-W", VoucherType.PAYMENT, s["bank"], s["cash"], "700.00", s["morning"])
        make_voucher("RV-D", VoucherType.RECEIPT, s["cash"], s["bank"], "200.00", s["morning"])

    def test_contra_vouchers_count_by_direction(self):
        self._contra_vouchers()
        closed = self._close(CLOSE_DATE, self.s["morning"], "1010.00")
        r = closed.daily_reading

        self.assertEqual(r.cash_sales, Decimal("1000.00"))
        self.assertEqual(r.cash_receive, Decimal("700.00"))
        self.assertEqual(r.cash_payment, Decimal("200.00"))
        self.assertEqual(r.bank_receive, Decimal("200.00"))
        self.assertEqual(r.bank_payment, Decimal("700.00"))
        self.assertEqual(r.final_due_amount, Decimal("1500.00"))

        book = cash_book(CLOSE_DATE, CLOSE_DATE)
        self.assertEqual(book["closing_balance"], Decimal("1500.00"))
        self.assertEqual(book["closing_balance"], replay(self.s["cash"].id, CLOSE_DATE, CLOSE_DATE)["closing_balance"])

        detail = cash_book_shift(closed.id)
        self.assertEqual([v["voucher_no"] for v in detail["receipts"]], ["PV-W"])
        self.assertEqual([v["voucher_no"] for v in detail["payments"]], ["RV-D"])

    def test_cash_book_matches_full_history_replay(self):
        s = self.s
        day1, day2 = CLOSE_DATE, CLOSE_DATE + timedelta(days=1)

        self._contra_vouchers()
        self._close(day1, s["morning"], "1010.00")

        make_voucher("RV-1", VoucherType.RECEIPT, s["customer"], s["cash"], "400.00", s["evening"])
        make_voucher("PV-1", VoucherType.PAYMENT, s["cash"], s["utilities"], "100.00", s["evening"], expense_head="Electricity")
        make_voucher("PV-2", VoucherType.PAYMENT, s["cash"], s["office"], "300.00", s["evening"], is_office_payment=True)
        self._close(day1, s["evening"], "1030.00")

        CreditSale.objects.create(
            date=day2, shift=s["morning"], customer=s["customer"], product=s["diesel"], amount=Decimal("200.00"),
        )
        self._close(day2, s["morning"], "1035.00")

        book = cash_book(None, day2)
        self.assertEqual(
            [row["balance"] for row in book["rows"]],
            [Decimal("1500.00"), Decimal("3500.00"), Decimal("3800.00")],
        )
        self.assertEqual(book["closing_balance"], replay(s["cash"].id, None, day2)["closing_balance"])
        for day in (day1, day2):
            last = [row for row in book["rows"] if row["close_date"] == day][-1]
            self.assertEqual(last["balance"], replay(s["cash"].id, None, day)["closing_balance"])


class DispenserChainTests(TestCase):
    def setUp(self):
        self.s = make_station()

    def _submit(self, shift, end_reading, on_date=CLOSE_DATE):
        return submit_dispenser_reading(on_date, shift.id, self.s["d1"].id, Decimal(end_reading))

    def test_pending_earlier_cycle_is_the_start(self):
        self._submit(self.s["morning"], "1050.00")
        self._submit(self.s["evening"], "1100.00")
        close_shift(CLOSE_DATE, self.s["morning"].id)
        close_shift(CLOSE_DATE, self.s["evening"].id)

        readings = list(DispenserReading.objects.order_by("shift_id"))
        self.assertEqual(
            [(r.start_reading, r.net_reading) for r in readings],
            [(Decimal("1000.00"), Decimal("50.00")), (Decimal("1050.00"), Decimal("50.00"))],
        )
        self.assertEqual(sum(r.net_reading for r in readings), Decimal("100.00"))

    def test_resubmitted_earlier_reading_is_picked_up_at_close(self):
        evening = self._submit(self.s["evening"], "1100.00")
        self.assertEqual(evening.start_reading, Decimal("1000.00"))
        self._submit(self.s["morning"], "1040.00")

        close_shift(CLOSE_DATE, self.s["morning"].id)
        closed = close_shift(CLOSE_DATE, self.s["evening"].id)

        evening.refresh_from_db()
        self.assertEqual(evening.start_reading, Decimal("1040.00"))
        self.assertEqual(evening.net_reading, Decimal("60.00"))
        self.assertEqual(closed.daily_reading.cash_sales, Decimal("6000.00"))

    def test_earlier_cycle_is_locked_once_a_later_one_is_closed(self):
        self._submit(self.s["evening"], "1050.00")
        close_shift(CLOSE_DATE, self.s["evening"].id)
        with self.assertRaises(AlreadyClosed):
            self._submit(self.s["morning"], "1020.00")


class ClosedShiftListingTests(TestCase):
    def setUp(self):
        self.s = make_station()
        book_shift_activity(self.s)
        close_shift(
            CLOSE_DATE,
            self.s["evening"].id,
            readings=[{"dispenser_id": self.s["d1"].id, "end_reading": "1050.00", "meter_test": "2.00"}],
            other_sales=[{"product_id": self.s["lube"].id, "sell_quantity": "2"}],
        )
        self.next_day = CLOSE_DATE + timedelta(days=1)
        close_shift(
            self.next_day,
            self.s["morning"].id,
            readings=[{"dispenser_id": self.s["d1"].id, "end_reading": "1060.00"}],
        )

    def test_closed_shift_list(self):
        listing = closed_shift_list()
        self.assertEqual(listing["count"], 2)
        self.assertEqual([(r["close_date"], r["shift"]) for r in listing["rows"]],
                         [(self.next_day, "Morning"), (CLOSE_DATE, "Evening")])

        evening = closed_shift_list(shift_id=self.s["evening"].id)
        self.assertEqual(evening["rows"][0]["figures"]["final_due_amount"], Decimal("2300.00"))
        self.assertEqual(closed_shift_list(search="morn")["count"], 1)
        self.assertEqual(closed_shift_list(start_date=self.next_day)["count"], 1)

        page2 = closed_shift_list(page=2, per_page=1)
        self.assertEqual(page2["num_pages"], 2)
        self.assertEqual([r["shift"] for r in page2["rows"]], ["Evening"])

    def test_monthly_dispenser_report(self):
        report = monthly_dispenser_report(CLOSE_DATE, CLOSE_DATE)
        row = report["rows"][0]
        sales = {p["product"]: p for p in row["product_sales"]}

        self.assertEqual(sales["Diesel"]["quantity"], Decimal("48.00"))
        self.assertEqual(sales["Diesel"]["price"], Decimal("100.00"))
        self.assertEqual(sales["Diesel"]["amount"], Decimal("4800.00"))
        self.assertEqual(sales["Engine Oil 1L"]["amount"], Decimal("1000.00"))
        self.assertEqual(row["received_due_paid"], Decimal("400.00"))
        self.assertEqual(row["credit_sale"], Decimal("1000.00"))
        self.assertEqual(row["bank_sale"], Decimal("300.00"))
        self.assertEqual(row["expenses"], Decimal("2600.00"))
        self.assertEqual(row["total_balance"], Decimal("2300.00"))

        only_lube = monthly_dispenser_report(CLOSE_DATE, CLOSE_DATE, product_id=self.s["lube"].id)
        self.assertEqual([p["product"] for p in only_lube["rows"][0]["product_sales"]], ["Engine Oil 1L"])

        paged = monthly_dispenser_report(page=2, per_page=1)
        self.assertEqual(paged["rows"][0]["sl"], 2)
        self.assertEqual(paged["totals"]["amount"], Decimal("5900.00"))
        self.assertEqual(paged["totals"]["total_balance"], Decimal("3300.00"))
