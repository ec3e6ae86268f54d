import json
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from ledger.models import SourceType, Transaction
from org.models import CompanySetting
from shifts.models import ShiftClosed
from shifts.tests import CLOSE_DATE, book_shift_activity, make_station


class ReportViewTests(TestCase):
    def setUp(self):
        self.s = make_station()
        self.user = get_user_model().objects.create_user(username="accountant", password="pw")
        self.client.force_login(self.user)

    def _close_payload(self):
        return {
            "close_date": str(CLOSE_DATE),
            "shift_id": self.s["evening"].id,
            "closed_by": "accountant",
            "readings": [{"dispenser_id": self.s["d1"].id, "end_reading": "1050.00", "meter_test": "2.00"}],
            "other_sales": [{"product_id": self.s["lube"].id, "sell_quantity": "2"}],
        }

    def _post_close(self, payload):
        return self.client.post(reverse("shifts:close"), data=json.dumps(payload), content_type="application/json")

    def test_requires_login(self):
        self.client.logout()
        resp = self.client.get(reverse("reports:balance_sheet"))
        self.assertEqual(resp.status_code, 302)

    def test_close_endpoint(self):
        book_shift_activity(self.s)
        resp = self._post_close(self._close_payload())
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["figures"]["cash_sales"], "4500.00")
        self.assertEqual(data["figures"]["final_due_amount"], "2300.00")

        again = self._post_close(self._close_payload())
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"]["code"], "already_closed")

        listing = self.client.get(reverse("shifts:closed_on_date"), {"date": "2025-02-01"}).json()
        self.assertEqual(listing["closed_shift_ids"], [self.s["evening"].id])
        self.assertEqual([s["name"] for s in listing["available_shifts"]], ["Morning"])

        closed = ShiftClosed.objects.get()
        detail = self.client.get(reverse("shifts:closed_detail", args=[closed.id])).json()
        self.assertEqual(detail["dispenser_readings"][0]["net_reading"], "48.00")
        self.assertEqual(detail["other_product_sales"][0]["total_sales"], "1000.00")

    def test_close_endpoint_validation(self):
        payload = self._close_payload()
        payload["readings"] = [{"dispenser_id": self.s["d1"].id}]
        resp = self._post_close(payload)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("end_reading", resp.json()["error"]["details"])

        resp = self._post_close({"close_date": str(CLOSE_DATE), "shift_id": self.s["evening"].id})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"]["code"], "incomplete_data")

    def test_account_ledger(self):
        Transaction.post_pair(self.s["utilities"], self.s["cash"], Decimal("5000.00"),
                              source_type=SourceType.RECEIPT_VOUCHER, source_id=1)
        Transaction.post_pair(self.s["cash"], self.s["utilities"], Decimal("1200.50"),
                              source_type=SourceType.PAYMENT_VOUCHER, source_id=2)
        Transaction.post_pair(self.s["utilities"], self.s["cash"], Decimal("300.00"),
                              source_type=SourceType.RECEIPT_VOUCHER, source_id=3)

        resp = self.client.get(reverse("reports:account_ledger", args=[self.s["cash"].id]))
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual([r["balance"] for r in data["rows"]], ["5000.00", "3799.50", "4099.50"])
        self.assertEqual(data["total_debit"], "1200.50")
        self.assertEqual(data["total_credit"], "5300.00")
        self.assertEqual(data["closing_balance"], "4099.50")
        self.assertIsNone(data["company"])

    def test_ledger_errors(self):
        resp = self.client.get(
            reverse("reports:account_ledger", args=[self.s["cash"].id]),
            {"start_date": "2025-02-01", "end_date": "2025-01-01"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"]["code"], "invalid_date_range")

        resp = self.client.get(reverse("reports:account_ledger", args=[999999]))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"]["code"], "account_not_found")

        resp = self.client.get(reverse("reports:account_ledger", args=[self.s["cash"].id]), {"page": "zero"})
        self.assertEqual(resp.status_code, 400)

    def test_books_and_balance_sheet(self):
        book_shift_activity(self.s)
        self._post_close(self._close_payload())

        cash = self.client.get(reverse("reports:cash_book"), {"start_date": "2025-02-01", "end_date": "2025-02-01"})
        self.assertEqual(cash.json()["closing_balance"], "2300.00")

        bank = self.client.get(reverse("reports:bank_book")).json()
        self.assertEqual(bank["rows"][0]["closing_balance"], "300.00")
        detail = self.client.get(reverse("reports:bank_book_account", args=["CB-1"])).json()
        self.assertEqual(detail["count"], 1)
        missing = self.client.get(reverse("reports:bank_book_account", args=["CASH-1"]))
        self.assertEqual(missing.status_code, 404)

        sheet = self.client.get(reverse("reports:balance_sheet"), {"as_of": "2025-02-01"}).json()
        self.assertEqual(sheet["net_worth"], "580.00")
        self.assertEqual(sheet["trading_summary"]["net_profit"], "-7300.00")

    def test_company_header_is_selected_explicitly(self):
        CompanySetting.objects.create(name="Decoy Filling Station")
        company = CompanySetting.objects.create(name="Padma Filling Station", phone="0123")
        with self.settings(BACKOFFICE={**settings.BACKOFFICE, "COMPANY_SETTING_ID": company.id}):
            data = self.client.get(reverse("reports:bank_book")).json()
        self.assertEqual(data["company"]["name"], "Padma Filling Station")

    def test_register_and_report_endpoints(self):
        book_shift_activity(self.s)
        self._post_close(self._close_payload())

        listing = self.client.get(reverse("shifts:closed_list"), {"search": "even"}).json()
        self.assertEqual(listing["count"], 1)
        self.assertEqual(listing["rows"][0]["figures"]["final_due_amount"], "2300.00")

        monthly = self.client.get(reverse("reports:monthly_dispenser"), {"start_date": "2025-02-01"}).json()
        self.assertEqual(monthly["rows"][0]["total_balance"], "2300.00")
        self.assertEqual(monthly["totals"]["expenses"], "2600.00")

        stock = self.client.get(reverse("reports:stock"), {"kind": "fuel"}).json()
        self.assertEqual(stock["total_value"], "4680.00")
        self.assertEqual(self.client.get(reverse("reports:stock"), {"kind": "gas"}).status_code, 400)

        loans = self.client.get(reverse("reports:loans")).json()
        self.assertEqual(loans["rows"], [])
        missing = self.client.get(reverse("reports:loan_detail", args=[self.s["cash"].id]))
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["error"]["code"], "account_not_found")
