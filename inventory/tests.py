"""
Tests for inventory: active rates, stock movement and stock valuation.
"""
from decimal import Decimal
from datetime import date

from django.test import TestCase

from inventory.models import Product, ProductRate, Stock, Unit
from ledger.services.stock_valuation import closing_stock_value, stock_report, stock_value_rows


def _product_with_rates(name, *rates):
    product = Product.objects.create(name=name, is_fuel=True)
    for applicable_from, purchase, sales, active in rates:
        ProductRate.objects.create(
            product=product,
            applicable_from=applicable_from,
            purchase_price=Decimal(purchase),
            sales_price=Decimal(sales),
            is_active=active,
        )
    return product


class ProductRateTests(TestCase):
    def test_latest_active_rate_wins(self):
        octane = _product_with_rates(
            "Octane",
            (date(2025, 1, 1), "120.00", "130.00", True),
            (date(2025, 2, 1), "122.00", "133.00", True),
            (date(2025, 3, 1), "125.00", "135.00", False),
        )
        self.assertEqual(octane.active_rate().sales_price, Decimal("133.00"))

    def test_no_active_rate(self):
        petrol = _product_with_rates("Petrol", (date(2025, 1, 1), "110.00", "120.00", False))
        self.assertIsNone(petrol.active_rate())


class StockTests(TestCase):
    def test_adjust_creates_and_moves(self):
        diesel = _product_with_rates("Diesel", (date(2025, 1, 1), "90.00", "100.00", True))
        Stock.adjust(diesel, Decimal("100"))
        Stock.adjust(diesel, Decimal("-12.5"))
        self.assertEqual(Stock.objects.get(product=diesel).current_stock, Decimal("87.500"))

    def test_valuation_uses_active_purchase_price(self):
        diesel = _product_with_rates("Diesel", (date(2025, 1, 1), "90.00", "100.00", True))
        unpriced = Product.objects.create(name="Coolant")
        Stock.adjust(diesel, Decimal("10.5"))
        Stock.adjust(unpriced, Decimal("4"))

        rows = {r["product"]: r for r in stock_value_rows()}
        self.assertEqual(rows["Diesel"]["value"], Decimal("945.00"))
        self.assertEqual(rows["Coolant"]["value"], Decimal("0.00"))
        self.assertEqual(closing_stock_value(), Decimal("945.00"))

    def test_stock_report_filters_and_pages(self):
        diesel = _product_with_rates("Diesel", (date(2025, 1, 1), "90.00", "100.00", True))
        diesel.unit = Unit.objects.create(symbol="Ltr")
        diesel.save()
        coolant = Product.objects.create(name="Coolant")
        Stock.adjust(diesel, Decimal("10.5"))
        Stock.adjust(coolant, Decimal("4"))

        report = stock_report()
        self.assertEqual(report["count"], 2)
        self.assertEqual(report["total_value"], Decimal("945.00"))
        self.assertEqual([r["product"] for r in stock_report(is_fuel=False)["rows"]], ["Coolant"])

        found = stock_report(search="dies")["rows"]
        self.assertEqual(found[0]["unit"], "Ltr")
        self.assertEqual(found[0]["value"], Decimal("945.00"))

        page2 = stock_report(page=2, per_page=1)
        self.assertEqual([r["product"] for r in page2["rows"]], ["Diesel"])
        self.assertEqual(page2["total_value"], Decimal("945.00"))
