from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from inventory.models import Product, Unit

ZERO = Decimal("0.00")


def _money_field():
    return models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)


class Shift(models.Model):
    """Working shift of the station (e.g. Morning, Evening, Night)."""
    name = models.CharField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name


class Dispenser(models.Model):
    """A metered fuel nozzle. opening_reading is the meter value before its first closed cycle."""
    name = models.CharField(max_length=100, unique=True)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="dispensers")
    opening_reading = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class DailyReading(models.Model):
    """Frozen financial figures of one closed (date, shift)."""
    date = models.DateField()
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="daily_readings")

    credit_sales = _money_field()
    bank_sales = _money_field()
    cash_sales = _money_field()
    credit_sales_other = _money_field()
    bank_sales_other = _money_field()
    cash_sales_other = _money_field()
    cash_receive = _money_field()
    bank_receive = _money_field()
    total_cash = _money_field()
    cash_payment = _money_field()
    bank_payment = _money_field()
    office_payment = _money_field()
    final_due_amount = _money_field()

    created_at = models.DateTimeField(auto_now_add=True)

    FIGURES = (
        "credit_sales", "bank_sales", "cash_sales",
        "credit_sales_other", "bank_sales_other", "cash_sales_other",
        "cash_receive", "bank_receive", "total_cash",
        "cash_payment", "bank_payment", "office_payment", "final_due_amount",
    )

    class Meta:
        ordering = ["date", "shift_id"]
        constraints = [
            models.UniqueConstraint(fields=["date", "shift"], name="shifts_dailyreading_date_shift_uniq"),
        ]

    def __str__(self):
        return f"{self.date} / {self.shift}"

    def figures(self):
        return {name: getattr(self, name) for name in self.FIGURES}


class ShiftClosed(models.Model):
    """Marker that a (close_date, shift) is finalized. Its existence locks the pair."""
    close_date = models.DateField()
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="closings")
    daily_reading = models.OneToOneField(DailyReading, on_delete=models.PROTECT, related_name="shift_closed")
    closed_at = models.DateTimeField(default=timezone.now)
    closed_by = models.CharField(max_length=150, blank=True, default="")

    class Meta:
        ordering = ["-close_date", "-shift_id"]
        constraints = [
            models.UniqueConstraint(fields=["close_date", "shift"], name="shifts_shiftclosed_date_shift_uniq"),
        ]

    def __str__(self):
        return f"Closed {self.shift} on {self.close_date}"

    @classmethod
    def is_closed(cls, on_date, shift_id):
        return cls.objects.filter(close_date=on_date, shift_id=shift_id).exists()


class DispenserReading(models.Model):
    """
    Meter reading of one dispenser for one (date, shift). Pending until the
    shift is closed, read-only afterwards.
    """
    date = models.DateField()
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="dispenser_readings")
    dispenser = models.ForeignKey(Dispenser, on_delete=models.PROTECT, related_name="readings")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="dispenser_readings")
    item_rate = models.DecimalField(max_digits=14, decimal_places=2)
    start_reading = models.DecimalField(max_digits=14, decimal_places=2)
    end_reading = models.DecimalField(max_digits=14, decimal_places=2)
    meter_test = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    net_reading = models.DecimalField(max_digits=14, decimal_places=2)
    total_sale = models.DecimalField(max_digits=14, decimal_places=2)
    employee_name = models.CharField(max_length=150, blank=True, default="")
    shift_closed = models.ForeignKey(
        ShiftClosed, null=True, blank=True, on_delete=models.PROTECT, related_name="dispenser_readings"
    )

    class Meta:
        ordering = ["date", "shift_id", "dispenser_id"]
        constraints = [
            models.UniqueConstraint(
                fields=["date", "shift", "dispenser"], name="shifts_dispenserreading_date_shift_dispenser_uniq"
            ),
        ]

    def clean(self):
        if self.meter_test < 0:
            raise ValidationError({"meter_test": "Meter test cannot be negative."})
        if self.net_reading < 0:
            raise ValidationError({"end_reading": "End reading is below start reading plus meter test."})


class OtherProductSale(models.Model):
    """Quantity-based sale of an ancillary product during a shift."""
    date = models.DateField()
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="other_product_sales")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="other_product_sales")
    unit = models.ForeignKey(Unit, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    item_rate = models.DecimalField(max_digits=14, decimal_places=2)
    sell_quantity = models.DecimalField(max_digits=14, decimal_places=3)
    total_sales = models.DecimalField(max_digits=14, decimal_places=2)
    employee_name = models.CharField(max_length=150, blank=True, default="")
    shift_closed = models.ForeignKey(
        ShiftClosed, null=True, blank=True, on_delete=models.PROTECT, related_name="other_product_sales"
    )

    class Meta:
        ordering = ["date", "shift_id", "id"]

    def clean(self):
        if self.sell_quantity is not None and self.sell_quantity <= 0:
            raise ValidationError({"sell_quantity": "Quantity must be positive."})
