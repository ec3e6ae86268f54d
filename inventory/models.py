from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F


class Unit(models.Model):
    """Unit of measure (e.g. Ltr, Pcs)."""
    symbol = models.CharField(max_length=32, unique=True)
    formal_name = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        ordering = ["symbol"]

    def __str__(self):
        return self.symbol or self.formal_name or str(self.pk)


class Product(models.Model):
    """
    Anything the station sells or buys. Fuel products are dispensed through
    metered dispensers; everything else (lubricants, accessories) is sold by quantity.
    """
    name = models.CharField(max_length=200, unique=True)
    unit = models.ForeignKey(Unit, null=True, blank=True, on_delete=models.SET_NULL, related_name="products")
    is_fuel = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def active_rate(self):
        return self.rates.filter(is_active=True).order_by("-applicable_from", "-id").first()


class ProductRate(models.Model):
    """Purchase and sales price of a product, effective from a date. Only active rates are used."""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="rates")
    applicable_from = models.DateField()
    purchase_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    sales_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["-applicable_from"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "applicable_from"],
                name="inventory_productrate_product_date_uniq",
            ),
        ]

    def clean(self):
        if self.purchase_price < 0 or self.sales_price < 0:
            raise ValidationError("Prices cannot be negative.")


class Stock(models.Model):
    """Current on-hand quantity per product. Purchases add, closed shifts subtract."""
    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name="stock")
    current_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product}: {self.current_stock}"

    @classmethod
    def adjust(cls, product, delta):
        stock, _ = cls.objects.get_or_create(product=product)
        cls.objects.filter(pk=stock.pk).update(current_stock=F("current_stock") + delta)
