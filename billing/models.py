"""
Operational sale and purchase records. Each one posts its double entry when
it is first saved; shift-tagged records are refused once the shift is closed.
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from inventory.models import Product, Stock
from ledger.exceptions import AlreadyClosed
from ledger.models import Account, AccountGroup, PaymentType, SourceType, Transaction
from ledger.services.posting import control_account, payment_type_for
from ledger.utils import posting_timestamp
from shifts.models import Shift, ShiftClosed


class PostedRecord(models.Model):
    date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    voucher_no = models.CharField(max_length=64, blank=True, default="")
    is_posted = models.BooleanField(default=False, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    source_type = None

    class Meta:
        abstract = True
        ordering = ["date", "id"]

    def clean(self):
        if self.pk and type(self).objects.filter(pk=self.pk, is_posted=True).exists():
            raise ValidationError("Posted records are locked.")
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Amount must be positive."})

    def _check_shift_open(self):
        shift_id = getattr(self, "shift_id", None)
        if shift_id and ShiftClosed.is_closed(self.date, shift_id):
            raise AlreadyClosed(f"Shift {shift_id} on {self.date} is already closed.")

    def legs(self):
        """Return (debit_account, credit_account, payment_type)."""
        raise NotImplementedError

    def save(self, *args, **kwargs):
        self.full_clean()
        adding = self._state.adding
        if adding:
            self._check_shift_open()
        with transaction.atomic():
            super().save(*args, **kwargs)
            if adding:
                self.post()

    @transaction.atomic
    def post(self):
        if self.is_posted:
            return
        debit_account, credit_account, payment_type = self.legs()
        Transaction.post_pair(
            debit_account,
            credit_account,
            self.amount,
            source_type=self.source_type,
            source_id=self.pk,
            timestamp=posting_timestamp(self.date),
            description=str(self),
            payment_type=payment_type,
            voucher_no=self.voucher_no,
        )
        self.is_posted = True
        type(self).objects.filter(pk=self.pk).update(is_posted=True)


class CreditSale(PostedRecord):
    """Sale on account to a customer: customer Cr (due grows), sales Dr."""
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="credit_sales")
    customer = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="credit_sales")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="credit_sales")
    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    vehicle_no = models.CharField(max_length=50, blank=True, default="")

    source_type = SourceType.CREDIT_SALE

    def __str__(self):
        return f"Credit sale {self.product} to {self.customer.name}"

    def clean(self):
        super().clean()
        if self.customer_id and self.customer.group != AccountGroup.CUSTOMER:
            raise ValidationError({"customer": "Credit sales must be made to a customer account."})

    def legs(self):
        return control_account("sales"), self.customer, PaymentType.CASH


class BankSale(PostedRecord):
    """Sale paid by card or mobile wallet: receiving account Cr, sales Dr."""
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="bank_sales")
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="bank_sales")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="bank_sales")
    reference = models.CharField(max_length=100, blank=True, default="")

    source_type = SourceType.BANK_SALE

    def __str__(self):
        return f"Bank sale {self.product} via {self.account.name}"

    def clean(self):
        super().clean()
        if self.account_id and self.account.group not in (AccountGroup.BANK_ACCOUNT, AccountGroup.MOBILE_BANK):
            raise ValidationError({"account": "Bank sales must be received into a bank or mobile bank account."})

    def legs(self):
        return control_account("sales"), self.account, payment_type_for(self.account)


class Purchase(PostedRecord):
    """Stock received from a supplier on account: supplier Dr (due grows), purchase Cr."""
    supplier = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="purchases")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="purchases")
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)

    source_type = SourceType.PURCHASE

    def __str__(self):
        return f"Purchase {self.product} from {self.supplier.name}"

    def clean(self):
        super().clean()
        if self.supplier_id and self.supplier.group != AccountGroup.SUPPLIER:
            raise ValidationError({"supplier": "Purchases must be made from a supplier account."})
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be positive."})

    def legs(self):
        return self.supplier, control_account("purchase"), PaymentType.CASH

    @transaction.atomic
    def post(self):
        if self.is_posted:
            return
        super().post()
        Stock.adjust(self.product, self.quantity)
