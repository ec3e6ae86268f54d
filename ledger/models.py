from __future__ import annotations

import logging
import uuid

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from ledger.exceptions import AlreadyClosed
from ledger.utils import money, posting_timestamp
from shifts.models import Shift, ShiftClosed

logger = logging.getLogger(__name__)


class AccountGroup(models.TextChoices):
    CASH_IN_HAND = "CASH_IN_HAND", "Cash in Hand"
    BANK_ACCOUNT = "BANK_ACCOUNT", "Bank Account"
    MOBILE_BANK = "MOBILE_BANK", "Mobile Bank"
    CUSTOMER = "CUSTOMER", "Customer"
    SUPPLIER = "SUPPLIER", "Supplier"
    LIABILITY = "LIABILITY", "Liability"
    BANK_LOAN = "BANK_LOAN", "Bank Loan"
    CUSTOMER_SECURITY = "CUSTOMER_SECURITY", "Customer Security"
    ASSET = "ASSET", "Asset"
    INCOME = "INCOME", "Income"
    EXPENSE = "EXPENSE", "Expense"
    OTHER = "OTHER", "Other"


class PaymentType(models.TextChoices):
    CASH = "CASH", "Cash"
    BANK = "BANK", "Bank"
    MOBILE_BANK = "MOBILE_BANK", "Mobile Bank"


class Account(models.Model):
    """
    A ledger account. Balances are never stored: they are replayed from
    Transaction rows (Cr adds, Dr subtracts).
    """
    name = models.CharField(max_length=255)
    ac_number = models.CharField(max_length=64, unique=True)
    group = models.CharField(max_length=32, choices=AccountGroup.choices)
    status = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.ac_number})"

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "Account name is required."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def deactivate(self):
        self.status = False
        self.save(update_fields=["status"])


class TransactionType(models.TextChoices):
    DEBIT = "Dr", "Debit"
    CREDIT = "Cr", "Credit"


class SourceType(models.TextChoices):
    PAYMENT_VOUCHER = "PAYMENT_VOUCHER", "Payment Voucher"
    RECEIPT_VOUCHER = "RECEIPT_VOUCHER", "Receipt Voucher"
    BANK_SALE = "BANK_SALE", "Bank Sale"
    CREDIT_SALE = "CREDIT_SALE", "Credit Sale"
    PURCHASE = "PURCHASE", "Purchase"
    SHIFT_CLOSE = "SHIFT_CLOSE", "Shift Close"


class Transaction(models.Model):
    """
    One leg of a double entry. Rows are append-only: corrections are new postings.
    The two legs of an entry share entry_no.
    """
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="transactions")
    transaction_type = models.CharField(max_length=2, choices=TransactionType.choices)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    entry_no = models.CharField(max_length=32, db_index=True)

    source_type = models.CharField(max_length=32, choices=SourceType.choices)
    source_id = models.PositiveBigIntegerField()
    description = models.CharField(max_length=255, blank=True, default="")
    payment_type = models.CharField(max_length=16, choices=PaymentType.choices, default=PaymentType.CASH)
    voucher_no = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        ordering = ["timestamp", "id"]
        indexes = [
            models.Index(fields=["account", "timestamp"], name="ledger_txn_account_ts_idx"),
            models.Index(fields=["source_type", "source_id"], name="ledger_txn_source_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="ledger_txn_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_type} {self.amount} {self.account_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Posted transactions are immutable.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Posted transactions cannot be deleted.")

    @classmethod
    @transaction.atomic
    def post_pair(
        cls,
        debit_account,
        credit_account,
        amount,
        *,
        source_type,
        source_id,
        timestamp=None,
        description="",
        payment_type=PaymentType.CASH,
        voucher_no="",
    ):
        """
        Write one balanced entry: debit_account Dr, credit_account Cr, same amount.
        Returns (debit_row, credit_row).
        """
        amount = money(amount)
        if amount <= 0:
            raise ValidationError(f"Posting amount must be positive, got {amount}.")
        if debit_account.pk == credit_account.pk:
            raise ValidationError("Debit and credit accounts must differ.")

        common = dict(
            amount=amount,
            timestamp=timestamp or timezone.now(),
            entry_no=uuid.uuid4().hex,
            source_type=source_type,
            source_id=source_id,
            description=description,
            payment_type=payment_type,
            voucher_no=voucher_no,
        )
        dr = cls.objects.create(account=debit_account, transaction_type=TransactionType.DEBIT, **common)
        cr = cls.objects.create(account=credit_account, transaction_type=TransactionType.CREDIT, **common)
        logger.debug(
            "Posted %s %s: Dr %s / Cr %s amount=%s",
            source_type, source_id, debit_account.ac_number, credit_account.ac_number, amount,
        )
        return dr, cr


class VoucherType(models.TextChoices):
    PAYMENT = "PAYMENT", "Payment"
    RECEIPT = "RECEIPT", "Receipt"


class Voucher(models.Model):
    """
    Payment or receipt voucher. Saving a new voucher posts it:
    from_account Dr, to_account Cr.
    """
    voucher_no = models.CharField(max_length=64, unique=True)
    voucher_type = models.CharField(max_length=16, choices=VoucherType.choices)
    date = models.DateField(default=timezone.localdate)
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="vouchers")
    from_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="vouchers_from")
    to_account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="vouchers_to")
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_type = models.CharField(max_length=16, choices=PaymentType.choices, default=PaymentType.CASH)

    # Cash handed over to the office rather than spent.
    is_office_payment = models.BooleanField(default=False)
    # Non-blank marks a general/administrative expense, grouped by this head.
    expense_head = models.CharField(max_length=100, blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")

    is_posted = models.BooleanField(default=False, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "id"]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="ledger_voucher_amount_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.voucher_type} {self.voucher_no}"

    @property
    def source_type(self):
        if self.voucher_type == VoucherType.PAYMENT:
            return SourceType.PAYMENT_VOUCHER
        return SourceType.RECEIPT_VOUCHER

    def clean(self):
        if self.pk and Voucher.objects.filter(pk=self.pk, is_posted=True).exists():
            raise ValidationError("Posted vouchers are locked.")
        if self.from_account_id and self.from_account_id == self.to_account_id:
            raise ValidationError("From and to accounts must differ.")
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Amount must be positive."})

    def save(self, *args, **kwargs):
        self.full_clean()
        if self._state.adding and ShiftClosed.is_closed(self.date, self.shift_id):
            raise AlreadyClosed(f"Shift {self.shift_id} on {self.date} is already closed.")
        with transaction.atomic():
            super().save(*args, **kwargs)
            self.post()

    @transaction.atomic
    def post(self):
        if self.is_posted:
            return
        Transaction.post_pair(
            self.from_account,
            self.to_account,
            self.amount,
            source_type=self.source_type,
            source_id=self.pk,
            timestamp=posting_timestamp(self.date),
            description=self.description or self.expense_head,
            payment_type=self.payment_type,
            voucher_no=self.voucher_no,
        )
        self.is_posted = True
        Voucher.objects.filter(pk=self.pk).update(is_posted=True)
