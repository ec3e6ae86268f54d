"""
Shift close: freeze one (date, shift) of activity into DailyReading + ShiftClosed.

Each kind of operational input is read through its own port function
(dispensers, other products, credit sales, bank sales, vouchers) and validated
there. aggregate_figures() combines the port outputs:

  cash_sales       = fuel sales + other product sales - credit_sales - bank_sales
  cash_sales_other = other product sales - credit_sales_other - bank_sales_other
  total_cash       = cash_sales + cash_receive
  final_due_amount = total_cash - cash_payment - office_payment

close_shift() writes the snapshot, links the pending readings, moves stock and
posts the cash sales to the cash account in one atomic block.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Q, Sum
from django.utils import timezone

from inventory.models import Product, Stock
from ledger.constants import BANK_GROUPS, CASH_GROUPS
from ledger.exceptions import AlreadyClosed, IncompleteData
from ledger.models import SourceType, Transaction, Voucher
from ledger.services.posting import control_account
from ledger.utils import ZERO, money, posting_timestamp
from shifts.models import (
    DailyReading,
    Dispenser,
    DispenserReading,
    OtherProductSale,
    Shift,
    ShiftClosed,
)

logger = logging.getLogger(__name__)


def closed_shift_ids(on_date) -> list[int]:
    """Ids of shifts already closed on on_date; entry forms hide these."""
    return list(ShiftClosed.objects.filter(close_date=on_date).values_list("shift_id", flat=True))


def available_shifts(on_date):
    return Shift.objects.filter(is_active=True).exclude(id__in=closed_shift_ids(on_date)).order_by("id")


def _open_shift(on_date, shift_id) -> Shift:
    shift = Shift.objects.filter(pk=shift_id, is_active=True).first()
    if shift is None:
        raise IncompleteData(f"Shift {shift_id} does not exist or is inactive.", details={"shift_id": shift_id})
    if ShiftClosed.is_closed(on_date, shift.id):
        raise AlreadyClosed(
            f"Shift {shift.name} on {on_date} is already closed.",
            details={"date": str(on_date), "shift_id": shift.id},
        )
    return shift


def _sales_price(product: Product) -> Decimal:
    rate = product.active_rate()
    if rate is None or rate.sales_price <= 0:
        raise IncompleteData(f"No active sales price for {product.name}.", details={"product_id": product.id})
    return rate.sales_price


def _earlier_cycles(on_date, shift_id):
    return Q(date__lt=on_date) | Q(date=on_date, shift_id__lt=shift_id)


def start_reading_for(dispenser: Dispenser, on_date, shift_id) -> Decimal:
    """
    End reading of the dispenser's previous cycle, closed or still pending,
    or its opening reading for the first cycle. Cycles are ordered by date, then shift.
    """
    last = (
        DispenserReading.objects.filter(_earlier_cycles(on_date, shift_id), dispenser=dispenser)
        .order_by("-date", "-shift_id", "-id")
        .first()
    )
    if last is None:
        return dispenser.opening_reading
    return last.end_reading


def _net_reading(dispenser, start, end, meter_test) -> Decimal:
    net = end - start - meter_test
    if net < 0:
        raise IncompleteData(
            f"End reading {end} of {dispenser.name} is below start reading {start} plus meter test {meter_test}.",
            details={"dispenser_id": dispenser.id},
        )
    return net


@transaction.atomic
def submit_dispenser_reading(on_date, shift_id, dispenser_id, end_reading, meter_test=ZERO, employee_name=""):
    """Record (or replace) the pending meter reading of one dispenser for (date, shift)."""
    shift = _open_shift(on_date, shift_id)
    dispenser = Dispenser.objects.select_related("product").filter(pk=dispenser_id, is_active=True).first()
    if dispenser is None:
        raise IncompleteData(f"Dispenser {dispenser_id} does not exist or is inactive.")
    later_closed = (
        DispenserReading.objects.filter(dispenser=dispenser, shift_closed__isnull=False)
        .exclude(_earlier_cycles(on_date, shift.id))
        .exclude(date=on_date, shift=shift)
    )
    if later_closed.exists():
        raise AlreadyClosed(
            f"A later cycle of {dispenser.name} is already closed.",
            details={"dispenser_id": dispenser.id, "date": str(on_date), "shift_id": shift.id},
        )

    start = start_reading_for(dispenser, on_date, shift.id)
    end = money(end_reading)
    meter_test = money(meter_test)
    if meter_test < 0:
        raise IncompleteData(f"Meter test for {dispenser.name} cannot be negative.")
    net = _net_reading(dispenser, start, end, meter_test)
    rate = _sales_price(dispenser.product)

    reading, _ = DispenserReading.objects.update_or_create(
        date=on_date,
        shift=shift,
        dispenser=dispenser,
        defaults={
            "product": dispenser.product,
            "item_rate": rate,
            "start_reading": start,
            "end_reading": end,
            "meter_test": meter_test,
            "net_reading": net,
            "total_sale": money(net * rate),
            "employee_name": employee_name,
        },
    )
    return reading


@transaction.atomic
def record_other_product_sale(on_date, shift_id, product_id, sell_quantity, item_rate=None, employee_name=""):
    shift = _open_shift(on_date, shift_id)
    product = Product.objects.filter(pk=product_id, is_active=True).first()
    if product is None:
        raise IncompleteData(f"Product {product_id} does not exist or is inactive.")
    if product.is_fuel:
        raise IncompleteData(f"{product.name} is sold through dispensers.")
    quantity = Decimal(str(sell_quantity))
    if quantity <= 0:
        raise IncompleteData(f"Quantity of {product.name} must be positive.")
    rate = money(item_rate) if item_rate is not None else _sales_price(product)

    return OtherProductSale.objects.create(
        date=on_date,
        shift=shift,
        product=product,
        unit=product.unit,
        item_rate=rate,
        sell_quantity=quantity,
        total_sales=money(quantity * rate),
        employee_name=employee_name,
    )


# Input ports


def _rechain(reading):
    """Refresh start/net/total from the previous cycle as it stands at close time."""
    start = start_reading_for(reading.dispenser, reading.date, reading.shift_id)
    if start == reading.start_reading:
        return
    reading.start_reading = start
    reading.net_reading = _net_reading(reading.dispenser, start, reading.end_reading, reading.meter_test)
    reading.total_sale = money(reading.net_reading * reading.item_rate)
    reading.save(update_fields=["start_reading", "net_reading", "total_sale"])
    logger.info(
        "Re-chained reading of %s for %s/%s from %s", reading.dispenser.name, reading.date, reading.shift_id, start
    )


def dispenser_port(on_date, shift):
    """Pending readings for (date, shift); every active dispenser must have one."""
    readings = list(
        DispenserReading.objects.filter(date=on_date, shift=shift, shift_closed__isnull=True).select_related(
            "dispenser", "product"
        )
    )
    seen = {r.dispenser_id for r in readings}
    missing = list(Dispenser.objects.filter(is_active=True).exclude(id__in=seen).values_list("name", flat=True))
    if missing:
        raise IncompleteData(
            f"Missing dispenser readings for {', '.join(missing)}.",
            details={"missing_dispensers": missing},
        )
    for r in readings:
        _rechain(r)
        if r.net_reading < 0 or r.total_sale < 0:
            raise IncompleteData(f"Reading of {r.dispenser.name} is negative.", details={"reading_id": r.id})
    return {"readings": readings, "total": money(sum((r.total_sale for r in readings), ZERO))}


def other_product_port(on_date, shift):
    sales = list(
        OtherProductSale.objects.filter(date=on_date, shift=shift, shift_closed__isnull=True).select_related("product")
    )
    for s in sales:
        if s.sell_quantity <= 0 or s.total_sales < 0:
            raise IncompleteData(f"Sale of {s.product.name} has an invalid quantity.", details={"sale_id": s.id})
    return {"sales": sales, "total": money(sum((s.total_sales for s in sales), ZERO))}


def _sales_totals(model, on_date, shift):
    agg = model.objects.filter(date=on_date, shift=shift).aggregate(
        total=Sum("amount", default=ZERO),
        other=Sum("amount", filter=Q(product__is_fuel=False), default=ZERO),
    )
    return {"total": money(agg["total"]), "other": money(agg["other"])}


def credit_sales_port(on_date, shift):
    from billing.models import CreditSale

    return _sales_totals(CreditSale, on_date, shift)


def bank_sales_port(on_date, shift):
    from billing.models import BankSale

    return _sales_totals(BankSale, on_date, shift)


def voucher_port(on_date, shift):
    """
    Cash and bank movements of the shift's vouchers, by direction: a voucher
    into a cash account is a receipt and one out of it is a payment, whatever
    its voucher type. Transfers between two accounts of the same kind are skipped.
    """
    into_cash = Q(to_account__group__in=CASH_GROUPS) & ~Q(from_account__group__in=CASH_GROUPS)
    out_of_cash = Q(from_account__group__in=CASH_GROUPS) & ~Q(to_account__group__in=CASH_GROUPS)
    into_bank = Q(to_account__group__in=BANK_GROUPS) & ~Q(from_account__group__in=BANK_GROUPS)
    out_of_bank = Q(from_account__group__in=BANK_GROUPS) & ~Q(to_account__group__in=BANK_GROUPS)
    agg = Voucher.objects.filter(date=on_date, shift=shift).aggregate(
        cash_receive=Sum("amount", filter=into_cash, default=ZERO),
        bank_receive=Sum("amount", filter=into_bank, default=ZERO),
        cash_payment=Sum("amount", filter=out_of_cash & Q(is_office_payment=False), default=ZERO),
        office_payment=Sum("amount", filter=out_of_cash & Q(is_office_payment=True), default=ZERO),
        bank_payment=Sum("amount", filter=out_of_bank, default=ZERO),
    )
    return {key: money(value) for key, value in agg.items()}


def aggregate_figures(fuel_total, other_total, credit, bank, vouchers) -> dict:
    cash_sales = fuel_total + other_total - credit["total"] - bank["total"]
    total_cash = cash_sales + vouchers["cash_receive"]
    return {
        "credit_sales": credit["total"],
        "bank_sales": bank["total"],
        "cash_sales": money(cash_sales),
        "credit_sales_other": credit["other"],
        "bank_sales_other": bank["other"],
        "cash_sales_other": money(other_total - credit["other"] - bank["other"]),
        "cash_receive": vouchers["cash_receive"],
        "bank_receive": vouchers["bank_receive"],
        "total_cash": money(total_cash),
        "cash_payment": vouchers["cash_payment"],
        "bank_payment": vouchers["bank_payment"],
        "office_payment": vouchers["office_payment"],
        "final_due_amount": money(total_cash - vouchers["cash_payment"] - vouchers["office_payment"]),
    }


def _post_cash_sales(closed: ShiftClosed, cash_sales: Decimal):
    if cash_sales == 0:
        return
    cash = control_account("cash")
    sales = control_account("sales")
    debit, credit = (sales, cash) if cash_sales > 0 else (cash, sales)
    Transaction.post_pair(
        debit,
        credit,
        abs(cash_sales),
        source_type=SourceType.SHIFT_CLOSE,
        source_id=closed.id,
        timestamp=posting_timestamp(closed.close_date),
        description=f"Cash sales {closed.shift.name} {closed.close_date}",
    )


def _submit_inputs(close_date, shift_id, readings, other_sales):
    for r in readings or ():
        submit_dispenser_reading(
            close_date,
            shift_id,
            r["dispenser_id"],
            r["end_reading"],
            meter_test=r.get("meter_test") or ZERO,
            employee_name=r.get("employee_name", ""),
        )
    for s in other_sales or ():
        record_other_product_sale(
            close_date,
            shift_id,
            s["product_id"],
            s["sell_quantity"],
            item_rate=s.get("item_rate"),
            employee_name=s.get("employee_name", ""),
        )


def close_shift(close_date, shift_id, readings=None, other_sales=None, closed_by="") -> ShiftClosed:
    """
    Close (close_date, shift_id). readings / other_sales, when given, are
    submitted inside the same transaction before aggregation.

    Raises AlreadyClosed if the pair is already closed (including a concurrent
    close winning the unique constraint) and IncompleteData when inputs are missing.
    """
    try:
        shift = _open_shift(close_date, shift_id)
    except (AlreadyClosed, IncompleteData) as exc:
        logger.warning("Shift close refused for shift=%s date=%s: %s", shift_id, close_date, exc.message)
        raise

    try:
        with transaction.atomic():
            _submit_inputs(close_date, shift.id, readings, other_sales)
            dispensers = dispenser_port(close_date, shift)
            others = other_product_port(close_date, shift)
            figures = aggregate_figures(
                dispensers["total"],
                others["total"],
                credit_sales_port(close_date, shift),
                bank_sales_port(close_date, shift),
                voucher_port(close_date, shift),
            )

            daily = DailyReading.objects.create(date=close_date, shift=shift, **figures)
            closed = ShiftClosed.objects.create(
                close_date=close_date,
                shift=shift,
                daily_reading=daily,
                closed_at=timezone.now(),
                closed_by=closed_by,
            )

            DispenserReading.objects.filter(pk__in=[r.pk for r in dispensers["readings"]]).update(shift_closed=closed)
            OtherProductSale.objects.filter(pk__in=[s.pk for s in others["sales"]]).update(shift_closed=closed)
            for r in dispensers["readings"]:
                Stock.adjust(r.product, -r.net_reading)
            for s in others["sales"]:
                Stock.adjust(s.product, -s.sell_quantity)

            _post_cash_sales(closed, figures["cash_sales"])
    except IntegrityError as exc:
        logger.warning("Concurrent close of shift=%s date=%s lost the race", shift.id, close_date)
        raise AlreadyClosed(
            f"Shift {shift.name} on {close_date} is already closed.",
            details={"date": str(close_date), "shift_id": shift.id},
        ) from exc
    except IncompleteData as exc:
        logger.warning("Shift close incomplete for shift=%s date=%s: %s", shift.id, close_date, exc.message)
        raise

    logger.info(
        "Closed shift %s on %s: cash_sales=%s total_cash=%s final_due=%s",
        shift.name, close_date, figures["cash_sales"], figures["total_cash"], figures["final_due_amount"],
    )
    return closed
