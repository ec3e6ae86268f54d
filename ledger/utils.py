from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from ledger.exceptions import InvalidDateRange

ZERO = Decimal("0.00")
TWOPLACES = Decimal("0.01")


def money(value) -> Decimal:
    """Coerce to Decimal rounded half-up to 2 places. None counts as zero."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def parse_date(s):
    """Parse YYYY-MM-DD; return date or None."""
    if not s:
        return None
    if isinstance(s, date):
        return s
    try:
        return date.fromisoformat(s.strip())
    except (ValueError, TypeError, AttributeError):
        return None


def check_date_range(start_date, end_date):
    if start_date and end_date and end_date < start_date:
        raise InvalidDateRange(
            f"End date {end_date} is before start date {start_date}.",
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )


def posting_timestamp(day=None):
    """
    Timestamp for a posting dated `day`: that day at the current local wall-clock
    time, so same-day postings keep their entry order.
    """
    now = timezone.localtime()
    if day is None or day == now.date():
        return now
    return timezone.make_aware(datetime.combine(day, now.time().replace(tzinfo=None)))


def day_start(day):
    return timezone.make_aware(datetime.combine(day, time.min))
