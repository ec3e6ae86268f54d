from django.core.management.base import BaseCommand, CommandError

from ledger.exceptions import BackOfficeError
from ledger.utils import parse_date
from shifts.services.closing import close_shift


class Command(BaseCommand):
    help = "Close a shift for a date using the readings already submitted."

    def add_arguments(self, parser):
        parser.add_argument("--date", required=True, help="Close date (YYYY-MM-DD).")
        parser.add_argument("--shift", type=int, required=True, help="Shift ID.")
        parser.add_argument("--closed-by", default="", help="Operator name recorded on the close.")

    def handle(self, *args, **options):
        close_date = parse_date(options["date"])
        if close_date is None:
            raise CommandError(f"Invalid date: {options['date']}")
        try:
            closed = close_shift(close_date, options["shift"], closed_by=options["closed_by"])
        except BackOfficeError as exc:
            raise CommandError(f"{exc.code}: {exc.message}") from exc

        reading = closed.daily_reading
        self.stdout.write(f"Cash sales: {reading.cash_sales}  Total cash: {reading.total_cash}")
        self.stdout.write(self.style.SUCCESS(
            f"Closed {closed.shift.name} on {closed.close_date}. Final due: {reading.final_due_amount}"
        ))
