from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.http import Http404, JsonResponse
from django.views.decorators.http import require_GET

from backoffice.http import form_error_response, json_api
from ledger.services.balance_sheet import build_balance_sheet
from ledger.services.books import bank_book, bank_book_account, cash_book, cash_book_shift, get_ledger
from ledger.services.loans import loan_detail, loan_summary
from ledger.services.stock_valuation import stock_report
from org.models import CompanySetting
from reports.forms import (
    BalanceSheetQueryForm,
    CashBookQueryForm,
    DateRangeForm,
    LedgerQueryForm,
    LoanQueryForm,
    MonthlyDispenserQueryForm,
    StockQueryForm,
)
from shifts.models import ShiftClosed
from shifts.services.listing import monthly_dispenser_report


def company_header():
    """Header of the configured company; reports never fall back to an arbitrary row."""
    setting_id = settings.BACKOFFICE.get("COMPANY_SETTING_ID")
    if not setting_id:
        return None
    company = CompanySetting.objects.filter(pk=setting_id).first()
    return company.as_header() if company else None


def _document(data):
    return JsonResponse({"company": company_header(), **data})


@login_required
@require_GET
@json_api
def account_ledger(request, account_id):
    """Account statement with running balance. Query: start_date, end_date, page, per_page, opening_balance, carry_forward."""
    form = LedgerQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(get_ledger(
        account_id,
        q["start_date"],
        q["end_date"],
        page=q["page"] or 1,
        per_page=q["per_page"],
        opening_balance=q["opening_balance"],
        carry_forward=q["carry_forward"],
    ))


@login_required
@require_GET
@json_api
def cash_book_view(request):
    form = CashBookQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(cash_book(q["start_date"], q["end_date"], shift_id=q["shift_id"], opening_balance=q["opening_balance"]))


@login_required
@require_GET
@json_api
def cash_book_shift_view(request, shift_closed_id):
    try:
        data = cash_book_shift(shift_closed_id)
    except ShiftClosed.DoesNotExist:
        raise Http404("Closed shift not found")
    return _document(data)


@login_required
@require_GET
@json_api
def bank_book_view(request):
    form = DateRangeForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(bank_book(q["start_date"], q["end_date"]))


@login_required
@require_GET
@json_api
def bank_book_account_view(request, ac_number):
    form = LedgerQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(bank_book_account(
        ac_number, q["start_date"], q["end_date"], page=q["page"] or 1, per_page=q["per_page"]
    ))


@login_required
@require_GET
@json_api
def balance_sheet(request):
    """Balance sheet as of a date with the trading summary for the period."""
    form = BalanceSheetQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(build_balance_sheet(q["as_of"], q["start_date"], q["end_date"]))


@login_required
@require_GET
@json_api
def monthly_dispenser_report_view(request):
    """Per closed shift sales and cash figures. Query: start_date, end_date, product_id, search, page, per_page."""
    form = MonthlyDispenserQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(monthly_dispenser_report(
        q["start_date"], q["end_date"], product_id=q["product_id"], search=q["search"],
        page=q["page"] or 1, per_page=q["per_page"],
    ))


@login_required
@require_GET
@json_api
def loan_list(request):
    form = LoanQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(loan_summary(q["search"], q["status"] or None))


@login_required
@require_GET
@json_api
def loan_detail_view(request, account_id):
    return _document(loan_detail(account_id))


@login_required
@require_GET
@json_api
def stock_report_view(request):
    form = StockQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return _document(stock_report(q["search"], q["kind"], page=q["page"] or 1, per_page=q["per_page"]))
