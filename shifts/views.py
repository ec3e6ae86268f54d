import json

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from backoffice.http import error_response, form_error_response, json_api
from shifts.forms import (
    ClosedShiftListForm,
    ClosedShiftQueryForm,
    DispenserReadingForm,
    OtherProductSaleForm,
    ShiftCloseForm,
)
from shifts.models import ShiftClosed
from shifts.services.closing import available_shifts, close_shift, closed_shift_ids
from shifts.services.listing import closed_shift_list


def _rows(form_class, items, field):
    """Validate each list item with form_class. Returns (cleaned_rows, error_response_or_None)."""
    if not isinstance(items, list):
        return None, error_response("invalid_request", f"{field} must be a list.", 400)
    rows = []
    for index, item in enumerate(items):
        form = form_class(item if isinstance(item, dict) else {})
        if not form.is_valid():
            return None, error_response(
                "invalid_request",
                f"{field}[{index}] is invalid.",
                400,
                details={name: [str(e) for e in errs] for name, errs in form.errors.items()},
            )
        rows.append(form.cleaned_data)
    return rows, None


def _closed_summary(closed):
    return {
        "id": closed.id,
        "close_date": closed.close_date,
        "shift_id": closed.shift_id,
        "shift": closed.shift.name,
        "closed_at": closed.closed_at,
        "closed_by": closed.closed_by,
        "figures": closed.daily_reading.figures(),
    }


@login_required
@require_POST
@json_api
def close(request):
    """
    Close a shift. JSON body:
      {"close_date": "YYYY-MM-DD", "shift_id": 2, "closed_by": "...",
       "readings": [{"dispenser_id", "end_reading", "meter_test"}],
       "other_sales": [{"product_id", "sell_quantity", "item_rate"}]}
    """
    try:
        payload = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        return error_response("invalid_request", "Body must be JSON.", 400)
    if not isinstance(payload, dict):
        return error_response("invalid_request", "Body must be a JSON object.", 400)

    form = ShiftCloseForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    readings, err = _rows(DispenserReadingForm, payload.get("readings", []), "readings")
    if err:
        return err
    other_sales, err = _rows(OtherProductSaleForm, payload.get("other_sales", []), "other_sales")
    if err:
        return err

    closed = close_shift(
        form.cleaned_data["close_date"],
        form.cleaned_data["shift_id"],
        readings=readings,
        other_sales=other_sales,
        closed_by=form.cleaned_data["closed_by"],
    )
    return JsonResponse(_closed_summary(closed), status=201)


@login_required
@require_GET
def closed_on_date(request):
    """Shifts closed on ?date= and the ones still open for entry."""
    form = ClosedShiftQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    on_date = form.cleaned_data["date"]
    return JsonResponse({
        "date": on_date,
        "closed_shift_ids": closed_shift_ids(on_date),
        "available_shifts": [{"id": s.id, "name": s.name} for s in available_shifts(on_date)],
    })


@login_required
@require_GET
def closed_detail(request, pk):
    closed = get_object_or_404(ShiftClosed.objects.select_related("shift", "daily_reading"), pk=pk)
    data = _closed_summary(closed)
    data["dispenser_readings"] = list(
        closed.dispenser_readings.order_by("dispenser__name").values(
            "dispenser__name", "product__name", "start_reading", "end_reading",
            "meter_test", "net_reading", "item_rate", "total_sale", "employee_name",
        )
    )
    data["other_product_sales"] = list(
        closed.other_product_sales.order_by("id").values(
            "product__name", "sell_quantity", "item_rate", "total_sales", "employee_name",
        )
    )
    return JsonResponse(data)


@login_required
@require_GET
@json_api
def closed_list(request):
    """Closed-shift register. Query: shift_id, start_date, end_date, search, page, per_page."""
    form = ClosedShiftListForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    q = form.cleaned_data
    return JsonResponse(closed_shift_list(
        q["shift_id"], q["start_date"], q["end_date"], q["search"], page=q["page"] or 1, per_page=q["per_page"]
    ))
