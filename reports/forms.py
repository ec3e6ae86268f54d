from django import forms


class DateRangeForm(forms.Form):
    start_date = forms.DateField(required=False)
    end_date = forms.DateField(required=False)


class LedgerQueryForm(DateRangeForm):
    page = forms.IntegerField(required=False, min_value=1)
    per_page = forms.IntegerField(required=False, min_value=1)
    opening_balance = forms.DecimalField(required=False, max_digits=14, decimal_places=2)
    carry_forward = forms.BooleanField(required=False)


class CashBookQueryForm(DateRangeForm):
    shift_id = forms.IntegerField(required=False, min_value=1)
    opening_balance = forms.DecimalField(required=False, max_digits=14, decimal_places=2)


class BalanceSheetQueryForm(DateRangeForm):
    as_of = forms.DateField(required=False)


class PageForm(forms.Form):
    search = forms.CharField(required=False, max_length=100)
    page = forms.IntegerField(required=False, min_value=1)
    per_page = forms.IntegerField(required=False, min_value=1)


class MonthlyDispenserQueryForm(DateRangeForm, PageForm):
    product_id = forms.IntegerField(required=False, min_value=1)


class LoanQueryForm(forms.Form):
    search = forms.CharField(required=False, max_length=100)
    status = forms.ChoiceField(required=False, choices=[("", "All"), ("active", "Active"), ("inactive", "Inactive")])


class StockQueryForm(PageForm):
    kind = forms.ChoiceField(required=False, choices=[("", "All"), ("fuel", "Fuel"), ("other", "Other products")])

    def clean_kind(self):
        return {"fuel": True, "other": False}.get(self.cleaned_data["kind"])
