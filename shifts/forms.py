from django import forms


class ShiftCloseForm(forms.Form):
    close_date = forms.DateField()
    shift_id = forms.IntegerField(min_value=1)
    closed_by = forms.CharField(required=False, max_length=150)


class DispenserReadingForm(forms.Form):
    dispenser_id = forms.IntegerField(min_value=1)
    end_reading = forms.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    meter_test = forms.DecimalField(required=False, max_digits=14, decimal_places=2, min_value=0)
    employee_name = forms.CharField(required=False, max_length=150)


class OtherProductSaleForm(forms.Form):
    product_id = forms.IntegerField(min_value=1)
    sell_quantity = forms.DecimalField(max_digits=14, decimal_places=3)
    item_rate = forms.DecimalField(required=False, max_digits=14, decimal_places=2, min_value=0)
    employee_name = forms.CharField(required=False, max_length=150)

    def clean_sell_quantity(self):
        qty = self.cleaned_data["sell_quantity"]
        if qty <= 0:
            raise forms.ValidationError("Quantity must be positive.")
        return qty


class ClosedShiftQueryForm(forms.Form):
    date = forms.DateField()


class ClosedShiftListForm(forms.Form):
    shift_id = forms.IntegerField(required=False, min_value=1)
    start_date = forms.DateField(required=False)
    end_date = forms.DateField(required=False)
    search = forms.CharField(required=False, max_length=100)
    page = forms.IntegerField(required=False, min_value=1)
    per_page = forms.IntegerField(required=False, min_value=1)
