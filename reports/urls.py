from django.urls import path
from . import views

app_name = "reports"

urlpatterns = [
    path("ledger/<int:account_id>/", views.account_ledger, name="account_ledger"),
    path("cash-book/", views.cash_book_view, name="cash_book"),
    path("cash-book/<int:shift_closed_id>/", views.cash_book_shift_view, name="cash_book_shift"),
    path("bank-book/", views.bank_book_view, name="bank_book"),
    path("bank-book/<str:ac_number>/", views.bank_book_account_view, name="bank_book_account"),
    path("balance-sheet/", views.balance_sheet, name="balance_sheet"),
    path("monthly-dispenser/", views.monthly_dispenser_report_view, name="monthly_dispenser"),
    path("loans/", views.loan_list, name="loans"),
    path("loans/<int:account_id>/", views.loan_detail_view, name="loan_detail"),
    path("stock/", views.stock_report_view, name="stock"),
]
