"""
Account-group sets used by the books and the balance sheet.
"""
CASH_GROUPS = ("CASH_IN_HAND",)
BANK_GROUPS = ("BANK_ACCOUNT", "MOBILE_BANK")

# Groups that never appear on the balance sheet (nominal accounts).
NOMINAL_GROUPS = ("INCOME", "EXPENSE", "OTHER")

# Balance sheet buckets in display order.
ASSET_BUCKETS = (
    "Cash in Hand",
    "Bank Deposit",
    "Customer Due",
    "Supplier Advance",
    "Other Assets",
    "In Stock Product",
)
LIABILITY_BUCKETS = (
    "Purchase Due",
    "Customer Advance",
    "Customer Security",
    "Bank Loan",
    "Other Liabilities",
)

# Lender accounts reported on the loan summary.
LOAN_GROUPS = ("BANK_LOAN",)
