from .account_balance import AccountBalance
from .company import Company
from .expense import Expense, ExpenseCategory
from .fiscal_year_close import FiscalYearClose
from .owner_withdrawal import OwnerWithdrawal

__all__ = [
    "AccountBalance",
    "Company",
    "Expense",
    "ExpenseCategory",
    "FiscalYearClose",
    "OwnerWithdrawal",
]
