# accounting/tests/test_expenses_withdrawals.py

from decimal import Decimal

from django.test import TestCase

from accounting.models import Expense, ExpenseCategory, OwnerWithdrawal
from accounting.services.account_balances import get_balances
from accounting.services.expense_service import create_expense
from accounting.services.withdrawal_service import record_owner_withdrawal
from core.exceptions import DomainValidationError, InsufficientFundsError, NotFoundError
from core.tests.factories import fund, make_branch


class ExpenseTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        fund(self.branch, cash="100")
        self.category = ExpenseCategory.objects.create(name="Rent")

    def test_cash_expense_moves_funds(self):
        expense = create_expense(branch=self.branch, amount="40", category=self.category.id)

        self.assertEqual(expense.category, self.category)
        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("60.00"))

    def test_credit_expense_does_not_move_funds(self):
        create_expense(branch=self.branch, amount="500", payment_method="credit")

        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("100.00"))
        self.assertEqual(Expense.objects.get().payment_method, "CREDIT")

    def test_unfunded_expense_is_rejected(self):
        with self.assertRaises(InsufficientFundsError):
            create_expense(branch=self.branch, amount="150")

        self.assertFalse(Expense.objects.exists())

    def test_validation(self):
        with self.assertRaises(DomainValidationError):
            create_expense(branch=self.branch, amount="0")
        with self.assertRaises(NotFoundError):
            create_expense(branch=self.branch, amount="1", category="missing")


class OwnerWithdrawalTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        fund(self.branch, bank="300")

    def test_withdrawal_debits_account(self):
        result = record_owner_withdrawal(branch=self.branch, amount="120", payment_method="BANK")

        self.assertEqual(result.movement.after, Decimal("180.00"))
        self.assertEqual(result.balances["BANK"], Decimal("180.00"))
        self.assertEqual(OwnerWithdrawal.objects.get().payment_method, "BANK")

    def test_withdrawal_needs_funds_and_account(self):
        with self.assertRaises(InsufficientFundsError):
            record_owner_withdrawal(branch=self.branch, amount="10", payment_method="CASH")
        with self.assertRaises(DomainValidationError):
            record_owner_withdrawal(branch=self.branch, amount="10", payment_method="CREDIT")

        self.assertFalse(OwnerWithdrawal.objects.exists())
