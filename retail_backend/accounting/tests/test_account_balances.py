# accounting/tests/test_account_balances.py

from decimal import Decimal

from django.test import TestCase

from accounting.models import AccountBalance
from accounting.services.account_balances import (
    IN,
    OUT,
    account_type_from_payment_method,
    apply_movement,
    ensure_funds,
    get_balances,
    normalize_account_type,
    set_balances,
)
from core.exceptions import DomainValidationError, InsufficientFundsError
from core.tests.factories import make_branch


class AccountBalanceStoreTests(TestCase):
    """
    GUARANTEES:
    - Balances never go negative
    - A rejected OUT leaves the balance unchanged
    - set_balances validates everything before writing anything
    """

    def setUp(self):
        self.branch = make_branch()

    def test_missing_rows_read_as_zero(self):
        balances = get_balances(branch=self.branch)

        self.assertEqual(balances["CASH"], Decimal("0.00"))
        self.assertEqual(balances["total"], Decimal("0.00"))

    def test_set_and_read_back(self):
        result = set_balances(branch=self.branch, balances={"cash": "100", "BANK": 50.5, "bogus": 9})

        self.assertEqual(result["CASH"], Decimal("100.00"))
        self.assertEqual(result["BANK"], Decimal("50.50"))
        self.assertEqual(result["CARD"], Decimal("0.00"))
        self.assertEqual(result["total"], Decimal("150.50"))

    def test_set_rejects_negative_and_writes_nothing(self):
        with self.assertRaises(DomainValidationError):
            set_balances(branch=self.branch, balances={"CASH": "10", "BANK": "-1"})

        self.assertFalse(AccountBalance.objects.filter(branch=self.branch).exists())

    def test_set_rejects_non_numeric(self):
        with self.assertRaises(DomainValidationError):
            set_balances(branch=self.branch, balances={"CARD": "lots"})

    def test_in_then_out(self):
        apply_movement(branch=self.branch, account_type="CASH", amount="80", direction=IN)
        movement = apply_movement(branch=self.branch, account_type="CASH", amount="30", direction=OUT)

        self.assertEqual(movement.before, Decimal("80.00"))
        self.assertEqual(movement.after, Decimal("50.00"))
        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("50.00"))

    def test_out_beyond_balance_is_rejected_and_unchanged(self):
        set_balances(branch=self.branch, balances={"BANK": "20"})

        with self.assertRaises(InsufficientFundsError) as ctx:
            apply_movement(branch=self.branch, account_type="BANK", amount="20.01", direction=OUT)

        self.assertEqual(ctx.exception.available, Decimal("20.00"))
        self.assertEqual(ctx.exception.required, Decimal("20.01"))
        self.assertEqual(get_balances(branch=self.branch)["BANK"], Decimal("20.00"))

    def test_ensure_funds(self):
        set_balances(branch=self.branch, balances={"CARD": "5"})

        self.assertEqual(ensure_funds(branch=self.branch, account_type="CARD", amount="5"), Decimal("5.00"))
        with self.assertRaises(InsufficientFundsError):
            ensure_funds(branch=self.branch, account_type="CARD", amount="6", purpose="test")

    def test_non_positive_amounts_are_noops(self):
        self.assertIsNone(apply_movement(branch=self.branch, account_type="CASH", amount=0, direction=OUT))
        self.assertIsNone(ensure_funds(branch=self.branch, account_type="CASH", amount=-3))

    def test_invalid_direction_and_account(self):
        with self.assertRaises(DomainValidationError):
            apply_movement(branch=self.branch, account_type="CASH", amount=1, direction="SIDEWAYS")
        with self.assertRaises(DomainValidationError):
            apply_movement(branch=self.branch, account_type="GOLD", amount=1, direction=IN)

    def test_payment_method_mapping(self):
        self.assertEqual(account_type_from_payment_method(" bank "), "BANK")
        self.assertIsNone(account_type_from_payment_method("CREDIT"))
        self.assertEqual(normalize_account_type("mobile"), "CASH")

    def test_balances_are_per_branch(self):
        other = make_branch(name="Second", code="SEC")
        set_balances(branch=self.branch, balances={"CASH": "10"})

        self.assertEqual(get_balances(branch=other)["CASH"], Decimal("0.00"))
