# accounting/management/commands/set_account_balances.py

"""
PATH: accounting/management/commands/set_account_balances.py

Administrative overwrite of a branch's CASH / BANK / CARD balances.

- Only the accounts passed on the command line are touched.
- Negative or non-numeric values are rejected before anything is written.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from accounting.management.commands._branch import branch_from_option
from accounting.services.account_balances import set_balances
from core.exceptions import RetailCoreError


class Command(BaseCommand):
    help = "Set CASH/BANK/CARD balances for a branch."

    def add_arguments(self, parser):
        parser.add_argument("--branch", required=True, help="Branch code or id")
        parser.add_argument("--cash", help="New CASH balance")
        parser.add_argument("--bank", help="New BANK balance")
        parser.add_argument("--card", help="New CARD balance")

    def handle(self, *args, **options):
        branch = branch_from_option(options.get("branch"))

        balances = {
            key.upper(): options[key]
            for key in ("cash", "bank", "card")
            if options.get(key) is not None
        }
        if not balances:
            raise CommandError("Pass at least one of --cash, --bank, --card")

        try:
            result = set_balances(branch=branch, balances=balances)
        except RetailCoreError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            self.style.SUCCESS(
                f"Balances for {branch.name}: "
                f"CASH {result['CASH']} | BANK {result['BANK']} | CARD {result['CARD']} "
                f"(total {result['total']})"
            )
        )
