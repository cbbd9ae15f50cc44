# accounting/management/commands/close_fiscal_year.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from accounting.management.commands._branch import branch_from_option
from accounting.services.company_service import ensure_company
from accounting.services.fiscal_close_service import close_fiscal_year
from accounting.services.fiscal_period import current_fiscal_year
from core.exceptions import RetailCoreError


class Command(BaseCommand):
    help = "Close a fiscal year for a branch (one immutable snapshot per year)."

    def add_arguments(self, parser):
        parser.add_argument("--branch", required=True, help="Branch code or id")
        parser.add_argument("--year", type=int, help="Fiscal year (defaults to the last completed one)")
        parser.add_argument("--user", help="Username recorded as closed_by")
        parser.add_argument("--note", default="", help="Free-text note stored on the close")

    def handle(self, *args, **options):
        branch = branch_from_option(options.get("branch"))

        user = None
        username = (options.get("user") or "").strip()
        if username:
            user = get_user_model().objects.filter(username=username).first()
            if user is None:
                raise CommandError(f"User not found: {username}")

        year = options.get("year")
        if year is None:
            year = current_fiscal_year(ensure_company()) - 1

        try:
            record = close_fiscal_year(
                branch=branch,
                user=user,
                fiscal_year=year,
                note=options.get("note") or "",
            )
        except RetailCoreError as exc:
            raise CommandError(f"{exc.code}: {exc}") from exc

        profit = record.summary["year_end_owner"]["profit"]["net_profit"]
        self.stdout.write(
            self.style.SUCCESS(
                f"Closed fiscal year {record.fiscal_year} for {branch.name} "
                f"({record.period_start} to {record.period_end}), net profit {profit}"
            )
        )
