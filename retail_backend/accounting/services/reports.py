# accounting/services/reports.py

"""
OWNER REPORTS (read-only)

- compute_profit_summary: revenue, cost of goods, gross / net profit for a window
- build_balance_sheet:    assets vs liabilities + equity, with the balance gap
- build_year_end_report:  everything the owner needs to close a fiscal year

Profit is measured on sales lines net of returns:
    revenue      = sum(line totals) - sum(returned line totals)
    cost_of_goods = sum(FIFO cost)  - sum(cost put back by returns)
Nothing here writes; FiscalYearClose stores a snapshot of these dicts.
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, DecimalField, F, Q, Sum
from django.db.models.functions import Coalesce

from accounting.models import Expense, FiscalYearClose, OwnerWithdrawal
from accounting.services.account_balances import get_balances
from accounting.services.company_service import ensure_company
from accounting.services.fiscal_period import resolve_fiscal_year_period
from core.money import ZERO, to_money
from products.models import StockBatch
from purchases.models import PurchaseInvoice
from sales.models import CustomerLedgerEntry, SalesInvoice, SalesItem, SalesReturnItem

MONEY_FIELD = DecimalField(max_digits=20, decimal_places=2)


def _sum(qs, expr) -> Decimal:
    total = qs.aggregate(
        total=Coalesce(Sum(expr, output_field=MONEY_FIELD), ZERO, output_field=MONEY_FIELD)
    )["total"]
    return to_money(total)


def _date_range(field, start=None, end=None) -> Q:
    q = Q()
    if start:
        q &= Q(**{f"{field}__gte": start})
    if end:
        q &= Q(**{f"{field}__lte": end})
    return q


def compute_profit_summary(*, branch, start=None, end=None) -> dict:
    sales_items = SalesItem.objects.filter(
        Q(invoice__branch=branch) & _date_range("invoice__invoice_date", start, end)
    )
    return_items = SalesReturnItem.objects.filter(
        Q(sales_return__branch=branch) & _date_range("sales_return__return_date", start, end)
    )
    expenses = Expense.objects.filter(Q(branch=branch) & _date_range("expense_date", start, end))

    gross_sales = _sum(sales_items, "line_total")
    returns = _sum(return_items, "line_total")
    sold_cost = _sum(sales_items, "cost_of_goods")
    returned_cost = _sum(return_items, "cost_amount")
    operating_expense = _sum(expenses, "amount")

    revenue = to_money(gross_sales - returns)
    cost_of_goods = to_money(sold_cost - returned_cost)
    gross_profit = to_money(revenue - cost_of_goods)
    net_profit = to_money(gross_profit - operating_expense)

    return {
        "gross_sales": gross_sales,
        "returns": returns,
        "revenue": revenue,
        "cost_of_goods": cost_of_goods,
        "gross_profit": gross_profit,
        "operating_expense": operating_expense,
        "net_profit": net_profit,
    }


def receivables_for(*, branch) -> Decimal:
    entries = CustomerLedgerEntry.objects.filter(branch=branch)
    debits = _sum(entries.filter(entry_type=CustomerLedgerEntry.EntryType.DEBIT), "amount")
    credits = _sum(entries.filter(entry_type=CustomerLedgerEntry.EntryType.CREDIT), "amount")
    return to_money(debits - credits)


def payables_for(*, branch) -> Decimal:
    return _sum(PurchaseInvoice.objects.filter(branch=branch), "due_amount")


def inventory_value_for(*, branch) -> Decimal:
    return _sum(
        StockBatch.objects.filter(branch=branch, quantity_remaining__gt=0),
        F("quantity_remaining") * F("unit_cost"),
    )


def build_balance_sheet(*, branch, company=None) -> dict:
    company = company or ensure_company()

    accounts = get_balances(branch=branch)
    receivables = receivables_for(branch=branch)
    inventory_value = inventory_value_for(branch=branch)
    assets_total = to_money(accounts["total"] + receivables + inventory_value)

    payables = payables_for(branch=branch)
    liabilities_total = payables

    opening_capital = to_money(company.opening_capital)
    retained_earnings = compute_profit_summary(branch=branch)["net_profit"]
    withdrawals = _sum(
        OwnerWithdrawal.objects.filter(company=company, branch=branch), "amount"
    )
    equity_total = to_money(opening_capital + retained_earnings - withdrawals)

    liabilities_and_equity = to_money(liabilities_total + equity_total)

    return {
        "assets": {
            "accounts": accounts,
            "receivables": receivables,
            "inventory_value": inventory_value,
            "total": assets_total,
        },
        "liabilities": {
            "supplier_payables": payables,
            "total": liabilities_total,
        },
        "equity": {
            "opening_capital": opening_capital,
            "retained_earnings": retained_earnings,
            "owner_withdrawals": withdrawals,
            "total": equity_total,
        },
        "liabilities_and_equity": liabilities_and_equity,
        "balance_gap": to_money(assets_total - liabilities_and_equity),
    }


def _invoice_summary(qs) -> dict:
    agg = qs.aggregate(
        count=Count("id"),
        total=Coalesce(Sum("total"), ZERO, output_field=MONEY_FIELD),
        paid=Coalesce(Sum("paid_amount"), ZERO, output_field=MONEY_FIELD),
        due=Coalesce(Sum("due_amount"), ZERO, output_field=MONEY_FIELD),
    )
    return {
        "count": agg["count"],
        "total": to_money(agg["total"]),
        "paid": to_money(agg["paid"]),
        "due": to_money(agg["due"]),
    }


def build_year_end_report(*, branch, fiscal_year=None, company=None, today=None) -> dict:
    company = company or ensure_company()
    period = resolve_fiscal_year_period(company, fiscal_year, today=today)
    window = {"start": period.period_start, "end": period.period_end}

    sales = _invoice_summary(
        SalesInvoice.objects.filter(
            Q(branch=branch) & _date_range("invoice_date", **window)
        )
    )
    purchases = _invoice_summary(
        PurchaseInvoice.objects.filter(
            Q(branch=branch) & _date_range("invoice_date", **window)
        )
    )
    profit = compute_profit_summary(branch=branch, **window)

    withdrawals_qs = OwnerWithdrawal.objects.filter(
        Q(company=company, branch=branch) & _date_range("withdrawal_date", **window)
    )
    period_withdrawals = _sum(withdrawals_qs, "amount")

    accounts = get_balances(branch=branch)

    max_by_profit = to_money(max(profit["net_profit"] - period_withdrawals, ZERO))
    max_by_cash = to_money(max(accounts["total"], ZERO))

    close = FiscalYearClose.objects.filter(branch=branch, fiscal_year=period.fiscal_year).first()

    return {
        "fiscal_year": period.fiscal_year,
        "period": {
            "start": period.period_start,
            "end": period.period_end,
            "label": period.label,
        },
        "company": {
            "name": company.name,
            "owner_name": company.owner_name,
            "currency": company.currency,
            "opening_capital": to_money(company.opening_capital),
        },
        "branch_id": getattr(branch, "id", branch),
        "sales": sales,
        "purchases": purchases,
        "profit": profit,
        "owner_withdrawals": {
            "total": period_withdrawals,
            "count": withdrawals_qs.count(),
        },
        "year_end_position": {
            "accounts": accounts,
            "receivables": receivables_for(branch=branch),
            "payables": payables_for(branch=branch),
        },
        "owner_take_guide": {
            "max_by_profit": max_by_profit,
            "max_by_cash": max_by_cash,
            "suggested": min(max_by_profit, max_by_cash),
        },
        "closed": (
            {"closed_at": close.closed_at, "closed_by": close.closed_by_id, "note": close.note}
            if close
            else None
        ),
    }
