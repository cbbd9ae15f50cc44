# core/tests/factories.py

"""
Shared builders for the test suites (plain ORM, no fixtures).
"""

from decimal import Decimal

from django.contrib.auth import get_user_model

from accounting.services.account_balances import set_balances
from branches.models import Branch
from products.models import Product
from products.services.stock_ledger import receive_batch
from purchases.models import Supplier
from sales.models import Customer

User = get_user_model()


def make_branch(name="Main", code="MAIN"):
    return Branch.objects.create(name=name, code=code)


def make_user(branch, username="cashier", role=User.Role.CASHIER):
    return User.objects.create_user(
        username=username,
        password="pass",
        role=role,
        branch=branch,
    )


def make_product(branch, sku="SKU-1", name="Rice 5kg", sell_price="20.00", **extra):
    return Product.objects.create(
        branch=branch,
        sku=sku,
        name=name,
        sell_price=Decimal(sell_price),
        **extra,
    )


def stock(product, quantity, unit_cost="10.00", **extra):
    return receive_batch(
        product=product,
        branch=product.branch_id,
        quantity=Decimal(str(quantity)),
        unit_cost=Decimal(unit_cost),
        **extra,
    )


def fund(branch, cash="0", bank="0", card="0"):
    return set_balances(branch=branch, balances={"CASH": cash, "BANK": bank, "CARD": card})


def make_customer(branch, name="Ada"):
    return Customer.objects.create(branch=branch, name=name)


def make_supplier(branch=None, name="Acme Wholesale"):
    return Supplier.objects.create(branch=branch, name=name)
