from .customer import Customer, CustomerLedgerEntry, LoyaltyTransaction
from .sales_invoice import SalesInvoice
from .sales_item import SalesItem
from .sales_payment import SalesPayment
from .sales_return import SalesReturn, SalesReturnItem

__all__ = [
    "Customer",
    "CustomerLedgerEntry",
    "LoyaltyTransaction",
    "SalesInvoice",
    "SalesItem",
    "SalesPayment",
    "SalesReturn",
    "SalesReturnItem",
]
