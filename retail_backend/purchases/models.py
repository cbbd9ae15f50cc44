# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from branches.models import Branch
from products.models import Product, StockBatch

User = settings.AUTH_USER_MODEL


class Supplier(models.Model):
    """
    Supplier master.

    branch=NULL means the supplier is shared by every branch.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="suppliers",
        null=True,
        blank=True,
    )

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class PurchaseInvoice(models.Model):
    """
    Supplier invoice header.

    Created (and stock received) in one step by purchase_service.
    Totals and status are derived by the invoice totals engine:
    - RECEIVED: fully paid
    - PARTIAL:  something paid, something due
    - ORDERED:  nothing paid yet
    """

    STATUS_ORDERED = "ORDERED"
    STATUS_PARTIAL = "PARTIAL"
    STATUS_RECEIVED = "RECEIVED"

    STATUSES = [
        (STATUS_ORDERED, "Ordered"),
        (STATUS_PARTIAL, "Partially paid"),
        (STATUS_RECEIVED, "Received"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=40, unique=True)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="purchase_invoices",
    )
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_date = models.DateField(default=timezone.localdate)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    due_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_ORDERED)
    note = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoices_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=Decimal("0.00")),
                name="purchase_invoice_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=Decimal("0.00"))
                & models.Q(paid_amount__lte=models.F("total")),
                name="purchase_invoice_paid_within_total",
            ),
            models.CheckConstraint(
                condition=models.Q(due_amount__gte=Decimal("0.00")),
                name="purchase_invoice_due_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["branch", "invoice_date"], name="purchase_branch_date_idx"),
        ]

    def clean(self):
        if self.paid_amount > self.total:
            raise ValidationError({"paid_amount": "paid_amount cannot exceed total"})

        if self.due_amount != self.total - self.paid_amount:
            raise ValidationError({"due_amount": "due_amount must equal total - paid_amount"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.number} ({self.supplier.name})"


class PurchaseItem(models.Model):
    """
    Supplier invoice line. Receiving it creates exactly one StockBatch.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice = models.ForeignKey(
        PurchaseInvoice,
        on_delete=models.PROTECT,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_items",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    sell_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    batch_number = models.CharField(max_length=128, blank=True, default="")
    expiry_date = models.DateField(null=True, blank=True)

    stock_batch = models.OneToOneField(
        StockBatch,
        on_delete=models.PROTECT,
        related_name="purchase_item",
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="purchase_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_cost__gte=Decimal("0.00")),
                name="purchase_item_unit_cost_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(discount__gte=Decimal("0.00")),
                name="purchase_item_discount_nonnegative",
            ),
        ]

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity} ({self.batch_number})"


class SupplierPayment(models.Model):
    """
    Money paid to a supplier against one purchase invoice. Append-only.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    invoice = models.ForeignKey(
        PurchaseInvoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=8)
    reference = models.CharField(max_length=120, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_payments_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="supplier_payment_amount_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Supplier payments are append-only")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.supplier.name} ({self.invoice.number}) - {self.amount}"
