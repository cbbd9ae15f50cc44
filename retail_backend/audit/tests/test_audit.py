# audit/tests/test_audit.py

from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase

from audit.models import AuditLog
from audit.services import log_audit
from core.tests.factories import make_branch, make_product, make_user, stock
from sales.services.invoice_service import create_sales_invoice


class AuditOnCommitTests(TestCase):
    """
    GUARANTEES:
    - Business operations leave an audit row once they commit
    - Failed operations leave none
    - A broken audit write never breaks the caller
    """

    def setUp(self):
        self.branch = make_branch()
        self.user = make_user(self.branch)
        self.product = make_product(self.branch)
        stock(self.product, 3)

    def test_sale_is_audited_on_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            invoice = create_sales_invoice(
                branch=self.branch,
                items=[{"product_id": self.product.id, "quantity": 1}],
                user=self.user,
            )

        log = AuditLog.objects.get(entity_type="SalesInvoice")
        self.assertEqual(log.entity_id, str(invoice.id))
        self.assertEqual(log.action, AuditLog.Action.CREATE)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.payload["number"], invoice.number)

    def test_nothing_written_before_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            create_sales_invoice(
                branch=self.branch,
                items=[{"product_id": self.product.id, "quantity": 1}],
            )

        self.assertEqual(len(callbacks), 1)
        self.assertFalse(AuditLog.objects.exists())

    def test_sink_swallows_failures(self):
        with mock.patch.object(AuditLog.objects, "create", side_effect=RuntimeError("db down")):
            with self.assertLogs("audit.services", level="ERROR"):
                result = log_audit(action="CREATE", entity_type="Thing", entity_id="1")

        self.assertIsNone(result)

    def test_rows_are_immutable(self):
        log = log_audit(user=self.user, action="UPDATE", entity_type="Thing", entity_id="1")

        log.entity_type = "Other"
        with self.assertRaises(ValidationError):
            log.save()
        with self.assertRaises(ValidationError):
            log.delete()
