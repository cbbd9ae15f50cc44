# audit/services.py

"""
AUDIT SINK

log_audit() never raises: a broken audit write is logged and swallowed so it
cannot fail the business operation it describes.

log_audit_on_commit() is what services call: the row is written only once the
surrounding transaction commits (rolled-back work leaves no audit trail).
"""

from __future__ import annotations

import logging

from django.db import transaction

from audit.models import AuditLog

logger = logging.getLogger(__name__)


def log_audit(*, user=None, action, entity_type, entity_id=None, payload=None):
    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                user_id=getattr(user, "id", user),
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id or ""),
                payload=payload or {},
            )
    except Exception:
        logger.exception(
            "Audit log write failed",
            extra={"action": action, "entity_type": entity_type, "entity_id": str(entity_id or "")},
        )
        return None


def log_audit_on_commit(*, user=None, action, entity_type, entity_id=None, payload=None):
    transaction.on_commit(
        lambda: log_audit(
            user=user,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            payload=payload,
        )
    )
