# core/ids.py

import uuid

from core.exceptions import NotFoundError


def as_uuid(value):
    """UUID from a model instance, UUID or string; None when it is not one."""
    value = getattr(value, "pk", value)
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        return None


def get_for_update(model, *, pk, branch=None, label="Record"):
    """
    Locked lookup by primary key, scoped to a branch when one is given
    (branch=None means an unscoped admin lookup). Raises NotFoundError.
    """
    qs = model.objects.select_for_update()
    if branch is not None:
        qs = qs.filter(branch_id=as_uuid(branch))

    found = qs.filter(pk=as_uuid(pk)).first()
    if found is None:
        raise NotFoundError(f"{label} not found")
    return found
