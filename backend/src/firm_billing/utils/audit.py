"""Audit logging for billing changes.

Provides a helper to record charge transitions and a decorator that records
configuration updates with user context and change tracking for compliance.
"""
import inspect
from functools import wraps
from typing import Callable, Optional
from uuid import UUID, uuid4
import structlog

from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.models.audit_log import AuditLog

logger = structlog.get_logger(__name__)


def _stringify(value) -> Optional[str]:
    """Render enum members by value so audit entries stay readable."""
    if value is None:
        return None
    return str(getattr(value, "value", value))


async def log_audit(
    db: AsyncSession,
    entity_type: str,
    entity_id: UUID,
    action: str,
    user_id: Optional[str] = None,
    changes: Optional[dict] = None,
    request_id: Optional[str] = None,
) -> None:
    """
    Log an audit entry.

    Args:
        db: Database session
        entity_type: Type of entity (billing_charge, billing_rule, split_billing_config)
        entity_id: Entity UUID
        action: Action performed (create, update, approve, cancel, ...)
        user_id: User who performed the action
        changes: Dictionary of changes {field: {old: X, new: Y}}
        request_id: Request correlation ID
    """
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        changes=changes or {},
        request_id=request_id or str(uuid4()),
    )

    db.add(audit_log)
    await db.flush()

    logger.info(
        "audit_log_created",
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        user_id=user_id,
        change_count=len(changes) if changes else 0,
    )


def status_change(old_status, new_status) -> dict:
    """Changes payload for a lifecycle status transition."""
    return {"status": {"old": _stringify(old_status), "new": _stringify(new_status)}}


def audit_update(entity_type: str):
    """
    Decorator to audit update operations.

    The wrapped coroutine returns ``(entity, old_values)``; the wrapper diffs
    old_values against the entity, logs the changed fields and returns only
    the entity.

    Usage:
        @audit_update("billing_rule")
        async def update_rule(self, firm_id: UUID, update: BillingRuleUpdate, current_user: dict | None = None):
            rule = await self.get_rule(firm_id)
            old_values = {k: getattr(rule, k) for k in fields}
            ...
            return rule, old_values

    Args:
        entity_type: Type of entity being updated
    """
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            entity, old_values = await func(self, *args, **kwargs)

            # Audit context may be passed positionally or by keyword
            bound = signature.bind(self, *args, **kwargs)
            current_user = bound.arguments.get("current_user") or {}
            user_id = current_user.get("sub")
            request_id = bound.arguments.get("request_id")

            changes = {}
            for field, old_value in old_values.items():
                new_value = getattr(entity, field, None)
                if old_value != new_value:
                    changes[field] = {"old": _stringify(old_value), "new": _stringify(new_value)}

            if changes:
                await log_audit(
                    db=self.db,
                    entity_type=entity_type,
                    entity_id=entity.id,
                    action="update",
                    user_id=user_id,
                    changes=changes,
                    request_id=request_id,
                )

            return entity

        return wrapper
    return decorator
