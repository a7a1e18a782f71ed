from typing import Any

from sqlalchemy.orm import Session

from menumagic.core.security_current import RequestContext
from menumagic.models.audit_log import AuditLog


def log_audit_event(
    db: Session,
    *,
    ctx: RequestContext,
    action: str,
    target_type: str,
    target_id: int | str | None = None,
    metadata_json: dict[str, Any] | None = None,
) -> AuditLog:
    event = AuditLog(
        restaurant_id=ctx.restaurant_id,
        actor_user_id=ctx.user_id,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        metadata_json=metadata_json,
    )
    db.add(event)
    return event
