"""
inventory_engine/audit.py

Audit trail for order state transitions.

Goals:
- Record WHICH order moved, by WHICH action, with BEFORE/AFTER snapshots.
- Store the client address when the transition was requested over HTTP.

IMPORTANT:
- log_action() only ADDS an AuditLog row to the session. The caller owns the
  transaction, so the audit row commits or rolls back together with the
  transition it describes.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from flask import has_request_context, request

from .models import AuditLog


def log_action(
    session,
    entity: Any,
    action: str,
    *,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Add an AuditLog entry for `entity` to `session`.

    `entity` must already carry its primary key.
    """
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        raise ValueError("log_action entity must have an 'id' attribute (after flush).")

    entry = AuditLog(
        entity_type=entity.__class__.__name__,
        entity_id=int(entity_id),
        action=str(action),
        before_data=json.dumps(before, ensure_ascii=False) if before else None,
        after_data=json.dumps(after, ensure_ascii=False) if after else None,
        ip_address=request.remote_addr if has_request_context() else None,
    )
    session.add(entry)
    return entry
