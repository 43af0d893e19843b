import json
from flask import request, current_app
from models import db
from models.audit_log import AuditLog

# failures that need an operator's eye, everything else is informational
WARN_ACTIONS = {"BOOKING_FAIL_ROLLBACK", "BOOKING_FAIL_UNAVAILABLE", "LEDGER_ORPHANS_FOUND"}

def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None):
    """Persist an audit row for the current request and mirror it to the app logger."""
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    )
    db.session.add(row)
    db.session.commit()

    level = "warning" if action in WARN_ACTIONS else "info"
    getattr(current_app.logger, level)(
        "audit action=%s user=%s %s=%s meta=%s", action, user_id, entity, entity_id, row.metadata_json
    )
    return row
