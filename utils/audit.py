import json
from flask import request, has_request_context
from models import db
from models.audit_log import AuditLog


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # first hop is the original client
        return forwarded.split(",")[0].strip()
    return request.remote_addr


def client_user_agent() -> str:
    user_agent = request.headers.get("User-Agent", "")
    return user_agent[:255] if user_agent else None


def log_event(action: str, admin_email=None, entity=None, entity_id=None, metadata=None):
    ip = client_ip() if has_request_context() else None
    user_agent = client_user_agent() if has_request_context() else None

    row = AuditLog(
        admin_email=admin_email,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    db.session.commit()
