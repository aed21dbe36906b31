"""
Audit logging service for tracking admin changes.
"""
from bakery.models.audit_log import AuditLog, AuditAction
from flask import request, g, has_request_context
import json
import logging

logger = logging.getLogger(__name__)


def log_action(
    session,
    action: AuditAction,
    resource_type: str = None,
    resource_id: int = None,
    details: dict = None
):
    """
    Add an audit entry to the session.

    Args:
        session: Database session
        action: AuditAction enum value
        resource_type: Type of resource affected (e.g., 'product', 'order')
        resource_id: ID of the affected resource
        details: Dict with additional details (will be JSON encoded)

    The entry joins the caller's transaction; the caller commits.
    """
    user = g.get('user') if has_request_context() else None

    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get('User-Agent', '')[:255]

    details_json = json.dumps(details, default=str) if details else None

    session.add(AuditLog(
        user_id=user.id if user else None,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details_json,
        ip_address=ip_address,
        user_agent=user_agent
    ))

    logger.info(f"Audit: {action.value} by user {user.id if user else '-'} on {resource_type} {resource_id}")


def get_audit_logs(session, limit: int = 100, offset: int = 0, action_filter: AuditAction = None):
    """Most recent audit entries, optionally filtered by action."""
    query = session.query(AuditLog)
    if action_filter:
        query = query.filter(AuditLog.action == action_filter)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()
