"""Audit trail for admin and account actions"""

import logging
import math
from datetime import datetime
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session, joinedload

from .models import AuditLog

logger = logging.getLogger(__name__)

AUDIT_ACTIONS = {
    "APPROVE_CLEANER",
    "SUSPEND_CLEANER",
    "ACTIVATE_CLEANER",
    "EDIT_CLEANER",
    "DELETE_CLEANER",
    "SET_TEAM_LEADER",
    "REMOVE_TEAM_LEADER",
    "UPDATE_SETTINGS",
    "UPDATE_FEEDBACK",
    "IMPERSONATE_START",
    "IMPERSONATE_STOP",
    "CANCEL_BOOKING",
    "UPDATE_REVIEW",
    "DELETE_REVIEW",
}

TARGET_TYPES = {"CLEANER", "OWNER", "BOOKING", "USER", "SETTINGS", "FEEDBACK", "TEAM", "REVIEW"}


def _request_origin(request: Optional[Request]) -> tuple[Optional[str], Optional[str]]:
    if request is None:
        return None, None
    headers = request.headers
    forwarded = headers.get("x-forwarded-for")
    ip_address = (
        (forwarded.split(",")[0].strip() if forwarded else None)
        or headers.get("x-real-ip")
        or headers.get("cf-connecting-ip")
    )
    return ip_address, headers.get("user-agent")


def log_audit(
    db: Session,
    user_id: str,
    action: str,
    target: Optional[str] = None,
    target_type: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> None:
    """
    Record an audit event.

    Never raises: audit logging must not break the operation being audited.
    """
    if action not in AUDIT_ACTIONS:
        logger.warning(f"⚠️ Unknown audit action: {action}")
    if target_type and target_type not in TARGET_TYPES:
        logger.warning(f"⚠️ Unknown audit target type: {target_type}")

    try:
        ip_address, user_agent = _request_origin(request)
        db.add(
            AuditLog(
                user_id=user_id,
                action=action,
                target=target,
                target_type=target_type,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to log audit event {action}: {e}")


def get_audit_logs(
    db: Session,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    """Audit logs, newest first, with pagination"""
    query = db.query(AuditLog)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if target_type:
        query = query.filter(AuditLog.target_type == target_type)
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    total = query.count()
    logs = (
        query.options(joinedload(AuditLog.user))
        .order_by(AuditLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "logs": [
            {
                "id": log.id,
                "action": log.action,
                "target": log.target,
                "targetType": log.target_type,
                "details": log.details,
                "ipAddress": log.ip_address,
                "createdAt": log.created_at.isoformat() if log.created_at else None,
                "user": {
                    "id": log.user.id,
                    "name": log.user.name,
                    "email": log.user.email,
                    "role": log.user.role,
                }
                if log.user
                else None,
            }
            for log in logs
        ],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }
