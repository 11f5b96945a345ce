# clientdesk/core/audit.py
"""
Audit logging for record mutations.
Writes one JSON line per create/update/delete to a dedicated log file.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from .sessions import Principal

logger = logging.getLogger(__name__)

# Dedicated audit logger, kept out of the root logger's output
audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)
audit_logger.propagate = False


def setup_audit_log(log_file: str) -> None:
    """Attach the JSON-lines file handler once per process."""
    if audit_logger.handlers:
        return
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(file_handler)


def _client_ip(request: Optional[Request]) -> str:
    if request is None:
        return "unknown"
    # Reverse proxies put the original address first
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def log_action(
    action: str,
    resource_type: str,
    resource_id: str,
    principal: Optional[Principal] = None,
    request: Optional[Request] = None,
    details: Optional[dict] = None,
    status: str = "success",
) -> None:
    """
    Log a record mutation to the audit log.

    Args:
        action: The action performed ("CREATE", "UPDATE", "DELETE")
        resource_type: Type of resource affected (e.g. "client")
        resource_id: Identifier of the affected resource
        principal: Who performed the action (optional)
        request: Request to extract the client IP from (optional)
        details: Additional context (optional)
        status: "success" or "failure"
    """
    client_ip = _client_ip(request)
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": getattr(action, "value", action).upper(),
        "resource_type": resource_type,
        "resource_id": str(resource_id),
        "user": principal.username if principal else "anonymous",
        "ip_address": client_ip,
        "status": status,
    }
    if details:
        log_entry["details"] = details

    audit_logger.info(json.dumps(log_entry, ensure_ascii=False))
    logger.info(
        "[AUDIT] %s %s/%s by %s from %s (%s)",
        log_entry["action"], resource_type, resource_id, log_entry["user"], client_ip, status,
    )
