import json
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from ...utils import hash_phone_number
from ...application.ports.audit_logger import AuditLogger


def mask_phone(phone: str) -> str:
    if not phone or len(phone) <= 4:
        return "****"
    return "*" * (len(phone) - 4) + phone[-4:]


class StdAuditLogger(AuditLogger):
    """Writes one ``AUDIT: {json}`` line per auth event; phones are hashed, never logged raw."""

    def __init__(self, service: str = "agriconnect-auth") -> None:
        self._logger = logging.getLogger("agriconnect.audit")
        self.service = service

    def log(self, action: str, phone: str, user_id: Optional[str] = None, request_id: Optional[str] = None, ip_address: Optional[str] = None, success: bool = True, details: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service,
            "action": action,
            "phone_hash": hash_phone_number(phone),
            "phone_masked": mask_phone(phone),
            "user_id": user_id,
            "request_id": request_id,
            "ip_address": ip_address,
            "success": success,
            "details": details or {},
        }
        level = logging.INFO if success else logging.WARNING
        self._logger.log(level, f"AUDIT: {json.dumps(entry, default=str)}")
