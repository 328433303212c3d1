"""Audit trail for administrative actions."""

import logging
import uuid
from typing import Any, Dict, Optional

from localpro.models import Actor, AuditLogEntry, utc_now
from localpro.storage.base import AuditStorage

logger = logging.getLogger(__name__)

# Action names
UPDATE_JOB_STATUS = "UPDATE_JOB_STATUS"
DELETE_JOB = "DELETE_JOB"
APPROVE_PAYMENT = "APPROVE_PAYMENT"
REJECT_PAYMENT = "REJECT_PAYMENT"


class AuditLogger:
    """Writes one audit entry per administrative mutation."""

    def __init__(self, storage: AuditStorage):
        self.storage = storage

    def log_action(
        self,
        actor: Actor,
        module: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Record ``action``. Returns False if the write failed.

        Audit writes happen after the mutation they describe has committed,
        so a failure here is logged and reported but not raised.
        """
        entry = AuditLogEntry(
            id=str(uuid.uuid4()),
            actor_id=actor.id,
            actor_name=actor.name,
            module=module,
            action=action,
            details=details or {},
            timestamp=utc_now(),
        )
        try:
            self.storage.save_audit_entry(entry)
        except Exception as e:
            logger.error(f"Audit write failed | actor={actor.id} | {module}.{action} | {details}: {e}")
            return False
        return True
