# barbershop/services/audit.py

import json
import logging
from typing import Optional

from ..models import ActionLog
from ..repository import Repository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Appends ActionLog rows. Writes are best-effort and never raise."""

    def __init__(self, repo: Repository):
        self.repo = repo

    def record(
        self,
        user_id: Optional[int],
        action: str,
        entity: str,
        entity_id: Optional[int] = None,
        details=None,
    ) -> Optional[ActionLog]:
        if details is not None and not isinstance(details, str):
            details = json.dumps(details, default=str)
        try:
            return self.repo.add(
                ActionLog(
                    user_id=user_id,
                    action=action,
                    entity=entity,
                    entity_id=entity_id,
                    details=details,
                )
            )
        except Exception:
            logger.exception("Could not write action log: %s %s #%s", action, entity, entity_id)
            return None

    def list(self, entity: Optional[str] = None, entity_id: Optional[int] = None, limit: int = 200):
        return self.repo.action_logs(entity=entity, entity_id=entity_id, limit=limit)
