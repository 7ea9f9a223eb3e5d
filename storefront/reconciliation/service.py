"""
Tâches de réconciliation des paiements: trace ce qui existe chez la passerelle
sans contrepartie locale cohérente (commande distante orpheline, remboursement échoué),
pour traitement manuel par un administrateur.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from . import repository

logger = logging.getLogger(__name__)

ORPHAN_GATEWAY_ORDER = "orphan_gateway_order"
REFUND_FAILED = "refund_failed"
KINDS = (ORPHAN_GATEWAY_ORDER, REFUND_FAILED)


def record_task(
    kind: str,
    *,
    gateway_order_id: Optional[str] = None,
    order_id: Optional[int] = None,
    payment_id: Optional[str] = None,
    detail: str = "",
) -> bool:
    """Enregistre une tâche 'open'. Ne lève jamais: en dernier recours, la trace reste dans les logs."""
    row: Dict[str, Any] = {
        "kind": kind,
        "gateway_order_id": gateway_order_id,
        "order_id": int(order_id) if order_id is not None else None,
        "payment_id": payment_id,
        "detail": (detail or "")[:1000],
        "status": "open",
    }
    try:
        repository.insert_task(row)
    except Exception:
        logger.exception(
            "reconciliation.record_task failed kind=%s gateway_order_id=%s order_id=%s payment_id=%s",
            kind, gateway_order_id, order_id, payment_id,
        )
        return False
    logger.warning(
        "reconciliation task recorded kind=%s gateway_order_id=%s order_id=%s", kind, gateway_order_id, order_id
    )
    return True


def list_open_tasks(limit: int = 100) -> List[dict]:
    return repository.fetch_tasks("open", limit)


def resolve_task(task_id: int) -> bool:
    return repository.mark_resolved(task_id, datetime.now(timezone.utc).isoformat())
