from typing import Any, Dict, List
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.reconciliation.repository
def insert_task(row: Dict[str, Any]) -> Dict[str, Any]:
    res = supabase_client.get_service_supabase().table("payment_reconciliations").insert(row).execute()
    rows = res.data or []
    return rows[0] if rows else {}

def fetch_tasks(status: str = "open", limit: int = 100) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("payment_reconciliations")
            .select("*")
            .eq("status", status)
            .order("created_at")
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("reconciliation.repository.fetch_tasks failed status=%s", status)
        return []

def mark_resolved(task_id: int, resolved_at: str) -> bool:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("payment_reconciliations")
            .update({"status": "resolved", "resolved_at": resolved_at})
            .eq("id", int(task_id))
            .eq("status", "open")
            .execute()
        )
        return len(res.data or []) > 0
    except Exception:
        logger.exception("reconciliation.repository.mark_resolved failed task_id=%s", task_id)
        return False
