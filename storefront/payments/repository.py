"""
Accès aux données pour la feature 'payments' (table 'payments').
"""
from typing import Any, Dict, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.payments.repository
def insert_payment(row: Dict[str, Any]) -> Dict[str, Any]:
    """Insère un paiement. Propage les erreurs: l'appelant décide de la compensation."""
    res = supabase_client.get_service_supabase().table("payments").insert(row).execute()
    rows = res.data or []
    if not rows:
        raise RuntimeError("insert payments returned no row")
    return rows[0]

def get_payment_by_gateway_order_id(gateway_order_id: str) -> Optional[dict]:
    """Propage les erreurs: 'introuvable' et 'base indisponible' ne doivent pas se confondre."""
    if not gateway_order_id:
        return None
    res = (
        supabase_client.get_service_supabase()
        .table("payments")
        .select("*")
        .eq("gateway_order_id", gateway_order_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def update_payment(
    gateway_order_id: str,
    values: Dict[str, Any],
    only_statuses: Optional[List[str]] = None,
    only_error_reasons: Optional[List[str]] = None,
) -> List[dict]:
    """
    Met à jour le paiement de gateway_order_id.
    only_statuses: n'écrit que si le statut courant est dans la liste (transition gardée).
    only_error_reasons: idem sur error_reason.
    Retourne les lignes modifiées ([] si la garde a écarté l'écriture).
    """
    query = (
        supabase_client.get_service_supabase()
        .table("payments")
        .update(values)
        .eq("gateway_order_id", gateway_order_id)
    )
    if only_statuses:
        query = query.in_("status", list(only_statuses))
    if only_error_reasons:
        query = query.in_("error_reason", list(only_error_reasons))
    res = query.execute()
    return res.data or []

def fail_created_payments_for_orders(order_ids: List[int], reason: str, updated_at: str) -> int:
    if not order_ids:
        return 0
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("payments")
            .update({"status": "failed", "error_reason": reason, "updated_at": updated_at})
            .in_("order_id", [int(i) for i in order_ids])
            .in_("status", ["created", "pending"])
            .execute()
        )
        return len(res.data or [])
    except Exception:
        logger.exception("payments.repository.fail_created_payments_for_orders failed order_ids=%s", order_ids)
        return 0

def list_user_payments(user_id: str, limit: int = 50) -> List[dict]:
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("payments")
            .select("id, order_id, gateway_order_id, gateway_payment_id, amount, currency, status, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("payments.repository.list_user_payments failed user_id=%s", user_id)
        return []

def list_payments(limit: int = 50, offset: int = 0) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("payments")
            .select("*")
            .order("created_at", desc=True)
            .range(int(offset), int(offset) + int(limit) - 1)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("payments.repository.list_payments failed limit=%s offset=%s", limit, offset)
        return []
