from typing import Any, Dict, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.orders.repository
# Les écritures lèvent (le service les traduit en PersistenceError); les lectures retournent None/[].

def insert_order(user_id: str, total: str, status: str) -> Dict[str, Any]:
    res = (
        supabase_client.get_service_supabase()
        .table("orders")
        .insert({"user_id": user_id, "total": total, "status": status})
        .execute()
    )
    rows = res.data or []
    if not rows:
        raise RuntimeError("insert orders returned no row")
    return rows[0]

def insert_order_items(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    res = supabase_client.get_service_supabase().table("order_items").insert(rows).execute()
    return res.data or []

def delete_order(order_id: int) -> bool:
    try:
        supabase_client.get_service_supabase().table("orders").delete().eq("id", int(order_id)).execute()
        return True
    except Exception:
        logger.exception("orders.repository.delete_order failed id=%s", order_id)
        return False

def update_order_status(order_id: int, status: str, updated_at: str, expected_status: Optional[str] = None) -> bool:
    """
    Met à jour le statut. Avec expected_status, n'écrit que si le statut courant correspond
    (mise à jour conditionnelle: False si la commande a changé entre-temps).
    """
    query = (
        supabase_client.get_service_supabase()
        .table("orders")
        .update({"status": status, "updated_at": updated_at})
        .eq("id", int(order_id))
    )
    if expected_status:
        query = query.eq("status", expected_status)
    res = query.execute()
    return len(res.data or []) > 0

def get_order(order_id: int) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("*")
            .eq("id", int(order_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        return None

def get_order_items(order_id: int) -> List[dict]:
    """Propage les erreurs: le workflow de paiement ne doit pas confondre 'erreur' et 'aucune ligne'."""
    res = (
        supabase_client.get_service_supabase()
        .table("order_items")
        .select("product_id, quantity, unit_price")
        .eq("order_id", int(order_id))
        .execute()
    )
    return res.data or []

def fetch_user_orders(user_id: str, limit: int = 50) -> List[dict]:
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("id, total, status, created_at, order_items(product_id, quantity, unit_price)")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_user_orders failed user_id=%s", user_id)
        return []

def fetch_pending_orders_before(cutoff_iso: str, limit: int = 500) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("id, user_id, created_at")
            .eq("status", "pending")
            .lt("created_at", cutoff_iso)
            .order("created_at")
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_pending_orders_before failed cutoff=%s", cutoff_iso)
        return []
