"""
Accès aux données du catalogue et du stock (table 'products' + fonctions SQL).
Les opérations multi-lignes passent par des fonctions PostgreSQL (rpc) pour rester atomiques:
voir supabase/migrations/*_stock_functions.sql.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.stock.repository
def fetch_products_by_ids(ids: List[int]) -> List[dict]:
    """
    Récupère les produits par leurs IDs.
    - Retourne [] si ids vide ou en cas d'erreur.
    """
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("products")
            .select("*")
            .in_("id", [int(i) for i in ids])
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("stock.repository.fetch_products_by_ids failed ids=%s", ids)
        return []

def get_products_map(ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
    """Retourne un dict {id: produit} à partir d'une liste d'IDs."""
    products = fetch_products_by_ids(list(ids))
    return {int(p.get("id")): p for p in products if p.get("id") is not None}

def get_product_stock(product_id: int) -> Optional[int]:
    """Stock courant ou None si produit inconnu. Propage les erreurs de connexion."""
    res = (
        supabase_client.get_service_supabase()
        .table("products")
        .select("id, stock")
        .eq("id", int(product_id))
        .limit(1)
        .execute()
    )
    rows = res.data or []
    if not rows:
        return None
    return int(rows[0].get("stock") or 0)

def call_reserve_and_decrement(items: List[Dict[str, int]]) -> None:
    """
    Appelle reserve_and_decrement_stock(items jsonb) dans une transaction unique.
    Les erreurs postgrest (APIError) remontent telles quelles: le service les traduit.
    """
    supabase_client.get_service_supabase().rpc("reserve_and_decrement_stock", {"items": items}).execute()

def call_restore_stock(product_id: int, quantity: int) -> None:
    supabase_client.get_service_supabase().rpc(
        "restore_stock", {"p_product_id": int(product_id), "p_quantity": int(quantity)}
    ).execute()

def fetch_low_stock_products(threshold: int) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("products")
            .select("id, name, brand, stock")
            .lte("stock", int(threshold))
            .order("stock")
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("stock.repository.fetch_low_stock_products failed threshold=%s", threshold)
        return []

def fetch_stock_statistics(threshold: int) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("stock_statistics", {"p_low_threshold": int(threshold)})
            .execute()
        )
        data = res.data
        if isinstance(data, list):
            return data[0] if data else None
        return data or None
    except Exception:
        logger.exception("stock.repository.fetch_stock_statistics failed")
        return None
