from typing import Any, Dict, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.addresses.repository
def insert_address(row: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table("addresses").insert(row).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("addresses.repository.insert_address failed user_id=%s", row.get("user_id"))
        return None

def fetch_user_addresses(user_id: str, limit: Optional[int] = None) -> List[dict]:
    if not user_id:
        return []
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("addresses")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        if limit:
            query = query.limit(limit)
        res = query.execute()
        return res.data or []
    except Exception:
        logger.exception("addresses.repository.fetch_user_addresses failed user_id=%s", user_id)
        return []

def delete_address(address_id: int, user_id: str) -> bool:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("addresses")
            .delete()
            .eq("id", int(address_id))
            .eq("user_id", user_id)
            .execute()
        )
        return len(res.data or []) > 0
    except Exception:
        logger.exception("addresses.repository.delete_address failed id=%s user_id=%s", address_id, user_id)
        return False
