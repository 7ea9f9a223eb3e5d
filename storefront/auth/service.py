"""
Résolution de l'utilisateur courant à partir d'un access token Supabase (GoTrue).
L'émission des tokens (login, inscription) est gérée hors de ce service.
"""
from typing import Any, Dict, Optional
import storefront.infra.supabase_client as supabase_client


def determine_role(metadata: Optional[Dict[str, Any]]) -> str:
    if str((metadata or {}).get("role", "")).lower() == "admin":
        return "admin"
    return "user"


def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token) en {id, email, full_name, metadata, role, token}."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None)
    if user is None:
        return {}
    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "full_name": metadata.get("full_name") or "",
        "metadata": metadata,
        "role": determine_role(metadata),
        "token": access_token,
    }
