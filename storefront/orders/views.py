from typing import Any, Dict
from fastapi import APIRouter, Depends

from storefront.utils.security import require_user
from . import service as orders_service

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

# module storefront.orders.views
@router.get("/mine")
def my_orders(user: Dict[str, Any] = Depends(require_user)):
    """Historique des commandes de l'utilisateur (plus récentes d'abord), lignes incluses."""
    return {"orders": orders_service.list_user_orders(user.get("id"))}
