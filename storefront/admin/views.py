"""
API JSON d'administration (require_admin): statuts de commande, expiration des commandes
en attente, stock, paiements et tâches de réconciliation.
"""
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from storefront.config import PENDING_ORDER_TTL_MINUTES
from storefront.errors import StorefrontError
from storefront.orders import service as orders_service
from storefront.payments import service as payments_service
from storefront.reconciliation import service as reconciliation_service
from storefront.stock import service as stock_service
from storefront.utils.security import require_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["Admin API"])


class StatusUpdate(BaseModel):
    status: str


# module storefront.admin.views
@router.patch("/orders/{order_id}/status")
def admin_update_order_status(order_id: int, body: StatusUpdate, user: Dict[str, Any] = Depends(require_admin)):
    try:
        result = orders_service.transition(order_id, body.status)
    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.user_message)
    logger.info("admin.order_status admin=%s order_id=%s to=%s", user.get("id"), order_id, result["to"])
    return result

@router.post("/orders/expire-stale")
def admin_expire_stale_orders(
    ttl_minutes: Optional[int] = Query(default=None, ge=1),
    user: Dict[str, Any] = Depends(require_admin),
):
    """Annule les commandes 'pending' plus vieilles que le TTL (PENDING_ORDER_TTL_MINUTES par défaut)."""
    ttl = ttl_minutes or PENDING_ORDER_TTL_MINUTES
    return {"expired": orders_service.expire_stale_orders(ttl), "ttl_minutes": ttl}

@router.get("/stock/low")
def admin_low_stock(threshold: Optional[int] = Query(default=None, ge=0), user: Dict[str, Any] = Depends(require_admin)):
    return {"items": stock_service.low_stock_products(threshold)}

@router.get("/stock/stats")
def admin_stock_stats(user: Dict[str, Any] = Depends(require_admin)):
    return stock_service.stock_statistics()

@router.get("/payments")
def admin_list_payments(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: Dict[str, Any] = Depends(require_admin),
):
    return {"items": payments_service.list_payments(limit, offset)}

@router.get("/reconciliations")
def admin_list_reconciliations(limit: int = Query(default=100, ge=1, le=500), user: Dict[str, Any] = Depends(require_admin)):
    return {"items": reconciliation_service.list_open_tasks(limit)}

@router.post("/reconciliations/{task_id}/resolve")
def admin_resolve_reconciliation(task_id: int, user: Dict[str, Any] = Depends(require_admin)):
    if not reconciliation_service.resolve_task(task_id):
        raise HTTPException(status_code=404, detail="Tâche introuvable ou déjà résolue")
    return {"status": "resolved", "task_id": task_id}
