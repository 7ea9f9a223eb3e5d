from typing import Any, Dict
from fastapi import APIRouter, Depends

from storefront.utils.security import require_user
from storefront.payments import service as payments_service

router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module storefront.payments.views
@router.get("/mine")
def my_payments(user: Dict[str, Any] = Depends(require_user)):
    """Paiements de l'utilisateur; ni signature ni secret ne sont exposés."""
    return {"payments": payments_service.list_user_payments(user.get("id"))}
