from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from storefront.utils.security import require_user
from .snapshot import CartSnapshot

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemRequest(BaseModel):
    product_id: int
    quantity: int = 1


class UpdateQuantityRequest(BaseModel):
    quantity: int = Field(ge=0)


def _state(cart: CartSnapshot) -> Dict[str, Any]:
    return {
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in cart.items().items()],
        "item_count": cart.item_count(),
    }

# module storefront.cart.views
@router.get("")
def get_cart(request: Request, user: Dict[str, Any] = Depends(require_user)):
    return _state(CartSnapshot(request.session))

@router.post("/items")
def add_item(req: AddItemRequest, request: Request, user: Dict[str, Any] = Depends(require_user)):
    """Ajoute une quantité au panier (quantité < 1 ignorée, pas de contrôle de stock ici)."""
    cart = CartSnapshot(request.session)
    cart.add(req.product_id, req.quantity)
    return _state(cart)

@router.patch("/items/{product_id}")
def update_item(product_id: int, req: UpdateQuantityRequest, request: Request, user: Dict[str, Any] = Depends(require_user)):
    """Fixe la quantité; 0 retire la ligne."""
    cart = CartSnapshot(request.session)
    cart.update_quantity(product_id, req.quantity)
    return _state(cart)

@router.delete("/items/{product_id}")
def remove_item(product_id: int, request: Request, user: Dict[str, Any] = Depends(require_user)):
    cart = CartSnapshot(request.session)
    cart.remove(product_id)
    return _state(cart)

@router.delete("")
def clear_cart(request: Request, user: Dict[str, Any] = Depends(require_user)):
    cart = CartSnapshot(request.session)
    cart.clear()
    return _state(cart)
