# module storefront.checkout.models
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from storefront.errors import StorefrontError
from storefront.payments.models import PaymentIntent


class CheckoutState(str, Enum):
    CART_READY = "cart_ready"
    ORDER_PENDING = "order_pending"
    GATEWAY_INTENT_OPEN = "gateway_intent_open"
    PAYMENT_VERIFIED = "payment_verified"
    STOCK_DECREMENTED = "stock_decremented"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class CheckoutOutcome:
    """
    Résultat d'une étape du checkout, traduit en HTTP par les vues.
    - state: dernier état atteint (FAILED si l'étape a échoué)
    - error_code: code de l'erreur métier (ex: insufficient_stock, gateway_error)
    - message: texte affichable à l'utilisateur
    """
    state: CheckoutState
    ok: bool
    order_id: Optional[int] = None
    payment_intent: Optional[PaymentIntent] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    status_code: int = 200
    already_completed: bool = False

    @classmethod
    def failure(cls, error: StorefrontError, order_id: Optional[int] = None) -> "CheckoutOutcome":
        return cls(
            state=CheckoutState.FAILED,
            ok=False,
            order_id=order_id,
            error_code=error.code,
            message=error.user_message,
            status_code=error.status_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "ok": self.ok,
            "order_id": self.order_id,
            "error_code": self.error_code,
            "message": self.message,
        }
