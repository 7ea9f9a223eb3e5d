"""
Modèles du paiement: statuts locaux, réponses de la passerelle (pydantic), résultats de service.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class PaymentStatus(str, Enum):
    CREATED = "created"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.SUCCESS, PaymentStatus.FAILED)


class GatewayOrder(BaseModel):
    """Réponse de POST /orders (champs inconnus ignorés)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None


class GatewayRefund(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    payment_id: Optional[str] = None
    amount: Optional[int] = None
    status: Optional[str] = None


@dataclass
class PaymentIntent:
    """Données nécessaires au widget de paiement côté client."""
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key_id: str
    payment_id: Optional[int]
    order_id: int

    def to_widget_options(self, store_name: str, user: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        user = user or {}
        return {
            "key": self.key_id,
            "amount": self.amount_minor,
            "currency": self.currency,
            "name": store_name,
            "order_id": self.gateway_order_id,
            "prefill": {"email": user.get("email") or "", "name": user.get("full_name") or ""},
            "notes": {"order_id": str(self.order_id)},
        }


@dataclass
class SettlementResult:
    ok: bool
    payment: Dict[str, Any] = field(default_factory=dict)
    already_settled: bool = False
    reason: Optional[str] = None
    error: Optional[Exception] = None
