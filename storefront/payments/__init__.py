"""
Module 'payments' (feature-first): point d'entrée public.
Réunit montants, signature, client passerelle, repository BD et services.
"""

from .amounts import to_minor_units, make_receipt, make_notes
from .signature import compute_signature
from .models import PaymentStatus, GatewayOrder, GatewayRefund, PaymentIntent, SettlementResult
from .gateway_client import is_configured, require_gateway, create_order, refund_payment
from .service import (
    open_intent,
    verify_signature,
    settle,
    mark_failed,
    refund,
    get_payment,
    list_user_payments,
    list_payments,
)

__all__ = [
    # amounts
    "to_minor_units",
    "make_receipt",
    "make_notes",
    # signature
    "compute_signature",
    # models
    "PaymentStatus",
    "GatewayOrder",
    "GatewayRefund",
    "PaymentIntent",
    "SettlementResult",
    # gateway
    "is_configured",
    "require_gateway",
    "create_order",
    "refund_payment",
    # services
    "open_intent",
    "verify_signature",
    "settle",
    "mark_failed",
    "refund",
    "get_payment",
    "list_user_payments",
    "list_payments",
]
