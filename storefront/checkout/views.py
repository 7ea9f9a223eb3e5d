# module storefront.checkout.views

"""Endpoints du parcours d'achat.
- /checkout (GET): récapitulatif du panier valorisé + adresse.
- /checkout (POST): crée la commande 'pending' et l'intent, renvoie les options du widget.
- /payment/verify (POST): retour du widget (form ou JSON), redirige vers /payment/success ou /payment/failed.
- /payment/success, /payment/failed: lecture unique du message flash.
- /payment/abandon (POST): widget fermé sans payer.
Sécurité:
- require_user sur toutes les routes; optional_rate_limit sur la création de l'intent.
"""
from decimal import Decimal
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from storefront import config
from storefront.utils.security import require_user
from storefront.utils.rate_limit import optional_rate_limit
from . import service as checkout_service
from .context import CheckoutContext

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Checkout"])

# Noms des champs postés par le widget Razorpay (handler/callback) acceptés en alias
_FIELD_ALIASES = {
    "gateway_order_id": ("gateway_order_id", "razorpay_order_id"),
    "gateway_payment_id": ("gateway_payment_id", "razorpay_payment_id"),
    "gateway_signature": ("gateway_signature", "razorpay_signature"),
}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


async def _read_payload(request: Request) -> Dict[str, Any]:
    ctype = request.headers.get("content-type", "")
    if ctype.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return {k: v for k, v in form.items()}


def _pick(payload: Dict[str, Any], field: str) -> str:
    for name in _FIELD_ALIASES[field]:
        value = payload.get(name)
        if value:
            return str(value).strip()
    return ""


@router.get("/checkout")
def checkout_summary(request: Request, user: Dict[str, Any] = Depends(require_user)):
    ctx = CheckoutContext.from_request(request, user)
    summary = checkout_service.build_summary(ctx)
    return _jsonable(summary)


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def checkout_start(request: Request, user: Dict[str, Any] = Depends(require_user)):
    """
    Démarre le paiement du panier de la session.
    - 200: {"order_id", "gateway_order_id", "payment": <options du widget>}
    - 400 panier vide/adresse, 409 stock, 502 passerelle, 500 persistance: {"detail": message, "code": ...}
    """
    ctx = CheckoutContext.from_request(request, user)
    outcome = checkout_service.start_checkout(ctx)
    if not outcome.ok:
        return JSONResponse(
            status_code=outcome.status_code,
            content={"detail": outcome.message, "code": outcome.error_code, "order_id": outcome.order_id},
        )
    intent = outcome.payment_intent
    return {
        "order_id": outcome.order_id,
        "gateway_order_id": intent.gateway_order_id,
        "amount": f"{intent.amount:.2f}",
        "payment": intent.to_widget_options(config.STORE_NAME, user),
    }


@router.post("/payment/verify")
async def payment_verify(request: Request, user: Dict[str, Any] = Depends(require_user)):
    payload = await _read_payload(request)
    ctx = CheckoutContext.from_request(request, user)
    outcome = checkout_service.complete_payment(
        ctx,
        _pick(payload, "gateway_order_id"),
        _pick(payload, "gateway_payment_id"),
        _pick(payload, "gateway_signature"),
    )
    target = "/payment/success" if outcome.ok else "/payment/failed"
    return RedirectResponse(url=target, status_code=HTTP_303_SEE_OTHER)


@router.get("/payment/success")
def payment_success(request: Request, user: Dict[str, Any] = Depends(require_user)):
    message = CheckoutContext.from_request(request, user).pop_flash(checkout_service.FLASH_SUCCESS)
    if not message:
        return RedirectResponse(url="/api/v1/orders/mine", status_code=HTTP_303_SEE_OTHER)
    return {"status": "success", "message": message}


@router.get("/payment/failed")
def payment_failed(request: Request, user: Dict[str, Any] = Depends(require_user)):
    message = CheckoutContext.from_request(request, user).pop_flash(checkout_service.FLASH_ERROR)
    if not message:
        return RedirectResponse(url="/checkout", status_code=HTTP_303_SEE_OTHER)
    return {"status": "failed", "message": message}


@router.post("/payment/abandon")
async def payment_abandon(request: Request, user: Dict[str, Any] = Depends(require_user)):
    payload = await _read_payload(request)
    gateway_order_id = _pick(payload, "gateway_order_id")
    if not gateway_order_id:
        raise HTTPException(status_code=400, detail="gateway_order_id manquant")
    outcome = checkout_service.abandon_payment(CheckoutContext.from_request(request, user), gateway_order_id)
    if not outcome.ok:
        raise HTTPException(status_code=outcome.status_code, detail=outcome.message)
    return outcome.to_dict()
