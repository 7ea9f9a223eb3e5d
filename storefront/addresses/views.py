from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException

from storefront.utils.security import require_user
from . import service as addresses_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/addresses", tags=["Addresses API"])

# module storefront.addresses.views
@router.get("")
def list_addresses(user: Dict[str, Any] = Depends(require_user)):
    return {"addresses": addresses_service.list_user_addresses(user.get("id"))}

@router.get("/latest")
def latest_address(user: Dict[str, Any] = Depends(require_user)):
    address = addresses_service.get_latest_address(user.get("id"))
    if not address:
        raise HTTPException(status_code=404, detail="Aucune adresse enregistrée")
    return {"address": address, "formatted": addresses_service.format_address(address)}

@router.post("", status_code=201)
def create_address(payload: Dict[str, Any], user: Dict[str, Any] = Depends(require_user)):
    """
    Crée une adresse de livraison.
    - Validation AddressIn (champs requis, format téléphone); 400 avec la liste des erreurs sinon.
    """
    result = addresses_service.create_address(user.get("id"), payload)
    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["errors"])
    return {"address": result["address"]}

@router.delete("/{address_id}")
def delete_address(address_id: int, user: Dict[str, Any] = Depends(require_user)):
    if not addresses_service.delete_address(address_id, user.get("id")):
        raise HTTPException(status_code=404, detail="Adresse introuvable")
    return {"status": "ok"}
