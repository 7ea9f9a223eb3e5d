import re
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

PHONE_RE = re.compile(r"^\+?[0-9\s\-()]{10,}$")

_REQUIRED_MESSAGES = {
    "name": "Le nom est requis",
    "street_address": "L'adresse est requise",
    "city": "La ville est requise",
    "state": "La région est requise",
    "zip_code": "Le code postal est requis",
    "phone_number": "Le numéro de téléphone est requis",
}


class AddressIn(BaseModel):
    """Adresse de livraison saisie par l'utilisateur (tous les champs requis, espaces retirés)."""
    # Les champs absents passent aussi par les validateurs
    model_config = ConfigDict(validate_default=True)

    name: str = ""
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone_number: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def strip_value(cls, v: Any) -> str:
        return str(v if v is not None else "").strip()

    @field_validator("name", "street_address", "city", "state", "zip_code", "phone_number")
    @classmethod
    def required(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(_REQUIRED_MESSAGES[info.field_name])
        return v

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise ValueError("Veuillez saisir un numéro de téléphone valide")
        return v


def format_address(address: Dict[str, Any]) -> str:
    a = address or {}
    return (
        f"{a.get('name', '')}\n"
        f"{a.get('street_address', '')}\n"
        f"{a.get('city', '')}, {a.get('state', '')} {a.get('zip_code', '')}\n"
        f"Tél: {a.get('phone_number', '')}"
    )
