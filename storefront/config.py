# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, passerelle de paiement)
- Paramètres métier du checkout: devise, préfixe de reçu, TTL des commandes en attente, seuil de stock bas
- Sécurité cookies, CORS/hosts
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_int(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

def _env_flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

# Supabase: URLs et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Passerelle de paiement (API compatible Razorpay)
# - KEY_ID est public (exposé au widget), KEY_SECRET ne quitte jamais le serveur
PAYMENT_GATEWAY_KEY_ID = _clean_env(os.getenv("PAYMENT_GATEWAY_KEY_ID") or "")
PAYMENT_GATEWAY_KEY_SECRET = _clean_env(os.getenv("PAYMENT_GATEWAY_KEY_SECRET") or "")
PAYMENT_GATEWAY_API_URL = _clean_env(os.getenv("PAYMENT_GATEWAY_API_URL") or "https://api.razorpay.com/v1").rstrip("/")
PAYMENT_GATEWAY_TIMEOUT = float(_env_int("PAYMENT_GATEWAY_TIMEOUT", 5))
PAYMENT_CURRENCY = _clean_env(os.getenv("PAYMENT_CURRENCY") or "INR").upper()

# Checkout
STORE_NAME = _clean_env(os.getenv("STORE_NAME") or "Elite Diecast")
RECEIPT_PREFIX = _clean_env(os.getenv("RECEIPT_PREFIX") or "ORDER")
PENDING_ORDER_TTL_MINUTES = _env_int("PENDING_ORDER_TTL_MINUTES", 30)
LOW_STOCK_THRESHOLD = _env_int("LOW_STOCK_THRESHOLD", 5)
REQUIRE_ADDRESS_AT_CHECKOUT = _env_flag("REQUIRE_ADDRESS_AT_CHECKOUT")

# Cookies / sécurité
COOKIE_SECURE = _env_flag("COOKIE_SECURE")
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
