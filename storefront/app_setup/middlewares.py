"""
Middlewares transverses de l'application.
- register_basic_middlewares: session, CORS, TrustedHost.
- register_security_middleware: en-têtes de sécurité et CSP (le widget de paiement est autorisé).
- register_no_cache_middleware: empêche la mise en cache sur /checkout, /payment et /api/v1/admin.
La protection CSRF est enregistrée séparément (storefront.utils.csrf).
"""
from fastapi import Request, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.sessions import SessionMiddleware
from storefront.config import SUPABASE_URL, COOKIE_SECURE, CORS_ORIGINS, ALLOWED_HOSTS, SESSION_SECRET_KEY

# Widget de paiement (script + iframe + API)
GATEWAY_SOURCES = ["https://checkout.razorpay.com", "https://api.razorpay.com"]
NO_CACHE_PREFIXES = ("/checkout", "/payment", "/api/v1/admin", "/api/v1/cart")

def register_basic_middlewares(app: FastAPI) -> None:
    """
    - SessionMiddleware: panier, commande en attente et messages flash vivent dans le cookie signé.
    - CORSMiddleware: autorise les origines définies (dev/prod).
    - TrustedHostMiddleware: limite les hôtes acceptés (défense host header).
    """
    app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY, https_only=COOKIE_SECURE, same_site="lax")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS,
    )

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        if "X-Frame-Options" not in response.headers:
            response.headers["X-Frame-Options"] = "DENY"
        if "X-Content-Type-Options" not in response.headers:
            response.headers["X-Content-Type-Options"] = "nosniff"
        if "Referrer-Policy" not in response.headers:
            response.headers["Referrer-Policy"] = "no-referrer"
        if "Permissions-Policy" not in response.headers:
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        if COOKIE_SECURE and "Strict-Transport-Security" not in response.headers:
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"

        csp_connect = ["'self'"] + GATEWAY_SOURCES
        if SUPABASE_URL:
            csp_connect.append(SUPABASE_URL.rstrip("/"))
        gateway = " ".join(GATEWAY_SOURCES)
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            "img-src 'self' data: blob:; "
            "style-src 'self' 'unsafe-inline'; "
            f"script-src 'self' {gateway}; "
            f"frame-src {gateway}; "
            f"connect-src {' '.join(csp_connect)}"
        )
        return response

def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_protected(request: Request, call_next):
        response = await call_next(request)
        path = request.url.path.rstrip("/")
        if request.method == "GET" and path.startswith(NO_CACHE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response
