# module storefront.utils.csrf
from fastapi import FastAPI, Request
from fastapi.responses import Response, JSONResponse
import secrets
import urllib.parse
from storefront.config import COOKIE_SECURE
from storefront.utils.security import COOKIE_NAME

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
# Retour du widget de paiement: authentifié par la signature HMAC de la passerelle
CSRF_EXEMPT_PATHS = {
    "/payment/verify",
}

def get_or_create_csrf_token(request: Request) -> str:
    """
    Renvoie le token CSRF existant (cookie) ou en crée un nouveau.
    """
    token = request.cookies.get(CSRF_COOKIE_NAME)
    if not token:
        token = secrets.token_urlsafe(32)
    return token

def attach_csrf_cookie_if_missing(response: Response, request: Request, token: str) -> None:
    if not request.cookies.get(CSRF_COOKIE_NAME):
        response.set_cookie(
            key=CSRF_COOKIE_NAME,
            value=token,
            httponly=False,  # lu par le front pour l'en-tête X-CSRF-Token
            secure=COOKIE_SECURE,
            samesite="Lax",
            max_age=60 * 60,
            path="/",
        )

def is_exempt(path: str) -> bool:
    normalized_path = path.rstrip("/") or "/"
    exempt_normalized = {p.rstrip("/") or "/" for p in CSRF_EXEMPT_PATHS}
    return normalized_path in exempt_normalized or normalized_path.startswith("/static")

def register_csrf_middleware(app: FastAPI) -> None:
    """
    Double-submit cookie: sur requête mutative avec session (cookie sb_access),
    exige X-CSRF-Token (ou champ de formulaire csrf_token) égal au cookie csrf_token.
    """
    @app.middleware("http")
    async def csrf_protection(request: Request, call_next):
        method = request.method.upper()
        has_session = bool(request.cookies.get(COOKIE_NAME))
        is_state_changing = method in ("POST", "PUT", "PATCH", "DELETE")

        token = get_or_create_csrf_token(request)

        if is_state_changing and has_session and not is_exempt(request.url.path):
            header_token = request.headers.get(CSRF_HEADER_NAME, "")
            cookie_token = request.cookies.get(CSRF_COOKIE_NAME, "")
            form_token = ""

            if not header_token:
                ctype = request.headers.get("content-type", "")
                if ctype.startswith("application/x-www-form-urlencoded"):
                    body = await request.body()

                    async def receive():
                        return {"type": "http.request", "body": body, "more_body": False}
                    request._receive = receive

                    parsed_body = urllib.parse.parse_qs(body.decode("utf-8", errors="replace"))
                    csrf_values = parsed_body.get(CSRF_HEADER_NAME, []) + parsed_body.get("csrf_token", [])
                    if csrf_values:
                        form_token = csrf_values[0]

            provided = header_token or form_token
            if not cookie_token or not provided or not secrets.compare_digest(provided, cookie_token):
                return JSONResponse(status_code=403, content={"detail": "CSRF verification failed"})

        response = await call_next(request)
        attach_csrf_cookie_if_missing(response, request, token)
        return response
