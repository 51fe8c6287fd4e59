"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l'instance FastAPI (app).

Configure :

CORS (autorisations de qui peut appeler ces API)

titre, version, tags

schéma OpenAPI personnalisé

gestionnaires d'erreurs : toute erreur devient {"success": false, "message": ...}

Inclut les routers (ex : /api/v1/videos).

Initialise la base au démarrage, le store OTP et la purge des vues anciennes.

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d'exécution : uvicorn streamsurf.main:app --reload.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from streamsurf.core.config import settings
from streamsurf.core.errors import AppError
from streamsurf.core.logging import setup_logging
from streamsurf.core.openapi import custom_openapi
from streamsurf.db.session import engine, init_db
from streamsurf.db.repositories.interactions import InteractionRepository
from streamsurf.db.models.base import utcnow
from streamsurf.utils.kv_store import InMemoryKeyValueStore

from streamsurf.api.v1.routers import admin, authentication, videos

import uvicorn

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    openapi_tags=[
        {"name": "auth", "description": "Comptes, connexion et réinitialisation du mot de passe"},
        {"name": "videos", "description": "Catalogue, réactions, vues et favoris"},
        {"name": "admin", "description": "Gestion des comptes, des vidéos et du journal d'activité"},
    ],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins, allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

# Store OTP process-local (remplaçable via la dépendance get_otp_store)
app.state.otp_store = InMemoryKeyValueStore()

# Routers
app.include_router(authentication.router, prefix="/api/v1")
app.include_router(videos.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")

# Génération du schéma OpenAPI custom
app.openapi = lambda: custom_openapi(app)


# -----------------------------
# Gestion des erreurs
# -----------------------------
def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request", errors=jsonable_encoder(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Internal server error" if settings.ENV == "prod" else str(exc) or "Internal server error"
    return _error(500, message)


# -----------------------------
# Santé
# -----------------------------
@app.get("/health", tags=["health"], summary="État du service")
def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/", tags=["health"], summary="Accueil")
def root():
    return {"success": True, "message": f"{settings.APP_NAME} is running", "version": app.version}


# -----------------------------
# Démarrage
# -----------------------------
def cleanup_old_views() -> int:
    cutoff = utcnow() - timedelta(hours=settings.ACTIVITY_RETENTION_HOURS)
    with Session(engine) as session:
        return InteractionRepository(session).delete_views_older_than(cutoff)


@app.on_event("startup")
def on_startup():
    setup_logging()
    init_db()
    if settings.CLEANUP_ON_STARTUP:
        deleted = cleanup_old_views()
        logger.info("Startup cleanup: %s old view rows deleted", deleted)
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
