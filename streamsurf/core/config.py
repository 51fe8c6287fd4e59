"""
➡️ But : Centraliser tous les paramètres configurables (nom d'app, chemin DB, secrets, S3, email...).

Utilise pydantic-settings pour charger automatiquement les variables d'environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from streamsurf.core.config import settings
print(settings.APP_NAME)


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from datetime import timedelta
from typing import List, Optional

from pydantic_settings import BaseSettings
from streamsurf.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "StreamSurf API"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"  # liste séparée par des virgules

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "streamsurf.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "streamsurf-api"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TTL_DAYS: int = 30             # pas de refresh : un seul token longue durée

    # -----------------------------
    # OTP (mot de passe oublié)
    # -----------------------------
    OTP_TTL_MINUTES: int = 10
    OTP_LENGTH: int = 6

    # -----------------------------
    # S3 / MinIO
    # -----------------------------
    S3_ENDPOINT: str = "http://localhost:9000"
    S3_PUBLIC_BASE_URL: Optional[str] = None   # auto depuis S3_ENDPOINT si None
    S3_REGION: str = "us-east-1"
    S3_KEY: str = "minioadmin"
    S3_SECRET: str = "minioadmin"
    S3_BUCKET: str = "media"

    MAX_VIDEO_UPLOAD_MB: int = 100
    MAX_THUMBNAIL_UPLOAD_MB: int = 5
    DEFAULT_THUMBNAIL_URL: str = "/static/default-thumbnail.jpg"

    # -----------------------------
    # Email transactionnel (Brevo)
    # -----------------------------
    BREVO_API_KEY: Optional[str] = None
    BREVO_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    EMAIL_SENDER_NAME: str = "StreamSurf"
    EMAIL_SENDER_ADDRESS: str = "no-reply@streamsurf.local"
    EMAIL_TIMEOUT_SECONDS: int = 10

    # -----------------------------
    # Catalogue / activité
    # -----------------------------
    ACTIVITY_RETENTION_HOURS: int = 24
    ACTIVITY_LIST_LIMIT: int = 1000
    ADMIN_LIST_LIMIT: int = 10000
    HISTORY_LIMIT: int = 50
    TRENDING_LIMIT: int = 10
    CLEANUP_ON_STARTUP: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # URL publique des objets : endpoint interne par défaut
        if not self.S3_PUBLIC_BASE_URL:
            object.__setattr__(self, "S3_PUBLIC_BASE_URL", self.S3_ENDPOINT)

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Instance globale importable partout
settings = Settings()

# Objet JWT prêt à l'emploi pour les services
jwt_settings = JWTSettings(
    secret=settings.JWT_SECRET_KEY,
    issuer=settings.JWT_ISSUER,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(days=settings.ACCESS_TTL_DAYS),
)
