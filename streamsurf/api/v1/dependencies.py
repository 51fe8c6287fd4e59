"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_video_service() : crée un VideoService à partir d'une session DB.

get_current_user() / get_optional_user() / get_current_admin() : le contrôle d'accès.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à surcharger dans les tests (app.dependency_overrides).
"""

from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from streamsurf.core.config import jwt_settings
from streamsurf.core.errors import AppError, ForbiddenError, UnauthorizedError
from streamsurf.db.models.users import User
from streamsurf.db.session import get_session

from streamsurf.db.repositories.users import UserRepository
from streamsurf.db.repositories.videos import VideoRepository
from streamsurf.db.repositories.interactions import InteractionRepository, SavedVideoRepository

from streamsurf.features.authentication.services import AuthService
from streamsurf.features.interactions.services import InteractionService
from streamsurf.features.videos.services import VideoService
from streamsurf.features.admin.services import AdminService
from streamsurf.features.media.services import MediaStorage

from streamsurf.utils.email import EmailSender
from streamsurf.utils.kv_store import InMemoryKeyValueStore, KeyValueStore


# -----------------------------
# Repositories
# -----------------------------
def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)

def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)

def get_interaction_repository(session: Session = Depends(get_session)) -> InteractionRepository:
    return InteractionRepository(session)

def get_saved_repository(session: Session = Depends(get_session)) -> SavedVideoRepository:
    return SavedVideoRepository(session)


# -----------------------------
# Ressources externes
# -----------------------------
def get_media_storage() -> MediaStorage:
    return MediaStorage()

def get_email_sender() -> EmailSender:
    return EmailSender()

def get_otp_store(request: Request) -> KeyValueStore:
    """Store créé au démarrage et partagé par toutes les requêtes du process."""
    store = getattr(request.app.state, "otp_store", None)
    if store is None:
        store = InMemoryKeyValueStore()
        request.app.state.otp_store = store
    return store


# -----------------------------
# Services
# -----------------------------
def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    otp_store: KeyValueStore = Depends(get_otp_store),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(
        user_repo=user_repo,
        jwt_settings=jwt_settings,
        otp_store=otp_store,
        email_sender=email_sender,
    )

def get_interaction_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    interaction_repo: InteractionRepository = Depends(get_interaction_repository),
    saved_repo: SavedVideoRepository = Depends(get_saved_repository),
) -> InteractionService:
    return InteractionService(
        video_repo=video_repo,
        interaction_repo=interaction_repo,
        saved_repo=saved_repo,
    )

def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    interaction_svc: InteractionService = Depends(get_interaction_service),
    interaction_repo: InteractionRepository = Depends(get_interaction_repository),
    saved_repo: SavedVideoRepository = Depends(get_saved_repository),
) -> VideoService:
    return VideoService(
        repo=video_repo,
        interaction_svc=interaction_svc,
        interaction_repo=interaction_repo,
        saved_repo=saved_repo,
    )

def get_admin_service(
    user_repo: UserRepository = Depends(get_user_repository),
    video_repo: VideoRepository = Depends(get_video_repository),
    interaction_repo: InteractionRepository = Depends(get_interaction_repository),
    video_svc: VideoService = Depends(get_video_service),
    storage: MediaStorage = Depends(get_media_storage),
) -> AdminService:
    return AdminService(
        user_repo=user_repo,
        video_repo=video_repo,
        interaction_repo=interaction_repo,
        video_svc=video_svc,
        storage=storage,
    )


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=False)

def get_access_token_from_bearer(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[str]:
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def get_current_user(
    access_token: Optional[str] = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> User:
    """Authentification obligatoire : 401 si token absent, invalide, expiré ou compte inactif."""
    if not access_token:
        raise UnauthorizedError("Not authorized to access this route")
    return auth_svc.resolve_user(access_token)


def get_optional_user(
    access_token: Optional[str] = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """Authentification facultative : tout échec donne un visiteur anonyme."""
    if not access_token:
        return None
    try:
        return auth_svc.resolve_user(access_token)
    except AppError:
        return None


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user
