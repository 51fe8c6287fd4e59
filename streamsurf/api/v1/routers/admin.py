from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status

from streamsurf.api.v1.dependencies import get_admin_service, get_current_admin
from streamsurf.core.responses import ApiResponse, MessageOut, ok
from streamsurf.db.models.users import User
from streamsurf.features.admin.schemas import ActivityOut, CleanupOut, EmailIn, RoleIn, StatusIn
from streamsurf.features.admin.services import AdminService
from streamsurf.features.users.schemas import UserOut
from streamsurf.features.videos.schemas import VideoOut, VideoUpdateIn

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={
        401: {"description": "Non authentifié"},
        403: {"description": "Réservé aux admins"},
        404: {"description": "Not Found"},
    },
)

# -----------------------------
# Comptes
# -----------------------------
@router.get(
    "/users",
    summary="Lister les comptes",
    response_model=ApiResponse[List[UserOut]],
)
def list_users(
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    return ok([UserOut.model_validate(u) for u in svc.list_users()])


@router.put(
    "/users/{user_id}/role",
    summary="Changer le rôle d'un compte",
    response_model=ApiResponse[UserOut],
)
def update_role(
    payload: RoleIn,
    user_id: int = Path(..., ge=1),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    user = svc.update_role(admin=admin, user_id=user_id, role=payload.role)
    return ok(UserOut.model_validate(user), "User role updated successfully")


@router.put(
    "/users/{user_id}/email",
    summary="Changer l'email d'un compte",
    response_model=ApiResponse[UserOut],
)
def update_email(
    payload: EmailIn,
    user_id: int = Path(..., ge=1),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    user = svc.update_email(admin=admin, user_id=user_id, email=payload.email)
    return ok(UserOut.model_validate(user), "User email updated successfully")


@router.put(
    "/users/{user_id}/status",
    summary="Activer / désactiver un compte",
    response_model=ApiResponse[UserOut],
)
def update_status(
    payload: StatusIn,
    user_id: int = Path(..., ge=1),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    user = svc.update_status(admin=admin, user_id=user_id, is_active=payload.is_active)
    return ok(UserOut.model_validate(user), "User status updated successfully")


@router.delete(
    "/users/{user_id}",
    summary="Supprimer un compte (et ses interactions)",
    response_model=MessageOut,
)
def delete_user(
    user_id: int = Path(..., ge=1),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    svc.delete_user(admin=admin, user_id=user_id)
    return MessageOut(message="User deleted successfully")

# -----------------------------
# Vidéos
# -----------------------------
@router.get(
    "/videos",
    summary="Lister toutes les vidéos (publiées ou non)",
    response_model=ApiResponse[List[VideoOut]],
)
def list_videos(
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    return ok(svc.list_videos())


@router.post(
    "/videos/upload",
    summary="Uploader une vidéo (Back → MinIO → DB)",
    description="Multipart : fichier vidéo, miniature facultative et métadonnées.",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[VideoOut],
)
async def upload_video(
    file: UploadFile = File(...),
    thumbnail: Optional[UploadFile] = File(None),
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form("Other"),
    tags: Optional[str] = Form(None, description='Liste JSON ["a","b"] ou "a,b"'),
    duration: int = Form(0),
    is_published: bool = Form(True),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    video = await svc.upload_video(
        admin=admin,
        file=file,
        thumbnail=thumbnail,
        title=title,
        description=description,
        category=category,
        tags=tags,
        duration=duration,
        is_published=is_published,
    )
    return ok(video, "Video uploaded successfully")


@router.put(
    "/videos/{video_id}",
    summary="Modifier une vidéo (dont publier / dépublier)",
    response_model=ApiResponse[VideoOut],
)
def update_video(
    payload: VideoUpdateIn,
    video_id: int = Path(..., ge=1),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    return ok(svc.update_video(video_id, payload), "Video updated successfully")


@router.delete(
    "/videos/{video_id}",
    summary="Supprimer une vidéo (objets MinIO + ligne DB)",
    response_model=MessageOut,
)
def delete_video(
    video_id: int = Path(..., ge=1),
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    svc.delete_video(video_id)
    return MessageOut(message="Video deleted successfully")

# -----------------------------
# Journal d'activité
# -----------------------------
@router.get(
    "/activity",
    summary="Dernières interactions",
    response_model=ApiResponse[List[ActivityOut]],
)
def list_activity(
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    return ok(svc.list_activity())


@router.delete(
    "/activity/cleanup",
    summary="Purger les vues de plus de 24h",
    response_model=ApiResponse[CleanupOut],
)
def cleanup_activity(
    admin: User = Depends(get_current_admin),
    svc: AdminService = Depends(get_admin_service),
):
    result = svc.cleanup_activity()
    return ok(result, f"Cleaned up {result.deleted_count} old view records")
