from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query

from streamsurf.api.v1.dependencies import (
    get_current_user,
    get_interaction_service,
    get_optional_user,
    get_video_service,
)
from streamsurf.core.responses import ApiResponse, ok
from streamsurf.db.models.interactions import InteractionType
from streamsurf.db.models.users import User
from streamsurf.features.interactions.services import InteractionService
from streamsurf.features.videos.schemas import (
    IsSavedOut,
    ReactionIn,
    ReactionOut,
    SaveStateOut,
    VideoFilter,
    VideoListOut,
    VideoOut,
    ViewOut,
)
from streamsurf.features.videos.services import VideoService, parse_tags_param

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Catalogue (auth facultative)
# -----------------------------
@router.get(
    "",
    summary="Lister les vidéos publiées",
    description="Filtres : search, category, tags (ET logique). Tri : createdAt | views | likes | title | duration.",
    response_model=VideoListOut,
)
def list_videos(
    page: int = Query(1, ge=1, description="Numéro de page"),
    limit: int = Query(12, ge=1, le=100, description="Taille de page"),
    search: Optional[str] = Query(None, description="Texte cherché dans titre et description"),
    category: Optional[str] = Query(None, description="Catégorie exacte, ou all"),
    tags: Optional[str] = Query(None, description="Tags séparés par des virgules"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    order: Optional[Literal["asc", "desc"]] = Query(None),
    user: Optional[User] = Depends(get_optional_user),
    svc: VideoService = Depends(get_video_service),
):
    flt = VideoFilter(
        page=page,
        limit=limit,
        search=search,
        category=category,
        tags=parse_tags_param(tags),
        sort_by=sort_by,
        order=order,
    )
    result = svc.list_videos(flt, user=user)
    return VideoListOut(data=result.items, pagination=result.pagination)


@router.get(
    "/trending",
    summary="Vidéos les plus vues",
    response_model=ApiResponse[List[VideoOut]],
)
def trending(
    user: Optional[User] = Depends(get_optional_user),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.get_trending(user=user))


@router.get(
    "/tags",
    summary="Tous les tags des vidéos publiées",
    response_model=ApiResponse[List[str]],
)
def list_tags(svc: VideoService = Depends(get_video_service)):
    return ok(svc.get_tags())

# -----------------------------
# Listes personnelles (auth obligatoire)
# -----------------------------
@router.get(
    "/saved",
    summary="Mes vidéos enregistrées",
    response_model=ApiResponse[List[VideoOut]],
)
def saved_videos(
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.list_saved(user=user))


@router.get(
    "/history",
    summary="Mon historique de visionnage",
    response_model=ApiResponse[List[VideoOut]],
)
def view_history(
    user: User = Depends(get_current_user),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.view_history(user=user))

# -----------------------------
# Détail
# -----------------------------
@router.get(
    "/{video_id}",
    summary="Détail d'une vidéo avec ses compteurs",
    response_model=ApiResponse[VideoOut],
)
def get_video(
    video_id: int = Path(..., ge=1),
    user: Optional[User] = Depends(get_optional_user),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.get_video(video_id, user=user))

# -----------------------------
# Interactions
# -----------------------------
@router.post(
    "/{video_id}/like",
    summary="Basculer le like",
    response_model=ApiResponse[ReactionOut],
)
def like(
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    return ok(svc.toggle_reaction(user_id=user.id, video_id=video_id, kind=InteractionType.like))


@router.post(
    "/{video_id}/dislike",
    summary="Basculer le dislike",
    response_model=ApiResponse[ReactionOut],
)
def dislike(
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    return ok(svc.toggle_reaction(user_id=user.id, video_id=video_id, kind=InteractionType.dislike))


@router.put(
    "/{video_id}/reaction",
    summary="Fixer la réaction (like | dislike | null), idempotent",
    response_model=ApiResponse[ReactionOut],
)
def set_reaction(
    payload: ReactionIn,
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    kind = InteractionType(payload.reaction) if payload.reaction else None
    return ok(svc.set_reaction(user_id=user.id, video_id=video_id, kind=kind))


@router.post(
    "/{video_id}/view",
    summary="Enregistrer une vue",
    response_model=ApiResponse[ViewOut],
)
def record_view(
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    return ok(svc.record_view(user_id=user.id, video_id=video_id))


@router.post(
    "/{video_id}/save",
    summary="Enregistrer la vidéo",
    response_model=ApiResponse[SaveStateOut],
    responses={409: {"description": "Déjà enregistrée"}},
)
def save_video(
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    return ok(svc.save_video(user_id=user.id, video_id=video_id), "Video saved successfully")


@router.delete(
    "/{video_id}/unsave",
    summary="Retirer la vidéo des enregistrements",
    response_model=ApiResponse[SaveStateOut],
)
def unsave_video(
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    return ok(svc.unsave_video(user_id=user.id, video_id=video_id), "Video removed from saved list")


@router.get(
    "/{video_id}/is-saved",
    summary="La vidéo est-elle enregistrée ?",
    response_model=ApiResponse[IsSavedOut],
)
def is_saved(
    video_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InteractionService = Depends(get_interaction_service),
):
    return ok(IsSavedOut(is_saved=svc.is_saved(user_id=user.id, video_id=video_id)))
