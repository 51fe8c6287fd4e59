from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from streamsurf.db.models.videos import VideoCategory


# ---------- Agrégats ----------

class UserInteractionOut(BaseModel):
    like: bool = False
    dislike: bool = False


class VideoAggregate(BaseModel):
    """Compteurs dérivés du journal d'interactions + état du user courant."""
    likes: int = 0
    dislikes: int = 0
    views: int = 0
    user_interaction: UserInteractionOut = Field(default_factory=UserInteractionOut)


# ---------- OUT ----------

class VideoOut(VideoAggregate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    video_url: str
    thumbnail_url: str
    duration: int
    category: str
    tags: List[str] = []
    is_published: bool
    uploaded_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    saved_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total_pages: int
    total_count: int
    has_more: bool


class VideoPage(BaseModel):
    items: List[VideoOut]
    pagination: Pagination


class VideoListOut(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: List[VideoOut]
    pagination: Pagination


class ReactionOut(BaseModel):
    video_id: int
    likes: int
    dislikes: int
    user_liked: bool
    user_disliked: bool


class ViewOut(BaseModel):
    video_id: int
    views: int


class SaveStateOut(BaseModel):
    video_id: int
    saved: bool


class IsSavedOut(BaseModel):
    is_saved: bool


# ---------- IN ----------

class ReactionIn(BaseModel):
    reaction: Optional[Literal["like", "dislike"]] = Field(
        default=None, description="État final souhaité ; null = aucune réaction"
    )


class VideoFilter(BaseModel):
    """Paramètres du catalogue (déjà normalisés par le router)."""
    page: int = 1
    limit: int = 12
    search: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    sort_by: str = "createdAt"
    order: Optional[Literal["asc", "desc"]] = None
    published_only: bool = True


class VideoUpdateIn(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    category: Optional[VideoCategory] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None
    duration: Optional[int] = Field(default=None, ge=0)
    thumbnail_url: Optional[str] = None
